"""Rotation representations used by sensor poses and navigation samples.

This module converts the two attitude representations found in
navigation data into rotation matrices:
- Euler angles (yaw-pitch-roll, ZYX convention)
- Quaternions (unit quaternions, q = [qw, qx, qy, qz])

Conventions:
- Angles are given in the order [yaw, pitch, roll] in radians, matching
  the column order of a sensor pose [X, Y, Z, Yaw, Pitch, Roll].
  - Yaw: rotation about z-axis (ψ), applied first
  - Pitch: rotation about the rotated y-axis (θ), applied second
  - Roll: rotation about the twice-rotated x-axis (φ), applied last
- Rotation matrices map body/sensor vectors into the parent frame:
  v_parent = R @ v_child.

All functions broadcast over leading dimensions so that a whole block of
navigation samples can be converted in one call. NaN inputs propagate to
NaN outputs; nothing here raises on non-finite angles.
"""

from typing import Union

import numpy as np
from numpy.typing import ArrayLike, NDArray

Angle = Union[float, ArrayLike]


def ypr_to_rotation_matrix(
    yaw: Angle,
    pitch: Angle,
    roll: Angle,
) -> NDArray[np.float64]:
    """Convert yaw-pitch-roll Euler angles to rotation matrices.

    Builds R = Rz(yaw) @ Ry(pitch) @ Rx(roll), the intrinsic
    yaw-then-pitch-then-roll sequence. The order is significant because
    rotations do not commute.

    Args:
        yaw: Yaw angle ψ in radians. Scalar or array.
        pitch: Pitch angle θ in radians. Scalar or array.
        roll: Roll angle φ in radians. Scalar or array.

    Returns:
        Rotation matrices of shape (..., 3, 3), where ``...`` is the
        broadcast shape of the inputs. Scalars give a single 3x3 matrix.

    Example:
        >>> R = ypr_to_rotation_matrix(np.pi / 2, 0.0, 0.0)
        >>> np.round(R @ np.array([1.0, 0.0, 0.0]), 12)
        array([0., 1., 0.])
    """
    yaw, pitch, roll = np.broadcast_arrays(
        np.asarray(yaw, dtype=np.float64),
        np.asarray(pitch, dtype=np.float64),
        np.asarray(roll, dtype=np.float64),
    )

    cy = np.cos(yaw)
    sy = np.sin(yaw)
    cp = np.cos(pitch)
    sp = np.sin(pitch)
    cr = np.cos(roll)
    sr = np.sin(roll)

    # ZYX (3-2-1) Euler angle rotation matrix
    R = np.stack(
        [
            np.stack([cy * cp, cy * sp * sr - sy * cr, cy * sp * cr + sy * sr], axis=-1),
            np.stack([sy * cp, sy * sp * sr + cy * cr, sy * sp * cr - cy * sr], axis=-1),
            np.stack([-sp, cp * sr, cp * cr], axis=-1),
        ],
        axis=-2,
    )

    return R


def ypr_to_quat(
    yaw: Angle,
    pitch: Angle,
    roll: Angle,
) -> NDArray[np.float64]:
    """Convert yaw-pitch-roll Euler angles to unit quaternions.

    Args:
        yaw: Yaw angle ψ in radians. Scalar or array.
        pitch: Pitch angle θ in radians. Scalar or array.
        roll: Roll angle φ in radians. Scalar or array.

    Returns:
        Quaternions [qw, qx, qy, qz] with shape (..., 4).
    """
    yaw, pitch, roll = np.broadcast_arrays(
        np.asarray(yaw, dtype=np.float64),
        np.asarray(pitch, dtype=np.float64),
        np.asarray(roll, dtype=np.float64),
    )

    cr = np.cos(roll / 2.0)
    sr = np.sin(roll / 2.0)
    cp = np.cos(pitch / 2.0)
    sp = np.sin(pitch / 2.0)
    cy = np.cos(yaw / 2.0)
    sy = np.sin(yaw / 2.0)

    qw = cr * cp * cy + sr * sp * sy
    qx = sr * cp * cy - cr * sp * sy
    qy = cr * sp * cy + sr * cp * sy
    qz = cr * cp * sy - sr * sp * cy

    return np.stack([qw, qx, qy, qz], axis=-1)


def quat_to_rotation_matrix(q: ArrayLike) -> NDArray[np.float64]:
    """Convert quaternions to rotation matrices.

    Quaternions are normalised before conversion, so navigation logs that
    store slightly denormalised attitudes still give proper rotations.

    Args:
        q: Quaternions [qw, qx, qy, qz] with shape (4,) or (..., 4).

    Returns:
        Rotation matrices with shape (3, 3) or (..., 3, 3).

    Raises:
        ValueError: If the last dimension of q is not 4.
    """
    q = np.asarray(q, dtype=np.float64)
    if q.shape[-1:] != (4,):
        raise ValueError(f"Expected quaternions with last dimension 4, got shape {q.shape}")

    q = q / np.linalg.norm(q, axis=-1, keepdims=True)
    qw, qx, qy, qz = np.moveaxis(q, -1, 0)

    R = np.stack(
        [
            np.stack(
                [
                    1.0 - 2.0 * (qy * qy + qz * qz),
                    2.0 * (qx * qy - qw * qz),
                    2.0 * (qx * qz + qw * qy),
                ],
                axis=-1,
            ),
            np.stack(
                [
                    2.0 * (qx * qy + qw * qz),
                    1.0 - 2.0 * (qx * qx + qz * qz),
                    2.0 * (qy * qz - qw * qx),
                ],
                axis=-1,
            ),
            np.stack(
                [
                    2.0 * (qx * qz - qw * qy),
                    2.0 * (qy * qz + qw * qx),
                    1.0 - 2.0 * (qx * qx + qy * qy),
                ],
                axis=-1,
            ),
        ],
        axis=-2,
    )

    return R
