"""Sensor poses and the sensor-to-NED point transform.

A sensor pose is the rigid offset of a range sensor from the vehicle's
navigation reference point, expressed in the navigation (body) frame:

    [X, Y, Z, Yaw, Pitch, Roll]    (metres, radians)

A set of NS poses is stored as an (NS, 6) array with one row per sensor,
which is also the parameter block searched by the optimizer.

Georeferencing chain for a point p measured in the sensor frame:

    p_body = t_s + R_s @ p                  (sensor pose, this module)
    p_ned  = p_nav + R_nav @ p_body         (navigation sample)

where R_s = Rz(yaw) Ry(pitch) Rx(roll). When no navigation sample is
given the body frame is taken to be the NED frame.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

import numpy as np
from numpy.typing import ArrayLike, NDArray

from rangecal.coords.rotations import ypr_to_rotation_matrix

POSE_FIELDS = ("x", "y", "z", "yaw", "pitch", "roll")
POSE_SIZE = len(POSE_FIELDS)


@dataclass(frozen=True)
class SensorPose:
    """Pose of one range sensor relative to the navigation frame.

    Attributes:
        x: Forward (north at zero heading) offset in metres.
        y: Right (east at zero heading) offset in metres.
        z: Down offset in metres.
        yaw: Rotation about z in radians, applied first.
        pitch: Rotation about the rotated y-axis in radians, applied second.
        roll: Rotation about the twice-rotated x-axis in radians, applied last.

    Example:
        >>> pose = SensorPose(1.2, 0.0, -1.8, np.deg2rad(90.0), 0.0, 0.0)
        >>> pose.as_array().shape
        (6,)
    """

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    yaw: float = 0.0
    pitch: float = 0.0
    roll: float = 0.0

    @classmethod
    def from_array(cls, values: ArrayLike) -> "SensorPose":
        """Build a pose from a 6-vector [X, Y, Z, Yaw, Pitch, Roll]."""
        values = np.asarray(values, dtype=np.float64)
        if values.shape != (POSE_SIZE,):
            raise ValueError(f"Pose must have {POSE_SIZE} elements, got shape {values.shape}")
        return cls(*(float(v) for v in values))

    def as_array(self) -> NDArray[np.float64]:
        """Return the pose as [X, Y, Z, Yaw, Pitch, Roll]."""
        return np.array([getattr(self, name) for name in POSE_FIELDS], dtype=np.float64)

    @property
    def translation(self) -> NDArray[np.float64]:
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    def rotation_matrix(self) -> NDArray[np.float64]:
        """Rotation taking sensor-frame vectors into the navigation frame."""
        return ypr_to_rotation_matrix(self.yaw, self.pitch, self.roll)


PoseLike = Union[SensorPose, ArrayLike]


def as_pose_array(poses: Union[Sequence[SensorPose], ArrayLike]) -> NDArray[np.float64]:
    """Normalise a pose set to a fresh (NS, 6) float array.

    Accepts an (NS, 6) array-like or a sequence of :class:`SensorPose`.
    A flat (NS*6,) vector, as handed around by optimizers, is reshaped.
    The input is never modified.

    Raises:
        ValueError: If the values cannot be arranged as (NS, 6).
    """
    if isinstance(poses, SensorPose):
        poses = [poses]
    if isinstance(poses, (list, tuple)) and poses and all(isinstance(p, SensorPose) for p in poses):
        return np.vstack([p.as_array() for p in poses])

    array = np.array(poses, dtype=np.float64)
    if array.ndim == 1 and array.size % POSE_SIZE == 0 and array.size > 0:
        array = array.reshape(-1, POSE_SIZE)
    if array.ndim != 2 or array.shape[1] != POSE_SIZE:
        raise ValueError(f"Pose set must have shape (NS, {POSE_SIZE}), got {array.shape}")
    return array


def poses_from_array(poses: ArrayLike) -> List[SensorPose]:
    """Convert an (NS, 6) pose array into a list of :class:`SensorPose`."""
    return [SensorPose.from_array(row) for row in as_pose_array(poses)]


def _pose_parts(pose: PoseLike):
    if isinstance(pose, SensorPose):
        return pose.translation, pose.rotation_matrix()
    values = np.asarray(pose, dtype=np.float64)
    if values.shape != (POSE_SIZE,):
        raise ValueError(f"Pose must have {POSE_SIZE} elements, got shape {values.shape}")
    return values[:3], ypr_to_rotation_matrix(values[3], values[4], values[5])


def transform_point(pose: PoseLike, local_point: ArrayLike) -> NDArray[np.float64]:
    """Transform one sensor-frame point into the navigation frame.

    Rotates the point by the pose's yaw-pitch-roll rotation, then
    translates it by (X, Y, Z). Pure function; NaN pose components give
    NaN output instead of raising.

    Args:
        pose: SensorPose or 6-vector [X, Y, Z, Yaw, Pitch, Roll].
        local_point: Point (3,) in the sensor frame.

    Returns:
        Point (3,) in the navigation frame.

    Example:
        >>> transform_point([1.0, 2.0, 3.0, 0.0, 0.0, 0.0], [0.5, 0.0, 0.0])
        array([1.5, 2. , 3. ])
    """
    point = np.asarray(local_point, dtype=np.float64)
    if point.shape != (3,):
        raise ValueError(f"Point must have shape (3,), got {point.shape}")
    translation, R = _pose_parts(pose)
    return R @ point + translation


def transform_points(pose: PoseLike, local_points: ArrayLike) -> NDArray[np.float64]:
    """Vectorised :func:`transform_point` over an (M, 3) block of points."""
    points = np.asarray(local_points, dtype=np.float64)
    if points.ndim != 2 or points.shape[1] != 3:
        raise ValueError(f"Points must have shape (M, 3), got {points.shape}")
    translation, R = _pose_parts(pose)
    return points @ R.T + translation


def transform_to_ned(
    pose: PoseLike,
    local_points: ArrayLike,
    nav_positions: Optional[ArrayLike] = None,
    nav_rotations: Optional[ArrayLike] = None,
) -> NDArray[np.float64]:
    """Georeference sensor-frame points into North-East-Down coordinates.

    Applies the sensor pose, then (row by row) the vehicle's navigation
    sample: p_ned = p_nav + R_nav @ (t_s + R_s @ p).

    Args:
        pose: Sensor pose relative to the navigation frame.
        local_points: Points (M, 3) in the sensor frame.
        nav_positions: Navigation positions (M, 3) in NED, or None.
        nav_rotations: Navigation attitudes (M, 3, 3) as body-to-NED
            rotation matrices, or None.

    Returns:
        Points (M, 3) as [Northing, Easting, Down].
    """
    body = transform_points(pose, local_points)
    if nav_rotations is not None:
        nav_rotations = np.asarray(nav_rotations, dtype=np.float64)
        body = np.einsum("mij,mj->mi", nav_rotations, body)
    if nav_positions is not None:
        body = body + np.asarray(nav_positions, dtype=np.float64)
    return body
