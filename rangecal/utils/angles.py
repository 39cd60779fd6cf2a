"""
Angle wrapping and pose comparison utilities.

Provides functions for handling angular quantities and ensuring they remain
within proper bounds (typically [-π, π] for radians).

Used for:
- Reporting calibrated yaw/pitch/roll against a reference
- Pose errors between two pose sets, where yaw near ±180° must not
  show up as a 2π error
"""

from typing import Union

import numpy as np

from rangecal.coords.pose import as_pose_array


def wrap_angle(angle: float) -> float:
    """
    Wrap angle to [-π, π] range.

    Args:
        angle: Angle in radians (can be any value)

    Returns:
        Wrapped angle in range [-π, π]

    Example:
        >>> wrap_angle(3.5 * np.pi)  # 630° -> -90°
        -1.5707963267948966
    """
    return float(np.arctan2(np.sin(angle), np.cos(angle)))


def wrap_angle_array(angles: np.ndarray) -> np.ndarray:
    """Vectorised version of wrap_angle()."""
    angles = np.asarray(angles, dtype=float)
    return np.arctan2(np.sin(angles), np.cos(angles))


def angle_diff(angle1: Union[float, np.ndarray],
               angle2: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """
    Compute the shortest angular difference between two angles.

    Returns angle1 - angle2, wrapped to [-π, π].

    Example:
        >>> angle_diff(np.pi - 0.1, -np.pi + 0.1)  # Nearly opposite
        -0.2
    """
    if isinstance(angle1, np.ndarray) or isinstance(angle2, np.ndarray):
        return wrap_angle_array(np.asarray(angle1) - np.asarray(angle2))
    else:
        return wrap_angle(angle1 - angle2)


def pose_errors(estimated: np.ndarray, reference: np.ndarray) -> np.ndarray:
    """
    Per-sensor pose error, estimated minus reference.

    Translation columns are plain differences; the three angle columns are
    wrapped with angle_diff().

    Args:
        estimated: Pose set (NS, 6) [X, Y, Z, Yaw, Pitch, Roll].
        reference: Pose set (NS, 6) to compare against.

    Returns:
        Error array (NS, 6).

    Raises:
        ValueError: If the two pose sets differ in shape.
    """
    estimated = as_pose_array(estimated)
    reference = as_pose_array(reference)
    if estimated.shape != reference.shape:
        raise ValueError(
            f"Pose sets must have the same shape, got {estimated.shape} and {reference.shape}"
        )

    errors = estimated - reference
    errors[:, 3:] = angle_diff(estimated[:, 3:], reference[:, 3:])
    return errors


def degrees_to_radians(degrees: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """Convert degrees to radians."""
    return np.deg2rad(degrees)


def radians_to_degrees(radians: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """Convert radians to degrees."""
    return np.rad2deg(radians)
