"""Rotations and sensor pose transforms.

This module provides the geometric building blocks of the calibration:
- Yaw-Pitch-Roll (ZYX) and quaternion rotation matrices
- SensorPose, the 6-parameter pose of a sensor in the navigation frame
- The sensor-to-NED point transform applied to every range measurement
"""

from rangecal.coords.pose import (
    SensorPose,
    as_pose_array,
    poses_from_array,
    transform_point,
    transform_points,
    transform_to_ned,
)
from rangecal.coords.rotations import (
    quat_to_rotation_matrix,
    ypr_to_quat,
    ypr_to_rotation_matrix,
)

__all__ = [
    # Poses
    "SensorPose",
    "as_pose_array",
    "poses_from_array",
    "transform_point",
    "transform_points",
    "transform_to_ned",
    # Rotations
    "quat_to_rotation_matrix",
    "ypr_to_quat",
    "ypr_to_rotation_matrix",
]
