"""
Utility functions for the calibration package.

This module provides angle operations, pose error reporting and the
package logger.
"""

from .angles import wrap_angle, wrap_angle_array, angle_diff, pose_errors
from .logging import get_logger

__all__ = [
    'wrap_angle',
    'wrap_angle_array',
    'angle_diff',
    'pose_errors',
    'get_logger',
]
