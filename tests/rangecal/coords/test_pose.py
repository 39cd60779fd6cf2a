"""Unit tests for sensor poses and the sensor-to-NED transform.

Tests cover:
    - SensorPose construction and array round trips
    - Pose set normalisation (arrays, flat vectors, SensorPose lists)
    - Zero-angle transform is a pure translation
    - Translation equivariance
    - Navigation sample chaining
    - NaN propagation
"""

import unittest

import numpy as np
import pytest

from rangecal.coords.pose import (
    SensorPose,
    as_pose_array,
    poses_from_array,
    transform_point,
    transform_points,
    transform_to_ned,
)
from rangecal.coords.rotations import ypr_to_rotation_matrix


class TestSensorPose(unittest.TestCase):
    """Test SensorPose data class."""

    def test_array_round_trip(self) -> None:
        values = np.array([1.0, -2.0, 0.5, 0.1, -0.2, 0.3])

        pose = SensorPose.from_array(values)

        self.assertEqual(pose.yaw, 0.1)
        np.testing.assert_array_equal(pose.as_array(), values)

    def test_rotation_matrix(self) -> None:
        pose = SensorPose(yaw=0.4, pitch=0.1, roll=-0.2)

        np.testing.assert_allclose(pose.rotation_matrix(), ypr_to_rotation_matrix(0.4, 0.1, -0.2))

    def test_from_array_wrong_size(self) -> None:
        with pytest.raises(ValueError, match="6 elements"):
            SensorPose.from_array([1.0, 2.0, 3.0])


class TestPoseSets(unittest.TestCase):
    """Test pose set normalisation."""

    def test_sensor_pose_list(self) -> None:
        poses = [SensorPose(1.0, 0.0, 0.0), SensorPose(0.0, 2.0, 0.0, yaw=0.5)]

        array = as_pose_array(poses)

        self.assertEqual(array.shape, (2, 6))
        self.assertEqual(array[1, 3], 0.5)

    def test_flat_vector_reshaped(self) -> None:
        flat = np.arange(12, dtype=float)

        array = as_pose_array(flat)

        self.assertEqual(array.shape, (2, 6))
        np.testing.assert_array_equal(array[1], np.arange(6, 12))

    def test_input_not_modified(self) -> None:
        """The normalised array is a copy."""
        poses = np.zeros((2, 6))

        array = as_pose_array(poses)
        array[0, 0] = 5.0

        self.assertEqual(poses[0, 0], 0.0)

    def test_invalid_shape(self) -> None:
        with pytest.raises(ValueError, match="shape"):
            as_pose_array(np.zeros((2, 5)))

    def test_poses_from_array(self) -> None:
        poses = poses_from_array(np.array([[1, 2, 3, 0.1, 0.2, 0.3]]))

        self.assertEqual(len(poses), 1)
        self.assertIsInstance(poses[0], SensorPose)
        self.assertEqual(poses[0].z, 3.0)


class TestTransform(unittest.TestCase):
    """Test the pose transform."""

    def setUp(self):
        self.pose = np.array([1.5, -0.7, -1.8, 0.3, 0.05, -0.02])
        self.point = np.array([4.0, 1.0, -0.5])

    def test_zero_angles_is_translation(self) -> None:
        """With zero angles the result is P + (X, Y, Z) exactly."""
        pose = np.array([1.25, -3.5, 0.75, 0.0, 0.0, 0.0])
        point = np.array([0.1, 2.2, -7.3])

        np.testing.assert_array_equal(transform_point(pose, point), point + pose[:3])
        np.testing.assert_array_equal(
            transform_points(pose, point[np.newaxis, :]), (point + pose[:3])[np.newaxis, :]
        )

    def test_translation_equivariance(self) -> None:
        """Shifting (X, Y, Z) by Δ shifts the result by Δ."""
        delta = np.array([0.3, -1.2, 2.0])
        shifted = self.pose.copy()
        shifted[:3] += delta

        np.testing.assert_allclose(
            transform_point(shifted, self.point),
            transform_point(self.pose, self.point) + delta,
            atol=1e-12,
        )

    def test_rotation_then_translation(self) -> None:
        R = ypr_to_rotation_matrix(*self.pose[3:])

        np.testing.assert_allclose(
            transform_point(self.pose, self.point), R @ self.point + self.pose[:3], atol=1e-12
        )

    def test_sensor_pose_and_array_agree(self) -> None:
        np.testing.assert_allclose(
            transform_point(SensorPose.from_array(self.pose), self.point),
            transform_point(self.pose, self.point),
        )

    def test_points_match_single_point(self) -> None:
        points = np.array([[1.0, 0.0, 0.0], [0.0, 2.0, -1.0], [3.0, -1.0, 0.5]])

        result = transform_points(self.pose, points)

        for k in range(3):
            np.testing.assert_allclose(result[k], transform_point(self.pose, points[k]), atol=1e-12)

    def test_deterministic(self) -> None:
        np.testing.assert_array_equal(
            transform_point(self.pose, self.point), transform_point(self.pose, self.point)
        )

    def test_nan_pose_propagates(self) -> None:
        """NaN pose components give NaN output without raising."""
        pose = self.pose.copy()
        pose[3] = np.nan

        result = transform_point(pose, self.point)

        self.assertTrue(np.all(np.isnan(result[:2])))

    def test_invalid_point_shape(self) -> None:
        with pytest.raises(ValueError, match="shape"):
            transform_points(self.pose, np.zeros((4, 2)))


class TestTransformToNed(unittest.TestCase):
    """Test the full georeferencing chain."""

    def test_without_navigation(self) -> None:
        pose = np.array([1.0, 2.0, 3.0, 0.2, 0.0, 0.0])
        points = np.array([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])

        np.testing.assert_array_equal(transform_to_ned(pose, points), transform_points(pose, points))

    def test_navigation_chain(self) -> None:
        """p_ned = p_nav + R_nav @ (t_s + R_s @ p)."""
        pose = np.array([1.0, 0.5, -1.0, 0.1, 0.02, -0.03])
        points = np.array([[5.0, 0.0, 0.0], [2.0, -1.0, 0.3]])
        nav_pos = np.array([[100.0, 50.0, -2.0], [101.0, 49.0, -2.1]])
        nav_rot = ypr_to_rotation_matrix(np.array([1.0, -2.0]), np.array([0.01, 0.0]), np.array([0.0, 0.02]))

        result = transform_to_ned(pose, points, nav_pos, nav_rot)

        R_s = ypr_to_rotation_matrix(*pose[3:])
        for k in range(2):
            expected = nav_pos[k] + nav_rot[k] @ (pose[:3] + R_s @ points[k])
            np.testing.assert_allclose(result[k], expected, atol=1e-12)


if __name__ == "__main__":
    unittest.main()
