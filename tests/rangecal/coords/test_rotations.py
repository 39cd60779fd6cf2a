"""Unit tests for rotation representations and conversions.

This module tests the yaw-pitch-roll and quaternion conversions used for
sensor poses and navigation attitudes.

Test cases include:
- Identity rotations
- Known rotation values (90° yaw, pitch, roll)
- Composition order (yaw, then pitch, then roll)
- Orthogonality and broadcasting over sample blocks
- Quaternion consistency and normalisation
"""

import unittest

import numpy as np
import pytest

import rangecal.coords as coords
from rangecal.coords.rotations import (
    quat_to_rotation_matrix,
    ypr_to_quat,
    ypr_to_rotation_matrix,
)


def _rz(a):
    c, s = np.cos(a), np.sin(a)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


def _ry(a):
    c, s = np.cos(a), np.sin(a)
    return np.array([[c, 0.0, s], [0.0, 1.0, 0.0], [-s, 0.0, c]])


def _rx(a):
    c, s = np.cos(a), np.sin(a)
    return np.array([[1.0, 0.0, 0.0], [0.0, c, -s], [0.0, s, c]])


class TestYprToRotationMatrix(unittest.TestCase):
    """Test cases for yaw-pitch-roll to rotation matrix conversion."""

    def test_identity_rotation(self) -> None:
        """Zero angles give exactly the identity."""
        R = ypr_to_rotation_matrix(0.0, 0.0, 0.0)

        np.testing.assert_array_equal(R, np.eye(3))

    def test_90_degree_yaw(self) -> None:
        """90° yaw rotates the x-axis onto the y-axis."""
        R = ypr_to_rotation_matrix(np.pi / 2.0, 0.0, 0.0)

        np.testing.assert_allclose(R @ np.array([1.0, 0.0, 0.0]), [0.0, 1.0, 0.0], atol=1e-12)

    def test_90_degree_pitch(self) -> None:
        """90° pitch rotates the x-axis onto -z (nose up in a Down frame)."""
        R = ypr_to_rotation_matrix(0.0, np.pi / 2.0, 0.0)

        np.testing.assert_allclose(R @ np.array([1.0, 0.0, 0.0]), [0.0, 0.0, -1.0], atol=1e-12)

    def test_90_degree_roll(self) -> None:
        """90° roll rotates the y-axis onto z."""
        R = ypr_to_rotation_matrix(0.0, 0.0, np.pi / 2.0)

        np.testing.assert_allclose(R @ np.array([0.0, 1.0, 0.0]), [0.0, 0.0, 1.0], atol=1e-12)

    def test_composition_order(self) -> None:
        """Matrix equals Rz(yaw) @ Ry(pitch) @ Rx(roll), not another order."""
        yaw, pitch, roll = 0.7, -0.3, 0.4

        R = ypr_to_rotation_matrix(yaw, pitch, roll)

        np.testing.assert_allclose(R, _rz(yaw) @ _ry(pitch) @ _rx(roll), atol=1e-12)
        self.assertFalse(np.allclose(R, _rx(roll) @ _ry(pitch) @ _rz(yaw)))

    def test_rotation_matrix_properties(self) -> None:
        """Rotation matrix is orthogonal with det(R) = 1."""
        R = ypr_to_rotation_matrix(0.3, 0.2, 0.1)

        np.testing.assert_allclose(R.T @ R, np.eye(3), atol=1e-12)
        self.assertAlmostEqual(np.linalg.det(R), 1.0, places=12)

    def test_broadcast_over_samples(self) -> None:
        """Arrays of angles give a stack of matrices matching the scalar calls."""
        yaw = np.array([0.1, 1.2, -2.0])
        pitch = np.array([0.0, 0.05, -0.1])
        roll = 0.02

        R = ypr_to_rotation_matrix(yaw, pitch, roll)

        self.assertEqual(R.shape, (3, 3, 3))
        for k in range(3):
            np.testing.assert_allclose(R[k], ypr_to_rotation_matrix(yaw[k], pitch[k], roll), atol=1e-15)

    def test_nan_propagates(self) -> None:
        """NaN angles give NaN entries instead of raising."""
        R = ypr_to_rotation_matrix(np.nan, 0.0, 0.0)

        self.assertTrue(np.isnan(R[0, 0]))


class TestQuaternions(unittest.TestCase):
    """Test cases for quaternion conversions."""

    def test_identity_quaternion(self) -> None:
        np.testing.assert_allclose(quat_to_rotation_matrix([1.0, 0.0, 0.0, 0.0]), np.eye(3), atol=1e-15)

    def test_quaternion_matches_euler(self) -> None:
        """Quaternion from angles gives the same matrix as the angles."""
        yaw, pitch, roll = -1.1, 0.25, -0.6

        q = ypr_to_quat(yaw, pitch, roll)

        self.assertAlmostEqual(np.linalg.norm(q), 1.0, places=12)
        np.testing.assert_allclose(
            quat_to_rotation_matrix(q), ypr_to_rotation_matrix(yaw, pitch, roll), atol=1e-12
        )

    def test_denormalised_quaternion(self) -> None:
        """Scaled quaternions are normalised before conversion."""
        q = ypr_to_quat(0.4, 0.1, -0.2)

        np.testing.assert_allclose(quat_to_rotation_matrix(3.0 * q), quat_to_rotation_matrix(q), atol=1e-12)

    def test_quaternion_block(self) -> None:
        """A (M, 4) block converts to (M, 3, 3)."""
        q = ypr_to_quat(np.array([0.0, 0.5, 1.0]), 0.0, 0.0)

        R = quat_to_rotation_matrix(q)

        self.assertEqual(R.shape, (3, 3, 3))
        np.testing.assert_allclose(R[1], ypr_to_rotation_matrix(0.5, 0.0, 0.0), atol=1e-12)

    def test_invalid_quaternion_shape(self) -> None:
        with pytest.raises(ValueError, match="last dimension 4"):
            quat_to_rotation_matrix(np.zeros(3))


class TestPackageExports(unittest.TestCase):
    """The coords package exports only conversions the calibration uses."""

    def test_rotation_exports(self) -> None:
        rotations = sorted(name for name in coords.__all__ if "quat" in name or "rotation" in name)

        self.assertEqual(rotations, ["quat_to_rotation_matrix", "ypr_to_quat", "ypr_to_rotation_matrix"])
        for name in coords.__all__:
            self.assertTrue(callable(getattr(coords, name)), name)


if __name__ == "__main__":
    unittest.main()
