"""Unit tests for angle wrapping and pose comparison."""

import unittest

import numpy as np
import pytest
from numpy.testing import assert_allclose

from rangecal.utils.angles import (
    angle_diff,
    degrees_to_radians,
    pose_errors,
    radians_to_degrees,
    wrap_angle,
    wrap_angle_array,
)


class TestWrapping(unittest.TestCase):
    """Test angle wrapping."""

    def test_wrap_angle(self) -> None:
        self.assertAlmostEqual(wrap_angle(3.5 * np.pi), -np.pi / 2.0)
        self.assertAlmostEqual(wrap_angle(0.3), 0.3)

    def test_wrap_array(self) -> None:
        assert_allclose(wrap_angle_array([2.0 * np.pi, -3.0 * np.pi / 2.0]), [0.0, np.pi / 2.0], atol=1e-12)

    def test_angle_diff_across_pi(self) -> None:
        self.assertAlmostEqual(angle_diff(np.pi - 0.1, -np.pi + 0.1), -0.2)

    def test_degree_conversion(self) -> None:
        self.assertAlmostEqual(degrees_to_radians(180.0), np.pi)
        self.assertAlmostEqual(radians_to_degrees(np.pi / 2.0), 90.0)


class TestPoseErrors(unittest.TestCase):
    """Test pose set comparison."""

    def test_translation_and_wrapped_angles(self) -> None:
        estimated = np.array([[1.1, 2.0, -0.5, np.pi - 0.01, 0.02, 0.0]])
        reference = np.array([[1.0, 2.5, -0.5, -np.pi + 0.01, 0.0, 0.01]])

        errors = pose_errors(estimated, reference)

        assert_allclose(errors, [[0.1, -0.5, 0.0, -0.02, 0.02, -0.01]], atol=1e-12)

    def test_shape_mismatch(self) -> None:
        with pytest.raises(ValueError, match="same shape"):
            pose_errors(np.zeros((2, 6)), np.zeros((3, 6)))


if __name__ == "__main__":
    unittest.main()
