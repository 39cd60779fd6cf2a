"""
Unit tests for calibration input validation.

Every structural problem must be reported in a single InvalidInputError
raised before any optimization work.
"""

import unittest
import warnings

import numpy as np
import pytest

from rangecal.calibration.costs import HorizontalPlaneCost, VerticalLineCost
from rangecal.calibration.errors import InvalidInputError, UnobservedFeatureWarning
from rangecal.calibration.georegistration import CartesianGeoregistration
from rangecal.calibration.types import NO_OBSERVATION, ObservationCell, ObservationGrid
from rangecal.calibration.validation import validate_inputs


def _cell(n_range=4, n_nav=4, range_cols=3, nav_cols=6, georegistration="default"):
    if georegistration == "default":
        georegistration = CartesianGeoregistration()
    return ObservationCell(np.zeros((n_range, range_cols)), np.zeros((n_nav, nav_cols)), georegistration)


class TestValidInputs(unittest.TestCase):
    """Well-formed inputs pass and come back as an ObservationGrid."""

    def test_valid(self) -> None:
        rows = [[_cell(), NO_OBSERVATION], [_cell(), _cell(2, 2)]]

        with warnings.catch_warnings():
            warnings.simplefilter("error")
            grid = validate_inputs(np.zeros((2, 6)), rows, [VerticalLineCost(), HorizontalPlaneCost()])

        self.assertIsInstance(grid, ObservationGrid)
        self.assertEqual(grid.shape, (2, 2))

    def test_zero_and_infinite_bounds_allowed(self) -> None:
        bounds = np.zeros((1, 6))
        bounds[0, 0] = np.inf

        validate_inputs(np.zeros((1, 6)), [[_cell()]], [VerticalLineCost()], bounds)

    def test_unobserved_feature_warns(self) -> None:
        rows = [[_cell(), _cell()], [NO_OBSERVATION, NO_OBSERVATION]]

        with pytest.warns(UnobservedFeatureWarning, match="Feature 1"):
            validate_inputs(np.zeros((2, 6)), rows, [VerticalLineCost(), HorizontalPlaneCost()])


class TestInvalidInputs(unittest.TestCase):
    """Malformed inputs raise InvalidInputError naming the problem."""

    def test_row_count_mismatch(self) -> None:
        """5 range rows against 4 navigation rows."""
        with pytest.raises(InvalidInputError, match=r"grid\[0\]\[0\]: range data has 5 rows but nav data has 4"):
            validate_inputs(np.zeros((1, 6)), [[_cell(5, 4)]], [VerticalLineCost()])

    def test_negative_bound(self) -> None:
        bounds = np.full((2, 6), 0.1)
        bounds[1, 3] = -0.01

        with pytest.raises(InvalidInputError, match="non-negative") as excinfo:
            validate_inputs(np.zeros((2, 6)), [[_cell(), _cell()]], [VerticalLineCost()], bounds)

        self.assertIn("(1, 3)", excinfo.value.problems[0])

    def test_nan_bound(self) -> None:
        bounds = np.zeros((1, 6))
        bounds[0, 2] = np.nan

        with pytest.raises(InvalidInputError, match="NaN"):
            validate_inputs(np.zeros((1, 6)), [[_cell()]], [VerticalLineCost()], bounds)

    def test_bounds_shape(self) -> None:
        with pytest.raises(InvalidInputError, match="same shape"):
            validate_inputs(np.zeros((2, 6)), [[_cell(), _cell()]], [VerticalLineCost()], np.zeros((1, 6)))

    def test_pose_shape(self) -> None:
        with pytest.raises(InvalidInputError, match=r"shape \(NS, 6\)"):
            validate_inputs(np.zeros((2, 5)), [[_cell(), _cell()]], [VerticalLineCost()])

    def test_non_finite_pose(self) -> None:
        poses = np.zeros((2, 6))
        poses[1, 4] = np.inf

        with pytest.raises(InvalidInputError, match=r"non-finite values for sensor\(s\) \[1\]"):
            validate_inputs(poses, [[_cell(), _cell()]], [VerticalLineCost()])

    def test_empty_grid(self) -> None:
        with pytest.raises(InvalidInputError, match="at least one feature"):
            validate_inputs(np.zeros((1, 6)), [], [])

    def test_grid_width_mismatch(self) -> None:
        with pytest.raises(InvalidInputError, match="grid row 0 has 1 entries, expected NS = 2"):
            validate_inputs(np.zeros((2, 6)), [[_cell()]], [VerticalLineCost()])

    def test_cost_function_count(self) -> None:
        with pytest.raises(InvalidInputError, match="expected 2 cost functions"):
            validate_inputs(np.zeros((1, 6)), [[_cell()], [_cell()]], [VerticalLineCost()])

    def test_cost_function_not_callable(self) -> None:
        with pytest.raises(InvalidInputError, match="cost function 0 is not callable"):
            validate_inputs(np.zeros((1, 6)), [[_cell()]], ["pole"])

    def test_missing_georegistration(self) -> None:
        """Data without a georegistration is not an empty cell."""
        with pytest.raises(InvalidInputError, match="missing or non-callable georegistration"):
            validate_inputs(np.zeros((1, 6)), [[_cell(georegistration=None)]], [VerticalLineCost()])

    def test_column_counts(self) -> None:
        with pytest.raises(InvalidInputError) as excinfo:
            validate_inputs(np.zeros((1, 6)), [[_cell(range_cols=2, nav_cols=4)]], [VerticalLineCost()])

        self.assertEqual(len(excinfo.value.problems), 2)
        self.assertIn("range data has 2 columns", excinfo.value.problems[0])
        self.assertIn("nav data has 4 columns", excinfo.value.problems[1])

    def test_georegistration_point_count(self) -> None:
        """A georegistration must give one 3-vector per range row."""
        rows = [[_cell(georegistration=lambda r, n: r[:2])]]

        with pytest.raises(InvalidInputError, match=r"grid\[0\]\[0\]: georegistration failed.*3-vector"):
            validate_inputs(np.zeros((1, 6)), rows, [VerticalLineCost()])

    def test_per_row_function_accepted(self) -> None:
        grid = validate_inputs(np.zeros((1, 6)), [[_cell(georegistration=lambda r, n: r)]], [VerticalLineCost()])

        self.assertEqual(grid.shape, (1, 1))

    def test_unknown_entry(self) -> None:
        with pytest.raises(InvalidInputError, match=r"expected ObservationCell, got str"):
            validate_inputs(np.zeros((1, 6)), [["scan.csv"]], [VerticalLineCost()])

    def test_all_problems_reported(self) -> None:
        """Several independent problems are reported together."""
        bounds = -np.ones((2, 6))
        rows = [[_cell(3, 2), _cell(georegistration=None)]]

        with pytest.raises(InvalidInputError) as excinfo:
            validate_inputs(np.zeros((2, 6)), rows, [VerticalLineCost(), VerticalLineCost()], bounds)

        problems = excinfo.value.problems
        self.assertEqual(len(problems), 4)
        self.assertIn("4 problem(s)", str(excinfo.value))

    def test_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            validate_inputs(np.zeros((1, 6)), [[_cell(2, 3)]], [VerticalLineCost()])


if __name__ == "__main__":
    unittest.main()
