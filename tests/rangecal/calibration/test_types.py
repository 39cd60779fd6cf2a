"""Unit tests for the observation grid data model."""

import pickle
import unittest

import numpy as np

from rangecal.calibration.georegistration import CartesianGeoregistration
from rangecal.calibration.types import (
    NO_OBSERVATION,
    NoObservation,
    ObservationCell,
    ObservationGrid,
    is_observed,
)


def _cell(rows: int = 4) -> ObservationCell:
    return ObservationCell(np.zeros((rows, 3)), np.zeros((rows, 6)), CartesianGeoregistration())


class TestNoObservation(unittest.TestCase):
    """Test the explicit no-observation entry."""

    def test_singleton(self) -> None:
        self.assertIs(NoObservation(), NO_OBSERVATION)
        self.assertIs(pickle.loads(pickle.dumps(NO_OBSERVATION)), NO_OBSERVATION)

    def test_not_observed(self) -> None:
        self.assertFalse(is_observed(NO_OBSERVATION))
        self.assertTrue(is_observed(_cell()))


class TestObservationCell(unittest.TestCase):
    """Test ObservationCell normalisation."""

    def test_rows_and_arrays(self) -> None:
        cell = ObservationCell([[1, 2, 3], [4, 5, 6]], [[0] * 6, [1] * 6], CartesianGeoregistration())

        self.assertEqual(cell.n_rows, 2)
        self.assertEqual(cell.range_data.dtype, np.float64)

    def test_one_dimensional_data_is_a_column(self) -> None:
        cell = ObservationCell(np.arange(5.0), np.arange(5.0))

        self.assertEqual(cell.range_data.shape, (5, 1))

    def test_empty_cell(self) -> None:
        self.assertTrue(ObservationCell(None, None, None).is_empty)
        self.assertTrue(ObservationCell(np.empty((0, 3)), [], None).is_empty)
        self.assertFalse(_cell().is_empty)


class TestObservationGrid(unittest.TestCase):
    """Test ObservationGrid construction and queries."""

    def test_shape_and_normalisation(self) -> None:
        """None, empty cells and NO_OBSERVATION all become NO_OBSERVATION."""
        grid = ObservationGrid(
            [
                [_cell(3), None, _cell(5)],
                [ObservationCell(None, None, None), NO_OBSERVATION, _cell(2)],
            ]
        )

        self.assertEqual(grid.shape, (2, 3))
        self.assertTrue(grid.is_rectangular)
        self.assertIs(grid.cell(0, 1), NO_OBSERVATION)
        self.assertIs(grid.cell(1, 0), NO_OBSERVATION)
        self.assertEqual(grid.n_points(0), 8)
        self.assertEqual(grid.n_points(1), 2)

    def test_mapping_entries(self) -> None:
        grid = ObservationGrid(
            [[{"range_data": np.zeros((2, 3)), "nav_data": np.zeros((2, 6)),
               "georegistration": CartesianGeoregistration()}]]
        )

        self.assertIsInstance(grid.cell(0, 0), ObservationCell)

    def test_observed_cells_order(self) -> None:
        grid = ObservationGrid([[None, _cell()], [_cell(), _cell()]])

        self.assertEqual([(f, s) for f, s, _ in grid.observed_cells()], [(0, 1), (1, 0), (1, 1)])

    def test_ragged_rows(self) -> None:
        grid = ObservationGrid([[_cell(), _cell()], [_cell()]])

        self.assertFalse(grid.is_rectangular)

    def test_copy_from_grid(self) -> None:
        grid = ObservationGrid([[_cell()]])

        self.assertEqual(ObservationGrid(grid).rows, grid.rows)


if __name__ == "__main__":
    unittest.main()
