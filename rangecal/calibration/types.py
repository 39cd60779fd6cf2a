"""Observation data model for multi-sensor, multi-feature calibration.

Data is organised as an NF-by-NS grid: row f holds every sensor's view of
geometric feature f (a pole, the ground plane, ...), column s holds every
feature seen by sensor s. Each entry is either

- an :class:`ObservationCell`: M rows of range data, the M matching rows
  of navigation data and the georegistration that turns a row pair into a
  sensor-frame point, or
- :data:`NO_OBSERVATION`: sensor s did not see feature f. These entries
  are skipped by the objective.

Example:
    >>> from rangecal.calibration.georegistration import CartesianGeoregistration
    >>> pole_s0 = ObservationCell(range_xyz, nav_ypr, CartesianGeoregistration())
    >>> grid = ObservationGrid([[pole_s0, None]])   # sensor 1 never saw the pole
    >>> grid.shape
    (1, 2)
"""

from dataclasses import dataclass
from typing import Any, Callable, Iterator, Mapping, Optional, Sequence, Tuple, Union

import numpy as np


class NoObservation:
    """Grid entry for a (feature, sensor) pair without data."""

    _instance: Optional["NoObservation"] = None

    def __new__(cls) -> "NoObservation":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_OBSERVATION"

    def __reduce__(self):
        return (NoObservation, ())


NO_OBSERVATION = NoObservation()


def _as_rows(data: Any) -> np.ndarray:
    """Arrange data as a 2D row block; a 1D sequence becomes one column."""
    if data is None:
        return np.empty((0, 0), dtype=np.float64)
    array = np.asarray(data, dtype=np.float64)
    if array.ndim == 0:
        array = array.reshape(1, 1)
    elif array.ndim == 1:
        array = array[:, np.newaxis]
    return array


@dataclass(frozen=True, eq=False)
class ObservationCell:
    """One sensor's view of one feature.

    Attributes:
        range_data: Range measurements, one row per return. Columns are
            defined by the georegistration (e.g. [x, y, z] or
            [range, azimuth, elevation]).
        nav_data: Navigation solution rows, one per range row.
        georegistration: A
            :class:`rangecal.calibration.georegistration.Georegistration`,
            or a per-row function ``(range_row, nav_row) -> Point3``.

    Row counts are not checked here; :func:`validate_inputs` reports
    mismatches together with every other structural problem.
    """

    range_data: np.ndarray
    nav_data: np.ndarray
    georegistration: Optional[Callable[..., Any]] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "range_data", _as_rows(self.range_data))
        object.__setattr__(self, "nav_data", _as_rows(self.nav_data))

    @property
    def n_rows(self) -> int:
        """Number of range rows M."""
        return int(self.range_data.shape[0])

    @property
    def is_empty(self) -> bool:
        """True when data and georegistration are all absent."""
        return (
            self.range_data.size == 0
            and self.nav_data.size == 0
            and self.georegistration is None
        )


GridEntry = Union[ObservationCell, NoObservation]


def is_observed(entry: Any) -> bool:
    """True if a grid entry carries observations to evaluate."""
    return isinstance(entry, ObservationCell)


def _normalise_entry(entry: Any) -> Any:
    if entry is None or isinstance(entry, NoObservation):
        return NO_OBSERVATION
    if isinstance(entry, Mapping):
        entry = ObservationCell(
            range_data=entry.get("range_data"),
            nav_data=entry.get("nav_data"),
            georegistration=entry.get("georegistration"),
        )
    if isinstance(entry, ObservationCell) and entry.is_empty:
        return NO_OBSERVATION
    # Anything else is kept as-is and reported by validation.
    return entry


class ObservationGrid:
    """NF-by-NS matrix of observation entries.

    Args:
        rows: Nested sequence, rows[f][s] is sensor s's view of feature f.
            Entries may be ObservationCell, NO_OBSERVATION, None, a mapping
            with keys ``range_data``/``nav_data``/``georegistration``, or an
            ObservationCell whose fields are all empty (treated as
            NO_OBSERVATION).
    """

    def __init__(self, rows: Sequence[Sequence[Any]]) -> None:
        if isinstance(rows, ObservationGrid):
            rows = rows.rows
        self._rows: Tuple[Tuple[Any, ...], ...] = tuple(
            tuple(_normalise_entry(entry) for entry in row) for row in rows
        )

    @property
    def rows(self) -> Tuple[Tuple[Any, ...], ...]:
        return self._rows

    @property
    def n_features(self) -> int:
        """Number of features NF (grid rows)."""
        return len(self._rows)

    @property
    def n_sensors(self) -> int:
        """Number of sensors NS (length of the first row)."""
        return len(self._rows[0]) if self._rows else 0

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.n_features, self.n_sensors)

    @property
    def is_rectangular(self) -> bool:
        return all(len(row) == self.n_sensors for row in self._rows)

    def cell(self, feature: int, sensor: int) -> Any:
        return self._rows[feature][sensor]

    def feature_row(self, feature: int) -> Tuple[Any, ...]:
        return self._rows[feature]

    def observed_cells(self) -> Iterator[Tuple[int, int, ObservationCell]]:
        """Yield (f, s, cell) for every observed entry, row by row."""
        for f, row in enumerate(self._rows):
            for s, entry in enumerate(row):
                if is_observed(entry):
                    yield f, s, entry

    def n_points(self, feature: int) -> int:
        """Total range rows observed for a feature across all sensors."""
        return sum(entry.n_rows for entry in self._rows[feature] if is_observed(entry))

    def __repr__(self) -> str:
        return f"ObservationGrid(n_features={self.n_features}, n_sensors={self.n_sensors})"
