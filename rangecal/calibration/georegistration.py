"""Georegistration: turning raw range and navigation rows into points.

A georegistration knows the column layout of one kind of range data and
one kind of navigation data. Called on a cell's M range rows and M
navigation rows, it returns

- the M measured points in the sensor frame, and
- the M navigation samples (NED position and body-to-NED rotation)
  that place the vehicle at each measurement.

The sensor pose being calibrated is applied afterwards by
:func:`rangecal.coords.pose.transform_to_ned`, so georegistration never
depends on the candidate pose. Row m of the output depends only on row m
of each input.

Navigation row formats:
    "ypr":        [N, E, D, Yaw, Pitch, Roll]
    "quaternion": [N, E, D, qw, qx, qy, qz]
    "none":       rows are counted but ignored; points are already in
                  the navigation frame

Range row formats:
    CartesianGeoregistration:              [x, y, z]
    RangeAzimuthElevationGeoregistration:  [range, azimuth, elevation]
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Type

import numpy as np

from rangecal.coords.rotations import quat_to_rotation_matrix, ypr_to_rotation_matrix

NAV_FORMAT_COLUMNS: Dict[str, Optional[int]] = {
    "ypr": 6,
    "quaternion": 7,
    "none": None,
}


@dataclass(frozen=True)
class GeoregisteredPoints:
    """Sensor-frame points with the navigation samples they were taken at.

    Attributes:
        local_points: (M, 3) points in the sensor frame.
        nav_positions: (M, 3) vehicle positions in NED, or None.
        nav_rotations: (M, 3, 3) body-to-NED rotations, or None.
    """

    local_points: np.ndarray
    nav_positions: Optional[np.ndarray] = None
    nav_rotations: Optional[np.ndarray] = None

    def __len__(self) -> int:
        return int(self.local_points.shape[0])


def decode_navigation(
    nav_data: np.ndarray,
    nav_format: str,
) -> Tuple[Optional[np.ndarray], Optional[np.ndarray]]:
    """Split navigation rows into NED positions and body-to-NED rotations.

    Args:
        nav_data: Navigation rows (M, k).
        nav_format: One of "ypr", "quaternion", "none".

    Returns:
        Tuple (positions (M, 3), rotations (M, 3, 3)), both None for
        format "none".
    """
    if nav_format == "none":
        return None, None

    nav = np.asarray(nav_data, dtype=np.float64)
    positions = nav[:, 0:3]
    if nav_format == "ypr":
        rotations = ypr_to_rotation_matrix(nav[:, 3], nav[:, 4], nav[:, 5])
    elif nav_format == "quaternion":
        rotations = quat_to_rotation_matrix(nav[:, 3:7])
    else:
        raise ValueError(f"Unknown nav_format: {nav_format}")
    return positions, rotations


class Georegistration(ABC):
    """Converts (range rows, navigation rows) into georegistered points.

    Subclasses set ``expected_range_columns`` so validation can check cell
    layouts before optimization; ``expected_nav_columns`` follows from the
    navigation format.
    """

    name: str = ""
    expected_range_columns: Optional[int] = None

    def __init__(self, nav_format: str = "ypr") -> None:
        if nav_format not in NAV_FORMAT_COLUMNS:
            raise ValueError(
                f"nav_format must be one of {sorted(NAV_FORMAT_COLUMNS)}, got {nav_format!r}"
            )
        self.nav_format = nav_format

    @property
    def expected_nav_columns(self) -> Optional[int]:
        return NAV_FORMAT_COLUMNS[self.nav_format]

    @abstractmethod
    def sensor_points(self, range_data: np.ndarray) -> np.ndarray:
        """Convert range rows (M, k) to sensor-frame points (M, 3)."""

    def __call__(self, range_data: np.ndarray, nav_data: np.ndarray) -> GeoregisteredPoints:
        positions, rotations = decode_navigation(nav_data, self.nav_format)
        return GeoregisteredPoints(
            local_points=self.sensor_points(np.asarray(range_data, dtype=np.float64)),
            nav_positions=positions,
            nav_rotations=rotations,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "nav_format": self.nav_format}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(nav_format={self.nav_format!r})"


class CartesianGeoregistration(Georegistration):
    """Range rows already hold sensor-frame Cartesian points [x, y, z]."""

    name = "cartesian"
    expected_range_columns = 3

    def sensor_points(self, range_data: np.ndarray) -> np.ndarray:
        return range_data[:, 0:3]


class RangeAzimuthElevationGeoregistration(Georegistration):
    """Range rows hold polar returns [range, azimuth, elevation].

    Azimuth is measured in the sensor x-y plane from +x toward +y.
    Elevation is positive above that plane, i.e. toward -z since sensor
    frames are Down-positive like the body frame:

        x = r cos(el) cos(az)
        y = r cos(el) sin(az)
        z = -r sin(el)
    """

    name = "range_azimuth_elevation"
    expected_range_columns = 3

    def __init__(self, nav_format: str = "quaternion") -> None:
        super().__init__(nav_format)

    def sensor_points(self, range_data: np.ndarray) -> np.ndarray:
        r = range_data[:, 0]
        az = range_data[:, 1]
        el = range_data[:, 2]
        horizontal = r * np.cos(el)
        return np.column_stack([horizontal * np.cos(az), horizontal * np.sin(az), -r * np.sin(el)])


GEOREGISTRATIONS: Dict[str, Type[Georegistration]] = {
    CartesianGeoregistration.name: CartesianGeoregistration,
    RangeAzimuthElevationGeoregistration.name: RangeAzimuthElevationGeoregistration,
}


def make_georegistration(name: str, **kwargs: Any) -> Georegistration:
    """Instantiate a registered georegistration by name."""
    try:
        cls = GEOREGISTRATIONS[name]
    except KeyError:
        raise ValueError(
            f"Unknown georegistration {name!r}; available: {sorted(GEOREGISTRATIONS)}"
        ) from None
    return cls(**kwargs)


def _row_points(point_function: Any, range_data: np.ndarray, nav_data: np.ndarray) -> np.ndarray:
    """Apply a per-row ``(range_row, nav_row) -> Point3`` function to a cell."""
    points = np.empty((range_data.shape[0], 3), dtype=np.float64)
    for m in range(range_data.shape[0]):
        point = np.asarray(point_function(range_data[m], nav_data[m]), dtype=np.float64)
        if point.shape != (3,):
            raise ValueError(
                f"Georegistration returned shape {point.shape} for row {m}, expected a 3-vector"
            )
        points[m] = point
    return points


def georegister(georegistration: Any, range_data: np.ndarray, nav_data: np.ndarray) -> GeoregisteredPoints:
    """Call a georegistration on one cell and check its output.

    A :class:`Georegistration` converts the whole cell in one call. Any
    other callable is a per-row function ``(range_row, nav_row) -> Point3``
    returning a sensor-local point; it is called once per row and only the
    sensor pose is applied to its points.

    Raises:
        ValueError: If the output does not hold exactly one point (and one
            navigation sample, where given) per input row.
    """
    range_data = np.asarray(range_data, dtype=np.float64)
    nav_data = np.asarray(nav_data, dtype=np.float64)
    n_rows = range_data.shape[0]

    if isinstance(georegistration, Georegistration):
        registered = georegistration(range_data, nav_data)
    else:
        registered = GeoregisteredPoints(local_points=_row_points(georegistration, range_data, nav_data))

    if registered.local_points.shape != (n_rows, 3):
        raise ValueError(
            f"Georegistration returned points of shape {registered.local_points.shape} "
            f"for {n_rows} range rows, expected ({n_rows}, 3)"
        )
    for name in ("nav_positions", "nav_rotations"):
        samples = getattr(registered, name)
        if samples is not None and samples.shape[0] != n_rows:
            raise ValueError(f"Georegistration returned {samples.shape[0]} {name} for {n_rows} range rows")
    return registered
