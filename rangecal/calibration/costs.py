"""Geometric cost functions for calibration features.

A feature cost scores how well an aggregated NED point cloud matches a
known geometric feature:

    cost(points_ned: (N, 3) [Northing, Easting, Down]) -> float >= 0

It is called once per feature per objective evaluation, with the points
of every sensor that observed the feature. Any callable with this
signature can be used; the classes below are the reference features.

Deviation metrics:
    "std":      sqrt(mean(d²)), the RMS distance of the points from the
                feature, in metres. It grows like |d| near zero, so its
                gradient jumps at a perfect fit and line searches may
                stop there without declaring convergence
    "variance": mean(d²), smooth everywhere, which suits gradient-based
                search with finite-difference gradients

where d is each point's distance from the feature. When the feature's
location is not supplied, it is taken at the mean of the points, so a
single point always costs exactly zero.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional, Sequence, Type

import numpy as np

METRICS = ("std", "variance")


def evaluate_feature_cost(cost_function: Callable[[np.ndarray], float], points: np.ndarray) -> float:
    """Score one feature's aggregated point cloud.

    Delegates to ``cost_function`` and returns its value as a float. The
    objective only calls this with a non-empty cloud; features that no
    sensor observed contribute zero without calling it.
    """
    return float(cost_function(points))


def _deviation(squared_distances: np.ndarray, metric: str) -> float:
    mean_square = float(np.mean(squared_distances))
    if metric == "variance":
        return mean_square
    return float(np.sqrt(mean_square))


class FeatureCost(ABC):
    """Base class for reference feature costs."""

    name: str = ""

    def __init__(self, metric: str = "std") -> None:
        if metric not in METRICS:
            raise ValueError(f"metric must be one of {METRICS}, got {metric!r}")
        self.metric = metric

    @abstractmethod
    def squared_distances(self, points_ned: np.ndarray) -> np.ndarray:
        """Squared distance (N,) of each point from the feature."""

    def __call__(self, points_ned: np.ndarray) -> float:
        points = np.asarray(points_ned, dtype=np.float64).reshape(-1, 3)
        if points.shape[0] == 0:
            return 0.0
        return _deviation(self.squared_distances(points), self.metric)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "metric": self.metric}


class VerticalLineCost(FeatureCost):
    """Deviation of points from a vertical line (e.g. a pole).

    Args:
        location: (Northing, Easting) of the line if surveyed. When None
            the line passes through the mean N, E of the points.
        metric: "std" or "variance".
    """

    name = "vertical_line"

    def __init__(self, location: Optional[Sequence[float]] = None, metric: str = "std") -> None:
        super().__init__(metric)
        if location is not None:
            location = np.asarray(location, dtype=np.float64)
            if location.shape != (2,):
                raise ValueError(f"location must be (Northing, Easting), got shape {location.shape}")
        self.location = location

    def squared_distances(self, points_ned: np.ndarray) -> np.ndarray:
        horizontal = points_ned[:, 0:2]
        centre = horizontal.mean(axis=0) if self.location is None else self.location
        offsets = horizontal - centre
        return np.sum(offsets * offsets, axis=1)

    def to_dict(self) -> Dict[str, Any]:
        params = super().to_dict()
        if self.location is not None:
            params["location"] = self.location.tolist()
        return params


class HorizontalPlaneCost(FeatureCost):
    """Deviation of points from a horizontal plane (e.g. flat ground).

    Args:
        down: Down coordinate of the plane if surveyed. When None the plane
            is at the mean D of the points.
        metric: "std" or "variance".
    """

    name = "horizontal_plane"

    def __init__(self, down: Optional[float] = None, metric: str = "std") -> None:
        super().__init__(metric)
        self.down = None if down is None else float(down)

    def squared_distances(self, points_ned: np.ndarray) -> np.ndarray:
        heights = points_ned[:, 2]
        level = heights.mean() if self.down is None else self.down
        offsets = heights - level
        return offsets * offsets

    def to_dict(self) -> Dict[str, Any]:
        params = super().to_dict()
        if self.down is not None:
            params["down"] = self.down
        return params


FEATURE_COSTS: Dict[str, Type[FeatureCost]] = {
    VerticalLineCost.name: VerticalLineCost,
    HorizontalPlaneCost.name: HorizontalPlaneCost,
}


def make_cost(name: str, **kwargs: Any) -> FeatureCost:
    """Instantiate a registered feature cost by name."""
    try:
        cls = FEATURE_COSTS[name]
    except KeyError:
        raise ValueError(f"Unknown feature cost {name!r}; available: {sorted(FEATURE_COSTS)}") from None
    return cls(**kwargs)
