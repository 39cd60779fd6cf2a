"""Multi-sensor extrinsic calibration against geometric features.

This module provides:
- the NF-by-NS observation grid and its explicit no-observation entry
- georegistration adapters that turn range and navigation rows into points
- reference feature costs (vertical line, horizontal plane)
- MultiSensorMultiRegionCost, the objective summed over features
- input validation and the calibrate() driver
- saving and loading of calibration datasets
"""

from rangecal.calibration.costs import (
    FeatureCost,
    HorizontalPlaneCost,
    VerticalLineCost,
    evaluate_feature_cost,
    make_cost,
)
from rangecal.calibration.dataset_io import CalibrationDataset, load_dataset, save_dataset
from rangecal.calibration.driver import CalibrationResult, calibrate, derive_bounds
from rangecal.calibration.errors import (
    CalibrationConvergenceWarning,
    InvalidInputError,
    UnobservedFeatureWarning,
)
from rangecal.calibration.georegistration import (
    CartesianGeoregistration,
    Georegistration,
    GeoregisteredPoints,
    RangeAzimuthElevationGeoregistration,
    make_georegistration,
)
from rangecal.calibration.objective import (
    MultiSensorMultiRegionCost,
    feature_costs,
    feature_points,
    total_cost,
)
from rangecal.calibration.types import (
    NO_OBSERVATION,
    NoObservation,
    ObservationCell,
    ObservationGrid,
    is_observed,
)
from rangecal.calibration.validation import validate_inputs

__all__ = [
    # Data model
    "NO_OBSERVATION",
    "NoObservation",
    "ObservationCell",
    "ObservationGrid",
    "is_observed",
    # Georegistration
    "CartesianGeoregistration",
    "Georegistration",
    "GeoregisteredPoints",
    "RangeAzimuthElevationGeoregistration",
    "make_georegistration",
    # Costs
    "FeatureCost",
    "HorizontalPlaneCost",
    "VerticalLineCost",
    "evaluate_feature_cost",
    "make_cost",
    # Objective
    "MultiSensorMultiRegionCost",
    "feature_costs",
    "feature_points",
    "total_cost",
    # Driver
    "CalibrationResult",
    "calibrate",
    "derive_bounds",
    "validate_inputs",
    # Errors
    "CalibrationConvergenceWarning",
    "InvalidInputError",
    "UnobservedFeatureWarning",
    # Datasets
    "CalibrationDataset",
    "load_dataset",
    "save_dataset",
]
