"""Saving and loading calibration datasets.

A dataset directory holds two files:

    arrays.npz      range_f{f}_s{s} / nav_f{f}_s{s} for every observed cell,
                    initial_poses, and optionally bounds and true_poses
    manifest.json   grid shape, feature and sensor names, the cost function
                    of each feature and the georegistration of each cell

Only the registered georegistrations and feature costs (see
``make_georegistration`` and ``make_cost``) can be written, since the
manifest stores them by name and parameters.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np

from rangecal.calibration.costs import make_cost
from rangecal.calibration.georegistration import make_georegistration
from rangecal.calibration.types import NO_OBSERVATION, ObservationCell, ObservationGrid

ARRAYS_FILE = "arrays.npz"
MANIFEST_FILE = "manifest.json"
FORMAT_VERSION = 1


@dataclass
class CalibrationDataset:
    """Everything needed to run one calibration.

    Attributes:
        grid: NF-by-NS observation grid.
        cost_functions: NF feature costs.
        initial_poses: Initial pose guess (NS, 6).
        bounds: Optional bound half-widths (NS, 6).
        true_poses: Ground-truth poses (NS, 6), known for simulated data.
        feature_names: Optional names of the NF features.
        sensor_names: Optional names of the NS sensors.
        metadata: Free-form JSON-serialisable information.
    """

    grid: ObservationGrid
    cost_functions: Sequence[Any]
    initial_poses: np.ndarray
    bounds: Optional[np.ndarray] = None
    true_poses: Optional[np.ndarray] = None
    feature_names: List[str] = field(default_factory=list)
    sensor_names: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)


def _serialisable(obj: Any, kind: str) -> Dict[str, Any]:
    to_dict = getattr(obj, "to_dict", None)
    if to_dict is None:
        raise ValueError(f"Cannot save {kind} {obj!r}: only registered {kind}s can be serialised")
    return to_dict()


def save_dataset(dataset: CalibrationDataset, directory: Union[str, Path]) -> Path:
    """Write a dataset to a directory, creating it if needed.

    Returns:
        The dataset directory.
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    grid = dataset.grid

    arrays: Dict[str, np.ndarray] = {"initial_poses": np.asarray(dataset.initial_poses, dtype=np.float64)}
    if dataset.bounds is not None:
        arrays["bounds"] = np.asarray(dataset.bounds, dtype=np.float64)
    if dataset.true_poses is not None:
        arrays["true_poses"] = np.asarray(dataset.true_poses, dtype=np.float64)

    cells = []
    for f, s, cell in grid.observed_cells():
        arrays[f"range_f{f}_s{s}"] = cell.range_data
        arrays[f"nav_f{f}_s{s}"] = cell.nav_data
        cells.append(
            {
                "feature": f,
                "sensor": s,
                "rows": cell.n_rows,
                "georegistration": _serialisable(cell.georegistration, "georegistration"),
            }
        )

    manifest = {
        "format_version": FORMAT_VERSION,
        "n_features": grid.n_features,
        "n_sensors": grid.n_sensors,
        "feature_names": list(dataset.feature_names),
        "sensor_names": list(dataset.sensor_names),
        "cost_functions": [_serialisable(c, "feature cost") for c in dataset.cost_functions],
        "cells": cells,
        "metadata": dataset.metadata,
    }

    np.savez(directory / ARRAYS_FILE, **arrays)
    with open(directory / MANIFEST_FILE, "w", encoding="utf-8") as f:
        json.dump(manifest, f, indent=2)

    return directory


def _build(params: Dict[str, Any], factory) -> Any:
    params = dict(params)
    name = params.pop("name")
    return factory(name, **params)


def load_dataset(directory: Union[str, Path]) -> CalibrationDataset:
    """Read a dataset written by :func:`save_dataset`.

    Raises:
        FileNotFoundError: If the manifest or arrays file is missing.
        ValueError: If the manifest has an unsupported format version or
            names an unknown georegistration or feature cost.
    """
    directory = Path(directory)
    with open(directory / MANIFEST_FILE, "r", encoding="utf-8") as f:
        manifest = json.load(f)

    version = manifest.get("format_version")
    if version != FORMAT_VERSION:
        raise ValueError(f"Unsupported dataset format version: {version}")

    n_features = int(manifest["n_features"])
    n_sensors = int(manifest["n_sensors"])
    rows: List[List[Any]] = [[NO_OBSERVATION] * n_sensors for _ in range(n_features)]

    with np.load(directory / ARRAYS_FILE) as arrays:
        for entry in manifest["cells"]:
            f, s = int(entry["feature"]), int(entry["sensor"])
            rows[f][s] = ObservationCell(
                range_data=arrays[f"range_f{f}_s{s}"],
                nav_data=arrays[f"nav_f{f}_s{s}"],
                georegistration=_build(entry["georegistration"], make_georegistration),
            )
        initial_poses = arrays["initial_poses"]
        bounds = arrays["bounds"] if "bounds" in arrays.files else None
        true_poses = arrays["true_poses"] if "true_poses" in arrays.files else None

    return CalibrationDataset(
        grid=ObservationGrid(rows),
        cost_functions=[_build(params, make_cost) for params in manifest["cost_functions"]],
        initial_poses=initial_poses,
        bounds=bounds,
        true_poses=true_poses,
        feature_names=list(manifest.get("feature_names", [])),
        sensor_names=list(manifest.get("sensor_names", [])),
        metadata=dict(manifest.get("metadata", {})),
    )
