"""Extrinsic calibration of vehicle-mounted range sensors.

This package estimates the pose of several range sensors (laser scanners)
relative to a vehicle's navigation frame from observations of known
geometric features such as vertical poles and the ground plane:
- coords: Yaw-Pitch-Roll rotations and the sensor pose transform
- calibration: observation grid, georegistration, feature costs,
  the multi-sensor objective and the calibration driver
- estimators: bounded nonlinear optimizer adapter and its configuration
- sim: synthetic pole/plane surveys with known ground truth
- utils: angle helpers and logging
"""

__version__ = "0.1.0"
