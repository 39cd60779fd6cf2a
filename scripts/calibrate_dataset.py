"""
Calibrate the sensor poses of a saved dataset.

Loads a dataset written by scripts/generate_pole_plane_dataset.py (or by
rangecal.calibration.dataset_io.save_dataset), runs the calibration and
writes the result summary as JSON. When the dataset carries ground truth
the per-sensor pose errors are printed.

Examples:
    python scripts/calibrate_dataset.py --dataset data/sim/pole_plane
    python scripts/calibrate_dataset.py --dataset data/sim/pole_plane \\
        --config configs/solver.json --output results/pole_plane.json
"""

import argparse
import json
import sys
from pathlib import Path

import numpy as np

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from rangecal.calibration.dataset_io import load_dataset
from rangecal.calibration.driver import calibrate
from rangecal.estimators.bounded_optimizer import load_solver_config
from rangecal.utils.angles import pose_errors, radians_to_degrees


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(description="Calibrate range sensor poses from a dataset")
    parser.add_argument("--dataset", type=str, required=True, help="Dataset directory")
    parser.add_argument("--config", type=str, default=None, help="Solver config JSON file")
    parser.add_argument("--output", type=str, default=None, help="Write result summary JSON here")
    parser.add_argument("--no-bounds", action="store_true", help="Ignore stored bounds")
    args = parser.parse_args()

    dataset = load_dataset(args.dataset)
    config = load_solver_config(args.config) if args.config else None

    result = calibrate(
        dataset.initial_poses,
        dataset.grid,
        dataset.cost_functions,
        bounds=None if args.no_bounds else dataset.bounds,
        solver_config=config,
    )

    names = dataset.sensor_names or [f"sensor_{s}" for s in range(result.poses.shape[0])]
    print("\n" + "=" * 70)
    print("CALIBRATION RESULT")
    print("=" * 70)
    print(f"  Status:        {result.status} ({result.message})")
    print(f"  Cost:          {result.initial_cost:.6e} -> {result.cost:.6e}")
    print(f"  Iterations:    {result.iterations}, evaluations: {result.evaluations}")
    print(f"\n  {'sensor':<12}{'X':>9}{'Y':>9}{'Z':>9}{'Yaw':>9}{'Pitch':>9}{'Roll':>9}")
    for name, pose in zip(names, result.poses):
        angles = radians_to_degrees(pose[3:])
        print(f"  {name:<12}" + "".join(f"{v:9.4f}" for v in pose[:3]) + "".join(f"{v:9.3f}" for v in angles))

    if dataset.true_poses is not None:
        errors = pose_errors(result.poses, dataset.true_poses)
        print("\n  Error vs truth (mm, mdeg)")
        for name, err in zip(names, errors):
            print(
                f"  {name:<12}"
                + "".join(f"{v * 1e3:9.2f}" for v in err[:3])
                + "".join(f"{v * 1e3:9.2f}" for v in radians_to_degrees(err[3:]))
            )

    if args.output:
        output = Path(args.output)
        output.parent.mkdir(parents=True, exist_ok=True)
        summary = result.summary()
        summary["sensor_names"] = names
        if dataset.true_poses is not None:
            summary["pose_errors"] = np.asarray(pose_errors(result.poses, dataset.true_poses)).tolist()
        with open(output, "w", encoding="utf-8") as f:
            json.dump(summary, f, indent=2)
        print(f"\nResult saved as: {output}")


if __name__ == "__main__":
    main()
