# run.py
"""
Baseline pipeline: load parameters -> solve -> summarize -> plot.

    pmtct-model --t-end 365 --method RK4 --csv out.csv --plot out.png
"""

from __future__ import annotations
import argparse
import json
from dataclasses import replace
from typing import Optional, Sequence

import pandas as pd

from .errors import InvalidInput
from .parameters import ModelParameters, get_default_parameters
from .plotting import plot_overview
from .simulation import SOLVER_METHODS, default_time_grid, get_solver_settings, simulate
from .summary import outcome_metrics, summarize
from .trajectory import Trajectory


def load_parameters(path: Optional[str] = None) -> ModelParameters:
    """
    Defaults, optionally overridden by a JSON object of name -> value.
    """
    if path is None:
        return get_default_parameters()
    with open(path) as fh:
        overrides = json.load(fh)
    if not isinstance(overrides, dict):
        raise InvalidInput(f"{path}: expected a JSON object of parameter values")
    return ModelParameters.from_mapping({**get_default_parameters().to_dict(), **overrides})


def run_baseline(
    params: Optional[ModelParameters] = None,
    t_end: float = 365.0,
    method: str = "RK4",
    step: Optional[float] = None,
    verbose: bool = True,
) -> Trajectory:
    settings = get_solver_settings(method)
    if step is not None:
        settings = replace(settings, step=step)

    if verbose:
        print(f"[Main] Solving 0..{t_end:g} days with {settings.method}")
    return simulate(params=params, grid=default_time_grid(t_end), settings=settings, verbose=verbose)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pmtct-model",
        description="Simulate HIV and mother-to-child transmission dynamics.",
    )
    parser.add_argument("--t-end", type=float, default=365.0, help="Horizon in days (default 365)")
    parser.add_argument("--method", choices=SOLVER_METHODS, default="RK4", help="Solver method")
    parser.add_argument("--step", type=float, default=None, help="RK4 sub-step in days (default 0.1)")
    parser.add_argument("--params", default=None, help="JSON file overriding default parameters")
    parser.add_argument("--csv", default=None, help="Write the trajectory table to this CSV file")
    parser.add_argument("--plot", default=None, help="Save an overview figure to this file")
    parser.add_argument("--quiet", action="store_true", help="Only print errors")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    verbose = not args.quiet

    try:
        params = load_parameters(args.params)
        traj = run_baseline(params, t_end=args.t_end, method=args.method, step=args.step, verbose=verbose)
    except InvalidInput as e:
        parser.error(str(e))

    if verbose:
        with pd.option_context("display.width", 120, "display.max_columns", None):
            print(summarize(traj))
        for key, value in outcome_metrics(traj).items():
            print(f"[Main] {key}: {value:.4g}")

    if args.csv:
        traj.to_csv(args.csv)
        if verbose:
            print(f"[Main] Wrote {args.csv}")

    if args.plot:
        import matplotlib.pyplot as plt

        fig = plot_overview(traj)
        fig.savefig(args.plot, dpi=150)
        plt.close(fig)
        if verbose:
            print(f"[Main] Wrote {args.plot}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
