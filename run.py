#!/usr/bin/env python3
"""Coupled-Field Simulation Entrypoint

Runs the fixed 20x20x20 photon/axion/neutrino/energy model for 100 steps and
writes one row of spatial averages per step to a CSV file.

The physical model (grid, timestep, couplings, initial densities) is fixed;
only where the run happens and where its output goes can be chosen here.

Usage:
    python run.py                          # Writes results.csv
    python run.py --output out/run1.csv    # Custom output path
    python run.py --device cuda            # Run on a GPU
    python run.py --strict                 # Stop with an error once the fields diverge
    python run.py --quiet                  # Only errors on the console
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import torch

from color_algebra.console import console
from color_algebra.kernels.reaction_diffusion import FieldNumerics, NonFiniteFieldError
from color_algebra.simulation.config import SimulationConfig
from color_algebra.simulation.recorder import OutputSinkError
from color_algebra.simulation.simulator import run_simulation

_DTYPES = {"float64": torch.float64, "float32": torch.float32}


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Coupled-Field Simulation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument("--output", type=str, default="results.csv", help="CSV output path (default: results.csv)")
    parser.add_argument("--device", type=str, default="cpu", help="Device (cpu, cuda)")
    parser.add_argument("--dtype", choices=sorted(_DTYPES), default="float64", help="Field precision (default: float64)")
    parser.add_argument("--log-every", type=int, default=10, help="Progress line every N steps, 0 disables (default: 10)")
    parser.add_argument("--strict", action="store_true",
                        help="Abort on the first NaN/inf instead of saturating diverged cells")
    parser.add_argument("--quiet", action="store_true", help="Suppress everything but errors")

    args = parser.parse_args(argv)
    console.quiet = bool(args.quiet)

    config = SimulationConfig(
        numerics=FieldNumerics(nonfinite="raise" if args.strict else "saturate"),
        device=args.device,
        dtype=_DTYPES[args.dtype],
        output_path=Path(args.output),
        log_every=args.log_every,
    )

    try:
        run_simulation(config)
    except OutputSinkError as err:
        console.error("Could not write results", detail=str(err))
        return 1
    except NonFiniteFieldError as err:
        console.error("Simulation diverged", detail=str(err))
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
