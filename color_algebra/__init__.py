"""Color Algebra.

Explicit finite-difference simulation of four coupled density fields
(photon, axion, neutrino, energy) on a fixed 3D grid:
- **Kernels** under `color_algebra/kernels/` (grid, constitutive relations,
  reaction-diffusion, Hecke braiding)
- **Driver** under `color_algebra/simulation/` (config, time loop, CSV sink)

Keep this module light so importing a kernel does not pull in the driver.
"""

from __future__ import annotations

__all__ = [
    "SimulationConfig",
    "run_simulation",
]


def __getattr__(name: str):  # pragma: no cover
    if name == "SimulationConfig":
        from .simulation.config import SimulationConfig as _SimulationConfig

        return _SimulationConfig
    if name == "run_simulation":
        from .simulation.simulator import run_simulation as _run_simulation

        return _run_simulation
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
