"""Simulation driver APIs.

- `SimulationConfig`: every parameter of a run, built once
- `Simulation` / `run_simulation`: the fixed-step time loop
- `CsvRecordWriter`: the per-step averages sink
"""

from __future__ import annotations

__all__ = [
    "SimulationConfig",
    "Simulation",
    "SimulationResult",
    "run_simulation",
    "AverageRecord",
    "CsvRecordWriter",
]


def __getattr__(name: str):  # pragma: no cover
    if name == "SimulationConfig":
        from .config import SimulationConfig as _SimulationConfig

        return _SimulationConfig
    if name in ("Simulation", "SimulationResult", "run_simulation"):
        from . import simulator as _simulator

        return getattr(_simulator, name)
    if name in ("AverageRecord", "CsvRecordWriter"):
        from . import recorder as _recorder

        return getattr(_recorder, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
