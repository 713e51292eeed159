from dataclasses import dataclass, field
from typing import List, Optional
import time

import numpy as np
import torch

from ..console import console
from ..kernels.braiding import apply_hecke_braid
from ..kernels.grid import FieldState
from ..kernels.reaction_diffusion import enforce_numerics_, reaction_diffusion_step
from .config import SimulationConfig
from .recorder import AverageRecord, CsvRecordWriter


@dataclass
class SimulationResult:
    records: List[AverageRecord] = field(default_factory=list)
    final_state: Optional[FieldState] = None
    wall_time_s: float = 0.0
    # First step index whose state hit the dtype maximum (None if never).
    saturated_at: Optional[int] = None

    def history(self) -> np.ndarray:
        """(steps, 5) array: time and the four field averages per step."""
        if not self.records:
            return np.zeros((0, 5), dtype=np.float64)
        return np.array([r.as_row() for r in self.records], dtype=np.float64)


class Simulation:
    """Fixed-step driver: reaction-diffusion, then braiding, then averages.

    Two FieldState buffers alternate as front (current) and back (next), so
    the grid is allocated once per run.
    """

    def __init__(self, config: SimulationConfig, sink: Optional[CsvRecordWriter] = None):
        self.config = config
        self.geometry = config.geometry
        self.sink = sink
        self.front = FieldState.uniform(
            self.geometry,
            config.initial,
            device=config.device,
            dtype=config.dtype,
        )
        self.back = FieldState.empty_like(self.front)

    @property
    def state(self) -> FieldState:
        return self.front

    def step(self, step_index: int) -> AverageRecord:
        cfg = self.config
        t = step_index * float(self.geometry.dt)

        reaction_diffusion_step(
            self.front,
            self.back,
            t=t,
            geometry=self.geometry,
            couplings=cfg.couplings,
            numerics=cfg.numerics,
        )
        self.front, self.back = self.back, self.front

        apply_hecke_braid(self.front, self.geometry, cfg.couplings)
        enforce_numerics_(self.front, cfg.numerics, t=t)

        return AverageRecord(t, *self.front.averages())

    def run(self) -> SimulationResult:
        result = SimulationResult()
        steps = int(self.geometry.steps)
        log_every = int(self.config.log_every)
        start = time.perf_counter()

        for step in range(steps):
            record = self.step(step)
            result.records.append(record)
            if self.sink is not None:
                self.sink.write(record)
            if result.saturated_at is None and self.front.is_saturated():
                result.saturated_at = step
                console.warn(
                    f"Fields saturated at step {step + 1}",
                    detail="explicit scheme diverged; values are capped at the dtype maximum from here on",
                )
            if log_every and (step % log_every == 0 or step == steps - 1):
                console.info(
                    f"Step {step + 1}/{steps}",
                    detail=(
                        f"t={record.time:.3e}s "
                        f"<ph>={record.avg_photon_density:.4e} "
                        f"<ax>={record.avg_axion_density:.4e} "
                        f"<nu>={record.avg_neutrino_density:.4e} "
                        f"<ε>={record.avg_energy_density:.4e}"
                    ),
                )

        result.final_state = self.front
        result.wall_time_s = time.perf_counter() - start
        return result


def _run(simulation: Simulation) -> SimulationResult:
    # No per-step progress lines: show a spinner instead.
    if simulation.config.log_every:
        return simulation.run()
    with console.spinner(f"Advancing {simulation.geometry.steps} steps..."):
        return simulation.run()


def run_simulation(config: SimulationConfig) -> SimulationResult:
    """Run the configured number of steps, streaming records to the CSV sink."""
    torch.manual_seed(int(config.seed))

    geo = config.geometry
    console.header(
        "COUPLED-FIELD SIMULATION",
        Grid=f"{geo.nx}x{geo.ny}x{geo.nz} (dx={geo.spacing:.3e} m)",
        Steps=f"{geo.steps} (dt={geo.dt:.3e} s)",
        Device=f"{config.device} / {config.dtype}",
        Hecke=f"q={config.couplings.q} T={config.couplings.t_hecke:.6f}",
        Output=str(config.output_path) if config.output_path is not None else "none",
    )

    if config.output_path is None:
        result = _run(Simulation(config))
        console.success("Simulation complete.", detail=f"{len(result.records)} steps in {result.wall_time_s:.2f}s")
        return result

    with CsvRecordWriter(config.output_path) as sink:
        result = _run(Simulation(config, sink=sink))

    console.success(f"Simulation complete. Results saved to {config.output_path}")
    return result
