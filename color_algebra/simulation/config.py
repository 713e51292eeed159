from dataclasses import dataclass, field
from pathlib import Path

import torch

from ..kernels.grid import GridGeometry
from ..kernels.physics_units import CouplingConstants, InitialDensities, SIConstants
from ..kernels.reaction_diffusion import FieldNumerics


@dataclass
class SimulationConfig:
    """Configuration for the simulation."""

    # Grid and time
    geometry: GridGeometry = field(default_factory=GridGeometry)

    # Model
    couplings: CouplingConstants = field(default_factory=CouplingConstants)
    initial: InitialDensities = field(default_factory=InitialDensities)
    numerics: FieldNumerics = field(default_factory=FieldNumerics)
    si: SIConstants = field(default_factory=SIConstants)

    # Reproducibility (integrity checks)
    seed: int = 0

    # Device
    device: str = "cpu"
    dtype: torch.dtype = field(default_factory=lambda: torch.float64)

    # Output: one CSV row per step. None disables the sink.
    output_path: Path | None = field(default_factory=lambda: Path("results.csv"))

    # Progress line every N steps (0 = never)
    log_every: int = 10

    def __post_init__(self) -> None:
        if self.output_path is not None:
            self.output_path = Path(self.output_path)
        if int(self.log_every) < 0:
            raise ValueError(f"log_every must be >= 0, got {self.log_every}")
        if not self.dtype.is_floating_point:
            raise ValueError(f"dtype must be a floating point type, got {self.dtype}")
