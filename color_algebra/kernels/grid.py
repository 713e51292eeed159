"""Dense 3D field storage with clamped (edge-replicated) stencils.

Every field is a flat 1D tensor of length nx*ny*nz in linear-index order
(x fastest, then y, then z). `FieldState.grid(name)` exposes the same storage
as a (nz, ny, nx) view, so vectorized kernels and the linear index agree
without copies.

Boundary policy: neighbours outside the grid are replaced by the nearest
valid cell on that axis (Neumann-like clamp), never wrapped.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Tuple

import torch

from .physics_units import InitialDensities

FIELD_NAMES: Tuple[str, str, str, str] = (
    "photon_density",
    "axion_density",
    "neutrino_density",
    "energy_density",
)

# (nz, ny, nx) view: x is the last dim.
_DIM_X = 2
_DIM_Y = 1
_DIM_Z = 0


@dataclass(frozen=True)
class GridGeometry:
    nx: int = 20
    ny: int = 20
    nz: int = 20
    spacing: float = 0.5e-15  # 0.5 fm
    dt: float = 1.22e-15
    steps: int = 100

    def __post_init__(self) -> None:
        for name in ("nx", "ny", "nz"):
            if int(getattr(self, name)) < 1:
                raise ValueError(f"{name} must be >= 1, got {getattr(self, name)}")
        if not (self.spacing > 0.0):
            raise ValueError(f"spacing must be > 0, got {self.spacing}")
        if not (self.dt > 0.0):
            raise ValueError(f"dt must be > 0, got {self.dt}")
        if int(self.steps) < 0:
            raise ValueError(f"steps must be >= 0, got {self.steps}")

    @property
    def num_cells(self) -> int:
        return int(self.nx) * int(self.ny) * int(self.nz)

    @property
    def shape(self) -> Tuple[int, int, int]:
        """Shape of the (z, y, x) grid view."""
        return (int(self.nz), int(self.ny), int(self.nx))


def index(geometry: GridGeometry, x: int, y: int, z: int) -> int:
    """Linear offset of (x, y, z); x varies fastest."""
    if not (0 <= x < geometry.nx and 0 <= y < geometry.ny and 0 <= z < geometry.nz):
        raise IndexError(f"coordinate ({x}, {y}, {z}) outside grid {geometry.nx}x{geometry.ny}x{geometry.nz}")
    return x + geometry.nx * (y + geometry.ny * z)


def clamp_coordinate(c: int, size: int) -> int:
    """Clamp a coordinate into [0, size-1] (edge replication)."""
    if c < 0:
        return 0
    if c >= size:
        return size - 1
    return c


def laplacian_at(values: torch.Tensor, geometry: GridGeometry, x: int, y: int, z: int) -> float:
    """6-point Laplacian of a flat field at one cell, clamped boundaries."""
    xm = clamp_coordinate(x - 1, geometry.nx)
    xp = clamp_coordinate(x + 1, geometry.nx)
    ym = clamp_coordinate(y - 1, geometry.ny)
    yp = clamp_coordinate(y + 1, geometry.ny)
    zm = clamp_coordinate(z - 1, geometry.nz)
    zp = clamp_coordinate(z + 1, geometry.nz)

    def at(i: int, j: int, k: int) -> float:
        return float(values[index(geometry, i, j, k)])

    c = at(x, y, z)
    inv_dx2 = 1.0 / (float(geometry.spacing) * float(geometry.spacing))
    # Neighbours summed left to right, then 6c subtracted; must stay in the
    # same order as laplacian_clamped.
    return (
        at(xp, y, z) + at(xm, y, z)
        + at(x, yp, z) + at(x, ym, z)
        + at(x, y, zp) + at(x, y, zm)
        - 6.0 * c
    ) * inv_dx2


def _shift_clamped(f: torch.Tensor, shift: int, dim: int) -> torch.Tensor:
    """Neighbour at offset `shift` along `dim`, replicating the edge cells."""
    n = f.shape[dim]
    idx = torch.clamp(torch.arange(n, device=f.device) + int(shift), 0, n - 1)
    return f.index_select(dim, idx)


def laplacian_clamped(f: torch.Tensor, dx: float) -> torch.Tensor:
    """3D 7-point Laplacian of a (nz, ny, nx) grid with clamped BC."""
    inv_dx2 = 1.0 / (float(dx) * float(dx))
    out = _shift_clamped(f, +1, _DIM_X) + _shift_clamped(f, -1, _DIM_X)
    out = out + _shift_clamped(f, +1, _DIM_Y) + _shift_clamped(f, -1, _DIM_Y)
    out = out + _shift_clamped(f, +1, _DIM_Z) + _shift_clamped(f, -1, _DIM_Z)
    return (out - 6.0 * f) * inv_dx2


class FieldState:
    """The four density fields of the simulation at one instant."""

    __slots__ = ("geometry", "photon_density", "axion_density", "neutrino_density", "energy_density")

    def __init__(
        self,
        geometry: GridGeometry,
        photon_density: torch.Tensor,
        axion_density: torch.Tensor,
        neutrino_density: torch.Tensor,
        energy_density: torch.Tensor,
    ):
        self.geometry = geometry
        self.photon_density = photon_density
        self.axion_density = axion_density
        self.neutrino_density = neutrino_density
        self.energy_density = energy_density
        self.validate()

    @classmethod
    def uniform(
        cls,
        geometry: GridGeometry,
        initial: InitialDensities | None = None,
        *,
        device: torch.device | str = "cpu",
        dtype: torch.dtype = torch.float64,
    ) -> "FieldState":
        initial = initial or InitialDensities()
        n = geometry.num_cells

        def full(value: float) -> torch.Tensor:
            return torch.full((n,), float(value), device=device, dtype=dtype)

        return cls(
            geometry,
            full(initial.photon),
            full(initial.axion),
            full(initial.neutrino),
            full(initial.energy),
        )

    @classmethod
    def empty_like(cls, other: "FieldState") -> "FieldState":
        return cls(other.geometry, *(torch.empty_like(t) for _name, t in other.items()))

    def items(self) -> Iterator[Tuple[str, torch.Tensor]]:
        for name in FIELD_NAMES:
            yield name, getattr(self, name)

    def grid(self, name: str) -> torch.Tensor:
        """(nz, ny, nx) view of a field; writes go to the flat storage."""
        return getattr(self, name).view(self.geometry.shape)

    def validate(self) -> None:
        n = self.geometry.num_cells
        for name, t in self.items():
            if t.ndim != 1 or t.shape[0] != n:
                raise ValueError(f"{name} must have shape ({n},), got {tuple(t.shape)}")

    def copy_(self, other: "FieldState") -> "FieldState":
        for name, t in self.items():
            t.copy_(getattr(other, name))
        return self

    def clone(self) -> "FieldState":
        return FieldState(self.geometry, *(t.clone() for _name, t in self.items()))

    def averages(self) -> Tuple[float, float, float, float]:
        """Spatial mean of each field in FIELD_NAMES order.

        Sum, then divide by the cell count. If the sum overflows (saturated
        cells), each cell is divided first so the mean stays finite.
        """
        vol = float(self.geometry.num_cells)
        means = []
        for _name, t in self.items():
            mean = t.sum() / vol
            if not bool(torch.isfinite(mean)):
                mean = (t / vol).sum()
            means.append(float(mean.item()))
        return tuple(means)  # type: ignore[return-value]

    def is_saturated(self) -> bool:
        """True if any cell sits at the largest finite value of its dtype."""
        return any(bool((t >= torch.finfo(t.dtype).max).any()) for _name, t in self.items())
