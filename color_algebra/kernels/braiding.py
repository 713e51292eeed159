"""Hecke R-matrix braiding between neighbouring sites along x.

For each adjacent pair (i, j) = ((x, y, z), (x+1, y, z)):

    photon[i] <- 0.5 (photon[i] q^-1/2 + axion[j])
    axion[i]  <- 0.5 (axion[i]  q^+1/2 + photon[j])
    photon[j] <- 0.5 (photon[j] q^-1/2 + axion[i])
    axion[j]  <- 0.5 (axion[j]  q^+1/2 + photon[i])

with every right-hand side taken from the values just before the pair is
touched. Pairs run x = 0, 1, ..., nx-2 in order and in place, so the pair
(x, x+1) sees site x as already rewritten by the pair (x-1, x). This makes
the pass sequential along x; all (y, z) lines are independent and are
handled together as one slice per x.
"""

from __future__ import annotations

from .grid import FieldState, GridGeometry
from .physics_units import CouplingConstants


def apply_hecke_braid(state: FieldState, geometry: GridGeometry, couplings: CouplingConstants) -> FieldState:
    """Apply one braiding sweep to photon/axion in place."""
    ph = state.grid("photon_density")
    ax = state.grid("axion_density")

    q = float(couplings.q)
    qm = q ** -0.5
    qp = q ** 0.5

    for x in range(geometry.nx - 1):
        # Snapshot both sites of the pair before any write.
        ph_i = ph[..., x].clone()
        ax_i = ax[..., x].clone()
        ph_j = ph[..., x + 1].clone()
        ax_j = ax[..., x + 1].clone()

        ph[..., x] = 0.5 * (ph_i * qm + ax_j)
        ax[..., x] = 0.5 * (ax_i * qp + ph_j)
        ph[..., x + 1] = 0.5 * (ph_j * qm + ax_i)
        ax[..., x + 1] = 0.5 * (ax_j * qp + ph_i)

    return state
