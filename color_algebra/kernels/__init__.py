"""Numerical kernels for the coupled photon/axion/neutrino/energy fields.

- `physics_units`: immutable constants and couplings
- `grid`: dense field storage, linear indexing, clamped Laplacian
- `constitutive`: equation of state, metric factor, conversion rates
- `reaction_diffusion`: the per-step explicit update
- `braiding`: the Hecke braiding pass along x
"""
from __future__ import annotations

__all__: list[str] = []
