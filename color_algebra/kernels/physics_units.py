"""Physical constants and model couplings (auditable, non-tuneable)

This module defines:
- CODATA physical constants in SI units (declared for provenance; the update
  rules do not read them).
- The coupling coefficients of the photon/axion/neutrino/energy model.
- The uniform initial densities the grid is seeded with.

All three are frozen dataclasses built once at startup and passed explicitly
into every kernel. They are not hyperparameters.
"""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class SIConstants:
    """CODATA / defined SI constants (numerical values in SI units)."""

    # [CHOICE] speed of light (SI)
    # [FORMULA] c = 299792458 m s^-1 (exact)
    c: float = 2.99792458e8

    # [CHOICE] reduced Planck constant (SI)
    # [FORMULA] ħ = h / (2π) ≈ 1.054571817e-34 J s
    hbar: float = 1.054571817e-34

    # [CHOICE] Newtonian gravitational constant (SI)
    # [FORMULA] G_SI ≈ 6.67430e-11 m^3 kg^-1 s^-2
    G: float = 6.67430e-11

    # [CHOICE] Boltzmann constant (SI)
    # [FORMULA] k_B = 1.380649e-23 J K^-1 (exact)
    k_B: float = 1.380649e-23


@dataclass(frozen=True)
class CouplingConstants:
    """Model couplings for the four-field reaction-diffusion system."""

    # [CHOICE] conversion couplings (per second)
    # [FORMULA] rate = g * n / (1 + n_photon / saturation_scale)
    # [REASON] small couplings keep the explicit scheme away from runaway growth
    g_a_gamma: float = 1e-12
    photon_to_neutrino_coeff: float = 1e-12
    saturation_scale: float = 1e33

    # [CHOICE] Hecke deformation
    # [FORMULA] T = q + 1/q
    # [NOTES] q close to 1 means minimal deformation in the braiding pass.
    q: float = 1.001
    braid_lambda: float = 0.01

    # [CHOICE] equation-of-state blend
    # [FORMULA] w = 0.5 (1 + tanh((ε - ε_crit) / Δ)); p = w p_fast + (1 - w) p_soft
    epsilon_crit: float = 1.6e35
    delta: float = 0.2e35
    p_fast_coeff: float = 1.0 / 3.0
    p_soft_coeff: float = 0.15

    # [CHOICE] diffusion coefficients (one per field)
    d_photon: float = 1e-4
    d_axion: float = 1e-4
    d_neutrino: float = 1e-4
    d_energy: float = 1e-4

    # [CHOICE] energy sinks
    # [FORMULA] dε = -(λ_ν n_ν + α_exp p) dt
    lambda_nu: float = 1e-6
    alpha_expansion: float = 1e-6

    # [CHOICE] gravitational-wave metric perturbation
    # [FORMULA] mf = 1 + h sin(2π f t) x
    gw_strength: float = 1e-21
    gw_frequency: float = 1e3

    def __post_init__(self) -> None:
        if not (self.saturation_scale > 0.0):
            raise ValueError(f"saturation_scale must be > 0, got {self.saturation_scale}")
        if not (self.q > 0.0):
            raise ValueError(f"q must be > 0, got {self.q}")
        if not (self.delta > 0.0):
            raise ValueError(f"delta must be > 0, got {self.delta}")
        for name in ("d_photon", "d_axion", "d_neutrino", "d_energy"):
            value = float(getattr(self, name))
            if not math.isfinite(value) or value < 0.0:
                raise ValueError(f"{name} must be finite and >= 0, got {value}")

    @property
    def t_hecke(self) -> float:
        """Hecke algebra parameter T = q + 1/q."""
        return self.q + 1.0 / self.q


@dataclass(frozen=True)
class InitialDensities:
    """Uniform per-field values the grid starts from."""

    photon: float = 1e30
    axion: float = 1e26
    neutrino: float = 1e20
    energy: float = 3.2e35

    def __post_init__(self) -> None:
        for name in ("photon", "axion", "neutrino", "energy"):
            if float(getattr(self, name)) < 0.0:
                raise ValueError(f"initial {name} density must be >= 0")
