"""Constitutive relations of the coupled-field model.

Pure, elementwise functions. Python floats are accepted and promoted to
float64 tensors, so the same code serves the point checks in tests and the
whole-grid kernel.
"""

from __future__ import annotations

import math
from typing import Union

import torch

from .physics_units import CouplingConstants

TensorLike = Union[torch.Tensor, float]


def _as_tensor(v: TensorLike) -> torch.Tensor:
    if isinstance(v, torch.Tensor):
        return v
    return torch.as_tensor(float(v), dtype=torch.float64)


def pressure(eps: TensorLike, couplings: CouplingConstants) -> torch.Tensor:
    """Equation-of-state blend between a stiff (ε/3) and a soft (0.15 ε) regime."""
    eps = _as_tensor(eps)
    w = 0.5 * (1.0 + torch.tanh((eps - float(couplings.epsilon_crit)) / float(couplings.delta)))
    p_fast = float(couplings.p_fast_coeff) * eps
    p_soft = float(couplings.p_soft_coeff) * eps
    return w * p_fast + (1.0 - w) * p_soft


def metric_factor(t: float, x: TensorLike, couplings: CouplingConstants) -> torch.Tensor:
    """Gravitational-wave rescaling 1 + h sin(2π f t) x."""
    x = _as_tensor(x)
    phase = math.sin(2.0 * math.pi * float(couplings.gw_frequency) * float(t))
    return 1.0 + float(couplings.gw_strength) * phase * x


def _saturation(n_photon: torch.Tensor, couplings: CouplingConstants) -> torch.Tensor:
    # >= 1 whenever n_photon >= 0
    return 1.0 + n_photon / float(couplings.saturation_scale)


def axion_to_photon_rate(n_axion: TensorLike, n_photon: TensorLike, couplings: CouplingConstants) -> torch.Tensor:
    n_axion = _as_tensor(n_axion)
    n_photon = _as_tensor(n_photon)
    return float(couplings.g_a_gamma) * n_axion / _saturation(n_photon, couplings)


def photon_to_neutrino_rate(n_photon: TensorLike, couplings: CouplingConstants) -> torch.Tensor:
    n_photon = _as_tensor(n_photon)
    return float(couplings.photon_to_neutrino_coeff) * n_photon / _saturation(n_photon, couplings)
