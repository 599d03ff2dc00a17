# quadrature.py
"""
Gauss-Hermite quadrature for one-dimensional integrals against a Gaussian
weight. The rule approximates

    ∫ f(x) exp(-x^2) dx ≈ Σ_i w_i f(x_i)

with the roots x_i of the Hermite polynomial H_n and their weights. It is
exact for polynomials of degree up to 2n - 1 and has no adaptive refinement,
so it suits smooth integrands only.
"""
from __future__ import annotations

import math
from functools import lru_cache
from typing import Callable

import numpy as np
from numpy.polynomial.hermite import hermgauss

from .custom_types import Array

__all__ = [
    "gauss_hermite",
    "gauss_hermite_normal",
    "hermite_nodes_weights",
    "DEFAULT_N_POINTS",
]

DEFAULT_N_POINTS = 32


@lru_cache(maxsize=None)
def hermite_nodes_weights(n_points: int = DEFAULT_N_POINTS) -> tuple[Array, Array]:
    """Nodes and weights of the `n_points` Gauss-Hermite rule (read-only arrays)."""
    if n_points < 1:
        raise ValueError(f"n_points must be positive. Got {n_points}.")
    x, w = hermgauss(n_points)
    x.setflags(write=False)
    w.setflags(write=False)
    return x, w


def gauss_hermite(f: Callable[[float], float], n_points: int = DEFAULT_N_POINTS) -> float:
    """Approximate ∫ f(x) exp(-x^2) dx.

    `f` is called once per node with a float. Any change of variables is
    the caller's job: divide by sqrt(pi) to integrate against the standard
    Gaussian density, or substitute x -> mu + sigma * sqrt(2) * x to integrate
    against N(mu, sigma^2). `gauss_hermite_normal` does both.
    """
    x, w = hermite_nodes_weights(n_points)
    fx = np.array([f(float(xi)) for xi in x], dtype=float)
    return float(np.dot(fx, w))


def gauss_hermite_normal(f: Callable[[float], float], mu: float = 0.0, sigma: float = 1.0,
                         n_points: int = DEFAULT_N_POINTS) -> float:
    """Approximate E[f(X)] for X ~ N(mu, sigma^2)."""
    if sigma <= 0:
        raise ValueError(f"sigma must be positive. Got {sigma}.")
    scale = math.sqrt(2.0) * sigma
    return gauss_hermite(lambda x: f(mu + scale * x), n_points) / math.sqrt(math.pi)
