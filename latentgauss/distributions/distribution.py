# distributions/distribution.py
from __future__ import annotations

from typing import Generic, TypeVar
from abc import ABC, abstractmethod

import numpy as np

from ..custom_types import Array, Float, PRNG

__all__ = [
    "Distribution",
    "RealVectorDistribution",
]

T = TypeVar("T", bound=np.number)
FloatT = TypeVar("FloatT", bound=Float)


class Distribution(Generic[T], ABC):
    """
    Abstract base class for any distribution class.

    Sampling always takes the random number generator as an argument; a
    distribution never owns or seeds one.
    """

    def sample(self, rng: PRNG, n_samples: int = 1) -> Array[T]:
        """
        Optional. If a subclass can’t sample, it may leave this unimplemented.

        Sample n_samples items from the distribution using `rng`.
        """
        raise NotImplementedError("This method may be implemented by subclasses (optional)")

    def density(self, data: Array[T]) -> Array[Float]:
        """
        Optional. Compute p(data) under this distribution.
        """
        raise NotImplementedError("This method may be implemented by subclasses (optional)")

    def log_density(self, data: Array[T]) -> Array[Float]:
        """
        Optional. Compute log p(data) under this distribution.
        """
        raise NotImplementedError("This method may be implemented by subclasses (optional)")


class RealVectorDistribution(Distribution[FloatT], ABC):
    """
    Abstract base for real-valued vector distributions with fixed dimension d.
    Event shape is assumed to be (d,). Subclasses should ensure consistency of shapes.
    """

    @property
    @abstractmethod
    def mean(self) -> Array[FloatT]:
        """
        Return the mean vector μ with shape (d,).
        """
        raise NotImplementedError

    @property
    @abstractmethod
    def cov(self) -> Array[FloatT]:
        """
        Return the covariance matrix Σ with shape (d, d).
        """
        raise NotImplementedError

    @property
    def dim(self) -> int:
        """
        Number of coordinates d. Default infers from mean. Subclasses may override.
        """
        return int(self.mean.shape[0])
