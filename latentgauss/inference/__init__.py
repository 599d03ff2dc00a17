from .laplace import LaplaceResult, laplace_approximation, laplace_posterior

__all__ = [
    "LaplaceResult",
    "laplace_approximation",
    "laplace_posterior",
]
