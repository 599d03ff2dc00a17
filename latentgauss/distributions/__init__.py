from .distribution import Distribution, RealVectorDistribution
from .gaussian import MvNormal, standard_normal_log_density, standard_normal_density

__all__ = [
    "Distribution",
    "RealVectorDistribution",
    "MvNormal",
    "standard_normal_log_density",
    "standard_normal_density",
]
