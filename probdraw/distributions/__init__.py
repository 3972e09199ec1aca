from .distribution import Distribution, Univariate, Multivariate
from .continuous import (
    Uniform,
    Exponential,
    Normal,
    TruncatedNormal,
    LogNormal,
    StudentT,
    Gamma,
    InverseGamma,
    ChiSquare,
    InverseChiSquare,
    Beta,
)
from .discrete import Discrete, Bernoulli, Binomial, Geometric, Poisson
from .multivariate import MultivariateNormal, MultivariateT, Wishart, InverseWishart
from .cache import get_or_compute, is_computed, derived
