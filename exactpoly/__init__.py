"""
exactpoly: exact univariate polynomial algebra with hash-consed factorizations.

  coefficients   capability objects for Q, Z and F_p
  univariate     dense polynomials: division, gcd, square-free and rational-root factorization
  cache          generic hash-consing store with refcounted, generation-checked slots
  factorization  the cached (factorization, polynomial) payload
  factorized     FactorizedPolynomial handles, lazy_div / common_divisor / common_multiple / gcd
"""

from .cache import Cache, CacheRef
from .coefficients import (
    INTEGERS,
    RATIONALS,
    CoefficientDomain,
    IntegerRing,
    PrimeField,
    PrimeFieldElement,
    RationalField,
)
from .config import EngineConfig, configure_logging, load_config
from .errors import (
    CacheError,
    CacheMismatchError,
    DegreeMismatchError,
    InexactDivisionError,
    NotAFieldError,
    PolynomialError,
    PolynomialInputError,
    StaleReferenceError,
    UnsupportedOperationError,
    VariableMismatchError,
    ZeroDivisorError,
)
from .factorization import FactorizationCache, PolynomialFactorizationPair
from .factorized import FactorizedPolynomial, common_divisor, common_multiple, gcd, lazy_div
from .univariate import DivisionResult, ExtendedGCD, UnivariatePolynomial, polynomial
from .variables import Variable

__version__ = "0.1.0"

__all__ = [
    "Cache",
    "CacheRef",
    "CoefficientDomain",
    "RationalField",
    "IntegerRing",
    "PrimeField",
    "PrimeFieldElement",
    "RATIONALS",
    "INTEGERS",
    "EngineConfig",
    "load_config",
    "configure_logging",
    "PolynomialError",
    "PolynomialInputError",
    "ZeroDivisorError",
    "DegreeMismatchError",
    "VariableMismatchError",
    "NotAFieldError",
    "UnsupportedOperationError",
    "InexactDivisionError",
    "CacheError",
    "CacheMismatchError",
    "StaleReferenceError",
    "PolynomialFactorizationPair",
    "FactorizationCache",
    "FactorizedPolynomial",
    "lazy_div",
    "common_divisor",
    "common_multiple",
    "gcd",
    "UnivariatePolynomial",
    "DivisionResult",
    "ExtendedGCD",
    "polynomial",
    "Variable",
]
