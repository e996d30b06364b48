"""
Strict error model for the exact polynomial engine.

Redlines:
  - Every precondition violation raises; nothing degrades silently.
  - The only non-fatal truncation in the engine is the rational-root search bound
    (see ``UnivariatePolynomial.exclude_linear_factors``), which is logged, not raised.
"""

from __future__ import annotations


class PolynomialError(RuntimeError):
    """Base error of the polynomial engine."""


class PolynomialInputError(PolynomialError, TypeError):
    """Input of the wrong type or shape (float contamination included)."""


class ZeroDivisorError(PolynomialError, ZeroDivisionError):
    """Division by a zero polynomial or a zero coefficient."""


class DegreeMismatchError(PolynomialError):
    """An operation was requested on operands whose degrees violate its precondition."""


class VariableMismatchError(PolynomialError):
    """Operands are expressed in different main variables."""


class NotAFieldError(PolynomialError):
    """A field-only algorithm was requested over a coefficient ring."""


class UnsupportedOperationError(PolynomialError, NotImplementedError):
    """The operation has no defined semantics for this coefficient domain."""


class InexactDivisionError(PolynomialError):
    """Exact division requested in a ring where the divisor does not divide."""


class CacheError(PolynomialError):
    """Hash-consing cache contract violation."""


class CacheMismatchError(CacheError):
    """Two handles bound to different cache instances were combined."""


class StaleReferenceError(CacheError):
    """A cache reference points at a slot that was already reclaimed."""


__all__ = [
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
]
