"""
The cached payload of a factorized polynomial.

A ``PolynomialFactorizationPair`` owns

  - a factorization {FactorizedPolynomial: multiplicity}, kept sorted by factor, and
  - the expanded polynomial it stands for (computed eagerly when not supplied).

The product of factor**multiplicity equals the expanded polynomial; the rational coefficient
lives in the handle, not here.  Cache identity (``__eq__`` / ``__hash__``) is the expanded
polynomial, so the factorization may be refined later without moving the slot.

The factorization is immutable once visible, with two narrow exceptions:

  - bootstrap: a polynomial cached for the first time is its own sole factor.  The pair is
    cached with an empty factorization, and only after a stable ref exists the self-entry is
    patched in (``bootstrap_self_factor``).  The self-entry holds no registration, so the
    slot does not keep itself alive.
  - refinement: a trivial factorization (empty or self-only) may be replaced by a finer one
    (``absorb`` on a duplicate insert, ``refine`` after an exact gcd).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, Optional

from .cache import Cache
from .errors import PolynomialError, PolynomialInputError
from .univariate import UnivariatePolynomial

if TYPE_CHECKING:
    from .factorized import FactorizedPolynomial

_logger = logging.getLogger(__name__)


def _is_finer(factorization: Dict["FactorizedPolynomial", int]) -> bool:
    return len(factorization) > 1 or any(m > 1 for m in factorization.values())


class PolynomialFactorizationPair:
    __slots__ = ("_factorization", "_polynomial")

    def __init__(
        self,
        factorization: Dict["FactorizedPolynomial", int],
        polynomial: Optional[UnivariatePolynomial] = None,
    ):
        for factor, m in factorization.items():
            if not isinstance(m, int) or m < 1:
                raise PolynomialInputError(f"multiplicity of {factor} must be int >= 1, got {m!r}")
        if polynomial is None:
            if not factorization:
                raise PolynomialInputError("an empty factorization needs its polynomial")
            polynomial = _expand(factorization)
        self._factorization: Dict[FactorizedPolynomial, int] = dict(sorted(factorization.items()))
        self._polynomial = polynomial

    @property
    def polynomial(self) -> UnivariatePolynomial:
        return self._polynomial

    @property
    def factorization(self) -> Dict["FactorizedPolynomial", int]:
        """The stored entries (shared handles); copy a key before keeping it."""
        return dict(self._factorization)

    def is_trivial(self) -> bool:
        """Empty, or the polynomial is its own (unregistered) sole factor."""
        if not self._factorization:
            return True
        if len(self._factorization) != 1:
            return False
        (factor, m), = self._factorization.items()
        return m == 1 and not factor.holds_registration()

    def bootstrap_self_factor(self, self_factor: "FactorizedPolynomial") -> None:
        if self._factorization:
            raise PolynomialError("bootstrap of a pair that already has a factorization")
        self._factorization = {self_factor: 1}

    def refine(self, factorization: Dict["FactorizedPolynomial", int]) -> bool:
        """
        Replace a trivial factorization by ``factorization`` (ownership moves in).

        Returns False and leaves everything untouched when the current factorization is
        already non-trivial or the new one is not finer.  A finer factorization that does not
        multiply back to the polynomial is a contract violation.
        """
        if not self.is_trivial() or not _is_finer(factorization):
            return False
        if _expand(factorization) != self._polynomial:
            raise PolynomialError(f"refinement does not multiply back to {self._polynomial}")
        self._factorization = dict(sorted(factorization.items()))
        _logger.debug("refined %s into %s", self._polynomial, self)
        return True

    @staticmethod
    def absorb(existing: "PolynomialFactorizationPair", new: "PolynomialFactorizationPair") -> None:
        """Cache update hook: a duplicate insert may carry a finer factorization."""
        if existing is new:
            return
        if existing.refine(new._factorization):
            new._factorization = {}

    def release(self) -> None:
        """Drop the registrations held by the factors (reclaim / discard hook)."""
        factors = list(self._factorization)
        self._factorization = {}
        for factor in factors:
            factor.release()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PolynomialFactorizationPair):
            return NotImplemented
        return self._polynomial.domain == other._polynomial.domain and self._polynomial == other._polynomial

    def __hash__(self) -> int:
        return hash(self._polynomial)

    def __str__(self) -> str:
        if not self._factorization:
            return f"[{self._polynomial}]"
        return " * ".join(
            f"({f})" if m == 1 else f"({f})^{m}" for f, m in self._factorization.items()
        )

    def __repr__(self) -> str:
        return f"PolynomialFactorizationPair({self}, polynomial={self._polynomial})"


def _expand(factorization: Dict["FactorizedPolynomial", int]) -> UnivariatePolynomial:
    product: Optional[UnivariatePolynomial] = None
    for factor, m in factorization.items():
        term = factor.content() ** m
        product = term if product is None else product * term
    if product is None:
        raise PolynomialInputError("cannot expand an empty factorization")
    return product


class FactorizationCache(Cache[PolynomialFactorizationPair]):
    """Cache of factorization pairs; reclaimed or discarded pairs release their factors."""

    def __init__(self, max_size: Optional[int] = None, **kwargs):
        kwargs.setdefault("on_reclaim", PolynomialFactorizationPair.release)
        super().__init__(max_size, **kwargs)
