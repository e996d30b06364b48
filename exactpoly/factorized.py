"""
================================================================================
Factorized polynomials: shared, factorization-aware polynomial handles
================================================================================

A ``FactorizedPolynomial`` is (cache ref, coefficient).  The cache slot holds a
``PolynomialFactorizationPair`` for the canonical polynomial:

  - over Q / Z: primitive integer coefficients, positive leading coefficient
  - over F_p:   monic

and the handle's coefficient carries everything else, so equal polynomials always land in the
same slot.  Zero and constants take no slot (ref is None): their content is the coefficient.

Two gcd notions coexist:

  common_divisor(a, b)  structural: merges the two factor maps.  Fast, never touches
                        polynomial arithmetic, but only the true gcd when both factorizations
                        are already irreducible; otherwise it is *a* common divisor of the
                        two representations.
  gcd(a, b)             exact: runs the polynomial gcd on what the structural step leaves,
                        and refines operands whose cached factorization was trivial.

Handle lifecycle follows the cache: construction / ``copy.copy`` register, ``release()`` or
garbage collection deregister, ``assign`` rebinds.  Handles from different caches never mix
(CacheMismatchError).
================================================================================
"""

from __future__ import annotations

import copy
import logging
import weakref
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .cache import Cache, CacheRef
from .coefficients import RATIONALS, CoefficientDomain
from .errors import (
    CacheMismatchError,
    PolynomialInputError,
    StaleReferenceError,
    ZeroDivisorError,
)
from .factorization import PolynomialFactorizationPair
from .univariate import UnivariatePolynomial
from .variables import Variable

_logger = logging.getLogger(__name__)

Factorization = Dict["FactorizedPolynomial", int]


def _canonical_split(poly: UnivariatePolynomial) -> Tuple[Any, Optional[UnivariatePolynomial]]:
    """poly == coefficient * canonical; canonical is None for constants."""
    dom = poly.domain
    if poly.is_constant():
        return poly.lcoeff, None
    if dom.has_fractions:
        cf = poly.coprime_factor()
        canonical = poly.coprime_coefficients()
        coefficient = dom.coerce(1 / cf)
        if canonical.lcoeff < 0:
            canonical = -canonical
            coefficient = -coefficient
        return coefficient, canonical
    return poly.lcoeff, poly.normalized()


def _check_same_cache(a: "FactorizedPolynomial", b: "FactorizedPolynomial") -> None:
    if a._cache is not b._cache:
        raise CacheMismatchError("factorized polynomials bound to different caches")


class FactorizedPolynomial:
    __slots__ = ("_cache", "_ref", "_coefficient", "_main_var", "_domain", "_finalizer", "_released", "__weakref__")

    def __init__(self, polynomial: UnivariatePolynomial, cache: Cache):
        if not isinstance(polynomial, UnivariatePolynomial):
            raise PolynomialInputError(f"expected UnivariatePolynomial, got {type(polynomial).__name__}")
        if not isinstance(cache, Cache):
            raise PolynomialInputError(f"expected Cache, got {type(cache).__name__}")
        coefficient, canonical = _canonical_split(polynomial)
        self._setup(cache, coefficient, polynomial.main_var, polynomial.domain)
        if canonical is None:
            return
        # phase 1: cache with an empty factorization to obtain a stable ref
        ref, inserted = cache.cache(PolynomialFactorizationPair({}, canonical), PolynomialFactorizationPair.absorb)
        self._attach(ref)
        if inserted:
            # phase 2: the polynomial is its own sole factor; patch the self-entry in
            self_factor = FactorizedPolynomial._weak(cache, ref, polynomial.main_var, polynomial.domain)
            cache.get(ref).bootstrap_self_factor(self_factor)
            cache.rehash(ref)

    # ------------------------------------------------------------------
    # construction internals
    # ------------------------------------------------------------------

    def _setup(self, cache: Cache, coefficient: Any, main_var: Variable, domain: CoefficientDomain) -> None:
        self._cache = cache
        self._ref: Optional[CacheRef] = None
        self._coefficient = coefficient
        self._main_var = main_var
        self._domain = domain
        self._finalizer: Optional[weakref.finalize] = None
        self._released = False

    def _attach(self, ref: CacheRef) -> None:
        """Take over one registration on ``ref``."""
        self._ref = ref
        self._finalizer = weakref.finalize(self, self._cache.dereg, ref)
        self._finalizer.atexit = False

    @classmethod
    def _bare(cls, cache: Cache, coefficient: Any, main_var: Variable, domain: CoefficientDomain) -> "FactorizedPolynomial":
        handle = cls.__new__(cls)
        handle._setup(cache, domain.coerce(coefficient), main_var, domain)
        return handle

    @classmethod
    def _weak(cls, cache: Cache, ref: CacheRef, main_var: Variable, domain: CoefficientDomain) -> "FactorizedPolynomial":
        handle = cls._bare(cache, domain.one(), main_var, domain)
        handle._ref = ref
        return handle

    @classmethod
    def _from_ref(
        cls,
        cache: Cache,
        ref: Optional[CacheRef],
        coefficient: Any,
        main_var: Variable,
        domain: CoefficientDomain,
        *,
        register: bool,
    ) -> "FactorizedPolynomial":
        handle = cls._bare(cache, coefficient, main_var, domain)
        if ref is None or domain.is_zero(handle._coefficient):
            if ref is not None and not register:
                cache.dereg(ref)
            return handle
        if register:
            cache.reg(ref)
        handle._attach(ref)
        return handle

    @classmethod
    def _from_merged(
        cls,
        merged: Factorization,
        coefficient: Any,
        cache: Cache,
        main_var: Variable,
        domain: CoefficientDomain,
    ) -> "FactorizedPolynomial":
        """``merged`` holds owned unit keys; ownership moves into the result."""
        coefficient = domain.coerce(coefficient)
        if domain.is_zero(coefficient) or not merged:
            for key in merged:
                key.release()
            return cls._bare(cache, coefficient, main_var, domain)
        if len(merged) == 1:
            (key, m), = merged.items()
            if m == 1:
                handle = cls._from_ref(cache, key._ref, coefficient, key._main_var, domain, register=True)
                key.release()
                return handle
        main_var = next(iter(merged))._main_var
        ref, _ = cache.cache(PolynomialFactorizationPair(merged), PolynomialFactorizationPair.absorb)
        return cls._from_ref(cache, ref, coefficient, main_var, domain, register=False)

    @classmethod
    def from_factorization(
        cls,
        factorization: Factorization,
        coefficient: Any,
        cache: Cache,
        main_var: Optional[Variable] = None,
        domain: Optional[CoefficientDomain] = None,
    ) -> "FactorizedPolynomial":
        """
        Build coefficient * prod(factor**m).  The caller vouches that the factors form a
        factorization (pairwise coprime, ideally irreducible); this is not checked.  A factor
        whose own coefficient is not one has it folded into ``coefficient``.
        """
        keys = list(factorization)
        if domain is None:
            domain = keys[0]._domain if keys else RATIONALS
        if main_var is None:
            if not keys:
                raise PolynomialInputError("an empty factorization needs main_var")
            main_var = keys[0]._main_var
        coefficient = domain.coerce(coefficient)
        merged: Factorization = {}
        for key, m in factorization.items():
            if not isinstance(key, FactorizedPolynomial):
                raise PolynomialInputError(f"factors must be FactorizedPolynomial, got {type(key).__name__}")
            if not isinstance(m, int) or m < 1:
                raise PolynomialInputError(f"multiplicity of {key} must be int >= 1, got {m!r}")
            if key._cache is not cache:
                raise CacheMismatchError("factor bound to a different cache")
            coefficient = coefficient * key._coefficient**m
            if key._ref is None:
                continue
            unit = key._unit_key()
            merged[unit] = merged.get(unit, 0) + m
        return cls._from_merged(merged, coefficient, cache, main_var, domain)

    def _unit_key(self) -> "FactorizedPolynomial":
        """A registered handle on the same slot with coefficient one."""
        return FactorizedPolynomial._from_ref(
            self._cache, self._ref, self._domain.one(), self._main_var, self._domain, register=True
        )

    def _with_coefficient(self, coefficient: Any) -> "FactorizedPolynomial":
        return FactorizedPolynomial._from_ref(
            self._cache, self._ref, coefficient, self._main_var, self._domain, register=True
        )

    def _constant(self, value: Any) -> "FactorizedPolynomial":
        return FactorizedPolynomial._bare(self._cache, value, self._main_var, self._domain)

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------

    def holds_registration(self) -> bool:
        return self._finalizer is not None and self._finalizer.alive

    def release(self) -> None:
        """Give up this handle's registration; the handle must not be used afterwards."""
        if self._finalizer is not None:
            self._finalizer()
        if self._ref is not None and self._finalizer is not None:
            self._released = True

    def assign(self, other: "FactorizedPolynomial") -> "FactorizedPolynomial":
        """Rebind this handle to ``other``'s slot and coefficient (same cache required)."""
        _check_same_cache(self, other)
        if other._ref is not None:
            self._cache.reg(other._ref)
        old = self._finalizer
        self._ref = None
        self._finalizer = None
        if old is not None:
            old()
        self._coefficient = other._coefficient
        self._main_var = other._main_var
        self._domain = other._domain
        self._released = False
        if other._ref is not None:
            self._attach(other._ref)
        return self

    def __copy__(self) -> "FactorizedPolynomial":
        return self._with_coefficient(self._coefficient)

    def __deepcopy__(self, memo: Dict[int, Any]) -> "FactorizedPolynomial":
        return self.__copy__()

    def strengthen_activity(self) -> None:
        if self._ref is not None:
            self._cache.strengthen_activity(self._ref)

    # ------------------------------------------------------------------
    # queries
    # ------------------------------------------------------------------

    def _pair(self) -> PolynomialFactorizationPair:
        if self._released:
            raise StaleReferenceError("use of a released FactorizedPolynomial")
        return self._cache.get(self._ref)

    @property
    def cache(self) -> Cache:
        return self._cache

    @property
    def ref(self) -> Optional[CacheRef]:
        return self._ref

    @property
    def coefficient(self) -> Any:
        return self._coefficient

    @property
    def main_var(self) -> Variable:
        return self._main_var

    @property
    def domain(self) -> CoefficientDomain:
        return self._domain

    def is_zero(self) -> bool:
        return self._ref is None and self._domain.is_zero(self._coefficient)

    def is_constant(self) -> bool:
        return self._ref is None

    def is_one(self) -> bool:
        return self._ref is None and self._domain.is_one(self._coefficient)

    def degree(self) -> int:
        return 0 if self._ref is None else self._pair().polynomial.degree

    def factorization(self) -> Factorization:
        """{factor: multiplicity} with freshly registered factor handles (coefficient one)."""
        if self._ref is None:
            return {}
        return {f._unit_key(): m for f, m in self._pair().factorization.items()}

    def content(self) -> UnivariatePolynomial:
        """The expanded polynomial: coefficient * prod(factor**multiplicity)."""
        if self._ref is None:
            return UnivariatePolynomial.constant(self._main_var, self._coefficient, self._domain)
        return self._pair().polynomial * self._coefficient

    def evaluate(self, x: Any) -> Any:
        if self._ref is None:
            return self._coefficient
        return self._coefficient * self._pair().polynomial.evaluate(x)

    # ------------------------------------------------------------------
    # comparison
    # ------------------------------------------------------------------

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, FactorizedPolynomial):
            return NotImplemented
        if self._ref is None and other._ref is None:
            return self._coefficient == other._coefficient
        if self._cache is other._cache and self._domain == other._domain:
            # canonical slots: equal content <=> same slot and same coefficient
            return self._ref == other._ref and self._coefficient == other._coefficient
        return self.content() == other.content()

    def __lt__(self, other: "FactorizedPolynomial") -> bool:
        if not isinstance(other, FactorizedPolynomial):
            return NotImplemented
        return self.content() < other.content()

    def __le__(self, other: "FactorizedPolynomial") -> bool:
        return self == other or self < other

    def __gt__(self, other: "FactorizedPolynomial") -> bool:
        if not isinstance(other, FactorizedPolynomial):
            return NotImplemented
        return other < self

    def __ge__(self, other: "FactorizedPolynomial") -> bool:
        return self == other or other < self

    def __hash__(self) -> int:
        return hash(self.content())

    # ------------------------------------------------------------------
    # arithmetic
    # ------------------------------------------------------------------

    def _lift(self, other: Any) -> "FactorizedPolynomial":
        if isinstance(other, FactorizedPolynomial):
            _check_same_cache(self, other)
            return other
        return self._constant(other)

    def __mul__(self, other: Any) -> "FactorizedPolynomial":
        if not isinstance(other, FactorizedPolynomial):
            return self._with_coefficient(self._coefficient * self._domain.coerce(other))
        _check_same_cache(self, other)
        coefficient = self._coefficient * other._coefficient
        if self._domain.is_zero(coefficient):
            return self._constant(coefficient)
        merged: Factorization = {}
        for ka, ma, kb, mb in _ordered_merge(self.factorization(), other.factorization()):
            merged[ka if ka is not None else kb] = ma + mb
        return FactorizedPolynomial._from_merged(merged, coefficient, self._cache, _pick_var(self, other), self._domain)

    __rmul__ = __mul__

    def __neg__(self) -> "FactorizedPolynomial":
        return self._with_coefficient(-self._coefficient)

    def __add__(self, other: Any) -> "FactorizedPolynomial":
        return self._add(self._lift(other), negate=False)

    __radd__ = __add__

    def __sub__(self, other: Any) -> "FactorizedPolynomial":
        return self._add(self._lift(other), negate=True)

    def __rsub__(self, other: Any) -> "FactorizedPolynomial":
        return self._lift(other)._add(self, negate=True)

    def _add(self, other: "FactorizedPolynomial", *, negate: bool) -> "FactorizedPolynomial":
        """a +- b == d * (ra +- rb) with (d, ra, rb) = common_divisor(a, b)."""
        if other.is_zero():
            return copy.copy(self)
        if self.is_zero():
            return -other if negate else copy.copy(other)
        divisor, rest_a, rest_b = common_divisor(self, other)
        pa, pb = rest_a.content(), rest_b.content()
        inner = pa - pb if negate else pa + pb
        return divisor * FactorizedPolynomial(inner, self._cache)

    def __pow__(self, n: int) -> "FactorizedPolynomial":
        if not isinstance(n, int) or n < 0:
            raise PolynomialInputError(f"exponent must be int >= 0, got {n!r}")
        if n == 0:
            return self._constant(self._domain.one())
        merged = {f: m * n for f, m in self.factorization().items()}
        return FactorizedPolynomial._from_merged(
            merged, self._coefficient**n, self._cache, self._main_var, self._domain
        )

    def __truediv__(self, scalar: Any) -> "FactorizedPolynomial":
        if isinstance(scalar, FactorizedPolynomial):
            raise PolynomialInputError("use lazy_div() to divide by a FactorizedPolynomial")
        return self._with_coefficient(self._domain.divide(self._coefficient, self._domain.coerce(scalar)))

    # ------------------------------------------------------------------
    # rendering
    # ------------------------------------------------------------------

    def __str__(self) -> str:
        return str(self.content())

    def __repr__(self) -> str:
        if self._ref is None:
            return f"FactorizedPolynomial({self._coefficient})"
        parts = [] if self._domain.is_one(self._coefficient) else [str(self._coefficient)]
        for f, m in self._pair().factorization.items():
            parts.append(f"({f})" if m == 1 else f"({f})^{m}")
        return f"FactorizedPolynomial({' * '.join(parts)})"


# ===========================================================
# factor-map merges
# ===========================================================

def _pick_var(a: FactorizedPolynomial, b: FactorizedPolynomial) -> Variable:
    return b._main_var if a.is_constant() and not b.is_constant() else a._main_var


def _ordered_merge(
    fa: Factorization, fb: Factorization
) -> Iterator[Tuple[Optional[FactorizedPolynomial], int, Optional[FactorizedPolynomial], int]]:
    """
    Walk two factor maps in factor order, yielding (key_a, mult_a, key_b, mult_b); the side a
    factor is missing from comes back as (None, 0).
    """
    a: List[Tuple[FactorizedPolynomial, int]] = sorted(fa.items())
    b: List[Tuple[FactorizedPolynomial, int]] = sorted(fb.items())
    i = j = 0
    while i < len(a) or j < len(b):
        if j >= len(b):
            yield a[i][0], a[i][1], None, 0
            i += 1
        elif i >= len(a):
            yield None, 0, b[j][0], b[j][1]
            j += 1
        elif a[i][0] == b[j][0]:
            yield a[i][0], a[i][1], b[j][0], b[j][1]
            i += 1
            j += 1
        elif a[i][0] < b[j][0]:
            yield a[i][0], a[i][1], None, 0
            i += 1
        else:
            yield None, 0, b[j][0], b[j][1]
            j += 1


def lazy_div(a: FactorizedPolynomial, b: FactorizedPolynomial) -> FactorizedPolynomial:
    """
    a / b by subtracting multiplicities.

    Precondition: b's factors are a sub-multiset of a's.  Nothing checks it and no remainder
    is computed; factors of b missing from a are ignored.
    """
    _check_same_cache(a, b)
    if b.is_zero():
        raise ZeroDivisorError("lazy_div by zero")
    coefficient = a._domain.divide(a._coefficient, b._coefficient)
    if a.is_zero():
        return a._constant(coefficient)
    merged: Factorization = {}
    for ka, ma, kb, mb in _ordered_merge(a.factorization(), b.factorization()):
        if ka is None:
            _logger.debug("lazy_div: factor %s of the divisor is not a factor of the dividend", kb)
        elif kb is None:
            merged[ka] = ma
        elif ma > mb:
            merged[ka] = ma - mb
    return FactorizedPolynomial._from_merged(merged, coefficient, a._cache, a._main_var, a._domain)


def common_divisor(
    a: FactorizedPolynomial, b: FactorizedPolynomial
) -> Tuple[FactorizedPolynomial, FactorizedPolynomial, FactorizedPolynomial]:
    """
    Structural common divisor: (d, rest_a, rest_b) with a == d * rest_a, b == d * rest_b.

    Shared factors contribute min(mult_a, mult_b); the coefficient part is the coefficient
    gcd.  This is the gcd only if both factorizations are irreducible; use ``gcd`` for the
    exact one.
    """
    _check_same_cache(a, b)
    dom = a._domain
    g = dom.gcd(a._coefficient, b._coefficient)
    if dom.is_zero(g):
        one = a._constant(dom.one())
        return a._constant(dom.zero()), one, copy.copy(one)
    divisor: Factorization = {}
    rest_a: Factorization = {}
    rest_b: Factorization = {}
    for ka, ma, kb, mb in _ordered_merge(a.factorization(), b.factorization()):
        if ka is None:
            rest_b[kb] = mb
        elif kb is None:
            rest_a[ka] = ma
        else:
            m = min(ma, mb)
            divisor[ka] = m
            if ma > m:
                rest_a[copy.copy(ka)] = ma - m
            if mb > m:
                rest_b[kb] = mb - m
    var = _pick_var(a, b)
    return (
        FactorizedPolynomial._from_merged(divisor, g, a._cache, var, dom),
        FactorizedPolynomial._from_merged(rest_a, dom.divide(a._coefficient, g), a._cache, a._main_var, dom),
        FactorizedPolynomial._from_merged(rest_b, dom.divide(b._coefficient, g), a._cache, b._main_var, dom),
    )


def common_multiple(a: FactorizedPolynomial, b: FactorizedPolynomial) -> FactorizedPolynomial:
    """Structural common multiple: max multiplicity per factor, coefficient lcm."""
    _check_same_cache(a, b)
    dom = a._domain
    coefficient = dom.lcm(a._coefficient, b._coefficient)
    if dom.is_zero(coefficient):
        return a._constant(coefficient)
    merged: Factorization = {}
    for ka, ma, kb, mb in _ordered_merge(a.factorization(), b.factorization()):
        merged[ka if ka is not None else kb] = max(ma, mb)
    return FactorizedPolynomial._from_merged(merged, coefficient, a._cache, _pick_var(a, b), dom)


def gcd(
    a: FactorizedPolynomial, b: FactorizedPolynomial
) -> Tuple[FactorizedPolynomial, FactorizedPolynomial, FactorizedPolynomial]:
    """
    Exact gcd: (g, rest_a, rest_b) with a == g * rest_a, b == g * rest_b and g the true
    polynomial gcd (up to a constant).

    The structural common divisor is taken first; the polynomial gcd of the two residues then
    finds what the representations hide.  An operand whose cached factorization was trivial
    is refined into (gcd part) * (rest) and its slot rehashed.
    """
    _check_same_cache(a, b)
    dom = a._domain
    if a.is_zero() and b.is_zero():
        one = a._constant(dom.one())
        return a._constant(dom.zero()), one, copy.copy(one)
    if a.is_zero():
        return copy.copy(b), a._constant(dom.zero()), b._constant(dom.one())
    if b.is_zero():
        return copy.copy(a), a._constant(dom.one()), b._constant(dom.zero())

    divisor, rest_a, rest_b = common_divisor(a, b)
    pa, pb = rest_a.content(), rest_b.content()
    if pa.is_constant() or pb.is_constant():
        return divisor, rest_a, rest_b
    h = _exact_polynomial_gcd(pa, pb)
    if h.is_constant():
        return divisor, rest_a, rest_b

    hf = FactorizedPolynomial(h, a._cache)
    new_rest_a = FactorizedPolynomial(pa.divide(h).quotient, a._cache)
    new_rest_b = FactorizedPolynomial(pb.divide(h).quotient, a._cache)
    _refine_operand(a, hf, new_rest_a)
    _refine_operand(b, hf, new_rest_b)
    return divisor * hf, new_rest_a, new_rest_b


def _exact_polynomial_gcd(pa: UnivariatePolynomial, pb: UnivariatePolynomial) -> UnivariatePolynomial:
    """Monic gcd over a field; over a ring the primitive gcd computed over Q."""
    dom = pa.domain
    if dom.is_field:
        h = UnivariatePolynomial.gcd(pa, pb)
        return h.coprime_coefficients() if dom.has_fractions else h
    h = UnivariatePolynomial.gcd(pa.to_domain(RATIONALS), pb.to_domain(RATIONALS))
    return h.coprime_coefficients().to_domain(dom)


def _refine_operand(x: FactorizedPolynomial, part: FactorizedPolynomial, rest: FactorizedPolynomial) -> None:
    if x.is_constant() or part.is_constant() or rest.is_constant():
        return
    pair = x._pair()
    if not pair.is_trivial():
        return
    finer: Factorization = {}
    for key in (part._unit_key(), rest._unit_key()):
        finer[key] = finer.get(key, 0) + 1
    if pair.refine(finer):
        x._cache.rehash(x._ref)
    else:
        for key in finer:
            key.release()
