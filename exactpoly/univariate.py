"""
================================================================================
Univariate polynomials over an exact coefficient domain
================================================================================

A ``UnivariatePolynomial`` is a dense coefficient list (lowest degree first) in one main
variable.  The leading coefficient is nonzero unless the list is empty, which is the zero
polynomial.  All of the algebra lives here:

  1. arithmetic, Horner evaluation, derivatives
  2. long division / reduction / remainder
  3. Euclidean and extended-Euclidean gcd
  4. content normalization (coprime factor), Cauchy bound
  5. synthetic division, Yun square-free factorization
  6. full factorization: content -> rational (linear) roots -> square-free parts

Redlines:
  - exact arithmetic only; the domain decides which algorithms are legal
  - field-only algorithms over a ring raise NotAFieldError
  - ``normalized`` over a ring has no agreed meaning and raises UnsupportedOperationError
  - the rational-root search is bounded by ``max_int``; hitting the bound returns a
    partially reduced polynomial (logged at DEBUG), it is not an error

Mutation:
  Polynomials behave as values, with two exceptions: ``synthetic_division`` deflates the
  polynomial in place when the root is confirmed, and ``mod_assign`` reduces in place.  Never
  mutate a polynomial that is already used as a dict key or stored in a cache.
================================================================================
"""

from __future__ import annotations

import functools
import logging
import math
from fractions import Fraction
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Sequence

from .coefficients import RATIONALS, CoefficientDomain, positive_divisors
from .config import load_config
from .errors import (
    DegreeMismatchError,
    NotAFieldError,
    PolynomialError,
    PolynomialInputError,
    UnsupportedOperationError,
    VariableMismatchError,
    ZeroDivisorError,
)
from .variables import Variable

_logger = logging.getLogger(__name__)


class DivisionResult(NamedTuple):
    quotient: "UnivariatePolynomial"
    remainder: "UnivariatePolynomial"


class ExtendedGCD(NamedTuple):
    """gcd == s * a + t * b, with gcd monic (or zero when a == b == 0)."""

    gcd: "UnivariatePolynomial"
    s: "UnivariatePolynomial"
    t: "UnivariatePolynomial"


def _require_field(domain: CoefficientDomain, op: str) -> None:
    if not domain.is_field:
        raise NotAFieldError(f"{op} needs a coefficient field, got {domain.name}")


def _add_factor(factors: Dict["UnivariatePolynomial", int], factor: "UnivariatePolynomial", multiplicity: int) -> None:
    factors[factor] = factors.get(factor, 0) + int(multiplicity)


@functools.total_ordering
class UnivariatePolynomial:
    """
    Dense univariate polynomial.

    Equality: same main variable and same coefficients, or both the same constant (constants
    compare equal across variables).  Ordering: by degree, then coefficients from the leading
    one down; polynomials in different variables are ordered by their variables.
    """

    __slots__ = ("_main_var", "_domain", "_coefficients")

    def __init__(
        self,
        main_var: Variable,
        coefficients: Iterable[Any] = (),
        domain: CoefficientDomain = RATIONALS,
    ):
        if not isinstance(main_var, Variable):
            raise PolynomialInputError(f"main_var must be a Variable, got {type(main_var).__name__}")
        if not isinstance(domain, CoefficientDomain):
            raise PolynomialInputError(f"domain must be a CoefficientDomain, got {type(domain).__name__}")
        if isinstance(coefficients, (str, bytes)):
            raise PolynomialInputError("coefficients must be a sequence of numbers, not a string")
        self._main_var = main_var
        self._domain = domain
        self._coefficients: List[Any] = [domain.coerce(c) for c in coefficients]
        self._strip_leading_zeroes()

    # ------------------------------------------------------------------
    # construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def zero(cls, main_var: Variable, domain: CoefficientDomain = RATIONALS) -> "UnivariatePolynomial":
        return cls(main_var, (), domain)

    @classmethod
    def constant(cls, main_var: Variable, value: Any, domain: CoefficientDomain = RATIONALS) -> "UnivariatePolynomial":
        return cls(main_var, (value,), domain)

    @classmethod
    def variable(cls, main_var: Variable, domain: CoefficientDomain = RATIONALS) -> "UnivariatePolynomial":
        return cls(main_var, (0, 1), domain)

    @classmethod
    def monomial(
        cls, main_var: Variable, coefficient: Any, exponent: int, domain: CoefficientDomain = RATIONALS
    ) -> "UnivariatePolynomial":
        if not isinstance(exponent, int) or exponent < 0:
            raise PolynomialInputError(f"exponent must be int >= 0, got {exponent!r}")
        return cls(main_var, [0] * exponent + [coefficient], domain)

    def _new(self, coefficients: List[Any]) -> "UnivariatePolynomial":
        """Same variable and domain, coefficients already in the domain."""
        p = UnivariatePolynomial.__new__(UnivariatePolynomial)
        p._main_var = self._main_var
        p._domain = self._domain
        p._coefficients = coefficients
        p._strip_leading_zeroes()
        return p

    def _strip_leading_zeroes(self) -> None:
        coeffs = self._coefficients
        while coeffs and self._domain.is_zero(coeffs[-1]):
            coeffs.pop()

    def copy(self) -> "UnivariatePolynomial":
        return self._new(list(self._coefficients))

    __copy__ = copy

    def to_domain(self, domain: CoefficientDomain) -> "UnivariatePolynomial":
        return UnivariatePolynomial(self._main_var, self._coefficients, domain)

    # ------------------------------------------------------------------
    # queries
    # ------------------------------------------------------------------

    @property
    def main_var(self) -> Variable:
        return self._main_var

    @property
    def domain(self) -> CoefficientDomain:
        return self._domain

    @property
    def coefficients(self) -> tuple:
        return tuple(self._coefficients)

    @property
    def degree(self) -> int:
        # the zero polynomial reports degree 0; use is_zero() to tell it apart
        return max(len(self._coefficients) - 1, 0)

    @property
    def lcoeff(self) -> Any:
        return self._coefficients[-1] if self._coefficients else self._domain.zero()

    @property
    def tcoeff(self) -> Any:
        """Trailing (constant-term) coefficient."""
        return self._coefficients[0] if self._coefficients else self._domain.zero()

    def is_zero(self) -> bool:
        return not self._coefficients

    def is_constant(self) -> bool:
        return len(self._coefficients) <= 1

    def is_one(self) -> bool:
        return len(self._coefficients) == 1 and self._domain.is_one(self._coefficients[0])

    def is_linear(self) -> bool:
        return len(self._coefficients) == 2

    def is_normal(self) -> bool:
        return self._domain.is_one(self.lcoeff)

    # ------------------------------------------------------------------
    # arithmetic
    # ------------------------------------------------------------------

    def _check_compatible(self, other: "UnivariatePolynomial") -> None:
        if other._domain != self._domain:
            raise PolynomialInputError(f"domain mismatch: {self._domain.name} vs {other._domain.name}")
        if other._main_var != self._main_var and not other.is_constant() and not self.is_constant():
            raise VariableMismatchError(f"main variable mismatch: {self._main_var} vs {other._main_var}")

    def _lift(self, other: Any) -> "UnivariatePolynomial":
        if isinstance(other, UnivariatePolynomial):
            self._check_compatible(other)
            return other
        return self._new([self._domain.coerce(other)])

    def _result_var(self, other: "UnivariatePolynomial") -> Variable:
        return other._main_var if self.is_constant() and not other.is_constant() else self._main_var

    def __add__(self, other: Any) -> "UnivariatePolynomial":
        o = self._lift(other)
        a, b = self._coefficients, o._coefficients
        if len(a) < len(b):
            a, b = b, a
        coeffs = list(a)
        for i, c in enumerate(b):
            coeffs[i] = coeffs[i] + c
        res = self._new(coeffs)
        res._main_var = self._result_var(o)
        return res

    __radd__ = __add__

    def __neg__(self) -> "UnivariatePolynomial":
        return self._new([-c for c in self._coefficients])

    def __sub__(self, other: Any) -> "UnivariatePolynomial":
        return self + (-self._lift(other))

    def __rsub__(self, other: Any) -> "UnivariatePolynomial":
        return (-self) + other

    def __mul__(self, other: Any) -> "UnivariatePolynomial":
        if not isinstance(other, UnivariatePolynomial):
            c = self._domain.coerce(other)
            return self._new([a * c for a in self._coefficients])
        self._check_compatible(other)
        a, b = self._coefficients, other._coefficients
        if not a or not b:
            return self._new([])
        zero = self._domain.zero()
        coeffs = [zero] * (len(a) + len(b) - 1)
        for i, ca in enumerate(a):
            if self._domain.is_zero(ca):
                continue
            for j, cb in enumerate(b):
                coeffs[i + j] = coeffs[i + j] + ca * cb
        res = self._new(coeffs)
        res._main_var = self._result_var(other)
        return res

    __rmul__ = __mul__

    def __truediv__(self, scalar: Any) -> "UnivariatePolynomial":
        """Division by a scalar; exact-only over a ring."""
        if isinstance(scalar, UnivariatePolynomial):
            raise PolynomialInputError("use divide() for polynomial division")
        c = self._domain.coerce(scalar)
        if self._domain.is_zero(c):
            raise ZeroDivisorError("division of a polynomial by zero")
        return self._new([self._domain.divide(a, c) for a in self._coefficients])

    def __pow__(self, n: int) -> "UnivariatePolynomial":
        if not isinstance(n, int) or n < 0:
            raise PolynomialInputError(f"exponent must be int >= 0, got {n!r}")
        result = self._new([self._domain.one()])
        base = self
        while n > 0:
            if n & 1:
                result = result * base
            base = base * base
            n >>= 1
        return result

    # ------------------------------------------------------------------
    # evaluation and derivatives
    # ------------------------------------------------------------------

    def evaluate(self, x: Any) -> Any:
        """Horner evaluation at ``x`` (coerced into the coefficient domain)."""
        x = self._domain.coerce(x)
        acc = self._domain.zero()
        for c in reversed(self._coefficients):
            acc = acc * x + c
        return acc

    def derivative(self, nth: int = 1) -> "UnivariatePolynomial":
        """
        n-th derivative: the coefficient of x^i is scaled by the falling factorial
        i (i-1) ... (i-n+1) and moves to x^(i-n).
        """
        if not isinstance(nth, int) or nth < 0:
            raise PolynomialInputError(f"derivative order must be int >= 0, got {nth!r}")
        if nth == 0:
            return self.copy()
        if nth > self.degree or self.is_zero():
            return self._new([])
        return self._new([self._coefficients[i] * math.perm(i, nth) for i in range(nth, len(self._coefficients))])

    # ------------------------------------------------------------------
    # division
    # ------------------------------------------------------------------

    def divide(self, divisor: "UnivariatePolynomial") -> DivisionResult:
        """Long division: self == divisor * quotient + remainder, deg(remainder) < deg(divisor)."""
        if not isinstance(divisor, UnivariatePolynomial):
            raise PolynomialInputError(f"divisor must be a UnivariatePolynomial, got {type(divisor).__name__}")
        if divisor.is_zero():
            raise ZeroDivisorError("division by the zero polynomial")
        self._check_compatible(divisor)
        n, m = len(self._coefficients), len(divisor._coefficients)
        if n < m:
            return DivisionResult(self._new([]), self.copy())
        dom = self._domain
        rem = list(self._coefficients)
        quot = [dom.zero()] * (n - m + 1)
        lc = divisor.lcoeff
        for k in range(n - m, -1, -1):
            c = dom.divide(rem[k + m - 1], lc)
            quot[k] = c
            if dom.is_zero(c):
                continue
            for j, d in enumerate(divisor._coefficients):
                rem[k + j] = rem[k + j] - c * d
        quotient = self._new(quot)
        quotient._main_var = self._result_var(divisor)
        return DivisionResult(quotient, self._new(rem[: m - 1]))

    def reduce(self, divisor: "UnivariatePolynomial") -> "UnivariatePolynomial":
        """
        Eliminate leading terms with multiples of ``divisor`` until deg < deg(divisor).

        Precondition: deg(self) >= deg(divisor) and divisor != 0.
        """
        if divisor.is_zero():
            raise ZeroDivisorError("reduction by the zero polynomial")
        self._check_compatible(divisor)
        if self.degree < divisor.degree:
            raise DegreeMismatchError(f"reduce needs deg {self.degree} >= deg {divisor.degree}")
        dom = self._domain
        if dom.is_field and divisor.is_constant():
            return self._new([])
        coeffs = list(self._coefficients)
        m = len(divisor._coefficients)
        while len(coeffs) >= m:
            degdiff = len(coeffs) - m
            factor = dom.divide(coeffs[-1], divisor.lcoeff)
            for j in range(m - 1):
                coeffs[degdiff + j] = coeffs[degdiff + j] - factor * divisor._coefficients[j]
            coeffs.pop()
            while coeffs and dom.is_zero(coeffs[-1]):
                coeffs.pop()
        return self._new(coeffs)

    def remainder(self, divisor: "UnivariatePolynomial") -> "UnivariatePolynomial":
        if divisor.is_zero():
            raise ZeroDivisorError("remainder modulo the zero polynomial")
        if self.is_zero() or self.degree < divisor.degree:
            return self.copy()
        return self.reduce(divisor)

    def is_divisible_by(self, divisor: "UnivariatePolynomial") -> bool:
        return self.remainder(divisor).is_zero()

    # ------------------------------------------------------------------
    # gcd
    # ------------------------------------------------------------------

    @staticmethod
    def extended_gcd(a: "UnivariatePolynomial", b: "UnivariatePolynomial") -> ExtendedGCD:
        """
        Extended Euclid.  Every remainder is made monic as soon as it appears and its Bezout
        cofactors are scaled by the same constant, so c == c1*a + c2*b holds exactly at each
        step and the final (gcd, s, t) needs no rescaling.
        """
        _require_field(a._domain, "extended_gcd")
        a._check_compatible(b)
        zero = a._new([])
        if a.is_zero() and b.is_zero():
            return ExtendedGCD(zero, zero.copy(), zero.copy())
        one = a._new([a._domain.one()])

        def _monic(r, r1, r2):
            if r.is_zero():
                return r, r1, r2
            lc = r.lcoeff
            return r / lc, r1 / lc, r2 / lc

        c, c1, c2 = _monic(a, one, zero)
        d, d1, d2 = _monic(b, zero.copy(), one.copy())
        while not d.is_zero():
            quotient, rem = c.divide(d)
            r1 = c1 - quotient * d1
            r2 = c2 - quotient * d2
            c, c1, c2 = d, d1, d2
            d, d1, d2 = _monic(rem, r1, r2)
        return ExtendedGCD(c, c1, c2)

    @staticmethod
    def gcd(a: "UnivariatePolynomial", b: "UnivariatePolynomial") -> "UnivariatePolynomial":
        """Monic gcd; the operand of higher degree is reduced first."""
        _require_field(a._domain, "gcd")
        a._check_compatible(b)
        if a.degree < b.degree:
            a, b = b, a
        return UnivariatePolynomial.gcd_recursive(a.normalized(), b.normalized()).normalized()

    @staticmethod
    def gcd_recursive(a: "UnivariatePolynomial", b: "UnivariatePolynomial") -> "UnivariatePolynomial":
        if b.is_zero():
            return a
        return UnivariatePolynomial.gcd_recursive(b, a.remainder(b))

    # ------------------------------------------------------------------
    # coefficient-level operations
    # ------------------------------------------------------------------

    def mod_assign(self, modulus: Any) -> "UnivariatePolynomial":
        """Reduce every coefficient modulo ``modulus`` in place."""
        m = self._domain.coerce(modulus)
        self._coefficients = [self._domain.mod(c, m) for c in self._coefficients]
        self._strip_leading_zeroes()
        return self

    def mod(self, modulus: Any) -> "UnivariatePolynomial":
        return self.copy().mod_assign(modulus)

    def cauchy_bound(self) -> Any:
        """1 + max |a_i| / |a_n| over the non-leading coefficients; bounds every root."""
        dom = self._domain
        if not (dom.is_field and dom.is_ordered):
            raise UnsupportedOperationError(f"the Cauchy bound needs an ordered field, got {dom.name}")
        if self.is_zero():
            raise UnsupportedOperationError("the zero polynomial has no Cauchy bound")
        max_coeff = dom.zero()
        for c in self._coefficients[:-1]:
            if dom.abs(c) > max_coeff:
                max_coeff = dom.abs(c)
        return dom.one() + dom.divide(max_coeff, dom.abs(self.lcoeff))

    def normalized(self) -> "UnivariatePolynomial":
        """Divide through by the leading coefficient (monic result)."""
        if not self._domain.is_field:
            raise UnsupportedOperationError(
                f"normalized() is undefined over the ring {self._domain.name}"
            )
        if self.is_zero():
            return self.copy()
        return self / self.lcoeff

    def coprime_factor(self) -> Fraction:
        """
        Smallest positive rational f such that f * self has coprime integer coefficients:
        f = lcm(denominators) / gcd(numerators).
        """
        dom = self._domain
        if not dom.has_fractions:
            raise UnsupportedOperationError(f"{dom.name} has no numerator/denominator structure")
        if self.is_zero():
            raise PolynomialInputError("coprime_factor of the zero polynomial")
        num = 0
        den = 1
        for c in self._coefficients:
            num = math.gcd(num, dom.numerator(c))
            d = dom.denominator(c)
            den = den * d // math.gcd(den, d)
        return Fraction(den, num)

    def coprime_coefficients(self) -> "UnivariatePolynomial":
        factor = self.coprime_factor()
        return self._new([self._domain.coerce(c * factor) for c in self._coefficients])

    # ------------------------------------------------------------------
    # roots and factorization
    # ------------------------------------------------------------------

    def synthetic_division(self, root: Any) -> Any:
        """
        Evaluate at ``root`` while building the quotient by (x - root).

        Returns the remainder.  When it is zero the polynomial is replaced IN PLACE by the
        quotient (degree drops by one); otherwise it is left untouched.  Callers strip every
        copy of a root by calling this until it returns nonzero.
        """
        dom = self._domain
        r = dom.coerce(root)
        coeffs = self._coefficients
        if not coeffs:
            return dom.zero()
        if len(coeffs) == 1:
            return coeffs[0]
        quotient = [dom.zero()] * (len(coeffs) - 1)
        acc = coeffs[-1]
        for k in range(len(coeffs) - 2, -1, -1):
            quotient[k] = acc
            acc = coeffs[k] + r * acc
        if dom.is_zero(acc):
            self._coefficients = quotient
        return acc

    def square_free_factorization(self) -> Dict[int, "UnivariatePolynomial"]:
        """
        Yun's algorithm: {multiplicity: square-free factor}.

        Each entry is the product of all irreducible factors of that multiplicity; the
        product of factor**multiplicity equals self up to a constant.  Keyed by multiplicity,
        so the result cannot hold two separate factors of the same multiplicity.

        In characteristic p <= degree the derivative may vanish on non-constant factors and
        the algorithm is invalid; the whole polynomial is then reported with multiplicity 1.
        """
        if self.is_zero():
            raise PolynomialInputError("square-free factorization of the zero polynomial")
        p = self._domain.characteristic
        if p != 0 and p <= self.degree:
            _logger.debug("square-free factorization skipped: characteristic %s <= degree %s", p, self.degree)
            return {1: self.copy()}
        _require_field(self._domain, "square_free_factorization")

        result: Dict[int, UnivariatePolynomial] = {}
        b = self.derivative()
        c = UnivariatePolynomial.extended_gcd(self, b).gcd
        w = self.divide(c).quotient
        y = b.divide(c).quotient
        z = y - w.derivative()
        i = 1
        while not z.is_zero():
            g = UnivariatePolynomial.extended_gcd(w, z).gcd
            if not g.is_constant():
                result[i] = g
            i += 1
            w = w.divide(g).quotient
            y = z.divide(g).quotient
            z = y - w.derivative()
        if not w.is_constant():
            result[i] = w
        return result

    @staticmethod
    def exclude_linear_factors(
        poly: "UnivariatePolynomial",
        factors: Dict["UnivariatePolynomial", int],
        max_int: int,
    ) -> "UnivariatePolynomial":
        """
        Strip x^k and every rational-root factor (b*x - a) from an integer polynomial.

        Found factors are added to ``factors`` (primitive, positive leading coefficient); the
        returned polynomial is what is left, so poly == prod(found) * returned exactly.

        Candidates a/b (b | lcoeff, a | tcoeff) are pruned with the zero-preserving shifts
        x -> 1 and x -> -1: if b*x - a divides p then (b - a) | p(1) and (b + a) | p(-1).
        Survivors are confirmed by synthetic division.  When |lcoeff| or |tcoeff| exceeds
        ``max_int`` the search stops and the partially reduced polynomial is returned.
        """
        dom = poly._domain
        if poly.is_zero():
            raise PolynomialInputError("exclude_linear_factors of the zero polynomial")
        if not dom.has_fractions:
            raise UnsupportedOperationError(f"rational roots are undefined over {dom.name}")
        for c in poly._coefficients:
            if dom.denominator(c) != 1:
                raise PolynomialInputError(f"exclude_linear_factors needs integer coefficients, got {c}")
        if not dom.is_field:
            # candidate roots a/b are not ring elements; search over Q and map back
            lifted: Dict[UnivariatePolynomial, int] = {}
            rest = UnivariatePolynomial.exclude_linear_factors(poly.to_domain(RATIONALS), lifted, max_int)
            for f, m in lifted.items():
                _add_factor(factors, f.to_domain(dom), m)
            return rest.to_domain(dom)

        k = 0
        while dom.is_zero(poly._coefficients[k]):
            k += 1
        if k > 0:
            _add_factor(factors, UnivariatePolynomial.variable(poly._main_var, dom), k)
        result = poly._new(list(poly._coefficients[k:]))

        while not result.is_constant():
            if result.is_linear():
                linear = result.coprime_coefficients()
                if linear.lcoeff < 0:
                    linear = -linear
                _add_factor(factors, linear, 1)
                return result._new([dom.divide(result.lcoeff, linear.lcoeff)])

            lc = abs(dom.numerator(result.lcoeff))
            tc = abs(dom.numerator(result.tcoeff))
            if lc > max_int or tc > max_int:
                _logger.debug(
                    "rational root search stopped: |lcoeff|=%s |tcoeff|=%s exceed max_int=%s (degree %s left)",
                    lc, tc, max_int, result.degree,
                )
                return result

            at_one = dom.numerator(result.evaluate(1))
            at_minus_one = dom.numerator(result.evaluate(-1))
            trailing_divisors = positive_divisors(tc)
            found = False
            for b in positive_divisors(lc):
                for a_abs in trailing_divisors:
                    if math.gcd(a_abs, b) != 1:
                        continue
                    for a in (a_abs, -a_abs):
                        if not _shift_admits(b - a, at_one) or not _shift_admits(b + a, at_minus_one):
                            continue
                        root = Fraction(a, b)
                        multiplicity = 0
                        while not result.is_constant() and dom.is_zero(result.synthetic_division(root)):
                            # deflation by (x - a/b) leaves b * q with q integral
                            result = result._new([dom.divide(c, b) for c in result._coefficients])
                            multiplicity += 1
                        if multiplicity:
                            _logger.debug("rational root %s with multiplicity %s", root, multiplicity)
                            _add_factor(factors, UnivariatePolynomial(poly._main_var, (-a, b), dom), multiplicity)
                            found = True
                            break
                    if found:
                        break
                if found:
                    break
            if not found:
                return result
        return result

    def factorization(self, max_int: Optional[int] = None) -> Dict["UnivariatePolynomial", int]:
        """
        {factor: multiplicity} whose product is exactly self.

        Over Q: content is split off, rational roots are stripped, the rest goes through
        Yun.  Factors are primitive integer polynomials with positive leading coefficient and a
        single constant factor carries the remaining unit.  Non-linear factors are square-free
        but not necessarily irreducible.  Over Z the polynomial is lifted to Q and mapped back.
        """
        if self.is_zero():
            raise PolynomialInputError("factorization of the zero polynomial")
        dom = self._domain
        if not dom.is_field:
            if not dom.has_fractions:
                raise NotAFieldError(f"factorization needs a field or a fraction-capable ring, got {dom.name}")
            lifted = self.to_domain(RATIONALS).factorization(max_int)
            return {f.to_domain(dom): m for f, m in lifted.items()}
        if self.is_constant():
            return {self.copy(): 1}
        if max_int is None:
            max_int = load_config().max_int

        result: Dict[UnivariatePolynomial, int] = {}
        if dom.has_fractions:
            remaining = UnivariatePolynomial.exclude_linear_factors(self.coprime_coefficients(), result, max_int)
            if not remaining.is_constant():
                for multiplicity, factor in sorted(remaining.square_free_factorization().items()):
                    f = factor.coprime_coefficients()
                    if f.lcoeff < 0:
                        f = -f
                    _add_factor(result, f, multiplicity)
        else:
            for multiplicity, factor in sorted(self.square_free_factorization().items()):
                _add_factor(result, factor.normalized(), multiplicity)

        product = self._new([dom.one()])
        for f, m in result.items():
            product = product * f**m
        unit = dom.divide(self.lcoeff, product.lcoeff)
        if not dom.is_one(unit):
            _add_factor(result, self._new([unit]), 1)
        if product * unit != self:
            raise PolynomialError(f"factorization of {self} does not multiply back")
        _logger.debug("factorization of %s: %s", self, {str(f): m for f, m in result.items()})
        return dict(sorted(result.items()))

    # ------------------------------------------------------------------
    # comparison / hashing / rendering
    # ------------------------------------------------------------------

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, UnivariatePolynomial):
            return NotImplemented
        if self.is_constant() and other.is_constant():
            return self.lcoeff == other.lcoeff
        return self._main_var == other._main_var and self._coefficients == other._coefficients

    def __lt__(self, other: "UnivariatePolynomial") -> bool:
        if not isinstance(other, UnivariatePolynomial):
            return NotImplemented
        if self.is_constant() and other.is_constant():
            return self.lcoeff < other.lcoeff
        if self._main_var != other._main_var and not self.is_constant() and not other.is_constant():
            return self._main_var < other._main_var
        if len(self._coefficients) != len(other._coefficients):
            return len(self._coefficients) < len(other._coefficients)
        for a, b in zip(reversed(self._coefficients), reversed(other._coefficients)):
            if a != b:
                return a < b
        return False

    def __hash__(self) -> int:
        if self.is_constant():
            return hash(self.lcoeff)
        return hash((self._main_var, tuple(self._coefficients)))

    def __str__(self) -> str:
        if not self._coefficients:
            return "0"
        dom = self._domain
        name = self._main_var.name
        parts: List[str] = []
        for i in range(len(self._coefficients) - 1, -1, -1):
            c = self._coefficients[i]
            if dom.is_zero(c):
                continue
            neg = dom.is_ordered and c < 0
            mag = -c if neg else c
            if i == 0:
                body = str(mag)
            else:
                mono = name if i == 1 else f"{name}^{i}"
                body = mono if dom.is_one(mag) else f"{mag}*{mono}"
            if not parts:
                parts.append(f"-{body}" if neg else body)
            else:
                parts.append(f"- {body}" if neg else f"+ {body}")
        return " ".join(parts)

    def __repr__(self) -> str:
        return f"UnivariatePolynomial({self}, var={self._main_var.name}, domain={self._domain.name})"


def _shift_admits(shift: int, value_at_shift: int) -> bool:
    """Can a linear factor whose value at the shift point is ``shift`` divide a value ``value_at_shift``?"""
    if shift == 0:
        return value_at_shift == 0
    return value_at_shift % shift == 0


def polynomial(main_var: Variable, coefficients: Sequence[Any], domain: CoefficientDomain = RATIONALS) -> UnivariatePolynomial:
    """Shorthand constructor; coefficients lowest degree first."""
    return UnivariatePolynomial(main_var, coefficients, domain)
