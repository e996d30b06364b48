"""
Coefficient domains.

A polynomial never inspects the Python type of its coefficients to decide which algorithm
applies; it asks its ``CoefficientDomain`` instead.  The domain is chosen once, at
construction, and answers the capability questions the algorithms need:

  - is_field        exact division by any nonzero element (normalized, gcd, factorization)
  - characteristic  0 or a prime p (square-free factorization guard)
  - is_ordered      abs / comparison make sense (Cauchy bound)
  - has_fractions   numerator/denominator extraction (coprime factor, rational roots)

Redlines:
  - exact arithmetic only: float input is rejected, never rounded
  - inexact division inside a ring raises
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from fractions import Fraction
from typing import Any, List

from .errors import (
    InexactDivisionError,
    PolynomialInputError,
    UnsupportedOperationError,
    ZeroDivisorError,
)


# ===========================================================
# Section 1: integer / rational primitives
# ===========================================================

def rational_gcd(a: Fraction, b: Fraction) -> Fraction:
    """gcd(a, b) = gcd(num a, num b) / lcm(den a, den b); always non-negative."""
    a, b = Fraction(a), Fraction(b)
    num = math.gcd(a.numerator, b.numerator)
    den = a.denominator * b.denominator // math.gcd(a.denominator, b.denominator)
    return Fraction(num, den)


def rational_lcm(a: Fraction, b: Fraction) -> Fraction:
    """lcm(a, b) = lcm(num a, num b) / gcd(den a, den b); always non-negative."""
    a, b = Fraction(a), Fraction(b)
    if a == 0 or b == 0:
        return Fraction(0)
    num = abs(a.numerator * b.numerator) // math.gcd(a.numerator, b.numerator)
    den = math.gcd(a.denominator, b.denominator)
    return Fraction(num, den)


def truncated_mod(n: int, m: int) -> int:
    """
    Remainder whose sign follows the dividend, like C integer division:
    truncated_mod(-7, 3) == -1 whereas Python's -7 % 3 == 2.
    """
    if m == 0:
        raise ZeroDivisorError("modulus must be nonzero")
    r = abs(n) % abs(m)
    return -r if n < 0 else r


def positive_divisors(n: int) -> List[int]:
    """All positive divisors of |n| in increasing order (trial division up to sqrt)."""
    if not isinstance(n, int):
        raise PolynomialInputError(f"positive_divisors expects int, got {type(n).__name__}")
    n = abs(n)
    if n == 0:
        raise ValueError("0 has infinitely many divisors")
    small: List[int] = []
    large: List[int] = []
    d = 1
    while d * d <= n:
        if n % d == 0:
            small.append(d)
            if d * d != n:
                large.append(n // d)
        d += 1
    return small + large[::-1]


# ===========================================================
# Section 2: prime field elements
# ===========================================================

class PrimeFieldElement:
    """
    Element of F_p = Z/pZ, stored as its representative in [0, p-1].

    ``<`` compares representatives; it exists for deterministic sorting only, F_p is not an
    ordered field.
    """

    __slots__ = ("_value", "_p")

    def __init__(self, value: int, p: int):
        if not isinstance(value, int) or not isinstance(p, int):
            raise PolynomialInputError("PrimeFieldElement expects int value and int p")
        self._p = p
        self._value = value % p

    @property
    def value(self) -> int:
        return self._value

    @property
    def characteristic(self) -> int:
        return self._p

    def _lift(self, other: Any) -> "PrimeFieldElement":
        if isinstance(other, PrimeFieldElement):
            if other._p != self._p:
                raise PolynomialInputError(f"characteristic mismatch: {self._p} vs {other._p}")
            return other
        if isinstance(other, int):
            return PrimeFieldElement(other, self._p)
        return NotImplemented

    def __add__(self, other: Any) -> "PrimeFieldElement":
        o = self._lift(other)
        if o is NotImplemented:
            return NotImplemented
        return PrimeFieldElement(self._value + o._value, self._p)

    __radd__ = __add__

    def __sub__(self, other: Any) -> "PrimeFieldElement":
        o = self._lift(other)
        if o is NotImplemented:
            return NotImplemented
        return PrimeFieldElement(self._value - o._value, self._p)

    def __rsub__(self, other: Any) -> "PrimeFieldElement":
        o = self._lift(other)
        if o is NotImplemented:
            return NotImplemented
        return PrimeFieldElement(o._value - self._value, self._p)

    def __mul__(self, other: Any) -> "PrimeFieldElement":
        o = self._lift(other)
        if o is NotImplemented:
            return NotImplemented
        return PrimeFieldElement(self._value * o._value, self._p)

    __rmul__ = __mul__

    def __neg__(self) -> "PrimeFieldElement":
        return PrimeFieldElement(-self._value, self._p)

    def __pow__(self, n: int) -> "PrimeFieldElement":
        if n < 0:
            return self.inverse() ** (-n)
        return PrimeFieldElement(pow(self._value, n, self._p), self._p)

    def inverse(self) -> "PrimeFieldElement":
        """a^(-1) = a^(p-2) (Fermat)."""
        if self._value == 0:
            raise ZeroDivisorError(f"0 has no inverse in F_{self._p}")
        return PrimeFieldElement(pow(self._value, self._p - 2, self._p), self._p)

    def __truediv__(self, other: Any) -> "PrimeFieldElement":
        o = self._lift(other)
        if o is NotImplemented:
            return NotImplemented
        return self * o.inverse()

    def __rtruediv__(self, other: Any) -> "PrimeFieldElement":
        o = self._lift(other)
        if o is NotImplemented:
            return NotImplemented
        return o * self.inverse()

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, PrimeFieldElement):
            return self._p == other._p and self._value == other._value
        if isinstance(other, int):
            return self._value == other % self._p
        return NotImplemented

    def __lt__(self, other: "PrimeFieldElement") -> bool:
        o = self._lift(other)
        if o is NotImplemented:
            return NotImplemented
        return self._value < o._value

    def __hash__(self) -> int:
        return hash((self._value, self._p))

    def __int__(self) -> int:
        return self._value

    def __bool__(self) -> bool:
        return self._value != 0

    def __repr__(self) -> str:
        return f"F{self._p}({self._value})"

    def __str__(self) -> str:
        return str(self._value)


def _is_prime(n: int) -> bool:
    if n < 2:
        return False
    if n % 2 == 0:
        return n == 2
    d = 3
    while d * d <= n:
        if n % d == 0:
            return False
        d += 2
    return True


# ===========================================================
# Section 3: the capability interface
# ===========================================================

class CoefficientDomain(ABC):
    """Capability object selected when a polynomial is built."""

    name: str = "abstract"
    is_field: bool = False
    characteristic: int = 0
    is_ordered: bool = False
    has_fractions: bool = False

    @abstractmethod
    def coerce(self, value: Any) -> Any:
        """Convert ``value`` into this domain or raise PolynomialInputError."""

    @abstractmethod
    def zero(self) -> Any: ...

    @abstractmethod
    def one(self) -> Any: ...

    def is_zero(self, x: Any) -> bool:
        return x == self.zero()

    def is_one(self, x: Any) -> bool:
        return x == self.one()

    @abstractmethod
    def divide(self, a: Any, b: Any) -> Any:
        """Exact quotient a / b."""

    @abstractmethod
    def gcd(self, a: Any, b: Any) -> Any: ...

    @abstractmethod
    def lcm(self, a: Any, b: Any) -> Any: ...

    def mod(self, a: Any, m: Any) -> Any:
        raise UnsupportedOperationError(f"mod is not defined over {self.name}")

    def abs(self, a: Any) -> Any:
        if not self.is_ordered:
            raise UnsupportedOperationError(f"abs is not defined over the unordered domain {self.name}")
        return a if a >= self.zero() else -a

    def numerator(self, a: Any) -> int:
        raise UnsupportedOperationError(f"{self.name} has no numerator/denominator structure")

    def denominator(self, a: Any) -> int:
        raise UnsupportedOperationError(f"{self.name} has no numerator/denominator structure")

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class RationalField(CoefficientDomain):
    """Q, backed by fractions.Fraction."""

    name = "QQ"
    is_field = True
    characteristic = 0
    is_ordered = True
    has_fractions = True

    def coerce(self, value: Any) -> Fraction:
        if isinstance(value, Fraction):
            return value
        if isinstance(value, bool):
            return Fraction(int(value))
        if isinstance(value, int):
            return Fraction(value)
        if isinstance(value, str):
            try:
                return Fraction(value.strip())
            except ValueError as e:
                raise PolynomialInputError(f"cannot read {value!r} as a rational") from e
        if isinstance(value, float):
            raise PolynomialInputError(f"float contamination: {value!r} (use Fraction or str)")
        raise PolynomialInputError(f"cannot coerce {type(value).__name__} into {self.name}")

    def zero(self) -> Fraction:
        return Fraction(0)

    def one(self) -> Fraction:
        return Fraction(1)

    def divide(self, a: Fraction, b: Fraction) -> Fraction:
        if b == 0:
            raise ZeroDivisorError("division by zero coefficient")
        return Fraction(a) / Fraction(b)

    def gcd(self, a: Fraction, b: Fraction) -> Fraction:
        return rational_gcd(a, b)

    def lcm(self, a: Fraction, b: Fraction) -> Fraction:
        return rational_lcm(a, b)

    def mod(self, a: Fraction, m: Fraction) -> Fraction:
        a, m = Fraction(a), Fraction(m)
        if a.denominator != 1 or m.denominator != 1:
            raise UnsupportedOperationError(f"mod needs integral values, got {a} mod {m}")
        return Fraction(truncated_mod(a.numerator, m.numerator))

    def numerator(self, a: Fraction) -> int:
        return Fraction(a).numerator

    def denominator(self, a: Fraction) -> int:
        return Fraction(a).denominator


@dataclass(frozen=True)
class IntegerRing(CoefficientDomain):
    """Z, backed by int.  Not a field: division is exact-only."""

    name = "ZZ"
    is_field = False
    characteristic = 0
    is_ordered = True
    has_fractions = True

    def coerce(self, value: Any) -> int:
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, int):
            return value
        if isinstance(value, Fraction):
            if value.denominator != 1:
                raise PolynomialInputError(f"{value} is not an integer")
            return value.numerator
        if isinstance(value, float):
            raise PolynomialInputError(f"float contamination: {value!r}")
        raise PolynomialInputError(f"cannot coerce {type(value).__name__} into {self.name}")

    def zero(self) -> int:
        return 0

    def one(self) -> int:
        return 1

    def divide(self, a: int, b: int) -> int:
        if b == 0:
            raise ZeroDivisorError("division by zero coefficient")
        q, r = divmod(a, b)
        if r != 0:
            raise InexactDivisionError(f"{b} does not divide {a} in {self.name}")
        return q

    def gcd(self, a: int, b: int) -> int:
        return math.gcd(a, b)

    def lcm(self, a: int, b: int) -> int:
        if a == 0 or b == 0:
            return 0
        return abs(a * b) // math.gcd(a, b)

    def mod(self, a: int, m: int) -> int:
        return truncated_mod(a, m)

    def numerator(self, a: int) -> int:
        return int(a)

    def denominator(self, a: int) -> int:
        return 1


@dataclass(frozen=True)
class PrimeField(CoefficientDomain):
    """F_p for a prime p."""

    p: int

    is_field = True
    is_ordered = False
    has_fractions = False

    def __post_init__(self) -> None:
        if not isinstance(self.p, int) or not _is_prime(self.p):
            raise PolynomialInputError(f"PrimeField needs a prime, got {self.p!r}")

    @property
    def name(self) -> str:  # type: ignore[override]
        return f"GF({self.p})"

    @property
    def characteristic(self) -> int:  # type: ignore[override]
        return self.p

    def coerce(self, value: Any) -> PrimeFieldElement:
        if isinstance(value, PrimeFieldElement):
            if value.characteristic != self.p:
                raise PolynomialInputError(f"element of F_{value.characteristic} used in {self.name}")
            return value
        if isinstance(value, bool):
            return PrimeFieldElement(int(value), self.p)
        if isinstance(value, int):
            return PrimeFieldElement(value, self.p)
        if isinstance(value, Fraction):
            return PrimeFieldElement(value.numerator, self.p) / PrimeFieldElement(value.denominator, self.p)
        raise PolynomialInputError(f"cannot coerce {type(value).__name__} into {self.name}")

    def zero(self) -> PrimeFieldElement:
        return PrimeFieldElement(0, self.p)

    def one(self) -> PrimeFieldElement:
        return PrimeFieldElement(1, self.p)

    def divide(self, a: PrimeFieldElement, b: PrimeFieldElement) -> PrimeFieldElement:
        if self.is_zero(b):
            raise ZeroDivisorError("division by zero coefficient")
        return self.coerce(a) / self.coerce(b)

    def gcd(self, a: PrimeFieldElement, b: PrimeFieldElement) -> PrimeFieldElement:
        # every nonzero element is a unit
        return self.zero() if self.is_zero(a) and self.is_zero(b) else self.one()

    def lcm(self, a: PrimeFieldElement, b: PrimeFieldElement) -> PrimeFieldElement:
        return self.zero() if self.is_zero(a) or self.is_zero(b) else self.one()


RATIONALS = RationalField()
INTEGERS = IntegerRing()


__all__ = [
    "CoefficientDomain",
    "RationalField",
    "IntegerRing",
    "PrimeField",
    "PrimeFieldElement",
    "RATIONALS",
    "INTEGERS",
    "rational_gcd",
    "rational_lcm",
    "truncated_mod",
    "positive_divisors",
]
