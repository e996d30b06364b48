"""Tests for univariate polynomial algebra."""

from fractions import Fraction

import numpy as np
import pytest

from exactpoly import (
    INTEGERS,
    RATIONALS,
    DegreeMismatchError,
    NotAFieldError,
    PolynomialInputError,
    PrimeField,
    UnivariatePolynomial,
    UnsupportedOperationError,
    Variable,
    VariableMismatchError,
    ZeroDivisorError,
)


@pytest.fixture
def x():
    return Variable("x")


def poly(var, *coeffs, domain=RATIONALS):
    return UnivariatePolynomial(var, coeffs, domain)


class TestConstruction:
    def test_leading_zeros_are_stripped(self, x):
        p = poly(x, 1, 2, 0, 0)
        assert p.coefficients == (1, 2)
        assert p.degree == 1

    def test_zero_polynomial(self, x):
        z = UnivariatePolynomial.zero(x)
        assert z.is_zero()
        assert z.degree == 0
        assert z.lcoeff == 0

    def test_float_contamination_rejected(self, x):
        with pytest.raises(PolynomialInputError):
            poly(x, 0.5, 1)

    def test_monomial_and_variable(self, x):
        assert UnivariatePolynomial.monomial(x, 3, 2) == poly(x, 0, 0, 3)
        assert UnivariatePolynomial.variable(x) == poly(x, 0, 1)

    def test_queries(self, x):
        p = poly(x, 5, 0, 2)
        assert p.lcoeff == 2 and p.tcoeff == 5
        assert not p.is_normal()
        assert p.normalized().is_normal()
        assert poly(x, 1).is_one()
        assert poly(x, 1, 1).is_linear()

    def test_str(self, x):
        assert str(poly(x, 5, Fraction(-1, 2), 3)) == "3*x^2 - 1/2*x + 5"
        assert str(poly(x, -1, 0, 1)) == "x^2 - 1"
        assert str(UnivariatePolynomial.zero(x)) == "0"


class TestArithmetic:
    def test_add_sub_mul(self, x):
        a = poly(x, 1, 1)
        b = poly(x, -1, 1)
        assert a * b == poly(x, -1, 0, 1)
        assert a + b == poly(x, 0, 2)
        assert a - b == poly(x, 2)
        assert 2 * a == poly(x, 2, 2)
        assert 1 - a == poly(x, 0, -1)

    def test_pow(self, x):
        assert poly(x, 1, 1) ** 3 == poly(x, 1, 3, 3, 1)
        assert poly(x, 1, 1) ** 0 == poly(x, 1)

    def test_variable_mismatch(self, x):
        y = Variable("y")
        with pytest.raises(VariableMismatchError):
            poly(x, 0, 1) + poly(y, 0, 1)

    def test_constants_mix_across_variables(self, x):
        y = Variable("y")
        assert poly(x, 0, 1) + poly(y, 3) == poly(x, 3, 1)
        assert poly(x, 3) == poly(y, 3)

    def test_evaluate_horner(self, x):
        p = poly(x, 2, -3, 1)
        assert p.evaluate(3) == 2
        assert p.evaluate(Fraction(1, 2)) == Fraction(3, 4)

    def test_derivative(self, x):
        p = poly(x, 1, 1, 1, 1)
        assert p.derivative() == poly(x, 1, 2, 3)
        assert p.derivative(2) == poly(x, 2, 6)
        assert p.derivative(4).is_zero()


class TestDivision:
    @pytest.mark.parametrize(
        "dividend, divisor",
        [
            ((5, Fraction(-1, 2), 0, 3), (1, 2)),
            ((1, 0, 0, 0, 1), (1, 1, 1)),
            ((1, 2), (0, 0, 1)),
        ],
    )
    def test_division_identity(self, x, dividend, divisor):
        a, b = poly(x, *dividend), poly(x, *divisor)
        q, r = a.divide(b)
        assert b * q + r == a
        assert r.is_zero() or r.degree < b.degree

    def test_divide_by_zero(self, x):
        with pytest.raises(ZeroDivisorError):
            poly(x, 1, 1).divide(UnivariatePolynomial.zero(x))

    def test_reduce_precondition(self, x):
        with pytest.raises(DegreeMismatchError):
            poly(x, 1, 1).reduce(poly(x, 1, 0, 1))

    def test_reduce_matches_remainder(self, x):
        a = poly(x, 3, 2, 1, 4)
        b = poly(x, 1, 1)
        assert a.reduce(b) == a.divide(b).remainder

    def test_is_divisible_by(self, x):
        assert poly(x, -1, 0, 1).is_divisible_by(poly(x, 1, 1))
        assert not poly(x, 1, 0, 1).is_divisible_by(poly(x, 1, 1))

    def test_exact_division_over_integers(self, x):
        a = poly(x, -2, 0, 2, domain=INTEGERS)
        q, r = a.divide(poly(x, 1, 1, domain=INTEGERS))
        assert q == poly(x, -2, 2, domain=INTEGERS)
        assert r.is_zero()


class TestGcd:
    def test_extended_gcd_identity(self, x):
        a = poly(x, -1, 0, 1)
        b = poly(x, 1, 2, 1)
        g, s, t = UnivariatePolynomial.extended_gcd(a, b)
        assert g == poly(x, 1, 1)
        assert s * a + t * b == g

    def test_extended_gcd_coprime(self, x):
        a = poly(x, 1, 0, 1)
        b = poly(x, Fraction(1, 3), 2)
        g, s, t = UnivariatePolynomial.extended_gcd(a, b)
        assert g.is_one()
        assert s * a + t * b == g

    def test_extended_gcd_of_zeros(self, x):
        z = UnivariatePolynomial.zero(x)
        g, s, t = UnivariatePolynomial.extended_gcd(z, z)
        assert g.is_zero() and s.is_zero() and t.is_zero()

    def test_gcd_is_monic(self, x):
        a = poly(x, -3, 0, 3)
        b = poly(x, 2, 4, 2)
        assert UnivariatePolynomial.gcd(a, b) == poly(x, 1, 1)
        assert UnivariatePolynomial.gcd(b, a) == poly(x, 1, 1)

    def test_gcd_needs_field(self, x):
        with pytest.raises(NotAFieldError):
            UnivariatePolynomial.gcd(poly(x, 1, 1, domain=INTEGERS), poly(x, -1, 1, domain=INTEGERS))


class TestCoefficientOperations:
    def test_mod_is_truncated(self, x):
        p = poly(x, 7, -8, 5)
        assert p.mod(3) == poly(x, 1, -2, 2)
        assert p == poly(x, 7, -8, 5)

    def test_mod_assign_in_place(self, x):
        p = poly(x, 3, 6)
        p.mod_assign(3)
        assert p.is_zero()

    def test_coprime_factor(self, x):
        p = poly(x, Fraction(3, 4), 0, Fraction(1, 2))
        assert p.coprime_factor() == 4
        assert p.coprime_coefficients() == poly(x, 3, 0, 2)
        assert poly(x, 6, 4).coprime_factor() == Fraction(1, 2)

    @pytest.mark.parametrize(
        "coeffs",
        [(Fraction(3, 4), Fraction(-5, 6), Fraction(7, 8)), (12, 18, -30), (Fraction(1, 9), 3)],
    )
    def test_coprime_coefficients_have_unit_content(self, x, coeffs):
        import math

        c = poly(x, *coeffs).coprime_coefficients().coefficients
        assert all(Fraction(v).denominator == 1 for v in c)
        content = 0
        for v in c:
            content = math.gcd(content, int(v))
        assert content == 1

    def test_cauchy_bound(self, x):
        assert poly(x, 2, -3, 1).cauchy_bound() == 4
        assert poly(x, 1, 0, 2).cauchy_bound() == Fraction(3, 2)

    @pytest.mark.parametrize("coeffs", [(-6, 11, -6, 1), (2, 0, 1, 3), (Fraction(1, 3), -7, 0, 0, 2), (100, 1)])
    def test_cauchy_bound_bounds_numeric_roots(self, x, coeffs):
        p = poly(x, *coeffs)
        bound = float(p.cauchy_bound())
        roots = np.roots([float(c) for c in reversed(p.coefficients)])
        assert np.all(np.abs(roots) <= bound + 1e-9)

    def test_cauchy_bound_needs_ordered_field(self, x):
        with pytest.raises(UnsupportedOperationError):
            poly(x, 1, 1, domain=PrimeField(5)).cauchy_bound()
        with pytest.raises(UnsupportedOperationError):
            poly(x, 1, 1, domain=INTEGERS).cauchy_bound()

    def test_normalized_is_unsupported_over_a_ring(self, x):
        with pytest.raises(UnsupportedOperationError):
            poly(x, 1, 2, domain=INTEGERS).normalized()


class TestSyntheticDivision:
    def test_confirmed_root_deflates_in_place(self, x):
        p = poly(x, 2, -3, 1)
        assert p.synthetic_division(1) == 0
        assert p == poly(x, -2, 1)

    def test_non_root_leaves_polynomial_untouched(self, x):
        p = poly(x, 2, -3, 1)
        assert p.synthetic_division(5) == 12
        assert p == poly(x, 2, -3, 1)

    def test_repeated_calls_strip_every_copy(self, x):
        p = poly(x, 1, 1) ** 3 * poly(x, 1, 0, 1)
        count = 0
        while p.synthetic_division(-1) == 0:
            count += 1
        assert count == 3
        assert p == poly(x, 1, 0, 1)
