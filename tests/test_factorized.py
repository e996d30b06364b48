"""Tests for factorized polynomials and the structural/exact gcd operations."""

import copy
import gc
from fractions import Fraction

import pytest

from exactpoly import (
    INTEGERS,
    RATIONALS,
    CacheMismatchError,
    FactorizationCache,
    FactorizedPolynomial,
    PolynomialFactorizationPair,
    PrimeField,
    StaleReferenceError,
    UnivariatePolynomial,
    Variable,
    ZeroDivisorError,
    common_divisor,
    common_multiple,
    gcd,
    lazy_div,
)


@pytest.fixture
def x():
    return Variable("x")


@pytest.fixture
def cache():
    return FactorizationCache(max_size=64)


def poly(var, *coeffs, domain=RATIONALS):
    return UnivariatePolynomial(var, coeffs, domain)


def fp(cache, var, *coeffs, domain=RATIONALS):
    return FactorizedPolynomial(poly(var, *coeffs, domain=domain), cache)


class TestConstruction:
    def test_same_polynomial_shares_a_slot(self, cache, x):
        a = fp(cache, x, 0, 2)
        b = fp(cache, x, 0, 2)
        assert a.ref == b.ref
        assert a == b
        assert cache.usage_count(a.ref) == 2
        assert len(cache) == 1

    def test_scalar_multiples_share_a_slot(self, cache, x):
        a = fp(cache, x, 0, 2)
        b = fp(cache, x, 0, Fraction(-1, 3))
        assert a.ref == b.ref
        assert a.coefficient == 2 and b.coefficient == Fraction(-1, 3)
        assert a != b

    def test_cached_polynomial_is_primitive_with_positive_lead(self, cache, x):
        a = fp(cache, x, Fraction(3, 2), 0, Fraction(-9, 4))
        pair = cache.get(a.ref)
        assert pair.polynomial == poly(x, -2, 0, 3)
        assert a.coefficient == Fraction(-3, 4)
        assert a.content() == poly(x, Fraction(3, 2), 0, Fraction(-9, 4))

    def test_self_factor_bootstrap(self, cache, x):
        a = fp(cache, x, -1, 0, 1)
        factors = a.factorization()
        assert len(factors) == 1
        (factor, m), = factors.items()
        assert m == 1 and factor.ref == a.ref
        assert cache.get(a.ref).is_trivial()

    def test_self_factor_holds_no_registration(self, cache, x):
        a = fp(cache, x, -1, 0, 1)
        ref = a.ref
        assert cache.usage_count(ref) == 1
        a.release()
        assert cache.usage_count(ref) == 0

    def test_constants_take_no_slot(self, cache, x):
        c = fp(cache, x, 5)
        z = FactorizedPolynomial(UnivariatePolynomial.zero(x), cache)
        assert c.ref is None and z.ref is None
        assert c.is_constant() and z.is_zero()
        assert c.content() == poly(x, 5)
        assert len(cache) == 0

    def test_prime_field_slot_is_monic(self, cache, x):
        f5 = PrimeField(5)
        a = fp(cache, x, 1, 3, domain=f5)
        assert cache.get(a.ref).polynomial == poly(x, 2, 1, domain=f5)
        assert a.coefficient == 3

    def test_integer_domain(self, cache, x):
        a = fp(cache, x, 4, 6, domain=INTEGERS)
        assert cache.get(a.ref).polynomial == poly(x, 2, 3, domain=INTEGERS)
        assert a.coefficient == 2

    def test_from_factorization(self, cache, x):
        f = fp(cache, x, -1, 1)
        g = fp(cache, x, 1, 1)
        h = FactorizedPolynomial.from_factorization({f: 2, g: 1}, 3, cache)
        assert h.content() == poly(x, -1, 1) ** 2 * poly(x, 1, 1) * 3
        assert h.factorization() == {f: 2, g: 1}

    def test_from_factorization_folds_factor_coefficients(self, cache, x):
        f = fp(cache, x, -2, 2)
        h = FactorizedPolynomial.from_factorization({f: 2}, 1, cache)
        assert h.coefficient == 4
        assert h.content() == poly(x, -2, 2) ** 2

    def test_from_single_factor_reuses_its_slot(self, cache, x):
        f = fp(cache, x, -1, 1)
        h = FactorizedPolynomial.from_factorization({f: 1}, 7, cache)
        assert h.ref == f.ref
        assert h.coefficient == 7

    def test_from_empty_factorization_is_constant(self, cache, x):
        h = FactorizedPolynomial.from_factorization({}, 7, cache, main_var=x)
        assert h.is_constant() and h.coefficient == 7

    def test_finer_factorization_is_absorbed(self, cache, x):
        a = fp(cache, x, -1, 0, 1)
        assert cache.get(a.ref).is_trivial()
        f = fp(cache, x, -1, 1)
        g = fp(cache, x, 1, 1)
        h = FactorizedPolynomial.from_factorization({f: 1, g: 1}, 1, cache)
        assert h.ref == a.ref
        assert not cache.get(a.ref).is_trivial()
        assert a.factorization() == {f: 1, g: 1}


class TestLifecycle:
    def test_copy_registers(self, cache, x):
        a = fp(cache, x, 1, 1)
        b = copy.copy(a)
        assert cache.usage_count(a.ref) == 2
        assert b == a

    def test_garbage_collection_deregisters(self, cache, x):
        a = fp(cache, x, 1, 1)
        ref = a.ref
        b = copy.copy(a)
        del b
        gc.collect()
        assert cache.usage_count(ref) == 1

    def test_release_is_idempotent(self, cache, x):
        a = fp(cache, x, 1, 1)
        ref = a.ref
        a.release()
        a.release()
        assert cache.usage_count(ref) == 0

    def test_released_handle_is_stale(self, cache, x):
        a = fp(cache, x, 1, 1)
        a.release()
        with pytest.raises(StaleReferenceError):
            a.content()

    def test_assign_rebinds(self, cache, x):
        a = fp(cache, x, 1, 1)
        b = fp(cache, x, -1, 1)
        a.assign(b)
        assert a == b
        assert cache.usage_count(b.ref) == 2
        assert cache.usage_count(cache.lookup(PolynomialFactorizationPair({}, poly(x, 1, 1)))) == 0

    def test_assign_across_caches_raises(self, cache, x):
        a = fp(cache, x, 1, 1)
        b = fp(FactorizationCache(max_size=8), x, 1, 1)
        with pytest.raises(CacheMismatchError):
            a.assign(b)

    def test_mixing_caches_raises(self, cache, x):
        a = fp(cache, x, 1, 1)
        b = fp(FactorizationCache(max_size=8), x, 1, 1)
        with pytest.raises(CacheMismatchError):
            common_divisor(a, b)
        with pytest.raises(CacheMismatchError):
            a * b

    def test_reclaimed_pair_releases_its_factors(self, x):
        cache = FactorizationCache(max_size=64)
        f = fp(cache, x, -1, 1)
        g = fp(cache, x, 1, 1)
        h = FactorizedPolynomial.from_factorization({f: 1, g: 1}, 1, cache)
        f_ref = f.ref
        assert cache.usage_count(f_ref) == 2
        h.release()
        cache.clean(force=True)
        assert cache.usage_count(f_ref) == 1


class TestQueries:
    def test_degree_and_evaluate(self, cache, x):
        a = fp(cache, x, 2, -3, 1)
        assert a.degree() == 2
        assert a.evaluate(3) == 2
        assert fp(cache, x, 4).evaluate(10) == 4

    def test_is_one(self, cache, x):
        assert fp(cache, x, 1).is_one()
        assert not fp(cache, x, 0, 1).is_one()

    def test_ordering_follows_content(self, cache, x):
        a = fp(cache, x, 1, 1)
        b = fp(cache, x, 1, 0, 1)
        assert a < b
        assert sorted([b, a]) == [a, b]

    def test_mixed_domains_in_one_cache_compare_by_content(self, cache, x):
        """x + 1 over Q and over Z live in separate slots but are equal polynomials."""
        q = fp(cache, x, 1, 1)
        z = fp(cache, x, 1, 1, domain=INTEGERS)
        z_elsewhere = fp(FactorizationCache(max_size=8), x, 1, 1, domain=INTEGERS)
        assert q.ref != z.ref
        assert q == z and z == q
        assert q == z_elsewhere
        assert hash(q) == hash(z)
        assert not q < z and not z < q
        assert q <= z and q >= z

    def test_mixed_domains_keep_different_content_apart(self, cache, x):
        q = fp(cache, x, 1, 1)
        z = fp(cache, x, 2, 1, domain=INTEGERS)
        assert q != z
        assert q < z

    def test_hash_follows_content(self, cache, x):
        other = FactorizationCache(max_size=8)
        a = fp(cache, x, 1, 1)
        b = fp(other, x, 1, 1)
        assert a == b
        assert hash(a) == hash(b)

    def test_rendering(self, cache, x):
        a = fp(cache, x, -2, 2)
        assert str(a) == "2*x - 2"
        assert "FactorizedPolynomial" in repr(a)


class TestArithmetic:
    def test_multiplication_merges_factors(self, cache, x):
        a = fp(cache, x, -1, 1)
        b = fp(cache, x, 1, 1)
        p = a * b * a
        assert p.factorization() == {a: 2, b: 1}
        assert p.content() == poly(x, -1, 1) ** 2 * poly(x, 1, 1)

    def test_scalar_multiplication(self, cache, x):
        a = fp(cache, x, -1, 1)
        assert (a * 3).content() == poly(x, -3, 3)
        assert (3 * a).ref == a.ref
        assert (a * 0).is_zero()

    def test_addition_keeps_common_factors(self, cache, x):
        f = fp(cache, x, -1, 1)
        a = f * fp(cache, x, 1, 1)
        b = f * fp(cache, x, 2, 1)
        s = a + b
        assert s.content() == a.content() + b.content()
        assert f in s.factorization()

    def test_subtraction(self, cache, x):
        a = fp(cache, x, -1, 0, 1)
        b = fp(cache, x, 1, 2, 1)
        assert (a - b).content() == a.content() - b.content()
        assert (a - a).is_zero()
        assert (1 - a).content() == 1 - a.content()

    def test_addition_with_zero_and_scalars(self, cache, x):
        a = fp(cache, x, -1, 1)
        zero = FactorizedPolynomial(UnivariatePolynomial.zero(x), cache)
        assert a + zero == a
        assert (a + 1).content() == poly(x, 0, 1)

    def test_negation_and_power(self, cache, x):
        a = fp(cache, x, -1, 1)
        assert (-a).content() == poly(x, 1, -1)
        assert (a**3).factorization() == {a: 3}
        assert (a**0).is_one()

    def test_scalar_division(self, cache, x):
        a = fp(cache, x, -2, 2)
        assert (a / 2).content() == poly(x, -1, 1)


class TestLazyDiv:
    def test_subtracts_multiplicities(self, cache, x):
        f = fp(cache, x, -1, 1)
        g = fp(cache, x, 1, 1)
        a = FactorizedPolynomial.from_factorization({f: 2, g: 1}, 6, cache)
        b = FactorizedPolynomial.from_factorization({f: 1}, 2, cache)
        q = lazy_div(a, b)
        assert q.coefficient == 3
        assert q.content() == poly(x, -1, 1) * poly(x, 1, 1) * 3

    def test_full_division_leaves_a_constant(self, cache, x):
        f = fp(cache, x, -1, 1)
        assert lazy_div(f * 4, f).content() == poly(x, 4)

    def test_zero_divisor(self, cache, x):
        f = fp(cache, x, -1, 1)
        zero = FactorizedPolynomial(UnivariatePolynomial.zero(x), cache)
        with pytest.raises(ZeroDivisorError):
            lazy_div(f, zero)


class TestCommonDivisorAndMultiple:
    def test_divisor_reconstructs_both_operands(self, cache, x):
        f = fp(cache, x, -1, 1)
        g = fp(cache, x, 1, 1)
        h = fp(cache, x, 2, 0, 1)
        a = FactorizedPolynomial.from_factorization({f: 2, g: 1}, 6, cache)
        b = FactorizedPolynomial.from_factorization({f: 1, h: 1}, 4, cache)
        d, rest_a, rest_b = common_divisor(a, b)
        assert d.factorization() == {f: 1}
        assert d.coefficient == 2
        assert d * rest_a == a
        assert d * rest_b == b

    def test_divisor_is_structural(self, cache, x):
        """Unrefined factorizations hide the shared factor x + 1."""
        a = fp(cache, x, -1, 0, 1)
        b = fp(cache, x, 1, 2, 1)
        d, rest_a, rest_b = common_divisor(a, b)
        assert d.is_one()
        assert rest_a == a and rest_b == b

    def test_both_zero(self, cache, x):
        zero = FactorizedPolynomial(UnivariatePolynomial.zero(x), cache)
        d, rest_a, rest_b = common_divisor(zero, copy.copy(zero))
        assert d.is_zero() and rest_a.is_one() and rest_b.is_one()

    def test_common_multiple(self, cache, x):
        f = fp(cache, x, -1, 1)
        g = fp(cache, x, 1, 1)
        a = FactorizedPolynomial.from_factorization({f: 2}, 4, cache)
        b = FactorizedPolynomial.from_factorization({f: 1, g: 1}, 6, cache)
        m = common_multiple(a, b)
        assert m.factorization() == {f: 2, g: 1}
        assert m.coefficient == 12

    def test_common_multiple_with_zero(self, cache, x):
        f = fp(cache, x, -1, 1)
        zero = FactorizedPolynomial(UnivariatePolynomial.zero(x), cache)
        assert common_multiple(f, zero).is_zero()


class TestExactGcd:
    def test_gcd_of_unrefined_operands(self, cache, x):
        a = fp(cache, x, -1, 0, 1)
        b = fp(cache, x, 1, 2, 1)
        g, rest_a, rest_b = gcd(a, b)
        assert g.content() == poly(x, 1, 1)
        assert rest_a.content() == poly(x, -1, 1)
        assert rest_b.content() == poly(x, 1, 1)
        assert g * rest_a == a
        assert g * rest_b == b

    def test_gcd_refines_trivial_slots(self, cache, x):
        a = fp(cache, x, -1, 0, 1)
        b = fp(cache, x, 1, 2, 1)
        gcd(a, b)
        x_plus_1 = fp(cache, x, 1, 1)
        assert a.factorization() == {fp(cache, x, -1, 1): 1, x_plus_1: 1}
        assert b.factorization() == {x_plus_1: 2}
        d, _, _ = common_divisor(a, b)
        assert d == x_plus_1

    def test_gcd_with_coefficients(self, cache, x):
        a = fp(cache, x, -6, 0, 6)
        b = fp(cache, x, 4, 4)
        g, rest_a, rest_b = gcd(a, b)
        assert g.content() == poly(x, 2, 2)
        assert g * rest_a == a and g * rest_b == b

    def test_coprime_operands(self, cache, x):
        a = fp(cache, x, 1, 0, 1)
        b = fp(cache, x, -1, 1)
        g, rest_a, rest_b = gcd(a, b)
        assert g.is_one()
        assert rest_a == a and rest_b == b

    def test_gcd_with_zero(self, cache, x):
        a = fp(cache, x, -1, 1)
        zero = FactorizedPolynomial(UnivariatePolynomial.zero(x), cache)
        g, rest_a, rest_b = gcd(a, zero)
        assert g == a
        assert rest_a.is_one() and rest_b.is_zero()

    def test_gcd_over_integers(self, cache, x):
        a = fp(cache, x, -2, 0, 2, domain=INTEGERS)
        b = fp(cache, x, 3, 3, domain=INTEGERS)
        g, rest_a, rest_b = gcd(a, b)
        assert g.content() == poly(x, 1, 1, domain=INTEGERS)
        assert g * rest_a == a and g * rest_b == b

    def test_gcd_over_prime_field(self, cache, x):
        f7 = PrimeField(7)
        a = fp(cache, x, -1, 0, 1, domain=f7)
        b = fp(cache, x, 1, 2, 1, domain=f7)
        g, rest_a, rest_b = gcd(a, b)
        assert g.content() == poly(x, 1, 1, domain=f7)
        assert g * rest_a == a and g * rest_b == b
