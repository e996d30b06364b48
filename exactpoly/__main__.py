"""
Smoke runner: ``python -m exactpoly [--log-level LEVEL] [--max-int N]``.

Runs the acceptance scenarios end to end; any failed check raises, success exits 0.
"""

from __future__ import annotations

import argparse
import logging
import sys
from fractions import Fraction
from typing import Dict, List, Optional

from .config import LOG_LEVELS, configure_logging, load_config
from .errors import PolynomialError
from .factorization import FactorizationCache
from .factorized import FactorizedPolynomial, common_divisor, gcd
from .univariate import UnivariatePolynomial
from .variables import Variable

_logger = logging.getLogger("exactpoly.smoke")


def _check(condition: bool, message: str) -> None:
    if not condition:
        raise PolynomialError(f"smoke check failed: {message}")


def _run_polynomial_checks(x: Variable, max_int: int) -> Dict[str, str]:
    p = UnivariatePolynomial(x, [-1, 0, 1])
    factors = p.factorization(max_int)
    _check(set(map(str, factors)) == {"x - 1", "x + 1"}, f"x^2 - 1 factors as {factors}")
    _check(all(m == 1 for m in factors.values()), "x^2 - 1 has simple factors")

    dividend = UnivariatePolynomial(x, [5, Fraction(-1, 2), 0, 3])
    divisor = UnivariatePolynomial(x, [1, 2])
    q, r = dividend.divide(divisor)
    _check(divisor * q + r == dividend, "division identity")

    a = UnivariatePolynomial(x, [-1, 0, 1])
    b = UnivariatePolynomial(x, [1, 2, 1])
    g, s, t = UnivariatePolynomial.extended_gcd(a, b)
    _check(s * a + t * b == g, "Bezout identity")

    sq = UnivariatePolynomial(x, [1, 1]) ** 2 * UnivariatePolynomial(x, [2, 0, 1])
    product = UnivariatePolynomial.constant(x, 1)
    for m, f in sq.square_free_factorization().items():
        product = product * f**m
    _check(product.normalized() == sq.normalized(), "square-free product")

    return {"factors": str({str(f): m for f, m in factors.items()}), "gcd": str(g)}


def _run_factorized_checks(x: Variable) -> Dict[str, str]:
    cache = FactorizationCache()
    two_x_a = FactorizedPolynomial(UnivariatePolynomial(x, [0, 2]), cache)
    two_x_b = FactorizedPolynomial(UnivariatePolynomial(x, [0, 2]), cache)
    _check(two_x_a.ref == two_x_b.ref, "2x cached twice shares one slot")
    _check(cache.usage_count(two_x_a.ref) == 2, "2x slot is registered twice")

    a = FactorizedPolynomial(UnivariatePolynomial(x, [-1, 0, 1]), cache)
    b = FactorizedPolynomial(UnivariatePolynomial(x, [1, 2, 1]), cache)
    g, rest_a, rest_b = gcd(a, b)
    _check(g.content() == UnivariatePolynomial(x, [1, 1]), f"gcd(x^2 - 1, x^2 + 2x + 1) == {g}")
    _check(g * rest_a == a and g * rest_b == b, "gcd cofactors reconstruct")

    d, ra, rb = common_divisor(a, b)
    _check(d * ra == a and d * rb == b, "common divisor reconstructs")
    return {"gcd": str(g), "common_divisor": repr(d), "cache": str(cache.stats())}


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="exactpoly smoke run (exact polynomial algebra)")
    parser.add_argument("--log-level", choices=LOG_LEVELS, help="override EXACTPOLY_LOG_LEVEL")
    parser.add_argument("--max-int", type=int, help="override EXACTPOLY_MAX_INT (rational-root search bound)")
    args = parser.parse_args(argv)

    config = load_config()
    configure_logging(args.log_level or config.log_level)
    max_int = config.max_int if args.max_int is None else int(args.max_int)
    if max_int < 1:
        parser.error(f"--max-int must be >= 1, got {max_int}")

    _logger.info("exactpoly smoke: START (max_int=%s, cache_max_size=%s)", max_int, config.cache_max_size)
    x = Variable("x")
    poly_report = _run_polynomial_checks(x, max_int)
    _logger.info("[univariate] %s", poly_report)
    fact_report = _run_factorized_checks(x)
    _logger.info("[factorized] %s", fact_report)
    _logger.info("exactpoly smoke: PASS")
    return 0


if __name__ == "__main__":
    sys.exit(main())
