"""Unit tests for factorpool.bigsqrt."""

import math

import pytest

from factorpool.bigsqrt import isqrt_newton
from factorpool.errors import InvalidArgument


def test_matches_isqrt_for_small_values():
    for n in range(0, 5000):
        assert isqrt_newton(n) == math.isqrt(n), n


@pytest.mark.parametrize("n", [4, 9, 91, 99, 100, 101, 999_999_999_999])
def test_boundaries(n):
    assert isqrt_newton(n) == math.isqrt(n)


@pytest.mark.parametrize("root", [10**40 + 7, 2**256 - 189, 3**200])
def test_exact_beyond_float_precision(root):
    assert isqrt_newton(root * root) == root
    assert isqrt_newton(root * root - 1) == root - 1
    assert isqrt_newton(root * root + 2 * root) == root


def test_rejects_negative():
    with pytest.raises(InvalidArgument):
        isqrt_newton(-1)


@pytest.mark.parametrize("bad", [4.0, "16", True, None])
def test_rejects_non_integers(bad):
    with pytest.raises(InvalidArgument):
        isqrt_newton(bad)
