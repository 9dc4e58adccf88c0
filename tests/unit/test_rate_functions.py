# ruff: noqa: ANN001 ANN201

"""Tests for filtration.models.rate_functions."""

from __future__ import annotations

import operator

import numpy as np
import pytest
import sympy

from filtration.models.rate_functions import (
    RateFunction,
    is_k_function,
    is_l_function,
    is_monotonic,
)


# ------------------------------------------------------------------
# is_monotonic
# ------------------------------------------------------------------


class TestIsMonotonic:
    def test_strictly_decreasing_by_default(self):
        assert is_monotonic([3.0, 2.0, 1.0])
        assert not is_monotonic([3.0, 3.0, 1.0])
        assert not is_monotonic([1.0, 2.0])

    def test_custom_comparison(self):
        assert is_monotonic([1, 2, 5], operator.lt)
        assert is_monotonic([1, 1, 2], operator.le)
        assert not is_monotonic([1, 1, 2], operator.lt)

    def test_short_sequences_are_monotonic(self):
        assert is_monotonic([])
        assert is_monotonic([4.2])

    def test_numpy_array(self):
        assert is_monotonic(np.linspace(1.0, 0.0, 10))


# ------------------------------------------------------------------
# L- and K-function checks
# ------------------------------------------------------------------


class TestIsLFunction:
    def test_accepts_rational_decay(self):
        assert is_l_function(lambda m: 1.0 / (1.0 + m))

    def test_accepts_exponential_decay(self):
        assert is_l_function(lambda m: np.exp(-0.1 * m))

    def test_rejects_increasing(self):
        assert not is_l_function(lambda m: m)

    def test_rejects_nonzero_limit(self):
        assert not is_l_function(lambda m: 1.0 + 1.0 / (1.0 + m))

    def test_rejects_negative_values(self):
        assert not is_l_function(lambda m: 1.0 / (1.0 + m) - 0.5)

    def test_rejects_constant(self):
        assert not is_l_function(lambda m: 0.0)

    def test_rejects_non_finite(self):
        assert not is_l_function(lambda m: 1.0 / m)


class TestIsKFunction:
    def test_accepts_linear(self):
        assert is_k_function(lambda m: m)

    def test_accepts_saturating(self):
        assert is_k_function(lambda m: m / (1.0 + m))

    def test_rejects_nonzero_origin(self):
        assert not is_k_function(lambda m: m + 1.0)

    def test_rejects_decreasing(self):
        assert not is_k_function(lambda m: 1.0 / (1.0 + m))

    def test_tolerance_at_origin(self):
        assert is_k_function(lambda m: m + 1e-12)
        assert not is_k_function(lambda m: m + 1e-6)

    def test_invalid_sample_count(self):
        with pytest.raises(ValueError, match="positive"):
            is_k_function(lambda m: m, n=0)


# ------------------------------------------------------------------
# RateFunction
# ------------------------------------------------------------------


class TestRateFunction:
    def test_from_string_numeric_scalar(self):
        f = RateFunction.from_string("1/(1 + m)")
        assert f(1.0) == pytest.approx(0.5)
        assert isinstance(f(1.0), float)

    def test_from_string_numeric_array(self):
        f = RateFunction.from_string("m**2")
        x = np.array([0.0, 1.0, 2.0])
        np.testing.assert_allclose(f(x), [0.0, 1.0, 4.0])

    def test_constant_broadcasts_over_array(self):
        f = RateFunction.from_string("2")
        x = np.linspace(0.0, 1.0, 5)
        assert f(x).shape == (5,)
        np.testing.assert_allclose(f(x), 2.0)

    def test_symbolic_call_substitutes(self):
        f = RateFunction.from_string("exp(-m)")
        x = sympy.Symbol("x")
        assert f(x) == sympy.exp(-x)

    def test_custom_variable_name(self):
        f = RateFunction.from_string("1/(2 + c)", variable="c")
        assert f(0.0) == pytest.approx(0.5)

    def test_rejects_extra_symbols(self):
        with pytest.raises(ValueError, match="free symbols"):
            RateFunction.from_string("a * m")

    def test_rejects_unparsable(self):
        with pytest.raises(ValueError, match="Cannot parse"):
            RateFunction.from_string("1/(1 + ")

    def test_passes_shape_checks(self):
        assert is_l_function(RateFunction.from_string("1/(1 + m)"))
        assert is_k_function(RateFunction.from_string("m"))
