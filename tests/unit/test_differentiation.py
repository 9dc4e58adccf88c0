# ruff: noqa: ANN001 ANN201

"""Tests for filtration.analysis.differentiation."""

from __future__ import annotations

import numpy as np
import pytest
import sympy

from filtration.analysis.differentiation import derivative, trace_symbolic


class TestTraceSymbolic:
    def test_traces_rational_lambda(self):
        x = sympy.Symbol("x")
        expr = trace_symbolic(lambda m: 1 / (1 + m), x)
        assert expr == 1 / (1 + x)

    def test_numpy_function_is_not_traceable(self):
        x = sympy.Symbol("x")
        assert trace_symbolic(lambda m: np.exp(-m), x) is None

    def test_constant_is_sympified(self):
        x = sympy.Symbol("x")
        assert trace_symbolic(lambda m: 3.0, x) == sympy.Float(3.0)


class TestDerivative:
    def test_exact_derivative_of_traceable_function(self):
        df = derivative(lambda m: m**3)
        assert df(2.0) == pytest.approx(12.0)
        np.testing.assert_allclose(df(np.array([0.0, 1.0])), [0.0, 3.0])

    def test_numerical_fallback(self):
        df = derivative(lambda m: np.exp(-2.0 * m))
        assert df(0.5) == pytest.approx(-2.0 * np.exp(-1.0), rel=1e-6)

    def test_numerical_fallback_on_array(self):
        df = derivative(lambda m: np.sin(m))
        x = np.array([0.0, 1.0, 2.0])
        np.testing.assert_allclose(df(x), np.cos(x), rtol=1e-6, atol=1e-8)

    def test_constant_function(self):
        df = derivative(lambda m: 2.0)
        assert df(1.0) == 0.0
        assert df(np.ones(3)).shape == (3,)
