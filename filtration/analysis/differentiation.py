"""Derivatives of scalar rate functions.

Rate functions that can be evaluated on a sympy symbol are differentiated
exactly and compiled back to numpy. Anything else falls back to adaptive
finite differences from ``scipy.differentiate``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import numpy as np
import sympy
from loguru import logger
from scipy import differentiate

if TYPE_CHECKING:
    from collections.abc import Callable


def trace_symbolic(
    func: Callable[[Any], Any],
    symbol: sympy.Symbol,
) -> sympy.Expr | None:
    """Evaluate ``func`` on a sympy symbol.

    :param func: Scalar function of one variable.
    :param symbol: The symbol to substitute for the argument.
    :returns: The resulting sympy expression, or None if ``func`` cannot
        operate on sympy objects (e.g. it calls ``numpy.exp``).
    """
    try:
        expr = func(symbol)
    except (TypeError, AttributeError) as exc:
        logger.debug("Function {} is not sympy-traceable: {}", func, exc)
        return None
    if not isinstance(expr, sympy.Basic):
        # Constant functions return plain numbers
        if isinstance(expr, (int, float)):
            return sympy.sympify(expr)
        return None
    return expr


def derivative(func: Callable[[Any], Any]) -> Callable[[Any], Any]:
    """Return the derivative of a scalar function of one variable.

    :param func: Scalar function, vectorised over numpy arrays.
    :returns: Callable ``df(x)`` accepting floats or numpy arrays.
    """
    symbol = sympy.Symbol("x")
    expr = trace_symbolic(func, symbol)
    if expr is not None:
        d_expr = sympy.diff(expr, symbol)
        d_func = sympy.lambdify(symbol, d_expr, modules=["numpy"])

        def exact(x: Any) -> Any:
            result = d_func(x)
            if np.ndim(x) > 0:
                return np.broadcast_to(
                    np.asarray(result, dtype=np.float64), np.shape(x),
                )
            return float(result)

        return exact

    def numerical(x: Any) -> Any:
        res = differentiate.derivative(func, np.asarray(x, dtype=np.float64))
        if not np.all(res.success):
            logger.debug(
                "Finite-difference derivative did not converge at {}", x,
            )
        if np.ndim(x) > 0:
            return res.df
        return float(res.df)

    return numerical
