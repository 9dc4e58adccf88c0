"""Rate functions of the filtration model and their shape checks.

An :math:`\\mathcal{L}`-function is smooth, positive, decreasing and tends
to zero at infinity. A :math:`\\mathcal{K}`-function is smooth, positive,
increasing and vanishes at zero. The checks below are sampled, not proofs:
they evaluate the function on a finite grid of the positive half-line.
"""

from __future__ import annotations

import operator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np
import sympy

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence


@dataclass(frozen=True)
class RateFunction:
    """A scalar rate function of the fouling mass backed by a sympy expression.

    Numeric arguments (floats, numpy arrays) are evaluated through a
    lambdified numpy function. Sympy arguments are substituted into the
    expression, so the function can be traced for symbolic differentiation.

    :param sympy_expr: Expression in ``variable`` only.
    :param variable: The independent variable of the expression.
    """

    sympy_expr: sympy.Expr
    variable: sympy.Symbol

    def __post_init__(self) -> None:
        extra = self.sympy_expr.free_symbols - {self.variable}
        if extra:
            raise ValueError(
                f"Rate function {self.sympy_expr} has free symbols "
                f"{sorted(str(s) for s in extra)} besides '{self.variable}'"
            )
        func = sympy.lambdify(self.variable, self.sympy_expr, modules=["numpy"])
        object.__setattr__(self, "_func", func)

    @staticmethod
    def from_string(expression: str, variable: str = "m") -> RateFunction:
        """Parse an expression string such as ``"1/(1 + m)"``.

        :param expression: Expression in the single variable ``variable``.
        :param variable: Name of the independent variable.
        :returns: A new RateFunction.
        :raises ValueError: If the string cannot be parsed or depends on
            other symbols.
        """
        symbol = sympy.Symbol(variable)
        try:
            expr = sympy.sympify(expression, locals={variable: symbol})
        except sympy.SympifyError as exc:
            raise ValueError(
                f"Cannot parse rate function {expression!r}: {exc}"
            ) from exc
        return RateFunction(sympy_expr=expr, variable=symbol)

    def __call__(self, m: Any) -> Any:
        if isinstance(m, sympy.Basic):
            return self.sympy_expr.subs(self.variable, m)
        result = self._func(m)  # type: ignore[attr-defined]
        if np.ndim(m) > 0:
            # Constant expressions lambdify to a scalar
            return np.broadcast_to(
                np.asarray(result, dtype=np.float64), np.shape(m),
            )
        return float(result)

    def __repr__(self) -> str:
        return f"RateFunction({str(self.sympy_expr)!r})"


def is_monotonic(
    values: Sequence[float] | np.ndarray,
    cmp: Callable[[Any, Any], bool] = operator.gt,
) -> bool:
    """Check that ``cmp`` holds between every pair of consecutive values.

    :param values: Sequence of values.
    :param cmp: Comparison applied as ``cmp(values[i], values[i + 1])``.
        Defaults to ``operator.gt`` (strictly decreasing).
    :returns: True if the comparison holds for every consecutive pair.
        Empty and single-element sequences are monotonic.
    """
    return all(
        bool(cmp(current, following))
        for current, following in zip(values[:-1], values[1:])
    )


def _sample(
    f: Callable[[Any], Any], start: float, stop: float, n: int,
) -> np.ndarray:
    if n < 1:
        raise ValueError(f"Number of sample points must be positive, got {n}")
    x = np.linspace(start, stop, n)
    y = np.asarray(f(x), dtype=np.float64)
    return np.broadcast_to(y, x.shape)


def is_l_function(
    f: Callable[[Any], Any],
    start: float = 0.0,
    stop: float = 100.0,
    n: int = 100,
    eps: float = 1e-9,
) -> bool:
    """Check whether ``f`` behaves as an :math:`\\mathcal{L}`-function.

    :param f: Vectorised function of the fouling mass.
    :param start: Start of the sampled domain.
    :param stop: End of the sampled domain.
    :param n: Number of sample points.
    :param eps: Tolerance on :math:`\\lim_{x \\to \\infty} f(x) = 0`,
        checked at :math:`x = 10^{12}`.
    :returns: True if the samples are finite, strictly decreasing and
        non-negative, and the limit check passes.
    """
    y = _sample(f, start, stop, n)
    if not np.all(np.isfinite(y)):
        return False
    if not is_monotonic(y, operator.gt):
        return False
    if np.any(y < 0.0):
        return False
    return bool(f(1e12) <= eps)


def is_k_function(
    f: Callable[[Any], Any],
    start: float = 0.0,
    stop: float = 100.0,
    n: int = 100,
    eps: float = 1e-9,
) -> bool:
    """Check whether ``f`` behaves as a :math:`\\mathcal{K}`-function.

    :param f: Vectorised function of the fouling mass.
    :param start: Start of the sampled domain.
    :param stop: End of the sampled domain.
    :param n: Number of sample points.
    :param eps: Tolerance on :math:`f(0) = 0`.
    :returns: True if the samples are finite, strictly increasing and
        non-negative, and :math:`|f(0)| \\le \\varepsilon`.
    """
    y = _sample(f, start, stop, n)
    if not np.all(np.isfinite(y)):
        return False
    if not is_monotonic(y, operator.lt):
        return False
    if np.any(y < 0.0):
        return False
    return bool(abs(f(0.0)) <= eps)
