"""Switching function and singular arc of the membrane filtration problem.

With Hamiltonian :math:`H = \\lambda (f_- + u f_+) + u g`, the switching
function is

.. math::

    \\Phi(m, \\lambda) = \\partial_u H = \\lambda f_+(m) + g(m)

and along a singular arc :math:`\\Phi \\equiv \\dot\\Phi \\equiv 0`, which
reduces to :math:`\\psi(m) = 0` with

.. math::

    \\psi = g\\,(f_-' f_+ - f_- f_+') + g' f_+ f_-.

The singular state :math:`m_s` is a positive root of :math:`\\psi`, the
singular control keeps :math:`\\dot m = 0` and the singular costate
cancels :math:`\\Phi`.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

import numpy as np
import sympy
from loguru import logger
from scipy import optimize

from filtration.analysis.differentiation import derivative, trace_symbolic

if TYPE_CHECKING:
    from collections.abc import Callable

    from filtration.models.membrane_filtration import MembraneFiltrationModel


def get_psi(model: MembraneFiltrationModel) -> Callable[[Any], Any]:
    """Build the numeric function :math:`\\psi`.

    :param model: A membrane filtration model.
    :returns: Callable ``psi(m)``.
    """
    f_plus, f_minus, g = model.f_plus, model.f_minus, model.g
    df_plus = derivative(f_plus)
    df_minus = derivative(f_minus)
    dg = derivative(g)

    def psi(m: Any) -> Any:
        fp = f_plus(m)
        fm = f_minus(m)
        return g(m) * (df_minus(m) * fp - fm * df_plus(m)) + dg(m) * fp * fm

    return psi


def get_psi_symbolic(
    model: MembraneFiltrationModel,
    variable: str = "m",
) -> tuple[sympy.Expr, sympy.Symbol]:
    """Build :math:`\\psi` as a simplified sympy expression.

    :param model: A membrane filtration model whose rate functions accept
        sympy arguments.
    :param variable: Name of the fouling-mass symbol.
    :returns: Tuple ``(psi_expr, symbol)``.
    :raises ValueError: If a rate function cannot be traced symbolically.
    """
    m = sympy.Symbol(variable)
    traced = {}
    for name, func in (("f1", model.f1), ("f2", model.f2), ("g", model.g)):
        expr = trace_symbolic(func, m)
        if expr is None:
            raise ValueError(
                f"Rate function '{name}' cannot be evaluated symbolically; "
                "use singular_state for a numeric root instead"
            )
        # Floats would push the polynomial solver onto inexact domains
        traced[name] = sympy.nsimplify(expr, rational=True)

    f_plus = (traced["f1"] + traced["f2"]) / 2
    f_minus = (traced["f1"] - traced["f2"]) / 2
    g = traced["g"]
    psi = (
        g * (sympy.diff(f_minus, m) * f_plus - f_minus * sympy.diff(f_plus, m))
        + sympy.diff(g, m) * f_plus * f_minus
    )
    return sympy.simplify(psi), m


def get_roots_symbolic_algebraic_fraction(
    model: MembraneFiltrationModel,
    variable: str = "m",
) -> tuple[list[float], list[float]]:
    """Compute all positive roots of :math:`\\psi` and :math:`\\psi'` there.

    Only valid when :math:`\\psi` is an algebraic fraction (a ratio of
    polynomials in :math:`m`). The numerator is solved exactly, so every
    positive root is returned. This can be slow for high-degree rate
    functions; if :math:`\\psi` has a single positive root,
    :func:`singular_state` is much cheaper.

    :param model: A membrane filtration model with sympy-traceable rate
        functions.
    :param variable: Name of the fouling-mass symbol.
    :returns: Tuple ``(roots, dpsi)`` of the positive real roots in
        ascending order and the derivative of :math:`\\psi` at each root.
    :raises ValueError: If the rate functions are not traceable or the
        numerator of :math:`\\psi` is not a polynomial in :math:`m`.
    """
    t_start = time.monotonic()
    psi, m = get_psi_symbolic(model, variable)

    numerator, _ = sympy.fraction(sympy.cancel(sympy.together(psi)))
    try:
        poly = sympy.Poly(sympy.expand(numerator), m)
    except sympy.PolynomialError as exc:
        raise ValueError(
            f"psi is not an algebraic fraction in {m}: numerator {numerator}"
        ) from exc

    if poly.is_zero:
        raise ValueError("psi vanishes identically; the singular arc is degenerate")

    dpsi = sympy.simplify(sympy.diff(psi, m))
    candidates = [float(root.evalf()) for root in poly.real_roots()]
    roots = sorted({r for r in candidates if r > 0.0})

    dpsi_func = sympy.lambdify(m, dpsi, modules=["numpy"])
    dpsi_values = [float(dpsi_func(r)) for r in roots]

    logger.debug(
        "Symbolic psi roots: {} positive of degree-{} numerator ({:.2f}s)",
        len(roots),
        poly.degree(),
        time.monotonic() - t_start,
    )
    return roots, dpsi_values


def get_phi(model: MembraneFiltrationModel) -> Callable[[Any, Any], Any]:
    """Build the switching function :math:`\\Phi(m, \\lambda) = \\lambda f_+(m) + g(m)`.

    :param model: A membrane filtration model.
    :returns: Callable ``phi(m, lam)``.
    """

    def phi(m: Any, lam: Any) -> Any:
        return lam * model.f_plus(m) + model.g(m)

    return phi


def get_dphi(model: MembraneFiltrationModel) -> Callable[[Any, Any], Any]:
    """Build the time derivative of :math:`\\Phi` along extremals.

    .. math::

        \\dot\\Phi(m, \\lambda) = \\frac{\\psi(m)}{f_+(m)}
        + \\Phi(m, \\lambda) \\frac{f_+'(m) f_-(m) - f_-'(m) f_+(m)}{f_+(m)}

    :param model: A membrane filtration model.
    :returns: Callable ``dphi(m, lam)``.
    """
    f_plus, f_minus = model.f_plus, model.f_minus
    df_plus = derivative(f_plus)
    df_minus = derivative(f_minus)
    psi = get_psi(model)
    phi = get_phi(model)

    def dphi(m: Any, lam: Any) -> Any:
        fp = f_plus(m)
        return psi(m) / fp + phi(m, lam) * (
            df_plus(m) * f_minus(m) - df_minus(m) * fp
        ) / fp

    return dphi


def singular_state(
    model: MembraneFiltrationModel,
    x0: float = 0.5,
    bracket: tuple[float, float] | None = None,
) -> float:
    """Find the singular state, a root of :math:`\\psi`.

    If :math:`\\psi` has several roots the one returned depends on the
    initial guess (or bracket); use
    :func:`get_roots_symbolic_algebraic_fraction` to list them all.

    :param model: A membrane filtration model.
    :param x0: Initial guess for the secant iteration.
    :param bracket: Optional interval ``(a, b)`` on which :math:`\\psi`
        changes sign. When given, Brent's method is used instead of the
        secant iteration.
    :returns: The singular state :math:`m_s`.
    :raises RuntimeError: If the root finder does not converge.
    :raises ValueError: If ``bracket`` does not enclose a sign change.
    """
    psi = get_psi(model)
    if bracket is not None:
        low, high = bracket
        m_s = optimize.brentq(psi, low, high)
    else:
        m_s = optimize.newton(psi, x0)
    m_s = float(m_s)
    if not np.isfinite(m_s):
        raise RuntimeError(f"Singular state search diverged from x0={x0}")
    logger.debug("Singular state m_s = {:.6g}", m_s)
    return m_s


def singular_control(
    model: MembraneFiltrationModel,
    x0: float = 0.5,
    bracket: tuple[float, float] | None = None,
) -> float:
    """Singular control :math:`u_s = -f_-(m_s) / f_+(m_s)`.

    :param model: A membrane filtration model.
    :param x0: Initial guess for the singular state.
    :param bracket: Optional sign-change interval for the singular state.
    :returns: The singular control.
    """
    return control_at_state(model, singular_state(model, x0, bracket))


def singular_costate(
    model: MembraneFiltrationModel,
    x0: float = 0.5,
    bracket: tuple[float, float] | None = None,
) -> float:
    """Singular costate :math:`\\lambda_s = -g(m_s) / f_+(m_s)`.

    :param model: A membrane filtration model.
    :param x0: Initial guess for the singular state.
    :param bracket: Optional sign-change interval for the singular state.
    :returns: The singular costate.
    """
    return costate_at_state(model, singular_state(model, x0, bracket))


def control_at_state(model: MembraneFiltrationModel, m_s: float) -> float:
    """Control :math:`-f_-(m_s) / f_+(m_s)` that keeps ``m_s`` stationary."""
    return float(-model.f_minus(m_s) / model.f_plus(m_s))


def costate_at_state(model: MembraneFiltrationModel, m_s: float) -> float:
    """Costate :math:`-g(m_s) / f_+(m_s)` that cancels the switching function."""
    return float(-model.g(m_s) / model.f_plus(m_s))
