"""Indirect shooting on the final filtration arc.

After the singular arc the optimal control switches to pure filtration
(:math:`u = +1`) until the final time :math:`t_f`. Starting from the
singular state and costate at the unknown exit time :math:`t_2`, the
state-costate flow must satisfy the transversality condition
:math:`\\lambda(t_f) = 0`. Solving this scalar equation for :math:`t_2`
gives the length :math:`\\Delta t = t_f - t_2` of the final arc.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from loguru import logger
from scipy import integrate, optimize

from filtration.analysis.differentiation import derivative
from filtration.analysis.singular_arc import costate_at_state, singular_state

if TYPE_CHECKING:
    from collections.abc import Callable

    from filtration.models.membrane_filtration import MembraneFiltrationModel


@dataclass(frozen=True)
class ShootingConfig:
    """Configuration for the final-arc shooting.

    :param final_time: Final time :math:`t_f` of the control problem.
    :param time_guess: Initial guess for the exit time :math:`t_2`.
    :param method: ``solve_ivp`` integration method. Default ``"RK45"``.
    :param rtol: Relative integration tolerance.
    :param atol: Absolute integration tolerance.
    :param xtol: Tolerance of the shooting root finder.
    """

    final_time: float = 10.0
    time_guess: float = 5.0
    method: str = "RK45"
    rtol: float = 1e-10
    atol: float = 1e-12
    xtol: float = 1e-10

    def __post_init__(self) -> None:
        if self.final_time <= 0.0:
            raise ValueError(
                f"final_time must be positive, got {self.final_time}"
            )


def hamiltonian_flow(
    model: MembraneFiltrationModel,
    u: float = 1.0,
    config: ShootingConfig | None = None,
) -> Callable[[float, float, float, float], tuple[float, float]]:
    r"""Build the state-costate flow for a constant control.

    Integrates

    .. math::

        \dot m = f_-(m) + u f_+(m), \qquad
        \dot\lambda = -\lambda (f_-'(m) + u f_+'(m)) - u g'(m)

    :param model: A membrane filtration model.
    :param u: Constant control value in ``[-1, 1]``.
    :param config: Integration tolerances. Defaults to ``ShootingConfig()``.
    :returns: Callable ``flow(t0, m0, lam0, tf) -> (m_tf, lam_tf)``.
        Integration runs backward in time when ``tf < t0``.
    :raises ValueError: If ``u`` is outside ``[-1, 1]``.
    """
    if not -1.0 <= u <= 1.0:
        raise ValueError(f"Control must lie in [-1, 1], got {u}")
    cfg = config or ShootingConfig()
    df_plus = derivative(model.f_plus)
    df_minus = derivative(model.f_minus)
    dg = derivative(model.g)

    def rhs(_t: float, y: np.ndarray) -> np.ndarray:
        m, lam = y
        dm = model.state_dynamic(m, u)
        dlam = -lam * (df_minus(m) + u * df_plus(m)) - u * dg(m)
        return np.array([dm, dlam], dtype=np.float64)

    def flow(t0: float, m0: float, lam0: float, tf: float) -> tuple[float, float]:
        if t0 == tf:
            return float(m0), float(lam0)
        sol = integrate.solve_ivp(
            rhs,
            (t0, tf),
            np.array([m0, lam0], dtype=np.float64),
            method=cfg.method,
            rtol=cfg.rtol,
            atol=cfg.atol,
        )
        if not sol.success:
            raise RuntimeError(f"State-costate integration failed: {sol.message}")
        return float(sol.y[0, -1]), float(sol.y[1, -1])

    return flow


def delta_t_end(
    model: MembraneFiltrationModel,
    config: ShootingConfig | None = None,
    x0: float = 0.5,
    bracket: tuple[float, float] | None = None,
    m_s: float | None = None,
) -> float:
    """Length of the final filtration arc after the singular arc.

    :param model: A membrane filtration model.
    :param config: Final time, exit-time guess and tolerances. Defaults to
        ``ShootingConfig()``.
    :param x0: Initial guess for the singular state.
    :param bracket: Optional sign-change interval for the singular state.
    :param m_s: Singular state, if already known. Skips the root search
        and ignores ``x0`` and ``bracket``.
    :returns: :math:`\\Delta t = t_f - t_2`.
    :raises RuntimeError: If the shooting equation is not solved.
    """
    cfg = config or ShootingConfig()
    if m_s is None:
        m_s = singular_state(model, x0, bracket)
    lam_s = costate_at_state(model, m_s)
    flow_plus = hamiltonian_flow(model, u=1.0, config=cfg)

    def shooting_function(t2: np.ndarray) -> np.ndarray:
        _, lam_f = flow_plus(float(t2[0]), m_s, lam_s, cfg.final_time)
        return np.array([lam_f])

    solution, info, status, message = optimize.fsolve(
        shooting_function,
        np.array([cfg.time_guess]),
        xtol=cfg.xtol,
        full_output=True,
    )
    if status != 1:
        raise RuntimeError(f"Final-arc shooting did not converge: {message}")

    t2 = float(solution[0])
    logger.info(
        "Final arc: t2 = {:.6g}, delta_t = {:.6g} ({} evaluations)",
        t2,
        cfg.final_time - t2,
        info["nfev"],
    )
    return cfg.final_time - t2
