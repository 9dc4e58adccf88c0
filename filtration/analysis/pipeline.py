"""End-to-end singular-arc analysis of a configured model."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from loguru import logger

from filtration.analysis.shooting import ShootingConfig, delta_t_end
from filtration.analysis.singular_arc import (
    control_at_state,
    costate_at_state,
    get_roots_symbolic_algebraic_fraction,
    singular_state,
)
from filtration.models.membrane_filtration import MembraneFiltrationModel

if TYPE_CHECKING:
    from omegaconf import DictConfig


@dataclass(frozen=True)
class SingularArcReport:
    """Characterisation of the singular arc of a model.

    :param state: Singular state :math:`m_s`.
    :param control: Singular control :math:`u_s`.
    :param costate: Singular costate :math:`\\lambda_s`.
    :param psi_roots: All positive roots of :math:`\\psi`, or None if the
        symbolic search was not run.
    :param dpsi_at_roots: :math:`\\psi'` at each root, or None.
    :param delta_t: Length of the final filtration arc, or None if the
        shooting was not run.
    """

    state: float
    control: float
    costate: float
    psi_roots: list[float] | None = None
    dpsi_at_roots: list[float] | None = None
    delta_t: float | None = None


def build_model(cfg: DictConfig) -> MembraneFiltrationModel:
    """Build the model described by the ``model`` config group."""
    model_cfg = cfg.model
    model = MembraneFiltrationModel.from_expressions(
        f1=model_cfg.f1,
        f2=model_cfg.f2,
        g=model_cfg.g,
        variable=model_cfg.get("variable", "m"),
    )
    logger.info(
        "Model built: f1={}, f2={}, g={}", model_cfg.f1, model_cfg.f2, model_cfg.g,
    )
    return model


def analyse(model: MembraneFiltrationModel, cfg: DictConfig) -> SingularArcReport:
    """Run the singular-arc analysis configured in ``cfg``.

    :param model: The model to analyse.
    :param cfg: Config with ``singular_arc`` and ``shooting`` groups.
    :returns: The analysis report.
    """
    arc_cfg = cfg.singular_arc
    x0 = float(arc_cfg.get("initial_guess", 0.5))
    raw_bracket = arc_cfg.get("bracket", None)
    bracket = (
        (float(raw_bracket[0]), float(raw_bracket[1]))
        if raw_bracket is not None
        else None
    )

    psi_roots = None
    dpsi_at_roots = None
    if arc_cfg.get("symbolic_roots", False):
        psi_roots, dpsi_at_roots = get_roots_symbolic_algebraic_fraction(
            model, variable=cfg.model.get("variable", "m"),
        )
        logger.info("Positive roots of psi: {}", psi_roots)

    state = singular_state(model, x0, bracket)
    control = control_at_state(model, state)
    costate = costate_at_state(model, state)
    logger.info(
        "Singular arc: m_s={:.6g}, u_s={:.6g}, lambda_s={:.6g}",
        state,
        control,
        costate,
    )
    if not -1.0 <= control <= 1.0:
        logger.warning(
            "Singular control {:.6g} is not admissible (outside [-1, 1])",
            control,
        )

    delta_t = None
    shoot_cfg = cfg.get("shooting", None)
    if shoot_cfg is not None and shoot_cfg.get("enabled", False):
        shooting = ShootingConfig(
            final_time=float(shoot_cfg.get("final_time", 10.0)),
            time_guess=float(shoot_cfg.get("time_guess", 5.0)),
        )
        delta_t = delta_t_end(model, shooting, m_s=state)

    return SingularArcReport(
        state=state,
        control=control,
        costate=costate,
        psi_roots=psi_roots,
        dpsi_at_roots=dpsi_at_roots,
        delta_t=delta_t,
    )
