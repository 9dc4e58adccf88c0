"""Membrane filtration model.

The fouling mass :math:`m` on the membrane evolves as

.. math::

    \\dot m = f_-(m) + u f_+(m), \\qquad u \\in [-1, 1]

with :math:`f_\\pm = (f_1 \\pm f_2) / 2`, where :math:`f_1` is the
deposition rate during filtration (an :math:`\\mathcal{L}`-function) and
:math:`f_2` the detachment rate during backwash (a
:math:`\\mathcal{K}`-function). The produced water accumulates as
:math:`\\dot v = u\\, g(m)` with :math:`g` the permeate flux (an
:math:`\\mathcal{L}`-function).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from loguru import logger

from filtration.models.rate_functions import (
    RateFunction,
    is_k_function,
    is_l_function,
)

if TYPE_CHECKING:
    from collections.abc import Callable

_L_FUNCTION_HINT = (
    "Please verify that {} is a smooth L-function: positive, decreasing "
    "with lim_(x -> inf) {}(x) = 0."
)
_K_FUNCTION_HINT = (
    "Please verify that {} is a smooth K-function: positive, increasing "
    "with {}(0) = 0."
)


@dataclass(frozen=True)
class MembraneFiltrationModel:
    """A membrane filtration model.

    :param f1: Deposition rate, an L-function.
    :param f2: Detachment rate, a K-function.
    :param g: Permeate flux, an L-function.
    :param validate: Check the shape of ``f1``, ``f2`` and ``g`` on
        construction. Default True.
    :raises ValueError: If validation is enabled and one of the rate
        functions does not have the required shape.
    """

    f1: Callable[[Any], Any]
    f2: Callable[[Any], Any]
    g: Callable[[Any], Any]
    validate: bool = True

    def __post_init__(self) -> None:
        if not self.validate:
            return
        checks = (
            ("f1", self.f1, is_l_function, _L_FUNCTION_HINT),
            ("g", self.g, is_l_function, _L_FUNCTION_HINT),
            ("f2", self.f2, is_k_function, _K_FUNCTION_HINT),
        )
        for name, func, check, hint in checks:
            if not check(func):
                message = hint.format(name, name)
                logger.error(message)
                raise ValueError(f"Wrong definition of input functions: {message}")
        logger.debug("Membrane filtration model validated: {}", self)

    @staticmethod
    def from_expressions(
        f1: str,
        f2: str,
        g: str,
        variable: str = "m",
        validate: bool = True,
    ) -> MembraneFiltrationModel:
        """Build a model from expression strings in a single variable.

        :param f1: Deposition rate expression, e.g. ``"1/(1 + m)"``.
        :param f2: Detachment rate expression, e.g. ``"m"``.
        :param g: Permeate flux expression.
        :param variable: Name of the fouling-mass variable.
        :param validate: Check the rate-function shapes.
        :returns: A new MembraneFiltrationModel.
        """
        return MembraneFiltrationModel(
            f1=RateFunction.from_string(f1, variable),
            f2=RateFunction.from_string(f2, variable),
            g=RateFunction.from_string(g, variable),
            validate=validate,
        )

    def f_plus(self, m: Any) -> Any:
        """:math:`f_+(m) = (f_1(m) + f_2(m)) / 2`."""
        return 0.5 * (self.f1(m) + self.f2(m))

    def f_minus(self, m: Any) -> Any:
        """:math:`f_-(m) = (f_1(m) - f_2(m)) / 2`."""
        return 0.5 * (self.f1(m) - self.f2(m))

    def state_dynamic(self, m: Any, u: Any) -> Any:
        """Fouling-mass dynamics :math:`f_-(m) + u f_+(m)`."""
        return self.f_minus(m) + u * self.f_plus(m)

    def cost_dynamic(self, m: Any, u: Any) -> Any:
        """Produced-water rate :math:`u\\, g(m)`."""
        return u * self.g(m)
