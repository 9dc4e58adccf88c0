"""Singular-arc analysis of the membrane filtration optimal-control model.

The filtration process is driven by a fouling mass :math:`m` whose dynamics
alternate between filtration (:math:`u = +1`) and backwash
(:math:`u = -1`). This package validates the rate functions of the model,
derives the switching-function derivative :math:`\\psi` and characterises
the singular arc (state, control, costate) on which the optimal control
is neither filtration nor backwash.
"""
