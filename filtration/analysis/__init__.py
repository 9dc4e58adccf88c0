"""Singular-arc analysis of the membrane filtration model.

Derives the switching function and its derivative, locates the singular
state and integrates the state-costate flow after the singular arc.
"""
