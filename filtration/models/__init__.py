"""Membrane filtration model and the rate functions it is built from."""
