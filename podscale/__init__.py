"""Discrete-event simulation of a job pipeline with autoscaled worker pods."""

__version__ = "0.1.0"