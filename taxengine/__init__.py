"""Deterministic tax rule evaluation and filing deadline scheduling."""

__version__ = "0.1.0"
