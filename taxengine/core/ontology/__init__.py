"""Core ontology types for the tax obligations engine."""

from .profile import BusinessProfile

__all__ = ["BusinessProfile"]
