"""Core configuration and ontology for the tax obligations engine."""

from .config import Settings, get_settings

__all__ = ["Settings", "get_settings"]
