"""Obligations domain - filing obligations and their status lifecycle."""

from .service import (
    DEFAULT_DUE_SOON_DAYS,
    Obligation,
    ObligationStatus,
    build_obligations,
    obligation_status,
    refresh_statuses,
)

__all__ = [
    "DEFAULT_DUE_SOON_DAYS",
    "Obligation",
    "ObligationStatus",
    "build_obligations",
    "obligation_status",
    "refresh_statuses",
]
