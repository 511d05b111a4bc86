"""Obligation lifecycle derived from resolved deadlines.

Statuses move upcoming -> due -> overdue as the reference date advances;
fulfilled is terminal. A filing due today is ``due``, not ``overdue``.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, timedelta
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from taxengine.rules.models import ResolvedDeadline

DEFAULT_DUE_SOON_DAYS = 7


class ObligationStatus(str, Enum):
    """Lifecycle status of a filing obligation."""

    UPCOMING = "upcoming"
    DUE = "due"
    OVERDUE = "overdue"
    FULFILLED = "fulfilled"


class Obligation(BaseModel):
    """A resolved deadline tracked through its status lifecycle."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    key: str
    template_key: str
    title: str
    frequency: str
    period_start: date
    period_end: date
    due_date: date
    status: ObligationStatus = Field(default=ObligationStatus.UPCOMING)


def obligation_status(
    due_date: date,
    today: date,
    current: ObligationStatus = ObligationStatus.UPCOMING,
    due_soon_days: int = DEFAULT_DUE_SOON_DAYS,
) -> ObligationStatus:
    """Compute the status of an obligation as of ``today``."""
    if current == ObligationStatus.FULFILLED:
        return current
    if due_date < today:
        return ObligationStatus.OVERDUE
    # the window always includes today
    window = timedelta(days=max(due_soon_days, 1))
    if due_date < today + window and current in (
        ObligationStatus.UPCOMING,
        ObligationStatus.DUE,
    ):
        return ObligationStatus.DUE
    return current


def build_obligations(
    deadlines: Iterable[ResolvedDeadline],
    today: date,
    fulfilled_keys: Iterable[str] = (),
    due_soon_days: int = DEFAULT_DUE_SOON_DAYS,
) -> list[Obligation]:
    """Turn resolved deadlines into obligations ordered by due date."""
    fulfilled = set(fulfilled_keys)
    obligations = []
    for deadline in deadlines:
        current = (
            ObligationStatus.FULFILLED if deadline.key in fulfilled else ObligationStatus.UPCOMING
        )
        obligations.append(
            Obligation(
                key=deadline.key,
                template_key=deadline.template_key,
                title=deadline.title,
                frequency=deadline.frequency,
                period_start=deadline.period_start,
                period_end=deadline.period_end,
                due_date=deadline.due_date,
                status=obligation_status(deadline.due_date, today, current, due_soon_days),
            )
        )
    obligations.sort(key=lambda o: (o.due_date, o.key))
    return obligations


def refresh_statuses(
    obligations: Iterable[Obligation],
    today: date,
    due_soon_days: int = DEFAULT_DUE_SOON_DAYS,
) -> list[Obligation]:
    """Return copies of ``obligations`` with statuses recomputed for ``today``."""
    return [
        obligation.model_copy(
            update={
                "status": obligation_status(
                    obligation.due_date, today, obligation.status, due_soon_days
                )
            }
        )
        for obligation in obligations
    ]
