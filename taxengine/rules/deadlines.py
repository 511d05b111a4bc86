"""Deadline template resolution.

Expands year-independent deadline templates into concrete due dates and
reporting periods for one tax year. Day anchors past the end of a month
roll forward into the next month (31 April is 1 May).
"""

from __future__ import annotations

import calendar
import logging
from collections.abc import Iterable, Iterator, Mapping
from datetime import date, timedelta
from typing import Any

from taxengine.core.ontology import BusinessProfile

from .conditions import ConditionEvaluator, as_profile_mapping
from .errors import InvalidEvaluationInput
from .models import DeadlineFrequency, DeadlineTemplate, ResolvedDeadline

logger = logging.getLogger(__name__)

QUARTERS: tuple[tuple[int, int], ...] = ((1, 3), (4, 6), (7, 9), (10, 12))

# (period_start, period_end, due_date, key suffix)
Instance = tuple[date, date, date, str]


def _positive_int(value: Any) -> int | None:
    if isinstance(value, int) and not isinstance(value, bool) and value >= 1:
        return value
    return None


def _offset(value: Any) -> int | None:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


def _anchor(year: int, month: int, day: int) -> date:
    return date(year, month, 1) + timedelta(days=day - 1)


def _month_end(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def check_year(year: Any) -> int:
    """Reject years that cannot index a calendar."""
    if not isinstance(year, int) or isinstance(year, bool) or not 1 <= year <= 9999:
        raise InvalidEvaluationInput(f"year must be an integer in 1..9999, got {year!r}")
    return year


class DeadlineResolver:
    """Filters templates by applicability and expands them for a year."""

    def __init__(self, conditions: ConditionEvaluator | None = None):
        self.conditions = conditions or ConditionEvaluator()

    def resolve_deadlines(
        self,
        templates: Iterable[DeadlineTemplate],
        profile: BusinessProfile | Mapping[str, Any],
        year: int,
    ) -> list[ResolvedDeadline]:
        """Resolve every applicable template into dated instances, in template order."""
        if templates is None:
            raise InvalidEvaluationInput("templates must not be None")
        record = as_profile_mapping(profile)
        year = check_year(year)

        resolved: list[ResolvedDeadline] = []
        for template in templates:
            try:
                if template.applies_when is not None and not self.conditions.evaluate(
                    template.applies_when, record
                ):
                    continue
                resolved.extend(self._resolve_template(template, year))
            except Exception:
                logger.exception(
                    "Error resolving deadline template %s", getattr(template, "key", "<unknown>")
                )
        return resolved

    def _resolve_template(self, template: DeadlineTemplate, year: int) -> list[ResolvedDeadline]:
        sizing = template.sizing()
        return [
            ResolvedDeadline(
                key=f"{template.key}{suffix}",
                template_key=template.key,
                title=template.title,
                description=template.description,
                frequency=template.frequency,
                due_date=due_date,
                period_start=period_start,
                period_end=period_end,
                template=sizing,
            )
            for period_start, period_end, due_date, suffix in self.expand(template, year)
        ]

    def expand(self, template: DeadlineTemplate, year: int) -> list[Instance]:
        """Compute ``(period_start, period_end, due_date, key_suffix)`` tuples."""
        frequency = template.frequency
        if frequency in (DeadlineFrequency.ANNUAL.value, DeadlineFrequency.ONE_TIME.value):
            return list(self._expand_annual(template, year))
        if frequency == DeadlineFrequency.MONTHLY.value:
            periods = (
                (f":{month:02d}", date(year, month, 1), _month_end(year, month))
                for month in range(1, 13)
            )
            return list(self._expand_periods(template, periods))
        if frequency == DeadlineFrequency.QUARTERLY.value:
            periods = (
                (f":Q{index}", date(year, first, 1), _month_end(year, last))
                for index, (first, last) in enumerate(QUARTERS, start=1)
            )
            return list(self._expand_periods(template, periods))
        return []

    def _expand_annual(self, template: DeadlineTemplate, year: int) -> Iterator[Instance]:
        month = _positive_int(template.due_month)
        day = _positive_int(template.due_day)
        if month is None or month > 12 or day is None or day > 31:
            return
        offset = _offset(template.offset_days) or 0
        try:
            due_date = _anchor(year, month, day) + timedelta(days=offset)
        except OverflowError:
            logger.debug("Due date for %s in %s is out of range", template.key, year)
            return
        yield date(year, 1, 1), date(year, 12, 31), due_date, ""

    def _expand_periods(
        self,
        template: DeadlineTemplate,
        periods: Iterable[tuple[str, date, date]],
    ) -> Iterator[Instance]:
        day = _positive_int(template.due_day_of_month)
        offset = _offset(template.offset_days)
        if day is None and offset is None:
            return

        for suffix, period_start, period_end in periods:
            try:
                if day is not None:
                    base = _anchor(period_end.year, period_end.month, day)
                else:
                    base = period_end
                due_date = base + timedelta(days=offset or 0)
            except OverflowError:
                logger.debug("Due date for %s%s is out of range", template.key, suffix)
                continue
            yield period_start, period_end, due_date, suffix


_default_resolver = DeadlineResolver()


def resolve_deadlines(
    templates: Iterable[DeadlineTemplate],
    profile: BusinessProfile | Mapping[str, Any],
    year: int,
) -> list[ResolvedDeadline]:
    """Resolve deadlines with the shared stateless resolver."""
    return _default_resolver.resolve_deadlines(templates, profile, year)
