"""Evaluation service: active rule set lookup, evaluation and snapshots."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import date, datetime, timezone
from typing import Any

from taxengine.core.config import Settings, get_settings
from taxengine.core.ontology import BusinessProfile

from .loader import RuleSetLoader
from .models import EvaluationDebug, EvaluationResult, EvaluationSnapshot
from .orchestrator import EvaluationOrchestrator

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TaxRulesService:
    """Runs the engine against the active rule set.

    The clock is the only source of "now": it picks the active rule set
    and the default tax year, and stamps snapshots.
    """

    def __init__(
        self,
        loader: RuleSetLoader,
        clock: Clock | None = None,
        settings: Settings | None = None,
        orchestrator: EvaluationOrchestrator | None = None,
    ):
        self.loader = loader
        self.clock = clock or utc_now
        self.settings = settings or get_settings()
        self.orchestrator = orchestrator or EvaluationOrchestrator()

    def evaluate(
        self,
        profile: BusinessProfile | Mapping[str, Any],
        tax_year: int | None = None,
        as_of: date | datetime | None = None,
    ) -> EvaluationSnapshot:
        """Evaluate against the active rule set and return an audit snapshot."""
        now = self.clock()
        rule_set = self.loader.get_active(as_of or now)
        year = self.resolve_tax_year(tax_year, now)

        result = self.orchestrator.evaluate(rule_set, profile, year)
        logger.info(
            "Evaluated rule set %s for %s: %d rules matched, %d deadlines",
            rule_set.version,
            year,
            len(result.matched_rules),
            len(result.deadlines),
        )
        return self.orchestrator.build_snapshot(rule_set, profile, year, result, now)

    def preview(
        self,
        profile: BusinessProfile | Mapping[str, Any],
        tax_year: int | None = None,
        as_of: date | datetime | None = None,
    ) -> EvaluationResult:
        """Evaluate against the active rule set without producing a snapshot."""
        now = self.clock()
        rule_set = self.loader.get_active(as_of or now)
        return self.orchestrator.evaluate(rule_set, profile, self.resolve_tax_year(tax_year, now))

    def test_evaluation(
        self,
        version: str,
        profile: BusinessProfile | Mapping[str, Any],
        tax_year: int | None = None,
    ) -> EvaluationDebug:
        """Evaluate a specific rule set version, whatever its status, with debug detail."""
        rule_set = self.loader.get(version)
        year = self.resolve_tax_year(tax_year, self.clock())
        return self.orchestrator.debug_evaluate(rule_set, profile, year)

    def resolve_tax_year(self, tax_year: int | None, now: datetime) -> int:
        """Explicit year, else the configured default, else the year of ``now``."""
        if tax_year is not None:
            return tax_year
        if self.settings.default_tax_year is not None:
            return self.settings.default_tax_year
        return now.year
