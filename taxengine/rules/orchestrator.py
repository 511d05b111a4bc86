"""Single entry point composing rule evaluation and deadline resolution."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from taxengine.core.ontology import BusinessProfile

from .conditions import ConditionEvaluator, as_profile_mapping
from .deadlines import DeadlineResolver, check_year
from .engine import RuleEvaluator
from .errors import InvalidEvaluationInput
from .models import (
    AppliedRuleDetail,
    EvaluationDebug,
    EvaluationResult,
    EvaluationSnapshot,
    RuleSet,
)


class EvaluationOrchestrator:
    """Evaluates a rule set for a profile and tax year.

    The rule set and profile are copied at the start of each call, so
    edits made to the caller's objects while an evaluation is running
    never leak into its result.
    """

    def __init__(self, conditions: ConditionEvaluator | None = None):
        conditions = conditions or ConditionEvaluator()
        self.rule_evaluator = RuleEvaluator(conditions)
        self.deadline_resolver = DeadlineResolver(conditions)

    def evaluate(
        self,
        rule_set: RuleSet,
        profile: BusinessProfile | Mapping[str, Any],
        year: int,
    ) -> EvaluationResult:
        """Evaluate rules, resolve deadlines and merge them into ``outputs.deadlines``."""
        snapshot, record, year = self._prepare(rule_set, profile, year)
        return self._evaluate(snapshot, record, year)

    def debug_evaluate(
        self,
        rule_set: RuleSet,
        profile: BusinessProfile | Mapping[str, Any],
        year: int,
    ) -> EvaluationDebug:
        """Evaluate and report which rules and templates contributed."""
        snapshot, record, year = self._prepare(rule_set, profile, year)
        result = self._evaluate(snapshot, record, year)

        applied = [match.key for match in result.matched_rules]
        applied_keys = set(applied)
        detail = [
            AppliedRuleDetail(
                key=rule.key,
                priority=rule.priority,
                type=rule.type,
                outcome_keys=list(rule.outcome.as_patch()),
                explanation=rule.explanation,
            )
            for rule in snapshot.rules
            if rule.key in applied_keys
        ]

        template_keys: list[str] = []
        for deadline in result.deadlines:
            if deadline.template_key not in template_keys:
                template_keys.append(deadline.template_key)

        return EvaluationDebug(
            tax_year=year,
            result=result,
            applied_rules=applied,
            applied_rules_detail=detail,
            applied_deadline_templates=template_keys,
            deadlines=result.deadlines,
        )

    def build_snapshot(
        self,
        rule_set: RuleSet,
        profile: BusinessProfile | Mapping[str, Any],
        year: int,
        result: EvaluationResult,
        evaluated_at: datetime,
    ) -> EvaluationSnapshot:
        """Freeze an evaluation into a JSON-safe audit record."""
        dumped = result.model_dump(mode="json", by_alias=True)
        return EvaluationSnapshot(
            rule_set_version=rule_set.version,
            tax_year=year,
            inputs=dict(as_profile_mapping(profile)),
            outputs=dumped["outputs"],
            explanations=dumped["explanations"],
            matched_rules=result.matched_rules,
            evaluated_at=evaluated_at,
        )

    def _prepare(
        self,
        rule_set: RuleSet,
        profile: BusinessProfile | Mapping[str, Any],
        year: int,
    ) -> tuple[RuleSet, dict[str, Any], int]:
        if rule_set is None:
            raise InvalidEvaluationInput("rule_set must not be None")
        if not isinstance(rule_set, RuleSet):
            raise InvalidEvaluationInput(
                f"rule_set must be a RuleSet, got {type(rule_set).__name__}"
            )
        if profile is None:
            raise InvalidEvaluationInput("profile must not be None")
        year = check_year(year)
        record = dict(as_profile_mapping(profile))
        return rule_set.model_copy(deep=True), record, year

    def _evaluate(self, rule_set: RuleSet, record: dict[str, Any], year: int) -> EvaluationResult:
        result = self.rule_evaluator.evaluate_rules(rule_set.rules, record)
        result.outputs["deadlines"] = self.deadline_resolver.resolve_deadlines(
            rule_set.deadline_templates, record, year
        )
        return result


_default_orchestrator = EvaluationOrchestrator()


def evaluate(
    rule_set: RuleSet,
    profile: BusinessProfile | Mapping[str, Any],
    year: int,
) -> EvaluationResult:
    """Evaluate a rule set with the shared stateless orchestrator."""
    return _default_orchestrator.evaluate(rule_set, profile, year)
