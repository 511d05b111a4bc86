"""Rule evaluation: match, merge and explain."""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from taxengine.core.ontology import BusinessProfile

from .conditions import ConditionEvaluator, as_profile_mapping
from .errors import InvalidEvaluationInput
from .models import REQUIRED_OUTPUT_DEFAULTS, EvaluationResult, MatchedRule, Rule

logger = logging.getLogger(__name__)


def _priority(rule: Rule) -> int | float:
    priority = getattr(rule, "priority", 0)
    if isinstance(priority, (int, float)) and not isinstance(priority, bool):
        return priority
    logger.warning(
        "Rule %s has non-numeric priority %r; ordering it as 0",
        getattr(rule, "key", "<unknown>"),
        priority,
    )
    return 0


def _outcome_patch(rule: Rule) -> dict[str, Any]:
    outcome = rule.outcome
    if isinstance(outcome, Mapping):
        patch = dict(outcome)
    else:
        patch = outcome.as_patch()
    return copy.deepcopy(patch)


class RuleEvaluator:
    """Applies matched rules in ascending priority; later matches overwrite earlier ones."""

    def __init__(self, conditions: ConditionEvaluator | None = None):
        self.conditions = conditions or ConditionEvaluator()

    def evaluate_rules(
        self,
        rules: Iterable[Rule],
        profile: BusinessProfile | Mapping[str, Any],
    ) -> EvaluationResult:
        """Evaluate ``rules`` against ``profile`` and merge matched outcomes."""
        if rules is None:
            raise InvalidEvaluationInput("rules must not be None")
        record = as_profile_mapping(profile)

        outputs: dict[str, Any] = {}
        explanations: dict[str, str] = {}
        matched: list[MatchedRule] = []

        # sorted() is stable, so equal priorities keep authoring order
        for rule in sorted(rules, key=_priority):
            try:
                if not self.conditions.evaluate(rule.conditions, record):
                    continue
                patch = _outcome_patch(rule)
                explanation = rule.explanation
                match = MatchedRule(key=rule.key, explanation=explanation)
            except Exception:
                logger.exception("Error evaluating rule %s", getattr(rule, "key", "<unknown>"))
                continue

            outputs.update(patch)
            for key in patch:
                explanations[key] = explanation
            matched.append(match)

        for key, default in REQUIRED_OUTPUT_DEFAULTS.items():
            if outputs.get(key) is None:
                outputs[key] = copy.deepcopy(default)

        return EvaluationResult(
            outputs=outputs,
            explanations=explanations,
            matched_rules=matched,
        )


_default_evaluator = RuleEvaluator()


def evaluate_rules(
    rules: Iterable[Rule],
    profile: BusinessProfile | Mapping[str, Any],
) -> EvaluationResult:
    """Evaluate rules with the shared stateless evaluator."""
    return _default_evaluator.evaluate_rules(rules, profile)
