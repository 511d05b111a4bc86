"""Write-time validation for rules, conditions and deadline templates.

Evaluation tolerates malformed data by failing closed; these checks are
what an administrative layer runs before a rule set is saved or loaded,
so authoring mistakes surface as errors instead of silent non-matches.
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from .conditions import OPERATORS
from .errors import RuleValidationError
from .models import DeadlineFrequency, DeadlineTemplate, Rule, RuleSet

STRING_OUTCOME_KEYS = ("citStatus", "vatStatus", "whtStatus", "complianceNote")
LEGACY_GROUP_KEYS = {"all": "and", "any": "or"}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


# =============================================================================
# Conditions
# =============================================================================


def validate_condition(condition: Any, path: str = "conditions") -> None:
    """Raise RuleValidationError if ``condition`` is not a well-formed tree."""
    if not isinstance(condition, Mapping):
        raise RuleValidationError(path, "condition must be an object")

    if len(condition) == 0:
        return

    for group in ("and", "or"):
        if group in condition:
            children = condition[group]
            if not isinstance(children, list):
                raise RuleValidationError(f"{path}.{group}", f"'{group}' must be a list")
            for index, child in enumerate(children):
                validate_condition(child, f"{path}.{group}[{index}]")
            return

    for legacy, replacement in LEGACY_GROUP_KEYS.items():
        if legacy in condition:
            raise RuleValidationError(
                f"{path}.{legacy}", f"'{legacy}' groups are not supported; use '{replacement}'"
            )

    field = condition.get("field")
    op = condition.get("op")
    if not isinstance(field, str) or not field:
        raise RuleValidationError(path, "condition must have a non-empty 'field'")
    if op not in OPERATORS:
        raise RuleValidationError(
            f"{path}.op", f"invalid op {op!r}; must be one of: {', '.join(sorted(OPERATORS))}"
        )
    if op == "exists":
        return
    if "value" not in condition:
        raise RuleValidationError(path, f"condition with op '{op}' must have a value")

    value = condition["value"]
    if op == "in" and not isinstance(value, list):
        raise RuleValidationError(f"{path}.value", "'in' requires a list value")
    if op in ("gte", "lte") and not _is_number(value):
        raise RuleValidationError(f"{path}.value", f"'{op}' requires a numeric value")


# =============================================================================
# Rules and Templates
# =============================================================================


def validate_outcome(outcome: Any, path: str = "outcome") -> None:
    """Check the recognized output keys of an outcome patch."""
    patch = outcome.as_patch() if hasattr(outcome, "as_patch") else outcome
    if not isinstance(patch, Mapping):
        raise RuleValidationError(path, "outcome must be an object")
    for key in STRING_OUTCOME_KEYS:
        if key in patch and not isinstance(patch[key], str):
            raise RuleValidationError(f"{path}.{key}", "must be a string")
    if "thresholds" in patch and not isinstance(patch["thresholds"], Mapping):
        raise RuleValidationError(f"{path}.thresholds", "must be an object")
    if "deadlines" in patch:
        raise RuleValidationError(
            f"{path}.deadlines", "deadlines come from deadline templates, not rule outcomes"
        )


def validate_rule(rule: Rule, path: str = "rule") -> None:
    """Validate a rule's conditions and outcome."""
    if not isinstance(rule.key, str) or not rule.key:
        raise RuleValidationError(f"{path}.key", "rule key must be a non-empty string")
    validate_condition(rule.conditions, f"{path}.conditions")
    validate_outcome(rule.outcome, f"{path}.outcome")


def validate_deadline_template(template: DeadlineTemplate, path: str = "template") -> None:
    """Validate a template's frequency, anchors and applicability condition."""
    frequencies = {f.value for f in DeadlineFrequency}
    if template.frequency not in frequencies:
        raise RuleValidationError(
            f"{path}.frequency",
            f"invalid frequency {template.frequency!r}; must be one of: "
            f"{', '.join(sorted(frequencies))}",
        )

    if template.offset_days is not None and not _is_int(template.offset_days):
        raise RuleValidationError(f"{path}.offsetDays", "must be an integer")

    if template.frequency in (DeadlineFrequency.ANNUAL.value, DeadlineFrequency.ONE_TIME.value):
        if not _is_int(template.due_month) or not 1 <= template.due_month <= 12:
            raise RuleValidationError(
                f"{path}.dueMonth", "must be a month number from 1 (January) to 12"
            )
        if not _is_int(template.due_day) or not 1 <= template.due_day <= 31:
            raise RuleValidationError(f"{path}.dueDay", "must be a day from 1 to 31")
    else:
        day = template.due_day_of_month
        if day is None and template.offset_days is None:
            raise RuleValidationError(
                path, f"{template.frequency} templates need dueDayOfMonth or offsetDays"
            )
        if day is not None and (not _is_int(day) or not 1 <= day <= 31):
            raise RuleValidationError(f"{path}.dueDayOfMonth", "must be a day from 1 to 31")

    if template.applies_when is not None:
        validate_condition(template.applies_when, f"{path}.appliesWhen")


def collect_errors(rule_set: RuleSet) -> list[RuleValidationError]:
    """Validate a whole rule set and return every error found."""
    errors: list[RuleValidationError] = []

    seen_rules: set[str] = set()
    for index, rule in enumerate(rule_set.rules):
        path = f"rules[{index}]"
        if rule.key in seen_rules:
            errors.append(RuleValidationError(f"{path}.key", f"duplicate rule key {rule.key!r}"))
        seen_rules.add(rule.key)
        try:
            validate_rule(rule, path)
        except RuleValidationError as exc:
            errors.append(exc)

    seen_templates: set[str] = set()
    for index, template in enumerate(rule_set.deadline_templates):
        path = f"deadlineTemplates[{index}]"
        if template.key in seen_templates:
            errors.append(
                RuleValidationError(f"{path}.key", f"duplicate template key {template.key!r}")
            )
        seen_templates.add(template.key)
        try:
            validate_deadline_template(template, path)
        except RuleValidationError as exc:
            errors.append(exc)

    return errors


def validate_rule_set(rule_set: RuleSet) -> None:
    """Raise the first validation error in ``rule_set``, if any."""
    errors = collect_errors(rule_set)
    if errors:
        raise errors[0]
