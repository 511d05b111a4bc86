"""Boolean condition evaluation against a business profile.

A condition is a JSON-shaped tree:

- ``{}`` matches every profile (baseline rules);
- ``{"and": [...]}`` / ``{"or": [...]}`` group sub-conditions;
- ``{"field": ..., "op": ..., "value": ...}`` tests one profile field with
  one of ``eq``, ``in``, ``gte``, ``lte``, ``exists``.

Evaluation fails closed: anything malformed evaluates to False.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from taxengine.core.ontology import BusinessProfile

from .errors import InvalidEvaluationInput

logger = logging.getLogger(__name__)

OPERATORS = frozenset({"eq", "in", "gte", "lte", "exists"})

_MISSING = object()


def as_profile_mapping(profile: BusinessProfile | Mapping[str, Any]) -> Mapping[str, Any]:
    """Normalize a profile argument to the flat record conditions read."""
    if isinstance(profile, BusinessProfile):
        return profile.to_flat_dict()
    if isinstance(profile, Mapping):
        return profile
    raise InvalidEvaluationInput(
        f"profile must be a BusinessProfile or a mapping, got {type(profile).__name__}"
    )


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def strict_equals(actual: Any, expected: Any) -> bool:
    """Equality without cross-type coercion (``True`` never equals ``1``)."""
    if isinstance(actual, bool) or isinstance(expected, bool):
        return isinstance(actual, bool) and isinstance(expected, bool) and actual is expected
    if _is_number(actual) and _is_number(expected):
        return actual == expected
    if isinstance(actual, str) and isinstance(expected, str):
        return actual == expected
    if type(actual) is not type(expected):
        return False
    return actual == expected


class ConditionEvaluator:
    """Evaluates condition trees. Stateless; safe to share between threads."""

    def evaluate(
        self,
        condition: Any,
        profile: BusinessProfile | Mapping[str, Any],
    ) -> bool:
        """Evaluate ``condition`` against ``profile``; never raises for bad conditions."""
        record = as_profile_mapping(profile)
        try:
            return self._evaluate(condition, record)
        except (TypeError, ValueError, ArithmeticError, RecursionError) as exc:
            logger.debug("Condition failed closed: %s", type(exc).__name__)
            return False

    def _evaluate(self, condition: Any, record: Mapping[str, Any]) -> bool:
        if not isinstance(condition, Mapping):
            return False

        # Empty condition matches all
        if len(condition) == 0:
            return True

        if condition.get("and") is not None:
            children = condition["and"]
            if not isinstance(children, (list, tuple)):
                return False
            return all(self._evaluate(child, record) for child in children)

        if condition.get("or") is not None:
            children = condition["or"]
            if not isinstance(children, (list, tuple)):
                return False
            return any(self._evaluate(child, record) for child in children)

        return self._evaluate_field(condition, record)

    def _evaluate_field(self, condition: Mapping[str, Any], record: Mapping[str, Any]) -> bool:
        field = condition.get("field")
        op = condition.get("op")
        if not isinstance(field, str) or not field or op not in OPERATORS:
            return False

        actual = record.get(field, _MISSING)
        expected = condition.get("value")

        if op == "exists":
            return actual is not _MISSING and actual is not None and actual != ""
        if actual is _MISSING:
            return False
        if op == "eq":
            return strict_equals(actual, expected)
        if op == "in":
            if not isinstance(expected, (list, tuple)):
                return False
            return any(strict_equals(actual, candidate) for candidate in expected)
        if op == "gte":
            return _is_number(actual) and _is_number(expected) and actual >= expected
        if op == "lte":
            return _is_number(actual) and _is_number(expected) and actual <= expected
        return False


_default_evaluator = ConditionEvaluator()


def evaluate_condition(condition: Any, profile: BusinessProfile | Mapping[str, Any]) -> bool:
    """Evaluate a condition with the shared stateless evaluator."""
    return _default_evaluator.evaluate(condition, profile)
