"""Exceptions raised by the rules domain."""

from __future__ import annotations


class TaxEngineError(Exception):
    """Base class for tax engine errors."""


class InvalidEvaluationInput(TaxEngineError, ValueError):
    """An evaluation was called with arguments it cannot work with."""


class NoActiveRuleSetError(TaxEngineError, LookupError):
    """No rule set is active at the requested instant."""


class RuleSetNotFoundError(TaxEngineError, LookupError):
    """No rule set is registered under the requested version."""


class RuleValidationError(TaxEngineError, ValueError):
    """A rule, condition or deadline template failed write-time validation."""

    def __init__(self, path: str, message: str):
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}")
