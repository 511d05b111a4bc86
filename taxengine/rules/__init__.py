"""Rules domain - condition evaluation, rule merging and deadline resolution."""

from .conditions import ConditionEvaluator, evaluate_condition
from .deadlines import DeadlineResolver, resolve_deadlines
from .engine import RuleEvaluator, evaluate_rules
from .errors import (
    InvalidEvaluationInput,
    NoActiveRuleSetError,
    RuleSetNotFoundError,
    RuleValidationError,
    TaxEngineError,
)
from .loader import RuleSetLoader
from .models import (
    AppliedRuleDetail,
    DeadlineFrequency,
    DeadlineTemplate,
    EvaluationDebug,
    EvaluationResult,
    EvaluationSnapshot,
    MatchedRule,
    ResolvedDeadline,
    Rule,
    RuleOutcome,
    RuleSet,
    RuleSetStatus,
    RuleType,
)
from .orchestrator import EvaluationOrchestrator, evaluate
from .service import TaxRulesService
from .validation import (
    collect_errors,
    validate_condition,
    validate_deadline_template,
    validate_rule,
    validate_rule_set,
)

__all__ = [
    # Engine
    "ConditionEvaluator",
    "RuleEvaluator",
    "DeadlineResolver",
    "EvaluationOrchestrator",
    "evaluate_condition",
    "evaluate_rules",
    "resolve_deadlines",
    "evaluate",
    # Models
    "AppliedRuleDetail",
    "DeadlineFrequency",
    "DeadlineTemplate",
    "EvaluationDebug",
    "EvaluationResult",
    "EvaluationSnapshot",
    "MatchedRule",
    "ResolvedDeadline",
    "Rule",
    "RuleOutcome",
    "RuleSet",
    "RuleSetStatus",
    "RuleType",
    # Loading and validation
    "RuleSetLoader",
    "TaxRulesService",
    "collect_errors",
    "validate_condition",
    "validate_deadline_template",
    "validate_rule",
    "validate_rule_set",
    # Errors
    "TaxEngineError",
    "InvalidEvaluationInput",
    "NoActiveRuleSetError",
    "RuleSetNotFoundError",
    "RuleValidationError",
]
