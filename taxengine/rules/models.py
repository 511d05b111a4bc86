"""Rule set, deadline template and evaluation result models."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

CAMEL_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)

# Output fields every evaluation result carries, with their backfill values.
REQUIRED_OUTPUT_DEFAULTS: dict[str, Any] = {
    "citStatus": "unknown",
    "vatStatus": "unknown",
    "whtStatus": "unknown",
    "complianceNote": "",
    "deadlines": [],
    "thresholds": {},
}


# =============================================================================
# Enumerations
# =============================================================================


class DeadlineFrequency(str, Enum):
    """How often a deadline template recurs."""

    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUAL = "annual"
    ONE_TIME = "one_time"


class RuleType(str, Enum):
    """Authoring category of a rule."""

    ELIGIBILITY = "eligibility"
    OBLIGATION = "obligation"
    DEADLINE = "deadline"
    THRESHOLD = "threshold"


class RuleSetStatus(str, Enum):
    """Publication status of a rule set."""

    DRAFT = "draft"
    ACTIVE = "active"
    ARCHIVED = "archived"


# =============================================================================
# Rules
# =============================================================================


class RuleOutcome(BaseModel):
    """Partial patch a matched rule merges into the output record.

    Recognized output fields are typed; any other key is kept as an
    extension field and merged verbatim.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    cit_status: str | None = Field(None, description="Companies income tax status")
    vat_status: str | None = Field(None, description="Value added tax status")
    wht_status: str | None = Field(None, description="Withholding tax status")
    compliance_note: str | None = Field(None, description="Free-text compliance note")
    thresholds: dict[str, Any] | None = Field(None, description="Threshold values applied")

    def as_patch(self) -> dict[str, Any]:
        """Return the keys this outcome sets, by output name."""
        return self.model_dump(by_alias=True, exclude_unset=True)


class Rule(BaseModel):
    """A prioritized, conditionally-applied patch to the output record."""

    model_config = CAMEL_CONFIG

    key: str = Field(..., description="Unique key within the rule set")
    priority: int = Field(0, description="Lower priorities are applied first")
    type: RuleType | None = Field(None, description="Authoring category")
    conditions: Any = Field(
        default_factory=dict,
        validation_alias=AliasChoices("conditions", "conditionsJson"),
        description="Condition tree; {} matches every profile",
    )
    outcome: RuleOutcome = Field(
        default_factory=RuleOutcome,
        validation_alias=AliasChoices("outcome", "outcomeJson"),
    )
    explanation: str = Field("", description="Human-readable reason for the outcome")


class DeadlineTemplate(BaseModel):
    """Year-independent description of a recurring or one-off filing deadline.

    ``due_month`` is 1-indexed (January is 1).
    """

    model_config = CAMEL_CONFIG

    key: str
    frequency: str = Field(..., description="monthly, quarterly, annual or one_time")
    due_day_of_month: int | None = Field(None, description="Day anchor for recurring templates")
    due_month: int | None = Field(None, description="Month anchor (1-12) for annual/one_time")
    due_day: int | None = Field(None, description="Day anchor (1-31) for annual/one_time")
    offset_days: int | None = Field(None, description="Days added to the anchored date")
    applies_when: Any = Field(
        None,
        validation_alias=AliasChoices("appliesWhen", "applies_when", "appliesWhenJson"),
        description="Optional applicability condition",
    )
    title: str = ""
    description: str = ""

    def sizing(self) -> dict[str, int | None]:
        """The anchor fields, keyed by their camelCase names."""
        return {
            "dueDayOfMonth": self.due_day_of_month,
            "dueMonth": self.due_month,
            "dueDay": self.due_day,
            "offsetDays": self.offset_days,
        }


class RuleSet(BaseModel):
    """A versioned, ordered collection of rules plus deadline templates."""

    model_config = CAMEL_CONFIG

    version: str = Field(..., description="Rule set version (e.g., '2026.1')")
    name: str = ""
    description: str | None = None
    status: RuleSetStatus = RuleSetStatus.DRAFT
    effective_from: date | None = None
    effective_to: date | None = None
    rules: list[Rule] = Field(default_factory=list)
    deadline_templates: list[DeadlineTemplate] = Field(default_factory=list)


# =============================================================================
# Evaluation Results
# =============================================================================


class MatchedRule(BaseModel):
    """A rule whose conditions held for the evaluated profile."""

    key: str
    explanation: str


class ResolvedDeadline(BaseModel):
    """A deadline template expanded for one period of a specific year."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    key: str
    template_key: str
    title: str
    description: str = ""
    frequency: str
    due_date: date
    period_start: date
    period_end: date
    template: dict[str, int | None] = Field(default_factory=dict)


class EvaluationResult(BaseModel):
    """Merged outputs of one evaluation with per-field provenance."""

    model_config = CAMEL_CONFIG

    outputs: dict[str, Any] = Field(default_factory=dict)
    explanations: dict[str, str] = Field(default_factory=dict)
    matched_rules: list[MatchedRule] = Field(default_factory=list)

    @property
    def deadlines(self) -> list[ResolvedDeadline]:
        return list(self.outputs.get("deadlines") or [])


class AppliedRuleDetail(BaseModel):
    """Debug view of a matched rule."""

    model_config = CAMEL_CONFIG

    key: str
    priority: int
    type: RuleType | None = None
    outcome_keys: list[str] = Field(default_factory=list)
    explanation: str = ""


class EvaluationDebug(BaseModel):
    """Evaluation result plus the detail an administrator needs to test a rule set."""

    model_config = CAMEL_CONFIG

    tax_year: int
    result: EvaluationResult
    applied_rules: list[str] = Field(default_factory=list)
    applied_rules_detail: list[AppliedRuleDetail] = Field(default_factory=list)
    applied_deadline_templates: list[str] = Field(default_factory=list)
    deadlines: list[ResolvedDeadline] = Field(default_factory=list)


class EvaluationSnapshot(BaseModel):
    """Immutable audit record of one evaluation."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    rule_set_version: str
    tax_year: int
    inputs: dict[str, Any]
    outputs: dict[str, Any]
    explanations: dict[str, str]
    matched_rules: list[MatchedRule]
    evaluated_at: datetime
