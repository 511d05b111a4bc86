"""Pytest fixtures for test suite."""

from datetime import datetime, timezone
from pathlib import Path

import pytest

from taxengine.core.config import BUNDLED_RULES_DIR, Settings
from taxengine.core.ontology import BusinessProfile
from taxengine.rules import (
    DeadlineTemplate,
    Rule,
    RuleSet,
    RuleSetLoader,
    RuleSetStatus,
    TaxRulesService,
)


# =============================================================================
# Core Fixtures
# =============================================================================


@pytest.fixture
def rules_dir() -> Path:
    """Path to the bundled rules directory."""
    return BUNDLED_RULES_DIR


@pytest.fixture
def rule_loader(rules_dir: Path) -> RuleSetLoader:
    """Rule set loader with the bundled rule sets loaded."""
    loader = RuleSetLoader(rules_dir)
    loader.load_directory()
    return loader


@pytest.fixture
def bundled_rule_set(rule_loader: RuleSetLoader) -> RuleSet:
    """The bundled 2026 rule set."""
    return rule_loader.get("2026.1")


@pytest.fixture
def fixed_clock():
    """Clock pinned to 15 March 2026, 09:00 UTC."""
    return lambda: datetime(2026, 3, 15, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def service(rule_loader: RuleSetLoader, fixed_clock) -> TaxRulesService:
    """Evaluation service over the bundled rules with a fixed clock."""
    return TaxRulesService(rule_loader, clock=fixed_clock, settings=Settings())


# =============================================================================
# Profiles
# =============================================================================


@pytest.fixture
def small_company() -> BusinessProfile:
    """Small VAT-registered trading company with staff."""
    return BusinessProfile(
        legal_form="company",
        sector="retail",
        state="Lagos",
        annual_turnover_ngn=30_000_000,
        fixed_assets_ngn=20_000_000,
        vat_registered=True,
        employee_count=4,
    )


@pytest.fixture
def sole_trader() -> dict:
    """Unregistered sole proprietor as a flat record."""
    return {
        "legalForm": "sole_proprietorship",
        "sector": "services",
        "vatRegistered": False,
        "annualTurnoverNGN": 3_000_000,
    }


# =============================================================================
# Rules and Templates
# =============================================================================


@pytest.fixture
def baseline_rule() -> Rule:
    """Rule matching every profile."""
    return Rule(
        key="baseline",
        priority=0,
        conditions={},
        outcome={"citStatus": "liable", "complianceNote": "Baseline"},
        explanation="Baseline position",
    )


@pytest.fixture
def monthly_template() -> DeadlineTemplate:
    """Monthly template due on the 5th."""
    return DeadlineTemplate(
        key="vat_return",
        frequency="monthly",
        due_day_of_month=5,
        title="VAT return",
        description="Monthly VAT return",
    )


@pytest.fixture
def simple_rule_set(baseline_rule: Rule, monthly_template: DeadlineTemplate) -> RuleSet:
    """Small in-memory rule set."""
    return RuleSet(
        version="test.1",
        name="Test rules",
        status=RuleSetStatus.ACTIVE,
        rules=[
            baseline_rule,
            Rule(
                key="vat_registered",
                priority=10,
                conditions={"field": "vatRegistered", "op": "eq", "value": True},
                outcome={"vatStatus": "registered"},
                explanation="Registered for VAT",
            ),
        ],
        deadline_templates=[monthly_template],
    )
