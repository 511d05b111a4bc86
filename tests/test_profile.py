"""Tests for the business profile model."""

import pytest
from pydantic import ValidationError

from taxengine.core.ontology import BusinessProfile
from taxengine.rules import evaluate_condition


class TestBusinessProfile:
    """Test profile construction and flattening."""

    def test_flat_dict_uses_camel_case(self, small_company: BusinessProfile):
        flat = small_company.to_flat_dict()
        assert flat["legalForm"] == "company"
        assert flat["annualTurnoverNGN"] == 30_000_000
        assert flat["fixedAssetsNGN"] == 20_000_000
        assert flat["vatRegistered"] is True
        assert "tin" not in flat

    def test_from_flat_dict_keeps_unknown_keys(self):
        profile = BusinessProfile.from_flat_dict(
            {
                "legalForm": "company",
                "annualTurnoverNGN": 1_000,
                "employee_count": 2,
                "exportsGoods": True,
            }
        )
        assert profile.legal_form == "company"
        assert profile.annual_turnover_ngn == 1_000
        assert profile.employee_count == 2
        assert profile.extra == {"exportsGoods": True}
        assert profile.get("exportsGoods") is True

    def test_round_trip_through_flat_dict(self, small_company: BusinessProfile):
        assert BusinessProfile.from_flat_dict(small_company.to_flat_dict()) == small_company

    def test_get_and_has(self, small_company: BusinessProfile):
        assert small_company.get("employeeCount") == 4
        assert small_company.get("tin", "none") == "none"
        assert small_company.has("sector")
        assert not small_company.has("cacNumber")

    def test_profile_is_frozen(self, small_company: BusinessProfile):
        with pytest.raises(ValidationError):
            small_company.sector = "services"

    def test_accounting_year_end_month_range(self):
        with pytest.raises(ValidationError):
            BusinessProfile(accounting_year_end_month=13)

    def test_constructor_does_not_coerce(self):
        with pytest.raises(ValidationError):
            BusinessProfile(vat_registered="yes")
        with pytest.raises(ValidationError):
            BusinessProfile(estimated_turnover="50000000")


class TestMistypedProfileValues:
    """Test that flat records reach conditions without coercion."""

    @pytest.fixture
    def profile(self) -> BusinessProfile:
        return BusinessProfile.from_flat_dict(
            {
                "legalForm": "company",
                "vatRegistered": "yes",
                "estimatedTurnover": "50000000",
                "accountingYearEndMonth": 13,
            }
        )

    def test_rejected_values_are_kept_raw(self, profile: BusinessProfile):
        assert profile.legal_form == "company"
        assert profile.vat_registered is None
        assert profile.estimated_turnover is None
        assert profile.get("vatRegistered") == "yes"
        assert profile.get("estimatedTurnover") == "50000000"
        assert profile.get("accountingYearEndMonth") == 13

    def test_string_flag_does_not_equal_true(self, profile: BusinessProfile):
        condition = {"field": "vatRegistered", "op": "eq", "value": True}
        assert not evaluate_condition(condition, profile)

    def test_string_amount_is_not_numeric(self, profile: BusinessProfile):
        condition = {"field": "estimatedTurnover", "op": "gte", "value": 25_000_000}
        assert not evaluate_condition(condition, profile)

    def test_well_typed_values_still_match(self):
        profile = BusinessProfile.from_flat_dict({"vatRegistered": True, "estimatedTurnover": 5e7})
        assert evaluate_condition({"field": "vatRegistered", "op": "eq", "value": True}, profile)
        assert evaluate_condition(
            {"field": "estimatedTurnover", "op": "gte", "value": 25_000_000}, profile
        )
