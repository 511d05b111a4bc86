"""Tests for rule set loading and active rule set selection."""

from datetime import date, datetime, timezone
from pathlib import Path

import pytest
import yaml

from taxengine.rules import (
    NoActiveRuleSetError,
    RuleSet,
    RuleSetLoader,
    RuleSetNotFoundError,
    RuleSetStatus,
    RuleType,
    RuleValidationError,
)


def write_rule_set(path: Path, **overrides) -> Path:
    data = {
        "version": "x.1",
        "name": "X",
        "status": "active",
        "effectiveFrom": "2026-01-01",
        "rules": [
            {
                "key": "base",
                "priority": 0,
                "conditions": {},
                "outcome": {"citStatus": "liable"},
                "explanation": "Base",
            }
        ],
        "deadlineTemplates": [],
    }
    data.update(overrides)
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


class TestRuleSetLoader:
    """Test loading YAML rule sets."""

    def test_load_bundled_directory(self, rules_dir: Path):
        loader = RuleSetLoader(rules_dir)
        rule_sets = loader.load_directory()
        assert [rs.version for rs in rule_sets] == ["2026.1"]

    def test_bundled_rule_set_content(self, bundled_rule_set: RuleSet):
        assert bundled_rule_set.status == RuleSetStatus.ACTIVE
        assert bundled_rule_set.effective_from == date(2026, 1, 1)
        assert bundled_rule_set.rules[0].key == "baseline_defaults"
        assert bundled_rule_set.rules[0].type == RuleType.ELIGIBILITY
        assert bundled_rule_set.rules[0].conditions == {}
        assert len(bundled_rule_set.deadline_templates) == 6

    def test_rules_are_sorted_by_priority(self, tmp_path: Path):
        path = write_rule_set(
            tmp_path / "x.yaml",
            rules=[
                {"key": "b", "priority": 5, "outcome": {"citStatus": "b"}},
                {"key": "a", "priority": 1, "outcome": {"citStatus": "a"}},
                {"key": "c", "priority": 5, "outcome": {"citStatus": "c"}},
            ],
        )
        rule_set = RuleSetLoader().load_file(path)
        assert [r.key for r in rule_set.rules] == ["a", "b", "c"]

    def test_load_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            RuleSetLoader().load_file(tmp_path / "missing.yaml")

    def test_invalid_rule_set_fails_validation(self, tmp_path: Path):
        path = write_rule_set(
            tmp_path / "bad.yaml",
            rules=[{"key": "r", "conditions": {"field": "a", "op": "neq", "value": 1}}],
        )
        with pytest.raises(RuleValidationError) as exc_info:
            RuleSetLoader().load_file(path)
        assert exc_info.value.path == "rules[0].conditions.op"

    def test_validation_can_be_disabled(self, tmp_path: Path):
        path = write_rule_set(
            tmp_path / "bad.yaml",
            rules=[{"key": "r", "conditions": {"all": []}}],
        )
        rule_set = RuleSetLoader(validate=False).load_file(path)
        assert rule_set.rules[0].conditions == {"all": []}

    def test_directory_skips_broken_files(self, tmp_path: Path):
        write_rule_set(tmp_path / "good.yaml")
        (tmp_path / "broken.yaml").write_text("- just\n- a list\n", encoding="utf-8")
        (tmp_path / "schema.yaml").write_text("type: object\n", encoding="utf-8")
        (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")

        loader = RuleSetLoader(tmp_path)
        assert [rs.version for rs in loader.load_directory()] == ["x.1"]

    def test_load_accepts_file_or_directory(self, tmp_path: Path):
        path = write_rule_set(tmp_path / "x.yml")
        assert [rs.version for rs in RuleSetLoader().load(path)] == ["x.1"]
        assert [rs.version for rs in RuleSetLoader(tmp_path).load()] == ["x.1"]

    def test_get_unknown_version(self, rule_loader: RuleSetLoader):
        with pytest.raises(RuleSetNotFoundError):
            rule_loader.get("1999.1")

    def test_dump_and_reload(self, tmp_path: Path, bundled_rule_set: RuleSet):
        loader = RuleSetLoader()
        path = loader.dump(bundled_rule_set, tmp_path / "copy.yaml")
        reloaded = RuleSetLoader().load_file(path)
        assert reloaded.model_dump() == bundled_rule_set.model_dump()

    def test_original_field_names_are_accepted(self, tmp_path: Path):
        path = write_rule_set(
            tmp_path / "legacy.yaml",
            rules=[
                {
                    "key": "r",
                    "priority": 1,
                    "conditionsJson": {"field": "vatRegistered", "op": "eq", "value": True},
                    "outcomeJson": {"vatStatus": "registered"},
                    "explanation": "VAT",
                }
            ],
        )
        rule_set = RuleSetLoader().load_file(path)
        assert rule_set.rules[0].outcome.vat_status == "registered"


class TestActiveRuleSet:
    """Test effective-window selection."""

    @pytest.fixture
    def loader(self) -> RuleSetLoader:
        loader = RuleSetLoader()
        loader.add(
            RuleSet(
                version="2025.1",
                status=RuleSetStatus.ARCHIVED,
                effective_from=date(2025, 1, 1),
                effective_to=date(2026, 1, 1),
            )
        )
        loader.add(
            RuleSet(
                version="2026.1",
                status=RuleSetStatus.ACTIVE,
                effective_from=date(2026, 1, 1),
                effective_to=date(2026, 7, 1),
            )
        )
        loader.add(
            RuleSet(version="2026.2", status=RuleSetStatus.ACTIVE, effective_from=date(2026, 7, 1))
        )
        loader.add(RuleSet(version="2027.1", status=RuleSetStatus.DRAFT))
        return loader

    def test_selects_window_containing_date(self, loader):
        assert loader.get_active(date(2026, 3, 1)).version == "2026.1"
        assert loader.get_active(date(2026, 7, 1)).version == "2026.2"
        assert loader.get_active(datetime(2030, 1, 1, tzinfo=timezone.utc)).version == "2026.2"

    def test_archived_and_draft_are_never_active(self, loader):
        with pytest.raises(NoActiveRuleSetError):
            loader.get_active(date(2025, 6, 1))

    def test_latest_effective_from_wins(self):
        loader = RuleSetLoader()
        loader.add(RuleSet(version="a", status="active", effective_from=date(2026, 1, 1)))
        loader.add(RuleSet(version="b", status="active", effective_from=date(2026, 2, 1)))
        assert loader.get_active(date(2026, 3, 1)).version == "b"

    def test_empty_loader_has_no_active_set(self):
        with pytest.raises(NoActiveRuleSetError):
            RuleSetLoader().get_active(date(2026, 1, 1))

    def test_list_rule_sets_order(self, loader):
        assert [rs.version for rs in loader.list_rule_sets()] == [
            "2026.2",
            "2026.1",
            "2025.1",
            "2027.1",
        ]
