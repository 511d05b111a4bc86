"""YAML rule set loader and active rule set selection."""

from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path

import yaml

from .errors import NoActiveRuleSetError, RuleSetNotFoundError
from .models import RuleSet, RuleSetStatus
from .validation import validate_rule_set

logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")


class RuleSetLoader:
    """Loads and validates rule sets from YAML files or directories."""

    def __init__(self, rules_dir: str | Path | None = None, validate: bool = True):
        self.rules_dir = Path(rules_dir) if rules_dir else None
        self.validate = validate
        self._rule_sets: dict[str, RuleSet] = {}

    def load_file(self, path: str | Path) -> RuleSet:
        """Load one rule set from a YAML file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Rule set file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            content = yaml.safe_load(f)

        if not isinstance(content, dict):
            raise ValueError(f"Rule set file must contain a mapping: {path}")

        return self.add(RuleSet.model_validate(content))

    def rule_files(self, path: str | Path | None = None) -> list[Path]:
        """The YAML rule set files under ``path``, or ``path`` itself if it is a file."""
        path = Path(path) if path else self.rules_dir
        if not path:
            raise ValueError("No rules directory specified")
        if not path.exists():
            raise FileNotFoundError(f"Rules directory not found: {path}")
        if path.is_file():
            return [path]
        return [
            yaml_file
            for yaml_file in sorted(path.iterdir())
            if yaml_file.suffix in YAML_SUFFIXES and yaml_file.stem != "schema"
        ]

    def load_directory(self, path: str | Path | None = None) -> list[RuleSet]:
        """Load every YAML rule set in a directory."""
        rule_sets = []
        for yaml_file in self.rule_files(path):
            try:
                rule_sets.append(self.load_file(yaml_file))
            except Exception as e:
                logger.warning("Failed to load rule set %s: %s", yaml_file, e)

        return rule_sets

    def load(self, path: str | Path | None = None) -> list[RuleSet]:
        """Load a single file or a whole directory."""
        path = Path(path) if path else self.rules_dir
        if path is not None and path.is_file():
            return [self.load_file(path)]
        return self.load_directory(path)

    def add(self, rule_set: RuleSet) -> RuleSet:
        """Register an in-memory rule set, validating it and ordering its rules."""
        if self.validate:
            validate_rule_set(rule_set)
        ordered = rule_set.model_copy(
            update={"rules": sorted(rule_set.rules, key=lambda r: r.priority)}
        )
        self._rule_sets[ordered.version] = ordered
        return ordered

    def get(self, version: str) -> RuleSet:
        """Get a loaded rule set by version."""
        try:
            return self._rule_sets[version]
        except KeyError:
            raise RuleSetNotFoundError(f"Rule set not found: {version}") from None

    def list_rule_sets(self) -> list[RuleSet]:
        """All loaded rule sets, most recently effective first."""
        return sorted(
            self._rule_sets.values(),
            key=lambda rs: (rs.effective_from or date.min, rs.version),
            reverse=True,
        )

    def get_active(self, as_of: date | datetime) -> RuleSet:
        """The active rule set whose effective window contains ``as_of``."""
        day = as_of.date() if isinstance(as_of, datetime) else as_of
        candidates = [
            rs
            for rs in self.list_rule_sets()
            if rs.status == RuleSetStatus.ACTIVE
            and (rs.effective_from is None or rs.effective_from <= day)
            and (rs.effective_to is None or rs.effective_to > day)
        ]
        if not candidates:
            raise NoActiveRuleSetError(f"No active tax rule set found for {day.isoformat()}")
        return candidates[0]

    def dump(self, rule_set: RuleSet, path: str | Path) -> Path:
        """Write a rule set to a YAML file."""
        path = Path(path)
        data = rule_set.model_dump(mode="json", by_alias=True, exclude_none=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, default_flow_style=False, allow_unicode=True, sort_keys=False)
        return path
