"""Command line interface for evaluating and validating rule sets."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from taxengine.core.config import get_settings
from taxengine.core.ontology import BusinessProfile
from taxengine.obligations import build_obligations
from taxengine.rules import (
    NoActiveRuleSetError,
    RuleSetLoader,
    RuleSetNotFoundError,
    TaxRulesService,
    collect_errors,
)

logger = logging.getLogger(__name__)


def _load_profile(path: str) -> BusinessProfile:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise SystemExit(f"Profile file must contain a mapping: {path}")
    return BusinessProfile.from_flat_dict(data)


def _dump(payload: Any, fmt: str) -> str:
    if fmt == "json":
        return json.dumps(payload, indent=2, sort_keys=True)
    return yaml.safe_dump(payload, sort_keys=True, allow_unicode=True)


def _build_service(args: argparse.Namespace, validate: bool = True) -> TaxRulesService:
    loader = RuleSetLoader(args.rules, validate=validate)
    loader.load()
    return TaxRulesService(loader)


def _cmd_evaluate(args: argparse.Namespace) -> int:
    service = _build_service(args)
    profile = _load_profile(args.profile)
    as_of = datetime.fromisoformat(args.as_of) if args.as_of else None

    if args.debug:
        version = args.version or service.loader.get_active(as_of or service.clock()).version
        debug = service.test_evaluation(version, profile, args.year)
        payload = debug.model_dump(mode="json", by_alias=True)
    elif args.version:
        result = service.orchestrator.evaluate(
            service.loader.get(args.version),
            profile,
            service.resolve_tax_year(args.year, service.clock()),
        )
        payload = result.model_dump(mode="json", by_alias=True)
    else:
        snapshot = service.evaluate(profile, args.year, as_of)
        payload = snapshot.model_dump(mode="json", by_alias=True)

    print(_dump(payload, args.format))
    return 0


def _cmd_validate(args: argparse.Namespace) -> int:
    loader = RuleSetLoader(args.rules, validate=False)
    valid = 0
    failures = 0
    for path in loader.rule_files():
        try:
            rule_set = loader.load_file(path)
        except (ValidationError, yaml.YAMLError, ValueError) as exc:
            print(f"{path}: {exc}")
            failures += 1
            continue
        errors = collect_errors(rule_set)
        for error in errors:
            print(f"{rule_set.version}: {error}")
        failures += len(errors)
        if not errors:
            valid += 1
    if failures:
        print(f"{failures} validation error(s)")
        return 1
    print(f"{valid} rule set(s) valid")
    return 0


def _cmd_obligations(args: argparse.Namespace) -> int:
    service = _build_service(args)
    profile = _load_profile(args.profile)
    today = date.fromisoformat(args.today) if args.today else service.clock().date()

    result = service.preview(profile, args.year or today.year, today)
    obligations = build_obligations(
        result.deadlines, today, due_soon_days=service.settings.due_soon_days
    )
    payload = [o.model_dump(mode="json", by_alias=True) for o in obligations]
    print(_dump(payload, args.format))
    return 0


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(prog="taxengine", description=settings.app_name)
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        help=f"Logging level (default: {settings.log_level}).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common(sub: argparse.ArgumentParser) -> None:
        sub.add_argument(
            "--rules",
            default=settings.rules_dir,
            help="Rule set YAML file or directory (default: bundled rules).",
        )
        sub.add_argument(
            "--format",
            choices=("json", "yaml"),
            default="json",
            help="Output format (default: json).",
        )

    evaluate = subparsers.add_parser("evaluate", help="Evaluate a business profile.")
    add_common(evaluate)
    evaluate.add_argument("--profile", required=True, help="Business profile YAML/JSON file.")
    evaluate.add_argument(
        "--version", help="Evaluate this rule set version instead of the active one."
    )
    evaluate.add_argument("--year", type=int, help="Tax year (default: current year).")
    evaluate.add_argument("--as-of", help="ISO date/time used to pick the active rule set.")
    evaluate.add_argument("--debug", action="store_true", help="Include applied rule detail.")
    evaluate.set_defaults(handler=_cmd_evaluate)

    validate = subparsers.add_parser("validate", help="Validate rule sets.")
    add_common(validate)
    validate.set_defaults(handler=_cmd_validate)

    obligations = subparsers.add_parser("obligations", help="List filing obligations.")
    add_common(obligations)
    obligations.add_argument("--profile", required=True, help="Business profile YAML/JSON file.")
    obligations.add_argument("--year", type=int, help="Tax year (default: current year).")
    obligations.add_argument("--today", help="ISO date statuses are computed for.")
    obligations.set_defaults(handler=_cmd_obligations)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        return args.handler(args)
    except (NoActiveRuleSetError, RuleSetNotFoundError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
