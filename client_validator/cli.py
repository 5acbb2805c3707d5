from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from typing import Any

from validatorkit import ConfigurationError

from client_validator.framework.config import OUTPUT_STYLES, RECORD_POLICIES

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="client-validator", add_help=True)
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Validate registered features and print the report")
    run.add_argument("--config", default=None, help="Config file (default: config/config.yaml)")
    run.add_argument("--record", choices=RECORD_POLICIES, default=None, help="Records to show")
    run.add_argument(
        "--show-log", action="store_true", default=None, help="Include record logs in the report"
    )
    run.add_argument("--output", choices=OUTPUT_STYLES, default=None, help="Report style")
    run.add_argument(
        "--content", action="append", default=[], metavar="MODULE", help="Extra content module"
    )
    run.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 1 when any feature ends FAIL or DEFECT",
    )

    listing = sub.add_parser("list", help="List registered features, stories and tests")
    listing.add_argument("--config", default=None)
    listing.add_argument("--content", action="append", default=[], metavar="MODULE")

    return parser


def _overrides(args: argparse.Namespace) -> dict[str, Any]:
    output: dict[str, Any] = {}
    if args.record is not None:
        output["record"] = args.record
    if args.show_log:
        output["show_log"] = True
    if args.output is not None:
        output["style"] = args.output
    return {"output": output} if output else {}


def _list(args: argparse.Namespace) -> int:
    from .app.validate import build_registry, load_validator_config

    cfg = load_validator_config(config_path=args.config)
    snapshot = build_registry(cfg, extra_modules=args.content).snapshot()
    for feature in snapshot.features:
        requires = ", ".join(feature.requires) or "<none>"
        print(f"{feature.key}: {feature.description} (requires: {requires})")
    for story in snapshot.stories:
        print(f"# {story.description}: {', '.join(story.features)}")
    for test in snapshot.tests:
        requires = ", ".join(test.requires) or "<none>"
        print(f"test {test.description} (requires: {requires})")
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(list(argv) if argv is not None else None)

    try:
        if args.command == "list":
            return _list(args)

        if args.command == "run":
            from .app.validate import main as validate_main

            outcome = validate_main(
                config_path=args.config,
                overrides=_overrides(args),
                extra_modules=args.content,
            )
            print(outcome.rendered)
            if args.strict and outcome.has_failures:
                return EXIT_FAILURES
            return EXIT_OK
    except (ConfigurationError, ValueError, FileNotFoundError) as exc:
        print(f"client-validator: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    raise AssertionError(f"Unhandled command: {args.command}")


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main(sys.argv[1:]))
