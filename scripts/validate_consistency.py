#!/usr/bin/env python3
"""CLI script to validate position classification consistency across views.

Each ``--page NAME=FILE`` names a JSON file holding an array of position
objects for one detailed view. ``--direct`` and ``--indirect`` name the two
aggregation pages. Exits with status 1 when the report is not valid.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

# Ensure the project source is importable when running the script directly.
_project_root = Path(__file__).resolve().parent.parent
_src = _project_root / "src"
if str(_src) not in sys.path:
    sys.path.insert(0, str(_src))

from workforce.classification.loader import load_configured_rule_set, load_rule_set  # noqa: E402
from workforce.classification.rules import ClassificationEngine  # noqa: E402
from workforce.core.config import Settings  # noqa: E402
from workforce.governance.validation_log import RecordingValidationLogger  # noqa: E402
from workforce.review.formatting import export_report, format_report, report_to_json  # noqa: E402
from workforce.review.report import ConsistencyReporter  # noqa: E402


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Validate workforce classification consistency across views."
    )
    parser.add_argument(
        "--page",
        action="append",
        default=[],
        metavar="NAME=FILE",
        help="A detailed view: page name and JSON file of positions. Repeatable.",
    )
    parser.add_argument("--direct", type=str, default=None, help="JSON file of the direct aggregation page.")
    parser.add_argument("--indirect", type=str, default=None, help="JSON file of the indirect aggregation page.")
    parser.add_argument("--rules", type=str, default=None, help="YAML rule file (overrides settings).")
    parser.add_argument("--format", choices=["text", "json"], default="text", help="Output format.")
    parser.add_argument("--output", type=str, default=None, help="Path to write the JSON report.")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging.")
    return parser.parse_args(argv)


def load_positions(path: str | Path) -> list:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON array of positions")
    return data


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    settings = Settings()
    verbose = args.verbose or settings.debug
    logging.basicConfig(level=logging.DEBUG if verbose else settings.log_level.upper())

    pages: dict[str, list] = {}
    for spec in args.page:
        name, sep, file = spec.partition("=")
        if not sep or not name or not file:
            print(f"Invalid --page value {spec!r}; expected NAME=FILE", file=sys.stderr)
            return 2
        pages[name] = load_positions(file)
    if not pages:
        print("At least one --page is required.", file=sys.stderr)
        return 2

    rule_set = load_rule_set(args.rules) if args.rules else load_configured_rule_set(settings)
    log = RecordingValidationLogger(settings.validation_log)
    engine = ClassificationEngine(rule_set, log=log)
    reporter = ConsistencyReporter(engine, log=log)

    direct = load_positions(args.direct) if args.direct else None
    indirect = load_positions(args.indirect) if args.indirect else None
    report = reporter.validate_application(pages, direct_page=direct, indirect_page=indirect)

    if args.format == "json":
        print(report_to_json(report))
    else:
        print(format_report(report))

    if args.output:
        export_report(report, args.output)
        print(f"Report written to {args.output}", file=sys.stderr)

    if verbose:
        summary = log.error_summary()
        print(
            f"Validation log: {summary['total_errors']} errors, "
            f"{summary['total_warnings']} warnings",
            file=sys.stderr,
        )
        for message in summary["recent_errors"]:
            print(f"  {message}", file=sys.stderr)

    return 0 if report.is_valid else 1


if __name__ == "__main__":
    sys.exit(main())
