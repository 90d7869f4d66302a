#!/usr/bin/env python3
"""
CLI for validating records and evaluating equations.

Usage:
    python -m criteria_engine validate --criteria criteria.yaml --data record.json
    python -m criteria_engine validate --criteria criteria.yaml --data record.yaml --language pt
    python -m criteria_engine equation --criteria criteria.yaml --data record.json "{{age}} >= 18"
    python -m criteria_engine functions
    LOG_FORMAT=json python -m criteria_engine --evaluation-id req_1 validate -c criteria.yaml -d record.json
"""

import argparse
import json
import sys
import uuid
from typing import List, Optional

from criteria_engine.config_loader import load_criteria, load_record
from criteria_engine.errors import CriteriaEngineError
from criteria_engine.functions import builtin_registry
from criteria_engine.logger import logger
from criteria_engine.resolver import CriteriaResolver

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_ERROR = 2


def create_parser() -> argparse.ArgumentParser:
    """Create and return the argument parser."""
    parser = argparse.ArgumentParser(
        prog="criteria_engine",
        description="Validate data records against declarative criteria",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m criteria_engine validate -c criteria.yaml -d record.json
  python -m criteria_engine equation -c criteria.yaml -d record.json "{{age}} >= 18 AND {{active}}"
  python -m criteria_engine functions
        """
    )
    parser.add_argument(
        "--evaluation-id",
        default=None,
        help="Id attached to log lines (default: random)"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    validate = subparsers.add_parser("validate", help="Validate a record against all criteria")
    validate.add_argument("--criteria", "-c", required=True, help="Criteria YAML file")
    validate.add_argument("--data", "-d", required=True, help="Record file (JSON or YAML)")
    validate.add_argument("--language", "-l", help="Message language (en, pt, es)")
    validate.add_argument(
        "--query",
        action="store_true",
        help="Also print the resolved record (process_query)"
    )

    equation = subparsers.add_parser("equation", help="Evaluate an equation template")
    equation.add_argument("template", help="Equation, e.g. \"{{age}} >= 18\"")
    equation.add_argument("--criteria", "-c", help="Criteria YAML file")
    equation.add_argument("--data", "-d", action="append", default=[], help="Source record file (repeatable)")
    equation.add_argument("--language", "-l", help="Message language (en, pt, es)")
    equation.add_argument(
        "--validate",
        action="store_true",
        help="Validate referenced criteria against the first record before evaluating"
    )

    subparsers.add_parser("functions", help="List functions available to expressions")

    return parser


def _print_json(payload) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2, default=str))


def _log_failures(summary, language) -> None:
    logger.metric(
        "validation_failures",
        len(summary.failed_fields),
        failed=[result.id for result in summary.failed_fields],
        language=language,
    )


def run_validate(args) -> int:
    resolver = CriteriaResolver(load_criteria(args.criteria), language=args.language)
    record = load_record(args.data)

    if args.query:
        result = resolver.process_query(record)
        _log_failures(result.summary, args.language)
        _print_json(result.to_dict())
        return EXIT_OK if result.summary.overall_success else EXIT_FAILED

    summary = resolver.validate_all(record)
    _log_failures(summary, args.language)
    _print_json(summary.to_dict())
    return EXIT_OK if summary.overall_success else EXIT_FAILED


def run_equation(args) -> int:
    criteria = load_criteria(args.criteria) if args.criteria else []
    resolver = CriteriaResolver(criteria, language=args.language)
    sources = [load_record(path) for path in args.data]

    if args.validate:
        validation = resolver.validate_equation(args.template, sources[0] if sources else {})
        _print_json(validation.to_dict())
        return EXIT_OK if validation.success else EXIT_FAILED

    processed = resolver.get_processed_equation(args.template, sources)
    _print_json(processed.to_dict())
    return EXIT_OK if processed.result else EXIT_FAILED


def run_functions(args) -> int:
    print(builtin_registry.get_documentation())
    return EXIT_OK


COMMANDS = {
    "validate": run_validate,
    "equation": run_equation,
    "functions": run_functions,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point; returns the process exit code."""
    args = create_parser().parse_args(argv)
    logger.set_evaluation(args.evaluation_id or uuid.uuid4().hex[:12])
    logger.set_context(command=args.command)
    try:
        return COMMANDS[args.command](args)
    except CriteriaEngineError as e:
        logger.error("Command failed", code=e.code, error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR
    finally:
        logger.clear_evaluation()
        logger.clear_context()


if __name__ == "__main__":
    sys.exit(main())
