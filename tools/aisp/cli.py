# SPDX-License-Identifier: MIT
"""
AISP Validator CLI

Command-line interface for validating AISP documents and inspecting their
density breakdown.

Usage:
    python -m tools.aisp.cli validate <path>... [--json] [--no-strict]
    python -m tools.aisp.cli debug <file> [--json]
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import DEFAULT_MAX, ValidatorConfig, clamp_doc_size
from .symbols import is_supported_file
from .validator import ValidationOutcome, Validator, debug_document

logger = logging.getLogger(__name__)


def collect_files(paths: List[str]) -> List[Path]:
    """
    Expand directories into the supported documents they contain.

    Explicit file arguments are kept whatever their extension.

    Args:
        paths: File or directory paths from the command line

    Returns:
        Files to validate, directories expanded in sorted order
    """
    files: List[Path] = []
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            files.extend(
                p for p in sorted(path.rglob("*"))
                if p.is_file() and is_supported_file(p.name)
            )
        else:
            files.append(path)
    return files


def format_outcome(path: Path, outcome: ValidationOutcome) -> str:
    """
    Format a validation outcome for display.

    Args:
        path: The validated file
        outcome: The outcome to format

    Returns:
        Formatted string for display
    """
    lines: List[str] = [f"{path}: {'VALID' if outcome.valid else 'INVALID'}"]

    if outcome.tier is not None:
        lines.append(f"  Tier: {outcome.tier.symbol} {outcome.tier.tier_name}")
        lines.append(f"  Delta: {outcome.delta:.3f}")
        lines.append(f"  Pure density: {outcome.pure_density:.3f}")
    if outcome.ambiguity is not None:
        lines.append(f"  Ambiguity: {outcome.ambiguity:.3f}")
    if outcome.mode is not None:
        lines.append(f"  Mode: {outcome.mode}")
    if outcome.error:
        lines.append(f"  Error: {outcome.error}")
        lines.append(f"  Error code: {outcome.error_code}")

    return "\n".join(lines)


def format_breakdown(path: Path, report: Dict[str, Any]) -> str:
    """Format a density breakdown for display."""
    lines: List[str] = [
        f"{path}: {report['tier']} {report['tier_name']}",
        f"  Delta: {report['delta']:.3f}",
        f"  Block score: {report['block_score']:.3f}",
        f"  Binding score: {report['binding_score']:.3f}",
        f"  Pure density: {report['pure_density']:.3f}",
    ]
    for key, value in report["breakdown"].items():
        lines.append(f"    {key}: {value}")
    return "\n".join(lines)


def cmd_validate(args: argparse.Namespace) -> int:
    """
    Validate one or more AISP documents.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 if every document is valid, 1 otherwise)
    """
    try:
        config = ValidatorConfig(max_doc_size=clamp_doc_size(args.max_size))
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    validator = Validator(config)
    validator.init()

    files = collect_files(args.paths)
    if not files:
        print("Error: No documents found", file=sys.stderr)
        return 1

    exit_code = 0
    results: List[Dict[str, Any]] = []
    for path in files:
        try:
            outcome = validator.validate_file(path, strict=not args.no_strict)
        except FileNotFoundError:
            print(f"Error: File not found: {path}", file=sys.stderr)
            exit_code = 1
            continue
        except OSError as e:
            print(f"Error: Cannot read file: {e}", file=sys.stderr)
            exit_code = 1
            continue

        logger.debug("%s -> %s", path, outcome.to_dict())
        if not outcome.valid:
            exit_code = 1

        if args.json:
            entry = {"file": str(path)}
            entry.update(outcome.to_dict())
            results.append(entry)
        else:
            print(format_outcome(path, outcome))

    if args.json:
        print(json.dumps(results, indent=2, ensure_ascii=False))

    return exit_code


def cmd_debug(args: argparse.Namespace) -> int:
    """
    Show the density breakdown of a document.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, 1 if the file cannot be read)
    """
    path = Path(args.file)
    try:
        content = path.read_bytes()
    except FileNotFoundError:
        print(f"Error: File not found: {path}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: Cannot read file: {e}", file=sys.stderr)
        return 1

    report = debug_document(content)
    if args.json:
        print(json.dumps(report, indent=2, ensure_ascii=False))
    else:
        print(format_breakdown(path, report))
    return 0


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argument parser for the CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="aisp-validate",
        description="AISP document validator and density scorer",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # validate command
    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate AISP documents",
    )
    validate_parser.add_argument(
        "paths",
        nargs="+",
        help="Documents or directories to validate",
    )
    validate_parser.add_argument(
        "--json",
        action="store_true",
        help="Output results as JSON",
    )
    validate_parser.add_argument(
        "--no-strict",
        action="store_true",
        help="Skip the structural kernel and use heuristic checks only",
    )
    validate_parser.add_argument(
        "--max-size",
        type=int,
        default=DEFAULT_MAX,
        help=f"Maximum document size in bytes (default: {DEFAULT_MAX})",
    )
    validate_parser.set_defaults(func=cmd_validate)

    # debug command
    debug_parser = subparsers.add_parser(
        "debug",
        help="Show the density breakdown of a document",
    )
    debug_parser.add_argument(
        "file",
        help="Path to the AISP document",
    )
    debug_parser.add_argument(
        "--json",
        action="store_true",
        help="Output results as JSON",
    )
    debug_parser.set_defaults(func=cmd_debug)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv)

    Returns:
        Exit code
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if hasattr(args, "func"):
        return args.func(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
