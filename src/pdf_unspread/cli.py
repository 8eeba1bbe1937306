"""
Command-line interface for pdf-unspread.

This file focuses on parsing arguments and dispatching to the real work.
Keeping this separate makes the code easier to read and test.
"""

from __future__ import annotations

import argparse
import subprocess
import sys
from pathlib import Path
from typing import Any, Dict

from . import __version__
from .config import (
    DEFAULT_UNSPREAD,
    deep_merge,
    dump_default_yaml,
    extract_section,
    load_yaml,
    split_config_from,
    validate_effective,
)
from .utils import UserError, normalize_path


EXAMPLES = """Examples:
  python -m pdf_unspread --path "scan.pdf"
  python -m pdf_unspread --path "scan.pdf" --vertical --opposite
  python -m pdf_unspread --path "booklet.pdf" --centeredTop --centeredLast --out_pdf "pages.pdf"
  python -m pdf_unspread --path "magazine.pdf" --trimBox --debug --dry-run
  python -m pdf_unspread --path "scan.pdf" --config "configs\\unspread.yaml"
  python -m pdf_unspread --dump-default-config
"""

CONFIG_KEYS = set(DEFAULT_UNSPREAD.keys())


def _build_effective_config(args: argparse.Namespace) -> tuple[Dict[str, Any], Path | None]:
    """Resolve defaults < YAML config < explicit CLI flags."""

    effective = deep_merge(DEFAULT_UNSPREAD, {})
    config_path: Path | None = None
    if hasattr(args, "config"):
        config_path = normalize_path(args.config)
        effective = deep_merge(effective, extract_section(load_yaml(config_path)))

    raw_args = vars(args)
    cli_overrides = {key: raw_args[key] for key in CONFIG_KEYS if key in raw_args}
    effective = deep_merge(effective, cli_overrides)
    return validate_effective(effective), config_path


def _verbosity_from_args(args: argparse.Namespace) -> str:
    """Resolve global verbosity mode from top-level flags."""

    if getattr(args, "quiet", False):
        return "quiet"
    if getattr(args, "verbose", False):
        return "verbose"
    return "normal"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pdf-unspread",
        description="Split spread PDF pages (two pages per sheet) into single pages.",
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=__version__)
    verbosity_group = parser.add_mutually_exclusive_group()
    verbosity_group.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress non-error console logs.",
    )
    verbosity_group.add_argument(
        "--verbose",
        action="store_true",
        help="Show debug-level console logs (one line per page).",
    )

    parser.add_argument(
        "--path",
        help="Input PDF path (required unless --dump-default-config).",
    )
    parser.add_argument(
        "--vertical",
        action="store_true",
        default=argparse.SUPPRESS,
        help="Split top/bottom instead of left/right (before rotation is considered).",
    )
    parser.add_argument(
        "--centeredTop",
        action="store_true",
        default=argparse.SUPPRESS,
        help="Keep the centered half of the first page instead of splitting it.",
    )
    parser.add_argument(
        "--centeredLast",
        action="store_true",
        default=argparse.SUPPRESS,
        help="Keep the centered half of the last page instead of splitting it.",
    )
    parser.add_argument(
        "--opposite",
        action="store_true",
        default=argparse.SUPPRESS,
        help="Reverse the order of the two halves (e.g. right-to-left books).",
    )
    parser.add_argument(
        "--trimBox",
        action="store_true",
        default=argparse.SUPPRESS,
        help="Treat pages whose TrimBox covers less than half the sheet as single pages.",
    )
    parser.add_argument(
        "--out_pdf",
        default=argparse.SUPPRESS,
        help="Output PDF path (default: input name + suffix).",
    )
    parser.add_argument(
        "--suffix",
        default=argparse.SUPPRESS,
        help='Suffix inserted before the extension (default: "_unspread").',
    )
    parser.add_argument(
        "--overwrite",
        action="store_true",
        default=argparse.SUPPRESS,
        help="Overwrite an existing output file.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=argparse.SUPPRESS,
        help="Plan and log every page without writing files.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=argparse.SUPPRESS,
        help="Write PNG overlays of the planned cuts next to the output PDF.",
    )
    parser.add_argument(
        "--debug_dpi",
        type=int,
        default=argparse.SUPPRESS,
        help="Render DPI for debug overlays (default: 72).",
    )
    parser.add_argument(
        "--manifest",
        default=argparse.SUPPRESS,
        help="Manifest path (default: out_pdf folder\\manifest.json).",
    )
    parser.add_argument(
        "--config",
        default=argparse.SUPPRESS,
        help="Optional YAML config with the options above.",
    )
    parser.add_argument(
        "--dump-default-config",
        action="store_true",
        help="Print the default YAML config and exit.",
    )
    return parser


def _command_string(argv: list[str]) -> str:
    """Reconstruct a command string for the manifest."""

    # list2cmdline produces a Windows-friendly command representation.
    return subprocess.list2cmdline(argv)


def _command_argv_for_manifest(argv: list[str] | None) -> list[str]:
    """Choose argv used to record manifest command faithfully."""

    if argv is None:
        return list(sys.argv)
    return [sys.argv[0], *argv]


def _options_for_manifest(effective: Dict[str, Any], verbosity: str) -> Dict[str, Any]:
    """Build a JSON-friendly options dict."""

    options: Dict[str, Any] = {}
    for key, value in effective.items():
        options[key] = str(value) if isinstance(value, Path) else value
    options["version"] = __version__
    options["verbosity"] = verbosity
    return options


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        if args.dump_default_config:
            print(dump_default_yaml())
            return 0
        if not args.path:
            raise UserError("--path is required unless --dump-default-config is used.")

        effective, config_path = _build_effective_config(args)
        verbosity = _verbosity_from_args(args)
        options = _options_for_manifest(effective, verbosity)
        if config_path is not None:
            options["config_path"] = str(config_path)

        from .unspread import unspread_pdf

        unspread_pdf(
            pdf_path=normalize_path(args.path),
            config=split_config_from(effective),
            out_pdf=normalize_path(str(effective["out_pdf"])) if effective["out_pdf"] else None,
            suffix=effective["suffix"],
            overwrite=effective["overwrite"],
            dry_run=effective["dry_run"],
            manifest_path=normalize_path(str(effective["manifest"])) if effective["manifest"] else None,
            command_string=_command_string(_command_argv_for_manifest(argv)),
            options=options,
            debug=effective["debug"],
            debug_dpi=effective["debug_dpi"],
        )
        return 0
    except UserError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
