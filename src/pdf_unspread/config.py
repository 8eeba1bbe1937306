"""
Configuration helpers for YAML-backed command options.

Precedence is defaults < YAML file < explicit CLI flags.
"""

from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any

import yaml

from .planner import SplitConfig
from .utils import DEFAULT_SUFFIX, UserError, ensure_file_exists


CONFIG_SECTION = "unspread"

# Keys mirror the argparse destinations so CLI overrides merge directly.
DEFAULT_UNSPREAD: dict[str, Any] = {
    "vertical": False,
    "centeredTop": False,
    "centeredLast": False,
    "opposite": False,
    "trimBox": False,
    "suffix": DEFAULT_SUFFIX,
    "out_pdf": None,
    "overwrite": False,
    "dry_run": False,
    "debug": False,
    "debug_dpi": 72,
    "manifest": None,
}

BOOL_KEYS = (
    "vertical",
    "centeredTop",
    "centeredLast",
    "opposite",
    "trimBox",
    "overwrite",
    "dry_run",
    "debug",
)


def load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML file into a dictionary."""

    ensure_file_exists(path, "Config file")
    try:
        with path.open("r", encoding="utf-8") as handle:
            loaded = yaml.safe_load(handle)
    except yaml.YAMLError as exc:
        raise UserError(f"Failed to parse YAML config {path}: {exc}") from exc
    except OSError as exc:
        raise UserError(f"Failed to read config {path}: {exc}") from exc

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise UserError(f"Config {path} must contain a YAML mapping/object at top level.")
    return loaded


def deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """
    Recursively merge dictionaries where overlay values win.
    """

    merged = deepcopy(base)
    for key, value in overlay.items():
        if (
            key in merged
            and isinstance(merged[key], dict)
            and isinstance(value, dict)
        ):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = deepcopy(value)
    return merged


def validate_keys(cfg: dict[str, Any], allowed: set[str], ctx: str) -> None:
    """
    Validate dictionary keys and fail fast on unknown entries.
    """

    unknown = sorted(key for key in cfg.keys() if key not in allowed)
    if unknown:
        allowed_list = ", ".join(sorted(allowed))
        unknown_list = ", ".join(unknown)
        raise UserError(
            f"Unknown keys in {ctx}: {unknown_list}. Allowed keys: {allowed_list}."
        )


def extract_section(loaded: dict[str, Any]) -> dict[str, Any]:
    """Support either root config keys or an `unspread:` wrapper."""

    allowed = set(DEFAULT_UNSPREAD.keys())
    if CONFIG_SECTION in loaded:
        section = loaded[CONFIG_SECTION]
        if not isinstance(section, dict):
            raise UserError(f"config.{CONFIG_SECTION} must be a mapping/object.")
        validate_keys(section, allowed, f"config.{CONFIG_SECTION}")
        return section

    validate_keys(loaded, allowed, "config")
    return loaded


def require_bool(value: Any, key: str) -> bool:
    """Require a strict boolean value from config/CLI merge output."""

    if isinstance(value, bool):
        return value
    raise UserError(f"{key} must be true or false.")


def validate_effective(cfg: dict[str, Any]) -> dict[str, Any]:
    """Check types after merging so YAML typos surface as clear errors."""

    for key in BOOL_KEYS:
        require_bool(cfg[key], f"config.{key}")
    if not isinstance(cfg["suffix"], str) or not cfg["suffix"]:
        raise UserError("config.suffix must be a non-empty string.")
    if isinstance(cfg["debug_dpi"], bool) or not isinstance(cfg["debug_dpi"], int):
        raise UserError("config.debug_dpi must be an integer.")
    if cfg["debug_dpi"] <= 0:
        raise UserError("config.debug_dpi must be a positive integer.")
    return cfg


def split_config_from(cfg: dict[str, Any]) -> SplitConfig:
    """Build the immutable planner options from a merged config dict."""

    return SplitConfig(
        vertical=cfg["vertical"],
        centered_top=cfg["centeredTop"],
        centered_last=cfg["centeredLast"],
        opposite=cfg["opposite"],
        trim_box=cfg["trimBox"],
    )


def dump_default_yaml() -> str:
    """Serialize wrapped defaults as YAML."""

    return yaml.safe_dump({CONFIG_SECTION: DEFAULT_UNSPREAD}, sort_keys=False).rstrip()
