#!/usr/bin/env python3
"""
Shared configuration for the periodic link scripts.

Settings come from (highest priority first): command-line arguments,
environment variables (optionally from scripts/.env), a YAML config file,
then the defaults below.

Usage:
    from utils import load_env, load_config, resolve_settings
    from utils import SCRIPTS_DIR, DEFAULT_DAYS

Example periodic.yaml:
    root: ~/notes/periodic
    days: 200
    kinds: [j, w, m, q]
    metrics_dir: ~/notes/.metrics
"""

import os
from datetime import date
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from periodic_files import ALL_TAGS, PeriodKind, PeriodicConfigError

# ============================================================================
# Standard Paths and Defaults
# ============================================================================

SCRIPTS_DIR = Path(__file__).parent
DEFAULT_CONFIG = SCRIPTS_DIR / "periodic.yaml"
DEFAULT_METRICS_DIR = SCRIPTS_DIR / "metrics"
DEFAULT_DAYS = 200  # more than two quarters back

ENV_ROOT = "PERIODIC_ROOT"
ENV_DAYS = "PERIODIC_DAYS"


# ============================================================================
# Environment Utilities
# ============================================================================

def load_env(env_path: Path = None):
    """
    Load environment variables from .env file.

    Variables already present in the environment are left alone.

    Args:
        env_path: Path to .env file. Defaults to scripts/.env
    """
    if env_path is None:
        env_path = SCRIPTS_DIR / ".env"

    if not env_path.exists():
        return

    with open(env_path, encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith('#') and '=' in line:
                key, value = line.split('=', 1)
                key = key.replace('export ', '').strip()
                value = value.strip().strip('"').strip("'")
                os.environ.setdefault(key, value)


# ============================================================================
# Config File
# ============================================================================

def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Read the YAML config file. A missing file means no overrides.

    Raises PeriodicConfigError for unparsable YAML or a non-mapping document.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG
    config_path = Path(config_path).expanduser()

    if not config_path.exists():
        return {}

    try:
        data = yaml.safe_load(config_path.read_text(encoding='utf-8'))
    except yaml.YAMLError as e:
        raise PeriodicConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise PeriodicConfigError(f"{config_path} must contain a mapping, got {type(data).__name__}")
    return data


def _as_days(value: Any, source: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise PeriodicConfigError(f"days from {source} must be an integer, got {value!r}") from None


def resolve_settings(args) -> Dict[str, Any]:
    """
    Merge CLI arguments, environment and config file into one settings dict.

    Keys: root (Path), days (int), kinds (list of tags), reference_date (date),
    metrics_dir (Path).
    """
    load_env()
    config = load_config(getattr(args, 'config', None))

    root = args.root or os.environ.get(ENV_ROOT) or config.get('root')
    if not root:
        raise PeriodicConfigError(
            f"No archive root given: pass ROOT, set {ENV_ROOT}, or add 'root' to the config file"
        )

    if args.days is not None:
        days = args.days
    elif os.environ.get(ENV_DAYS):
        days = _as_days(os.environ[ENV_DAYS], ENV_DAYS)
    else:
        days = _as_days(config.get('days', DEFAULT_DAYS), 'config')

    kinds = args.kind or config.get('kinds') or ALL_TAGS
    # Validate up front so a typo fails before any file is touched
    kinds = [PeriodKind.from_tag(str(k)).tag for k in kinds]

    reference_date = args.date or date.today()
    metrics_dir = Path(config.get('metrics_dir', DEFAULT_METRICS_DIR)).expanduser()

    return {
        'root': Path(root).expanduser(),
        'days': days,
        'kinds': kinds,
        'reference_date': reference_date,
        'metrics_dir': metrics_dir,
    }
