#!/usr/bin/env python3
"""Find which periodic notes in a lookback window actually exist on disk."""

from pathlib import Path
from typing import List, Sequence

from periodic_files import PeriodIdentity, UnresolvableRoot


def kind_directory(window: Sequence[PeriodIdentity], root_path: Path) -> Path:
    """Storage directory for a window's kind, e.g. ``<root>/weekly``."""
    if not window:
        raise UnresolvableRoot(f"empty window, cannot resolve a directory under {root_path}")
    return Path(root_path) / window[0].storage_subdirectory()


def filter_existing(window: Sequence[PeriodIdentity], root_path: Path) -> List[PeriodIdentity]:
    """
    Return the periods whose file exists, keeping the window's newest-first order.

    Two anchor dates can name the same file (a 30-day stride can land twice in
    one month). Only the newest of them is kept so a note never falls back
    onto itself.
    """
    root_path = Path(root_path)
    existing = []
    seen = set()
    for period in window:
        filename = period.canonical_filename()
        if filename in seen:
            continue
        if (root_path / period.storage_subdirectory() / filename).exists():
            seen.add(filename)
            existing.append(period)
    return existing
