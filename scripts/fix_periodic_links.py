#!/usr/bin/env python3
"""
Fix dangling backlinks between periodic notes.

Daily, weekly, monthly and quarterly notes link back to the previous period's
note. When a period was skipped its note never exists, and links to it dangle.
For each kind this script scans the notes inside the lookback window and
rewrites every dangling link to point at the next older note that does exist.

Archive layout:
    <root>/journal/j-2022-03-04.md
    <root>/weekly/w-2022-03-W10.md
    <root>/monthly/m-2022-03.md
    <root>/quarterly/q-2022-Q2.md

Usage:
    python3 fix_periodic_links.py ~/notes/periodic            # Fix all kinds
    python3 fix_periodic_links.py ~/notes/periodic --dry-run  # Preview changes
    python3 fix_periodic_links.py --kind w --kind m --days 365
    python3 fix_periodic_links.py --date 2022-03-08 -v

Meant to run as a periodic job (e.g. weekly). Re-running is safe: repaired
links point at existing notes and are left alone the next time.
"""

import argparse
import os
import shutil
import sys
from datetime import date
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import List, Optional, Sequence, Tuple

from metrics import log_metric
from periodic_files import PeriodicConfigError, generate_window
from periodic_links import plan_replacements
from scan_existing import filter_existing, kind_directory
from utils import resolve_settings


class RewriteError(OSError):
    """A note could not be read or written back."""

    def __init__(self, path, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = Path(path)


# ============================================================================
# Rewrite engine
# ============================================================================

def _write_atomic(file_path: Path, content: str):
    """Write content to a temp file next to file_path, then swap it in."""
    tmp_file = None
    try:
        with NamedTemporaryFile("w", encoding="utf-8", newline="", delete=False,
                                dir=str(file_path.parent), prefix=f".{file_path.name}.",
                                suffix=".tmp") as tmp:
            tmp_file = tmp.name
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())
        shutil.copymode(file_path, tmp_file)
        os.replace(tmp_file, file_path)
    except OSError as e:
        if tmp_file and os.path.exists(tmp_file):
            os.unlink(tmp_file)
        raise RewriteError(file_path, f"write failed: {e}") from e


def apply_replacements(file_path: Path, replacements: Sequence[Tuple[str, str]]) -> Optional[str]:
    """
    Apply (original_line, replacement_line) pairs to a note and write it back.

    Each pair replaces every occurrence of original_line in the whole text,
    working on the output of the previous pair. Returns the new text, or None
    when there was nothing to apply (the file is not touched).
    """
    if not replacements:
        return None

    file_path = Path(file_path)
    try:
        with open(file_path, encoding="utf-8", newline="") as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise RewriteError(file_path, f"read failed: {e}") from e

    for original, replacement in replacements:
        content = content.replace(original, replacement)

    _write_atomic(file_path, content)
    return content


# ============================================================================
# Repair pipeline
# ============================================================================

def repair_kind(
    tag: str,
    root: Path,
    reference_date: date,
    n_days: int,
    dry_run: bool = False,
    verbose: bool = False,
    reports: Optional[List[dict]] = None,
) -> dict:
    """
    Repair dangling links for one period kind. Returns a report dict.

    When reports is given the report is appended to it before any note is
    touched, so its counts stay current if a later note aborts the run.

    The newest existing note is never scanned: nothing newer links to
    the period it could be missing.
    """
    window = generate_window(tag, reference_date, n_days)
    directory = kind_directory(window, root)
    existing = filter_existing(window, root)

    report = {
        'kind': tag,
        'directory': str(directory),
        'window': len(window),
        'existing': len(existing),
        'checked': 0,
        'repaired': 0,
        'unresolved': 0,
        'files_rewritten': 0,
    }
    if reports is not None:
        reports.append(report)

    print(f"\n{directory.name}/ ({len(existing)} of {len(window)} notes in window present)")

    for source in existing[1:]:
        note_path = directory / source.canonical_filename()
        try:
            content = note_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise RewriteError(note_path, f"read failed: {e}") from e

        report['checked'] += 1
        replacements, unresolved = plan_replacements(source, content, existing, directory)

        if verbose and not replacements and not unresolved:
            print(f"  ✓ {note_path.name}")

        for ref in unresolved:
            print(f"  ⚠️  {note_path.name}: [[{ref.referenced_token}]] is missing "
                  f"and no older note exists, leaving it")
        report['unresolved'] += len(unresolved)

        if not replacements:
            continue

        print(f"\n  {note_path.name}:")
        for line, replacement in replacements:
            print(f"    replacing: {line.strip()}")
            print(f"    with:      {replacement.strip()}")

        if not dry_run:
            apply_replacements(note_path, replacements)
            report['files_rewritten'] += 1
        report['repaired'] += len(replacements)

    return report


def repair_archive(
    settings: dict,
    dry_run: bool = False,
    verbose: bool = False,
    reports: Optional[List[dict]] = None,
) -> List[dict]:
    """
    Run repair_kind for every configured kind, in order.

    Reports are collected into `reports` (a new list if not given) as each
    kind starts, so a caller still has the partial counts after a RewriteError.
    """
    root = settings['root']
    if not root.is_dir():
        raise PeriodicConfigError(f"Archive root not found: {root}")

    if reports is None:
        reports = []
    for tag in settings['kinds']:
        repair_kind(tag, root, settings['reference_date'], settings['days'], dry_run, verbose, reports)
    return reports


def record_metrics(reports: List[dict], settings: dict):
    """Append this run's counts to the metrics log."""
    for report in reports:
        metadata = {
            "kind": report['kind'],
            "reference_date": settings['reference_date'].isoformat(),
            "days": settings['days'],
        }
        log_metric("links_repaired", report['repaired'], metadata, metrics_dir=settings['metrics_dir'])
        log_metric("links_unresolved", report['unresolved'], metadata, metrics_dir=settings['metrics_dir'])
        log_metric("files_rewritten", report['files_rewritten'], metadata, metrics_dir=settings['metrics_dir'])


def _record_metrics_safely(reports: List[dict], settings: dict):
    """Metrics are best effort: notes are already rewritten, so only warn."""
    try:
        record_metrics(reports, settings)
    except OSError as e:
        print(f"⚠️  Could not record metrics in {settings['metrics_dir']}: {e}", file=sys.stderr)


# ============================================================================
# CLI
# ============================================================================

def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a YYYY-MM-DD date: {value}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Fix dangling links between periodic notes')
    parser.add_argument('root', nargs='?', help='Archive root holding journal/, weekly/, monthly/, quarterly/')
    parser.add_argument('--days', type=int, help='Lookback window in days (default: 200)')
    parser.add_argument('--kind', action='append', choices=['j', 'w', 'm', 'q'],
                        help='Only fix this kind (repeatable; default: all)')
    parser.add_argument('--date', type=_parse_date, help='Reference date, YYYY-MM-DD (default: today)')
    parser.add_argument('--config', type=Path, help='YAML config file (default: scripts/periodic.yaml)')
    parser.add_argument('--dry-run', action='store_true', help='Show what would change without writing')
    parser.add_argument('--verbose', '-v', action='store_true', help='Also list notes with healthy links')
    parser.add_argument('--no-metrics', action='store_true', help='Do not record run metrics')
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = resolve_settings(args)
    except PeriodicConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print("=" * 60)
    print(f"PERIODIC LINK REPAIR{' (dry run)' if args.dry_run else ''}")
    print("=" * 60)
    print(f"Root: {settings['root']}")
    print(f"Reference date: {settings['reference_date']}, looking back {settings['days']} days")

    record = not args.dry_run and not args.no_metrics
    reports = []
    try:
        repair_archive(settings, args.dry_run, args.verbose, reports)
    except PeriodicConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except RewriteError as e:
        print(f"❌ Aborted: {e}", file=sys.stderr)
        if record:
            _record_metrics_safely(reports, settings)
        return 2

    if record:
        _record_metrics_safely(reports, settings)

    repaired = sum(r['repaired'] for r in reports)
    unresolved = sum(r['unresolved'] for r in reports)
    rewritten = sum(r['files_rewritten'] for r in reports)

    print(f"\n{'='*60}")
    if args.dry_run:
        print(f"Would fix {repaired} links ({unresolved} unresolvable)")
    else:
        print(f"Fixed {repaired} links in {rewritten} files ({unresolved} unresolvable)")

    return 0


if __name__ == "__main__":
    exit(main())
