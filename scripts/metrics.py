#!/usr/bin/env python3
"""
Run metrics for the periodic link repair.

Each run appends one JSONL entry per kind and metric, so repair activity can
be followed over time:
- links_repaired: dangling links rewritten to an existing note
- links_unresolved: dangling links left alone (no older note to point at)
- files_rewritten: notes written back to disk

Usage:
    from metrics import log_metric, get_metrics, get_summary

    log_metric("links_repaired", 3, {"kind": "w"}, metrics_dir=path)
    summary = get_summary("links_repaired", days=30, metrics_dir=path)

    python3 metrics.py --days 30
"""

import json
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Optional

from utils import DEFAULT_METRICS_DIR

METRICS_FILE = "fix_periodic_links_metrics.jsonl"


def _metrics_file(metrics_dir: Optional[Path]) -> Path:
    return Path(metrics_dir or DEFAULT_METRICS_DIR) / METRICS_FILE


def log_metric(
    metric: str,
    value: Any,
    metadata: Optional[dict] = None,
    timestamp: Optional[datetime] = None,
    metrics_dir: Optional[Path] = None,
):
    """
    Append a metric entry.

    Args:
        metric: Name of the metric (e.g., "links_repaired")
        value: The metric value
        metadata: Optional dict with context such as kind and reference date
        timestamp: Optional timestamp (defaults to now)
        metrics_dir: Directory holding the JSONL file
    """
    metrics_file = _metrics_file(metrics_dir)
    metrics_file.parent.mkdir(parents=True, exist_ok=True)

    entry = {
        "timestamp": (timestamp or datetime.now()).isoformat(),
        "metric": metric,
        "value": value,
        "metadata": metadata or {},
    }

    with open(metrics_file, 'a', encoding='utf-8') as f:
        f.write(json.dumps(entry, default=str) + '\n')


def get_metrics(
    metric: Optional[str] = None,
    days: int = 30,
    kind: Optional[str] = None,
    metrics_dir: Optional[Path] = None,
) -> list:
    """Entries from the last `days` days, optionally filtered by metric and kind."""
    metrics_file = _metrics_file(metrics_dir)
    if not metrics_file.exists():
        return []

    cutoff = datetime.now() - timedelta(days=days)
    results = []

    with open(metrics_file, encoding='utf-8') as f:
        for line in f:
            if not line.strip():
                continue
            try:
                entry = json.loads(line)
                ts = datetime.fromisoformat(entry["timestamp"])
            except (json.JSONDecodeError, KeyError, ValueError):
                continue
            if ts <= cutoff:
                continue
            if metric is not None and entry["metric"] != metric:
                continue
            if kind is not None and entry.get("metadata", {}).get("kind") != kind:
                continue
            results.append(entry)

    return results


def get_summary(
    metric: str,
    days: int = 7,
    kind: Optional[str] = None,
    metrics_dir: Optional[Path] = None,
) -> dict:
    """
    Summary statistics for a metric.

    Returns dict with count, total, min, max, avg and trend. Fewer dangling
    links over time counts as "improving".
    """
    entries = get_metrics(metric, days, kind, metrics_dir)
    values = [e["value"] for e in entries if isinstance(e["value"], (int, float))]

    if not values:
        return {"count": 0}

    trend = "stable"
    if len(values) >= 4:
        mid = len(values) // 2
        first_half_avg = sum(values[:mid]) / mid
        second_half_avg = sum(values[mid:]) / (len(values) - mid)
        if second_half_avg < first_half_avg:
            trend = "improving"
        elif second_half_avg > first_half_avg:
            trend = "worsening"

    return {
        "count": len(values),
        "total": sum(values),
        "min": min(values),
        "max": max(values),
        "avg": round(sum(values) / len(values), 2),
        "trend": trend,
        "first": entries[0]["timestamp"][:10],
        "last": entries[-1]["timestamp"][:10],
    }


def print_dashboard(days: int = 7, metrics_dir: Optional[Path] = None):
    """Print repair activity per metric over the last `days` days."""
    entries = get_metrics(days=days, metrics_dir=metrics_dir)

    if not entries:
        print("No metrics recorded yet.")
        return

    print(f"\n{'='*60}")
    print(f"PERIODIC LINK REPAIR METRICS (last {days} days)")
    print(f"{'='*60}\n")

    for metric in sorted({e["metric"] for e in entries}):
        summary = get_summary(metric, days, metrics_dir=metrics_dir)
        if summary.get("count", 0) == 0:
            continue
        trend_icon = {"improving": "📉", "worsening": "📈", "stable": "➡️"}[summary["trend"]]
        print(f"   {metric}: total {summary['total']} over {summary['count']} entries "
              f"(avg: {summary['avg']}, max: {summary['max']}) {trend_icon}")
    print()


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="View periodic link repair metrics")
    parser.add_argument("--days", type=int, default=7, help="Days to look back")
    parser.add_argument("--metric", help="Filter to specific metric")
    parser.add_argument("--kind", help="Filter to a period tag (j, w, m, q)")
    parser.add_argument("--dir", type=Path, help="Metrics directory")
    parser.add_argument("--raw", action="store_true", help="Show raw entries")
    args = parser.parse_args()

    if args.raw:
        for e in get_metrics(args.metric, args.days, args.kind, args.dir)[-20:]:
            print(json.dumps(e))
    elif args.metric:
        print(json.dumps(get_summary(args.metric, args.days, args.kind, args.dir), indent=2))
    else:
        print_dashboard(args.days, args.dir)
