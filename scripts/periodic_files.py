#!/usr/bin/env python3
"""
Periodic note identities and lookback windows.

Every periodic note is identified by its kind (daily journal, weekly, monthly,
quarterly), the date it was generated from, and the year of the run that
produced it. From that we derive the filename on disk and the text that
opens an embedded backlink.

Usage:
    from periodic_files import PeriodKind, PeriodIdentity, generate_window

    window = generate_window("w", date(2022, 3, 8), 200)
    window[0].canonical_filename()   # "w-2022-03-W10.md"
    window[0].link_marker()          # "[[w-2022"
"""

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import List, Union


class PeriodicConfigError(Exception):
    """Fatal configuration problem: aborts the whole run."""


class InvalidKind(PeriodicConfigError, ValueError):
    """Raised for a period tag outside j/w/m/q."""


class UnresolvableRoot(PeriodicConfigError):
    """Raised when no storage directory can be derived from a window."""


class PeriodKind(Enum):
    DAILY = "j"
    WEEKLY = "w"
    MONTHLY = "m"
    QUARTERLY = "q"

    @property
    def tag(self) -> str:
        return self.value

    @classmethod
    def from_tag(cls, tag: Union[str, "PeriodKind"]) -> "PeriodKind":
        if isinstance(tag, cls):
            return tag
        try:
            return cls(tag)
        except ValueError:
            raise InvalidKind(f"unknown period tag: {tag!r}") from None


# ============================================================================
# Filename formatting
# ============================================================================

def _trunc_div(n: int, d: int) -> int:
    """Integer division rounding toward zero (not floor)."""
    q = abs(n) // d
    return q if n >= 0 else -q


def _weeks_into_year(anchor: date, year: int) -> int:
    return _trunc_div((anchor - date(year, 1, 1)).days, 7)


def _daily_name(anchor: date, year: int) -> str:
    return f"j-{anchor.isoformat()}.md"


def _weekly_name(anchor: date, year: int) -> str:
    week = _weeks_into_year(anchor, year) + 1
    return f"w-{anchor.strftime('%Y-%m')}-W{week}.md"


def _monthly_name(anchor: date, year: int) -> str:
    return f"m-{anchor.strftime('%Y-%m')}.md"


def _quarterly_name(anchor: date, year: int) -> str:
    quarter = _trunc_div(_weeks_into_year(anchor, year), 13) + 1
    return f"q-{year}-Q{quarter}.md"


# kind -> (stride in days, storage subdirectory, filename formatter)
KIND_TABLE = {
    PeriodKind.DAILY: (1, "journal", _daily_name),
    PeriodKind.WEEKLY: (7, "weekly", _weekly_name),
    PeriodKind.MONTHLY: (30, "monthly", _monthly_name),  # undershoots a month
    PeriodKind.QUARTERLY: (91, "quarterly", _quarterly_name),
}

ALL_TAGS = [kind.tag for kind in PeriodKind]


# ============================================================================
# Period identity
# ============================================================================

@dataclass(frozen=True)
class PeriodIdentity:
    kind: PeriodKind
    anchor_date: date
    bucket_year: int

    @classmethod
    def from_tag(cls, tag: Union[str, PeriodKind], reference_date: date) -> "PeriodIdentity":
        """Seed identity for a run: the bucket year is the reference date's year."""
        return cls(PeriodKind.from_tag(tag), reference_date, reference_date.year)

    @property
    def stride(self) -> int:
        return KIND_TABLE[self.kind][0]

    def canonical_filename(self) -> str:
        """Filename on disk, e.g. ``j-2022-03-04.md`` or ``q-2022-Q2.md``."""
        formatter = KIND_TABLE[self.kind][2]
        return formatter(self.anchor_date, self.bucket_year)

    def stem(self) -> str:
        """Canonical filename without ``.md``; the text used inside a link."""
        return self.canonical_filename()[:-3]

    def link_marker(self) -> str:
        return f"[[{self.kind.tag}-{self.bucket_year}"

    def storage_subdirectory(self) -> str:
        return KIND_TABLE[self.kind][1]

    def __str__(self) -> str:
        return self.canonical_filename()


# ============================================================================
# Window generation
# ============================================================================

def generate_window(
    kind: Union[str, PeriodKind],
    reference_date: date,
    n_days: int,
) -> List[PeriodIdentity]:
    """
    Step back from reference_date in fixed strides covering n_days.

    Returns floor(n_days / stride) + 1 identities, newest first, all sharing
    the reference date's year as bucket year. Raises InvalidKind for an
    unknown tag.
    """
    seed = PeriodIdentity.from_tag(kind, reference_date)
    stride = seed.stride
    return [
        PeriodIdentity(seed.kind, reference_date - timedelta(days=step * stride), seed.bucket_year)
        for step in range(n_days // stride + 1)
    ]
