#!/usr/bin/env python3
"""
Find backlinks to periodic notes and decide how to repair dangling ones.

A backlink looks like ``[[w-2022-03-W09]]`` (optionally with a ``#heading``).
This is a line-oriented text scan, not a markdown parser: every line holding
the kind's link marker is assumed to carry exactly one reference.
"""

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Tuple

from periodic_files import PeriodIdentity

# Segments of a line are split on link brackets and heading anchors
LINK_DELIMITERS = re.compile(r"[\[\]#]")


@dataclass(frozen=True)
class DanglingReference:
    source_file: PeriodIdentity
    matched_line: str
    referenced_token: str


def find_candidate_references(file_text: str, marker: str, year: int) -> Iterator[Tuple[str, str]]:
    """
    Yield (line, candidate_token) for each line containing marker.

    The candidate token is the first bracket/anchor-delimited segment that
    contains the year's digits, i.e. the referenced filename stem. Lines with
    the marker but no such segment are skipped.
    """
    year_text = str(year)
    for line in file_text.splitlines():
        if marker not in line:
            continue
        for segment in LINK_DELIMITERS.split(line):
            if year_text in segment:
                yield line, segment
                break


def resolve_fallback(
    source: PeriodIdentity,
    existing: Sequence[PeriodIdentity],
) -> Optional[PeriodIdentity]:
    """
    The existing file right after source in newest-first order, or None.

    The fallback depends only on where the *source* note sits, not on the
    date the broken link pointed at, so every dangling link in one note
    resolves to the same target.
    """
    try:
        position = list(existing).index(source)
    except ValueError:
        return None
    if position + 1 < len(existing):
        return existing[position + 1]
    return None


def plan_replacements(
    source: PeriodIdentity,
    file_text: str,
    existing: Sequence[PeriodIdentity],
    directory: Path,
) -> Tuple[List[Tuple[str, str]], List[DanglingReference]]:
    """
    Work out line rewrites for one source note.

    Returns (replacements, unresolved): replacements are ordered
    (original_line, replacement_line) pairs; unresolved holds dangling
    references with no older existing file to point at.
    """
    replacements = []
    unresolved = []
    fallback = resolve_fallback(source, existing)

    for line, token in find_candidate_references(file_text, source.link_marker(), source.bucket_year):
        # os.path.exists is False for names the filesystem rejects (e.g. too long)
        if os.path.exists(Path(directory) / f"{token}.md"):
            continue

        if fallback is None:
            unresolved.append(DanglingReference(source, line, token))
            continue

        replacements.append((line, line.replace(token, fallback.stem())))

    return replacements, unresolved
