"""
debian/changelog parser.

The file is split into stanzas without touching their text, so callers can
rewrite the newest stanza and paste the rest back verbatim.
"""

from __future__ import annotations

import re
from email.utils import parsedate_to_datetime
from typing import Iterator

from debian.debian_support import Version

from features.changelog.models import ChangelogEntry
from models.errors import ChangelogParseError

HEADER_RE = re.compile(r"^(\S+) \(([^()\s]+)\) ([^;]+?);\s*(.*)$")
TRAILER_RE = re.compile(r"^ -- (?P<maintainer>.*?<[^>]*>)\s+(?P<date>\S.*)$")


def iter_entries(text: str) -> Iterator[str]:
    """Yield the raw text of each stanza, newest first.

    A stanza runs up to and including its " -- " trailer line and any blank
    lines after it, so the yielded pieces concatenate back to `text`.
    """
    lines = text.splitlines(keepends=True)
    start = 0
    i = 0
    while i < len(lines):
        if lines[i].startswith(" -- "):
            j = i + 1
            while j < len(lines) and not lines[j].strip():
                j += 1
            yield "".join(lines[start:j])
            start = i = j
        else:
            i += 1
    rest = "".join(lines[start:])
    if rest.strip():
        yield rest


def parse_entry(chunk: str) -> ChangelogEntry:
    """Parse one stanza as produced by iter_entries."""
    lines = chunk.splitlines()
    while lines and not lines[0].strip():
        lines.pop(0)
    while lines and not lines[-1].strip():
        lines.pop()
    if len(lines) < 2:
        raise ChangelogParseError("truncated changelog entry", chunk)

    header = HEADER_RE.match(lines[0])
    if not header:
        raise ChangelogParseError("malformed changelog header", lines[0])
    trailer = TRAILER_RE.match(lines[-1])
    if not trailer:
        raise ChangelogParseError("malformed changelog trailer", lines[-1])
    try:
        date = parsedate_to_datetime(trailer.group("date"))
    except (TypeError, ValueError) as e:
        raise ChangelogParseError("malformed changelog date", lines[-1]) from e

    items = lines[1:-1]
    while items and not items[0].strip():
        items.pop(0)
    while items and not items[-1].strip():
        items.pop()

    source, version, distribution, options = header.groups()
    try:
        Version(version)
    except ValueError as e:
        raise ChangelogParseError("malformed changelog version", lines[0]) from e
    return ChangelogEntry(
        source=source,
        version=version,
        distribution=distribution.strip(),
        options=options.strip(),
        maintainer=trailer.group("maintainer").strip(),
        date=date,
        items=items,
    )


def parse_changelog(text: str) -> list[ChangelogEntry]:
    return [parse_entry(chunk) for chunk in iter_entries(text)]


def first_last_years(text: str) -> tuple[int, int]:
    """Years of the oldest and the newest entry."""
    entries = parse_changelog(text)
    if not entries:
        raise ChangelogParseError("changelog had no entries")
    return entries[-1].date.year, entries[0].date.year
