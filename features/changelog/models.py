"""
Data models for debian/changelog handling.

ChangelogEntry is one stanza of the changelog; AutogeneratedItem is the
bullet this tool writes (and later finds again) inside the newest stanza.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from email.utils import format_datetime
from enum import Enum

from debian.debian_support import Version

import config


class Distribution(str, Enum):
    UNRELEASED = "UNRELEASED"


COMMENT_TEAM_UPLOAD = "  * Team upload."

_LEADING_DIGITS = re.compile(r"^(\d+)")
_AUTHOR_RE = re.compile(r"^(.*?)\s*<([^>]*)>\s*$")


def author_name(author: str) -> str:
    """'Jane Doe <jane@example.org>' -> 'Jane Doe'."""
    m = _AUTHOR_RE.match(author)
    return m.group(1) if m else author.strip()


def heading(name: str) -> str:
    return f"  [ {name} ]"


def is_heading(item: str) -> bool:
    stripped = item.strip()
    return stripped.startswith("[ ") and stripped.endswith(" ]")


@dataclass
class ChangelogEntry:
    """A single changelog stanza."""
    source: str
    version: str
    distribution: str
    options: str
    maintainer: str
    date: datetime
    items: list[str] = field(default_factory=list)

    @property
    def is_unreleased(self) -> bool:
        return self.distribution == Distribution.UNRELEASED

    def maintainer_name(self) -> str:
        return author_name(self.maintainer)

    def parsed_version(self) -> Version:
        return Version(self.version)

    @property
    def epoch(self) -> str | None:
        return self.parsed_version().epoch

    def version_parts(self) -> tuple[str, str]:
        """Split "1:1.2.3-4" into ("1.2.3", "4"); native versions have no revision."""
        v = self.parsed_version()
        return v.upstream_version, v.debian_revision or ""

    def revision_bump(self) -> str:
        """The revision that follows this entry's, e.g. "4" -> "5", "2+b1" -> "3"."""
        _, revision = self.version_parts()
        m = _LEADING_DIGITS.match(revision)
        if not m:
            return "1"
        return str(int(m.group(1)) + 1)

    def __str__(self) -> str:
        body = "\n".join(self.items)
        return (
            f"{self.source} ({self.version}) {self.distribution}; {self.options}\n"
            f"\n"
            f"{body}\n"
            f"\n"
            f" -- {self.maintainer}  {format_datetime(self.date)}\n"
        )


@dataclass(frozen=True)
class AutogeneratedItem:
    """The "Package <crate> <version> from <origin> using <tool> <v>" bullet."""
    crate: str
    version: str
    origin: str
    tool_version: str = config.TOOL_VERSION

    def render(self) -> str:
        return (
            f"  * Package {self.crate} {self.version} from {self.origin} "
            f"using {config.TOOL_NAME} {self.tool_version}"
        )

    def pattern(self) -> re.Pattern:
        return re.compile(
            rf"^  \* Package (.*) (.*) from {re.escape(self.origin)} "
            rf"using {re.escape(config.TOOL_NAME)} (.*)$"
        )

    def matches(self, item: str) -> bool:
        """True if `item` is an earlier rendering of this bullet for the same origin."""
        return self.pattern().match(item) is not None
