"""
Changelog feature: keeps debian/changelog in step with each packaging run.

Public API:
    from features.changelog import ChangelogRequest, AutogeneratedItem, update_changelog
    from features.changelog import ChangelogEntry, parse_changelog, first_last_years
"""

from features.changelog.models import (
    COMMENT_TEAM_UPLOAD,
    AutogeneratedItem,
    ChangelogEntry,
    Distribution,
)
from features.changelog.parser import first_last_years, iter_entries, parse_changelog, parse_entry
from features.changelog.reconciler import (
    ChangelogRequest,
    next_version,
    reconcile_changelog,
    update_changelog,
)

__all__ = [
    "COMMENT_TEAM_UPLOAD",
    "AutogeneratedItem",
    "ChangelogEntry",
    "ChangelogRequest",
    "Distribution",
    "first_last_years",
    "iter_entries",
    "next_version",
    "parse_changelog",
    "parse_entry",
    "reconcile_changelog",
    "update_changelog",
]
