"""
Changelog reconciler: merges this run's autogenerated bullet into
debian/changelog without losing anything a human wrote.

Two cases:
  * the newest entry is still UNRELEASED: amend it in place
    (same author: refresh our bullet; other author: add ours above theirs
    under separate headings so attribution survives)
  * otherwise (or the file is empty): prepend a new UNRELEASED entry

Everything below the newest entry is pasted back byte-for-byte.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

import config
from features.changelog.models import (
    COMMENT_TEAM_UPLOAD,
    AutogeneratedItem,
    ChangelogEntry,
    Distribution,
    author_name,
    heading,
    is_heading,
)
from features.changelog.parser import iter_entries, parse_entry

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangelogRequest:
    """What this run wants recorded at the top of the changelog."""
    source: str
    upstream_version: str
    author: str
    item: AutogeneratedItem
    uploaders: tuple[str, ...] = field(default_factory=tuple)
    urgency: str = config.DEFAULT_URGENCY


def local_now() -> datetime:
    return datetime.now().astimezone().replace(microsecond=0)


def next_version(previous: ChangelogEntry | None, upstream_version: str, epoch: str | None = None) -> str:
    """The full Debian version for this run.

    The revision bumps the previous one for the same upstream version, else
    starts at 1. An epoch carries over from the previous entry so the new
    version never sorts below it.
    """
    revision = "1"
    if previous is not None:
        epoch = previous.epoch or epoch
        if previous.version_parts()[0] == upstream_version:
            revision = previous.revision_bump()
    version = f"{upstream_version}-{revision}"
    return f"{epoch}:{version}" if epoch else version


def _drop_item(items: list[str], item: str) -> list[str]:
    """Remove an earlier copy of `item` and any author heading it leaves empty.

    Items are returned untouched when `item` is not among them.
    """
    if item not in items:
        return items
    items = [x for x in items if x != item]
    kept = []
    for pos, x in enumerate(items):
        if is_heading(x):
            following = next((y for y in items[pos + 1:] if y.strip()), None)
            if following is None or is_heading(following):
                continue
        kept.append(x)

    tidy: list[str] = []
    for x in kept:
        if not x.strip() and (not tidy or not tidy[-1].strip()):
            continue
        tidy.append(x)
    while tidy and not tidy[-1].strip():
        tidy.pop()
    return tidy


def _merge_items(top: ChangelogEntry, request: ChangelogRequest) -> list[str]:
    generated = request.item.render()
    items = list(top.items)

    if request.author == top.maintainer:
        for pos, item in enumerate(items):
            if request.item.matches(item):
                items[pos] = generated
                break
        else:
            items.append(generated)
        return items

    # Someone else's unreleased work: keep it verbatim below ours
    items = _drop_item(items, generated)
    if not items:
        return [generated]
    own = heading(author_name(request.author))
    if own in items:
        pos = items.index(own) + 1
        return [*items[:pos], generated, *items[pos:]]
    merged = [own, generated, ""]
    first = next((x for x in items if x != COMMENT_TEAM_UPLOAD), None)
    if first is None or not is_heading(first):
        merged.append(heading(top.maintainer_name()))
    merged.extend(items)
    return merged


def reconcile_changelog(text: str, request: ChangelogRequest, now: datetime | None = None) -> str:
    """Return the new changelog contents for `text`."""
    chunks = list(iter_entries(text))
    top = parse_entry(chunks[0]) if chunks else None

    if top is not None and top.is_unreleased:
        log.info("Amending unreleased changelog entry %s by %s", top.version, top.maintainer)
        items = _merge_items(top, request)
        previous = parse_entry(chunks[1]) if len(chunks) > 1 else None
        rest = text[len(chunks[0]):]
        epoch = top.epoch
    else:
        items = [request.item.render()]
        previous = top
        rest = text
        epoch = None

    if request.author not in request.uploaders:
        log.warning(
            'You (%s) are not in Uploaders; adding "Team upload" to d/changelog',
            request.author,
        )
        if COMMENT_TEAM_UPLOAD not in items:
            items.insert(0, COMMENT_TEAM_UPLOAD)

    entry = ChangelogEntry(
        source=request.source,
        version=next_version(previous, request.upstream_version, epoch),
        distribution=Distribution.UNRELEASED.value,
        options=request.urgency,
        maintainer=request.author,
        date=now or local_now(),
        items=items,
    )
    if not rest:
        return str(entry)
    return f"{entry}\n{rest}"


def update_changelog(path: Path | str, request: ChangelogRequest, now: datetime | None = None) -> str:
    """Reconcile the changelog at `path` in place, creating it if missing.

    The file is rewritten from offset zero and truncated to the new length.
    Returns the new contents.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.touch(exist_ok=True)
    with open(path, "r+", encoding="utf-8", newline="") as f:
        data = f.read()
        new = reconcile_changelog(data, request, now)
        f.seek(0)
        f.write(new)
        f.truncate()
    log.info("Wrote changelog: %s (%d chars)", path, len(new))
    return new
