"""
Overlay helpers: merge hand-maintained debian/ files with generated ones.

An overlay file always wins: when a generated file would collide with one,
the generated version is written next to it as a "hint" instead.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

import config
from models.errors import ConfigError

log = logging.getLogger(__name__)


def copy_overlay(overlay: Path, dest: Path) -> None:
    """Copy the overlay directory tree into `dest`."""
    overlay = Path(overlay)
    if overlay == Path("."):
        raise ConfigError(
            f"Aborting: refusing to recursively copy {overlay} to {dest} "
            "(overlay directory should not be .)"
        )
    shutil.copytree(overlay, dest, dirs_exist_ok=True)
    log.info("Copied overlay %s", overlay)


def write_generated(root: Path, rel_path: str, content: str, hints: list[str], mode: int | None = None) -> Path:
    """Write a generated file, or its hint if the overlay already supplies it.

    Hint names are appended to `hints`.
    """
    target = root / rel_path
    if target.exists():
        rel_path = rel_path + config.HINT_SUFFIX
        target = root / rel_path
        hints.append(rel_path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding="utf-8")
    if mode is not None:
        target.chmod(mode)
    log.info("Wrote %s (%d chars)", rel_path, len(content))
    return target


def write_back(root: Path, overlay: Path, names: list[str]) -> list[str]:
    """Copy the named files from `root` back into the overlay directory."""
    written = []
    for name in names:
        dest = overlay / name
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(root / name, dest)
        written.append(name)
        log.info("Wrote back file to overlay: %s", name)
    return written
