"""
Packaging pass: Crate → debian/

Orchestrates one run:
  1. Copy the overlay (hand-maintained debian/ files), if any
  2. Write cargo-checksum.json and source/format
  3. Synthesize packages and tests → control, tests/control, lintian overrides
  4. Write rules and watch
  5. Reconcile the changelog
  6. Write changelog and hints back to the overlay
  7. Rename the finished directory to <srcdir>/debian

Everything is built in a temporary directory next to the target; on any
error it is removed and nothing at the final location changes.
"""

from __future__ import annotations

import json
import logging
import shutil
import tempfile
from datetime import datetime
from pathlib import Path

from activities.control import deb_version, render_control, render_tests_control, semver_suffix
from activities.identity import get_deb_author
from activities.overrides import Config
from activities.synthesize import synthesize
from features.changelog import AutogeneratedItem, ChangelogRequest, update_changelog
from models.schemas import ControlPlan, CrateMetadata
from utils.overlay import copy_overlay, write_back, write_generated

log = logging.getLogger(__name__)

RULES = "#!/usr/bin/make -f\n%:\n\tdh $@ --buildsystem cargo\n"


def prepare_debian_folder(
    crate: CrateMetadata,
    pkg_srcdir: Path | str,
    cfg: Config,
    config_path: Path | None = None,
    changelog_ready: bool = False,
    overlay_write_back: bool = True,
    author: str | None = None,
    now: datetime | None = None,
) -> Path:
    """
    Generate <pkg_srcdir>/debian for `crate`.

    Returns:
        Path of the new debian/ directory.
    """
    pkg_srcdir = Path(pkg_srcdir)
    final = pkg_srcdir / "debian"
    if final.exists():
        raise FileExistsError(f"Refusing to overwrite existing {final}")

    log.info("Preparing debian folder for %s %s in %s", crate.name, crate.version, pkg_srcdir)
    tempdir = Path(tempfile.mkdtemp(prefix="debcargo", dir=pkg_srcdir))
    try:
        _populate(tempdir, crate, cfg, config_path, changelog_ready, overlay_write_back, author, now)
        tempdir.rename(final)
    except Exception as e:
        log.error("Packaging %s failed: %s", crate.name, e)
        shutil.rmtree(tempdir, ignore_errors=True)
        raise

    log.info("Debian folder ready: %s", final)
    return final


def _populate(
    root: Path,
    crate: CrateMetadata,
    cfg: Config,
    config_path: Path | None,
    changelog_ready: bool,
    overlay_write_back: bool,
    author: str | None,
    now: datetime | None,
) -> None:
    hints: list[str] = []

    overlay = cfg.overlay_dir(config_path)
    if overlay is not None:
        copy_overlay(overlay, root)
    if (root / "control").exists():
        log.warning(
            "Most of the time you shouldn't overlay debian/control, "
            "it's a maintenance burden. Use debcargo.toml instead."
        )

    checksum = crate.checksum or "Could not get crate checksum"
    write_generated(root, "cargo-checksum.json", json.dumps({"package": checksum, "files": {}}) + "\n", hints)
    write_generated(root, "source/format", "3.0 (quilt)\n", hints)

    plan = synthesize(crate, cfg)
    _write_control(root, plan, hints)
    write_generated(root, "rules", _rules(plan), hints, mode=0o755)
    write_generated(root, "watch", _watch(crate, cfg, config_path), hints)

    if not changelog_ready:
        author = author or get_deb_author()
        origin = "local source" if cfg.crate_src_path is not None else "crates.io"
        request = ChangelogRequest(
            source=plan.source.name,
            upstream_version=deb_version(crate.version),
            author=author,
            item=AutogeneratedItem(crate.name, crate.version, origin),
            uploaders=tuple(cfg.uploader_list()),
        )
        update_changelog(root / "changelog", request, now)

    if overlay_write_back and overlay is not None:
        # changelog is always safe to write back because of the prepending logic
        names = hints + ([] if changelog_ready else ["changelog"])
        write_back(root, overlay, names)


def _write_control(root: Path, plan: ControlPlan, hints: list[str]) -> None:
    write_generated(root, "control", render_control(plan.source, plan.packages), hints)
    if plan.tests:
        write_generated(root, "tests/control", render_tests_control(plan.tests), hints)
    for package in plan.packages:
        # Override pointless overzealous warnings from lintian
        if package.feature:
            write_generated(
                root,
                f"{package.name}.lintian-overrides",
                f"{package.name} binary: empty-rust-library-declares-provides *\n",
                hints,
            )


def _rules(plan: ControlPlan) -> str:
    if plan.has_dev_depends:
        # don't run any tests, we don't want extra B-D on dev-depends
        return RULES
    test = "\tdh_auto_test -- test --all"
    if plan.default_test_broken:
        test += " || true"
    return f"{RULES}\noverride_dh_auto_test:\n{test}\n"


def _watch(crate: CrateMetadata, cfg: Config, config_path: Path | None) -> str:
    if cfg.crate_src_dir(config_path) is not None:
        return "FIXME add uscan directive for local crate"
    if cfg.semver_suffix:
        # See `man uscan` description of @ANY_VERSION@ on how this was built
        version_pattern = rf"[-_]?({semver_suffix(crate.version)}\.\d[\-+\.:\~\da-zA-Z]*)"
    else:
        version_pattern = "@ANY_VERSION@"
    name = crate.name
    return (
        "version=4\n"
        rf"opts=filenamemangle=s/.*\/(.*)\/download/{name}-$1\.tar\.gz/g,\ " "\n"
        r"uversionmangle=s/(\d)[_\.\-\+]?((RC|rc|pre|dev|beta|alpha)\d*)$/$1~$2/ \ " "\n"
        f"https://qa.debian.org/cgi-bin/fakeupstream.cgi?upstream=crates.io/{name} "
        f".*/crates/{name}/{version_pattern}/download\n"
    )
