"""End-to-end packaging pass into a temporary source directory."""

import dataclasses
import json
import os

import pytest

from activities.overrides import Config
from models.errors import ConfigError, ConsistencyError, IdentityError
from utils.overlay import copy_overlay
from workflows.pipeline import prepare_debian_folder


@pytest.fixture
def srcdir(tmp_path):
    path = tmp_path / "foo_bar-1.2.3"
    path.mkdir()
    return path


def test_generates_debian_folder(crate, cfg, srcdir, author, now):
    out = prepare_debian_folder(crate, srcdir, cfg, author=author, now=now)

    assert out == srcdir / "debian"
    assert list(srcdir.iterdir()) == [out]
    assert (out / "control").read_text().startswith("Source: rust-foo-bar\n")
    assert "Test-Command:" in (out / "tests" / "control").read_text()
    assert (out / "source" / "format").read_text() == "3.0 (quilt)\n"
    assert json.loads((out / "cargo-checksum.json").read_text()) == {
        "package": "Could not get crate checksum",
        "files": {},
    }
    assert (out / "librust-foo-bar+std-dev.lintian-overrides").exists()
    assert not (out / "librust-foo-bar-dev.lintian-overrides").exists()

    rules = (out / "rules").read_text()
    assert os.access(out / "rules", os.X_OK)
    assert "override_dh_auto_test:" in rules
    assert "|| true" not in rules

    watch = (out / "watch").read_text()
    assert "upstream=crates.io/foo_bar" in watch
    assert "@ANY_VERSION@" in watch

    changelog = (out / "changelog").read_text()
    assert changelog.startswith("rust-foo-bar (1.2.3-1) UNRELEASED; urgency=medium\n")
    assert "from crates.io using debcargo" in changelog


def test_broken_default_tolerated_in_rules(crate, srcdir, author, now):
    cfg = Config.model_validate({"uploaders": [author], "packages": {"lib": {"test_is_broken": True}}})
    out = prepare_debian_folder(crate, srcdir, cfg, author=author, now=now)
    assert "dh_auto_test -- test --all || true" in (out / "rules").read_text()


def test_dev_depends_skip_test_override(crate, cfg, srcdir, author, now):
    crate = dataclasses.replace(crate, dev_depends=("librust-quickcheck-1-dev",))
    out = prepare_debian_folder(crate, srcdir, cfg, author=author, now=now)
    assert "override_dh_auto_test" not in (out / "rules").read_text()


def test_semver_suffix_watch(crate, srcdir, author, now):
    cfg = Config(semver_suffix=True, uploaders=[author])
    out = prepare_debian_folder(crate, srcdir, cfg, author=author, now=now)
    assert r"[-_]?(1\.\d[\-+\.:\~\da-zA-Z]*)" in (out / "watch").read_text()


def test_refuses_existing_debian(crate, cfg, srcdir, author):
    (srcdir / "debian").mkdir()
    with pytest.raises(FileExistsError):
        prepare_debian_folder(crate, srcdir, cfg, author=author)


def test_failure_leaves_nothing_behind(crate, srcdir, author, now):
    cfg = Config.model_validate({"packages": {
        "lib": {"test_is_broken": True},
        "lib+std": {"test_is_broken": False},
    }})
    with pytest.raises(ConsistencyError):
        prepare_debian_folder(crate, srcdir, cfg, author=author, now=now)
    assert list(srcdir.iterdir()) == []


def test_missing_identity_aborts(crate, cfg, srcdir, monkeypatch):
    for var in ("DEBFULLNAME", "NAME", "DEBEMAIL", "EMAIL"):
        monkeypatch.delenv(var, raising=False)
    with pytest.raises(IdentityError):
        prepare_debian_folder(crate, srcdir, cfg)
    assert list(srcdir.iterdir()) == []


def test_changelog_ready_skips_changelog(crate, cfg, srcdir, monkeypatch):
    for var in ("DEBFULLNAME", "NAME", "DEBEMAIL", "EMAIL"):
        monkeypatch.delenv(var, raising=False)
    out = prepare_debian_folder(crate, srcdir, cfg, changelog_ready=True)
    assert not (out / "changelog").exists()


def test_overlay_wins_and_hints_written_back(crate, cfg, srcdir, tmp_path, author, now):
    overlay = tmp_path / "overlay"
    (overlay / "source").mkdir(parents=True)
    (overlay / "control").write_text("Source: hand-written\n")
    (overlay / "copyright").write_text("Files: *\n")
    config_path = tmp_path / "debcargo.toml"
    cfg = Config(overlay="overlay", uploaders=[author])

    out = prepare_debian_folder(crate, srcdir, cfg, config_path=config_path, author=author, now=now)

    assert (out / "control").read_text() == "Source: hand-written\n"
    assert (out / "control.debcargo.hint").read_text().startswith("Source: rust-foo-bar\n")
    assert (out / "copyright").read_text() == "Files: *\n"
    assert (overlay / "control.debcargo.hint").exists()
    assert (overlay / "changelog").read_text() == (out / "changelog").read_text()
    assert not (overlay / "rules").exists()


def test_overlay_changelog_is_amended(crate, cfg, srcdir, tmp_path, author, now):
    overlay = tmp_path / "overlay"
    overlay.mkdir()
    (overlay / "changelog").write_text(
        "rust-foo-bar (1.2.3-1) unstable; urgency=medium\n\n"
        "  * Package foo_bar 1.2.3 from crates.io using debcargo 2.4.3\n\n"
        " -- Alice Example <alice@example.org>  Mon, 02 Mar 2020 10:00:00 +0000\n"
    )
    cfg = Config(overlay="overlay", uploaders=[author])

    out = prepare_debian_folder(
        crate, srcdir, cfg, config_path=tmp_path / "debcargo.toml", author=author, now=now,
    )

    changelog = (out / "changelog").read_text()
    assert changelog.startswith("rust-foo-bar (1.2.3-2) UNRELEASED")
    assert changelog.endswith("Mon, 02 Mar 2020 10:00:00 +0000\n")


def test_overlay_of_current_directory_refused(tmp_path):
    with pytest.raises(ConfigError, match="should not be"):
        copy_overlay(".", tmp_path / "debian")
    assert not (tmp_path / "debian").exists()
