"""
Activity: Override Configuration — loads a crate's debcargo.toml and answers
typed queries about it.

Layout of the file:

    collapse_features = false
    uploaders = ["Jane Doe <jane@example.org>"]

    [source]
    section = "rust"
    build_depends_excludes = ["libfoo-dev"]

    [packages.lib]
    test_is_broken = true

    [packages."lib+std"]
    summary = "..."
    depends = ["libbar-dev"]
    test_depends = ["libbaz-dev"]
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

import config
from models.errors import ConfigError
from models.schemas import PackageKey

log = logging.getLogger(__name__)

DEFAULT_BIN_NAME = "<default>"


class SourceOverride(BaseModel):
    model_config = ConfigDict(extra="forbid")

    section: str | None = None
    policy: str | None = None
    homepage: str | None = None
    vcs_git: str | None = None
    vcs_browser: str | None = None
    build_depends: list[str] | None = None
    build_depends_excludes: list[str] | None = None


class PackageOverride(BaseModel):
    model_config = ConfigDict(extra="forbid")

    section: str | None = None
    summary: str | None = None
    description: str | None = None
    depends: list[str] | None = None
    test_is_broken: bool | None = None
    test_depends: list[str] | None = None


class Config(BaseModel):
    """Per-crate overrides. Every field is optional."""
    model_config = ConfigDict(extra="forbid")

    semver_suffix: bool = False
    overlay: Path | None = None
    # accepted so existing debcargo.toml files validate; repacking is not done here
    excludes: list[str] | None = None
    bin: bool = True
    bin_name: str = DEFAULT_BIN_NAME
    crate_src_path: Path | None = None
    collapse_features: bool = False
    # dependency version translation happens upstream of CrateMetadata
    allow_prerelease_deps: bool = False
    summary: str | None = None
    description: str | None = None
    maintainer: str = config.RUST_MAINT
    uploaders: list[str] | None = None
    requires_root: str | None = None

    source: SourceOverride | None = None
    packages: dict[str, PackageOverride] = Field(default_factory=dict)

    # ── Source queries ──

    def source_section(self) -> str | None:
        return self.source.section if self.source else None

    def policy_version(self) -> str | None:
        return self.source.policy if self.source else None

    def homepage(self) -> str | None:
        return self.source.homepage if self.source else None

    def vcs_git(self) -> str | None:
        return self.source.vcs_git if self.source else None

    def vcs_browser(self) -> str | None:
        return self.source.vcs_browser if self.source else None

    def build_depends(self) -> list[str]:
        if self.source and self.source.build_depends:
            return list(self.source.build_depends)
        return []

    def build_depends_excludes(self) -> list[str]:
        if self.source and self.source.build_depends_excludes:
            return list(self.source.build_depends_excludes)
        return []

    def uploader_list(self) -> list[str]:
        return list(self.uploaders or [])

    def build_bin_package(self) -> bool:
        return self.bin

    def overlay_dir(self, config_path: Path | None) -> Path | None:
        """The overlay directory, relative to the config file's directory."""
        if self.overlay is None:
            return None
        return _relative_to_config(self.overlay, config_path)

    def crate_src_dir(self, config_path: Path | None) -> Path | None:
        if self.crate_src_path is None:
            return None
        return _relative_to_config(self.crate_src_path, config_path)

    # ── Per-package queries ──

    def _package(self, key: PackageKey) -> PackageOverride | None:
        return self.packages.get(str(key))

    def package_section(self, key: PackageKey) -> str | None:
        pkg = self._package(key)
        return pkg.section if pkg else None

    def package_summary(self, key: PackageKey) -> tuple[str, str] | None:
        pkg = self._package(key)
        if pkg is None:
            return None
        return pkg.summary or "", pkg.description or ""

    def package_depends(self, key: PackageKey) -> list[str]:
        pkg = self._package(key)
        return list(pkg.depends or []) if pkg else []

    def package_test_is_broken(self, key: PackageKey) -> bool | None:
        pkg = self._package(key)
        return pkg.test_is_broken if pkg else None

    def package_test_depends(self, key: PackageKey) -> list[str]:
        pkg = self._package(key)
        return list(pkg.test_depends or []) if pkg else []


def _relative_to_config(path: Path, config_path: Path | None) -> Path:
    if path.is_absolute() or config_path is None:
        return path
    return Path(config_path).parent / path


def package_field_for_feature(get_field, key: PackageKey, provides: list[str]) -> list[str]:
    """Collect a list-valued override for a package and every feature it provides."""
    values: list[str] = []
    for k in [key, *(PackageKey.for_feature(f) for f in provides)]:
        values.extend(get_field(k))
    return values


def parse_config(path: Path | str) -> Config:
    """Read and validate a debcargo.toml file."""
    path = Path(path)
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e
    try:
        cfg = Config.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e
    log.info("Loaded configuration: %s (%d package overrides)", path, len(cfg.packages))
    return cfg
