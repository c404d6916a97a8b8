"""
Data models shared by the synthesizer, the control writer and the pipeline.

Feature graph types live in features.resolver.models; changelog types in
features.changelog.models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from features.resolver.models import FeatureGraph


class Relationship(str, Enum):
    MANDATORY = "mandatory"
    RECOMMENDED = "recommended"
    SUGGESTED = "suggested"


@dataclass(frozen=True)
class PackageKey:
    """Key under which per-package overrides are looked up.

    Renders as "bin", "lib" or "lib+<feature>".
    """
    kind: str
    feature: str | None = None

    @classmethod
    def bin(cls) -> PackageKey:
        return cls("bin")

    @classmethod
    def for_feature(cls, feature: str) -> PackageKey:
        if feature == "":
            return cls("lib")
        return cls("lib", feature)

    def __str__(self) -> str:
        if self.feature is None:
            return self.kind
        return f"{self.kind}+{self.feature}"


@dataclass(frozen=True)
class CrateMetadata:
    """Read-only view of the crate being packaged."""
    name: str
    version: str
    features: FeatureGraph
    homepage: str | None = None
    summary: str | None = None
    description: str | None = None
    bins: tuple[str, ...] = ()
    checksum: str | None = None
    is_lib: bool = True
    dev_depends: tuple[str, ...] = ()


@dataclass
class SourceDescriptor:
    """The source stanza of debian/control."""
    name: str
    section: str
    priority: str
    maintainer: str
    uploaders: list[str]
    standards: str
    build_deps: list[str]
    vcs_git: str
    vcs_browser: str
    homepage: str = ""
    x_cargo: str = ""
    requires_root: str = "no"


@dataclass
class PackageDescriptor:
    """A binary package stanza of debian/control."""
    name: str
    feature: str | None  # None for the binaries package
    relation: Relationship
    depends: list[str] = field(default_factory=list)
    recommends: list[str] = field(default_factory=list)
    suggests: list[str] = field(default_factory=list)
    provides: list[str] = field(default_factory=list)
    provided_features: list[str] = field(default_factory=list)
    summary: str = ""
    description: str = ""
    boilerplate: str = ""
    section: str | None = None
    arch: str = "any"
    multi_arch: str = "same"


@dataclass
class TestDescriptor:
    """One autopkgtest stanza of debian/tests/control."""
    __test__ = False  # not a pytest class

    package: str
    crate: str
    feature: str
    version: str
    args: list[str] = field(default_factory=list)
    depends: list[str] = field(default_factory=list)
    flaky: bool = False


@dataclass
class ControlPlan:
    """Everything the control writer needs for one packaging pass."""
    source: SourceDescriptor
    packages: list[PackageDescriptor] = field(default_factory=list)
    tests: list[TestDescriptor] = field(default_factory=list)
    default_test_broken: bool = False
    has_dev_depends: bool = False
