"""
Activity: Control Files — Debian naming rules and the text of
debian/control and debian/tests/control.
"""

from __future__ import annotations

import re
import textwrap

import config
from models.errors import MetadataError
from models.schemas import PackageDescriptor, SourceDescriptor, TestDescriptor

SEMVER_RE = re.compile(
    r"^(?P<major>\d+)\.(?P<minor>\d+)\.(?P<patch>\d+)"
    r"(?:-(?P<pre>[0-9A-Za-z.-]+))?"
    r"(?:\+(?P<build>[0-9A-Za-z.-]+))?$"
)


def _semver(version: str) -> re.Match:
    m = SEMVER_RE.match(version)
    if not m:
        raise MetadataError(f"Not a semantic version: {version!r}")
    return m


def deb_version(version: str) -> str:
    """Translate a semver into a Debian upstream version.

    Build metadata is dropped and the prerelease is introduced with "~" so
    that it sorts before the release: 1.0.0-alpha.1+git -> 1.0.0~alpha.1
    """
    m = _semver(version)
    s = f"{m['major']}.{m['minor']}.{m['patch']}"
    if m["pre"]:
        s += "~" + m["pre"]
    return s


def semver_suffix(version: str) -> str:
    """The compatibility prefix of a version: 1.2.3 -> 1, 0.2.3 -> 0.2, 0.0.3 -> 0.0.3."""
    m = _semver(version)
    if m["major"] != "0":
        return m["major"]
    if m["minor"] != "0":
        return f"0.{m['minor']}"
    return f"0.0.{m['patch']}"


def base_package_name(crate: str) -> str:
    return crate.replace("_", "-").lower()


def deb_name(base: str, suffix: str = "") -> str:
    return f"librust-{base}{suffix}-dev"


def deb_feature_name(base: str, feature: str, suffix: str = "") -> str:
    return f"librust-{base}{suffix}+{feature.replace('_', '-').lower()}-dev"


def deb_source_name(base: str, suffix: str = "") -> str:
    return f"rust-{base}{suffix}"


def summary_too_long(package: PackageDescriptor) -> bool:
    return len(package.summary) > config.MAX_SUMMARY_LEN


# ── Rendering ─────────────────────────────────────────────────────────

def _field(name: str, values: list[str], inline: bool = True) -> str:
    if inline:
        return f"{name}: " + ",\n ".join(values) + "\n"
    return f"{name}:\n " + ",\n ".join(values) + "\n"


def render_source(source: SourceDescriptor) -> str:
    out = [
        f"Source: {source.name}\n",
        f"Section: {source.section}\n",
        f"Priority: {source.priority}\n",
        _field("Build-Depends", source.build_deps),
        f"Maintainer: {source.maintainer}\n",
    ]
    if source.uploaders:
        out.append(_field("Uploaders", source.uploaders))
    out.append(f"Standards-Version: {source.standards}\n")
    out.append(f"Vcs-Git: {source.vcs_git}\n")
    out.append(f"Vcs-Browser: {source.vcs_browser}\n")
    if source.homepage:
        out.append(f"Homepage: {source.homepage}\n")
    if source.x_cargo:
        out.append(f"X-Cargo-Crate: {source.x_cargo}\n")
    out.append(f"Rules-Requires-Root: {source.requires_root}\n")
    return "".join(out)


def fill_paragraphs(text: str) -> str:
    """Re-wrap each paragraph of `text`; paragraphs holding "- " lists are kept as-is."""
    paragraphs = []
    for para in re.split(r"\n\s*\n", text.strip()):
        lines = [line.strip() for line in para.splitlines()]
        if any(line.startswith("- ") for line in lines):
            paragraphs.append("\n".join(lines))
        else:
            paragraphs.append(
                textwrap.fill(" ".join(lines), config.WRAP_WIDTH, break_on_hyphens=False)
            )
    return "\n\n".join(paragraphs)


def render_description(package: PackageDescriptor) -> str:
    """Summary line plus the folded long description."""
    paragraphs = [
        fill_paragraphs(x)
        for x in (package.description, package.boilerplate)
        if x.strip()
    ]
    out = [f"Description: {package.summary}\n"]
    for line in "\n\n".join(paragraphs).splitlines():
        line = line.strip()
        if not line or line == ".":
            out.append(" .\n")
        elif line.startswith("- "):
            out.append(f"  {line}\n")
        else:
            out.append(f" {line}\n")
    return "".join(out)


def render_package(package: PackageDescriptor) -> str:
    out = [
        f"Package: {package.name}\n",
        f"Architecture: {package.arch}\n",
        f"Multi-Arch: {package.multi_arch}\n",
    ]
    if package.section:
        out.append(f"Section: {package.section}\n")
    for name, values in [
        ("Depends", package.depends),
        ("Recommends", package.recommends),
        ("Suggests", package.suggests),
        ("Provides", package.provides),
    ]:
        if values:
            out.append(_field(name, values, inline=False))
    out.append(render_description(package))
    return "".join(out)


def render_test(test: TestDescriptor) -> str:
    args = " ".join(["--all-targets", *test.args])
    restrictions = ["allow-stderr", "skip-not-installable"]
    if test.flaky:
        restrictions.append("flaky")
    depends = ["dh-cargo (>= 18)", *test.depends, "@"]
    return (
        f"Test-Command: /usr/share/cargo/bin/cargo-auto-test {test.crate} {test.version} {args}\n"
        f"Features: test-name=rust-{test.crate}:{test.feature}\n"
        f"Depends: {', '.join(depends)}\n"
        f"Restrictions: {', '.join(restrictions)}\n"
    )


def render_control(source: SourceDescriptor, packages: list[PackageDescriptor]) -> str:
    out = [render_source(source)]
    for package in packages:
        if summary_too_long(package):
            out.append(
                "\n# FIXME (packages.\"(name)\".section) debcargo auto-generated "
                f"summary for {package.name} is very long, consider overriding\n"
            )
        out.append("\n" + render_package(package))
    return "".join(out)


def render_tests_control(tests: list[TestDescriptor]) -> str:
    return "\n".join(render_test(t) for t in tests)
