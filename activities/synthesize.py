"""
Activity: Synthesize Packages — turns a crate's reduced feature graph into
binary package descriptors and the autopkgtest matrix.

One -dev package is emitted per surviving feature; every feature a package
bundles (its own plus everything it provides) gets its own test.
"""

from __future__ import annotations

import logging

import config
from activities.control import (
    base_package_name,
    deb_feature_name,
    deb_name,
    deb_source_name,
    deb_version,
    semver_suffix,
)
from activities.overrides import DEFAULT_BIN_NAME, Config, package_field_for_feature
from features.resolver import (
    BASE,
    DEFAULT,
    BrokenFlags,
    FeatureGraph,
    ProvidesMap,
    collapse_features,
    reduce_provides,
    transitive_deps,
)
from models.schemas import (
    ControlPlan,
    CrateMetadata,
    PackageDescriptor,
    PackageKey,
    Relationship,
    SourceDescriptor,
    TestDescriptor,
)

log = logging.getLogger(__name__)

ALL_FEATURES = "@"

COLLAPSE_WARNING = """\
You are using the collapse_features work-around, which makes the resulting
package uninstallable when (now or in the future) your crate dependencies
contain cyclic dependencies on the crate-level; this is because cargo only
enforces acyclicity of dependencies on the per-feature level.

By switching on collapse_features, you are telling debcargo to generate Debian
binary packages on a per-crate-level basis and not a per-feature-level, meaning
that there is the chance of generating a dependency cycle on the Debian binary
package level, which APT by default refuses to install.

A basic example of the above would be:

- crate A with feature AX depends on crate B with feature BY
- crate B with feature BX depends on crate A with feature AY

There is no dependency cycle on the per-feature level, and this is enforced by
cargo; but if collapse_features is used then package A+AX+AY would cyclicly
depend on package B+BX+BY."""


def _dedup(values: list[str]) -> list[str]:
    return list(dict.fromkeys(values))


class _Names:
    """Debian package names for one crate."""

    def __init__(self, crate: CrateMetadata, cfg: Config):
        self.base = base_package_name(crate.name)
        if not cfg.semver_suffix:
            self.suffix = ""
        elif not crate.is_lib and crate.bins:
            self.suffix = ""
        else:
            self.suffix = "-" + semver_suffix(crate.version)

    def source(self) -> str:
        return deb_source_name(self.base, self.suffix)

    def package(self, feature: str) -> str:
        if feature == BASE:
            return deb_name(self.base, self.suffix)
        return deb_feature_name(self.base, feature, self.suffix)

    def pinned(self, feature: str) -> str:
        return f"{self.package(feature)} (= ${{binary:Version}})"


def classify(reduced: FeatureGraph, provides: ProvidesMap) -> dict[str, Relationship]:
    """Recommended if the package is or provides "default", suggested otherwise.

    The base package is mandatory.
    """
    relations = {}
    for f in reduced:
        if f == BASE:
            relations[f] = Relationship.MANDATORY
        elif f == DEFAULT or DEFAULT in provides.get(f, []):
            relations[f] = Relationship.RECOMMENDED
        else:
            relations[f] = Relationship.SUGGESTED
    return relations


def resolve_packages(graph: FeatureGraph, collapse: bool = False) -> tuple[ProvidesMap, FeatureGraph]:
    """Pick the reduction strategy."""
    if collapse:
        for line in COLLAPSE_WARNING.splitlines():
            log.warning(line)
        return collapse_features(graph)
    return reduce_provides(graph)


def build_depends(crate: CrateMetadata, cfg: Config, has_bins: bool) -> list[str]:
    graph = crate.features
    if DEFAULT in graph:
        default_features, default_deps = transitive_deps(graph, DEFAULT)
    elif BASE in graph:
        default_features, default_deps = transitive_deps(graph, BASE)
    else:
        default_features, default_deps = [], []

    extra = ["cargo:native", "rustc:native", "libstd-rust-dev", *default_deps]
    extra += package_field_for_feature(
        cfg.package_depends, PackageKey.for_feature(DEFAULT), default_features,
    )
    if not has_bins:
        extra = [f"{d} <!nocheck>" for d in extra]

    deps = _dedup(["debhelper (>= 12)", "dh-cargo (>= 25)", *extra, *cfg.build_depends()])
    excludes = set(cfg.build_depends_excludes())
    return [d for d in deps if d not in excludes]


def build_source(crate: CrateMetadata, cfg: Config, names: _Names, build_deps: list[str]) -> SourceDescriptor:
    crate_dir = f"{names.base}{names.suffix}"
    source = SourceDescriptor(
        name=names.source(),
        section="rust" if crate.is_lib else "FIXME-(source.section)",
        priority="optional",
        maintainer=cfg.maintainer,
        uploaders=cfg.uploader_list(),
        standards=config.STANDARDS_VERSION,
        build_deps=build_deps,
        vcs_git=f"{config.VCS_GIT} [src/{crate_dir}]",
        vcs_browser=f"{config.VCS_ALL}/{crate_dir}",
        homepage=crate.homepage or "",
        x_cargo=crate.name if crate.name != crate.name.replace("_", "-") else "",
        requires_root=cfg.requires_root or "no",
    )
    source.section = cfg.source_section() or source.section
    source.standards = cfg.policy_version() or source.standards
    source.homepage = cfg.homepage() or source.homepage
    source.vcs_git = cfg.vcs_git() or source.vcs_git
    source.vcs_browser = cfg.vcs_browser() or source.vcs_browser
    return source


def _provides_sentence(provided: list[str]) -> str:
    if not provided:
        return ""
    if len(provided) == 1:
        return f'\n\nAdditionally, this package also provides the "{provided[0]}" feature.'
    head = '", "'.join(provided[:-1])
    return (
        f'\n\nAdditionally, this package also provides the "{head}", '
        f'and "{provided[-1]}" features.'
    )


def _apply_overrides(package: PackageDescriptor, cfg: Config, key: PackageKey, provided: list[str]) -> None:
    section = cfg.package_section(key)
    if section:
        package.section = section
    summary = cfg.package_summary(key)
    if summary is not None:
        s, d = summary
        if s:
            package.summary = s
        if d:
            package.description = d
    package.depends.extend(package_field_for_feature(cfg.package_depends, key, provided))


def build_feature_package(
    feature: str,
    graph: FeatureGraph,
    provides: ProvidesMap,
    relations: dict[str, Relationship],
    crate: CrateMetadata,
    cfg: Config,
    names: _Names,
) -> PackageDescriptor:
    entry = graph[feature]
    provided = provides.get(feature, [])
    summary_prefix = cfg.summary or crate.summary or f'Rust crate "{crate.name}"'
    description_prefix = cfg.description or crate.description or ""

    if feature == BASE:
        summary_suffix = " - Rust source code"
        boilerplate = (
            f"This package contains the source for the Rust {crate.name} crate, "
            "packaged by debcargo for use with cargo and dh-cargo."
        )
        others = [f for f in relations if f != BASE and f not in provided]
        recommends = [names.pinned(f) for f in others if relations[f] == Relationship.RECOMMENDED]
        suggests = [names.pinned(f) for f in others if relations[f] == Relationship.SUGGESTED]
    else:
        if provided:
            summary_suffix = f' - feature "{feature}" and {len(provided)} more'
        else:
            summary_suffix = f' - feature "{feature}"'
        boilerplate = (
            f'This metapackage enables feature "{feature}" for the Rust {crate.name} '
            "crate, by pulling in any additional dependencies needed by that feature."
            + _provides_sentence(provided)
        )
        recommends = []
        suggests = []

    package = PackageDescriptor(
        name=names.package(feature),
        feature=feature,
        relation=relations[feature],
        depends=["${misc:Depends}", *(names.pinned(f) for f in entry.features), *entry.deps],
        recommends=recommends,
        suggests=suggests,
        provides=[names.pinned(f) for f in provided],
        provided_features=list(provided),
        summary=summary_prefix + summary_suffix,
        description=description_prefix,
        boilerplate=boilerplate,
    )
    _apply_overrides(package, cfg, PackageKey.for_feature(feature), provided)
    return package


def feature_test(
    package: PackageDescriptor,
    feature: str,
    crate: CrateMetadata,
    cfg: Config,
    broken: BrokenFlags,
) -> TestDescriptor:
    """The autopkgtest for building the crate with exactly `feature` enabled."""
    reachable, _ = transitive_deps(crate.features, feature)

    if feature == DEFAULT or DEFAULT in reachable:
        args = []
    else:
        args = ["--no-default-features"]
    # --features default sometimes fails, see
    # https://github.com/rust-lang/cargo/issues/8164
    if feature and feature != DEFAULT:
        args += ["--features", feature]

    depends = []
    for f in _dedup([feature, *reachable]):
        depends.extend(cfg.package_test_depends(PackageKey.for_feature(f)))
    depends.extend(crate.dev_depends)

    return TestDescriptor(
        package=package.name,
        crate=crate.name,
        feature=feature,
        version=deb_version(crate.version),
        args=args,
        depends=_dedup(depends),
        flaky=broken.is_broken(feature),
    )


def all_features_test(source: SourceDescriptor, crate: CrateMetadata, cfg: Config) -> TestDescriptor:
    keys = [ALL_FEATURES, *crate.features]
    flaky = any(cfg.package_test_is_broken(PackageKey.for_feature(f)) for f in keys)
    depends = []
    for f in keys:
        depends.extend(cfg.package_test_depends(PackageKey.for_feature(f)))
    depends.extend(crate.dev_depends)
    return TestDescriptor(
        package=source.name,
        crate=crate.name,
        feature=ALL_FEATURES,
        version=deb_version(crate.version),
        args=["--all-features"],
        depends=_dedup(depends),
        flaky=flaky,
    )


def build_bin_package(crate: CrateMetadata, cfg: Config, bins: list[str]) -> PackageDescriptor:
    if cfg.bin_name == DEFAULT_BIN_NAME:
        name = crate.name.replace("_", "-")
        log.info(
            "Generate binary crate with default name '%s', set bin_name to override "
            "or bin = false to disable.", name,
        )
    else:
        name = cfg.bin_name

    boilerplate = (
        "This package contains the following binaries built from the Rust crate\n"
        f'"{crate.name}":\n - ' + "\n - ".join(bins)
    )
    package = PackageDescriptor(
        name=name,
        feature=None,
        relation=Relationship.MANDATORY,
        section=None if not crate.is_lib else 'FIXME-(packages."(name)".section)',
        multi_arch="allowed",
        depends=["${misc:Depends}", "${shlibs:Depends}"],
        summary=cfg.summary or crate.summary or f'Rust crate "{crate.name}"',
        description=cfg.description or crate.description or "",
        boilerplate=boilerplate,
    )
    _apply_overrides(package, cfg, PackageKey.bin(), [])
    return package


def synthesize(crate: CrateMetadata, cfg: Config) -> ControlPlan:
    """
    Build every package and test descriptor for one crate.

    Returns:
        ControlPlan with the source stanza, packages in emission order
        (feature packages by feature name, then the binaries package) and
        tests in matching order.
    """
    log.info("Synthesizing packages for %s %s", crate.name, crate.version)
    names = _Names(crate, cfg)
    graph = crate.features

    bins = list(crate.bins)
    if crate.is_lib and bins and not cfg.build_bin_package():
        bins = []

    source = build_source(crate, cfg, names, build_depends(crate, cfg, bool(bins)))
    broken = BrokenFlags(graph, lambda f: cfg.package_test_is_broken(PackageKey.for_feature(f)))
    plan = ControlPlan(source=source, has_dev_depends=bool(crate.dev_depends))

    if crate.is_lib:
        plan.tests.append(all_features_test(source, crate, cfg))
        provides, reduced = resolve_packages(graph, cfg.collapse_features)
        relations = classify(reduced, provides)
        for feature in reduced:
            package = build_feature_package(feature, reduced, provides, relations, crate, cfg, names)
            plan.packages.append(package)
            for f in [*provides.get(feature, []), feature]:
                plan.tests.append(feature_test(package, f, crate, cfg, broken))

    if bins:
        plan.packages.append(build_bin_package(crate, cfg, bins))

    # Slightly brittle if another feature "provides" the default feature: then
    # test_is_broken must be set on package."lib+default", not on the
    # providing feature's package.
    plan.default_test_broken = broken.is_broken(DEFAULT)

    log.info("Synthesized %d packages and %d tests", len(plan.packages), len(plan.tests))
    return plan
