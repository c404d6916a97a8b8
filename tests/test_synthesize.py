"""Package and autopkgtest synthesis."""

import dataclasses

import pytest

from activities.overrides import Config
from activities.synthesize import build_depends, classify, resolve_packages, synthesize
from features.resolver import make_graph
from models.errors import ConsistencyError
from models.schemas import CrateMetadata, Relationship

PINNED = "(= ${binary:Version})"


def names(plan):
    return [p.name for p in plan.packages]


def test_package_names_and_source(crate, cfg):
    plan = synthesize(crate, cfg)
    assert plan.source.name == "rust-foo-bar"
    assert plan.source.x_cargo == "foo_bar"
    assert plan.source.vcs_browser.endswith("/src/foo-bar")
    assert names(plan) == ["librust-foo-bar-dev", "librust-foo-bar+std-dev"]


def test_semver_suffix_names(crate):
    crate = dataclasses.replace(crate, version="0.2.3")
    plan = synthesize(crate, Config(semver_suffix=True))
    assert plan.source.name == "rust-foo-bar-0.2"
    assert names(plan) == ["librust-foo-bar-0.2-dev", "librust-foo-bar-0.2+std-dev"]


def test_classification(graph):
    provides, reduced = resolve_packages(graph)
    assert classify(reduced, provides) == {
        "": Relationship.MANDATORY,
        "std": Relationship.RECOMMENDED,
    }


def test_classification_suggested():
    graph = make_graph({"": ([], []), "extra": ([""], ["x"])})
    provides, reduced = resolve_packages(graph)
    assert classify(reduced, provides)["extra"] == Relationship.SUGGESTED


def test_package_relations(crate, cfg):
    base, std = synthesize(crate, cfg).packages
    assert base.depends == ["${misc:Depends}", "librust-libc-0.2-dev"]
    assert base.recommends == [f"librust-foo-bar+std-dev {PINNED}"]
    assert base.suggests == []
    assert std.depends == [
        "${misc:Depends}",
        f"librust-foo-bar-dev {PINNED}",
        "librust-libc-0.2+std-dev",
    ]
    assert std.provides == [f"librust-foo-bar+default-dev {PINNED}"]
    assert std.provided_features == ["default"]


def test_summaries(crate, cfg):
    base, std = synthesize(crate, cfg).packages
    assert base.summary == "Frobnicates bars - Rust source code"
    assert std.summary == 'Frobnicates bars - feature "std" and 1 more'
    assert 'also provides the "default" feature.' in std.boilerplate


def test_summary_override(crate):
    cfg = Config.model_validate({"packages": {"lib+std": {"summary": "Std support"}}})
    _, std = synthesize(crate, cfg).packages
    assert std.summary == "Std support"
    assert std.description == "A crate that frobnicates bars."


def test_test_matrix_order_and_args(crate, cfg):
    tests = synthesize(crate, cfg).tests
    assert [(t.package, t.feature) for t in tests] == [
        ("rust-foo-bar", "@"),
        ("librust-foo-bar-dev", ""),
        ("librust-foo-bar+std-dev", "default"),
        ("librust-foo-bar+std-dev", "std"),
    ]
    assert [t.args for t in tests] == [
        ["--all-features"],
        ["--no-default-features"],
        [],
        ["--no-default-features", "--features", "std"],
    ]
    assert all(t.version == "1.2.3" for t in tests)
    assert not any(t.flaky for t in tests)


def test_test_depends_follow_reachable_features(crate):
    crate = dataclasses.replace(crate, dev_depends=("librust-quickcheck-1-dev",))
    cfg = Config.model_validate({"packages": {"lib+std": {"test_depends": ["libssl-dev"]}}})
    tests = {t.feature: t for t in synthesize(crate, cfg).tests}
    assert tests["@"].depends == ["libssl-dev", "librust-quickcheck-1-dev"]
    assert tests[""].depends == ["librust-quickcheck-1-dev"]
    assert tests["std"].depends == ["libssl-dev", "librust-quickcheck-1-dev"]
    assert tests["default"].depends == ["libssl-dev", "librust-quickcheck-1-dev"]


def test_broken_base_marks_everything_flaky(crate):
    cfg = Config.model_validate({"packages": {"lib": {"test_is_broken": True}}})
    plan = synthesize(crate, cfg)
    assert all(t.flaky for t in plan.tests)
    assert plan.default_test_broken is True


def test_conflicting_broken_flags_abort(crate):
    cfg = Config.model_validate({"packages": {
        "lib": {"test_is_broken": True},
        "lib+std": {"test_is_broken": False},
    }})
    with pytest.raises(ConsistencyError):
        synthesize(crate, cfg)


def test_broken_flag_on_package_providing_default():
    # "a" provides "default"; marking lib+a does not reach the default test
    graph = make_graph({
        "": ([], ["libc"]),
        "a": ([], ["x"]),
        "default": ([], ["x"]),
    })
    crate = CrateMetadata(name="quirk", version="1.0.0", features=graph)
    cfg = Config.model_validate({"packages": {"lib+a": {"test_is_broken": True}}})
    plan = synthesize(crate, cfg)
    assert [p.provided_features for p in plan.packages] == [[], ["default"]]
    flaky = {t.feature: t.flaky for t in plan.tests}
    assert flaky == {"@": True, "": False, "default": False, "a": True}
    assert plan.default_test_broken is False


def test_build_depends_library_only(crate, cfg):
    assert build_depends(crate, cfg, has_bins=False) == [
        "debhelper (>= 12)",
        "dh-cargo (>= 25)",
        "cargo:native <!nocheck>",
        "rustc:native <!nocheck>",
        "libstd-rust-dev <!nocheck>",
        "librust-libc-0.2+std-dev <!nocheck>",
        "librust-libc-0.2-dev <!nocheck>",
    ]


def test_build_depends_overrides(crate):
    cfg = Config.model_validate({"source": {
        "build_depends": ["pkg-config"],
        "build_depends_excludes": ["libstd-rust-dev"],
    }})
    deps = build_depends(crate, cfg, has_bins=True)
    assert "libstd-rust-dev" not in deps
    assert deps[2:4] == ["cargo:native", "rustc:native"]
    assert deps[-1] == "pkg-config"


def test_binary_package(crate, cfg):
    crate = dataclasses.replace(crate, bins=("foo-bar",))
    plan = synthesize(crate, cfg)
    bin_pkg = plan.packages[-1]
    assert bin_pkg.name == "foo-bar"
    assert bin_pkg.feature is None
    assert bin_pkg.multi_arch == "allowed"
    assert "cargo:native" in plan.source.build_deps


def test_binary_package_disabled(crate):
    crate = dataclasses.replace(crate, bins=("foo-bar",))
    plan = synthesize(crate, Config(bin=False))
    assert names(plan) == ["librust-foo-bar-dev", "librust-foo-bar+std-dev"]


def test_collapse_features(crate):
    plan = synthesize(crate, Config(collapse_features=True))
    assert names(plan) == ["librust-foo-bar-dev"]
    (pkg,) = plan.packages
    assert pkg.provides == [
        f"librust-foo-bar+default-dev {PINNED}",
        f"librust-foo-bar+std-dev {PINNED}",
    ]
    assert pkg.depends == [
        "${misc:Depends}",
        "librust-libc-0.2+std-dev",
        "librust-libc-0.2-dev",
    ]
    assert [t.feature for t in plan.tests] == ["@", "default", "std", ""]


def test_synthesis_is_idempotent(crate, cfg):
    assert synthesize(crate, cfg) == synthesize(crate, cfg)
