"""
Provides reduction: folds features into as few binary packages as possible.

Stages, each returning a fresh graph:
  1. dedup_signatures: features with identical requirements become
     pass-throughs of the lexicographically first one
  2. extract_provides: a pass-through feature is provided by the single
     feature it requires, and needs no package of its own
  3. close_provides: every surviving package provides its whole subtree
  4. check_partition: survivors plus provided features cover every
     original feature exactly once

The algorithm is simple and incomplete. It does not yet
simplify diamonds such as
    f1 depends on f2, f3
    f2 depends on f4
    f3 depends on f4
into "f4 provides f1, f2, f3".
"""

from __future__ import annotations

import logging

from features.resolver.closure import traverse_depth
from features.resolver.models import BASE, FeatureDeps, FeatureGraph, ProvidesMap
from models.errors import ConsistencyError

log = logging.getLogger(__name__)


def dedup_signatures(graph: FeatureGraph) -> FeatureGraph:
    """Rewrite duplicate features as pass-throughs of their group's smallest name.

    The base feature is never grouped.
    """
    groups: dict[FeatureDeps, list[str]] = {}
    for f in sorted(graph):
        if f == BASE:
            continue
        groups.setdefault(graph[f], []).append(f)

    rewritten = {f: graph[f] for f in sorted(graph)}
    for members in groups.values():
        f0 = min(members)
        for f in members:
            if f == f0:
                continue
            rewritten[f] = FeatureDeps((f0,), ())
    return rewritten


def extract_provides(graph: FeatureGraph) -> tuple[dict[str, list[str]], FeatureGraph]:
    """Split off features that need no package of their own.

    Returns (direct provides, surviving graph). "A requires only B" means
    B's package provides A.
    """
    direct: dict[str, list[str]] = {}
    provided: set[str] = set()
    for f in sorted(graph):
        entry = graph[f]
        if entry.deps or f == BASE:
            continue
        if not entry.features:
            raise ConsistencyError(
                f"feature {f!r} requires neither features nor dependencies",
                feature=f,
            )
        if len(entry.features) != 1:
            continue
        direct.setdefault(entry.features[0], []).append(f)
        provided.add(f)

    survivors = {f: graph[f] for f in sorted(graph) if f not in provided}
    return direct, survivors


def close_provides(direct: dict[str, list[str]], survivors: FeatureGraph) -> ProvidesMap:
    """Expand each survivor's provides list recursively.

    Survivors that provide nothing are left out of the result.
    """
    provides: ProvidesMap = {}
    for k in survivors:
        pp = sorted(traverse_depth(direct, k))
        if pp:
            provides[k] = pp
    return provides


def check_partition(original: FeatureGraph, survivors: FeatureGraph, provides: ProvidesMap) -> None:
    """Raise ConsistencyError unless every original feature is accounted for once."""
    seen: dict[str, int] = {}
    for f in survivors:
        seen[f] = seen.get(f, 0) + 1
    for pp in provides.values():
        for f in pp:
            seen[f] = seen.get(f, 0) + 1

    duplicated = sorted(f for f, n in seen.items() if n > 1)
    missing = sorted(set(original) - set(seen))
    extra = sorted(set(seen) - set(original))
    if duplicated or missing or extra:
        raise ConsistencyError(
            "provides reduction does not partition the feature set: "
            f"duplicated={duplicated} missing={missing} unknown={extra}",
            feature=(duplicated + missing + extra)[0],
            values={"duplicated": duplicated, "missing": missing, "unknown": extra},
        )


def reduce_provides(graph: FeatureGraph) -> tuple[ProvidesMap, FeatureGraph]:
    """Calculate Provides: in an attempt to reduce the number of binaries.

    Returns (provides map, reduced graph).
    """
    deduped = dedup_signatures(graph)
    direct, survivors = extract_provides(deduped)
    provides = close_provides(direct, survivors)
    check_partition(graph, survivors, provides)
    log.info("Reduced %d features to %d packages", len(graph), len(survivors))
    return provides, survivors


def collapse_features(graph: FeatureGraph) -> tuple[ProvidesMap, FeatureGraph]:
    """Merge every feature into the base package.

    The single package depends on the union of all external dependencies
    and provides every non-base feature.
    """
    provided = sorted(f for f in graph if f != BASE)
    deps = sorted({d for entry in graph.values() for d in entry.deps})
    log.info("Collapsed %d features into a single package", len(graph))
    return {BASE: provided}, {BASE: FeatureDeps((), tuple(deps))}
