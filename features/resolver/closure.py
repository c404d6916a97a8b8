"""
Transitive closure over the feature graph.
"""

from __future__ import annotations

from typing import Mapping, Sequence

from features.resolver.models import FeatureGraph


def transitive_deps(graph: FeatureGraph, feature: str) -> tuple[list[str], list[str]]:
    """Return every feature reachable from `feature` (itself included) and
    every external dependency required along the way, both sorted.

    `feature` must be a key of `graph`; an unknown name raises KeyError.
    """
    seen: set[str] = set()
    deps: set[str] = set()
    stack = [feature]
    while stack:
        f = stack.pop()
        if f in seen:
            continue
        seen.add(f)
        entry = graph[f]
        deps.update(entry.deps)
        stack.extend(x for x in entry.features if x not in seen)
    return sorted(seen), sorted(deps)


def traverse_depth(mapping: Mapping[str, Sequence[str]], key: str) -> list[str]:
    """Flatten `key`'s children depth-first, children before grandchildren.

    `key` itself is not included. Keys absent from `mapping` are leaves.
    """
    result: list[str] = []
    for child in mapping.get(key, ()):
        result.append(child)
        result.extend(traverse_depth(mapping, child))
    return result
