"""
Data models for the feature resolver.

A crate's optional features form a graph: each feature names the other
features it enables and the external dependencies it pulls in. The base
feature "" stands for the crate with no optional feature switched on.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Union

BASE = ""
DEFAULT = "default"


@dataclass(frozen=True)
class FeatureDeps:
    """What enabling a single feature requires."""
    features: tuple[str, ...] = ()
    deps: tuple[str, ...] = ()

    @classmethod
    def of(cls, features: Iterable[str] = (), deps: Iterable[str] = ()) -> FeatureDeps:
        return cls(tuple(features), tuple(deps))


# feature -> FeatureDeps, always sorted by feature name
FeatureGraph = dict[str, FeatureDeps]

# feature -> sorted list of features its package also satisfies
ProvidesMap = dict[str, list[str]]

GraphInput = Mapping[str, Union[FeatureDeps, tuple, list]]


def make_graph(mapping: GraphInput) -> FeatureGraph:
    """Build a canonical (name-sorted) feature graph.

    Values may be FeatureDeps or (features, deps) pairs.
    """
    graph: FeatureGraph = {}
    for name in sorted(mapping):
        value = mapping[name]
        if isinstance(value, FeatureDeps):
            graph[name] = value
        else:
            features, deps = value
            graph[name] = FeatureDeps.of(features, deps)
    return graph
