"""
Resolver feature: turns a crate's feature graph into a minimal package set.

Public API:
    from features.resolver import reduce_provides, collapse_features, transitive_deps
    from features.resolver import FeatureDeps, make_graph, BrokenFlags
"""

from features.resolver.broken import BrokenFlags, Conflict, Consistent
from features.resolver.closure import transitive_deps, traverse_depth
from features.resolver.models import (
    BASE,
    DEFAULT,
    FeatureDeps,
    FeatureGraph,
    ProvidesMap,
    make_graph,
)
from features.resolver.reduce import (
    check_partition,
    close_provides,
    collapse_features,
    dedup_signatures,
    extract_provides,
    reduce_provides,
)

__all__ = [
    "BASE",
    "DEFAULT",
    "BrokenFlags",
    "Conflict",
    "Consistent",
    "FeatureDeps",
    "FeatureGraph",
    "ProvidesMap",
    "check_partition",
    "close_provides",
    "collapse_features",
    "dedup_signatures",
    "extract_provides",
    "make_graph",
    "reduce_provides",
    "transitive_deps",
    "traverse_depth",
]
