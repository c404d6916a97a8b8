"""
Transitive "test is broken" flags.

A feature's tests count as broken when it is marked so explicitly, or when
a feature it requires is (recursively). Explicit markings are folded with
the inherited values; if two of them disagree, the configuration is
inconsistent and we refuse to guess.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Union

from features.resolver.models import FeatureGraph
from models.errors import ConsistencyError


@dataclass(frozen=True)
class Consistent:
    value: bool | None  # None: nothing marked along any path


@dataclass(frozen=True)
class Conflict:
    feature: str
    values: tuple[bool, ...]


FoldResult = Union[Consistent, Conflict]


class BrokenFlags:
    """Memoized depth-first fold of explicit broken markings over a feature graph."""

    def __init__(self, graph: FeatureGraph, marked: Callable[[str], bool | None]):
        self.graph = graph
        self.marked = marked
        self._cache: dict[str, FoldResult] = {}

    def fold(self, feature: str) -> FoldResult:
        if feature in self._cache:
            return self._cache[feature]

        values: set[bool] = set()
        here = self.marked(feature)
        if here is not None:
            values.add(here)

        entry = self.graph.get(feature)
        parents = entry.features if entry is not None else ()
        result: FoldResult | None = None
        for parent in parents:
            inherited = self.fold(parent)
            if isinstance(inherited, Conflict):
                result = inherited
                break
            if inherited.value is not None:
                values.add(inherited.value)
            if len(values) > 1:
                result = Conflict(feature, tuple(sorted(values)))
                break

        if result is None:
            result = Consistent(values.pop() if values else None)
        self._cache[feature] = result
        return result

    def is_broken(self, feature: str) -> bool:
        """Resolve the effective flag, raising ConsistencyError on conflict."""
        result = self.fold(feature)
        if isinstance(result, Conflict):
            raise ConsistencyError(
                "error trying to recursively determine test_is_broken for "
                f"{result.feature}: dependencies have inconsistent config values: "
                f"{list(result.values)}",
                feature=result.feature,
                values=list(result.values),
            )
        return bool(result.value)
