"""Shared fixtures: sample crates, configs and a fixed clock."""

from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from activities.overrides import Config  # noqa: E402
from features.resolver import make_graph  # noqa: E402
from models.schemas import CrateMetadata  # noqa: E402

AUTHOR = "Bob Builder <bob@example.org>"


@pytest.fixture
def now():
    return datetime(2026, 10, 17, 10, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def graph():
    return make_graph({
        "": ([], ["librust-libc-0.2-dev"]),
        "default": (["std"], []),
        "std": ([""], ["librust-libc-0.2+std-dev"]),
    })


@pytest.fixture
def crate(graph):
    return CrateMetadata(
        name="foo_bar",
        version="1.2.3",
        features=graph,
        summary="Frobnicates bars",
        description="A crate that frobnicates bars.",
    )


@pytest.fixture
def cfg():
    return Config(uploaders=[AUTHOR])


@pytest.fixture
def author():
    return AUTHOR
