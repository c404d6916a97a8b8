"""
Packaging runner: generates debian/ for one crate from its metadata.

Usage:
    python run.py <crate.json> <pkg_srcdir> [--config debcargo.toml] [--changelog-ready]

crate.json holds the crate metadata, e.g.:
    {"name": "foo", "version": "1.2.3",
     "features": {"": [[], ["libc"]], "default": [["std"], []], "std": [[], ["libc"]]}}
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from activities.overrides import Config, parse_config
from features.resolver import make_graph
from models.errors import DebcargoError
from models.schemas import CrateMetadata
from workflows.pipeline import prepare_debian_folder

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    datefmt="%H:%M:%S",
)
log = logging.getLogger(__name__)


class CrateRequest(BaseModel):
    name: str
    version: str
    features: dict[str, tuple[list[str], list[str]]] = Field(default_factory=dict)
    homepage: str | None = None
    summary: str | None = None
    description: str | None = None
    bins: list[str] = Field(default_factory=list)
    checksum: str | None = None
    is_lib: bool = True
    dev_depends: list[str] = Field(default_factory=list)

    def to_metadata(self) -> CrateMetadata:
        # every feature implicitly builds on the base crate
        features = {
            f: (required or ([] if f == "" else [""]), deps)
            for f, (required, deps) in self.features.items()
        }
        if self.is_lib:
            features.setdefault("", ([], []))
        return CrateMetadata(
            name=self.name,
            version=self.version,
            features=make_graph(features),
            homepage=self.homepage,
            summary=self.summary,
            description=self.description,
            bins=tuple(self.bins),
            checksum=self.checksum,
            is_lib=self.is_lib,
            dev_depends=tuple(self.dev_depends),
        )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Generate debian/ for a Rust crate")
    parser.add_argument("crate", type=Path, help="crate metadata as JSON")
    parser.add_argument("srcdir", type=Path, help="unpacked crate source directory")
    parser.add_argument("--config", type=Path, default=None, help="debcargo.toml")
    parser.add_argument("--changelog-ready", action="store_true")
    parser.add_argument("--no-overlay-write-back", action="store_true")
    args = parser.parse_args(argv)

    try:
        request = CrateRequest.model_validate(json.loads(args.crate.read_text(encoding="utf-8")))
        cfg = parse_config(args.config) if args.config else Config()
        out = prepare_debian_folder(
            request.to_metadata(),
            args.srcdir,
            cfg,
            config_path=args.config,
            changelog_ready=args.changelog_ready,
            overlay_write_back=not args.no_overlay_write_back,
        )
    except (DebcargoError, OSError, ValidationError, json.JSONDecodeError) as e:
        log.error("%s", e)
        return 1

    log.info("Done: %s", out)
    return 0


if __name__ == "__main__":
    sys.exit(main())
