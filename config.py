"""
Configuration: loads settings from environment / .env file.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Paths
PROJECT_ROOT = Path(__file__).parent

# Tool identity (written into d/changelog)
TOOL_NAME = "debcargo"
TOOL_VERSION = os.getenv("DEBCARGO_VERSION", "2.4.4")

# Debian defaults
RUST_MAINT = "Debian Rust Maintainers <pkg-rust-maintainers@alioth-lists.debian.net>"
VCS_ALL = "https://salsa.debian.org/rust-team/debcargo-conf/tree/master/src"
VCS_GIT = "https://salsa.debian.org/rust-team/debcargo-conf.git"
STANDARDS_VERSION = "4.5.0"
DEFAULT_URGENCY = "urgency=medium"

# Author identity is looked up in this order
AUTHOR_NAME_VARS = ("DEBFULLNAME", "NAME")
AUTHOR_EMAIL_VARS = ("DEBEMAIL", "EMAIL")

# Generated files that collide with an overlay get this suffix
HINT_SUFFIX = ".debcargo.hint"

# Text layout
WRAP_WIDTH = 79
MAX_SUMMARY_LEN = 80
