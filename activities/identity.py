"""
Activity: Author Identity — works out who is running the packaging pass.
"""

from __future__ import annotations

import os

import config
from models.errors import IdentityError


def _first_env(keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = os.getenv(key)
        if value:
            return value
    return None


def get_deb_author() -> str:
    """Determine "Name <email>" from $DEBFULLNAME/$NAME and $DEBEMAIL/$EMAIL."""
    name = _first_env(config.AUTHOR_NAME_VARS)
    if name is None:
        raise IdentityError("Unable to determine your name; please set $DEBFULLNAME or $NAME")
    email = _first_env(config.AUTHOR_EMAIL_VARS)
    if email is None:
        raise IdentityError("Unable to determine your email; please set $DEBEMAIL or $EMAIL")
    return f"{name} <{email}>"
