"""Identifier generation for newly created segments and variables."""

from __future__ import annotations

import uuid


def generate_id() -> str:
    """Return a short random identifier.  Only uniqueness matters."""
    return uuid.uuid4().hex[:12]
