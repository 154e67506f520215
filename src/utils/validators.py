"""Lightweight validation helpers."""

import re
from typing import Any

from utils.error_handling import ValidationError

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


def ensure_present(value: Any, field: str) -> None:
    """Raise ValidationError if value is falsy."""
    if value in (None, "", []):
        raise ValidationError(f"{field} is required")


def ensure_identifier(name: str, field: str) -> str:
    """
    Accept a (schema-qualified) SQL identifier.

    Table and view names come from environment variables and are spliced into
    SQL text, so only plain identifiers are allowed through.
    """
    ensure_present(name, field)
    if not _IDENTIFIER.match(name):
        raise ValidationError(f"{field} is not a valid SQL identifier: {name!r}")
    return name
