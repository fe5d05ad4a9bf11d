"""Key normalization shared by registries and field enums.

Lookup keys are stored and searched in one canonical form so that
"New York", "new_york" and "NEW-YORK" all resolve to the same row.
"""

from __future__ import annotations

import re
from typing import Any

from lookup_enums.core.errors import ConfigurationError

_SEPARATOR_RUN = re.compile(r"[\W_]+")
_WORD_SPLIT = re.compile(r"[\s_]+")


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def normalize_key(value: Any) -> str:
    """Case-fold `value` and collapse separator runs into single underscores."""
    text = str(value).casefold()
    return _SEPARATOR_RUN.sub("_", text).strip("_")


def binding_name(value: Any, prefix: str | None = None) -> str:
    raw = f"{prefix}{value}" if prefix else str(value)
    name = normalize_key(raw).upper()
    if not name:
        raise ConfigurationError(
            message=f"Unable to derive a constant name from {raw!r}",
        )
    return name


def titleize(value: Any) -> str:
    if value is None:
        return ""
    words = [w for w in _WORD_SPLIT.split(str(value).strip()) if w]
    return " ".join(w[:1].upper() + w[1:].lower() for w in words)
