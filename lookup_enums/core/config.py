"""
Centralized runtime configuration for lookup-enums.

Values are read from the environment once, at import time. A project-level
`.env` file fills in keys that are not already set in the OS environment.

Registration behavior itself is driven by the arguments given to
`register_enum` / `has_enums`; these settings only cover logging and the
guards that apply to every registration.
"""

import os
from pathlib import Path

from pydantic import BaseModel


def _load_local_env_file() -> None:
    """
    Lightweight .env loader.

    Precedence:
    - Existing OS environment variables win.
    - .env fills only missing keys.
    """
    current = Path(__file__).resolve()
    project_root = current.parents[2]
    env_path = project_root / ".env"
    if not env_path.exists():
        return

    try:
        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue
            if line.lower().startswith("export "):
                line = line[7:].strip()
            if "=" not in line:
                continue
            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip()
            if not key:
                continue
            if (value.startswith('"') and value.endswith('"')) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]
            os.environ.setdefault(key, value)
    except OSError:
        # An unreadable .env must not break importing the library.
        return


_load_local_env_file()


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _as_int(value: str | None, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value.strip())
    except ValueError:
        return default


class Settings(BaseModel):
    # Master switch for registration info logs.
    # false => registrations are silent (warnings are still emitted).
    ENUM_LOGS_ENABLED: bool = _as_bool(os.getenv("ENUM_LOGS_ENABLED"), True)

    # Per-binding audit lines (one debug line per named constant).
    # Useful when checking which constant names a table produces.
    ENUM_BINDING_LOGS_ENABLED: bool = _as_bool(
        os.getenv("ENUM_BINDING_LOGS_ENABLED"), False
    )

    # Upper bound on rows read for a single registration.
    # Registries are cached for the process lifetime, so this protects against
    # accidentally registering a large table. 0 => unlimited.
    ENUM_MAX_ROWS: int = _as_int(os.getenv("ENUM_MAX_ROWS"), 0)

    # Default JSON document for has_enums when neither `values` nor `file`
    # is given. Empty => such declarations are a configuration error.
    FIELD_ENUMS_PATH: str = os.getenv("FIELD_ENUMS_PATH", "").strip()


settings = Settings()
