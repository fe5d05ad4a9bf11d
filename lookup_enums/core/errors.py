from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any


@dataclass
class LookupEnumError(Exception):
    message: str
    code: str = "ENUM_ERROR"

    def __str__(self) -> str:
        return self.message

    def to_detail(self) -> dict:
        return {"code": self.code, "message": self.message}


@dataclass
class ConfigurationError(LookupEnumError):
    """Raised while registering an enum; no registry is produced."""

    code: str = "ENUM_CONFIGURATION"
    model: str | None = None

    def to_detail(self) -> dict:
        detail = super().to_detail()
        if self.model:
            detail["model"] = self.model
        return detail


@dataclass
class ValidationError(LookupEnumError):
    """Raised when a guarded field is assigned a value outside its enum."""

    code: str = "ENUM_VALUE_INVALID"
    field: str = ""
    value: Any = None
    allowed: tuple = dataclasses.field(default_factory=tuple)

    def to_detail(self) -> dict:
        detail = super().to_detail()
        detail["field"] = self.field
        detail["value"] = self.value
        detail["allowed"] = list(self.allowed)
        return detail
