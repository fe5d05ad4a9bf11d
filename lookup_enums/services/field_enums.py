"""
Enumerated values for a single field of any class.

Where a whole lookup table would be too heavy, `has_enums` restricts one
attribute to a fixed set of values given inline or in a JSON file:

    @has_enums("address_type", values=["home", "office", "shipping", "billing"])
    class Address: ...

    @has_enums("address_type", values={1: "Home", 2: "Office"})
    class Address: ...

    @has_enums("address_type", file="config/enums.json", key="address_enums")
    class Address: ...

Assigning a value outside the set raises ValidationError. Plain classes get a
descriptor; SQLAlchemy mapped classes get an attribute "set" listener.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any

from sqlalchemy import event
from sqlalchemy import inspect as sa_inspect

from lookup_enums.core.config import settings
from lookup_enums.core.errors import ConfigurationError, ValidationError
from lookup_enums.core.flow_logging import enum_info

logger = logging.getLogger(__name__)

FIELD_ENUMS_ATTR = "__field_enums__"


class FieldEnum:
    """Allowed values (and their labels) for one guarded field."""

    def __init__(
        self,
        field: str,
        labels: Mapping[Any, Any],
        *,
        allow_none: bool = True,
        owner: str | None = None,
    ):
        self.field = field
        self.labels = MappingProxyType(dict(labels))
        self.allowed: tuple = tuple(self.labels.keys())
        self.allow_none = allow_none
        self.owner = owner

    def _canonical(self, value: Any) -> tuple[bool, Any]:
        try:
            if value in self.labels:
                return True, value
        except TypeError:
            # unhashable values can still match on their string form
            pass
        folded = str(value).casefold()
        for allowed in self.allowed:
            if str(allowed).casefold() == folded:
                return True, allowed
        return False, None

    def is_valid(self, value: Any) -> bool:
        if value is None:
            return self.allow_none
        return self._canonical(value)[0]

    def validate(self, value: Any) -> Any:
        """Return the canonical allowed value for `value` or raise ValidationError."""
        if value is None and self.allow_none:
            return None
        if value is not None:
            ok, canonical = self._canonical(value)
            if ok:
                return canonical
        raise ValidationError(
            message=f"{value!r} is not an allowed value for {self.field}",
            field=self.field,
            value=value,
            allowed=self.allowed,
        )

    def equals(self, value: Any, other: Any) -> bool:
        """Loose comparison of a stored field value with an id or label."""
        if value is None or other is None:
            return value is other
        if isinstance(other, int) and not isinstance(other, bool):
            return other == value
        candidate = str(other).casefold()
        label = self.labels.get(value, value)
        return candidate in (str(value).casefold(), str(label).casefold())

    def to_select_options(self) -> list[tuple[Any, Any]]:
        return [(value, label) for value, label in self.labels.items()]

    def __repr__(self) -> str:
        return f"<FieldEnum {self.owner}.{self.field} values={len(self.allowed)}>"


class _GuardedField:
    """Data descriptor storing the value in the instance __dict__."""

    def __init__(self, field_enum: FieldEnum, default: Any = None):
        self.field_enum = field_enum
        self.name = field_enum.field
        self.default = default

    def __get__(self, instance: Any, owner: type) -> Any:
        if instance is None:
            return self
        return instance.__dict__.get(self.name, self.default)

    def __set__(self, instance: Any, value: Any) -> None:
        instance.__dict__[self.name] = self.field_enum.validate(value)


def _labels_from(values: Any, *, source: str, owner: str) -> dict[Any, Any]:
    if isinstance(values, Mapping):
        labels = dict(values)
    elif isinstance(values, (list, tuple, set, frozenset)):
        labels = {value: str(value) for value in values}
    else:
        raise ConfigurationError(
            message=f"Enum values from {source} must be a list or a mapping, got {type(values).__name__}",
            model=owner,
        )
    if not labels:
        raise ConfigurationError(
            message=f"Enum values from {source} are empty",
            model=owner,
        )
    return labels


def _load_values_file(path_value: str, key: str, *, owner: str) -> Any:
    path = Path(path_value)
    if not path.exists() or not path.is_file():
        logger.warning("field_enums_file_not_found path=%s", path_value)
        raise ConfigurationError(
            message=f"Enum values file not found: {path_value}",
            model=owner,
        )
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning(
            "field_enums_file_invalid_json path=%s error=%s",
            path_value,
            str(exc),
        )
        raise ConfigurationError(
            message=f"Enum values file is not valid JSON: {path_value}",
            model=owner,
        ) from exc
    if not isinstance(payload, dict) or key not in payload:
        logger.warning(
            "field_enums_file_missing_key path=%s key=%s",
            path_value,
            key,
        )
        raise ConfigurationError(
            message=f"Enum values file {path_value} has no {key!r} entry",
            model=owner,
        )
    return payload[key]


def _install_mapped_guard(cls: type, field_enum: FieldEnum) -> None:
    attribute = getattr(cls, field_enum.field, None)
    if attribute is None:
        raise ConfigurationError(
            message=f"{cls.__name__} has no mapped attribute {field_enum.field!r}",
            model=cls.__name__,
        )

    def _on_set(target, value, oldvalue, initiator):
        return field_enum.validate(value)

    event.listen(attribute, "set", _on_set, retval=True)


def has_enums(
    field: str,
    *,
    values: Any = None,
    file: str | Path | None = None,
    key: str | None = None,
    allow_none: bool = True,
):
    """Class decorator restricting `field` to an enumerated set of values."""
    if not isinstance(field, str) or not field.strip():
        raise ConfigurationError(message=f"field must be a non-empty name, got {field!r}")
    if values is not None and file is not None:
        raise ConfigurationError(
            message=f"has_enums({field!r}) accepts either values or file, not both",
        )

    def decorate(cls: type) -> type:
        owner = cls.__name__
        existing = dict(vars(cls).get(FIELD_ENUMS_ATTR, {}))
        if field in existing:
            raise ConfigurationError(
                message=f"{owner}.{field} already has enums",
                model=owner,
            )

        if values is not None:
            labels = _labels_from(values, source="values", owner=owner)
        else:
            path_value = str(file) if file is not None else settings.FIELD_ENUMS_PATH
            if not path_value:
                raise ConfigurationError(
                    message=f"has_enums({field!r}) needs values, a file, or FIELD_ENUMS_PATH",
                    model=owner,
                )
            raw = _load_values_file(path_value, key or field, owner=owner)
            labels = _labels_from(raw, source=path_value, owner=owner)

        field_enum = FieldEnum(field, labels, allow_none=allow_none, owner=owner)

        if sa_inspect(cls, raiseerr=False) is not None:
            _install_mapped_guard(cls, field_enum)
        else:
            default = getattr(cls, field, None)
            if default is not None:
                if not field_enum.is_valid(default):
                    raise ConfigurationError(
                        message=f"{owner}.{field} default {default!r} is not an allowed value",
                        model=owner,
                    )
                default = field_enum.validate(default)
            setattr(cls, field, _GuardedField(field_enum, default=default))

        existing[field] = field_enum
        setattr(cls, FIELD_ENUMS_ATTR, existing)
        enum_info(
            logger,
            "field_enum_registered model=%s field=%s values=%s",
            owner,
            field,
            len(field_enum.allowed),
            category="registration",
        )
        return cls

    return decorate


def field_enum(cls: type, field: str) -> FieldEnum:
    for klass in cls.__mro__:
        enums = vars(klass).get(FIELD_ENUMS_ATTR)
        if enums and field in enums:
            return enums[field]
    raise ConfigurationError(
        message=f"{cls.__name__}.{field} has no enums",
        model=cls.__name__,
    )
