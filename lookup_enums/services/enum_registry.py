"""
Table-backed enumerations.

A lookup table (states, zip codes, phone types, ...) is read once and frozen
into an `EnumRegistry`: rows indexed by normalized id and by normalized name,
the ordered row list, and one named constant ("binding") per row.

    registry = register_enum(State, session, "abbr", "state_name", make_id_enum=True)
    registry.ILLINOIS is registry.IL      # True
    State.lookup("new york")              # via LookupEnumMixin

Registries are cached on the model class for the lifetime of the process and
are never rebuilt, so this is meant for small reference tables only.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Mapping
from types import MappingProxyType
from typing import Any

from sqlalchemy import inspect as sa_inspect
from sqlalchemy import select
from sqlalchemy.orm import Session, scoped_session

from lookup_enums.core.config import settings
from lookup_enums.core.errors import ConfigurationError
from lookup_enums.core.flow_logging import enum_debug, enum_info
from lookup_enums.core.normalize import binding_name, is_blank, normalize_key

logger = logging.getLogger(__name__)

REGISTRY_ATTR = "_enum_registry"

_REGISTRATION_LOCK = threading.Lock()


def _model_name(model: Any) -> str:
    return getattr(model, "__name__", None) or type(model).__name__


def _validate_options(
    *,
    id_field: Any,
    name_field: Any,
    primary_key: Any,
    prefix: Any,
    make_id_enum: Any,
    model_name: str | None,
) -> None:
    for label, value in (("id_field", id_field), ("name_field", name_field)):
        if not isinstance(value, str) or not value.strip():
            raise ConfigurationError(
                message=f"{label} must be a non-empty attribute name, got {value!r}",
                model=model_name,
            )
    for label, value in (("primary_key", primary_key), ("make_id_enum", make_id_enum)):
        if not isinstance(value, bool):
            raise ConfigurationError(
                message=f"{label} must be a bool, got {value!r}",
                model=model_name,
            )
    if prefix is not None and not isinstance(prefix, str):
        raise ConfigurationError(
            message=f"prefix must be a string or None, got {prefix!r}",
            model=model_name,
        )


def read_field(row: Any, field_name: str, *, model_name: str | None = None) -> Any:
    if isinstance(row, Mapping):
        if field_name not in row:
            raise ConfigurationError(
                message=f"Row has no {field_name!r} key",
                model=model_name,
            )
        return row[field_name]
    try:
        return getattr(row, field_name)
    except AttributeError as exc:
        raise ConfigurationError(
            message=f"Row has no {field_name!r} attribute",
            model=model_name,
        ) from exc


class EnumRegistry:
    """Frozen id/name index over the rows of one lookup table."""

    def __init__(
        self,
        *,
        rows: Iterable[Any],
        by_id: Mapping[str, Any],
        by_name: Mapping[str, Any],
        bindings: Mapping[str, Any],
        id_field: str = "id",
        name_field: str = "name",
        primary_key: bool = True,
        prefix: str | None = None,
        make_id_enum: bool = False,
        model_name: str | None = None,
    ):
        self.all: tuple = tuple(rows)
        self.by_id = MappingProxyType(dict(by_id))
        self.by_name = MappingProxyType(dict(by_name))
        self.bindings = MappingProxyType(dict(bindings))
        self.id_field = id_field
        self.name_field = name_field
        self.primary_key = primary_key
        self.prefix = prefix
        self.make_id_enum = make_id_enum
        self.model_name = model_name or "enum"

    @classmethod
    def build(
        cls,
        rows: Iterable[Any],
        id_field: str = "id",
        name_field: str = "name",
        *,
        primary_key: bool = True,
        prefix: str | None = None,
        make_id_enum: bool = False,
        model_name: str | None = None,
    ) -> EnumRegistry:
        """Index `rows` and return the frozen registry.

        Raises ConfigurationError if any row has neither a name nor an id;
        nothing is returned for a partially processed row set.
        """
        _validate_options(
            id_field=id_field,
            name_field=name_field,
            primary_key=primary_key,
            prefix=prefix,
            make_id_enum=make_id_enum,
            model_name=model_name,
        )

        ordered: list[Any] = []
        by_id: dict[str, Any] = {}
        by_name: dict[str, Any] = {}
        bindings: dict[str, Any] = {}

        def bind(value: Any, row: Any) -> None:
            try:
                constant = binding_name(value, prefix)
            except ConfigurationError:
                # e.g. "%": still indexed, just not nameable as a constant
                logger.debug("enum_binding_unnamed model=%s value=%r", model_name, value)
                return
            if constant in bindings:
                enum_debug(
                    logger,
                    "enum_binding_skipped model=%s constant=%s",
                    model_name,
                    constant,
                    category="binding",
                )
                return
            bindings[constant] = row
            enum_debug(
                logger,
                "enum_binding model=%s constant=%s",
                model_name,
                constant,
                category="binding",
            )

        for position, row in enumerate(rows):
            row_id = read_field(row, id_field, model_name=model_name)
            name = read_field(row, name_field, model_name=model_name)
            id_is_name = False

            if is_blank(name):
                # e.g. zip codes: the code is the only name there is
                name = row_id
                id_is_name = True

            if is_blank(name):
                raise ConfigurationError(
                    message=f"Unable to retrieve suitable name for row {position}",
                    model=model_name,
                )

            bind(name, row)
            if make_id_enum and not id_is_name and not is_blank(row_id):
                bind(row_id, row)

            ordered.append(row)

            if not is_blank(row_id):
                id_key = normalize_key(row_id)
                if id_key in by_id:
                    logger.debug("enum_duplicate_id model=%s key=%s", model_name, id_key)
                by_id[id_key] = row

            name_key = normalize_key(name)
            if name_key in by_name:
                logger.debug("enum_duplicate_name model=%s key=%s", model_name, name_key)
            by_name[name_key] = row

        return cls(
            rows=ordered,
            by_id=by_id,
            by_name=by_name,
            bindings=bindings,
            id_field=id_field,
            name_field=name_field,
            primary_key=primary_key,
            prefix=prefix,
            make_id_enum=make_id_enum,
            model_name=model_name,
        )

    # Lookup

    def find_by_id(self, key: Any) -> Any | None:
        return self.by_id.get(normalize_key(key))

    def find_by_name(self, key: Any) -> Any | None:
        return self.by_name.get(normalize_key(key))

    def lookup(self, key: Any) -> Any | None:
        """Find by id first, then by name. Returns None on a miss."""
        found = self.find_by_id(key)
        if found is None:
            found = self.find_by_name(key)
        return found

    def contains(self, value: Any) -> bool:
        return self.lookup(value) is not None

    def binding(self, name: Any) -> Any | None:
        constant = normalize_key(name).upper()
        if not constant:
            return None
        row = self.bindings.get(constant)
        if row is None and self.prefix:
            row = self.bindings.get(normalize_key(f"{self.prefix}{name}").upper())
        return row

    # Enumeration

    def ids(self) -> list[str]:
        return list(self.by_id.keys())

    def names(self) -> list[str]:
        return list(self.by_name.keys())

    def is_primary_key(self) -> bool:
        return self.primary_key

    def to_select_options(self) -> list[tuple[Any, Any]]:
        return [(self.id_value(row), self.name_value(row)) for row in self.all]

    # Row accessors

    def id_value(self, row: Any) -> Any:
        return read_field(row, self.id_field, model_name=self.model_name)

    def name_value(self, row: Any) -> Any:
        return read_field(row, self.name_field, model_name=self.model_name)

    def equals(self, row: Any, other: Any) -> bool:
        """Loose equality between a row and an id, a name, or another row.

        Same-type values and None use default equality. Integers are compared
        with the id when the id column is the primary key. Anything else is
        compared case-insensitively with both the id and the name.
        """
        if other is None or isinstance(other, type(row)):
            return row == other
        if isinstance(other, int) and not isinstance(other, bool) and self.primary_key:
            return other == self.id_value(row)
        candidate = str(other).casefold()
        return candidate in (
            str(self.id_value(row)).casefold(),
            str(self.name_value(row)).casefold(),
        )

    # Protocol

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        bindings = self.__dict__.get("bindings")
        if bindings is not None and name in bindings:
            return bindings[name]
        raise AttributeError(f"{self.__dict__.get('model_name', 'enum')} has no constant {name!r}")

    def __getitem__(self, key: Any) -> Any | None:
        return self.lookup(key)

    def __contains__(self, value: Any) -> bool:
        return self.contains(value)

    def __iter__(self):
        return iter(self.all)

    def __len__(self) -> int:
        return len(self.all)

    def __repr__(self) -> str:
        return f"<EnumRegistry {self.model_name} rows={len(self.all)} bindings={len(self.bindings)}>"


def get_registry(model: Any) -> EnumRegistry | None:
    """The registry registered for exactly `model` (not inherited), or None."""
    return vars(model).get(REGISTRY_ATTR)


def _rows_from_session(model: Any, session: Session, *, model_name: str) -> list[Any]:
    mapper = sa_inspect(model, raiseerr=False)
    if mapper is None:
        raise ConfigurationError(
            message="A Session source requires a mapped model class",
            model=model_name,
        )
    stmt = select(model).order_by(*mapper.primary_key)
    rows = list(session.scalars(stmt).all())
    # Detach with loaded state so later commits/closes of the caller's session
    # cannot expire or refresh registered rows.
    for row in rows:
        session.expunge(row)
    return rows


def _fetch_rows(model: Any, source: Any) -> list[Any]:
    model_name = _model_name(model)
    if isinstance(source, scoped_session):
        source = source()
    if isinstance(source, Session):
        return _rows_from_session(model, source, model_name=model_name)
    if callable(source):
        produced = source()
        if isinstance(produced, Session):
            # e.g. a sessionmaker: the session is ours, so close it
            with produced:
                return _rows_from_session(model, produced, model_name=model_name)
        source = produced
    if isinstance(source, Iterable) and not isinstance(source, (str, bytes, Mapping)):
        return list(source)
    raise ConfigurationError(
        message=f"Unsupported enum source {type(source).__name__}; expected rows, a Session or a session factory",
        model=model_name,
    )


def register_enum(
    model: Any,
    source: Session | Callable[[], Iterable[Any]] | Iterable[Any],
    id_field: str = "id",
    name_field: str = "name",
    *,
    primary_key: bool = True,
    prefix: str | None = None,
    make_id_enum: bool = False,
) -> EnumRegistry:
    """Read every row of `model` from `source` once and attach the registry.

    Registering a class that already has a registry is a no-op returning the
    existing one.
    """
    model_name = _model_name(model)
    with _REGISTRATION_LOCK:
        existing = get_registry(model)
        if existing is not None:
            enum_info(
                logger,
                "enum_already_registered model=%s rows=%s",
                model_name,
                len(existing),
                category="registration",
            )
            return existing

        _validate_options(
            id_field=id_field,
            name_field=name_field,
            primary_key=primary_key,
            prefix=prefix,
            make_id_enum=make_id_enum,
            model_name=model_name,
        )

        rows = _fetch_rows(model, source)
        max_rows = int(settings.ENUM_MAX_ROWS)
        if max_rows > 0 and len(rows) > max_rows:
            logger.warning(
                "enum_registration_failed model=%s rows=%s max_rows=%s",
                model_name,
                len(rows),
                max_rows,
            )
            raise ConfigurationError(
                message=f"{model_name} has {len(rows)} rows; enums are limited to {max_rows}",
                model=model_name,
            )

        try:
            registry = EnumRegistry.build(
                rows,
                id_field,
                name_field,
                primary_key=primary_key,
                prefix=prefix,
                make_id_enum=make_id_enum,
                model_name=model_name,
            )
        except ConfigurationError as exc:
            logger.warning("enum_registration_failed model=%s error=%s", model_name, exc)
            raise

        setattr(model, REGISTRY_ATTR, registry)

    enum_info(
        logger,
        "enum_registered model=%s rows=%s ids=%s names=%s bindings=%s",
        model_name,
        len(registry.all),
        len(registry.by_id),
        len(registry.by_name),
        len(registry.bindings),
        category="registration",
    )
    return registry
