from __future__ import annotations

from typing import Any

from lookup_enums.core.errors import ConfigurationError
from lookup_enums.core.normalize import is_blank, titleize
from lookup_enums.services.enum_registry import (
    EnumRegistry,
    get_registry,
    register_enum,
)


class LookupEnumMixin:
    """
    Enum helpers for lookup-table models.

    Mix into a declarative model, then register once at startup:

        class PhoneType(LookupEnumMixin, Base):
            id: Mapped[int] = mapped_column(primary_key=True)
            name: Mapped[str] = mapped_column(String(50))

        PhoneType.register_enum(session)
        PhoneType.enum("HOME").equals("home")   # True

    Default `==` is left untouched; use `equals()` / `matches()` for the
    loose id/name comparison.
    """

    # Class level

    @classmethod
    def register_enum(
        cls,
        source: Any,
        id_field: str = "id",
        name_field: str = "name",
        *,
        primary_key: bool = True,
        prefix: str | None = None,
        make_id_enum: bool = False,
    ) -> EnumRegistry:
        return register_enum(
            cls,
            source,
            id_field,
            name_field,
            primary_key=primary_key,
            prefix=prefix,
            make_id_enum=make_id_enum,
        )

    @classmethod
    def is_enum(cls) -> bool:
        return get_registry(cls) is not None

    @classmethod
    def enum_registry_or_raise(cls) -> EnumRegistry:
        registry = get_registry(cls)
        if registry is None:
            raise ConfigurationError(
                message=f"{cls.__name__} is not registered as an enum; call register_enum() first",
                model=cls.__name__,
            )
        return registry

    @classmethod
    def find_by_id(cls, key: Any) -> Any | None:
        return cls.enum_registry_or_raise().find_by_id(key)

    @classmethod
    def find_by_name(cls, key: Any) -> Any | None:
        return cls.enum_registry_or_raise().find_by_name(key)

    @classmethod
    def lookup(cls, key: Any) -> Any | None:
        return cls.enum_registry_or_raise().lookup(key)

    @classmethod
    def contains(cls, value: Any) -> bool:
        return cls.enum_registry_or_raise().contains(value)

    @classmethod
    def enum(cls, name: str) -> Any | None:
        return cls.enum_registry_or_raise().binding(name)

    @classmethod
    def enum_rows(cls) -> tuple:
        return cls.enum_registry_or_raise().all

    @classmethod
    def ids(cls) -> list[str]:
        return cls.enum_registry_or_raise().ids()

    @classmethod
    def names(cls) -> list[str]:
        return cls.enum_registry_or_raise().names()

    @classmethod
    def is_primary_key(cls) -> bool:
        return cls.enum_registry_or_raise().is_primary_key()

    @classmethod
    def to_select_options(cls) -> list[tuple[Any, Any]]:
        return cls.enum_registry_or_raise().to_select_options()

    # Row level

    def id_value(self) -> Any:
        """Value of the configured id column, even when it is not `self.id`."""
        return type(self).enum_registry_or_raise().id_value(self)

    def name_value(self) -> Any:
        """Value of the configured name column, even when it is not `self.name`."""
        return type(self).enum_registry_or_raise().name_value(self)

    def equals(self, other: Any) -> bool:
        return type(self).enum_registry_or_raise().equals(self, other)

    def matches(self, candidate: Any) -> bool:
        return self.equals(candidate)

    def in_(self, *candidates: Any) -> bool:
        return any(self.equals(candidate) for candidate in candidates)

    def to_display_string(self) -> str:
        # i.e. State.enum("NEW_YORK").to_display_string() => "New York"
        name = self.name_value()
        if is_blank(name):
            name = self.id_value()
        return titleize(name)

    def __str__(self) -> str:
        if get_registry(type(self)) is None:
            return super().__str__()
        return self.to_display_string()
