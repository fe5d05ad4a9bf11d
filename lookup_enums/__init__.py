from lookup_enums.core.errors import ConfigurationError, LookupEnumError, ValidationError
from lookup_enums.core.normalize import binding_name, normalize_key, titleize
from lookup_enums.models.mixins import LookupEnumMixin
from lookup_enums.services.enum_registry import EnumRegistry, get_registry, register_enum
from lookup_enums.services.field_enums import FieldEnum, field_enum, has_enums

__all__ = [
    "ConfigurationError",
    "EnumRegistry",
    "FieldEnum",
    "LookupEnumError",
    "LookupEnumMixin",
    "ValidationError",
    "binding_name",
    "field_enum",
    "get_registry",
    "has_enums",
    "normalize_key",
    "register_enum",
    "titleize",
]
