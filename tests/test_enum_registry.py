from __future__ import annotations

import pytest

from lookup_enums.core.config import settings
from lookup_enums.core.errors import ConfigurationError
from lookup_enums.services.enum_registry import EnumRegistry, get_registry, register_enum


class Row:
    def __init__(self, id, name, **extra):
        self.id = id
        self.name = name
        for key, value in extra.items():
            setattr(self, key, value)


class PlainLookup:
    """Enum-bearing class that is not mapped; rows come from a callable."""


@pytest.fixture(autouse=True)
def _forget_plain_registry():
    yield
    if "_enum_registry" in vars(PlainLookup):
        delattr(PlainLookup, "_enum_registry")


def _phone_rows():
    return [{"id": 1, "name": "Home"}, {"id": 2, "name": "Office"}]


def test_build_indexes_rows_by_normalized_id_and_name():
    registry = EnumRegistry.build(_phone_rows())

    assert registry.ids() == ["1", "2"]
    assert registry.names() == ["home", "office"]
    assert registry.to_select_options() == [(1, "Home"), (2, "Office")]
    assert [row["name"] for row in registry.all] == ["Home", "Office"]


def test_lookup_round_trips_every_row():
    rows = [Row(1, "New York"), Row(2, "Illinois"), Row(3, "District of Columbia")]
    registry = EnumRegistry.build(rows)

    for row in rows:
        assert registry.lookup(row.id) is row
        assert registry.lookup(row.name) is row
        assert registry[row.name] is row


def test_lookup_is_case_and_punctuation_insensitive():
    new_york = Row(1, "New York")
    registry = EnumRegistry.build([new_york])

    assert registry.lookup("New York") is new_york
    assert registry.lookup("new_york") is new_york
    assert registry.lookup("NEW-YORK") is new_york


def test_lookup_prefers_id_over_name():
    by_name = Row("b", "a")
    by_id = Row("a", "z")
    registry = EnumRegistry.build([by_name, by_id])

    assert registry.lookup("a") is by_id
    assert registry.find_by_name("a") is by_name


def test_lookup_miss_returns_none():
    registry = EnumRegistry.build(_phone_rows())

    assert registry.find_by_id(99) is None
    assert registry.find_by_name("fax") is None
    assert registry.lookup("fax") is None
    assert registry["fax"] is None
    assert not registry.contains("fax")
    assert "fax" not in registry
    assert "home" in registry
    assert registry.contains(2)


def test_colliding_keys_keep_last_row_in_maps_and_first_binding():
    first = Row(1, "New York")
    second = Row(2, "new-york")
    registry = EnumRegistry.build([first, second])

    assert len(registry.all) == 2
    assert len(registry.by_name) == 1
    assert len(registry.by_id) <= len(registry.all)
    assert len(registry.by_name) <= len(registry.all)
    assert registry.find_by_name("new york") is second
    assert registry.NEW_YORK is first


def test_building_twice_gives_identical_maps():
    rows = [Row(1, "Home"), Row(2, "Office"), Row(3, "home")]

    first = EnumRegistry.build(rows)
    second = EnumRegistry.build(rows)

    assert dict(first.by_id) == dict(second.by_id)
    assert dict(first.by_name) == dict(second.by_name)
    assert dict(first.bindings) == dict(second.bindings)


def test_registry_is_frozen():
    registry = EnumRegistry.build(_phone_rows())

    with pytest.raises(TypeError):
        registry.by_id["3"] = {"id": 3, "name": "Fax"}
    with pytest.raises(TypeError):
        registry.by_name["fax"] = {"id": 3, "name": "Fax"}
    with pytest.raises(TypeError):
        registry.bindings["FAX"] = {"id": 3, "name": "Fax"}
    assert isinstance(registry.all, tuple)


def test_bindings_are_reachable_by_attribute_and_name():
    registry = EnumRegistry.build(_phone_rows())

    assert registry.HOME["id"] == 1
    assert registry.binding("office")["id"] == 2
    assert registry.binding("Office") is registry.OFFICE
    assert registry.binding("fax") is None
    with pytest.raises(AttributeError):
        registry.FAX


def test_blank_name_falls_back_to_id():
    zip_row = Row(60601, None, city="Chicago")
    registry = EnumRegistry.build([zip_row], prefix="zip")

    assert registry.ZIP60601 is zip_row
    assert registry.find_by_name("60601") is zip_row
    assert registry.find_by_id(60601) is zip_row


def test_row_without_name_or_id_aborts_registration():
    rows = [Row(1, "Home"), Row(None, "  ")]

    with pytest.raises(ConfigurationError, match="suitable name"):
        EnumRegistry.build(rows)


def test_make_id_enum_binds_id_as_well():
    illinois = Row("IL", "Illinois")
    registry = EnumRegistry.build([illinois], make_id_enum=True)

    assert registry.ILLINOIS is illinois
    assert registry.IL is illinois
    assert len(registry.bindings) == 2


def test_make_id_enum_creates_one_binding_when_id_equals_name():
    row = Row(60601, "60601")
    registry = EnumRegistry.build([row], prefix="ZIP", make_id_enum=True)

    assert list(registry.bindings) == ["ZIP60601"]


def test_make_id_enum_skips_rows_whose_name_came_from_id():
    row = Row(60601, "")
    registry = EnumRegistry.build([row], make_id_enum=True)

    assert list(registry.bindings) == ["60601"]


def test_equals_compares_ids_and_names():
    registry = EnumRegistry.build([Row(5, "Home")])
    home = registry.HOME

    assert registry.equals(home, 5)
    assert registry.equals(home, "home")
    assert registry.equals(home, "HOME")
    assert registry.equals(home, "5")
    assert not registry.equals(home, 6)
    assert not registry.equals(home, "office")
    assert registry.equals(home, home)
    assert not registry.equals(home, Row(5, "Home"))
    assert not registry.equals(home, None)


def test_equals_uses_string_form_when_id_is_not_primary_key():
    registry = EnumRegistry.build([Row("5", "Home")], primary_key=False)
    home = registry.HOME

    assert not registry.is_primary_key()
    assert registry.equals(home, 5)
    assert registry.equals(home, "home")


def test_custom_field_names():
    rows = [{"abbr": "IL", "state_name": "Illinois"}, {"abbr": "NY", "state_name": "New York"}]
    registry = EnumRegistry.build(rows, "abbr", "state_name")

    assert registry.ids() == ["il", "ny"]
    assert registry.names() == ["illinois", "new_york"]
    assert registry.to_select_options() == [("IL", "Illinois"), ("NY", "New York")]


def test_missing_field_is_configuration_error():
    with pytest.raises(ConfigurationError, match="abbr"):
        EnumRegistry.build(_phone_rows(), "abbr")
    with pytest.raises(ConfigurationError, match="title"):
        EnumRegistry.build([Row(1, "Home")], name_field="title")


@pytest.mark.parametrize(
    "options",
    [
        {"id_field": ""},
        {"name_field": None},
        {"primary_key": "yes"},
        {"make_id_enum": 1},
        {"prefix": 7},
    ],
)
def test_invalid_options_are_rejected(options):
    with pytest.raises(ConfigurationError):
        EnumRegistry.build(_phone_rows(), **options)


def test_register_enum_attaches_registry_once():
    calls = []

    def source():
        calls.append(1)
        return _phone_rows()

    first = register_enum(PlainLookup, source)
    second = register_enum(PlainLookup, source)

    assert second is first
    assert get_registry(PlainLookup) is first
    assert len(calls) == 1


def test_register_enum_accepts_iterables():
    registry = register_enum(PlainLookup, iter(_phone_rows()))

    assert registry.names() == ["home", "office"]
    assert registry.model_name == "PlainLookup"


def test_failed_registration_leaves_class_unregistered():
    with pytest.raises(ConfigurationError):
        register_enum(PlainLookup, [{"id": 1, "name": "Home"}, {"id": "", "name": None}])

    assert get_registry(PlainLookup) is None


def test_register_enum_rejects_unsupported_sources():
    with pytest.raises(ConfigurationError, match="Unsupported"):
        register_enum(PlainLookup, 42)


def test_register_enum_respects_row_limit(monkeypatch):
    monkeypatch.setattr(settings, "ENUM_MAX_ROWS", 1)

    with pytest.raises(ConfigurationError, match="limited to 1"):
        register_enum(PlainLookup, _phone_rows())
    assert get_registry(PlainLookup) is None


def test_configuration_error_detail():
    with pytest.raises(ConfigurationError) as exc_info:
        register_enum(PlainLookup, [{"id": None, "name": None}])

    detail = exc_info.value.to_detail()
    assert detail["code"] == "ENUM_CONFIGURATION"
    assert detail["model"] == "PlainLookup"


def test_name_without_word_characters_is_indexed_without_constant():
    percent = Row(2, "%")
    registry = EnumRegistry.build([Row(1, "Home"), percent])

    assert len(registry.all) == 2
    assert list(registry.bindings) == ["HOME"]
    assert registry.lookup(2) is percent
    assert registry.find_by_id("2") is percent


def test_mapping_source_is_rejected():
    with pytest.raises(ConfigurationError, match="Unsupported"):
        register_enum(PlainLookup, {"id": 1, "name": "Home"})

    assert get_registry(PlainLookup) is None
