"""Tests for schema descriptors and parse_schema."""

from __future__ import annotations

import enum

import pytest

from commandkit.domain.schema import (
    AnyInput,
    DateInput,
    EnumInput,
    StringInput,
    parse_descriptor,
    parse_schema,
)
from commandkit.domain.types import UNDEFINED, ErrorType, InputType
from commandkit.exceptions import SchemaDefinitionError


class Color(enum.Enum):
    RED = "red"
    BLUE = "blue"


class TestParseDescriptor:
    def test_string_defaults(self) -> None:
        descriptor = parse_descriptor("name", {"type": "string"})
        assert isinstance(descriptor, StringInput)
        assert descriptor.required is False
        assert descriptor.allow_blank is False
        assert descriptor.default is UNDEFINED

    def test_camel_case_aliases(self) -> None:
        descriptor = parse_descriptor(
            "status", {"type": "enum", "oneOf": ["a", "b"], "allowBlank": True}
        )
        assert isinstance(descriptor, EnumInput)
        assert descriptor.one_of == ("a", "b")
        assert descriptor.allow_blank is True

    def test_snake_case_names(self) -> None:
        descriptor = parse_descriptor("status", {"type": "enum", "one_of": ["a"], "allow_blank": True})
        assert descriptor.one_of == ("a",)
        assert descriptor.allow_blank is True

    def test_missing_type_means_any(self) -> None:
        descriptor = parse_descriptor("anything", {"default": 3})
        assert isinstance(descriptor, AnyInput)
        assert descriptor.type == InputType.ANY
        assert descriptor.default == 3

    def test_descriptor_instance_passes_through(self) -> None:
        descriptor = DateInput(required=True)
        assert parse_descriptor("when", descriptor) is descriptor

    def test_enum_one_of_keeps_declared_order(self) -> None:
        descriptor = parse_descriptor("size", {"type": "enum", "oneOf": ["s", "xl", "m"]})
        assert descriptor.one_of == ("s", "xl", "m")

    def test_enum_one_of_from_mapping_values(self) -> None:
        descriptor = parse_descriptor("size", {"type": "enum", "oneOf": {"S": "small", "L": "large"}})
        assert descriptor.one_of == ("small", "large")

    def test_enum_one_of_from_enum_class(self) -> None:
        descriptor = parse_descriptor("color", {"type": "enum", "oneOf": Color})
        assert descriptor.one_of == ("red", "blue")

    def test_enum_without_one_of_rejected(self) -> None:
        with pytest.raises(SchemaDefinitionError, match="status"):
            parse_descriptor("status", {"type": "enum"})

    def test_enum_with_empty_one_of_rejected(self) -> None:
        with pytest.raises(SchemaDefinitionError):
            parse_descriptor("status", {"type": "enum", "oneOf": []})

    def test_one_of_on_non_enum_rejected(self) -> None:
        with pytest.raises(SchemaDefinitionError):
            parse_descriptor("name", {"type": "string", "oneOf": ["a"]})

    def test_unknown_type_rejected(self) -> None:
        with pytest.raises(SchemaDefinitionError):
            parse_descriptor("x", {"type": "uuid"})

    def test_non_mapping_entry_rejected(self) -> None:
        with pytest.raises(SchemaDefinitionError, match="must be a mapping"):
            parse_descriptor("x", "string")

    def test_descriptors_are_frozen(self) -> None:
        descriptor = StringInput()
        with pytest.raises(Exception):
            descriptor.required = True  # type: ignore[misc]


class TestParseSchema:
    def test_parsed_schema_is_read_only(self) -> None:
        schema = parse_schema({"name": {"type": "string"}})
        with pytest.raises(TypeError):
            schema["other"] = StringInput()  # type: ignore[index]

    def test_preserves_declaration_order(self) -> None:
        schema = parse_schema({"b": {}, "a": {}, "c": {}})
        assert list(schema) == ["b", "a", "c"]

    def test_empty_schema(self) -> None:
        assert dict(parse_schema({})) == {}

    def test_non_mapping_schema_rejected(self) -> None:
        with pytest.raises(SchemaDefinitionError):
            parse_schema(["name"])

    def test_non_string_names_rejected(self) -> None:
        with pytest.raises(SchemaDefinitionError):
            parse_schema({1: {"type": "string"}})


class TestErrorType:
    def test_values_compare_as_strings(self) -> None:
        assert ErrorType.MISSING == "missing"
        assert ErrorType.NOT_FOUND == "not_found"
        assert str(ErrorType.UNSUPPORTED) == "unsupported"

    def test_taxonomy_is_complete(self) -> None:
        assert {e.value for e in ErrorType} == {
            "not_found",
            "invalid",
            "missing",
            "blank",
            "unsupported",
            "runtime",
            "type_mismatch",
            "unknown",
        }

    def test_undefined_is_singleton_and_falsy(self) -> None:
        import copy

        assert copy.deepcopy(UNDEFINED) is UNDEFINED
        assert not UNDEFINED
        assert repr(UNDEFINED) == "UNDEFINED"
