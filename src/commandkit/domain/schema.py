"""Input descriptors: the typed form of a command's static schema.

A command class declares ``schema`` as a mapping from input name to a
descriptor. Descriptors may be given as plain dicts (camelCase keys such
as ``allowBlank``/``oneOf`` are accepted) or as descriptor models. The
mapping is parsed once, when the class is defined, into a read-only
mapping of frozen pydantic models discriminated on ``type``.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from types import MappingProxyType
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_validator

from commandkit.domain.types import UNDEFINED, InputType
from commandkit.exceptions import SchemaDefinitionError


class _BaseInput(BaseModel):
    """Fields shared by every descriptor variant."""

    model_config = {"frozen": True, "populate_by_name": True, "extra": "forbid"}

    required: bool = False
    default: Any = UNDEFINED
    allow_blank: bool = Field(default=False, alias="allowBlank")


class StringInput(_BaseInput):
    type: Literal["string"] = "string"


class DateInput(_BaseInput):
    type: Literal["date"] = "date"


class NumberInput(_BaseInput):
    type: Literal["number"] = "number"


class BooleanInput(_BaseInput):
    type: Literal["boolean"] = "boolean"


class ListInput(_BaseInput):
    type: Literal["list"] = "list"


class MappingInput(_BaseInput):
    type: Literal["mapping"] = "mapping"


class AnyInput(_BaseInput):
    type: Literal["any"] = "any"


class EnumInput(_BaseInput):
    """Enum descriptor; ``one_of`` keeps the declared order.

    ``one_of`` accepts a sequence, a mapping (its values are used) or an
    :class:`enum.Enum` subclass (its member values are used).
    """

    type: Literal["enum"] = "enum"
    one_of: tuple[Any, ...] = Field(alias="oneOf", min_length=1)

    @field_validator("one_of", mode="before")
    @classmethod
    def _flatten_choices(cls, value: Any) -> Any:
        if isinstance(value, type) and issubclass(value, enum.Enum):
            return tuple(member.value for member in value)
        if isinstance(value, Mapping):
            return tuple(value.values())
        if isinstance(value, (str, bytes)):
            raise ValueError("one_of must be a collection of values, not a string")
        return value


InputDescriptor = Annotated[
    StringInput
    | DateInput
    | NumberInput
    | BooleanInput
    | ListInput
    | MappingInput
    | AnyInput
    | EnumInput,
    Field(discriminator="type"),
]

_descriptor_adapter: TypeAdapter[Any] = TypeAdapter(InputDescriptor)

Schema = Mapping[str, Any]


def parse_descriptor(name: str, raw: Any) -> Any:
    """Parse one schema entry into a descriptor model.

    Dicts without a ``type`` key are treated as ``any``.
    """
    if isinstance(raw, _BaseInput):
        return raw
    if not isinstance(raw, Mapping):
        msg = f"Schema entry {name!r} must be a mapping or descriptor, got {type(raw).__name__}"
        raise SchemaDefinitionError(msg)
    data = dict(raw)
    data.setdefault("type", InputType.ANY.value)
    try:
        return _descriptor_adapter.validate_python(data)
    except ValidationError as exc:
        msg = f"Invalid schema entry {name!r}: {exc}"
        raise SchemaDefinitionError(msg) from exc


def parse_schema(raw: Any) -> Mapping[str, Any]:
    """Parse a raw schema mapping into a read-only mapping of descriptors."""
    if not isinstance(raw, Mapping):
        msg = f"Command schema must be a mapping, got {type(raw).__name__}"
        raise SchemaDefinitionError(msg)
    parsed = {}
    for name, entry in raw.items():
        if not isinstance(name, str):
            msg = f"Schema input names must be strings, got {name!r}"
            raise SchemaDefinitionError(msg)
        parsed[name] = parse_descriptor(name, entry)
    return MappingProxyType(parsed)
