"""Pydantic v2 models for the entity schema.

Defines the immutable ``Schema -> Entity -> FieldModel`` hierarchy and the
decoding step that turns raw JSON (text, bytes or an already-decoded
mapping) into it.  Decoding only checks *structure*; the semantic rules
live in :mod:`apigen.schema.validator`.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from apigen.errors import DecodeError


# ---------------------------------------------------------------------------
# Schema Models
# ---------------------------------------------------------------------------

class FieldModel(BaseModel):
    """A single typed field of an entity."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Field name, e.g. 'id'")
    field_type: str = Field(
        ..., description="Semantic type token, e.g. 'integer' or 'optional-text'"
    )


class Entity(BaseModel):
    """A named entity and its ordered fields."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Entity name, e.g. 'user'")
    fields: tuple[FieldModel, ...] = Field(..., description="Fields in declaration order")


class Schema(BaseModel):
    """The complete entity schema for one generation run."""
    model_config = ConfigDict(frozen=True)

    entities: tuple[Entity, ...] = Field(..., description="Entities in declaration order")

    @property
    def entity_names(self) -> list[str]:
        return [entity.name for entity in self.entities]


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------

def decode_schema(raw: str | bytes | Mapping[str, Any] | Schema) -> Schema:
    """Decode a raw schema document into a :class:`Schema`.

    Args:
        raw: JSON text, UTF-8 bytes, an already-decoded mapping, or a
            ``Schema`` (returned as-is).

    Returns:
        The structurally valid, not yet semantically validated, schema.

    Raises:
        DecodeError: If the input is not JSON or does not have the
            ``{"entities": [{"name", "fields": [{"name", "field_type"}]}]}``
            shape.
    """
    if isinstance(raw, Schema):
        return raw

    data: Any = raw
    if isinstance(raw, (str, bytes, bytearray)):
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise DecodeError(f"invalid JSON: {exc}") from exc

    if not isinstance(data, Mapping):
        raise DecodeError(
            f"expected a JSON object at the top level, got {type(data).__name__}"
        )

    try:
        return Schema.model_validate(dict(data))
    except PydanticValidationError as exc:
        raise DecodeError(_summarise_errors(exc)) from exc


def _summarise_errors(exc: PydanticValidationError) -> str:
    """Flatten pydantic errors into ``entities.0.fields.1.name: message`` lines."""
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts)
