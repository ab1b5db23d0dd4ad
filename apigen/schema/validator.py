"""Semantic validation of a decoded entity schema.

Checks run in a fixed priority order and stop at the first violation, so a
given document always produces the same diagnostic:

1. the schema has at least one entity;
2. the first entity has at least one field;
3. (policy) the first field of the first entity is named ``id``;
4. every entity, in order, has a name and fields, and every field, in
   order, has a name and a type.

Names and types are compared after trimming whitespace.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from apigen.errors import SchemaValidationError, ValidationErrorKind
from apigen.schema.models import Schema, decode_schema

ID_FIELD_NAME = "id"


def validate_schema(schema: Schema, *, require_id_field: bool = True) -> Schema:
    """Validate *schema* and return it unchanged.

    Args:
        schema: A structurally decoded schema.
        require_id_field: Enforce that the first entity's first field is
            named ``id``.

    Raises:
        SchemaValidationError: On the first violated rule.
    """
    if not schema.entities:
        raise SchemaValidationError(ValidationErrorKind.EMPTY_SCHEMA)

    first = schema.entities[0]
    if not first.fields:
        raise SchemaValidationError(
            ValidationErrorKind.EMPTY_FIELDS, entity_name=first.name, entity_index=0
        )

    if require_id_field and first.fields[0].name.strip() != ID_FIELD_NAME:
        raise SchemaValidationError(
            ValidationErrorKind.MISSING_ID_FIELD,
            entity_name=first.name,
            field_name=first.fields[0].name,
            entity_index=0,
        )

    for index, entity in enumerate(schema.entities):
        if not entity.name.strip():
            raise SchemaValidationError(
                ValidationErrorKind.EMPTY_ENTITY_NAME,
                entity_name=entity.name,
                entity_index=index,
            )
        if not entity.fields:
            raise SchemaValidationError(
                ValidationErrorKind.EMPTY_ENTITY_FIELDS,
                entity_name=entity.name,
                entity_index=index,
            )
        for field in entity.fields:
            if not field.name.strip():
                raise SchemaValidationError(
                    ValidationErrorKind.EMPTY_FIELD_NAME,
                    entity_name=entity.name,
                    field_name=field.name,
                    entity_index=index,
                )
            if not field.field_type.strip():
                raise SchemaValidationError(
                    ValidationErrorKind.EMPTY_FIELD_TYPE,
                    entity_name=entity.name,
                    field_name=field.name,
                    entity_index=index,
                )

    return schema


def load_schema(
    raw: str | bytes | Mapping[str, Any] | Schema,
    *,
    require_id_field: bool = True,
) -> Schema:
    """Decode and validate a raw schema document in one step."""
    return validate_schema(decode_schema(raw), require_id_field=require_id_field)
