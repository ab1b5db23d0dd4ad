"""Entity schema model, decoding and validation.

Usage::

    from apigen.schema import load_schema

    schema = load_schema('{"entities": [...]}', require_id_field=True)
    print(schema.entity_names)
"""

from apigen.schema.models import Entity, FieldModel, Schema, decode_schema
from apigen.schema.validator import load_schema, validate_schema

__all__ = [
    "Entity",
    "FieldModel",
    "Schema",
    "decode_schema",
    "load_schema",
    "validate_schema",
]
