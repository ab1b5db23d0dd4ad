"""Shared pytest fixtures for the apigen test suite.

Provides reusable fixtures for:
- Sample schema documents (valid and decoded)
- A two-slot capability table with in-memory templates
- Temporary output directories
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from apigen.config import Config
from apigen.scaffolder.assets import InMemoryAssetRepository
from apigen.scaffolder.capabilities import CapabilityTable
from apigen.schema.models import Schema, decode_schema


# ---------------------------------------------------------------------------
# Schema documents
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_schema_dict() -> dict[str, Any]:
    """A valid three-entity schema as a decoded JSON mapping."""
    return {
        "entities": [
            {
                "name": "user",
                "fields": [
                    {"name": "id", "field_type": "integer"},
                    {"name": "name", "field_type": "text"},
                    {"name": "email", "field_type": "optional-text"},
                ],
            },
            {
                "name": "Product",
                "fields": [
                    {"name": "id", "field_type": "integer"},
                    {"name": "title", "field_type": "text"},
                    {"name": "tags", "field_type": "text-list"},
                ],
            },
            {
                "name": "order",
                "fields": [
                    {"name": "id", "field_type": "integer"},
                    {"name": "user_id", "field_type": "integer"},
                    {"name": "status", "field_type": "text"},
                ],
            },
        ]
    }


@pytest.fixture
def sample_schema_json(sample_schema_dict: dict[str, Any]) -> str:
    """The sample schema serialised as JSON text."""
    return json.dumps(sample_schema_dict)


@pytest.fixture
def sample_schema(sample_schema_dict: dict[str, Any]) -> Schema:
    """The sample schema decoded into the model."""
    return decode_schema(sample_schema_dict)


# ---------------------------------------------------------------------------
# Minimal capability table & templates
# ---------------------------------------------------------------------------

MINIMAL_TEMPLATES: dict[str, str] = {
    "test/index.txt.j2": (
        "{% for entity in entities %}\n"
        "{{ entity.name | capitalize_first }} -> /{{ entity.name | lower | pluralize }}\n"
        "{% endfor %}\n"
    ),
    "test/entity.txt.j2": (
        "struct {{ entity.name | capitalize_first }}\n"
        "{% for field in entity.fields %}\n"
        "{{ field.name }}: {{ field.field_type | type_map }}\n"
        "{% endfor %}\n"
    ),
}


@pytest.fixture
def minimal_table() -> CapabilityTable:
    """A table with one combination: one global slot and one entity slot."""
    return CapabilityTable.from_dict(
        {
            "default_backend": "memory",
            "default_framework": "plain",
            "backends": {
                "memory": {
                    "plain": [
                        {
                            "name": "index",
                            "asset": "test/index.txt.j2",
                            "output": "index.txt",
                            "scope": "global",
                        },
                        {
                            "name": "entity-file",
                            "asset": "test/entity.txt.j2",
                            "output": "entities/{entity}.txt",
                            "scope": "entity",
                        },
                    ],
                },
            },
        }
    )


@pytest.fixture
def minimal_repository() -> InMemoryAssetRepository:
    """In-memory templates matching :func:`minimal_table`."""
    return InMemoryAssetRepository(MINIMAL_TEMPLATES)


# ---------------------------------------------------------------------------
# Paths & configuration
# ---------------------------------------------------------------------------

@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """Temporary root for generated projects (auto-cleanup)."""
    out = tmp_path / "output"
    out.mkdir()
    return out


@pytest.fixture
def quiet_config(output_dir: Path) -> Config:
    """A Config writing into the temporary output directory without console noise."""
    return Config(output_dir=output_dir, quiet=True)
