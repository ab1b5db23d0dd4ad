"""Jinja2 template rendering for generated projects.

Provides the :class:`TemplateEngine`, a per-run value that loads every slot
of a resolved :class:`~apigen.scaffolder.capabilities.SlotMap` from an asset
repository, registers the semantic filters used by the templates, and
renders each slot against either the global context (all entities) or a
per-entity context.  Nothing here is shared between runs, so concurrent
generations never see each other's sources or filters.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

from jinja2 import DictLoader, Environment, StrictUndefined

from apigen.errors import (
    ApigenError,
    AssetDecodeError,
    AssetLoadError,
    AssetNotFoundError,
    RenderError,
)
from apigen.schema.models import Schema

from .assets import AssetRepository
from .capabilities import SlotMap, SlotScope


# ---------------------------------------------------------------------------
# Type tables
# ---------------------------------------------------------------------------

# Semantic field type -> Diesel SQL type.  The Rust spellings at the bottom
# are accepted for schemas written against earlier releases.
TYPE_MAP: dict[str, str] = {
    "integer": "Integer",
    "bigint": "BigInt",
    "text": "Text",
    "boolean": "Bool",
    "float": "Double",
    "timestamp": "Timestamp",
    "json": "Jsonb",
    "optional-integer": "Nullable<Integer>",
    "optional-text": "Nullable<Text>",
    "optional-boolean": "Nullable<Bool>",
    "integer-list": "Array<Integer>",
    "text-list": "Array<Text>",
    "optional-text-list": "Array<Nullable<Text>>",
    "u32": "Int4",
    "String": "Text",
    "Option<String>": "Nullable<Text>",
    "Option<u32>": "Nullable<Int4>",
    "Vec<String>": "Array<Text>",
    "Vec<u32>": "Array<Int4>",
    "Vec<Option<String>>": "Array<Nullable<Text>>",
    "Value": "Jsonb",
}

# Semantic field type -> Rust type used in generated structs.
RUST_TYPE_MAP: dict[str, str] = {
    "integer": "i32",
    "bigint": "i64",
    "text": "String",
    "boolean": "bool",
    "float": "f64",
    "timestamp": "chrono::NaiveDateTime",
    "json": "serde_json::Value",
    "optional-integer": "Option<i32>",
    "optional-text": "Option<String>",
    "optional-boolean": "Option<bool>",
    "integer-list": "Vec<i32>",
    "text-list": "Vec<String>",
    "optional-text-list": "Vec<Option<String>>",
}


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------

def capitalize_first(value: Any) -> Any:
    """Upper-case the first character, leaving the rest untouched.

    ``"user"`` -> ``"User"``, ``"orderItem"`` -> ``"OrderItem"``.  Empty
    strings and non-string values are returned unchanged.
    """
    if not isinstance(value, str) or not value:
        return value
    return value[0].upper() + value[1:]


def type_map(value: str) -> str:
    """Map a semantic field type to its Diesel SQL type; unknown types pass through."""
    _require_str("type_map", value)
    return TYPE_MAP.get(value, value)


def rust_type(value: str) -> str:
    """Map a semantic field type to a Rust type; unknown types pass through."""
    _require_str("rust_type", value)
    return RUST_TYPE_MAP.get(value, value)


def pluralize(value: str) -> str:
    """Append ``s`` unless the word already ends with one.

    Deliberately naive: ``"user"`` -> ``"users"`` but ``"status"`` stays
    ``"status"`` and irregular plurals are not handled.
    """
    _require_str("pluralize", value)
    if value.endswith("s"):
        return value
    return f"{value}s"


def _require_str(filter_name: str, value: Any) -> None:
    if not isinstance(value, str):
        raise TypeError(f"{filter_name} expects a string, got {type(value).__name__}")


FILTERS = {
    "capitalize_first": capitalize_first,
    "type_map": type_map,
    "rust_type": rust_type,
    "pluralize": pluralize,
}


# ---------------------------------------------------------------------------
# Rendered output
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RenderedFile:
    """One rendered output file, relative to the project root."""

    slot_name: str
    path: str
    content: str
    entity_name: str | None = None


# ---------------------------------------------------------------------------
# TemplateEngine
# ---------------------------------------------------------------------------


class TemplateEngine:
    """Loads and renders the slots of one generation run.

    Usage::

        engine = TemplateEngine()
        await engine.load(slot_map, repository)
        files = engine.render(schema, project_name="project_ab12")
    """

    def __init__(self) -> None:
        self._sources: dict[str, str] = {}
        self.slot_map: SlotMap | None = None
        self.env = Environment(
            loader=DictLoader(self._sources),
            autoescape=False,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters.update(FILTERS)

    # -- Loading -----------------------------------------------------------

    async def load(self, slot_map: SlotMap, repository: AssetRepository) -> None:
        """Fetch every slot's source from *repository*, in slot order.

        Raises:
            AssetLoadError: On the first missing or undecodable asset.
                Nothing is rendered in that case.
        """
        sources: dict[str, str] = {}
        for slot in slot_map.slots:
            try:
                sources[slot.name] = await asyncio.to_thread(repository.get, slot.asset)
            except (AssetNotFoundError, AssetDecodeError) as exc:
                raise AssetLoadError(slot.name, slot.asset, str(exc)) from exc

        self._sources.clear()
        self._sources.update(sources)
        if self.env.cache is not None:
            self.env.cache.clear()
        self.slot_map = slot_map

    # -- Rendering ---------------------------------------------------------

    def render(self, schema: Schema, project_name: str = "") -> list[RenderedFile]:
        """Render every loaded slot.

        Global slots see ``entities``; entity slots are rendered once per
        entity, in schema order, and see only ``entity``.  Both contexts
        also carry ``backend``, ``framework`` and ``project_name``.

        Returns:
            Rendered files in slot declaration order, then entity order.

        Raises:
            RuntimeError: If :meth:`load` has not been called.
            RenderError: On the first slot that fails to render.
        """
        if self.slot_map is None:
            raise RuntimeError("TemplateEngine.load() must be called before render()")

        run_context = {
            "backend": self.slot_map.backend,
            "framework": self.slot_map.framework,
            "project_name": project_name,
        }

        rendered: list[RenderedFile] = []
        for slot in self.slot_map.slots:
            if slot.scope is SlotScope.GLOBAL:
                context = {**run_context, "entities": schema.entities}
                rendered.append(
                    RenderedFile(
                        slot_name=slot.name,
                        path=slot.output_path(),
                        content=self._render_slot(slot.name, context),
                    )
                )
                continue

            for entity in schema.entities:
                context = {**run_context, "entity": entity}
                rendered.append(
                    RenderedFile(
                        slot_name=slot.name,
                        path=slot.output_path(entity.name),
                        content=self._render_slot(slot.name, context, entity.name),
                        entity_name=entity.name,
                    )
                )
        return rendered

    def render_string(self, template_string: str, context: dict[str, Any]) -> str:
        """Render an inline template with this engine's filters and settings."""
        return self.env.from_string(template_string).render(**context)

    def _render_slot(
        self,
        slot_name: str,
        context: dict[str, Any],
        entity_name: str | None = None,
    ) -> str:
        try:
            template = self.env.get_template(slot_name)
            return template.render(**context)
        except ApigenError:
            raise
        except Exception as exc:
            raise RenderError(slot_name, str(exc) or type(exc).__name__, entity_name) from exc


async def render_project(
    schema: Schema,
    slot_map: SlotMap,
    repository: AssetRepository,
    project_name: str = "",
) -> list[RenderedFile]:
    """Load *slot_map* from *repository* and render it for *schema* with a fresh engine."""
    engine = TemplateEngine()
    await engine.load(slot_map, repository)
    return engine.render(schema, project_name=project_name)
