"""Tests for the template engine and its filters.

Covers:
- capitalize_first, pluralize, type_map and rust_type filters
- Loading slot sources (AssetLoadError before any render)
- Global and per-entity rendering, output ordering and paths
- RenderError for undefined variables, syntax errors, filter misuse and runtime errors
- Engine isolation between runs
"""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import pytest

from apigen.errors import AssetLoadError, RenderError
from apigen.scaffolder.assets import InMemoryAssetRepository
from apigen.scaffolder.capabilities import CapabilityTable
from apigen.scaffolder.templates import (
    RUST_TYPE_MAP,
    TYPE_MAP,
    RenderedFile,
    TemplateEngine,
    capitalize_first,
    pluralize,
    render_project,
    rust_type,
    type_map,
)


pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------


class TestCapitalizeFirst:
    def test_empty_string(self):
        assert capitalize_first("") == ""

    def test_lower_word(self):
        assert capitalize_first("user") == "User"

    def test_already_capitalized_non_ascii(self):
        assert capitalize_first("Ångström") == "Ångström"

    def test_non_ascii_first_code_point(self):
        assert capitalize_first("élan") == "Élan"

    def test_remainder_untouched(self):
        assert capitalize_first("orderItem") == "OrderItem"

    def test_non_string_passes_through(self):
        assert capitalize_first(42) == 42


class TestPluralize:
    def test_appends_s(self):
        assert pluralize("user") == "users"

    def test_word_ending_in_s_unchanged(self):
        # Naive heuristic: "status" is singular but already ends in "s".
        assert pluralize("status") == "status"

    def test_irregular_plural_not_handled(self):
        assert pluralize("person") == "persons"

    def test_non_string_rejected(self):
        with pytest.raises(TypeError):
            pluralize(3)


class TestTypeMap:
    @pytest.mark.parametrize("token,expected", sorted(TYPE_MAP.items()))
    def test_every_table_entry(self, token, expected):
        assert type_map(token) == expected

    def test_documented_examples(self):
        assert type_map("integer") == "Integer"
        assert type_map("text") == "Text"
        assert type_map("optional-text") == "Nullable<Text>"
        assert type_map("Vec<Option<String>>") == "Array<Nullable<Text>>"

    @pytest.mark.parametrize("token", ["uuid", "Integer", "", "money"])
    def test_unknown_tokens_pass_through(self, token):
        assert type_map(token) == token

    def test_non_string_rejected(self):
        with pytest.raises(TypeError):
            type_map(None)


class TestRustType:
    def test_table_entries(self):
        for token, expected in RUST_TYPE_MAP.items():
            assert rust_type(token) == expected

    def test_rust_spelling_passes_through(self):
        assert rust_type("Option<u32>") == "Option<u32>"

    def test_every_rust_token_has_a_storage_type(self):
        assert set(RUST_TYPE_MAP) <= set(TYPE_MAP)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


class TestLoad:
    @pytest.mark.asyncio
    async def test_missing_asset_aborts_before_render(self, minimal_table):
        repo = InMemoryAssetRepository({"test/index.txt.j2": "ok"})
        engine = TemplateEngine()
        with pytest.raises(AssetLoadError) as exc_info:
            await engine.load(minimal_table.resolve(), repo)
        assert exc_info.value.slot_name == "entity-file"
        assert exc_info.value.asset_path == "test/entity.txt.j2"
        assert engine.slot_map is None

    @pytest.mark.asyncio
    async def test_non_utf8_asset(self, minimal_table):
        repo = InMemoryAssetRepository(
            {"test/index.txt.j2": b"\xff", "test/entity.txt.j2": "ok"}
        )
        with pytest.raises(AssetLoadError) as exc_info:
            await TemplateEngine().load(minimal_table.resolve(), repo)
        assert exc_info.value.slot_name == "index"
        assert "UTF-8" in exc_info.value.reason

    @pytest.mark.asyncio
    async def test_loads_in_slot_order(self, minimal_table, minimal_repository):
        repo = MagicMock(wraps=minimal_repository)
        await TemplateEngine().load(minimal_table.resolve(), repo)
        requested = [call.args[0] for call in repo.get.call_args_list]
        assert requested == ["test/index.txt.j2", "test/entity.txt.j2"]

    def test_render_before_load(self, sample_schema):
        with pytest.raises(RuntimeError):
            TemplateEngine().render(sample_schema)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


class TestRender:
    @pytest.mark.asyncio
    async def test_fan_out_counts_and_order(self, sample_schema, minimal_table, minimal_repository):
        files = await render_project(sample_schema, minimal_table.resolve(), minimal_repository)
        assert [(f.slot_name, f.path, f.entity_name) for f in files] == [
            ("index", "index.txt", None),
            ("entity-file", "entities/user.txt", "user"),
            ("entity-file", "entities/product.txt", "Product"),
            ("entity-file", "entities/order.txt", "order"),
        ]

    @pytest.mark.asyncio
    async def test_global_context_sees_all_entities(
        self, sample_schema, minimal_table, minimal_repository
    ):
        files = await render_project(sample_schema, minimal_table.resolve(), minimal_repository)
        assert files[0].content == (
            "User -> /users\n"
            "Product -> /products\n"
            "Order -> /orders\n"
        )

    @pytest.mark.asyncio
    async def test_entity_context(self, sample_schema, minimal_table, minimal_repository):
        files = await render_project(sample_schema, minimal_table.resolve(), minimal_repository)
        assert files[1] == RenderedFile(
            slot_name="entity-file",
            path="entities/user.txt",
            content="struct User\nid: Integer\nname: Text\nemail: Nullable<Text>\n",
            entity_name="user",
        )

    @pytest.mark.asyncio
    async def test_entity_context_hides_entity_list(self, sample_schema, minimal_table):
        repo = InMemoryAssetRepository(
            {"test/index.txt.j2": "", "test/entity.txt.j2": "{{ entities | length }}"}
        )
        with pytest.raises(RenderError) as exc_info:
            await render_project(sample_schema, minimal_table.resolve(), repo)
        assert exc_info.value.slot_name == "entity-file"
        assert exc_info.value.entity_name == "user"

    @pytest.mark.asyncio
    async def test_run_values_in_context(self, sample_schema, minimal_table):
        repo = InMemoryAssetRepository(
            {
                "test/index.txt.j2": "{{ backend }}/{{ framework }}/{{ project_name }}",
                "test/entity.txt.j2": "{{ project_name }}:{{ entity.name }}",
            }
        )
        files = await render_project(
            sample_schema, minimal_table.resolve(), repo, project_name="project_x"
        )
        assert files[0].content == "memory/plain/project_x"
        assert files[3].content == "project_x:order"

    @pytest.mark.asyncio
    async def test_undefined_variable(self, sample_schema, minimal_table):
        repo = InMemoryAssetRepository(
            {"test/index.txt.j2": "{{ missing }}", "test/entity.txt.j2": ""}
        )
        with pytest.raises(RenderError) as exc_info:
            await render_project(sample_schema, minimal_table.resolve(), repo)
        assert exc_info.value.slot_name == "index"
        assert exc_info.value.entity_name is None
        assert "missing" in exc_info.value.reason

    @pytest.mark.asyncio
    async def test_syntax_error(self, sample_schema, minimal_table):
        repo = InMemoryAssetRepository(
            {"test/index.txt.j2": "{% for x in %}", "test/entity.txt.j2": ""}
        )
        with pytest.raises(RenderError, match="slot 'index'"):
            await render_project(sample_schema, minimal_table.resolve(), repo)

    @pytest.mark.asyncio
    async def test_filter_misuse(self, sample_schema, minimal_table):
        repo = InMemoryAssetRepository(
            {"test/index.txt.j2": "", "test/entity.txt.j2": "{{ entity.fields | pluralize }}"}
        )
        with pytest.raises(RenderError) as exc_info:
            await render_project(sample_schema, minimal_table.resolve(), repo)
        assert "pluralize expects a string" in exc_info.value.reason
        assert "for entity 'user'" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_runtime_error_in_expression(self, sample_schema, minimal_table):
        repo = InMemoryAssetRepository(
            {"test/index.txt.j2": "", "test/entity.txt.j2": "{{ 1 / 0 }}"}
        )
        with pytest.raises(RenderError) as exc_info:
            await render_project(sample_schema, minimal_table.resolve(), repo)
        assert exc_info.value.slot_name == "entity-file"
        assert exc_info.value.entity_name == "user"
        assert isinstance(exc_info.value.__cause__, ZeroDivisionError)

    @pytest.mark.asyncio
    async def test_angle_brackets_not_escaped(self, sample_schema, minimal_table, minimal_repository):
        files = await render_project(sample_schema, minimal_table.resolve(), minimal_repository)
        assert "email: Nullable<Text>" in files[1].content

    @pytest.mark.asyncio
    async def test_render_is_deterministic(self, sample_schema, minimal_table, minimal_repository):
        first = await render_project(sample_schema, minimal_table.resolve(), minimal_repository)
        second = await render_project(sample_schema, minimal_table.resolve(), minimal_repository)
        assert first == second

    @pytest.mark.asyncio
    async def test_keeps_trailing_newline(self, sample_schema, minimal_table):
        repo = InMemoryAssetRepository(
            {"test/index.txt.j2": "line\n", "test/entity.txt.j2": "x"}
        )
        files = await render_project(sample_schema, minimal_table.resolve(), repo)
        assert files[0].content == "line\n"

    def test_render_string_uses_filters(self):
        engine = TemplateEngine()
        assert engine.render_string("{{ name | capitalize_first | pluralize }}", {"name": "tag"}) == "Tags"

    def test_render_string_matches_slot_output(self):
        engine = TemplateEngine()
        assert engine.render_string("{{ t | type_map }}", {"t": "optional-text"}) == "Nullable<Text>"
        assert engine.render_string("{{ t | rust_type }}", {"t": "text-list"}) == "Vec<String>"


class TestIsolation:
    @pytest.mark.asyncio
    async def test_engines_do_not_share_sources(self, sample_schema, minimal_table):
        slot_map = minimal_table.resolve()
        repo_a = InMemoryAssetRepository({"test/index.txt.j2": "A", "test/entity.txt.j2": "a"})
        repo_b = InMemoryAssetRepository({"test/index.txt.j2": "B", "test/entity.txt.j2": "b"})

        files_a, files_b = await asyncio.gather(
            render_project(sample_schema, slot_map, repo_a),
            render_project(sample_schema, slot_map, repo_b),
        )
        assert {f.content for f in files_a} == {"A", "a"}
        assert {f.content for f in files_b} == {"B", "b"}

    def test_filters_registered_per_engine(self):
        first, second = TemplateEngine(), TemplateEngine()
        first.env.filters["pluralize"] = lambda value: "changed"
        assert second.render_string("{{ 'user' | pluralize }}", {}) == "users"


class TestBundledTemplates:
    @pytest.mark.parametrize("framework", ["axum", "actix"])
    @pytest.mark.asyncio
    async def test_render_every_slot(self, sample_schema, framework):
        from apigen.scaffolder.assets import FileSystemAssetRepository
        from apigen.scaffolder.capabilities import resolve

        files = await render_project(
            sample_schema,
            resolve("postgres", framework),
            FileSystemAssetRepository(),
            project_name="project_demo",
        )
        by_path = {f.path: f.content for f in files}
        assert "src/api/product.rs" in by_path
        assert "pub struct Product {" in by_path["src/api/product.rs"]
        assert "pub tags: Vec<String>," in by_path["src/api/product.rs"]
        assert "tags -> Array<Text>," in by_path["src/schema.rs"]
        assert "orders (id) {" in by_path["src/schema.rs"]
        assert by_path["src/api/mod.rs"] == "pub mod user;\npub mod product;\npub mod order;\n"
        assert 'name = "project_demo"' in by_path["Cargo.toml"]
        assert framework.replace("actix", "actix-web") in by_path["Cargo.toml"]

    def test_capability_table_is_shared_read_only(self):
        table = CapabilityTable.from_dict(
            {
                "default_backend": "a",
                "default_framework": "b",
                "backends": {"a": {"b": [{"name": "g", "asset": "g", "output": "g"}]}},
            }
        )
        assert table.resolve() == table.resolve()
