"""apigen generation pipeline.

Runs one generation end to end, each stage gating the next:

1. DECODE    -- parse the schema document into the schema model.
2. VALIDATE  -- check the semantic schema rules.
3. RESOLVE   -- map the (backend, framework) pair to its template slots.
4. LOAD      -- fetch every slot's template source.
5. RENDER    -- render global slots once and entity slots once per entity.
6. WRITE     -- create ``<output>/project_<id>/`` and write every file.

Decode, validation and resolution failures happen before anything touches
the filesystem.  Later failures can leave a partially written project
directory behind; it is only complete when :meth:`Generator.run` returns.

Usage::

    apigen '{"entities": [...]}' postgres axum --output ./output
    apigen @schema.json --project-id demo
"""

from __future__ import annotations

import asyncio
import sys
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from rich.markup import escape

from apigen.config import Config
from apigen.errors import ApigenError
from apigen.scaffolder.assets import AssetRepository, FileSystemAssetRepository
from apigen.scaffolder.capabilities import CapabilityTable, SlotMap, default_capabilities
from apigen.scaffolder.templates import RenderedFile, TemplateEngine
from apigen.scaffolder.writer import ProjectWriter, project_dir_name
from apigen.schema.models import Schema
from apigen.schema.validator import load_schema
from apigen.utils import (
    console,
    print_error,
    print_success,
    print_summary_table,
    read_schema_argument,
    sanitize_name,
)


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------


@dataclass
class GenerationResult:
    """Outcome of a successful generation run."""

    project_id: str
    project_dir: Path
    slot_map: SlotMap
    files: list[RenderedFile] = field(default_factory=list)

    @property
    def written_paths(self) -> list[Path]:
        """Absolute paths of every written file, in emission order."""
        return [self.project_dir.joinpath(*Path(f.path).parts) for f in self.files]


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------


class Generator:
    """Drives the decode -> validate -> resolve -> load -> render -> write pipeline.

    The capability table and asset repository are read-only and may be
    shared by concurrent runs; each call to :meth:`run` builds its own
    :class:`TemplateEngine`.

    Attributes:
        config: Pipeline configuration.
        capabilities: Table of supported technology combinations.
        repository: Source of template text.
        writer: Output writer rooted at ``config.output_dir``.
    """

    def __init__(
        self,
        config: Config | None = None,
        *,
        capabilities: CapabilityTable | None = None,
        repository: AssetRepository | None = None,
    ) -> None:
        self.config = config or Config()
        if capabilities is None:
            if self.config.capabilities_path is not None:
                capabilities = CapabilityTable.from_yaml(self.config.capabilities_path)
            else:
                capabilities = default_capabilities()
        self.capabilities = capabilities
        if repository is None:
            repository = FileSystemAssetRepository(self.config.templates_dir)
        self.repository = repository
        self.writer = ProjectWriter(self.config.output_dir)

    async def run(
        self,
        raw_schema: str | bytes | Mapping[str, Any] | Schema,
        *,
        project_id: str,
        backend: str | None = None,
        framework: str | None = None,
    ) -> GenerationResult:
        """Generate one project.

        Args:
            raw_schema: Schema document (JSON text/bytes, decoded mapping or
                ``Schema``).
            project_id: Caller-supplied identifier; the output directory is
                ``project_<id>``.  Concurrent runs must use distinct ids.
            backend: Backend override; defaults to ``config.backend``.
            framework: Framework override; defaults to ``config.framework``.

        Raises:
            ApigenError: The subclass identifies the failing stage.
        """
        self._step("Validating schema")
        schema = load_schema(raw_schema, require_id_field=self.config.require_id_field)

        self._step("Resolving technology selection")
        slot_map = self.capabilities.resolve(
            self.config.backend if backend is None else backend,
            self.config.framework if framework is None else framework,
        )
        project_name = project_dir_name(project_id)

        self._step(f"Loading {len(slot_map.slots)} templates for {slot_map.backend}/{slot_map.framework}")
        engine = TemplateEngine()
        await engine.load(slot_map, self.repository)

        self._step(f"Rendering {len(schema.entities)} entities")
        files = engine.render(schema, project_name=project_name)

        self._step(f"Writing {len(files)} files")
        project_dir = await self.writer.write(project_id, files)

        return GenerationResult(
            project_id=project_id,
            project_dir=project_dir,
            slot_map=slot_map,
            files=files,
        )

    def _step(self, message: str) -> None:
        if not self.config.quiet:
            console.print(f"  [dim]{escape(message)}...[/dim]")


async def generate_project(
    raw_schema: str | bytes | Mapping[str, Any] | Schema,
    project_id: str,
    *,
    backend: str | None = None,
    framework: str | None = None,
    config: Config | None = None,
) -> GenerationResult:
    """Run a single generation with a fresh :class:`Generator`.

    *backend* and *framework* default to the values in *config*.
    """
    generator = Generator(config)
    return await generator.run(
        raw_schema, project_id=project_id, backend=backend, framework=framework
    )


def new_project_id() -> str:
    """Return a short random project identifier."""
    return uuid.uuid4().hex[:8]


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``apigen`` / ``python -m apigen.pipeline``."""
    import argparse

    table = default_capabilities()
    parser = argparse.ArgumentParser(
        prog="apigen",
        description="apigen: API Generator -- generates APIs based on a provided schema",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  apigen '{\"entities\": [...]}'\n"
            "  apigen @schema.json postgres actix -o ./generated\n"
            "  apigen schema.json --project-id demo --no-id-field-check\n"
            "  apigen @schema.json --config apigen.json\n"
        ),
    )
    parser.add_argument(
        "schema",
        help="The JSON schema for the API (inline JSON, a file path, or @path)",
    )
    parser.add_argument(
        "backend",
        nargs="?",
        default=None,
        help=f"The database type (supported: {', '.join(table.supported_backends())})",
    )
    parser.add_argument(
        "framework",
        nargs="?",
        default=None,
        help=f"The framework to use (supported: {', '.join(table.supported_frameworks())})",
    )
    parser.add_argument(
        "--output", "-o",
        default=None,
        help="Output directory (default: ./output or APIGEN_OUTPUT_DIR)",
    )
    parser.add_argument(
        "--project-id",
        default=None,
        help="Project identifier (default: random 8-character id)",
    )
    parser.add_argument(
        "--no-id-field-check",
        action="store_true",
        help="Do not require the first field of the first entity to be named 'id'",
    )
    parser.add_argument("--templates-dir", default=None, help="Template directory override")
    parser.add_argument("--capabilities", default=None, help="Capability table YAML override")
    parser.add_argument("--quiet", "-q", action="store_true", help="Only print the result")
    parser.add_argument(
        "--config",
        default=None,
        help="Load settings from a JSON file instead of APIGEN_* variables",
    )
    parser.add_argument(
        "--save-config",
        default=None,
        help="Write the effective settings to a JSON file before generating",
    )

    args = parser.parse_args(argv)

    if args.config:
        try:
            config = Config.load(Path(args.config))
        except (OSError, ValueError) as exc:
            print_error(f"Error: cannot load config {args.config}: {exc}")
            sys.exit(1)
    else:
        try:
            config = Config.from_env()
        except ValueError as exc:
            print_error(f"Error: {exc}")
            sys.exit(1)

    if args.output:
        config.output_dir = Path(args.output)
    if args.no_id_field_check:
        config.require_id_field = False
    if args.templates_dir:
        config.templates_dir = Path(args.templates_dir)
    if args.capabilities:
        config.capabilities_path = Path(args.capabilities)
    if args.quiet:
        config.quiet = True

    if args.save_config:
        try:
            config.save(Path(args.save_config))
        except OSError as exc:
            print_error(f"Error: cannot save config {args.save_config}: {exc}")
            sys.exit(1)

    if args.project_id is not None:
        project_id = sanitize_name(args.project_id)
        if not project_id:
            print_error(f"Error: invalid project id: {args.project_id!r}")
            sys.exit(1)
    else:
        project_id = new_project_id()

    try:
        schema_text = read_schema_argument(args.schema)
    except OSError as exc:
        print_error(f"Error: cannot read schema: {exc}")
        sys.exit(1)

    try:
        generator = Generator(config)
        result = asyncio.run(
            generator.run(
                schema_text,
                project_id=project_id,
                backend=args.backend,
                framework=args.framework,
            )
        )
    except ApigenError as exc:
        print_error(str(exc))
        sys.exit(1)

    print_success(f"API generated successfully: {result.project_dir}")
    if not config.quiet:
        print_summary_table(
            {f.path: f.slot_name for f in result.files},
            title=f"{result.slot_map.backend}/{result.slot_map.framework}",
        )


if __name__ == "__main__":
    main()
