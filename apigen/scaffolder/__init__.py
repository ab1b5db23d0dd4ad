"""apigen scaffolder -- resolves, renders and writes project skeletons.

Quick usage::

    from apigen.scaffolder import (
        FileSystemAssetRepository,
        ProjectWriter,
        render_project,
        resolve,
    )

    slot_map = resolve("postgres", "axum")
    files = await render_project(schema, slot_map, FileSystemAssetRepository())
    project_dir = await ProjectWriter("./output").write("ab12cd34", files)
"""

from apigen.scaffolder.assets import (
    AssetRepository,
    FileSystemAssetRepository,
    InMemoryAssetRepository,
)
from apigen.scaffolder.capabilities import (
    CapabilityTable,
    Slot,
    SlotMap,
    SlotScope,
    default_capabilities,
    resolve,
)
from apigen.scaffolder.templates import RenderedFile, TemplateEngine, render_project
from apigen.scaffolder.writer import ProjectWriter, project_dir_name

__all__ = [
    "AssetRepository",
    "CapabilityTable",
    "FileSystemAssetRepository",
    "InMemoryAssetRepository",
    "ProjectWriter",
    "RenderedFile",
    "Slot",
    "SlotMap",
    "SlotScope",
    "TemplateEngine",
    "default_capabilities",
    "project_dir_name",
    "render_project",
    "resolve",
]
