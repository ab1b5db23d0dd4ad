"""Writes rendered files into a project-scoped output directory.

The writer works in three passes: it first plans every target path and
encodes every file body (rejecting paths that would leave the project
directory or cannot name a file, and bodies that are not valid UTF-8),
then creates the whole
directory tree, and only then writes files in order.  A failed write leaves
the files written before it on disk; callers should treat the directory as
complete only when :meth:`ProjectWriter.write` returns.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from pathlib import Path, PurePosixPath

from apigen.errors import DirectoryCreateError, FileWriteError

from .templates import RenderedFile


PROJECT_DIR_PREFIX = "project_"


def project_dir_name(project_id: str) -> str:
    """Return the directory name for *project_id*, e.g. ``project_ab12cd34``.

    Raises:
        DirectoryCreateError: If the identifier is empty or contains path
            separators or parent references.
    """
    cleaned = project_id.strip()
    if not cleaned or cleaned in {".", ".."} or any(sep in cleaned for sep in ("/", "\\")):
        raise DirectoryCreateError(project_id, "invalid project identifier")
    return f"{PROJECT_DIR_PREFIX}{cleaned}"


class ProjectWriter:
    """Persists rendered files under ``<output_root>/project_<id>/``."""

    def __init__(self, output_root: str | Path) -> None:
        self.output_root = Path(output_root)

    def project_dir(self, project_id: str) -> Path:
        return self.output_root / project_dir_name(project_id)

    async def write(self, project_id: str, files: Sequence[RenderedFile]) -> Path:
        """Write *files* into the project directory and return its path.

        Raises:
            FileWriteError: If a target path is unsafe, invalid or duplicated,
                or a body cannot be encoded (all before anything is created),
                or if writing a file fails.
            DirectoryCreateError: If the directory tree cannot be created
                (before any file is written).
        """
        project_dir = self.project_dir(project_id)
        planned = self._plan(project_dir, files)

        directories = sorted({target.parent for target, _ in planned} | {project_dir})
        await asyncio.to_thread(_create_directories, directories)

        for target, data in planned:
            await asyncio.to_thread(_write_file, target, data)

        return project_dir

    # -- Internal helpers --------------------------------------------------

    @staticmethod
    def _plan(project_dir: Path, files: Sequence[RenderedFile]) -> list[tuple[Path, bytes]]:
        """Map each rendered file to its target path and encoded content.

        Every path and every file body is checked here, so a bad entity or
        field name fails before the project directory exists.
        """
        planned: list[tuple[Path, bytes]] = []
        seen: dict[str, str] = {}
        for rendered in files:
            label = rendered.slot_name
            if rendered.entity_name is not None:
                label += f" ({rendered.entity_name})"
            relative = PurePosixPath(rendered.path)
            if (
                not rendered.path
                or relative.is_absolute()
                or ".." in relative.parts
                or relative == PurePosixPath(".")
            ):
                raise FileWriteError(rendered.path, "path escapes the project directory")
            if "\x00" in rendered.path or not _is_utf8(rendered.path):
                raise FileWriteError(
                    repr(rendered.path), f"slot {rendered.slot_name} produced an invalid file name"
                )
            key = relative.as_posix()
            if key in seen:
                raise FileWriteError(
                    key,
                    f"slot {label} targets the same file as slot {seen[key]}",
                )
            try:
                data = rendered.content.encode("utf-8")
            except UnicodeEncodeError as exc:
                raise FileWriteError(key, f"content is not valid UTF-8: {exc.reason}") from exc
            seen[key] = label
            planned.append((project_dir.joinpath(*relative.parts), data))
        return planned


def _is_utf8(text: str) -> bool:
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def _create_directories(directories: Sequence[Path]) -> None:
    for directory in directories:
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except (OSError, ValueError) as exc:
            reason = exc.strerror if isinstance(exc, OSError) and exc.strerror else str(exc)
            raise DirectoryCreateError(directory, reason) from exc


def _write_file(path: Path, data: bytes) -> None:
    try:
        path.write_bytes(data)
    except (OSError, ValueError) as exc:
        reason = exc.strerror if isinstance(exc, OSError) and exc.strerror else str(exc)
        raise FileWriteError(path, reason) from exc
