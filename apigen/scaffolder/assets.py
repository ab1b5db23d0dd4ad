"""Template asset repositories.

The template engine only needs ``get(path) -> str``.  Two implementations
ship with the package: one reading a directory tree (by default the bundled
``templates/`` directory next to this module), and one over an in-memory
mapping for embedded bundles and tests.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Protocol, runtime_checkable

from apigen.errors import AssetDecodeError, AssetNotFoundError


DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


@runtime_checkable
class AssetRepository(Protocol):
    """Source of raw template text, addressed by slot-configured path."""

    def get(self, path: str) -> str:
        """Return the UTF-8 text stored at *path*.

        Raises:
            AssetNotFoundError: If nothing is stored at *path*.
            AssetDecodeError: If the stored bytes are not valid UTF-8.
        """
        ...


class FileSystemAssetRepository:
    """Reads assets from a directory tree.

    Paths are resolved relative to *root*; a path that resolves outside of
    it is reported as not found.
    """

    def __init__(self, root: str | Path | None = None) -> None:
        self.root = Path(root) if root is not None else DEFAULT_TEMPLATE_DIR

    def get(self, path: str) -> str:
        root = self.root.resolve()
        target = (root / path).resolve()
        if not target.is_relative_to(root) or not target.is_file():
            raise AssetNotFoundError(path)
        try:
            data = target.read_bytes()
        except OSError as exc:
            raise AssetNotFoundError(path) from exc
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise AssetDecodeError(path) from exc

    def __repr__(self) -> str:
        return f"FileSystemAssetRepository({str(self.root)!r})"


class InMemoryAssetRepository:
    """Serves assets from a ``{path: text or bytes}`` mapping."""

    def __init__(self, assets: Mapping[str, str | bytes]) -> None:
        self._assets = dict(assets)

    def get(self, path: str) -> str:
        try:
            value = self._assets[path]
        except KeyError:
            raise AssetNotFoundError(path) from None
        if isinstance(value, bytes):
            try:
                return value.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise AssetDecodeError(path) from exc
        return value

    def __contains__(self, path: object) -> bool:
        return path in self._assets
