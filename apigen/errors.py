"""Exception hierarchy for the apigen pipeline.

Every stage raises a subclass of :class:`ApigenError` carrying structured
attributes, so callers can report the exact entity, field, slot or path
that caused a failure instead of a generic message.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path


class ApigenError(Exception):
    """Base class for every error raised by the generation pipeline."""


# ---------------------------------------------------------------------------
# Input errors (raised before anything touches the filesystem)
# ---------------------------------------------------------------------------


class DecodeError(ApigenError):
    """Raised when the schema document is not well-formed."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Error parsing schema: {message}")


class ValidationErrorKind(str, Enum):
    """Which schema invariant was violated."""

    EMPTY_SCHEMA = "empty_schema"
    EMPTY_FIELDS = "empty_fields"
    MISSING_ID_FIELD = "missing_id_field"
    EMPTY_ENTITY_NAME = "empty_entity_name"
    EMPTY_ENTITY_FIELDS = "empty_entity_fields"
    EMPTY_FIELD_NAME = "empty_field_name"
    EMPTY_FIELD_TYPE = "empty_field_type"


_VALIDATION_MESSAGES: dict[ValidationErrorKind, str] = {
    ValidationErrorKind.EMPTY_SCHEMA: "Schema must contain at least one entity",
    ValidationErrorKind.EMPTY_FIELDS: "Entity '{entity}' must contain at least one field",
    ValidationErrorKind.MISSING_ID_FIELD: (
        "First field of entity '{entity}' must be named 'id' (got '{field}')"
    ),
    ValidationErrorKind.EMPTY_ENTITY_NAME: "Entity name cannot be empty (entity #{index})",
    ValidationErrorKind.EMPTY_ENTITY_FIELDS: "Entity '{entity}' must contain at least one field",
    ValidationErrorKind.EMPTY_FIELD_NAME: "Field name cannot be empty in entity '{entity}'",
    ValidationErrorKind.EMPTY_FIELD_TYPE: (
        "Field type cannot be empty for field '{field}' in entity '{entity}'"
    ),
}


class SchemaValidationError(ApigenError):
    """Raised when a well-formed schema breaks a semantic invariant."""

    def __init__(
        self,
        kind: ValidationErrorKind,
        *,
        entity_name: str | None = None,
        field_name: str | None = None,
        entity_index: int | None = None,
    ) -> None:
        self.kind = kind
        self.entity_name = entity_name
        self.field_name = field_name
        self.entity_index = entity_index
        super().__init__(
            _VALIDATION_MESSAGES[kind].format(
                entity=entity_name,
                field=field_name,
                index=entity_index,
            )
        )


# ---------------------------------------------------------------------------
# Technology selection
# ---------------------------------------------------------------------------


class UnsupportedTechnologyError(ApigenError):
    """Raised when the requested backend/framework pair is not in the capability table."""

    def __init__(
        self,
        backend: str,
        framework: str,
        supported_backends: list[str],
        supported_frameworks: list[str],
    ) -> None:
        self.backend = backend
        self.framework = framework
        self.supported_backends = list(supported_backends)
        self.supported_frameworks = list(supported_frameworks)
        super().__init__(
            f"Unsupported configuration: backend '{backend}', framework '{framework}'. "
            f"Supported backends: {', '.join(self.supported_backends) or '-'}; "
            f"supported frameworks: {', '.join(self.supported_frameworks) or '-'}"
        )


class CapabilityTableError(ApigenError):
    """Raised when a capability table cannot be loaded or is malformed."""


# ---------------------------------------------------------------------------
# Assets & rendering
# ---------------------------------------------------------------------------


class AssetNotFoundError(ApigenError):
    """Raised by an asset repository when a path has no asset."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Asset not found: {path}")


class AssetDecodeError(ApigenError):
    """Raised by an asset repository when an asset is not valid UTF-8."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Asset is not valid UTF-8: {path}")


class AssetLoadError(ApigenError):
    """Raised when a slot's template source cannot be loaded."""

    def __init__(self, slot_name: str, asset_path: str, reason: str) -> None:
        self.slot_name = slot_name
        self.asset_path = asset_path
        self.reason = reason
        super().__init__(
            f"Error reading template for slot '{slot_name}' ({asset_path}): {reason}"
        )


class RenderError(ApigenError):
    """Raised when a slot fails to render."""

    def __init__(self, slot_name: str, reason: str, entity_name: str | None = None) -> None:
        self.slot_name = slot_name
        self.entity_name = entity_name
        self.reason = reason
        target = f"slot '{slot_name}'"
        if entity_name is not None:
            target += f" for entity '{entity_name}'"
        super().__init__(f"Error rendering {target}: {reason}")


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


class DirectoryCreateError(ApigenError):
    """Raised when the project directory tree cannot be created."""

    def __init__(self, path: str | Path, reason: str) -> None:
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Error creating folder {self.path}: {reason}")


class FileWriteError(ApigenError):
    """Raised when a rendered file cannot be written."""

    def __init__(self, path: str | Path, reason: str) -> None:
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Error writing {self.path}: {reason}")
