"""Technology capability table and resolver.

The set of supported (backend, framework) pairs and the template slots each
pair renders is data, not code: it lives in ``capabilities.yaml`` next to
this module and is loaded once into a frozen :class:`CapabilityTable`.
Adding a backend or a slot is a change to that file (plus its templates);
neither the template engine nor the project writer needs to know.
"""

from __future__ import annotations

from enum import Enum
from functools import lru_cache
from pathlib import Path, PurePosixPath
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic import ValidationError as PydanticValidationError

from apigen.errors import CapabilityTableError, UnsupportedTechnologyError


DEFAULT_CAPABILITIES_PATH = Path(__file__).parent / "capabilities.yaml"

# Placeholder substituted with the lower-cased entity name in entity-scoped outputs.
ENTITY_PLACEHOLDER = "{entity}"


# ---------------------------------------------------------------------------
# Slot models
# ---------------------------------------------------------------------------


class SlotScope(str, Enum):
    """Whether a slot renders once per run or once per entity."""

    GLOBAL = "global"
    ENTITY = "entity"


class Slot(BaseModel):
    """A named template unit and the file(s) it renders to."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Slot name, e.g. 'entity-file'")
    asset: str = Field(..., min_length=1, description="Asset path handed to the repository")
    output: str = Field(..., min_length=1, description="Output path relative to the project root")
    scope: SlotScope = Field(default=SlotScope.GLOBAL)

    @model_validator(mode="after")
    def _check_output(self) -> "Slot":
        path = PurePosixPath(self.output)
        if path.is_absolute() or ".." in path.parts:
            raise ValueError(f"slot '{self.name}': output must stay inside the project")
        has_placeholder = ENTITY_PLACEHOLDER in self.output
        if self.scope is SlotScope.ENTITY and not has_placeholder:
            raise ValueError(
                f"slot '{self.name}': entity-scoped output must contain {ENTITY_PLACEHOLDER}"
            )
        if self.scope is SlotScope.GLOBAL and has_placeholder:
            raise ValueError(
                f"slot '{self.name}': global output must not contain {ENTITY_PLACEHOLDER}"
            )
        return self

    def output_path(self, entity_name: str | None = None) -> str:
        """Return the relative output path, filled in for *entity_name* when entity-scoped."""
        if self.scope is SlotScope.GLOBAL:
            return self.output
        if entity_name is None:
            raise ValueError(f"slot '{self.name}' is entity-scoped and needs an entity name")
        return self.output.replace(ENTITY_PLACEHOLDER, entity_name.strip().lower())


class SlotMap(BaseModel):
    """The resolved, ordered slot set for one technology selection."""

    model_config = ConfigDict(frozen=True)

    backend: str
    framework: str
    slots: tuple[Slot, ...]

    @property
    def names(self) -> list[str]:
        return [slot.name for slot in self.slots]

    def assets(self) -> dict[str, str]:
        """Return ``{slot name: asset path}`` in declaration order."""
        return {slot.name: slot.asset for slot in self.slots}

    def global_slots(self) -> list[Slot]:
        return [slot for slot in self.slots if slot.scope is SlotScope.GLOBAL]

    def entity_slots(self) -> list[Slot]:
        return [slot for slot in self.slots if slot.scope is SlotScope.ENTITY]

    def get(self, name: str) -> Slot:
        for slot in self.slots:
            if slot.name == name:
                return slot
        raise KeyError(name)


# ---------------------------------------------------------------------------
# Capability table
# ---------------------------------------------------------------------------


class CapabilityTable(BaseModel):
    """Static mapping ``backend -> framework -> ordered slots``."""

    model_config = ConfigDict(frozen=True)

    default_backend: str
    default_framework: str
    backends: dict[str, dict[str, tuple[Slot, ...]]]

    @model_validator(mode="after")
    def _check_table(self) -> "CapabilityTable":
        for backend, frameworks in self.backends.items():
            if backend != backend.strip().lower():
                raise ValueError(f"backend '{backend}' must be lower case")
            for framework, slots in frameworks.items():
                if framework != framework.strip().lower():
                    raise ValueError(f"framework '{framework}' must be lower case")
                if not slots:
                    raise ValueError(f"{backend}/{framework} declares no slots")
                names = [slot.name for slot in slots]
                duplicates = sorted({n for n in names if names.count(n) > 1})
                if duplicates:
                    raise ValueError(
                        f"{backend}/{framework} declares duplicate slots: {', '.join(duplicates)}"
                    )
        if self.default_framework not in self.backends.get(self.default_backend, {}):
            raise ValueError(
                f"default pair {self.default_backend}/{self.default_framework} "
                "is not in the table"
            )
        return self

    # -- Construction ------------------------------------------------------

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CapabilityTable":
        """Build a table from a plain mapping, raising ``CapabilityTableError`` on bad shape."""
        if not isinstance(data, dict):
            raise CapabilityTableError("capability table must be a mapping")
        try:
            return cls.model_validate(data)
        except PydanticValidationError as exc:
            raise CapabilityTableError(f"invalid capability table: {exc}") from exc

    @classmethod
    def from_yaml(cls, path: str | Path) -> "CapabilityTable":
        """Load a table from a YAML file."""
        file_path = Path(path)
        try:
            data = yaml.safe_load(file_path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise CapabilityTableError(f"cannot read {file_path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise CapabilityTableError(f"invalid YAML in {file_path}: {exc}") from exc
        return cls.from_dict(data)

    # -- Queries -----------------------------------------------------------

    def supported_backends(self) -> list[str]:
        return sorted(self.backends)

    def supported_frameworks(self, backend: str | None = None) -> list[str]:
        """Frameworks for *backend*, or for every backend when it is unknown or omitted."""
        if backend is not None and backend in self.backends:
            return sorted(self.backends[backend])
        frameworks: set[str] = set()
        for supported in self.backends.values():
            frameworks.update(supported)
        return sorted(frameworks)

    def resolve(self, backend: str = "", framework: str = "") -> SlotMap:
        """Resolve a (backend, framework) pair to its slot map.

        Both identifiers are trimmed and lower-cased; empty values fall back
        to the table defaults.

        Raises:
            UnsupportedTechnologyError: If the pair is not in the table.
        """
        backend_name = (backend or "").strip().lower() or self.default_backend
        framework_name = (framework or "").strip().lower() or self.default_framework

        frameworks = self.backends.get(backend_name)
        if frameworks is None or framework_name not in frameworks:
            raise UnsupportedTechnologyError(
                backend=backend_name,
                framework=framework_name,
                supported_backends=self.supported_backends(),
                supported_frameworks=self.supported_frameworks(backend_name),
            )

        return SlotMap(
            backend=backend_name,
            framework=framework_name,
            slots=frameworks[framework_name],
        )


@lru_cache(maxsize=None)
def default_capabilities() -> CapabilityTable:
    """Return the bundled capability table (loaded once per process)."""
    return CapabilityTable.from_yaml(DEFAULT_CAPABILITIES_PATH)


def resolve(
    backend: str = "",
    framework: str = "",
    table: CapabilityTable | None = None,
) -> SlotMap:
    """Resolve a technology selection against *table* (default: the bundled table)."""
    if table is None:
        table = default_capabilities()
    return table.resolve(backend, framework)
