"""apigen configuration.

Typed configuration for the generation pipeline.  Settings use a Pydantic v2
model so they are validated at construction time and can be serialised
to/from JSON or read from environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field


_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class Config(BaseModel):
    """Global apigen configuration.

    Instances are typically created once by the CLI entry point (or by a
    caller embedding :class:`~apigen.pipeline.Generator`) and passed to
    every run.
    """

    output_dir: Path = Field(default=Path("./output"))
    backend: str = Field(default="", description="Backend; empty selects the table default")
    framework: str = Field(default="", description="Framework; empty selects the table default")
    require_id_field: bool = Field(
        default=True,
        description="Require the first entity's first field to be named 'id'",
    )
    templates_dir: Optional[Path] = Field(
        default=None, description="Template directory overriding the bundled templates"
    )
    capabilities_path: Optional[Path] = Field(
        default=None, description="Capability table YAML overriding the bundled table"
    )
    quiet: bool = Field(default=False, description="Suppress progress output")

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file and return its path."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            APIGEN_OUTPUT_DIR, APIGEN_BACKEND, APIGEN_FRAMEWORK,
            APIGEN_REQUIRE_ID_FIELD, APIGEN_TEMPLATES_DIR,
            APIGEN_CAPABILITIES, APIGEN_QUIET.

        Raises:
            ValueError: If a boolean variable holds an unrecognised value.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("APIGEN_OUTPUT_DIR"):
            kwargs["output_dir"] = Path(os.environ["APIGEN_OUTPUT_DIR"])
        if os.environ.get("APIGEN_BACKEND"):
            kwargs["backend"] = os.environ["APIGEN_BACKEND"]
        if os.environ.get("APIGEN_FRAMEWORK"):
            kwargs["framework"] = os.environ["APIGEN_FRAMEWORK"]
        if os.environ.get("APIGEN_REQUIRE_ID_FIELD"):
            kwargs["require_id_field"] = _parse_bool(
                "APIGEN_REQUIRE_ID_FIELD", os.environ["APIGEN_REQUIRE_ID_FIELD"]
            )
        if os.environ.get("APIGEN_TEMPLATES_DIR"):
            kwargs["templates_dir"] = Path(os.environ["APIGEN_TEMPLATES_DIR"])
        if os.environ.get("APIGEN_CAPABILITIES"):
            kwargs["capabilities_path"] = Path(os.environ["APIGEN_CAPABILITIES"])
        if os.environ.get("APIGEN_QUIET"):
            kwargs["quiet"] = _parse_bool("APIGEN_QUIET", os.environ["APIGEN_QUIET"])
        return cls(**kwargs)


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be one of {sorted(_TRUE_VALUES | _FALSE_VALUES)}, got {value!r}")
