"""stackgen configuration.

Typed settings for template loading, merging and output. Uses a Pydantic v2
model so values are validated at construction time and serialise to/from
JSON or environment variables without boiler-plate.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from stackgen.models import Hosting
from stackgen.sanitizer import MAX_FILE_BYTES

BUNDLED_CATALOG = Path(__file__).parent / "catalog"

_TRUE_VALUES = {"1", "true", "yes", "on"}


class Config(BaseModel):
    """Global stackgen configuration.

    Instances are created once by the CLI (or by library callers) and passed
    to ``ProjectGenerator``.
    """

    templates_dir: Path = Field(
        default=BUNDLED_CATALOG, description="Root of the <category>/<template>/ catalog"
    )
    output_dir: Path = Field(default=Path("."))
    max_file_bytes: int = Field(default=MAX_FILE_BYTES, gt=0)
    verbose_merge: bool = Field(
        default=False, description="Warn when a later template replaces an unmergeable file"
    )
    default_hosting: Hosting = "vercel"

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file.

        Returns:
            The path where the file was written.
        """
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
            STACKGEN_TEMPLATES_DIR, STACKGEN_OUTPUT_DIR,
            STACKGEN_MAX_FILE_BYTES, STACKGEN_VERBOSE_MERGE,
            STACKGEN_DEFAULT_HOSTING.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("STACKGEN_TEMPLATES_DIR"):
            kwargs["templates_dir"] = Path(os.environ["STACKGEN_TEMPLATES_DIR"])
        if os.environ.get("STACKGEN_OUTPUT_DIR"):
            kwargs["output_dir"] = Path(os.environ["STACKGEN_OUTPUT_DIR"])
        if os.environ.get("STACKGEN_MAX_FILE_BYTES"):
            kwargs["max_file_bytes"] = int(os.environ["STACKGEN_MAX_FILE_BYTES"])
        if os.environ.get("STACKGEN_VERBOSE_MERGE"):
            kwargs["verbose_merge"] = os.environ["STACKGEN_VERBOSE_MERGE"].lower() in _TRUE_VALUES
        if os.environ.get("STACKGEN_DEFAULT_HOSTING"):
            kwargs["default_hosting"] = os.environ["STACKGEN_DEFAULT_HOSTING"]
        return cls(**kwargs)
