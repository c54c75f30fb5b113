"""Pydantic v2 models for the stackgen template engine.

Defines the data model shared by every component: technology templates and
their parts (files, environment variables, setup steps), the user's
selection set, validation results, the merge result, and the generated
project handed back to callers.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class Category(str, Enum):
    """Template category. The set is closed."""
    FRAMEWORK = "framework"
    AUTHENTICATION = "authentication"
    DATABASE = "database"
    PAYMENTS = "payments"
    ANALYTICS = "analytics"
    EMAIL = "email"
    MONITORING = "monitoring"
    UI = "ui"
    BASE = "base"
    OTHER = "other"


class Complexity(str, Enum):
    """Rough setup complexity of a template."""
    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"


class EnvCategory(str, Enum):
    """Grouping used when rendering environment variable documents."""
    AUTH = "auth"
    DATABASE = "database"
    PAYMENTS = "payments"
    ANALYTICS = "analytics"
    EMAIL = "email"
    MONITORING = "monitoring"
    OTHER = "other"


class InstructionCategory(str, Enum):
    """Setup guide section a step belongs to."""
    INSTALLATION = "installation"
    CONFIGURATION = "configuration"
    DEPLOYMENT = "deployment"
    TESTING = "testing"


# ---------------------------------------------------------------------------
# Template building blocks
# ---------------------------------------------------------------------------

class TemplateFile(BaseModel):
    """A single file contributed by a template."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="Path relative to the project root")
    content: str = Field(default="", description="Textual file content")
    overwrite: bool = Field(
        default=False, description="Replace an existing file at the same path outright"
    )
    executable: bool = Field(default=False, description="Set the executable bit on write")


class EnvVariable(BaseModel):
    """An environment variable declared by a template."""

    model_config = ConfigDict(frozen=True)

    key: str
    description: str = ""
    required: bool = False
    default_value: Optional[str] = None
    example: Optional[str] = None
    category: EnvCategory = EnvCategory.OTHER


class SetupInstruction(BaseModel):
    """One numbered step of the setup guide."""

    model_config = ConfigDict(frozen=True)

    step: int = Field(..., ge=0)
    title: str
    description: str = ""
    command: Optional[str] = None
    url: Optional[str] = None
    category: InstructionCategory = InstructionCategory.INSTALLATION


class TemplateMetadata(BaseModel):
    """Identity and relationship data for a template."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    category: Category = Category.OTHER
    version: str = "0.0.0"
    dependencies: list[str] = Field(default_factory=list)
    conflicts: list[str] = Field(default_factory=list)
    setup_time: int = Field(default=0, ge=0, description="Estimated setup time in minutes")
    complexity: Complexity = Complexity.SIMPLE
    tags: list[str] = Field(default_factory=list)
    popularity: int = 0
    documentation: str = ""


class Template(BaseModel):
    """An immutable technology template.

    Templates are created by the template store and never mutated by the
    merge engine; merging always produces a new ``Template``.
    """

    model_config = ConfigDict(frozen=True)

    metadata: TemplateMetadata
    files: list[TemplateFile] = Field(default_factory=list)
    env_vars: list[EnvVariable] = Field(default_factory=list)
    setup_instructions: list[SetupInstruction] = Field(default_factory=list)
    package_dependencies: dict[str, str] = Field(default_factory=dict)
    dev_dependencies: dict[str, str] = Field(default_factory=dict)
    scripts: dict[str, str] = Field(default_factory=dict)

    @property
    def id(self) -> str:
        return self.metadata.id

    def file_paths(self) -> list[str]:
        """Return every file path in order."""
        return [f.path for f in self.files]


# ---------------------------------------------------------------------------
# Selections
# ---------------------------------------------------------------------------

Framework = Literal["nextjs", "remix", "sveltekit"]
Authentication = Literal["clerk", "supabase-auth", "nextauth", "none"]
Database = Literal["supabase", "planetscale", "neon", "none"]
Hosting = Literal["vercel", "netlify", "railway", "render"]
Payments = Literal["stripe", "paddle", "none"]
Analytics = Literal["posthog", "plausible", "ga4", "none"]
Email = Literal["resend", "postmark", "sendgrid", "none"]
Monitoring = Literal["sentry", "bugsnag", "none"]
UI = Literal["shadcn", "chakra", "mantine", "none"]

NONE = "none"

# Selection fields that map onto a template category, in merge order.
TEMPLATE_SELECTION_FIELDS: tuple[str, ...] = (
    "authentication",
    "database",
    "payments",
    "analytics",
    "email",
    "monitoring",
    "ui",
)


class SelectionSet(BaseModel):
    """The user's technology choice for every recognised category."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    framework: Framework = "nextjs"
    authentication: Authentication = NONE
    database: Database = NONE
    hosting: Hosting = "vercel"
    payments: Payments = NONE
    analytics: Analytics = NONE
    email: Email = NONE
    monitoring: Monitoring = NONE
    ui: UI = NONE

    def base_template_id(self) -> str:
        """Identifier of the framework skeleton template."""
        return f"{self.framework}-base"

    def chosen(self) -> dict[str, str]:
        """Return ``{field: value}`` for template categories not set to ``none``."""
        return {
            name: getattr(self, name)
            for name in TEMPLATE_SELECTION_FIELDS
            if getattr(self, name) != NONE
        }


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

class ValidationResult(BaseModel):
    """Outcome of a validation pass."""

    is_valid: bool = True
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)

    @classmethod
    def from_lists(
        cls,
        errors: list[str],
        warnings: list[str] | None = None,
        suggestions: list[str] | None = None,
    ) -> "ValidationResult":
        return cls(
            is_valid=not errors,
            errors=errors,
            warnings=warnings or [],
            suggestions=suggestions or [],
        )


class MergeResult(BaseModel):
    """A merged template together with the degradations seen while merging."""

    template: Template
    order: list[str] = Field(default_factory=list, description="Template ids in merge order")
    warnings: list[str] = Field(default_factory=list)


class GenerationMetadata(BaseModel):
    """Bookkeeping attached to a generated project."""

    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    template_versions: dict[str, str] = Field(default_factory=dict)
    estimated_setup_time: int = 0
    warnings: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)


class GeneratedProject(BaseModel):
    """The final output of one generation request."""

    name: str
    files: list[TemplateFile] = Field(default_factory=list)
    package_json: dict[str, Any] = Field(default_factory=dict)
    env_template: str = ""
    setup_guide: str = ""
    selections: SelectionSet
    metadata: GenerationMetadata = Field(default_factory=GenerationMetadata)

    def get_file(self, path: str) -> Optional[TemplateFile]:
        """Return the file at *path*, or ``None``."""
        for f in self.files:
            if f.path == path:
                return f
        return None
