"""Error taxonomy and recovery helpers for project generation.

Two kinds of failure exist. Anything the user could have avoided by choosing
differently (a bad project name, an incompatible selection set) and genuine
circular template dependencies are raised as ``CodeGenerationError``
subclasses. Anything caused by imperfect template data is absorbed: the
``ErrorRecovery`` helpers below provide the safe stand-ins used in its place.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from stackgen.models import (
    Category,
    InstructionCategory,
    SetupInstruction,
    Template,
    TemplateFile,
    TemplateMetadata,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class CodeGenerationError(Exception):
    """Base class for every error surfaced to callers of the engine."""

    def __init__(self, message: str, code: str, context: dict[str, Any] | None = None) -> None:
        self.code = code
        self.context = context or {}
        super().__init__(message)


class InvalidProjectNameError(CodeGenerationError):
    """Raised when the project name fails validation."""

    def __init__(self, name: str, errors: list[str]) -> None:
        self.errors = errors
        super().__init__(
            f"Invalid project name: {', '.join(errors)}",
            "INVALID_PROJECT_NAME",
            {"name": name, "errors": errors},
        )


class InvalidSelectionsError(CodeGenerationError):
    """Raised for selection values outside the enumeration or incompatible combinations."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        super().__init__(
            f"Invalid selections: {', '.join(errors)}",
            "INVALID_SELECTIONS",
            {"errors": errors},
        )


class CircularDependencyError(CodeGenerationError):
    """Raised when the selected templates depend on each other in a cycle."""

    def __init__(self, dependency_chain: list[str]) -> None:
        self.dependency_chain = dependency_chain
        super().__init__(
            f"Circular dependency detected: {' -> '.join(dependency_chain)}",
            "CIRCULAR_DEPENDENCY_ERROR",
            {"dependency_chain": dependency_chain},
        )


class TemplateValidationError(CodeGenerationError):
    """Raised when a template manifest fails structural validation."""

    def __init__(self, template_id: str, validation_errors: list[str]) -> None:
        self.template_id = template_id
        self.validation_errors = validation_errors
        super().__init__(
            f"Template '{template_id}' is invalid: {'; '.join(validation_errors)}",
            "TEMPLATE_VALIDATION_ERROR",
            {"template_id": template_id, "validation_errors": validation_errors},
        )


class TemplateLoadError(CodeGenerationError):
    """Raised when a template source cannot read a template."""

    def __init__(self, origin: str, reason: str) -> None:
        self.origin = origin
        super().__init__(
            f"Failed to load template from {origin}: {reason}",
            "TEMPLATE_LOAD_ERROR",
            {"origin": origin},
        )


class FileSizeLimitError(CodeGenerationError):
    """Raised when file content exceeds the configured size limit."""

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(
            f"File content exceeds maximum size limit ({size} > {limit} bytes)",
            "FILE_SIZE_LIMIT",
            {"size": size, "limit": limit},
        )


# ---------------------------------------------------------------------------
# Recovery
# ---------------------------------------------------------------------------

CONFLICT_START = "<<<<<<< MERGE CONFLICT"
CONFLICT_END = ">>>>>>> END CONFLICT"

FALLBACK_BASE_ID = "fallback-base"


class ErrorRecovery:
    """Safe stand-ins for template data that could not be used as-is."""

    @staticmethod
    def fallback_template(template_id: str) -> Template:
        """Return an empty template standing in for *template_id*."""
        logger.warning("Using empty fallback for template %s", template_id)
        return Template(
            metadata=TemplateMetadata(
                id=template_id,
                name=f"Fallback for {template_id}",
                version="0.0.0",
                category=Category.OTHER,
            )
        )

    @staticmethod
    def fallback_base_template() -> Template:
        """Return the bare framework skeleton used when generation degrades."""
        package_json = {
            "name": "{{projectNameKebab}}",
            "version": "0.1.0",
            "private": True,
            "scripts": {
                "dev": "next dev",
                "build": "next build",
                "start": "next start",
            },
        }
        return Template(
            metadata=TemplateMetadata(
                id=FALLBACK_BASE_ID,
                name="Fallback Base Template",
                description="Minimal project skeleton used when templates cannot be loaded",
                category=Category.BASE,
                version="0.0.0",
                setup_time=5,
                tags=["fallback"],
            ),
            files=[
                TemplateFile(path="package.json", content=json.dumps(package_json, indent=2) + "\n"),
                TemplateFile(
                    path="README.md",
                    content=(
                        "# {{projectName}}\n\n"
                        "Generated with fallback template due to loading error.\n"
                    ),
                ),
            ],
            setup_instructions=[
                SetupInstruction(
                    step=1,
                    title="Install Dependencies",
                    description="Install the required dependencies",
                    command="npm install",
                    category=InstructionCategory.INSTALLATION,
                )
            ],
            package_dependencies={
                "next": "^14.0.0",
                "react": "^18.0.0",
                "react-dom": "^18.0.0",
            },
            dev_dependencies={
                "typescript": "^5.0.0",
                "@types/react": "^18.0.0",
                "@types/node": "^20.0.0",
            },
            scripts={
                "dev": "next dev",
                "build": "next build",
                "start": "next start",
            },
        )

    @staticmethod
    def recover_from_merge_conflict(path: str, existing: str, incoming: str) -> str:
        """Keep both sides of an unmergeable file, marking the incoming half."""
        logger.warning("Merge conflict for file %s, keeping both versions", path)
        return f"{existing}\n\n{CONFLICT_START}\n{incoming}\n{CONFLICT_END}\n"
