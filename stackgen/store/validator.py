"""Structural validation of template manifests.

Runs once per template at store construction time. A template that fails is
rejected individually; warnings are attached to the load report but do not
block registration.
"""

from __future__ import annotations

from collections.abc import Collection
from typing import Any, Optional

from pydantic import ValidationError

from stackgen.models import Template, ValidationResult
from stackgen.sanitizer import (
    validate_env_var_key,
    validate_file_path,
    validate_package_name,
    validate_version,
    validate_version_range,
)


def parse_template(data: dict[str, Any]) -> tuple[Optional[Template], list[str]]:
    """Build a ``Template`` from a raw manifest dict.

    Returns:
        ``(template, [])`` on success, ``(None, errors)`` when the manifest
        does not fit the model.
    """
    try:
        return Template.model_validate(data), []
    except ValidationError as exc:
        errors = [
            f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        ]
        return None, errors


def validate_template(
    template: Template,
    known_ids: Optional[Collection[str]] = None,
) -> ValidationResult:
    """Check a template against the structural rules.

    Errors: missing id or name, non-semantic version, empty or escaping file
    paths, duplicate file paths, malformed environment variable keys,
    malformed package names.
    Warnings: no files, empty file content, required variables without a
    description, unusual version ranges, and (when *known_ids* is given)
    dependencies on templates that are not in the catalog.
    """
    errors: list[str] = []
    warnings: list[str] = []
    meta = template.metadata

    if not meta.id.strip():
        errors.append("Template ID is required")
    if not meta.name.strip():
        errors.append("Template name is required")
    if not validate_version(meta.version):
        errors.append(f"Valid semantic version is required (got '{meta.version}')")

    if known_ids is not None:
        for dep_id in meta.dependencies:
            if dep_id not in known_ids:
                warnings.append(f"Dependency template '{dep_id}' not found")

    if not template.files:
        warnings.append("Template has no files")

    seen_paths: set[str] = set()
    for file in template.files:
        if not file.path.strip():
            errors.append("File path is required")
            continue
        if not validate_file_path(file.path):
            errors.append(f"File path '{file.path}' escapes the project root")
        if file.path in seen_paths:
            errors.append(f"File path '{file.path}' is declared more than once")
        seen_paths.add(file.path)
        if not file.content:
            warnings.append(f"File '{file.path}' has empty content")

    for env_var in template.env_vars:
        if not validate_env_var_key(env_var.key):
            errors.append(f"Invalid environment variable name: '{env_var.key}'")
        elif env_var.required and not env_var.description:
            warnings.append(f"Required env var '{env_var.key}' should have description")

    for deps in (template.package_dependencies, template.dev_dependencies):
        for pkg, version in deps.items():
            if not validate_package_name(pkg):
                errors.append(f"Invalid package name: '{pkg}'")
            if not validate_version_range(version):
                warnings.append(f"Package '{pkg}' has invalid version: '{version}'")

    return ValidationResult.from_lists(errors, warnings)
