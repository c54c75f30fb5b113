"""Input validation and sanitisation for project generation.

Everything user- or template-supplied passes through here before it reaches
the merge engine: the project name, file paths, file content, and the small
syntactic checks (environment variable keys, package names, versions) shared
with the template store validator.
"""

from __future__ import annotations

import re

from stackgen.errors import FileSizeLimitError
from stackgen.models import ValidationResult

MAX_PROJECT_NAME_LENGTH = 214
MAX_FILE_BYTES = 10 * 1024 * 1024

RESERVED_NAMES: frozenset[str] = frozenset(
    {"node_modules", "package", "npm", "test", "src", "lib", "bin"}
)

_ALLOWED_NAME = re.compile(r"^[A-Za-z0-9\-_\s]+$")
_DISALLOWED_NAME_CHARS = re.compile(r"[^A-Za-z0-9\-_\s]")
_REPEATED_SEPARATORS = re.compile(r"[-_]{2,}")
_WHITESPACE_RUN = re.compile(r"\s+")
_SEPARATOR_RUN = re.compile(r"[-_]+")
_DRIVE_PREFIX = re.compile(r"^[A-Za-z]:")
_ENV_KEY = re.compile(r"^[A-Z_][A-Z0-9_]*$")
_PACKAGE_NAME = re.compile(r"^(@[a-z0-9-~][a-z0-9-._~]*/)?[a-z0-9-~][a-z0-9-._~]*$")
_SEMVER = re.compile(r"^\d+\.\d+\.\d+(-[a-zA-Z0-9-.]+)?(\+[a-zA-Z0-9-.]+)?$")
_VERSION_RANGE = re.compile(
    r"^(\^|~|>=|<=|>|<|=)?\s*v?\d+(\.(\d+|x|\*))?(\.(\d+|x|\*))?(-[a-zA-Z0-9-.]+)?(\+[a-zA-Z0-9-.]+)?$"
)


# ---------------------------------------------------------------------------
# Project names
# ---------------------------------------------------------------------------


def validate_project_name(name: str) -> ValidationResult:
    """Validate a user-supplied project name.

    Errors: empty or whitespace-only, longer than 214 characters, characters
    outside letters/digits/hyphen/underscore/space, or a reserved name.
    Warnings: leading/trailing whitespace, consecutive separator characters.
    """
    errors: list[str] = []
    warnings: list[str] = []

    if not name or not name.strip():
        errors.append("Project name cannot be empty")
        return ValidationResult.from_lists(errors, warnings)

    if len(name) > MAX_PROJECT_NAME_LENGTH:
        errors.append(
            f"Project name cannot exceed {MAX_PROJECT_NAME_LENGTH} characters (npm limit)"
        )

    if not _ALLOWED_NAME.match(name):
        errors.append(
            "Project name contains invalid characters. "
            "Use only letters, numbers, hyphens, underscores, and spaces"
        )

    if name.strip().lower() in RESERVED_NAMES:
        errors.append(f'"{name.strip()}" is a reserved name')

    if name != name.strip():
        warnings.append("Project name has leading/trailing whitespace")

    if _REPEATED_SEPARATORS.search(name):
        warnings.append("Project name has consecutive special characters")

    return ValidationResult.from_lists(errors, warnings)


def sanitize_project_name(name: str) -> str:
    """Turn any string into a safe, lowercase, hyphenated project name.

    Never fails. Applying it twice gives the same result as applying it once.

    Examples::

        sanitize_project_name("  My Awesome Project! ") -> "my-awesome-project"
        sanitize_project_name("api__gateway--v2")       -> "api-gateway-v2"
    """
    result = _DISALLOWED_NAME_CHARS.sub("", name.strip())
    result = _WHITESPACE_RUN.sub("-", result)
    result = _SEPARATOR_RUN.sub("-", result)
    result = result.lower()[:MAX_PROJECT_NAME_LENGTH]
    # Removing characters can leave a separator at either end.
    return result.strip("-")


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


def validate_file_path(path: str) -> bool:
    """Return ``True`` when *path* stays inside the project root.

    Rejects empty paths, ``..`` segments, absolute paths (``/`` or ``\\``),
    Windows drive prefixes and embedded null bytes.
    """
    if not path or not path.strip():
        return False
    if "\0" in path:
        return False
    if path.startswith(("/", "\\")):
        return False
    if _DRIVE_PREFIX.match(path):
        return False
    segments = re.split(r"[/\\]", path)
    return ".." not in segments


def normalize_file_path(path: str) -> str:
    """Use forward slashes and drop ``./`` segments."""
    parts = [p for p in path.replace("\\", "/").split("/") if p not in ("", ".")]
    return "/".join(parts)


def sanitize_file_content(content: str, max_bytes: int = MAX_FILE_BYTES) -> str:
    """Remove null bytes and normalise line endings to ``\\n``.

    Raises:
        FileSizeLimitError: If the content is larger than *max_bytes* once
            encoded as UTF-8.
    """
    size = len(content.encode("utf-8"))
    if size > max_bytes:
        raise FileSizeLimitError(size, max_bytes)
    content = content.replace("\0", "")
    return content.replace("\r\n", "\n").replace("\r", "\n")


# ---------------------------------------------------------------------------
# Manifest syntax
# ---------------------------------------------------------------------------


def validate_env_var_key(key: str) -> bool:
    """Upper-case letters, digits and underscores, not starting with a digit."""
    return bool(key) and _ENV_KEY.match(key) is not None


def validate_package_name(name: str) -> bool:
    """Basic npm package name check (optionally scoped)."""
    return bool(name) and _PACKAGE_NAME.match(name) is not None


def validate_version(version: str) -> bool:
    """Strict semantic version (``1.2.3``, ``1.2.3-beta.1``)."""
    return bool(version) and _SEMVER.match(version) is not None


def validate_version_range(spec: str) -> bool:
    """Accept the simple npm ranges templates use (``^1.2.0``, ``~5``, ``>=18``, ``latest``)."""
    if spec in ("*", "latest"):
        return True
    return _VERSION_RANGE.match(spec.strip()) is not None
