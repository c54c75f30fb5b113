"""Shared utility functions for stackgen.

Provides the project-name case conversions used by variable substitution and
the Jinja2 filters, JSON/YAML I/O helpers, file-system helpers, and the
Rich-based console output used by the command-line interface.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

console = Console()

# ---------------------------------------------------------------------------
# Case conversion
# ---------------------------------------------------------------------------

_LOWER_UPPER_BOUNDARY = re.compile(r"([a-z])([A-Z])")
_KEBAB_SEPARATORS = re.compile(r"[\s_]+")
_WORD_SEPARATORS = re.compile(r"[-_\s]+")


def to_kebab_case(value: str) -> str:
    """Convert a name to kebab-case.

    Inserts ``-`` at every lowercase-to-uppercase boundary, turns runs of
    whitespace or underscores into ``-`` and lowercases the result.

    Examples::

        to_kebab_case("My Awesome Project") -> "my-awesome-project"
        to_kebab_case("myProject_name")     -> "my-project-name"
    """
    result = _LOWER_UPPER_BOUNDARY.sub(r"\1-\2", value)
    result = _KEBAB_SEPARATORS.sub("-", result)
    return result.lower()


def to_pascal_case(value: str) -> str:
    """Convert a name to PascalCase.

    Splits on ``-``, ``_`` and whitespace and upper-cases the first letter of
    every segment. The remaining letters keep their case.

    Examples::

        to_pascal_case("My Awesome Project") -> "MyAwesomeProject"
        to_pascal_case("api-gateway_v2")     -> "ApiGatewayV2"
    """
    return "".join(seg[:1].upper() + seg[1:] for seg in _WORD_SEPARATORS.split(value) if seg)


def to_camel_case(value: str) -> str:
    """Convert a name to camelCase (PascalCase with a lowercase first letter)."""
    pascal = to_pascal_case(value)
    return pascal[:1].lower() + pascal[1:]


def to_title(value: str) -> str:
    """Capitalise the first character only (``"installation"`` -> ``"Installation"``)."""
    return value[:1].upper() + value[1:]


# ---------------------------------------------------------------------------
# JSON / YAML I/O
# ---------------------------------------------------------------------------


def load_json(path: str | Path) -> Any:
    """Load and parse a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
    """
    return json.loads(Path(path).read_text(encoding="utf-8"))


def load_yaml(path: str | Path) -> Any:
    """Load a YAML file with ``yaml.safe_load``.

    Returns ``None`` for an empty document.
    """
    return yaml.safe_load(Path(path).read_text(encoding="utf-8"))


def dump_json(data: Any) -> str:
    """Serialise *data* as two-space indented JSON with a trailing newline."""
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


# ---------------------------------------------------------------------------
# File-system helpers
# ---------------------------------------------------------------------------


def ensure_dir(path: str | Path) -> Path:
    """Create a directory (and parents) if it does not exist.

    Returns:
        The resolved ``Path`` object.
    """
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path.resolve()


def make_executable(path: Path) -> None:
    """Add the executable bits to *path* for user, group and other."""
    import stat

    current = path.stat().st_mode
    path.chmod(current | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_summary_table(data: dict[str, Any], title: str = "Summary") -> None:
    """Print a two-column key/value summary table.

    Args:
        data: Mapping of label -> value.
        title: Table title.
    """
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{escape(message)}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{escape(message)}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{escape(message)}[/bold yellow]")
