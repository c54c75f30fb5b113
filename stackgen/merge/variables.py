"""``{{token}}`` substitution for template file contents and paths.

Tokens are dotted identifiers (``{{projectName}}``, ``{{selections.database}}``)
resolved against a ``VariableContext``. Resolution distinguishes three cases:

* the path does not exist -> the token is left untouched;
* the path exists but holds ``None`` -> the token is left untouched;
* the path exists and holds any other value (including ``""``) -> the
  token is replaced with that value.

Templates rely on untouched tokens to mark values the user fills in later,
so unresolved tokens must never collapse to an empty string.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from stackgen.models import SelectionSet
from stackgen.utils import to_camel_case, to_kebab_case, to_pascal_case

TOKEN_PATTERN = re.compile(r"\{\{(\w+(?:\.\w+)*)\}\}", re.ASCII)


@dataclass(frozen=True)
class Lookup:
    """Outcome of resolving one dotted path."""

    found: bool
    value: Any = None

    @property
    def substitutable(self) -> bool:
        """True when the token should be replaced."""
        return self.found and self.value is not None


MISSING = Lookup(found=False)


class VariableContext:
    """Nested, read-only variable namespace with dotted-path lookup."""

    def __init__(self, values: Mapping[str, Any]) -> None:
        self._values = values

    @classmethod
    def for_project(
        cls,
        project_name: str,
        selections: SelectionSet,
        now: Optional[datetime] = None,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> "VariableContext":
        """Build the standard generation context.

        ``projectName`` is the raw name exactly as the user typed it; the
        case variants are derived from it.
        """
        now = now or datetime.now(timezone.utc)
        values: dict[str, Any] = {
            "projectName": project_name,
            "projectNameKebab": to_kebab_case(project_name),
            "projectNamePascal": to_pascal_case(project_name),
            "projectNameCamel": to_camel_case(project_name),
            "selections": selections.model_dump(),
            "timestamp": now.isoformat(),
            "year": now.year,
        }
        if extra:
            values.update(extra)
        return cls(values)

    def resolve(self, path: str) -> Lookup:
        """Walk *path* segment by segment through nested mappings."""
        current: Any = self._values
        for segment in path.split("."):
            if not isinstance(current, Mapping) or segment not in current:
                return MISSING
            current = current[segment]
        return Lookup(found=True, value=current)

    def as_dict(self) -> dict[str, Any]:
        return dict(self._values)


def format_value(value: Any) -> str:
    """Render a resolved value the way generated JavaScript/JSON expects."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def substitute(text: str, context: VariableContext) -> str:
    """Replace every resolvable token in *text*; leave the rest verbatim."""

    def _replace(match: re.Match[str]) -> str:
        lookup = context.resolve(match.group(1))
        if not lookup.substitutable:
            return match.group(0)
        return format_value(lookup.value)

    return TOKEN_PATTERN.sub(_replace, text)


def find_tokens(text: str) -> list[str]:
    """Return the dotted paths of every token in *text*, in order."""
    return TOKEN_PATTERN.findall(text)
