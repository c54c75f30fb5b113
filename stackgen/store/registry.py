"""The template store: an immutable, explicitly constructed registry.

Build it once from a source, then share it. Nothing here mutates after
construction, so a single store can serve any number of concurrent
generation requests.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Optional

from stackgen.errors import TemplateLoadError, TemplateValidationError
from stackgen.models import Category, SelectionSet, Template, ValidationResult
from stackgen.store.loader import DirectoryTemplateSource, TemplateSource
from stackgen.store.validator import parse_template, validate_template

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadError:
    """A template that was skipped while building the store."""

    origin: str
    errors: tuple[str, ...]


class TemplateStore:
    """Read-only lookup over validated templates.

    Use the ``from_*`` constructors; the ``__init__`` signature takes
    already-validated templates and is mainly useful in tests.
    """

    def __init__(
        self,
        templates: Iterable[Template] = (),
        load_errors: Iterable[LoadError] = (),
        load_warnings: Iterable[str] = (),
    ) -> None:
        by_id: dict[str, Template] = {}
        for template in templates:
            if template.id in by_id:
                logger.warning("Duplicate template id %s, keeping the first", template.id)
                continue
            by_id[template.id] = template
        self._templates = MappingProxyType(by_id)
        self.load_errors: tuple[LoadError, ...] = tuple(load_errors)
        self.load_warnings: tuple[str, ...] = tuple(load_warnings)

    # -- Construction --------------------------------------------------------

    @classmethod
    def empty(cls) -> "TemplateStore":
        return cls()

    @classmethod
    def from_directory(cls, root: str | Path) -> "TemplateStore":
        """Load every template under *root* (see ``DirectoryTemplateSource``)."""
        return cls.from_source(DirectoryTemplateSource(root))

    @classmethod
    def from_source(cls, source: TemplateSource) -> "TemplateStore":
        """Read, parse and validate every template from *source*.

        Invalid templates are skipped with a logged warning and reported in
        ``load_errors``; the remaining templates are registered.
        """
        parsed: list[tuple[str, Template]] = []
        errors: list[LoadError] = []

        for raw in source.iter_templates():
            if not raw.ok:
                errors.append(LoadError(raw.origin, (raw.error or "unreadable",)))
                continue
            template, parse_errors = parse_template(raw.data)
            if template is None:
                logger.warning("Template %s validation failed: %s", raw.origin, parse_errors)
                errors.append(LoadError(raw.origin, tuple(parse_errors)))
                continue
            parsed.append((raw.origin, template))

        known_ids = {t.id for _, t in parsed}
        accepted: list[Template] = []
        warnings: list[str] = []
        for origin, template in parsed:
            result = validate_template(template, known_ids=known_ids)
            if not result.is_valid:
                logger.warning("Template %s validation failed: %s", template.id, result.errors)
                errors.append(LoadError(origin, tuple(result.errors)))
                continue
            warnings.extend(f"{template.id}: {w}" for w in result.warnings)
            accepted.append(template)

        logger.info("Loaded %d templates (%d skipped)", len(accepted), len(errors))
        return cls(accepted, load_errors=errors, load_warnings=warnings)

    def with_template(self, template: Template) -> tuple["TemplateStore", ValidationResult]:
        """Return a new store that also holds *template*, if it validates.

        The receiver is left untouched.
        """
        result = validate_template(template, known_ids=set(self._templates) | {template.id})
        if not result.is_valid:
            return self, result
        templates = [t for t in self._templates.values() if t.id != template.id]
        templates.append(template)
        return (
            TemplateStore(templates, self.load_errors, self.load_warnings),
            result,
        )

    # -- Lookup --------------------------------------------------------------

    def get(self, template_id: str) -> Optional[Template]:
        """Return the template with *template_id*, or ``None``."""
        return self._templates.get(template_id)

    def __contains__(self, template_id: object) -> bool:
        return template_id in self._templates

    def __len__(self) -> int:
        return len(self._templates)

    def __iter__(self) -> Iterator[Template]:
        return iter(self._templates.values())

    def all(self) -> list[Template]:
        return list(self._templates.values())

    def ids(self) -> list[str]:
        return list(self._templates)

    def by_category(self, category: Category | str) -> list[Template]:
        """Every template whose category is *category*."""
        wanted = Category(category)
        return [t for t in self._templates.values() if t.metadata.category == wanted]

    def search(self, query: str) -> list[Template]:
        """Case-insensitive substring search over name, description and tags."""
        needle = query.strip().lower()
        if not needle:
            return self.all()
        return [
            t
            for t in self._templates.values()
            if needle in t.metadata.name.lower()
            or needle in t.metadata.description.lower()
            or any(needle in tag.lower() for tag in t.metadata.tags)
        ]

    def popular(self, limit: int = 10) -> list[Template]:
        """Templates sorted by popularity, most popular first."""
        ranked = sorted(self._templates.values(), key=lambda t: -t.metadata.popularity)
        return ranked[:limit]

    # -- Selections ----------------------------------------------------------

    @staticmethod
    def ids_for_selections(selections: SelectionSet) -> list[str]:
        """Map a selection set onto template ids.

        The framework base id always comes first, followed by the chosen id
        of each template category that is not ``none``.
        """
        return [selections.base_template_id(), *selections.chosen().values()]

    def templates_for_selections(
        self, selections: SelectionSet
    ) -> tuple[list[Template], list[str]]:
        """Return ``(found_templates, missing_ids)`` for *selections*."""
        found: list[Template] = []
        missing: list[str] = []
        for template_id in self.ids_for_selections(selections):
            template = self.get(template_id)
            if template is None:
                missing.append(template_id)
            else:
                found.append(template)
        return found, missing


def load_template(template_dir: str | Path) -> tuple[Template, ValidationResult]:
    """Read and validate one ``<category>/<template>/`` directory.

    Unlike ``TemplateStore.from_directory`` this fails loudly, which is what
    a template author checking their work wants.

    Raises:
        TemplateLoadError: The directory cannot be read.
        TemplateValidationError: The manifest does not describe a valid
            template.
    """
    path = Path(template_dir)
    raw = DirectoryTemplateSource(path.parent).read_template(path)
    if not raw.ok:
        raise TemplateLoadError(raw.origin, raw.error or "unreadable")

    template, parse_errors = parse_template(raw.data)
    if template is None:
        template_id = raw.data.get("metadata", {}).get("id") or path.name
        raise TemplateValidationError(str(template_id), parse_errors)

    result = validate_template(template)
    if not result.is_valid:
        raise TemplateValidationError(template.id, result.errors)
    return template, result
