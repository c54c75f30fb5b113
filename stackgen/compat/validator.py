"""Compatibility validation for selection sets.

The validator is the sole authority on whether a combination of choices is
legal. It reports three tiers of findings:

* errors -- mutually incompatible templates, or a template whose declared
  dependency was not selected. Any error makes the selection invalid.
* warnings -- caveats from the compatibility table.
* suggestions -- non-binding nudges towards a more complete stack.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Optional

from stackgen.compat.table import COMPATIBILITY_TABLE, Compatibility
from stackgen.models import NONE, SelectionSet, ValidationResult
from stackgen.store.registry import TemplateStore

SUPABASE_AUTH_WARNING = "Supabase Auth works best with Supabase database"


class CompatibilityValidator:
    """Checks a ``SelectionSet`` against the compatibility table.

    Args:
        store: Optional template store. When given, template-declared
            ``dependencies`` and ``conflicts`` are checked as well.
        table: Compatibility table; defaults to ``COMPATIBILITY_TABLE``.
    """

    def __init__(
        self,
        store: Optional[TemplateStore] = None,
        table: Mapping[str, Compatibility] = COMPATIBILITY_TABLE,
    ) -> None:
        self.store = store
        self.table = table

    def validate(self, selections: SelectionSet) -> ValidationResult:
        selected = TemplateStore.ids_for_selections(selections)
        errors = self._conflict_errors(selected) + self._dependency_errors(selected)

        warnings: list[str] = []
        for template_id in selected:
            entry = self.table.get(template_id)
            if entry is not None:
                warnings.extend(w for w in entry.warnings if w not in warnings)
        if selections.authentication == "supabase-auth" and selections.database != "supabase":
            warnings.append(SUPABASE_AUTH_WARNING)

        return ValidationResult.from_lists(errors, warnings, self.suggestions(selections))

    # -- Errors --------------------------------------------------------------

    def _declared_conflicts(self, template_id: str) -> set[str]:
        conflicts: set[str] = set()
        entry = self.table.get(template_id)
        if entry is not None:
            conflicts.update(entry.incompatible_with)
        if self.store is not None:
            template = self.store.get(template_id)
            if template is not None:
                conflicts.update(template.metadata.conflicts)
        return conflicts

    def _conflict_errors(self, selected: list[str]) -> list[str]:
        """One error per incompatible pair, whichever side declares it."""
        errors: list[str] = []
        for i, first in enumerate(selected):
            first_conflicts = self._declared_conflicts(first)
            for second in selected[i + 1:]:
                if second in first_conflicts or first in self._declared_conflicts(second):
                    errors.append(f"{first} is incompatible with {second}")
        return errors

    def _dependency_errors(self, selected: list[str]) -> list[str]:
        if self.store is None:
            return []
        errors: list[str] = []
        for template_id in selected:
            template = self.store.get(template_id)
            if template is None:
                continue
            for dep_id in template.metadata.dependencies:
                if dep_id not in selected:
                    errors.append(f"{template_id} requires {dep_id} but it's not selected")
        return errors

    # -- Suggestions ---------------------------------------------------------

    def suggestions(self, selections: SelectionSet) -> list[str]:
        suggestions: list[str] = []

        if selections.authentication == "supabase-auth" and selections.database != "supabase":
            suggestions.append("Consider using Supabase database with Supabase Auth")
        if selections.authentication != NONE and selections.database == NONE:
            suggestions.append("Consider adding a database for user data storage")
        if selections.payments != NONE and selections.monitoring == NONE:
            suggestions.append("Consider adding monitoring for payment processing")
        if selections.database != NONE and selections.monitoring == NONE:
            suggestions.append("Consider adding error monitoring for database operations")

        for template_id in self.recommendations(selections):
            suggestions.append(f"Recommended template: {template_id}")

        return suggestions

    @staticmethod
    def recommendations(selections: SelectionSet) -> list[str]:
        """Template ids worth adding to *selections*."""
        recommended: list[str] = []
        if selections.ui == NONE and selections.framework == "nextjs":
            recommended.append("shadcn")
        if selections.hosting != "vercel" and selections.monitoring == NONE:
            recommended.append("sentry")
        if selections.authentication != NONE and selections.email == NONE:
            recommended.append("resend")
        return recommended


def validate_selections(
    selections: SelectionSet, store: Optional[TemplateStore] = None
) -> ValidationResult:
    """Shortcut for ``CompatibilityValidator(store).validate(selections)``."""
    return CompatibilityValidator(store).validate(selections)
