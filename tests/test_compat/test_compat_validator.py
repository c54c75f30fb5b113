"""Unit tests for selection-set compatibility (stackgen.compat)."""

from __future__ import annotations

import pytest

from stackgen.compat import COMPATIBILITY_TABLE, CompatibilityValidator, validate_selections
from stackgen.models import Category, SelectionSet
from stackgen.store import TemplateStore

pytestmark = pytest.mark.unit


class TestCompatibilityTable:
    def test_incompatibility_is_declared_symmetrically_for_auth(self):
        assert "supabase-auth" in COMPATIBILITY_TABLE["clerk"].incompatible_with
        assert "clerk" in COMPATIBILITY_TABLE["supabase-auth"].incompatible_with

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            COMPATIBILITY_TABLE["new"] = COMPATIBILITY_TABLE["clerk"]  # type: ignore[index]


class TestErrors:
    def test_default_selection_is_valid(self):
        result = validate_selections(SelectionSet())
        assert result.is_valid
        assert result.errors == []

    def test_supabase_auth_with_planetscale(self):
        result = validate_selections(
            SelectionSet(authentication="supabase-auth", database="planetscale")
        )
        assert not result.is_valid
        assert result.errors == ["supabase-auth is incompatible with planetscale"]

    def test_one_error_per_pair(self):
        result = validate_selections(SelectionSet(framework="sveltekit", ui="shadcn"))
        assert result.errors == ["sveltekit-base is incompatible with shadcn"]

    def test_nextauth_with_remix(self):
        result = validate_selections(SelectionSet(framework="remix", authentication="nextauth"))
        assert not result.is_valid

    def test_template_declared_conflicts(self, make_template):
        base = make_template("nextjs-base", {"a": "a"}, category=Category.FRAMEWORK, conflicts=["posthog"])
        posthog = make_template("posthog", {"b": "b"}, category=Category.ANALYTICS)
        store = TemplateStore([base, posthog])
        result = CompatibilityValidator(store).validate(SelectionSet(analytics="posthog"))
        assert result.errors == ["nextjs-base is incompatible with posthog"]

    def test_missing_dependency(self, store_with, make_template):
        resend = make_template("resend", {"a": "a"}, dependencies=["supabase"])
        result = CompatibilityValidator(store_with(resend)).validate(SelectionSet(email="resend"))
        assert result.errors == ["resend requires supabase but it's not selected"]

    def test_satisfied_dependency(self, store_with, make_template):
        resend = make_template("resend", {"a": "a"}, dependencies=["nextjs-base"])
        result = CompatibilityValidator(store_with(resend)).validate(SelectionSet(email="resend"))
        assert result.is_valid


class TestWarnings:
    def test_table_warnings_are_collected(self):
        result = validate_selections(SelectionSet(authentication="clerk", payments="stripe"))
        assert result.is_valid
        assert "Clerk requires organization setup for B2B features" in result.warnings
        assert "Stripe webhooks require HTTPS in production" in result.warnings

    def test_supabase_auth_warning_without_supabase_database(self):
        result = validate_selections(SelectionSet(authentication="supabase-auth"))
        assert result.warnings.count("Supabase Auth works best with Supabase database") == 1

    def test_no_supabase_auth_warning_with_supabase_database(self):
        result = validate_selections(
            SelectionSet(authentication="supabase-auth", database="supabase")
        )
        assert "Supabase Auth works best with Supabase database" not in result.warnings


class TestSuggestions:
    def test_supabase_auth_without_supabase(self):
        result = validate_selections(SelectionSet(authentication="supabase-auth"))
        assert "Consider using Supabase database with Supabase Auth" in result.suggestions
        assert "Consider adding a database for user data storage" in result.suggestions

    def test_payments_without_monitoring(self):
        result = validate_selections(SelectionSet(payments="stripe"))
        assert "Consider adding monitoring for payment processing" in result.suggestions

    def test_database_without_monitoring(self):
        result = validate_selections(SelectionSet(database="supabase"))
        assert "Consider adding error monitoring for database operations" in result.suggestions

    def test_complete_stack_has_no_nudges(self):
        selections = SelectionSet(
            authentication="clerk", database="supabase", payments="stripe",
            monitoring="sentry", email="resend", ui="shadcn",
        )
        assert validate_selections(selections).suggestions == []

    @pytest.mark.parametrize(
        "selections,expected",
        [
            (SelectionSet(), ["shadcn"]),
            (SelectionSet(ui="shadcn", hosting="netlify"), ["sentry"]),
            (SelectionSet(ui="shadcn", authentication="clerk"), ["resend"]),
            (SelectionSet(framework="remix"), []),
        ],
    )
    def test_recommendations(self, selections: SelectionSet, expected: list[str]):
        assert CompatibilityValidator.recommendations(selections) == expected

    def test_recommendations_become_suggestions(self):
        result = validate_selections(SelectionSet())
        assert result.suggestions == ["Recommended template: shadcn"]
