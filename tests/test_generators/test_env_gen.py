"""Unit tests for environment file generation (stackgen.generators.env_gen)."""

from __future__ import annotations

import pytest

from stackgen.generators.env_gen import (
    DEV_DATABASE_URL,
    DEV_SECRET,
    EnvGenerator,
    dev_value,
    group_env_vars,
)
from stackgen.generators.renderer import TemplateRenderer
from stackgen.models import EnvCategory, EnvVariable, SelectionSet

pytestmark = pytest.mark.unit


@pytest.fixture
def generator() -> EnvGenerator:
    return EnvGenerator(TemplateRenderer())


@pytest.fixture
def env_vars() -> list[EnvVariable]:
    return [
        EnvVariable(
            key="CLERK_SECRET_KEY",
            description="Clerk secret key",
            required=True,
            example="sk_test_...",
            category=EnvCategory.AUTH,
        ),
        EnvVariable(
            key="DATABASE_URL",
            description="Postgres connection string",
            required=True,
            category=EnvCategory.DATABASE,
        ),
        EnvVariable(
            key="NEXT_PUBLIC_POSTHOG_HOST",
            description="PostHog host",
            default_value="https://app.posthog.com",
            category=EnvCategory.ANALYTICS,
        ),
    ]


class TestHelpers:
    def test_group_order_and_titles(self, env_vars):
        groups = group_env_vars(list(reversed(env_vars)))
        assert [g["title"] for g in groups] == ["Auth", "Database", "Analytics"]

    def test_empty_groups_skipped(self):
        assert group_env_vars([]) == []

    def test_dev_values(self, env_vars):
        auth, database, analytics = env_vars
        assert dev_value(auth) == DEV_SECRET
        assert dev_value(database) == DEV_DATABASE_URL
        assert dev_value(analytics) == "https://app.posthog.com"
        assert dev_value(EnvVariable(key="AUTH_SECRET", category=EnvCategory.AUTH)) == DEV_SECRET
        assert dev_value(EnvVariable(key="PLAIN")) == ""


class TestEnvGenerator:
    def test_example(self, generator, env_vars):
        files = generator.generate("My App", env_vars, SelectionSet())
        assert files.example.startswith("# Environment Variables Template\n")
        assert "NODE_ENV=development\n" in files.example
        assert "NEXT_PUBLIC_APP_URL=http://localhost:3000\n" in files.example
        assert "# Auth\n# Clerk secret key\nCLERK_SECRET_KEY=sk_test_...\n" in files.example
        assert "DATABASE_URL=\n" in files.example
        assert "# NEXT_PUBLIC_POSTHOG_HOST=\n" in files.example
        assert files.example.index("# Auth") < files.example.index("# Analytics")

    def test_app_url_key_follows_framework(self, generator):
        remix = generator.generate("x", [], SelectionSet(framework="remix"))
        kit = generator.generate("x", [], SelectionSet(framework="sveltekit"))
        assert "\nAPP_URL=http://localhost:3000\n" in remix.example
        assert "PUBLIC_APP_URL=http://localhost:3000\n" in kit.example

    def test_declared_app_url_is_not_repeated(self, generator):
        declared = EnvVariable(key="NEXT_PUBLIC_APP_URL", required=True, example="http://localhost:3000")
        files = generator.generate("x", [declared], SelectionSet())
        assert files.example.count("NEXT_PUBLIC_APP_URL=") == 1
        assert files.local.count("NEXT_PUBLIC_APP_URL=") == 1

    def test_local(self, generator, env_vars):
        local = generator.generate("My App", env_vars, SelectionSet()).local
        assert f"DATABASE_URL={DEV_DATABASE_URL}\n" in local
        assert f"CLERK_SECRET_KEY={DEV_SECRET}\n" in local
        assert "NEXT_PUBLIC_POSTHOG_HOST" not in local

    def test_production(self, generator, env_vars):
        production = generator.generate("My App", env_vars, SelectionSet(hosting="render")).production
        assert "hosting platform (render)" in production
        assert "NODE_ENV=production\n" in production
        assert "NEXT_PUBLIC_APP_URL=https://your-domain.com\n" in production
        assert "CLERK_SECRET_KEY=\n" in production
        assert "DATABASE_URL=\n" in production

    def test_documentation(self, generator, env_vars):
        doc = generator.generate("My App", env_vars, SelectionSet()).documentation
        assert "used by My App" in doc
        assert "## Auth" in doc
        assert "### `CLERK_SECRET_KEY`" in doc
        assert "- **Required:** Yes" in doc
        assert "- **Example:** `sk_test_...`" in doc
        assert "- **Default:** `https://app.posthog.com`" in doc

    def test_documentation_without_variables(self, generator):
        doc = generator.generate("My App", [], SelectionSet()).documentation
        assert "does not need any service credentials" in doc

    def test_as_files(self, generator, env_vars):
        files = generator.generate("My App", env_vars, SelectionSet()).as_files()
        assert [f.path for f in files] == [
            ".env.example",
            ".env.local.template",
            ".env.production.template",
            "ENV_VARIABLES.md",
        ]
