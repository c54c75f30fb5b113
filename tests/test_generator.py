"""Unit tests for the generation orchestrator (stackgen.generator)."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from stackgen.config import Config
from stackgen.errors import (
    FALLBACK_BASE_ID,
    CircularDependencyError,
    FileSizeLimitError,
    InvalidProjectNameError,
    InvalidSelectionsError,
)
from stackgen.generator import ProjectGenerator, coerce_selections, generate_project
from stackgen.models import Category, EnvCategory, EnvVariable, SelectionSet
from stackgen.store import TemplateStore

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# Selections
# ---------------------------------------------------------------------------


class TestCoerceSelections:
    def test_passthrough(self):
        selections = SelectionSet(database="supabase")
        assert coerce_selections(selections) is selections

    def test_mapping(self):
        assert coerce_selections({"authentication": "clerk"}).authentication == "clerk"

    def test_bad_value(self):
        with pytest.raises(InvalidSelectionsError) as exc_info:
            coerce_selections({"database": "mongodb"})
        assert exc_info.value.errors[0].startswith("database:")

    def test_unknown_key(self):
        with pytest.raises(InvalidSelectionsError) as exc_info:
            coerce_selections({"cms": "contentful"})
        assert exc_info.value.errors[0].startswith("cms:")


# ---------------------------------------------------------------------------
# Input errors
# ---------------------------------------------------------------------------


class TestInputErrors:
    @pytest.mark.parametrize("name", ["", "   ", "my@project", "node_modules"])
    def test_invalid_names(self, name, store_with):
        with pytest.raises(InvalidProjectNameError):
            ProjectGenerator(store=store_with()).generate(name, SelectionSet())

    def test_name_without_letters(self, store_with):
        with pytest.raises(InvalidProjectNameError) as exc_info:
            ProjectGenerator(store=store_with()).generate("---", SelectionSet())
        assert exc_info.value.errors == ["Project name must contain at least one letter or digit"]

    def test_invalid_selection_values(self, store_with):
        with pytest.raises(InvalidSelectionsError):
            ProjectGenerator(store=store_with()).generate("app", {"hosting": "heroku"})

    def test_incompatible_selections(self, store_with):
        with pytest.raises(InvalidSelectionsError) as exc_info:
            ProjectGenerator(store=store_with()).generate(
                "app", SelectionSet(authentication="supabase-auth", database="planetscale")
            )
        assert exc_info.value.errors == ["supabase-auth is incompatible with planetscale"]

    def test_circular_dependency_propagates(self, make_template):
        base = make_template(
            "nextjs-base", {"README.md": "# x"}, category=Category.FRAMEWORK, dependencies=["clerk"]
        )
        clerk = make_template(
            "clerk", {"lib/auth.ts": "auth"}, category=Category.AUTHENTICATION,
            dependencies=["nextjs-base"],
        )
        generator = ProjectGenerator(store=TemplateStore([base, clerk]))
        with pytest.raises(CircularDependencyError) as exc_info:
            generator.generate("app", SelectionSet(authentication="clerk"))
        assert exc_info.value.dependency_chain == ["nextjs-base", "clerk", "nextjs-base"]


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


class TestGenerate:
    def test_name_variants_are_substituted(self, store_with, fixed_now):
        project = ProjectGenerator(store=store_with()).generate(
            "My Awesome Project", SelectionSet(), now=fixed_now
        )
        assert project.name == "my-awesome-project"
        assert project.get_file("README.md").content.startswith("# My Awesome Project\n")
        assert project.package_json["name"] == "my-awesome-project"
        assert json.loads(project.get_file("package.json").content) == project.package_json
        page = project.get_file("app/page.tsx").content
        assert "<h1>My Awesome Project</h1>" in page

    def test_unknown_tokens_are_kept(self, store_with, make_template):
        extra = make_template("shadcn", {"lib/config.ts": "key = '{{unknownToken}}'"}, category=Category.UI)
        project = ProjectGenerator(store=store_with(extra)).generate("app", SelectionSet(ui="shadcn"))
        assert project.get_file("lib/config.ts").content == "key = '{{unknownToken}}'"

    def test_generated_documents(self, store_with, fixed_now):
        project = ProjectGenerator(store=store_with()).generate("app", SelectionSet(), now=fixed_now)
        paths = [f.path for f in project.files]
        for expected in (
            ".env.example",
            ".env.local.template",
            ".env.production.template",
            "ENV_VARIABLES.md",
            "vercel.json",
            "SETUP.md",
        ):
            assert expected in paths
        assert project.env_template == project.get_file(".env.example").content
        assert project.setup_guide == project.get_file("SETUP.md").content
        assert "NEXT_PUBLIC_APP_URL=http://localhost:3000" in project.env_template

    def test_hosting_selects_descriptor(self, store_with):
        project = ProjectGenerator(store=store_with()).generate("app", SelectionSet(hosting="render"))
        assert project.get_file("render.yaml") is not None
        assert project.get_file("vercel.json") is None

    def test_metadata(self, store_with, make_template, fixed_now):
        clerk = make_template(
            "clerk", {"lib/auth.ts": "auth"}, category=Category.AUTHENTICATION, version="2.1.0",
            setup_time=10,
            env_vars=[EnvVariable(key="CLERK_SECRET_KEY", required=True, category=EnvCategory.AUTH)],
        )
        project = ProjectGenerator(store=store_with(clerk)).generate(
            "app", SelectionSet(authentication="clerk"), now=fixed_now
        )
        meta = project.metadata
        assert meta.generated_at == fixed_now
        assert meta.template_versions == {"nextjs-base": "1.0.0", "clerk": "2.1.0"}
        assert meta.estimated_setup_time == 15
        assert "Clerk requires organization setup for B2B features" in meta.warnings
        assert "Consider adding a database for user data storage" in meta.suggestions
        assert "Recommended template: resend" in meta.suggestions
        assert "CLERK_SECRET_KEY=" in project.env_template

    def test_setup_guide_numbering(self, store_with):
        project = ProjectGenerator(store=store_with()).generate("app", SelectionSet())
        guide = project.setup_guide
        assert "### 1. Install Dependencies" in guide
        assert "### 2. Configure Environment Variables" in guide
        assert "### 3. Prepare for Deployment" in guide
        assert "### 4. Deploy to Vercel" in guide

    def test_traversal_paths_never_reach_the_project(self, make_template):
        base = make_template(
            "nextjs-base",
            {"../../etc/passwd": "root:x:0:0", "lib/ok.ts": "export const ok = true\n"},
            category=Category.FRAMEWORK,
        )
        project = ProjectGenerator(store=TemplateStore([base])).generate("app", SelectionSet())
        paths = [f.path for f in project.files]
        assert "lib/ok.ts" in paths
        assert not any(".." in p.split("/") for p in paths)
        assert not any("passwd" in p for p in paths)
        assert len(paths) == len(set(paths))
        assert any("../../etc/passwd" in w for w in project.metadata.warnings)

    def test_mapping_selections(self, store_with):
        project = ProjectGenerator(store=store_with()).generate("app", {"framework": "nextjs"})
        assert project.selections == SelectionSet()

    def test_generator_is_reusable(self, store_with):
        generator = ProjectGenerator(store=store_with())
        first = generator.generate("one", SelectionSet())
        second = generator.generate("two", SelectionSet())
        assert first.name == "one"
        assert second.name == "two"
        assert first.metadata.warnings == second.metadata.warnings


# ---------------------------------------------------------------------------
# Degradation
# ---------------------------------------------------------------------------


class TestFallbacks:
    def test_empty_store_uses_fallback_base(self, empty_store):
        project = ProjectGenerator(store=empty_store).generate("test-project", SelectionSet())
        assert project.name == "test-project"
        assert project.metadata.template_versions == {FALLBACK_BASE_ID: "0.0.0"}
        assert any("nextjs-base not found" in w for w in project.metadata.warnings)
        readme = project.get_file("README.md").content
        assert readme.startswith("# test-project\n")
        assert "fallback template" in readme
        assert project.package_json["name"] == "test-project"
        assert project.package_json["scripts"]["dev"] == "next dev"

    def test_missing_optional_template(self, store_with):
        project = ProjectGenerator(store=store_with()).generate(
            "app", SelectionSet(payments="stripe")
        )
        assert "Template stripe not found; using empty fallback" in project.metadata.warnings
        assert project.metadata.template_versions["stripe"] == "0.0.0"

    def test_unexpected_failure_degrades(self, store_with, monkeypatch):
        generator = ProjectGenerator(store=store_with())
        original = generator.env_gen.generate
        calls = {"count": 0}

        def flaky(*args, **kwargs):
            calls["count"] += 1
            if calls["count"] == 1:
                raise RuntimeError("renderer exploded")
            return original(*args, **kwargs)

        monkeypatch.setattr(generator.env_gen, "generate", flaky)
        project = generator.generate("app", SelectionSet())
        assert project.metadata.template_versions == {FALLBACK_BASE_ID: "0.0.0"}
        assert any("renderer exploded" in w for w in project.metadata.warnings)

    def test_store_failure_degrades(self):
        class BrokenStore(TemplateStore):
            def templates_for_selections(self, selections):
                raise RuntimeError("catalog unavailable")

        project = ProjectGenerator(store=BrokenStore()).generate("test-project", SelectionSet())
        assert project.name == "test-project"
        assert project.metadata.template_versions == {FALLBACK_BASE_ID: "0.0.0"}
        assert any("catalog unavailable" in w for w in project.metadata.warnings)
        assert project.package_json["name"] == "test-project"

    def test_persistent_generator_failure_degrades(self, store_with, monkeypatch):
        generator = ProjectGenerator(store=store_with())

        def broken(*args, **kwargs):
            raise RuntimeError("renderer exploded")

        monkeypatch.setattr(generator.deploy_gen, "generate", broken)
        project = generator.generate("app", SelectionSet())
        assert project.metadata.template_versions == {FALLBACK_BASE_ID: "0.0.0"}
        assert any("Skipping deployment files" in w for w in project.metadata.warnings)
        assert project.get_file("package.json") is not None
        assert project.get_file("README.md") is not None
        assert project.get_file("vercel.json") is None
        assert project.get_file(".env.example") is not None
        assert project.get_file("SETUP.md").content == project.setup_guide

    def test_every_document_failing_still_yields_skeleton(self, store_with, monkeypatch):
        generator = ProjectGenerator(store=store_with())

        def broken(*args, **kwargs):
            raise RuntimeError("renderer exploded")

        for component in (generator.env_gen, generator.deploy_gen, generator.guide_gen):
            monkeypatch.setattr(component, "generate", broken)
        project = generator.generate("app", SelectionSet())
        assert sorted(project.metadata.template_versions) == [FALLBACK_BASE_ID]
        assert project.env_template == ""
        assert project.setup_guide == ""
        assert {f.path for f in project.files} == {"package.json", "README.md"}

    def test_non_cycle_generation_error_degrades(self, store_with, monkeypatch):
        generator = ProjectGenerator(store=store_with())

        def oversized(*args, **kwargs):
            raise FileSizeLimitError(11, 10)

        monkeypatch.setattr(generator.guide_gen, "generate", oversized)
        project = generator.generate("app", SelectionSet())
        assert FALLBACK_BASE_ID in project.metadata.template_versions
        assert any("Skipping setup guide" in w for w in project.metadata.warnings)

    def test_store_loaded_from_config(self, tmp_path: Path):
        generator = ProjectGenerator(config=Config(templates_dir=tmp_path / "empty"))
        assert len(generator.store) == 0
        project = generator.generate("app", SelectionSet())
        assert FALLBACK_BASE_ID in project.metadata.template_versions


class TestGenerateProject:
    def test_one_call(self, store_with):
        project = generate_project("app", SelectionSet(), store=store_with())
        assert project.name == "app"
