"""Unit tests for hosting descriptor generation (stackgen.generators.deploy_gen)."""

from __future__ import annotations

import json

import pytest
import yaml

from stackgen.generators.deploy_gen import DEPLOY_STEP, PREPARE_STEP, DeploymentGenerator
from stackgen.generators.renderer import TemplateRenderer
from stackgen.models import EnvVariable, InstructionCategory, SelectionSet

pytestmark = pytest.mark.unit


@pytest.fixture
def generator() -> DeploymentGenerator:
    return DeploymentGenerator(TemplateRenderer())


class TestDescriptors:
    def test_vercel(self, generator):
        result = generator.generate("my-app", SelectionSet())
        assert [f.path for f in result.files] == ["vercel.json"]
        config = json.loads(result.files[0].content)
        assert config["framework"] == "nextjs"
        assert config["outputDirectory"] == ".next"

    def test_netlify_with_plugin(self, generator):
        content = generator.generate("my-app", SelectionSet(hosting="netlify")).files[0].content
        assert 'publish = ".next"' in content
        assert 'package = "@netlify/plugin-nextjs"' in content

    def test_netlify_without_plugin(self, generator):
        selections = SelectionSet(hosting="netlify", framework="sveltekit")
        content = generator.generate("kit", selections).files[0].content
        assert 'publish = "build"' in content
        assert "[[plugins]]" not in content

    def test_railway(self, generator):
        selections = SelectionSet(hosting="railway", framework="remix")
        config = json.loads(generator.generate("r", selections).files[0].content)
        assert config["deploy"]["startCommand"] == "npm start"
        assert config["build"]["buildCommand"] == "npm run build"

    def test_render_lists_required_keys(self, generator):
        env_vars = [
            EnvVariable(key="DATABASE_URL", required=True),
            EnvVariable(key="OPTIONAL_KEY"),
        ]
        result = generator.generate("my-app", SelectionSet(hosting="render"), env_vars)
        assert result.files[0].path == "render.yaml"
        blueprint = yaml.safe_load(result.files[0].content)
        service = blueprint["services"][0]
        assert service["name"] == "my-app"
        keys = [e["key"] for e in service["envVars"]]
        assert keys == ["NODE_ENV", "DATABASE_URL"]


class TestInstructions:
    def test_steps(self):
        steps = DeploymentGenerator.instructions(SelectionSet(hosting="railway"))
        assert [s.step for s in steps] == [PREPARE_STEP, DEPLOY_STEP]
        assert steps[0].title == "Prepare for Deployment"
        assert steps[1].title == "Deploy to Railway"
        assert "railway up" in steps[1].command
        assert all(s.category == InstructionCategory.DEPLOYMENT for s in steps)

    def test_generate_includes_instructions(self, generator):
        result = generator.generate("my-app", SelectionSet())
        assert result.instructions[1].url.startswith("https://vercel.com")
