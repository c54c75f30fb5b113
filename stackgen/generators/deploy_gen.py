"""Hosting descriptor generation.

Renders one deployment descriptor per hosting target (``vercel.json``,
``netlify.toml``, ``railway.json`` or ``render.yaml``) together with the
deployment steps for the setup guide.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from stackgen.generators.renderer import TemplateRenderer
from stackgen.models import (
    EnvVariable,
    InstructionCategory,
    SelectionSet,
    SetupInstruction,
    TemplateFile,
)

PREPARE_STEP = 19
DEPLOY_STEP = 20


@dataclass(frozen=True)
class HostingTarget:
    descriptor: str
    title: str
    commands: tuple[str, ...]
    url: str

    @property
    def template(self) -> str:
        return f"deploy/{self.descriptor}.j2"


HOSTING_TARGETS: dict[str, HostingTarget] = {
    "vercel": HostingTarget(
        descriptor="vercel.json",
        title="Vercel",
        commands=(
            "npm i -g vercel",
            "vercel",
        ),
        url="https://vercel.com/docs/deployments/overview",
    ),
    "netlify": HostingTarget(
        descriptor="netlify.toml",
        title="Netlify",
        commands=(
            "npm i -g netlify-cli",
            "netlify init",
            "netlify deploy --prod",
        ),
        url="https://docs.netlify.com/site-deploys/create-deploys/",
    ),
    "railway": HostingTarget(
        descriptor="railway.json",
        title="Railway",
        commands=(
            "npm i -g @railway/cli",
            "railway login",
            "railway init",
            "railway up",
        ),
        url="https://docs.railway.app/deploy/deployments",
    ),
    "render": HostingTarget(
        descriptor="render.yaml",
        title="Render",
        commands=(
            "git push",
        ),
        url="https://render.com/docs/blueprint-spec",
    ),
}

# Per-framework build settings the descriptors refer to.
FRAMEWORK_SLUGS = {"nextjs": "nextjs", "remix": "remix", "sveltekit": "sveltekit"}
OUTPUT_DIRS = {"nextjs": ".next", "remix": "build/client", "sveltekit": "build"}
START_COMMANDS = {"nextjs": "npm start", "remix": "npm start", "sveltekit": "node build"}
NETLIFY_PLUGINS = {"nextjs": "@netlify/plugin-nextjs"}


@dataclass
class DeploymentResult:
    files: list[TemplateFile] = field(default_factory=list)
    instructions: list[SetupInstruction] = field(default_factory=list)


class DeploymentGenerator:
    """Generates the hosting descriptor and deployment steps."""

    def __init__(self, renderer: TemplateRenderer) -> None:
        self.renderer = renderer

    def generate(
        self,
        project_name: str,
        selections: SelectionSet,
        env_vars: Sequence[EnvVariable] = (),
    ) -> DeploymentResult:
        target = HOSTING_TARGETS[selections.hosting]
        framework = selections.framework
        context = {
            "project_name": project_name,
            "framework_slug": FRAMEWORK_SLUGS[framework],
            "output_dir": OUTPUT_DIRS[framework],
            "start_command": START_COMMANDS[framework],
            "netlify_plugin": NETLIFY_PLUGINS.get(framework, ""),
            "env_keys": [v.key for v in env_vars if v.required],
        }
        descriptor = TemplateFile(
            path=target.descriptor,
            content=self.renderer.render(target.template, context),
        )
        return DeploymentResult(
            files=[descriptor],
            instructions=self.instructions(selections),
        )

    @staticmethod
    def instructions(selections: SelectionSet) -> list[SetupInstruction]:
        target = HOSTING_TARGETS[selections.hosting]
        return [
            SetupInstruction(
                step=PREPARE_STEP,
                title="Prepare for Deployment",
                description="Build the project and check the production build locally.",
                command="npm run build\nnpm start",
                category=InstructionCategory.DEPLOYMENT,
            ),
            SetupInstruction(
                step=DEPLOY_STEP,
                title=f"Deploy to {target.title}",
                description=(
                    f"Deploy with {target.descriptor} and add your environment "
                    f"variables in the {target.title} dashboard."
                ),
                command="\n".join(target.commands),
                url=target.url,
                category=InstructionCategory.DEPLOYMENT,
            ),
        ]
