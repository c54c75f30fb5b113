"""Environment variable files for the generated project.

Produces ``.env.example``, ``.env.local.template``,
``.env.production.template`` and ``ENV_VARIABLES.md`` from the merged
template's environment variables, grouped by category.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from stackgen.generators.renderer import TemplateRenderer
from stackgen.models import EnvCategory, EnvVariable, SelectionSet, TemplateFile
from stackgen.utils import to_title

CATEGORY_ORDER: tuple[EnvCategory, ...] = (
    EnvCategory.AUTH,
    EnvCategory.DATABASE,
    EnvCategory.PAYMENTS,
    EnvCategory.ANALYTICS,
    EnvCategory.EMAIL,
    EnvCategory.MONITORING,
    EnvCategory.OTHER,
)

# Public URL variable each framework reads on the client.
APP_URL_KEYS: dict[str, str] = {
    "nextjs": "NEXT_PUBLIC_APP_URL",
    "remix": "APP_URL",
    "sveltekit": "PUBLIC_APP_URL",
}

DEV_DATABASE_URL = "postgresql://localhost:5432/dev"
DEV_SECRET = "development-secret-change-in-production"


@dataclass(frozen=True)
class EnvFiles:
    example: str
    local: str
    production: str
    documentation: str

    def as_files(self) -> list[TemplateFile]:
        return [
            TemplateFile(path=".env.example", content=self.example),
            TemplateFile(path=".env.local.template", content=self.local),
            TemplateFile(path=".env.production.template", content=self.production),
            TemplateFile(path="ENV_VARIABLES.md", content=self.documentation),
        ]


def group_env_vars(env_vars: Sequence[EnvVariable]) -> list[dict[str, Any]]:
    """Group *env_vars* by category in display order, skipping empty groups."""
    groups = []
    for category in CATEGORY_ORDER:
        members = [v for v in env_vars if v.category == category]
        if members:
            groups.append({"title": to_title(category.value), "variables": members})
    return groups


def dev_value(env_var: EnvVariable) -> str:
    """Placeholder value used in ``.env.local.template``."""
    if env_var.default_value:
        return env_var.default_value
    if env_var.category == EnvCategory.DATABASE and "URL" in env_var.key:
        return DEV_DATABASE_URL
    if env_var.category == EnvCategory.AUTH and "SECRET" in env_var.key:
        return DEV_SECRET
    return env_var.example or ""


class EnvGenerator:
    """Renders the environment documents of a project."""

    def __init__(self, renderer: TemplateRenderer) -> None:
        self.renderer = renderer

    def generate(
        self,
        project_name: str,
        env_vars: Sequence[EnvVariable],
        selections: SelectionSet,
    ) -> EnvFiles:
        groups = group_env_vars(env_vars)
        required = [v for v in env_vars if v.required]
        app_url_key = APP_URL_KEYS.get(selections.framework, "")
        # A template that declares the URL variable documents it in its group.
        if any(v.key == app_url_key for v in env_vars):
            app_url_key = ""
        context = {
            "project_name": project_name,
            "groups": groups,
            "hosting": selections.hosting,
            "app_url_key": app_url_key,
            "values": [(v.key, dev_value(v)) for v in required],
            "keys": [v.key for v in required],
        }
        return EnvFiles(
            example=self.renderer.render("env/env.example.j2", context),
            local=self.renderer.render("env/env.local.j2", context),
            production=self.renderer.render("env/env.production.j2", context),
            documentation=self.renderer.render("env/ENV_VARIABLES.md.j2", context),
        )
