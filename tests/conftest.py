"""Shared pytest fixtures for the stackgen test suite.

Provides reusable fixtures for:
- Building in-memory templates and stores
- The bundled template catalog
- Writing template directories to ``tmp_path``
- A fixed clock for deterministic variable substitution
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional

import pytest
import yaml

from stackgen.config import BUNDLED_CATALOG
from stackgen.models import (
    Category,
    EnvCategory,
    EnvVariable,
    InstructionCategory,
    SetupInstruction,
    Template,
    TemplateFile,
    TemplateMetadata,
)
from stackgen.store import TemplateStore


# ---------------------------------------------------------------------------
# Template factories
# ---------------------------------------------------------------------------


def build_template(
    template_id: str,
    files: Optional[dict[str, str]] = None,
    *,
    category: Category = Category.OTHER,
    version: str = "1.0.0",
    dependencies: Optional[list[str]] = None,
    conflicts: Optional[list[str]] = None,
    env_vars: Optional[list[EnvVariable]] = None,
    setup: Optional[list[SetupInstruction]] = None,
    package_dependencies: Optional[dict[str, str]] = None,
    dev_dependencies: Optional[dict[str, str]] = None,
    scripts: Optional[dict[str, str]] = None,
    setup_time: int = 0,
) -> Template:
    """Build a ``Template`` with sensible defaults for tests."""
    return Template(
        metadata=TemplateMetadata(
            id=template_id,
            name=template_id.replace("-", " ").title(),
            description=f"{template_id} template",
            category=category,
            version=version,
            dependencies=dependencies or [],
            conflicts=conflicts or [],
            setup_time=setup_time,
        ),
        files=[TemplateFile(path=p, content=c) for p, c in (files or {}).items()],
        env_vars=env_vars or [],
        setup_instructions=setup or [],
        package_dependencies=package_dependencies or {},
        dev_dependencies=dev_dependencies or {},
        scripts=scripts or {},
    )


def env_var(key: str, required: bool = True, category: EnvCategory = EnvCategory.OTHER, **kw: Any) -> EnvVariable:
    return EnvVariable(key=key, description=kw.pop("description", f"{key} value"), required=required, category=category, **kw)


def step(number: int, title: str, category: InstructionCategory = InstructionCategory.INSTALLATION, **kw: Any) -> SetupInstruction:
    return SetupInstruction(step=number, title=title, category=category, **kw)


@pytest.fixture
def make_template() -> Callable[..., Template]:
    """Factory fixture: ``make_template("id", {"path": "content"}, ...)``."""
    return build_template


@pytest.fixture
def base_template() -> Template:
    """A small nextjs-base template with a manifest, README and one env var."""
    return build_template(
        "nextjs-base",
        {
            "package.json": json.dumps(
                {"name": "{{projectNameKebab}}", "scripts": {"dev": "next dev"}}, indent=2
            ),
            "README.md": "# {{projectName}}\n",
            "app/page.tsx": "export default function Page() { return <h1>{{projectName}}</h1> }\n",
        },
        category=Category.FRAMEWORK,
        env_vars=[env_var("NEXT_PUBLIC_APP_URL", example="http://localhost:3000")],
        setup=[step(1, "Install Dependencies", command="npm install")],
        package_dependencies={"next": "^14.0.0", "react": "^18.2.0"},
        scripts={"dev": "next dev"},
        setup_time=5,
    )


@pytest.fixture
def store_with(base_template: Template) -> Callable[..., TemplateStore]:
    """Factory fixture: a store holding the base template plus *templates*."""

    def _store(*templates: Template, include_base: bool = True) -> TemplateStore:
        members = ([base_template] if include_base else []) + list(templates)
        return TemplateStore(members)

    return _store


@pytest.fixture
def empty_store() -> TemplateStore:
    return TemplateStore.empty()


# ---------------------------------------------------------------------------
# Bundled catalog
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def catalog_dir() -> Path:
    assert BUNDLED_CATALOG.is_dir(), f"Bundled catalog not found at {BUNDLED_CATALOG}"
    return BUNDLED_CATALOG


@pytest.fixture(scope="session")
def catalog_store(catalog_dir: Path) -> TemplateStore:
    return TemplateStore.from_directory(catalog_dir)


# ---------------------------------------------------------------------------
# Filesystem helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def write_template_dir(tmp_path: Path) -> Callable[..., Path]:
    """Write a ``<root>/<category>/<id>/`` template directory.

    Usage::

        root = write_template_dir("auth", "clerk", manifest={...}, files={"lib/a.ts": "..."})
    """
    root = tmp_path / "catalog"

    def _write(
        category: str,
        template_id: str,
        manifest: Optional[dict[str, Any]] = None,
        files: Optional[dict[str, str]] = None,
        fmt: str = "yaml",
        side_files: Optional[dict[str, Any]] = None,
    ) -> Path:
        template_dir = root / category / template_id
        template_dir.mkdir(parents=True, exist_ok=True)
        if manifest is not None:
            if fmt == "yaml":
                (template_dir / "template.yaml").write_text(yaml.safe_dump(manifest), encoding="utf-8")
            else:
                (template_dir / "template.json").write_text(json.dumps(manifest), encoding="utf-8")
        for name, data in (side_files or {}).items():
            (template_dir / name).write_text(json.dumps(data), encoding="utf-8")
        for rel, content in (files or {}).items():
            target = template_dir / "files" / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        return root

    return _write


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)
