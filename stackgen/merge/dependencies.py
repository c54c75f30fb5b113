"""Package manifest (``package.json``) construction.

The manifest of a generated project is assembled in layers, each one
overriding the previous:

1. a framework base manifest (name, version, scripts, engines);
2. any ``package.json`` file the merged templates contributed;
3. the merged template's dependency and script maps.

Framework peer packages are then filled in where no template supplied them,
and packages requested with different ranges by different templates are
reported.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any, Optional

from packaging.version import InvalidVersion, Version

from stackgen.merge.strategies import deep_merge
from stackgen.models import SelectionSet, Template, TemplateFile
from stackgen.utils import dump_json

logger = logging.getLogger(__name__)

MANIFEST_PATH = "package.json"

ENGINES: dict[str, str] = {"node": ">=18.0.0", "npm": ">=8.0.0"}

FRAMEWORK_SCRIPTS: dict[str, dict[str, str]] = {
    "nextjs": {
        "dev": "next dev",
        "build": "next build",
        "start": "next start",
        "lint": "next lint",
        "type-check": "tsc --noEmit",
    },
    "remix": {
        "dev": "remix vite:dev",
        "build": "remix vite:build",
        "start": "remix-serve ./build/server/index.js",
        "type-check": "tsc --noEmit",
    },
    "sveltekit": {
        "dev": "vite dev",
        "build": "vite build",
        "preview": "vite preview",
        "check": "svelte-kit sync && svelte-check --tsconfig ./tsconfig.json",
    },
}

FRAMEWORK_DEPENDENCIES: dict[str, dict[str, str]] = {
    "nextjs": {
        "next": "^14.0.0",
        "react": "^18.0.0",
        "react-dom": "^18.0.0",
    },
    "remix": {
        "@remix-run/node": "^2.0.0",
        "@remix-run/react": "^2.0.0",
        "@remix-run/serve": "^2.0.0",
        "react": "^18.0.0",
        "react-dom": "^18.0.0",
    },
    "sveltekit": {},
}

FRAMEWORK_DEV_DEPENDENCIES: dict[str, dict[str, str]] = {
    "nextjs": {
        "@types/node": "^20.0.0",
        "@types/react": "^18.0.0",
        "@types/react-dom": "^18.0.0",
        "typescript": "^5.0.0",
    },
    "remix": {
        "@remix-run/dev": "^2.0.0",
        "@types/react": "^18.0.0",
        "@types/react-dom": "^18.0.0",
        "typescript": "^5.0.0",
        "vite": "^5.0.0",
    },
    "sveltekit": {
        "@sveltejs/adapter-auto": "^3.0.0",
        "@sveltejs/kit": "^2.0.0",
        "svelte": "^4.0.0",
        "svelte-check": "^3.0.0",
        "typescript": "^5.0.0",
        "vite": "^5.0.0",
    },
}

_RANGE_PREFIX = re.compile(r"^(\^|~|>=|<=|>|<|=)?\s*v?")
_WILDCARD = re.compile(r"\.?(x|X|\*)")


def range_floor(spec: str) -> Optional[Version]:
    """Lowest version a simple npm range admits (``^18.2`` -> ``18.2.0``).

    Returns ``None`` for tags and ranges that carry no version number.
    """
    core = _RANGE_PREFIX.sub("", spec.strip())
    core = _WILDCARD.sub("", core.split("-", 1)[0].split("+", 1)[0])
    if not core:
        return None
    parts = core.split(".")
    while len(parts) < 3:
        parts.append("0")
    try:
        return Version(".".join(parts[:3]))
    except InvalidVersion:
        return None


def highest_range(specs: Iterable[str]) -> str:
    """Return the range with the highest floor; ties keep the first seen."""
    specs = list(specs)
    best = specs[0]
    best_floor = range_floor(best)
    for spec in specs[1:]:
        floor = range_floor(spec)
        if floor is not None and (best_floor is None or floor > best_floor):
            best, best_floor = spec, floor
    return best


@dataclass
class ManifestResult:
    """The final manifest and what was noticed while building it."""

    package_json: dict[str, Any]
    warnings: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)


class DependencyManager:
    """Builds the project manifest from the merged template."""

    def base_manifest(self, name: str, framework: str) -> dict[str, Any]:
        return {
            "name": name,
            "version": "0.1.0",
            "private": True,
            "scripts": dict(FRAMEWORK_SCRIPTS.get(framework, {})),
            "dependencies": {},
            "devDependencies": {},
            "engines": dict(ENGINES),
        }

    def build(
        self,
        name: str,
        selections: SelectionSet,
        merged: Template,
        templates: Sequence[Template] = (),
        files: Optional[Sequence[TemplateFile]] = None,
    ) -> ManifestResult:
        """Assemble the manifest for project *name*.

        Args:
            name: Sanitized project name.
            selections: The user's selections (drives framework defaults).
            merged: The merged template.
            templates: The individual templates that were merged, used to
                report version range disagreements.
            files: The file list to read a template-provided ``package.json``
                from; defaults to ``merged.files``.
        """
        result = ManifestResult(package_json=self.base_manifest(name, selections.framework))
        manifest = result.package_json

        template_manifest = self._template_manifest(
            merged.files if files is None else files, result.warnings
        )
        if template_manifest:
            manifest = deep_merge(manifest, template_manifest)
            manifest["name"] = name

        manifest["dependencies"] = {**manifest.get("dependencies", {}), **merged.package_dependencies}
        manifest["devDependencies"] = {
            **manifest.get("devDependencies", {}),
            **merged.dev_dependencies,
        }
        manifest["scripts"] = {**manifest.get("scripts", {}), **merged.scripts}

        self._fill_defaults(manifest["dependencies"], FRAMEWORK_DEPENDENCIES.get(selections.framework, {}))
        self._fill_defaults(
            manifest["devDependencies"], FRAMEWORK_DEV_DEPENDENCIES.get(selections.framework, {})
        )

        result.package_json = manifest
        result.warnings.extend(self.version_conflicts(templates))
        self._check_compatibility(manifest, result)
        return result

    def version_conflicts(self, templates: Sequence[Template]) -> list[str]:
        """One warning per package requested with different ranges."""
        requested: dict[str, list[str]] = {}
        for template in templates:
            for deps in (template.package_dependencies, template.dev_dependencies):
                for package, spec in deps.items():
                    ranges = requested.setdefault(package, [])
                    if spec not in ranges:
                        ranges.append(spec)

        warnings: list[str] = []
        for package, ranges in requested.items():
            if len(ranges) > 1:
                warnings.append(
                    f"Version conflict for {package}: {', '.join(ranges)}. "
                    f"Highest requested range is {highest_range(ranges)}."
                )
        return warnings

    @staticmethod
    def apply_manifest(files: Sequence[TemplateFile], manifest: dict[str, Any]) -> list[TemplateFile]:
        """Replace (or append) the ``package.json`` entry with *manifest*."""
        content = dump_json(manifest)
        updated: list[TemplateFile] = []
        replaced = False
        for f in files:
            if f.path == MANIFEST_PATH:
                updated.append(f.model_copy(update={"content": content}))
                replaced = True
            else:
                updated.append(f)
        if not replaced:
            updated.append(TemplateFile(path=MANIFEST_PATH, content=content))
        return updated

    # -- Internals -----------------------------------------------------------

    @staticmethod
    def _template_manifest(files: Sequence[TemplateFile], warnings: list[str]) -> dict[str, Any]:
        for f in files:
            if f.path != MANIFEST_PATH:
                continue
            try:
                data = json.loads(f.content)
            except ValueError as exc:
                message = f"Ignoring unparseable {MANIFEST_PATH}: {exc}"
                logger.warning(message)
                warnings.append(message)
                return {}
            if not isinstance(data, dict):
                warnings.append(f"Ignoring {MANIFEST_PATH}: not a JSON object")
                return {}
            return data
        return {}

    @staticmethod
    def _fill_defaults(target: dict[str, str], defaults: dict[str, str]) -> None:
        for package, spec in defaults.items():
            target.setdefault(package, spec)

    @staticmethod
    def _check_compatibility(manifest: dict[str, Any], result: ManifestResult) -> None:
        deps = manifest.get("dependencies", {})
        dev_deps = manifest.get("devDependencies", {})

        react = range_floor(deps["react"]) if "react" in deps else None
        next_ = range_floor(deps["next"]) if "next" in deps else None
        if react is not None and next_ is not None and next_.major >= 14 and react.major < 18:
            result.warnings.append("Next.js 14+ requires React 18+")

        typescript_spec = deps.get("typescript") or dev_deps.get("typescript")
        typescript = range_floor(typescript_spec) if typescript_spec else None
        if typescript is not None and typescript.major < 5:
            result.suggestions.append("Consider upgrading to TypeScript 5+ for better performance")
