"""Project generation orchestrator.

Takes a project name and a selection set and produces a complete
``GeneratedProject``:

1. validate the name and the selections (input errors are raised here,
   before any generation work);
2. look the selected templates up in the store, standing in fallbacks for
   missing ones;
3. merge them, substitute ``{{token}}`` variables and add the generated
   environment, deployment and guide documents;
4. build the final ``package.json``.

Anything that goes wrong after validation, other than a circular template
dependency, degrades to the fallback base skeleton with a warning.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any, Optional, Union

from pydantic import ValidationError

from stackgen.compat import CompatibilityValidator
from stackgen.config import Config
from stackgen.errors import (
    CircularDependencyError,
    ErrorRecovery,
    InvalidProjectNameError,
    InvalidSelectionsError,
)
from stackgen.generators import (
    DeploymentGenerator,
    EnvGenerator,
    SetupGuideGenerator,
    TemplateRenderer,
)
from stackgen.merge import DependencyManager, MergeEngine, VariableContext
from stackgen.models import (
    GeneratedProject,
    GenerationMetadata,
    SelectionSet,
    Template,
    TemplateFile,
)
from stackgen.sanitizer import sanitize_project_name, validate_project_name
from stackgen.store import TemplateStore

logger = logging.getLogger(__name__)

GENERATED_SOURCE = "stackgen"
GUIDE_PATH = "SETUP.md"


def coerce_selections(selections: Union[SelectionSet, Mapping[str, Any]]) -> SelectionSet:
    """Accept a ``SelectionSet`` or a plain mapping of choices.

    Raises:
        InvalidSelectionsError: A value is outside its enumeration or a key
            is unknown.
    """
    if isinstance(selections, SelectionSet):
        return selections
    try:
        return SelectionSet.model_validate(dict(selections))
    except ValidationError as exc:
        errors = [
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        ]
        raise InvalidSelectionsError(errors) from exc


class ProjectGenerator:
    """Generates projects from a template store.

    The generator keeps no per-request state; one instance can serve any
    number of ``generate`` calls.

    Args:
        store: Template store to draw from. Loaded from
            ``config.templates_dir`` when omitted.
        config: Settings; ``Config()`` when omitted.
    """

    def __init__(
        self,
        store: Optional[TemplateStore] = None,
        config: Optional[Config] = None,
    ) -> None:
        self.config = config or Config()
        self.store = store if store is not None else TemplateStore.from_directory(
            self.config.templates_dir
        )
        self.engine = MergeEngine(
            verbose=self.config.verbose_merge, max_file_bytes=self.config.max_file_bytes
        )
        self.validator = CompatibilityValidator(self.store)
        self.dependency_manager = DependencyManager()
        self.renderer = TemplateRenderer()
        self.env_gen = EnvGenerator(self.renderer)
        self.deploy_gen = DeploymentGenerator(self.renderer)
        self.guide_gen = SetupGuideGenerator(self.renderer)

    # -- Public API --------------------------------------------------------

    def generate(
        self,
        project_name: str,
        selections: Union[SelectionSet, Mapping[str, Any]],
        now: Optional[datetime] = None,
    ) -> GeneratedProject:
        """Generate a project.

        Raises:
            InvalidProjectNameError: The name fails validation.
            InvalidSelectionsError: The selections are malformed or
                incompatible.
            CircularDependencyError: The selected templates depend on each
                other in a cycle.
        """
        name_result = validate_project_name(project_name)
        if not name_result.is_valid:
            raise InvalidProjectNameError(project_name, name_result.errors)
        name = sanitize_project_name(project_name)
        if not name:
            raise InvalidProjectNameError(
                project_name, ["Project name must contain at least one letter or digit"]
            )

        selection_set = coerce_selections(selections)
        compat = self.validator.validate(selection_set)
        if not compat.is_valid:
            raise InvalidSelectionsError(compat.errors)

        now = now or datetime.now(timezone.utc)
        warnings = [*name_result.warnings, *compat.warnings]
        suggestions = [*name_result.suggestions, *compat.suggestions]

        try:
            templates = self.collect_templates(selection_set, warnings)
            project = self._build(project_name, name, selection_set, templates, warnings, now)
        except CircularDependencyError:
            raise
        except Exception as exc:
            logger.exception("Generation failed, falling back to base skeleton")
            warnings.append(f"Generation failed ({exc}); using fallback base template")
            project = self._build_fallback(project_name, name, selection_set, warnings, now)

        project.metadata.suggestions = suggestions + project.metadata.suggestions
        return project

    def collect_templates(self, selections: SelectionSet, warnings: list[str]) -> list[Template]:
        """Templates for *selections*, with fallbacks for missing ones."""
        found, missing = self.store.templates_for_selections(selections)
        base_id = selections.base_template_id()
        templates = list(found)

        for template_id in missing:
            if template_id == base_id:
                warnings.append(f"Base template {base_id} not found; using fallback base template")
                templates.insert(0, ErrorRecovery.fallback_base_template())
            else:
                warnings.append(f"Template {template_id} not found; using empty fallback")
                templates.append(ErrorRecovery.fallback_template(template_id))
        return templates

    # -- Pipeline ------------------------------------------------------------

    def _build(
        self,
        project_name: str,
        name: str,
        selections: SelectionSet,
        templates: list[Template],
        warnings: list[str],
        now: datetime,
    ) -> GeneratedProject:
        warnings = list(warnings)

        # 1. Merge
        result = self.engine.merge(templates)
        merged = result.template
        warnings.extend(result.warnings)

        # 2. Substitute variables
        context = VariableContext.for_project(project_name, selections, now=now)
        files = self.engine.substitute_files(merged.files, context, warnings)

        # 3. Environment and deployment documents
        env_files = self.env_gen.generate(name, merged.env_vars, selections)
        deployment = self.deploy_gen.generate(name, selections, merged.env_vars)
        files = self.engine.merge_files(
            files, env_files.as_files() + deployment.files, warnings, GENERATED_SOURCE
        )

        # 4. Package manifest
        manifest = self.dependency_manager.build(name, selections, merged, templates, files)
        warnings.extend(manifest.warnings)
        files = self.dependency_manager.apply_manifest(files, manifest.package_json)

        # 5. Setup guide
        setup_time = sum(t.metadata.setup_time for t in templates)
        guide = self.guide_gen.generate(
            project_name,
            selections,
            merged.setup_instructions,
            deployment.instructions,
            setup_time=setup_time,
        )
        files = self.engine.merge_files(
            files, [TemplateFile(path=GUIDE_PATH, content=guide)], warnings, GENERATED_SOURCE
        )

        env_example = next((f.content for f in files if f.path == ".env.example"), env_files.example)
        return GeneratedProject(
            name=name,
            files=files,
            package_json=manifest.package_json,
            env_template=env_example,
            setup_guide=guide,
            selections=selections,
            metadata=GenerationMetadata(
                generated_at=now,
                template_versions={t.id: t.metadata.version for t in templates},
                estimated_setup_time=setup_time,
                warnings=warnings,
                suggestions=list(manifest.suggestions),
            ),
        )

    def _build_fallback(
        self,
        project_name: str,
        name: str,
        selections: SelectionSet,
        warnings: list[str],
        now: datetime,
    ) -> GeneratedProject:
        """Bare skeleton project built without the store.

        Only the merge, substitution and manifest steps are required; each
        generated document is skipped with a warning if it cannot be built.
        """
        warnings = list(warnings)
        base = ErrorRecovery.fallback_base_template()
        context = VariableContext.for_project(project_name, selections, now=now)
        files = self.engine.substitute_files(self.engine.merge([base]).template.files, context, warnings)

        env_files = self._best_effort(
            "environment files",
            lambda: self.env_gen.generate(name, base.env_vars, selections).as_files(),
            warnings,
        )
        deploy_files = self._best_effort(
            "deployment files",
            lambda: self.deploy_gen.generate(name, selections, base.env_vars).files,
            warnings,
        )
        files = self.engine.merge_files(files, env_files + deploy_files, warnings, GENERATED_SOURCE)

        manifest = self.dependency_manager.build(name, selections, base, [base], files)
        warnings.extend(manifest.warnings)
        files = self.dependency_manager.apply_manifest(files, manifest.package_json)

        guide_files = self._best_effort(
            "setup guide",
            lambda: [
                TemplateFile(
                    path=GUIDE_PATH,
                    content=self.guide_gen.generate(
                        project_name,
                        selections,
                        base.setup_instructions,
                        self.deploy_gen.instructions(selections),
                        setup_time=base.metadata.setup_time,
                    ),
                )
            ],
            warnings,
        )
        files = self.engine.merge_files(files, guide_files, warnings, GENERATED_SOURCE)

        return GeneratedProject(
            name=name,
            files=files,
            package_json=manifest.package_json,
            env_template=next((f.content for f in files if f.path == ".env.example"), ""),
            setup_guide=guide_files[0].content if guide_files else "",
            selections=selections,
            metadata=GenerationMetadata(
                generated_at=now,
                template_versions={base.id: base.metadata.version},
                estimated_setup_time=base.metadata.setup_time,
                warnings=warnings,
                suggestions=list(manifest.suggestions),
            ),
        )

    @staticmethod
    def _best_effort(
        label: str, produce: Callable[[], list[TemplateFile]], warnings: list[str]
    ) -> list[TemplateFile]:
        try:
            return produce()
        except Exception as exc:
            message = f"Skipping {label} in fallback project: {exc}"
            logger.warning(message)
            warnings.append(message)
            return []


def generate_project(
    project_name: str,
    selections: Union[SelectionSet, Mapping[str, Any]],
    *,
    store: Optional[TemplateStore] = None,
    config: Optional[Config] = None,
) -> GeneratedProject:
    """Generate a project in one call (see ``ProjectGenerator.generate``)."""
    return ProjectGenerator(store=store, config=config).generate(project_name, selections)
