"""Template merge engine.

Folds an ordered list of templates into one merged template:

1. Order the templates so that every template follows the templates it
   depends on (depth-first, three-state visit; cycles are fatal).
2. Seed the accumulator with the first template, then fold each following
   template in: files (with per-type conflict resolution), environment
   variables (first seen wins), setup instructions (renumbered to follow
   the existing steps), and package maps (last writer wins).
3. Optionally substitute ``{{token}}`` variables in the merged files.

The engine keeps no state between calls. Degradations caused by imperfect
template data are logged and returned as warnings on the ``MergeResult``.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from enum import Enum

from stackgen.errors import (
    CircularDependencyError,
    CodeGenerationError,
    ErrorRecovery,
)
from stackgen.models import (
    EnvVariable,
    MergeResult,
    SetupInstruction,
    Template,
    TemplateFile,
)
from stackgen.merge.strategies import MergeStrategy, apply_strategy, strategy_for
from stackgen.merge.variables import VariableContext, substitute
from stackgen.sanitizer import (
    MAX_FILE_BYTES,
    normalize_file_path,
    sanitize_file_content,
    validate_file_path,
)

logger = logging.getLogger(__name__)


class TemplateOrderingError(CodeGenerationError):
    """Dependency ordering failed for a reason other than a cycle."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "TEMPLATE_ORDERING_ERROR")


class _VisitState(Enum):
    IN_PROGRESS = 1
    DONE = 2


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------


def sort_by_dependencies(templates: Sequence[Template]) -> list[Template]:
    """Order *templates* so each one follows all of its dependencies.

    Dependencies that are not part of *templates* are ignored. Ties keep
    the input order.

    Raises:
        CircularDependencyError: The templates depend on each other in a
            cycle; ``dependency_chain`` names it (``["x", "y", "x"]``).
        TemplateOrderingError: Two templates share an identifier.
    """
    by_id: dict[str, Template] = {}
    for template in templates:
        if template.id in by_id:
            raise TemplateOrderingError(f"Duplicate template id '{template.id}'")
        by_id[template.id] = template

    state: dict[str, _VisitState] = {}
    stack: list[str] = []
    ordered: list[Template] = []

    def visit(template: Template) -> None:
        template_id = template.id
        current = state.get(template_id)
        if current is _VisitState.IN_PROGRESS:
            chain = stack[stack.index(template_id):] + [template_id]
            raise CircularDependencyError(chain)
        if current is _VisitState.DONE:
            return

        state[template_id] = _VisitState.IN_PROGRESS
        stack.append(template_id)
        for dep_id in template.metadata.dependencies:
            dependency = by_id.get(dep_id)
            if dependency is not None:
                visit(dependency)
        stack.pop()
        state[template_id] = _VisitState.DONE
        ordered.append(template)

    for template in templates:
        visit(template)
    return ordered


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class MergeEngine:
    """Merges templates and substitutes variables.

    Args:
        verbose: Record a warning whenever an unrecognised file type is
            replaced by a later template.
        max_file_bytes: Size limit applied by ``sanitize_file_content``.
    """

    def __init__(self, verbose: bool = False, max_file_bytes: int = MAX_FILE_BYTES) -> None:
        self.verbose = verbose
        self.max_file_bytes = max_file_bytes

    # -- Public API ----------------------------------------------------------

    def merge(self, templates: Sequence[Template]) -> MergeResult:
        """Fold *templates* into one template.

        Raises:
            ValueError: *templates* is empty.
            CircularDependencyError: The templates form a dependency cycle.
        """
        if not templates:
            raise ValueError("No templates to merge")

        warnings: list[str] = []
        ordered = self.order(templates, warnings)

        base = ordered[0]
        # Same-path files within the first template go through the conflict policy too.
        files = self.merge_files([], self._valid_files(base, warnings), warnings, base.id)
        env_vars = list(base.env_vars)
        instructions = list(base.setup_instructions)
        dependencies = dict(base.package_dependencies)
        dev_dependencies = dict(base.dev_dependencies)
        scripts = dict(base.scripts)

        for template in ordered[1:]:
            files = self.merge_files(files, self._valid_files(template, warnings), warnings, template.id)
            env_vars = merge_env_vars(env_vars, template.env_vars)
            instructions = merge_setup_instructions(instructions, template.setup_instructions)
            dependencies.update(template.package_dependencies)
            dev_dependencies.update(template.dev_dependencies)
            scripts.update(template.scripts)

        merged = Template(
            metadata=base.metadata,
            files=files,
            env_vars=env_vars,
            setup_instructions=instructions,
            package_dependencies=dependencies,
            dev_dependencies=dev_dependencies,
            scripts=scripts,
        )
        return MergeResult(template=merged, order=[t.id for t in ordered], warnings=warnings)

    def order(self, templates: Sequence[Template], warnings: list[str]) -> list[Template]:
        """Dependency order, falling back to id order on non-cycle failures."""
        try:
            return sort_by_dependencies(templates)
        except CircularDependencyError:
            raise
        except TemplateOrderingError as exc:
            message = f"Dependency sorting failed, using fallback ordering: {exc}"
            logger.warning(message)
            warnings.append(message)
            return sorted(templates, key=lambda t: t.id)

    def merge_files(
        self,
        existing: Sequence[TemplateFile],
        incoming: Sequence[TemplateFile],
        warnings: list[str],
        source: str = "",
    ) -> list[TemplateFile]:
        """Add *incoming* files to *existing*, resolving path collisions."""
        merged = list(existing)
        index = {f.path: i for i, f in enumerate(merged)}

        for new_file in incoming:
            position = index.get(new_file.path)
            if position is None:
                index[new_file.path] = len(merged)
                merged.append(new_file)
            else:
                merged[position] = self.resolve_conflict(merged[position], new_file, warnings, source)
        return merged

    def resolve_conflict(
        self,
        existing: TemplateFile,
        incoming: TemplateFile,
        warnings: list[str],
        source: str = "",
    ) -> TemplateFile:
        """Combine two files that claim the same path.

        Priority: the incoming force-overwrite flag, then the file type's
        merge strategy, then plain replacement. A strategy that cannot parse
        either side keeps both contents between conflict markers.
        """
        if incoming.overwrite:
            return incoming

        strategy = strategy_for(existing.path)
        if strategy is MergeStrategy.REPLACE:
            if self.verbose:
                warnings.append(f"{existing.path} replaced by {source or 'a later template'}")
            return incoming

        outcome = apply_strategy(strategy, existing.path, existing.content, incoming.content)
        if outcome.ok:
            return existing.model_copy(
                update={
                    "content": outcome.content,
                    "executable": existing.executable or incoming.executable,
                }
            )

        warnings.append(f"Merge conflict in {existing.path}: {outcome.reason}")
        recovered = ErrorRecovery.recover_from_merge_conflict(
            existing.path, existing.content, incoming.content
        )
        return existing.model_copy(update={"content": recovered})

    def substitute_files(
        self,
        files: Sequence[TemplateFile],
        context: VariableContext,
        warnings: list[str],
    ) -> list[TemplateFile]:
        """Substitute tokens in every file's path and content.

        Files whose substituted path is unsafe, or which collide with an
        earlier file after substitution, are dropped with a warning.
        """
        processed: list[TemplateFile] = []
        seen: set[str] = set()
        for f in files:
            path = normalize_file_path(substitute(f.path, context))
            if not validate_file_path(path):
                warnings.append(f"Skipping file with invalid path after substitution: {path}")
                continue
            if path in seen:
                warnings.append(f"Skipping duplicate file after substitution: {path}")
                continue
            seen.add(path)
            processed.append(
                f.model_copy(update={"path": path, "content": substitute(f.content, context)})
            )
        return processed

    # -- Internals -----------------------------------------------------------

    def _valid_files(self, template: Template, warnings: list[str]) -> list[TemplateFile]:
        """Drop files with unsafe paths or oversized content; normalise the rest."""
        valid: list[TemplateFile] = []
        for f in template.files:
            if not validate_file_path(f.path):
                message = f"Skipping file with invalid path in {template.id}: {f.path!r}"
                logger.warning(message)
                warnings.append(message)
                continue
            try:
                content = sanitize_file_content(f.content, self.max_file_bytes)
            except CodeGenerationError as exc:
                message = f"Skipping file {f.path} in {template.id}: {exc}"
                logger.warning(message)
                warnings.append(message)
                continue
            path = normalize_file_path(f.path)
            if path == f.path and content == f.content:
                valid.append(f)
            else:
                valid.append(f.model_copy(update={"path": path, "content": content}))
        return valid


# ---------------------------------------------------------------------------
# List merges
# ---------------------------------------------------------------------------


def merge_env_vars(
    existing: Sequence[EnvVariable], incoming: Sequence[EnvVariable]
) -> list[EnvVariable]:
    """Append incoming variables whose key is new; the first declaration wins."""
    merged = list(existing)
    keys = {v.key for v in merged}
    for env_var in incoming:
        if env_var.key not in keys:
            merged.append(env_var)
            keys.add(env_var.key)
    return merged


def merge_setup_instructions(
    existing: Sequence[SetupInstruction], incoming: Sequence[SetupInstruction]
) -> list[SetupInstruction]:
    """Renumber *incoming* to continue after the highest existing step."""
    offset = max((i.step for i in existing), default=0)
    merged = list(existing) + [
        i.model_copy(update={"step": offset + i.step}) for i in incoming
    ]
    return sorted(merged, key=lambda i: i.step)


def merge_templates(templates: Sequence[Template], verbose: bool = False) -> Template:
    """Merge *templates* and return only the merged template."""
    return MergeEngine(verbose=verbose).merge(templates).template
