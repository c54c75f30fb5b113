"""Template merging: ordering, conflict resolution and variable substitution."""

from stackgen.merge.dependencies import DependencyManager, ManifestResult
from stackgen.merge.engine import MergeEngine, merge_templates, sort_by_dependencies
from stackgen.merge.strategies import MergeOutcome, MergeStrategy, apply_strategy, strategy_for
from stackgen.merge.variables import Lookup, VariableContext, find_tokens, substitute

__all__ = [
    "DependencyManager",
    "Lookup",
    "ManifestResult",
    "MergeEngine",
    "MergeOutcome",
    "MergeStrategy",
    "VariableContext",
    "apply_strategy",
    "find_tokens",
    "merge_templates",
    "sort_by_dependencies",
    "strategy_for",
    "substitute",
]
