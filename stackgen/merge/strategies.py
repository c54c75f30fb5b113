"""Per-file-type merge strategies for conflicting template files.

When two templates contribute a file at the same path, the file's name (or,
failing that, its extension) selects one strategy from a closed set. Each
strategy is a pure function of the two contents and returns a
``MergeOutcome``: either the merged content, or a fallback carrying the
reason the contents could not be combined. Strategies never raise.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath
from typing import Any, Optional

import yaml

from stackgen.utils import dump_json


class MergeStrategy(str, Enum):
    """How two versions of one file are combined."""
    PACKAGE_MANIFEST = "package_manifest"
    STRUCTURED_CONFIG = "structured_config"
    ENV_EXAMPLE = "env_example"
    MARKDOWN = "markdown"
    REPLACE = "replace"


@dataclass(frozen=True)
class MergeOutcome:
    """Result of a strategy: merged content, or a fallback with its reason."""

    content: Optional[str] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.reason is None

    @classmethod
    def merged(cls, content: str) -> "MergeOutcome":
        return cls(content=content)

    @classmethod
    def fallback(cls, reason: str) -> "MergeOutcome":
        return cls(reason=reason)


# ---------------------------------------------------------------------------
# Dispatch table
# ---------------------------------------------------------------------------

FILENAME_STRATEGIES: Mapping[str, MergeStrategy] = {
    "package.json": MergeStrategy.PACKAGE_MANIFEST,
    ".env": MergeStrategy.ENV_EXAMPLE,
    ".env.example": MergeStrategy.ENV_EXAMPLE,
    ".env.local": MergeStrategy.ENV_EXAMPLE,
    ".env.local.template": MergeStrategy.ENV_EXAMPLE,
    ".env.production.template": MergeStrategy.ENV_EXAMPLE,
}

EXTENSION_STRATEGIES: Mapping[str, MergeStrategy] = {
    ".json": MergeStrategy.STRUCTURED_CONFIG,
    ".yaml": MergeStrategy.STRUCTURED_CONFIG,
    ".yml": MergeStrategy.STRUCTURED_CONFIG,
    ".md": MergeStrategy.MARKDOWN,
    ".mdx": MergeStrategy.MARKDOWN,
}

MANIFEST_MAP_KEYS: tuple[str, ...] = (
    "dependencies",
    "devDependencies",
    "peerDependencies",
    "optionalDependencies",
    "scripts",
)

MARKDOWN_SEPARATOR = "\n\n---\n\n"


def strategy_for(path: str) -> MergeStrategy:
    """Pick the strategy for *path*: exact filename first, then extension."""
    name = PurePosixPath(path).name
    if name in FILENAME_STRATEGIES:
        return FILENAME_STRATEGIES[name]
    return EXTENSION_STRATEGIES.get(PurePosixPath(name).suffix.lower(), MergeStrategy.REPLACE)


# ---------------------------------------------------------------------------
# Structured data helpers
# ---------------------------------------------------------------------------


def deep_merge(base: Any, incoming: Any) -> Any:
    """Recursively merge mappings; any other collision takes *incoming*."""
    if not isinstance(base, dict) or not isinstance(incoming, dict):
        return incoming
    result = dict(base)
    for key, value in incoming.items():
        if key in result:
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def merge_package_manifests(existing: dict[str, Any], incoming: dict[str, Any]) -> dict[str, Any]:
    """Union the dependency and script maps; shallow-override everything else."""
    merged = {**existing, **incoming}
    for key in MANIFEST_MAP_KEYS:
        if key in existing or key in incoming:
            left = existing.get(key) or {}
            right = incoming.get(key) or {}
            if not isinstance(left, dict) or not isinstance(right, dict):
                raise ValueError(f"'{key}' must be an object")
            merged[key] = {**left, **right}
    return merged


def _parse_json_object(content: str, label: str) -> dict[str, Any]:
    data = json.loads(content)
    if not isinstance(data, dict):
        raise ValueError(f"{label} content is not a JSON object")
    return data


def _parse_yaml_mapping(content: str, label: str) -> dict[str, Any]:
    data = yaml.safe_load(content)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{label} content is not a YAML mapping")
    return data


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


def merge_package_manifest(path: str, existing: str, incoming: str) -> MergeOutcome:
    try:
        merged = merge_package_manifests(
            _parse_json_object(existing, "existing"),
            _parse_json_object(incoming, "incoming"),
        )
    except ValueError as exc:
        return MergeOutcome.fallback(f"cannot merge {path}: {exc}")
    return MergeOutcome.merged(dump_json(merged))


def merge_structured_config(path: str, existing: str, incoming: str) -> MergeOutcome:
    is_yaml = PurePosixPath(path).suffix.lower() in (".yaml", ".yml")
    try:
        if is_yaml:
            merged = deep_merge(
                _parse_yaml_mapping(existing, "existing"),
                _parse_yaml_mapping(incoming, "incoming"),
            )
            return MergeOutcome.merged(yaml.safe_dump(merged, sort_keys=False))
        merged = deep_merge(
            _parse_json_object(existing, "existing"),
            _parse_json_object(incoming, "incoming"),
        )
    except (ValueError, yaml.YAMLError) as exc:
        return MergeOutcome.fallback(f"cannot merge {path}: {exc}")
    return MergeOutcome.merged(dump_json(merged))


def _env_key(line: str) -> Optional[str]:
    if "=" not in line:
        return None
    return line.split("=", 1)[0].strip()


def merge_env_example(path: str, existing: str, incoming: str) -> MergeOutcome:
    """Line-wise union keyed by the text before ``=``.

    Incoming assignments whose key already exists are dropped; other
    incoming lines (comments included) are appended unless already present.
    """
    existing_lines = existing.split("\n")
    keys = {key for key in map(_env_key, existing_lines) if key is not None}
    present = set(existing_lines)

    merged = list(existing_lines)
    if merged and merged[-1] == "":
        merged.pop()
    for line in incoming.split("\n"):
        key = _env_key(line)
        if key is not None:
            if key in keys:
                continue
            keys.add(key)
        elif not line.strip() or line in present:
            continue
        merged.append(line)
        present.add(line)

    return MergeOutcome.merged("\n".join(merged) + "\n")


def merge_markdown(path: str, existing: str, incoming: str) -> MergeOutcome:
    return MergeOutcome.merged(existing.rstrip("\n") + MARKDOWN_SEPARATOR + incoming)


def replace(path: str, existing: str, incoming: str) -> MergeOutcome:
    return MergeOutcome.merged(incoming)


StrategyFn = Callable[[str, str, str], MergeOutcome]

STRATEGIES: Mapping[MergeStrategy, StrategyFn] = {
    MergeStrategy.PACKAGE_MANIFEST: merge_package_manifest,
    MergeStrategy.STRUCTURED_CONFIG: merge_structured_config,
    MergeStrategy.ENV_EXAMPLE: merge_env_example,
    MergeStrategy.MARKDOWN: merge_markdown,
    MergeStrategy.REPLACE: replace,
}


def apply_strategy(strategy: MergeStrategy, path: str, existing: str, incoming: str) -> MergeOutcome:
    """Run *strategy* on the two contents of *path*."""
    return STRATEGIES[strategy](path, existing, incoming)
