"""Template sources: where raw template manifests come from.

A source enumerates raw template records and knows nothing about validation.
Two sources are provided:

* ``DirectoryTemplateSource`` reads the on-disk layout
  ``<root>/<category>/<template>/`` with either a ``template.yaml`` manifest
  or the ``template.json`` + ``package.json`` + ``env.json`` +
  ``setup.json`` file set, and a ``files/`` payload directory.
* ``MappingTemplateSource`` serves manifests from an in-memory catalog.

A template that cannot be read becomes a ``RawTemplate`` carrying an error
rather than an exception, so one corrupt template never stops the load.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Protocol

import yaml

from stackgen.utils import load_json, load_yaml

logger = logging.getLogger(__name__)

MANIFEST_YAML = "template.yaml"
MANIFEST_JSON = "template.json"
PACKAGE_JSON = "package.json"
ENV_JSON = "env.json"
SETUP_JSON = "setup.json"
FILES_DIR = "files"


@dataclass
class RawTemplate:
    """An unvalidated template record as produced by a source.

    ``data`` follows the manifest schema::

        {
          "metadata": {...},
          "files": [{"path": ..., "content": ..., "executable": ...}],
          "env_vars": [...],
          "setup_instructions": [...],
          "package_dependencies": {...},
          "dev_dependencies": {...},
          "scripts": {...},
        }
    """

    origin: str
    data: dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class TemplateSource(Protocol):
    """Anything that can enumerate raw templates."""

    def iter_templates(self) -> Iterator[RawTemplate]:
        ...


# ---------------------------------------------------------------------------
# Manifest normalisation
# ---------------------------------------------------------------------------

# Keys accepted in camelCase manifests, mapped to the model's field names.
_METADATA_ALIASES: dict[str, str] = {
    "setupTime": "setup_time",
}
_ENV_ALIASES: dict[str, str] = {
    "defaultValue": "default_value",
}


def _rename_keys(data: dict[str, Any], aliases: dict[str, str]) -> dict[str, Any]:
    return {aliases.get(k, k): v for k, v in data.items()}


def normalize_manifest(
    manifest: Mapping[str, Any],
    package: Optional[Mapping[str, Any]] = None,
    env_vars: Optional[list[Any]] = None,
    setup: Optional[list[Any]] = None,
) -> dict[str, Any]:
    """Build the canonical template dict from a manifest and its side files.

    The manifest may carry the metadata at the top level (``template.json``)
    or under a ``metadata`` key (``template.yaml``). ``env``/``setup``/
    ``package`` sections inside the manifest are used when the side files are
    absent.
    """
    body = dict(manifest)
    metadata = body.pop("metadata", None)
    if metadata is None:
        metadata = {
            k: v
            for k, v in body.items()
            if k not in ("env", "env_vars", "setup", "setup_instructions", "package", "files")
        }

    package = package if package is not None else body.get("package") or {}
    env_vars = env_vars if env_vars is not None else body.get("env_vars", body.get("env")) or []
    setup = (
        setup
        if setup is not None
        else body.get("setup_instructions", body.get("setup")) or []
    )

    if not isinstance(metadata, Mapping):
        raise ValueError("metadata must be a mapping")
    if not isinstance(package, Mapping):
        raise ValueError("package section must be a mapping")
    if not isinstance(env_vars, list) or not isinstance(setup, list):
        raise ValueError("env and setup sections must be lists")

    return {
        "metadata": _rename_keys(dict(metadata), _METADATA_ALIASES),
        "files": list(body.get("files") or []),
        "env_vars": [
            _rename_keys(dict(v), _ENV_ALIASES) if isinstance(v, Mapping) else v
            for v in env_vars
        ],
        "setup_instructions": list(setup),
        "package_dependencies": dict(package.get("dependencies") or {}),
        "dev_dependencies": dict(package.get("devDependencies") or {}),
        "scripts": dict(package.get("scripts") or {}),
    }


# ---------------------------------------------------------------------------
# Directory source
# ---------------------------------------------------------------------------


class DirectoryTemplateSource:
    """Reads templates from ``<root>/<category>/<template>/`` directories."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def iter_templates(self) -> Iterator[RawTemplate]:
        if not self.root.is_dir():
            logger.warning("Template directory %s not found, using empty catalog", self.root)
            return
        for category_dir in sorted(p for p in self.root.iterdir() if p.is_dir()):
            for template_dir in sorted(p for p in category_dir.iterdir() if p.is_dir()):
                yield self.read_template(template_dir)

    def read_template(self, template_dir: Path) -> RawTemplate:
        """Read one template directory; never raises."""
        origin = str(template_dir)
        try:
            data = self._read(template_dir)
        except (OSError, ValueError, UnicodeDecodeError, yaml.YAMLError) as exc:
            # json.JSONDecodeError is a ValueError subclass.
            logger.warning("Failed to load template from %s: %s", origin, exc)
            return RawTemplate(origin=origin, error=str(exc))
        return RawTemplate(origin=origin, data=data)

    def _read(self, template_dir: Path) -> dict[str, Any]:
        yaml_path = template_dir / MANIFEST_YAML
        json_path = template_dir / MANIFEST_JSON

        if yaml_path.is_file():
            manifest = load_yaml(yaml_path)
        elif json_path.is_file():
            manifest = load_json(json_path)
        else:
            raise ValueError(f"no {MANIFEST_YAML} or {MANIFEST_JSON} manifest")
        if not isinstance(manifest, dict):
            raise ValueError("manifest must be a mapping")

        package = self._optional_json(template_dir / PACKAGE_JSON, dict)
        env_vars = self._optional_json(template_dir / ENV_JSON, list)
        setup = self._optional_json(template_dir / SETUP_JSON, list)

        data = normalize_manifest(manifest, package=package, env_vars=env_vars, setup=setup)
        data["files"] = data["files"] + self._read_files(template_dir / FILES_DIR)
        return data

    @staticmethod
    def _optional_json(path: Path, expected: type) -> Any:
        if not path.is_file():
            return None
        value = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(value, expected):
            raise ValueError(f"{path.name} must contain a JSON {expected.__name__}")
        return value

    @staticmethod
    def _read_files(files_dir: Path) -> list[dict[str, Any]]:
        if not files_dir.is_dir():
            return []
        files: list[dict[str, Any]] = []
        for file_path in sorted(p for p in files_dir.rglob("*") if p.is_file()):
            files.append(
                {
                    "path": file_path.relative_to(files_dir).as_posix(),
                    "content": file_path.read_text(encoding="utf-8"),
                    "executable": os.access(file_path, os.X_OK),
                }
            )
        return files


# ---------------------------------------------------------------------------
# In-memory source
# ---------------------------------------------------------------------------


class MappingTemplateSource:
    """Serves templates from a ``{template_id: manifest}`` mapping.

    Each manifest uses the ``template.yaml`` schema (``metadata`` plus
    optional ``files``, ``env``, ``setup`` and ``package`` sections).
    """

    def __init__(self, manifests: Mapping[str, Mapping[str, Any]]) -> None:
        self.manifests = manifests

    def iter_templates(self) -> Iterator[RawTemplate]:
        for key, manifest in self.manifests.items():
            origin = f"mapping:{key}"
            try:
                if not isinstance(manifest, Mapping):
                    raise ValueError("manifest must be a mapping")
                data = normalize_manifest(manifest)
            except (ValueError, TypeError, AttributeError) as exc:
                logger.warning("Failed to load template %s: %s", origin, exc)
                yield RawTemplate(origin=origin, error=str(exc))
                continue
            yield RawTemplate(origin=origin, data=data)
