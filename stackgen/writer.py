"""Write a generated project to disk."""

from __future__ import annotations

import logging
from pathlib import Path

from stackgen.errors import CodeGenerationError
from stackgen.models import GeneratedProject
from stackgen.sanitizer import validate_file_path
from stackgen.utils import ensure_dir, make_executable

logger = logging.getLogger(__name__)


class UnsafePathError(CodeGenerationError):
    """A file path would land outside the project directory."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Refusing to write outside the project: {path}", "UNSAFE_PATH", {"path": path})


def write_project(project: GeneratedProject, output_dir: str | Path) -> Path:
    """Write every file of *project* under ``output_dir/<project.name>/``.

    Paths are checked again before writing; an unsafe path aborts the write.
    Existing files are overwritten.

    Returns:
        The project root directory.
    """
    root = ensure_dir(Path(output_dir) / project.name)

    for f in project.files:
        target = (root / f.path).resolve()
        if not validate_file_path(f.path) or not target.is_relative_to(root):
            raise UnsafePathError(f.path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(f.content, encoding="utf-8")
        if f.executable:
            make_executable(target)

    logger.info("Wrote %d files to %s", len(project.files), root)
    return root
