"""stackgen -- merge technology templates into a ready-to-run project.

Quick usage::

    from stackgen import SelectionSet, generate_project

    project = generate_project(
        "My App",
        SelectionSet(authentication="clerk", database="supabase"),
    )
    print(project.package_json["dependencies"])
"""

from stackgen.config import Config
from stackgen.errors import (
    CircularDependencyError,
    CodeGenerationError,
    ErrorRecovery,
    FileSizeLimitError,
    InvalidProjectNameError,
    InvalidSelectionsError,
    TemplateLoadError,
    TemplateValidationError,
)
from stackgen.generator import ProjectGenerator, generate_project
from stackgen.merge import MergeEngine, merge_templates
from stackgen.models import (
    GeneratedProject,
    SelectionSet,
    Template,
    TemplateFile,
    TemplateMetadata,
    ValidationResult,
)
from stackgen.store import TemplateStore, load_template
from stackgen.writer import write_project

__version__ = "0.1.0"

__all__ = [
    "CircularDependencyError",
    "CodeGenerationError",
    "Config",
    "ErrorRecovery",
    "FileSizeLimitError",
    "GeneratedProject",
    "InvalidProjectNameError",
    "InvalidSelectionsError",
    "MergeEngine",
    "ProjectGenerator",
    "SelectionSet",
    "Template",
    "TemplateFile",
    "TemplateLoadError",
    "TemplateMetadata",
    "TemplateStore",
    "TemplateValidationError",
    "ValidationResult",
    "generate_project",
    "load_template",
    "merge_templates",
    "write_project",
]
