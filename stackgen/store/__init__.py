"""Template store -- loads, validates and serves technology templates.

Quick usage::

    from stackgen.store import TemplateStore

    store = TemplateStore.from_directory("path/to/catalog")
    base = store.get("nextjs-base")
    auth = store.by_category("authentication")
"""

from stackgen.store.loader import (
    DirectoryTemplateSource,
    MappingTemplateSource,
    RawTemplate,
    TemplateSource,
)
from stackgen.store.registry import LoadError, TemplateStore, load_template
from stackgen.store.validator import parse_template, validate_template

__all__ = [
    "DirectoryTemplateSource",
    "LoadError",
    "MappingTemplateSource",
    "RawTemplate",
    "TemplateSource",
    "TemplateStore",
    "load_template",
    "parse_template",
    "validate_template",
]
