"""Command-line interface: ``stackgen generate | validate | templates | check``."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Optional, get_args

from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from stackgen.compat import CompatibilityValidator
from stackgen.config import Config
from stackgen.errors import CodeGenerationError
from stackgen.generator import ProjectGenerator, coerce_selections
from stackgen.models import (
    UI,
    Analytics,
    Authentication,
    Category,
    Database,
    Email,
    Framework,
    Hosting,
    Monitoring,
    Payments,
)
from stackgen.store import TemplateStore, load_template
from stackgen.utils import (
    console,
    print_error,
    print_success,
    print_summary_table,
    print_warning,
)
from stackgen.writer import write_project

# (flag, SelectionSet field, allowed values)
SELECTION_OPTIONS: tuple[tuple[str, str, tuple[str, ...]], ...] = (
    ("--framework", "framework", get_args(Framework)),
    ("--auth", "authentication", get_args(Authentication)),
    ("--database", "database", get_args(Database)),
    ("--hosting", "hosting", get_args(Hosting)),
    ("--payments", "payments", get_args(Payments)),
    ("--analytics", "analytics", get_args(Analytics)),
    ("--email", "email", get_args(Email)),
    ("--monitoring", "monitoring", get_args(Monitoring)),
    ("--ui", "ui", get_args(UI)),
)


def _add_selection_options(parser: argparse.ArgumentParser) -> None:
    group = parser.add_argument_group("selections")
    for flag, dest, choices in SELECTION_OPTIONS:
        group.add_argument(flag, dest=dest, choices=choices, default=None)


def _add_templates_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--templates",
        type=Path,
        default=None,
        help="Template catalog directory (default: bundled catalog)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stackgen",
        description="stackgen -- generate a project from technology templates",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  stackgen generate my-app --auth clerk --database supabase\n"
            "  stackgen generate my-app --payments stripe --dry-run\n"
            "  stackgen validate --auth nextauth --framework remix\n"
            "  stackgen templates --category database\n"
            "  stackgen check path/to/catalog/payments/stripe\n"
        ),
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="Generate a project")
    generate.add_argument("name", help="Project name")
    generate.add_argument(
        "--output", "-o", type=Path, default=None, help="Output directory (default: .)"
    )
    generate.add_argument(
        "--dry-run", action="store_true", help="List the files without writing them"
    )
    _add_selection_options(generate)
    _add_templates_option(generate)

    validate = subparsers.add_parser("validate", help="Check a selection set")
    _add_selection_options(validate)
    _add_templates_option(validate)

    templates = subparsers.add_parser("templates", help="List available templates")
    templates.add_argument(
        "--category", choices=[c.value for c in Category], default=None
    )
    templates.add_argument("--search", default=None, help="Filter by name, description or tag")
    _add_templates_option(templates)

    check = subparsers.add_parser("check", help="Validate a single template directory")
    check.add_argument("path", type=Path, help="Path to a <category>/<template>/ directory")

    return parser


def _selections_from_args(args: argparse.Namespace, config: Config) -> dict[str, Any]:
    selections: dict[str, Any] = {"hosting": config.default_hosting}
    for _, dest, _ in SELECTION_OPTIONS:
        value = getattr(args, dest)
        if value is not None:
            selections[dest] = value
    return selections


def _config_from_args(args: argparse.Namespace) -> Config:
    config = Config.from_env()
    updates: dict[str, Any] = {}
    if getattr(args, "templates", None) is not None:
        updates["templates_dir"] = args.templates
    if getattr(args, "output", None) is not None:
        updates["output_dir"] = args.output
    if args.verbose:
        updates["verbose_merge"] = True
    return config.model_copy(update=updates)


def _print_messages(warnings: list[str], suggestions: list[str]) -> None:
    for warning in warnings:
        print_warning(f"Warning: {warning}")
    for suggestion in suggestions:
        console.print(f"[cyan]Suggestion:[/cyan] {escape(suggestion)}", highlight=False)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def cmd_generate(args: argparse.Namespace, config: Config) -> int:
    store = TemplateStore.from_directory(config.templates_dir)
    generator = ProjectGenerator(store=store, config=config)
    project = generator.generate(args.name, _selections_from_args(args, config))

    print_summary_table(
        {
            "Project": project.name,
            "Templates": ", ".join(project.metadata.template_versions),
            "Files": len(project.files),
            "Estimated setup time": f"{project.metadata.estimated_setup_time} min",
        },
        title="Generated project",
    )
    _print_messages(project.metadata.warnings, project.metadata.suggestions)

    if args.dry_run:
        table = Table(title="Files", show_header=True, header_style="bold cyan")
        table.add_column("Path")
        table.add_column("Bytes", justify="right")
        for f in project.files:
            table.add_row(f.path, str(len(f.content.encode("utf-8"))))
        console.print(table)
        return 0

    root = write_project(project, config.output_dir)
    print_success(f"Project written to {root}")
    return 0


def cmd_validate(args: argparse.Namespace, config: Config) -> int:
    store = TemplateStore.from_directory(config.templates_dir)
    selections = coerce_selections(_selections_from_args(args, config))
    result = CompatibilityValidator(store).validate(selections)

    for error in result.errors:
        print_error(f"Error: {error}")
    _print_messages(result.warnings, result.suggestions)

    if not result.is_valid:
        return 1
    print_success("Selections are compatible")
    return 0


def cmd_templates(args: argparse.Namespace, config: Config) -> int:
    store = TemplateStore.from_directory(config.templates_dir)
    templates = store.search(args.search) if args.search else store.all()
    if args.category:
        templates = [t for t in templates if t.metadata.category.value == args.category]

    table = Table(title=f"Templates ({len(templates)})", show_header=True, header_style="bold cyan")
    table.add_column("ID", no_wrap=True)
    table.add_column("Name")
    table.add_column("Category")
    table.add_column("Version")
    table.add_column("Setup (min)", justify="right")
    for t in sorted(templates, key=lambda t: (t.metadata.category.value, t.id)):
        table.add_row(
            t.id,
            t.metadata.name,
            t.metadata.category.value,
            t.metadata.version,
            str(t.metadata.setup_time),
        )
    console.print(table)

    for error in store.load_errors:
        print_warning(f"Skipped {error.origin}: {'; '.join(error.errors)}")
    return 0


def cmd_check(args: argparse.Namespace, config: Config) -> int:
    template, result = load_template(args.path)
    meta = template.metadata
    print_summary_table(
        {
            "ID": meta.id,
            "Name": meta.name,
            "Category": meta.category.value,
            "Version": meta.version,
            "Files": len(template.files),
            "Environment variables": len(template.env_vars),
            "Setup steps": len(template.setup_instructions),
        },
        title="Template",
    )
    _print_messages(result.warnings, [])
    print_success(f"Template {meta.id} is valid")
    return 0


COMMANDS = {
    "generate": cmd_generate,
    "validate": cmd_validate,
    "templates": cmd_templates,
    "check": cmd_check,
}


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def main(argv: Optional[list[str]] = None) -> int:
    """CLI entry point for ``stackgen`` and ``python -m stackgen``."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    config = _config_from_args(args)
    try:
        return COMMANDS[args.command](args, config)
    except CodeGenerationError as exc:
        print_error(f"Error: {exc}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
