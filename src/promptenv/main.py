"""
promptenv CLI - annotated environment files

Main entry point for the promptenv command-line tool.
"""

import json
import logging
import os
import sys
from pathlib import Path

import click
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .core.annotation import Annotation, Constraint, VariableType
from .core.config import DEFAULT_DIST_PATH, ProjectConfig, format_config
from .core.document import Document, Variable, format_variable, unrepresentable_reason
from .core.errors import ValidationResult
from .core.files import append_lines, read_document, read_lines, write_lines
from .core.generator import Generator, targets_for_environments
from .core.inspector import apply_updates, auto_resolve, inspect as inspect_documents
from .core.lexer import VARIABLE_NAME_PATTERN
from .core.validator import get_example, get_suggestion, lint_lines, validate_against, validate_value


console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger("promptenv")

EXIT_INVALID = 1
EXIT_UNREADABLE = 2

TEMPLATE_HEADER = [
    "# ========================================",
    "# Environment Template",
    "# ========================================",
    "#",
    "# Annotation syntax:",
    "#   VAR=default #prompt:Question?|type;constraint:value",
    "#",
    "# Types: string, int, numeric, boolean, enum, object",
    "# Modifiers: optional, secret",
    "#",
    "# Examples:",
    "#   PORT=3000 #prompt:Server port?|int;min:1;max:65535",
    "#   ENV= #prompt:Environment?|enum;options:dev,staging,prod",
    "#   API_KEY= #prompt:API key?|string;secret",
    "#",
    "# Run: promptenv generate .env.local",
    "# ========================================",
    "",
    "# Add your variables below:",
]

TYPE_CONSTRAINTS = {
    VariableType.STRING: ("minlen", "maxlen", "pattern"),
    VariableType.INT: ("min", "max"),
    VariableType.NUMERIC: ("min", "max"),
    VariableType.BOOLEAN: (),
    VariableType.ENUM: ("options",),
    VariableType.OBJECT: ("format",),
}

EXTRA_ACTIONS = ("keep", "remove", "add")


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() not in {"0", "false", "no", "off", ""}


def _setup_logging(verbose: bool):
    """Route library logging through rich."""
    if not logger.handlers:
        logger.addHandler(RichHandler(console=err_console, show_path=False))
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _fail(message: str, code: int = EXIT_INVALID, hint: str = ""):
    err_console.print(f"[red]Error: {escape(message)}[/red]")
    if hint:
        err_console.print(f"[dim]{escape(hint)}[/dim]")
    sys.exit(code)


def _load(path: str) -> Document:
    """Read a document or exit with the unreadable-file code."""
    try:
        return read_document(path)
    except (OSError, UnicodeDecodeError) as e:
        _fail(str(e), EXIT_UNREADABLE)


def _print_result(result: ValidationResult, path: str):
    """Print every outcome with line, message, fix and example."""
    if result.valid:
        console.print(f"[green]✓ VALIDATION PASSED: {escape(path)}[/green]")
        return

    console.print(f"[red]✗ VALIDATION FAILED: {escape(path)}[/red]\n")
    for outcome in result.errors:
        console.print(f"  Line {outcome.line_number}: [cyan]{escape(outcome.variable)}[/cyan] "
                      f"[dim]({outcome.kind.value})[/dim]")
        console.print(f"    [red]✗ {escape(outcome.message)}[/red]")
        if outcome.suggestion:
            console.print(f"    [yellow]→ Fix:[/yellow] {escape(outcome.suggestion)}")
        if outcome.example:
            console.print(f"    [yellow]→ Example:[/yellow] {escape(outcome.example)}")
        console.print()
    console.print(f"Found {result.error_count()} error(s)")


def _parse_assignments(assignments) -> dict:
    values = {}
    for item in assignments:
        if "=" not in item:
            raise click.BadParameter(f"expected KEY=VALUE, got {item!r}", param_hint="--set")
        name, value = item.split("=", 1)
        values[name.strip()] = value
    return values


def ask_value(variable: Variable) -> str:
    """
    Prompt for a variable until the answer passes validation.

    Secret variables are read without echo.
    """
    annotation = variable.annotation
    text = annotation.prompt_text if annotation and annotation.prompt_text else variable.name
    if annotation is not None and annotation.type == VariableType.ENUM:
        text += f" [{', '.join(annotation.options)}]"
    hide = annotation is not None and annotation.is_secret

    while True:
        value = click.prompt(f"{variable.name}: {text}", default=variable.value,
                             show_default=bool(variable.value) and not hide,
                             hide_input=hide)
        value = value.strip()
        message = unrepresentable_reason(value) or validate_value(value, annotation)
        if message is None:
            return value

        console.print(f"  [red]✗ {escape(message)}[/red]")
        if annotation is not None:
            console.print(f"  [dim]→ {escape(get_suggestion(annotation))} "
                          f"(e.g. {escape(get_example(annotation))})[/dim]")


@click.group()
@click.option('--dist', 'dist_path', default=DEFAULT_DIST_PATH, envvar='PROMPTENV_DIST',
              show_default=True, help='Path to the distributable file')
@click.option('--non-interactive', '-n', is_flag=True,
              help='Never prompt; fail on unresolved variables')
@click.option('--quiet', '-q', is_flag=True, help='Suppress non-error output')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, dist_path, non_interactive, quiet, verbose):
    """
    promptenv - Environment files with annotation-driven wizards
    """
    _setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj['dist'] = dist_path
    ctx.obj['non_interactive'] = non_interactive or _env_bool('PROMPTENV_NON_INTERACTIVE', False)
    ctx.obj['quiet'] = quiet


def build_annotation(var_type: VariableType, prompt: str, constraints: dict,
                     optional: bool, secret: bool) -> Annotation:
    """
    Build an annotation keeping only the constraints that apply to the type.

    Args:
        var_type: Declared type
        prompt: Prompt text; a generic one is used when empty
        constraints: Constraint name to value; empty values are dropped
        optional: Mark as optional
        secret: Mark as secret
    """
    return Annotation(
        prompt_text=prompt or f"Enter {var_type.value} value",
        type=var_type,
        constraints=tuple(
            Constraint(name, constraints[name])
            for name in TYPE_CONSTRAINTS[var_type] if constraints.get(name)
        ),
        is_optional=optional,
        is_secret=secret,
    )


def _wizard_variables() -> list:
    """Ask for variables until the user stops; returns annotated lines."""
    names = set()
    lines = []

    while click.confirm("Add a variable?", default=False):
        name = click.prompt("Name").strip()
        if not VARIABLE_NAME_PATTERN.match(name) or name in names:
            console.print(f"  [red]✗ invalid or duplicate name {escape(name)}[/red]")
            continue

        var_type = VariableType(click.prompt("Type", default="string",
                                             type=click.Choice([t.value for t in VariableType])))
        prompt = click.prompt("Prompt", default=f"Enter {name}")
        constraints = {
            constraint: click.prompt(f"  {constraint}", default="", show_default=False)
            for constraint in TYPE_CONSTRAINTS[var_type]
        }
        optional = click.confirm("Optional?", default=False)
        secret = click.confirm("Secret?", default=False)
        annotation = build_annotation(var_type, prompt, constraints, optional, secret)

        while True:
            default = click.prompt("Default value", default="", show_default=False).strip()
            message = None
            if default:
                message = unrepresentable_reason(default) or validate_value(default, annotation)
            if message is None:
                break
            console.print(f"  [red]✗ {escape(message)}[/red]")

        line = format_variable(Variable(name=name, value=default, annotation=annotation))
        lines.append(line)
        names.add(name)
        console.print(f"  [green]✓[/green] {escape(line)}")

    return lines


@cli.command()
@click.option('--path', 'path', default=DEFAULT_DIST_PATH, help='Output path for the distributable')
@click.option('--environments', '-e', default="local", help='Comma-separated environments')
@click.option('--template', '-t', is_flag=True, help='Write the header only, skip the variable wizard')
@click.option('--force', '-f', is_flag=True, help='Overwrite existing file')
@click.pass_context
def init(ctx, path, environments, template, force):
    """
    Create a new distributable with a config block and template header.

    Unless --template or non-interactive mode is used, a wizard asks for
    variables to add.
    """
    if Path(path).exists() and not force:
        _fail(f"file {path} already exists", hint="Use --force to overwrite.")

    config = ProjectConfig(
        environments=[env.strip() for env in environments.split(",") if env.strip()],
    )

    variables = []
    if not template and not ctx.obj['non_interactive']:
        variables = _wizard_variables()

    write_lines(path, format_config(config) + [""] + TEMPLATE_HEADER + variables)

    if not ctx.obj['quiet']:
        console.print(f"[green]✓ Created {escape(path)}[/green]")
        console.print("\nNext steps:")
        console.print('  1. Add variables: [cyan]promptenv add NAME --type string --prompt "Question?"[/cyan]')
        console.print("  2. Generate: [cyan]promptenv generate .env.local[/cyan]")


@cli.command()
@click.argument('name')
@click.option('--type', '-t', 'var_type', default="string",
              type=click.Choice([t.value for t in VariableType]), help='Variable type')
@click.option('--prompt', '-p', default="", help='Prompt message for the wizard')
@click.option('--default', '-D', 'default', default="", help='Default value')
@click.option('--min', 'min_', default="", help='Minimum value (int/numeric)')
@click.option('--max', 'max_', default="", help='Maximum value (int/numeric)')
@click.option('--minlen', default="", help='Minimum length (string)')
@click.option('--maxlen', default="", help='Maximum length (string)')
@click.option('--pattern', default="", help='Regex pattern (string)')
@click.option('--options', '-o', default="", help='Comma-separated options (enum)')
@click.option('--format', 'fmt', default="", help='Object format: json or yaml')
@click.option('--optional', is_flag=True, help='Mark as optional')
@click.option('--secret', is_flag=True, help='Mark as secret (hides input)')
@click.pass_context
def add(ctx, name, var_type, prompt, default, min_, max_, minlen, maxlen, pattern,
        options, fmt, optional, secret):
    """
    Add an annotated variable to the distributable.
    """
    dist_path = ctx.obj['dist']

    if not VARIABLE_NAME_PATTERN.match(name):
        _fail(f"invalid variable name {name!r}",
              hint="Use uppercase letters, numbers and underscores, starting with a letter.")

    if not Path(dist_path).exists():
        _fail(f"distributable not found: {dist_path}", hint="Run 'promptenv init' to create one.")

    dist = _load(dist_path)
    if dist.has_variable(name):
        _fail(f"variable {name} already exists in {dist_path}", EXIT_UNREADABLE)

    constraints = {
        "min": min_,
        "max": max_,
        "minlen": minlen,
        "maxlen": maxlen,
        "pattern": pattern,
        "options": options,
        "format": fmt,
    }
    annotation = build_annotation(VariableType(var_type), prompt, constraints, optional, secret)

    if default:
        message = unrepresentable_reason(default) or validate_value(default, annotation)
        if message is not None:
            _fail(f"default value for {name} is invalid: {message}", hint=get_suggestion(annotation))

    line = format_variable(Variable(name=name, value=default, annotation=annotation))
    append_lines(dist_path, [line])

    if not ctx.obj['quiet']:
        console.print(f"[green]✓ Added:[/green] {escape(line)}")


@cli.command()
@click.argument('target', required=False)
@click.option('--all', '-a', 'all_envs', is_flag=True, help='Generate every configured environment')
@click.option('--set', 'assignments', multiple=True, metavar='KEY=VALUE',
              help='Provide a value without prompting (repeatable)')
@click.option('--keep-annotations', '-k', is_flag=True, help='Keep annotations in the generated file')
@click.pass_context
def generate(ctx, target, all_envs, assignments, keep_annotations):
    """
    Generate or update an environment file from the distributable.

    Variables with a default or an existing value are kept; the rest are
    prompted for. In non-interactive mode they are read from the process
    environment instead.
    """
    dist = _load(ctx.obj['dist'])
    provided = _parse_assignments(assignments)

    if all_envs:
        targets = targets_for_environments(dist.config)
    elif target:
        targets = [target]
    else:
        raise click.UsageError("target file required (e.g. .env.local) or use --all")

    for target_path in targets:
        _generate_target(ctx, dist, target_path, dict(provided), keep_annotations)


def _generate_target(ctx, dist: Document, target_path: str, values: dict, keep_annotations: bool):
    generator = Generator(dist, target_path, keep_annotations=keep_annotations)
    try:
        generator.load_target()
    except (OSError, UnicodeDecodeError) as e:
        _fail(str(e), EXIT_UNREADABLE)

    for name, value in values.items():
        variable = dist.get_variable(name)
        if variable is None:
            logger.warning("%s is not defined in %s", name, dist.path)
            continue
        outcome = generator.check_value(variable, value)
        if outcome is not None:
            _fail(f"{name}: {outcome.message}", hint=outcome.suggestion)

    unresolved = []
    for variable in generator.variables_to_prompt():
        if variable.name in values:
            continue

        if not ctx.obj['non_interactive']:
            values[variable.name] = ask_value(variable)
            continue

        env_value = os.environ.get(variable.name)
        if env_value is not None and generator.check_value(variable, env_value) is None:
            values[variable.name] = env_value
        elif not variable.annotation.is_optional:
            unresolved.append(variable.name)

    if unresolved:
        err_console.print(f"[red]Error: cannot generate {escape(target_path)} in non-interactive mode[/red]\n")
        err_console.print("The following variables require values:")
        for name in unresolved:
            err_console.print(f"  - {name}")
        err_console.print("\n[dim]Run interactively, pass --set NAME=VALUE, export the variables, "
                          "or add defaults to the distributable.[/dim]")
        sys.exit(EXIT_UNREADABLE)

    variables = generator.merge_variables(values)
    generator.write(variables)

    if not ctx.obj['quiet']:
        console.print(f"[green]✓ Generated {escape(target_path)} with {len(variables)} variables[/green]")


@cli.command()
@click.argument('target')
@click.option('--strict', '-s', is_flag=True, help='Require every variable to have an annotation')
@click.pass_context
def validate(ctx, target, strict):
    """
    Validate an environment file against the distributable annotations.

    Exit codes: 0 valid, 1 validation errors, 2 unreadable file.
    """
    target_doc = _load(target)
    dist = _load(ctx.obj['dist'])

    result = validate_against(dist, target_doc, strict=strict)

    if not ctx.obj['quiet'] or not result.valid:
        _print_result(result, target)

    if not result.valid:
        sys.exit(EXIT_INVALID)


@cli.command(name="inspect")
@click.argument('target')
@click.option('--json', '-j', 'as_json', is_flag=True, help='Output as JSON')
@click.option('--sync', '-s', 'sync', is_flag=True, help='Resolve missing, invalid and extra variables')
@click.pass_context
def inspect_cmd(ctx, target, as_json, sync):
    """
    Compare an environment file with the distributable.

    Reports variables missing from the file, variables unknown to the
    distributable and invalid values.
    """
    target_doc = _load(target)
    dist = _load(ctx.obj['dist'])
    result = inspect_documents(dist, target_doc)

    if sync and result.has_discrepancies():
        _sync(ctx, dist, result, target_doc, target)
        return

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    elif not ctx.obj['quiet']:
        _print_inspection(result)

    if result.has_discrepancies():
        sys.exit(EXIT_INVALID)


def _print_inspection(result):
    console.print(f"[bold]INSPECTION REPORT: {escape(result.target_path)} vs {escape(result.dist_path)}[/bold]\n")

    table = Table(box=box.ROUNDED)
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Status", style="magenta")
    table.add_column("Details")

    for v in result.missing:
        details = ""
        if v.annotation is not None:
            details = f"{v.annotation.prompt_text} [{v.annotation.type.value}]"
        table.add_row(v.name, "✗ Missing", escape(details))
    for v in result.extra:
        table.add_row(v.name, "+ Extra", "not in distributable")
    for outcome in result.invalid:
        table.add_row(outcome.variable, "⚠ Invalid", escape(outcome.message))

    if result.has_discrepancies():
        console.print(table)

    console.print(f"Summary: {len(result.missing)} missing, {len(result.extra)} extra, "
                  f"{len(result.invalid)} invalid, {result.valid_count} valid")


def _sync(ctx, dist: Document, result, target_doc: Document, target_path: str):
    """
    Resolve discrepancies and rewrite the target.

    Missing variables get their default, an empty value when optional, or
    an answer from the user. Interactively, invalid values are asked again
    and each extra variable is kept, removed from the target or added to
    the distributable.
    """
    non_interactive = ctx.obj['non_interactive']
    updates, unresolvable = auto_resolve(result)

    if unresolvable and non_interactive:
        err_console.print("[red]Error: cannot sync in non-interactive mode[/red]\n")
        err_console.print("The following required variables cannot be resolved:")
        for name in unresolvable:
            err_console.print(f"  - {name}")
        sys.exit(EXIT_UNREADABLE)

    removes = set()
    added = []

    if not non_interactive:
        missing = {v.name: v for v in result.missing}
        for name in unresolvable:
            updates[name] = ask_value(missing[name])

        for outcome in result.invalid:
            console.print(f"[yellow]⚠ {escape(outcome.variable)}: {escape(outcome.message)}[/yellow]")
            updates[outcome.variable] = ask_value(dist.get_variable(outcome.variable))

        for v in result.extra:
            action = click.prompt(f"{v.name} is not in the distributable",
                                  default="keep", type=click.Choice(EXTRA_ACTIONS))
            if action == "remove":
                removes.add(v.name)
            elif action == "add":
                added.append(format_variable(Variable(name=v.name)))

    if updates or removes:
        write_lines(target_path, apply_updates(target_doc, updates, removes))
    if added:
        append_lines(ctx.obj['dist'], added)

    if not ctx.obj['quiet']:
        console.print(f"[green]✓ Synced {escape(target_path)}: {len(updates)} set, "
                      f"{len(removes)} removed, {len(added)} added to distributable[/green]")

    if result.invalid and non_interactive:
        err_console.print("[red]Error: invalid values must be fixed interactively[/red]")
        for outcome in result.invalid:
            err_console.print(f"  - {outcome.variable}: {escape(outcome.message)}")
        sys.exit(EXIT_INVALID)


@cli.command()
@click.pass_context
def lint(ctx):
    """
    Check the distributable for malformed annotations and duplicates.
    """
    dist_path = ctx.obj['dist']
    try:
        lines = read_lines(dist_path)
    except (OSError, UnicodeDecodeError) as e:
        _fail(str(e), EXIT_UNREADABLE)

    result = lint_lines(lines)

    if not ctx.obj['quiet'] or not result.valid:
        _print_result(result, dist_path)

    if not result.valid:
        sys.exit(EXIT_INVALID)


def main():
    """Main entry point."""
    cli(obj={})


if __name__ == '__main__':
    main()
