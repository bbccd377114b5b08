"""Form schema commands: check, validate and rules."""

import json
from pathlib import Path

import click

from formforge.config import EngineSettings
from formforge.schema.loader import SchemaLoadError, load_schema, read_document
from formforge.schema.validator import check_schema_file
from formforge.validation.describe import describe_rules
from formforge.validation.form import validate_all


def _load(schema_path: Path):
    try:
        return load_schema(schema_path)
    except (OSError, SchemaLoadError) as e:
        click.echo(click.style(f"Cannot load schema: {e}", fg="red"), err=True)
        raise SystemExit(1)


@click.command()
@click.argument("schema_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--strict",
    is_flag=True,
    default=False,
    help="Treat warnings as errors.",
)
def check(schema_path: Path, strict: bool):
    """Check a form schema file for structural and semantic problems."""
    issues = check_schema_file(schema_path, strict=strict)

    errors = [i for i in issues if i.severity == "error"]
    warnings = [i for i in issues if i.severity == "warning"]

    for issue in issues:
        colour = "red" if issue.severity == "error" else "yellow"
        click.echo(click.style(str(issue), fg=colour))

    if errors:
        click.echo(
            click.style(
                f"\n{len(errors)} error(s) found"
                + (f", {len(warnings)} warning(s)" if warnings else ""),
                fg="red",
                bold=True,
            )
        )
        raise SystemExit(1)

    if warnings:
        click.echo(click.style(f"{len(warnings)} warning(s) found.", fg="yellow"))

    click.echo(click.style("Schema is valid.", fg="green", bold=True))


@click.command()
@click.argument("schema_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("data_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--json",
    "as_json",
    is_flag=True,
    default=False,
    help="Print errors as JSON.",
)
@click.pass_obj
def validate(settings: EngineSettings | None, schema_path: Path, data_path: Path, as_json: bool):
    """Validate form values (YAML or JSON) against a schema."""
    schema = _load(schema_path)
    try:
        values = read_document(data_path)
    except (OSError, SchemaLoadError) as e:
        click.echo(click.style(f"Cannot load values: {e}", fg="red"), err=True)
        raise SystemExit(1)
    if values is None:
        values = {}
    if not isinstance(values, dict):
        click.echo(click.style("Form values must be a mapping", fg="red"), err=True)
        raise SystemExit(1)

    errors = validate_all(schema, values, settings)

    if as_json:
        click.echo(json.dumps([e.to_dict() for e in errors], indent=2))
    else:
        for error in errors:
            click.echo(click.style(f"{error.field}: {error.message} ({error.type.value})", fg="red"))

    if errors:
        if not as_json:
            click.echo(click.style(f"\n{len(errors)} invalid field(s)", fg="red", bold=True))
        raise SystemExit(1)

    if not as_json:
        click.echo(click.style("All values are valid.", fg="green", bold=True))


@click.command()
@click.argument("schema_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def rules(schema_path: Path):
    """List the validation rules of every field."""
    schema = _load(schema_path)

    for section in schema.sections:
        click.echo(click.style(section.title, bold=True))
        for f in section.fields:
            click.echo(f"  {f.name} ({f.type.value})")
            for description in describe_rules(f):
                click.echo(f"    - {description}")
