#!/usr/bin/env python3
"""
CV Studio command-line interface.

Imports, edits, renders and publishes CVs stored in the local CV database
(CVSTUDIO_DB_PATH). Every command acts on behalf of one owner (--owner,
default CVSTUDIO_OWNER).

Commands:
    import        - Import a CV from a JSON Resume, YAML or CSV file
    export        - Export a CV as json, html or pdf
    list          - List your CVs
    show          - Show one CV
    update        - Replace a CV's content from a file
    delete        - Delete a CV
    set-template  - Switch a CV's template
    publish       - Publish a CV and print its public path
    public        - Show a published CV by token
    versions      - List a CV's version snapshots
    stats         - Show your CV statistics
    templates     - List available templates
    parsers       - List available parsers
    health        - Check the rendering engine

Examples:\n

    manage_cv.py import resume.json                   # Import a JSON Resume

    manage_cv.py export <cv-id> --format pdf          # Render to PDF

    manage_cv.py publish <cv-id>                      # Publish and print the public path
"""

import asyncio
import json
import os
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from typing_extensions import Annotated

from cvstudio.bootstrap import Services, build_services
from cvstudio.exceptions import (
    CVNotFoundError,
    CVStudioError,
    CVValidationError,
    ImportFailedError,
    VersionConflictError,
)
from cvstudio.utils.logger import setup_logger
from cvstudio.utils.timestamp import format_timestamp, now

load_dotenv()
LOGS_PATH = Path(os.getenv("LOGS_PATH", "outs/logs"))
DEFAULT_OWNER = os.getenv("CVSTUDIO_OWNER", "local")
EXPORT_PATH = Path(os.getenv("EXPORT_PATH", "outs/exports"))

app = typer.Typer(
    help="Import, render and publish CVs",
    add_completion=False,
    invoke_without_command=True,
)

OwnerOption = Annotated[
    str,
    typer.Option("--owner", "-o", help="Owner id the command acts for"),
]


@app.callback()
def main(ctx: typer.Context):
    """Show help by default when no command is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def _services(command: str) -> Services:
    setup_logger(
        "cli",
        LOGS_PATH / f"{command}_{now()}",
        extra_provenance={"Command group": command},
        console_level="WARNING",
    )
    return build_services()


def _close(services: Services) -> None:
    asyncio.run(services.close())


def _fail(message: str, details=None) -> None:
    typer.secho(f"Error: {message}", fg=typer.colors.RED, err=True)
    for detail in (details or [])[:10]:
        typer.secho(f"  - {detail}", fg=typer.colors.RED, err=True)
    if details and len(details) > 10:
        typer.echo(f"  ... and {len(details) - 10} more", err=True)
    raise typer.Exit(code=1)


def _print_entity(entity) -> None:
    state = "published" if entity.is_published else "draft"
    typer.echo(f"{entity.id}  v{entity.version}  [{state}]  {entity.template_id:<10} {entity.title}")


@app.command("import")
def import_command(
    source: Annotated[Path, typer.Argument(help="File to import (.json, .yaml, .yml, .csv)")],
    owner: OwnerOption = DEFAULT_OWNER,
    format_name: Annotated[
        Optional[str],
        typer.Option("--format", "-f", help="Source format (default: from the file extension)"),
    ] = None,
    parser_type: Annotated[
        Optional[str],
        typer.Option("--parser", "-p", help="Parser type id (default: auto-detect)"),
    ] = None,
    template_id: Annotated[
        Optional[str], typer.Option("--template", "-t", help="Template for the new CV")
    ] = None,
):
    """
    Import a CV from a file.

    Examples:\n

        $ manage_cv.py import resume.json

        $ manage_cv.py import linkedin_export.csv --template classic
    """
    if not source.exists():
        _fail(f"File not found: {source}")

    services = _services("import")
    try:
        outcome = services.lifecycle.import_from(
            owner,
            source.read_bytes(),
            format_name=format_name,
            source_name=source.name,
            parser_type=parser_type,
            template_id=template_id,
        )
    except ImportFailedError as e:
        _fail(str(e), e.errors)
    except CVValidationError as e:
        _fail(str(e), e.errors)
    except CVStudioError as e:
        _fail(str(e))
    finally:
        _close(services)

    typer.secho(f"✓ Imported {source.name}", fg=typer.colors.GREEN, bold=True)
    _print_entity(outcome.entity)
    typer.echo(f"  Quality: {outcome.quality}/100")
    for warning in outcome.warnings:
        typer.secho(f"  ⚠ {warning}", fg=typer.colors.YELLOW)


@app.command("export")
def export_command(
    cv_id: Annotated[str, typer.Argument(help="CV id")],
    owner: OwnerOption = DEFAULT_OWNER,
    format_name: Annotated[
        str, typer.Option("--format", "-f", help="Output format: json, html or pdf")
    ] = "pdf",
    template_id: Annotated[
        Optional[str], typer.Option("--template", "-t", help="Override the CV's template")
    ] = None,
    theme: Annotated[Optional[str], typer.Option("--theme", help="Color theme")] = None,
    output_dir: Annotated[
        Path, typer.Option("--output-dir", "-d", help="Directory for the exported file")
    ] = EXPORT_PATH,
):
    """
    Export a CV.

    Examples:\n

        $ manage_cv.py export <cv-id>                         # PDF with the CV's template

        $ manage_cv.py export <cv-id> -f html -t tech --theme green
    """
    services = _services("export")

    async def run():
        try:
            return await services.lifecycle.export_as(
                cv_id, owner, format_name, template_id=template_id, theme=theme
            )
        finally:
            await services.close()

    try:
        result = asyncio.run(run())
    except CVNotFoundError:
        _fail(f"CV not found: {cv_id}")
    except CVStudioError as e:
        _fail(str(e))

    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / result.filename
    path.write_bytes(result.content)
    typer.secho(f"✓ Exported {result.format} ({len(result.content)} bytes)", fg=typer.colors.GREEN)
    typer.echo(f"  File: {path}")


@app.command("list")
def list_command(
    owner: OwnerOption = DEFAULT_OWNER,
    limit: Annotated[int, typer.Option("--limit", "-n", min=1, help="Page size")] = 10,
    offset: Annotated[int, typer.Option("--offset", min=0, help="Rows to skip")] = 0,
):
    """List your CVs, most recently updated first."""
    services = _services("list")
    try:
        entities = services.lifecycle.list_for_owner(owner, limit=limit, offset=offset)
    finally:
        _close(services)
    if not entities:
        typer.echo("No CVs found")
        return
    for entity in entities:
        _print_entity(entity)


@app.command("show")
def show_command(
    cv_id: Annotated[str, typer.Argument(help="CV id")],
    owner: OwnerOption = DEFAULT_OWNER,
    as_json: Annotated[bool, typer.Option("--json", help="Print the full entity as JSON")] = False,
):
    """Show one CV."""
    services = _services("show")
    try:
        entity = services.lifecycle.get(cv_id, owner)
    except CVNotFoundError:
        _fail(f"CV not found: {cv_id}")
    finally:
        _close(services)

    if as_json:
        typer.echo(json.dumps(entity.to_dict(), indent=2, ensure_ascii=False))
        return

    typer.secho(f"\n{entity.title}", fg=typer.colors.BLUE, bold=True)
    typer.echo(f"  Id: {entity.id}")
    typer.echo(f"  Version: {entity.version}")
    typer.echo(f"  Template: {entity.template_id}")
    typer.echo(f"  State: {entity.state.value}")
    typer.echo(f"  Updated: {format_timestamp(entity.updated_at)}")
    typer.echo(f"  Sections: {', '.join(entity.record.non_empty_sections()) or '(none)'}")
    typer.echo("")


@app.command("update")
def update_command(
    cv_id: Annotated[str, typer.Argument(help="CV id")],
    source: Annotated[Path, typer.Argument(help="JSON file with the new CV record")],
    owner: OwnerOption = DEFAULT_OWNER,
    expected_version: Annotated[
        Optional[int],
        typer.Option("--expected-version", help="Fail if the stored version differs"),
    ] = None,
):
    """Replace a CV's content with a JSON record."""
    if not source.exists():
        _fail(f"File not found: {source}")
    try:
        record = json.loads(source.read_text())
    except json.JSONDecodeError as e:
        _fail(f"Invalid JSON format: {e}")

    services = _services("update")
    try:
        entity = services.lifecycle.update(cv_id, owner, record, expected_version=expected_version)
    except CVValidationError as e:
        _fail(str(e), e.errors)
    except VersionConflictError as e:
        _fail(f"{e}. Reload the CV and retry.")
    except CVNotFoundError:
        _fail(f"CV not found: {cv_id}")
    finally:
        _close(services)

    typer.secho(f"✓ Updated to version {entity.version}", fg=typer.colors.GREEN)


@app.command("delete")
def delete_command(
    cv_id: Annotated[str, typer.Argument(help="CV id")],
    owner: OwnerOption = DEFAULT_OWNER,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
):
    """Delete a CV and its version history."""
    if not yes:
        typer.confirm(f"Delete CV {cv_id}?", abort=True)

    services = _services("delete")
    try:
        services.lifecycle.delete(cv_id, owner)
    except CVNotFoundError:
        _fail(f"CV not found: {cv_id}")
    finally:
        _close(services)
    typer.secho(f"✓ Deleted {cv_id}", fg=typer.colors.GREEN)


@app.command("set-template")
def set_template_command(
    cv_id: Annotated[str, typer.Argument(help="CV id")],
    template_id: Annotated[str, typer.Argument(help="Template id")],
    owner: OwnerOption = DEFAULT_OWNER,
):
    """Switch a CV's template (the version is unchanged)."""
    services = _services("set-template")
    try:
        entity = services.lifecycle.change_template(cv_id, owner, template_id)
    except CVNotFoundError:
        _fail(f"CV not found: {cv_id}")
    except CVStudioError as e:
        _fail(str(e))
    finally:
        _close(services)
    typer.secho(f"✓ Template set to {entity.template_id}", fg=typer.colors.GREEN)


@app.command("publish")
def publish_command(
    cv_id: Annotated[str, typer.Argument(help="CV id")],
    owner: OwnerOption = DEFAULT_OWNER,
):
    """Publish a CV. Publishing again replaces the previous public link."""
    services = _services("publish")
    try:
        result = services.lifecycle.publish(cv_id, owner)
    except CVNotFoundError:
        _fail(f"CV not found: {cv_id}")
    finally:
        _close(services)
    typer.secho("✓ Published", fg=typer.colors.GREEN, bold=True)
    typer.echo(f"  Public path: {result.public_path}")


@app.command("public")
def public_command(token: Annotated[str, typer.Argument(help="Public token")]):
    """Show a published CV by its public token."""
    services = _services("public")
    try:
        entity = services.lifecycle.get_public(token)
    except CVNotFoundError:
        _fail("CV not found")
    finally:
        _close(services)
    typer.echo(json.dumps(entity.record.to_dict(), indent=2, ensure_ascii=False))


@app.command("versions")
def versions_command(
    cv_id: Annotated[str, typer.Argument(help="CV id")],
    owner: OwnerOption = DEFAULT_OWNER,
):
    """List a CV's version snapshots."""
    services = _services("versions")
    try:
        versions = services.lifecycle.list_versions(cv_id, owner)
    except CVNotFoundError:
        _fail(f"CV not found: {cv_id}")
    finally:
        _close(services)
    for snapshot in versions:
        typer.echo(f"v{snapshot.version:<4} {format_timestamp(snapshot.created_at)}  {snapshot.title}")


@app.command("stats")
def stats_command(owner: OwnerOption = DEFAULT_OWNER):
    """Show CV statistics for an owner."""
    services = _services("stats")
    try:
        stats = services.lifecycle.get_statistics(owner)
    finally:
        _close(services)

    typer.secho(f"\nStatistics for {owner}", fg=typer.colors.BLUE, bold=True)
    typer.echo(f"  Total CVs: {stats['totalCVs']}")
    typer.echo(f"  Published: {stats['publishedCVs']}")
    typer.echo(f"  Recent activity: {stats['recentActivity']} events")
    typer.echo(f"  Average import quality: {stats['averageQuality']}/100")
    typer.echo(f"  Most used template: {stats['mostUsedTemplate'] or '-'}")
    if stats["recentEvents"]:
        typer.echo("  Latest events:")
        for event in reversed(stats["recentEvents"]):
            when = format_timestamp(event["timestamp"], relative=True)
            typer.echo(f"    {when:<10} {event['eventType']:<16} {event['cvId']}")
    typer.echo("")


@app.command("templates")
def templates_command(
    category: Annotated[
        Optional[str], typer.Option("--category", "-c", help="Only this category")
    ] = None,
):
    """List available templates."""
    services = _services("templates")
    try:
        templates = services.lifecycle.list_templates()
    finally:
        _close(services)
    for meta in templates:
        if category and meta["category"] != category:
            continue
        typer.echo(f"{meta['id']:<10} {meta['category']:<14} {meta['description']}")


@app.command("parsers")
def parsers_command():
    """List available parsers and the formats they read."""
    services = _services("parsers")
    try:
        parsers = services.lifecycle.list_parsers()
    finally:
        _close(services)
    for meta in parsers:
        typer.echo(f"{meta['type']:<12} {', '.join(meta['supportedFormats']):<10} {meta['description']}")


@app.command("health")
def health_command(
    start_engine: Annotated[
        bool, typer.Option("--start-engine", help="Start the rendering engine before checking")
    ] = False,
):
    """Check the rendering pipeline."""
    services = _services("health")

    async def run():
        try:
            return await services.pipeline.health_check(start_engine=start_engine)
        finally:
            await services.close()

    report = asyncio.run(run())
    color = typer.colors.GREEN if report["healthy"] else typer.colors.YELLOW
    typer.secho(f"Healthy: {report['healthy']}", fg=color, bold=True)
    typer.echo(f"  Engine alive: {report['engineAlive']}")
    typer.echo(f"  Templates: {report['templates']}")
    typer.echo(f"  Timeout: {report['timeoutS']:g}s")
    if report["error"]:
        typer.secho(f"  Error: {report['error']}", fg=typer.colors.RED)
    raise typer.Exit(code=0 if report["healthy"] else 1)


if __name__ == "__main__":
    app()
