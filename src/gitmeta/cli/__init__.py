"""
CLI for gitmeta.

Provides the store, update, apply and install commands.
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from gitmeta.core.codec import STORE_ENCODING, STORE_ERRORS
from gitmeta.core.config import GitMetaConfig, load_config
from gitmeta.core.models import parse_field_list
from gitmeta.core.options import Action, RunOptions, build_run_options
from gitmeta.services import (
    ApplyService,
    HookInstaller,
    ServicesContainer,
    StoreService,
    UpdateService,
    create_services,
)

# Initialize Rich Console
console = Console()

app = typer.Typer(
    name="gitmeta",
    help="Store, update and apply file metadata for a git working tree",
    add_completion=False,
)

TARGET_HELP = "Store file, relative to the top level of the working tree"
DRY_RUN_HELP = "Run without writing the store or changing any file"


def configure_logging(config: GitMetaConfig) -> None:
    """Configure the root logger from the logging section."""
    logging.basicConfig(
        level=getattr(logging, config.logging.level.upper(), logging.WARNING),
        format=config.logging.format,
        force=True,
    )


def _echo_raw(line: str) -> None:
    typer.echo(line.encode(STORE_ENCODING, STORE_ERRORS))


def _report(message: str) -> None:
    console.print(message, markup=False, highlight=False)


def _prepare(
    ctx: typer.Context,
    action: Action,
    target: Optional[str],
    fields: Optional[str] = None,
    dry_run: bool = False,
    verbose: bool = False,
    force: bool = False,
) -> tuple[ServicesContainer, RunOptions]:
    """Load configuration, locate the working tree and build run options."""
    config_path = (ctx.obj or {}).get("config_path")
    config = load_config(config_path)
    configure_logging(config)

    services = create_services(config=config)
    requested = tuple(parse_field_list(fields)) if fields else None
    options = build_run_options(
        action,
        root=services.vcs.root,
        target_name=target or config.store.filename,
        fields=requested,
        dry_run=dry_run,
        verbose=verbose,
        force=force,
    )
    return services, options


def _summary_panel(rows: list[tuple[str, str]], title: str, style: str = "green") -> Panel:
    summary = Table.grid(padding=1)
    summary.add_column(style="bold")
    summary.add_column()
    for label, value in rows:
        summary.add_row(label, value)
    return Panel(summary, title=f"[bold {style}]{title}[/bold {style}]", border_style=style, expand=False)


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Configuration file (YAML or JSON)"
    ),
):
    """Keep file metadata of a git working tree in a tracked store file."""
    ctx.obj = {"config_path": config}


@app.command()
def store(
    ctx: typer.Context,
    fields: Optional[str] = typer.Option(
        None, "--fields", "-f", help="Comma-separated fields to record (e.g. mtime,mode)"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", "-n", help=DRY_RUN_HELP),
    target: Optional[str] = typer.Option(None, "--target", "-t", help=TARGET_HELP),
):
    """Store the metadata of every tracked path."""
    try:
        services, options = _prepare(ctx, Action.STORE, target, fields=fields, dry_run=dry_run)
        service = StoreService(
            vcs=services.vcs,
            attributes=services.attributes,
            options=options,
            default_fields=services.config.store.default_fields,
            echo=_echo_raw,
        )
        result = service.run()
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if result.dry_run:
        return
    rows = [
        ("Target:", str(result.target)),
        ("Fields:", ", ".join(result.fields)),
        ("Records:", str(result.records)),
    ]
    if result.skipped:
        rows.append(("Skipped:", f"[yellow]{result.skipped}[/yellow]"))
    console.print(_summary_panel(rows, "Store Complete"))


@app.command()
def update(
    ctx: typer.Context,
    dry_run: bool = typer.Option(False, "--dry-run", "-n", help=DRY_RUN_HELP),
    target: Optional[str] = typer.Option(None, "--target", "-t", help=TARGET_HELP),
):
    """Update the store from the staged changes."""
    try:
        services, options = _prepare(ctx, Action.UPDATE, target, dry_run=dry_run)
        service = UpdateService(
            vcs=services.vcs,
            attributes=services.attributes,
            options=options,
            default_fields=services.config.store.default_fields,
            echo=_echo_raw,
        )
        result = service.run()
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if result.dry_run:
        return
    console.print(
        _summary_panel(
            [
                ("Target:", str(result.target)),
                ("Records:", str(result.records)),
                ("Re-measured:", str(result.remeasured)),
                ("Dropped:", str(result.dropped)),
            ],
            "Update Complete",
        )
    )


@app.command()
def apply(
    ctx: typer.Context,
    fields: Optional[str] = typer.Option(
        None, "--fields", "-f", help="Comma-separated fields to apply (default: those stored)"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", "-n", help=DRY_RUN_HELP),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Report every change"),
    force: bool = typer.Option(False, "--force", help="Apply even if the working tree is dirty"),
    target: Optional[str] = typer.Option(None, "--target", "-t", help=TARGET_HELP),
):
    """Apply the stored metadata to the working tree."""
    try:
        services, options = _prepare(
            ctx,
            Action.APPLY,
            target,
            fields=fields,
            dry_run=dry_run,
            verbose=verbose,
            force=force,
        )
        service = ApplyService(
            vcs=services.vcs,
            attributes=services.attributes,
            options=options,
            default_fields=services.config.store.default_fields,
            report=_report,
        )
        result = service.run()
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if result.noop:
        console.print(f"[yellow]{result.target} does not exist, nothing to apply[/yellow]")
        return

    rows = [
        ("Target:", str(result.target)),
        ("Fields:", ", ".join(result.fields)),
        ("Applied:", str(result.applied)),
        ("Skipped:", str(result.skipped)),
    ]
    if result.warnings:
        rows.append(("Warnings:", f"[yellow]{len(result.warnings)}[/yellow]"))
    title = "Apply Complete (dry run)" if result.dry_run else "Apply Complete"
    console.print(_summary_panel(rows, title, "yellow" if result.warnings else "green"))


@app.command()
def install(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", help="Overwrite existing hooks"),
    target: Optional[str] = typer.Option(None, "--target", "-t", help=TARGET_HELP),
):
    """Install git hooks that keep the store up to date."""
    try:
        services, options = _prepare(ctx, Action.INSTALL, target, force=force)
        written = HookInstaller(services.vcs, options).install()
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    for path in written:
        console.print(f"[green]Created hook[/green] {path}")


if __name__ == "__main__":
    app()
