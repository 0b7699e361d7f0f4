from __future__ import annotations

import json
import logging
from pathlib import Path

import httpx
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .bugzilla_client import BugzillaClient
from .config import AppConfig, load_config
from .errors import BugzillaAPIError
from .models import Bug
from .output import bug_to_dict, write_text_atomic
from .query import BugQueryBuilder
from .sorting import By, last_change_time

app = typer.Typer(no_args_is_help=True, add_completion=False)
console = Console()


def _setup_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _handle_error(error: Exception, *, debug: bool) -> None:
    if debug:
        raise error
    if isinstance(error, BugzillaAPIError):
        console.print(f"[red]{error}[/red]")
    elif isinstance(error, httpx.HTTPError):
        console.print(f"[red]Network error: {error}[/red]")
    elif isinstance(error, json.JSONDecodeError):
        console.print(f"[red]Bugzilla response was not valid JSON: {error}[/red]")
    else:
        console.print(f"[red]{type(error).__name__}: {error}[/red]")
    raise typer.Exit(1)


def _make_client(config: AppConfig) -> BugzillaClient:
    client = BugzillaClient(endpoint=config.endpoint, timeout_s=config.timeout_s)
    if config.username and config.password:
        if not client.login(config.username, config.password):
            raise BugzillaAPIError(f"Cannot log in to Bugzilla as {config.username}")
    return client


def _parse_advanced(raw: str) -> tuple[str, str, str]:
    parts = raw.split(":", 2)
    if len(parts) != 3 or not parts[0] or not parts[1]:
        raise typer.BadParameter(f"Expected FIELD:TYPE:VALUE, got {raw!r}", param_hint="--advanced")
    return parts[0], parts[1], parts[2]


def _print_bugs(bugs: list[Bug]) -> None:
    table = Table(show_lines=False)
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Last change")
    table.add_column("Status")
    table.add_column("Creator")
    table.add_column("Summary")
    table.add_column("Blocks")
    table.add_column("Depends on")
    for bug in bugs:
        table.add_row(
            str(bug.id),
            bug.last_change_time.strftime("%Y-%m-%d %H:%M") if bug.last_change_time else "",
            " ".join(s for s in (bug.status, bug.resolution) if s),
            escape(bug.creator.name) if bug.creator else "",
            escape(bug.summary),
            ", ".join(str(i) for i in bug.blocks),
            ", ".join(str(i) for i in bug.depends_on),
        )
    console.print(table)


def _print_details(bug: Bug) -> None:
    console.print(f"[bold]Bug #{bug.id}[/bold] {escape(bug.summary)}")
    console.print(
        escape(f"  {bug.product} :: {bug.component}  [{bug.status}] {bug.priority} {bug.severity}")
    )
    if bug.assigned_to:
        console.print(f"  Assigned to: {escape(bug.assigned_to.real_name or bug.assigned_to.name)}")
    console.print("  Comments")
    for comment in bug.comments:
        who = escape(comment.creator.name) if comment.creator else "?"
        console.print(f"    #{comment.id} {comment.creation_time} {who}")
    console.print("  History")
    for change_set in bug.history:
        who = escape(change_set.changer.name) if change_set.changer else "?"
        console.print(f"    {change_set.change_time} {who}")
        for change in change_set.changes:
            console.print(
                escape(f"      {change.field_name}: -{change.removed!r} +{change.added!r}")
            )


def _save_raw(path: Path, bugs: list[Bug]) -> None:
    write_text_atomic(
        path,
        json.dumps([bug_to_dict(b) for b in bugs], indent=2, ensure_ascii=False) + "\n",
    )


@app.command()
def search(
    env_file: Path | None = typer.Option(
        None, "--env-file", exists=True, dir_okay=False, readable=True
    ),
    endpoint: str | None = typer.Option(None, "--endpoint", help="Bugzilla REST base URL."),
    ids: list[int] | None = typer.Option(None, "--id", help="Bug id; repeatable."),
    product: str = typer.Option("", "--product"),
    component: str = typer.Option("", "--component"),
    priority: str = typer.Option("", "--priority"),
    severity: str = typer.Option("", "--severity"),
    status: list[str] | None = typer.Option(None, "--status", help="Status; repeatable."),
    fields: list[str] | None = typer.Option(None, "--field", help="Field to include; repeatable."),
    all_fields: bool = typer.Option(False, "--all-fields", help="Request every field."),
    comments: bool = typer.Option(False, "--comments"),
    history: bool = typer.Option(False, "--history"),
    changed_after: str | None = typer.Option(None, "--changed-after", help="YYYY-MM-DD"),
    changed_today: bool = typer.Option(False, "--changed-today"),
    created_today: bool = typer.Option(False, "--created-today"),
    advanced: list[str] | None = typer.Option(
        None, "--advanced", help="FIELD:TYPE:VALUE custom search predicate; repeatable."
    ),
    sort_by_change: bool = typer.Option(
        False, "--sort-by-change", help="Sort by last change time, oldest first."
    ),
    timeout: float | None = typer.Option(None, "--timeout", help="Request timeout in seconds."),
    save_raw: Path | None = typer.Option(
        None, "--save-raw", dir_okay=False, help="Write decoded bugs as JSON to this path."
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Print the request URL; do not contact Bugzilla."
    ),
    debug: bool = typer.Option(False, "--debug", help="Show full traceback on error."),
):
    """Search bugs and print them as a table."""
    _setup_logging(debug)
    try:
        config = load_config(env_file=env_file, endpoint=endpoint, timeout_s=timeout)
        builder: BugQueryBuilder = _make_client(config).get_bugs()
        if all_fields:
            builder.include_all_fields()
        for bug_id in ids or []:
            builder.id(bug_id)
        builder.product(product).component(component).priority(priority).severity(severity)
        builder.status(*(status or []))
        builder.include_fields(*(fields or []))
        if comments:
            builder.include_comments()
        if history:
            builder.include_history()
        if changed_after:
            builder.changed_after(changed_after)
        if changed_today:
            builder.changed_today()
        if created_today:
            builder.created_today()
        for raw in advanced or []:
            builder.advanced(*_parse_advanced(raw))

        if dry_run:
            console.print(builder.url(), markup=False, highlight=False, soft_wrap=True)
            raise typer.Exit(0)

        bugs = builder.execute()
        if sort_by_change:
            By(last_change_time).sort(bugs)

        if save_raw is not None:
            _save_raw(save_raw, bugs)

        _print_bugs(bugs)
        console.print(f"[green]{len(bugs)}[/green] bug(s)")
    except (typer.Exit, typer.BadParameter):
        raise
    except Exception as e:  # noqa: BLE001
        _handle_error(e, debug=debug)


@app.command()
def show(
    bug_ids: list[int] = typer.Argument(..., help="One or more bug ids."),
    env_file: Path | None = typer.Option(
        None, "--env-file", exists=True, dir_okay=False, readable=True
    ),
    endpoint: str | None = typer.Option(None, "--endpoint", help="Bugzilla REST base URL."),
    timeout: float | None = typer.Option(None, "--timeout", help="Request timeout in seconds."),
    debug: bool = typer.Option(False, "--debug", help="Show full traceback on error."),
):
    """Show bugs with their comments and change history."""
    _setup_logging(debug)
    try:
        config = load_config(env_file=env_file, endpoint=endpoint, timeout_s=timeout)
        builder = _make_client(config).get_bugs()
        for bug_id in bug_ids:
            builder.id(bug_id)
        bugs = (
            builder.include_fields(
                "id", "summary", "product", "component", "status", "priority", "severity",
                "creator", "assigned_to", "last_change_time",
            )
            .include_comments()
            .include_history()
            .execute()
        )
        if not bugs:
            console.print("[yellow]No bugs found.[/yellow]")
            raise typer.Exit(1)
        for bug in bugs:
            _print_details(bug)
    except typer.Exit:
        raise
    except Exception as e:  # noqa: BLE001
        _handle_error(e, debug=debug)
