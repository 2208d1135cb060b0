import json
import logging
from pathlib import Path
from typing import Any, Dict, NoReturn, Optional

import click
from rich.console import Console
from rich.logging import RichHandler

from rule_sync.errors import RuleSyncError
from rule_sync.project.repository import ProjectConfig, ProjectRepository
from rule_sync.service import RuleSyncService
from rule_sync.tui.renderers import RuleSyncConsoleUI


def _configure_logging(verbose: bool) -> None:
    logger = logging.getLogger("rule_sync")
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    logger.addHandler(
        RichHandler(console=Console(stderr=True), show_path=False, show_time=verbose)
    )
    logger.setLevel(logging.DEBUG if verbose else logging.ERROR)


def _service_from_obj(obj: Dict[str, Any]) -> RuleSyncService:
    return RuleSyncService(ProjectRepository(obj["project"]))


def _fail(ui: RuleSyncConsoleUI, exc: RuleSyncError) -> NoReturn:
    ui.render_error(exc)
    raise click.exceptions.Exit(1)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "-p",
    "--project",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    show_default=True,
    help="Project root holding the .rule-sync directory.",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, project: Path, verbose: bool) -> None:
    """Pull shared editor rules into a project and resolve them per file."""
    _configure_logging(verbose)
    ctx.obj = {"project": project}


@cli.command(help="Create project config and an empty sync state.")
@click.option("-r", "--remote", required=True, help="Git URL or directory to pull rules from.")
@click.option("--ref", default=None, help="Branch or tag to fetch.")
@click.option("--subdir", default=None, help="Directory inside the remote holding the rules.")
@click.option("--strict", is_flag=True, help="Reject duplicate rule identifiers.")
@click.option(
    "-x",
    "--exclusive-category",
    "exclusive_categories",
    multiple=True,
    help="Category whose rules may not apply to the same file together.",
)
@click.option("--force", is_flag=True, help="Overwrite an existing config.")
@click.pass_obj
def init(
    obj: Dict[str, Any],
    remote: str,
    ref: Optional[str],
    subdir: Optional[str],
    strict: bool,
    exclusive_categories: tuple[str, ...],
    force: bool,
) -> None:
    ui = RuleSyncConsoleUI(Console())
    repository = ProjectRepository(obj["project"])
    if repository.is_initialized() and not force:
        raise click.ClickException(
            f"Project already initialized: {repository.config_path} (use --force)"
        )

    config = ProjectConfig(
        remote=remote,
        ref=ref,
        remote_subdir=subdir,
        strict=strict,
        exclusive_categories=sorted(set(exclusive_categories)),
    )
    try:
        state = repository.init(config)
    except RuleSyncError as exc:
        _fail(ui, exc)
    ui.render_init(state)


@cli.command(help="Pull the remote rules into the synced copy.")
@click.option(
    "--fail-on-warning",
    is_flag=True,
    help="Exit non-zero when local overrides shadow remote updates.",
)
@click.pass_obj
def sync(obj: Dict[str, Any], fail_on_warning: bool) -> None:
    ui = RuleSyncConsoleUI(Console())
    service = _service_from_obj(obj)
    try:
        report = service.sync()
    except RuleSyncError as exc:
        _fail(ui, exc)

    ui.render_sync(report)
    if report.warnings and fail_on_warning:
        raise click.exceptions.Exit(1)


@cli.command("list", help="List effective rules, optionally only those for PATH.")
@click.argument("path", required=False)
@click.pass_obj
def list_rules(obj: Dict[str, Any], path: Optional[str]) -> None:
    ui = RuleSyncConsoleUI(Console())
    service = _service_from_obj(obj)
    try:
        store = service.build_store()
        documents = list(
            store.list(service.relative_path(path) if path is not None else None)
        )
    except RuleSyncError as exc:
        _fail(ui, exc)
    ui.render_documents(documents, store.shadowed())


@cli.command(help="Print the ordered rules that apply to PATH.")
@click.argument("path")
@click.option("--json", "as_json", is_flag=True, help="Emit JSON instead of a table.")
@click.pass_obj
def resolve(obj: Dict[str, Any], path: str, as_json: bool) -> None:
    ui = RuleSyncConsoleUI(Console())
    service = _service_from_obj(obj)
    try:
        rules = service.resolve(path)
    except RuleSyncError as exc:
        if as_json:
            click.echo(json.dumps({"error": exc.as_dict()}, indent=2))
            raise click.exceptions.Exit(1)
        _fail(ui, exc)

    if as_json:
        click.echo(json.dumps([rule.as_dict() for rule in rules], indent=2))
        return
    ui.render_resolved(service.relative_path(path), rules)


@cli.command(help="Show the sync state of the project.")
@click.pass_obj
def status(obj: Dict[str, Any]) -> None:
    ui = RuleSyncConsoleUI(Console())
    service = _service_from_obj(obj)
    try:
        state = service.state()
    except RuleSyncError as exc:
        _fail(ui, exc)
    ui.render_status(state)


@cli.command(help="Delete the sync state and synced copy; overrides are kept.")
@click.confirmation_option(prompt="Remove synced rules and sync state?")
@click.pass_obj
def teardown(obj: Dict[str, Any]) -> None:
    ui = RuleSyncConsoleUI(Console())
    repository = ProjectRepository(obj["project"])
    try:
        removed = repository.teardown()
    except RuleSyncError as exc:
        _fail(ui, exc)
    ui.render_teardown(removed)


def main() -> int:
    try:
        # Non-standalone click returns the exit code of click.exceptions.Exit.
        result = cli(standalone_mode=False)
    except click.exceptions.Abort:
        click.echo("Aborted!", err=True)
        return 1
    except click.ClickException as exc:
        exc.show()
        return 2
    return result if isinstance(result, int) else 0


if __name__ == "__main__":
    raise SystemExit(main())
