"""Command-line interface for the Linear CSV importer."""

from __future__ import annotations

from pathlib import Path
from typing import Any, NoReturn, Optional

import anyio
import typer
from rich import print_json

from .base_client import LinearClient, LinearClientError
from .graphql_client import LinearGraphQLClient
from .importer import ImportOutcome, ImportSuccess, ImportSummary, import_issues
from .logging_config import setup_logging
from .lookups import UnresolvedTeamError, build_lookups, resolve_team
from .models import Team
from .parser import find_csv_files, normalize_row, read_csv_rows
from .settings import API_KEY_PREFIX, LinearAPIConfig, is_api_key, is_missing_token

app = typer.Typer(help="Import issues into Linear from a CSV file.")


def _fail(message: str) -> NoReturn:
    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


def _choose(message: str, choices: list[str]) -> int:
    """Show a numbered list and return the 0-based index the user typed."""
    for number, choice in enumerate(choices, 1):
        typer.echo(f"  {number}) {choice}")

    while True:
        number = typer.prompt(message, type=int)
        if 1 <= number <= len(choices):
            return number - 1
        typer.secho(f"Enter a number between 1 and {len(choices)}.", fg=typer.colors.YELLOW)


def _prompt_api_key() -> str:
    while True:
        api_key = typer.prompt("Enter your Linear API Key", hide_input=True).strip()
        if is_api_key(api_key):
            return api_key
        typer.secho(
            f"Invalid key format. Must start with '{API_KEY_PREFIX}'",
            fg=typer.colors.YELLOW,
        )


def _load_config(
    api_url: Optional[str], token: Optional[str], token_path: Optional[Path]
) -> LinearAPIConfig:
    config_kwargs: dict[str, Any] = {}
    if api_url is not None:
        config_kwargs["api_url"] = api_url
    if token is not None:
        config_kwargs["access_token"] = token
    if token_path is not None:
        config_kwargs["token_path"] = token_path

    try:
        return LinearAPIConfig(**config_kwargs)
    except ValueError as exc:
        # Prompt only when no key was configured anywhere
        if not is_missing_token(exc):
            _fail(f"Failed to load API configuration: {exc}")

    config_kwargs["access_token"] = _prompt_api_key()
    try:
        return LinearAPIConfig(**config_kwargs)
    except ValueError as exc:
        _fail(f"Failed to load API configuration: {exc}")


def _choose_csv_file(input_file: Optional[Path], search_root: Path) -> Path:
    if input_file is not None:
        return input_file

    typer.echo("\nScanning for CSV files...")
    csv_files = find_csv_files(search_root)
    if not csv_files:
        _fail("No CSV files found.")

    index = _choose(
        "Select the CSV file to import (type the number)",
        [str(path) for path in csv_files],
    )
    return search_root / csv_files[index]


def _choose_team(team_option: Optional[str], teams: list[Team]) -> str:
    if team_option is not None:
        selection = team_option
    else:
        index = _choose(
            "Import issues into which team? (type the number)",
            [team.display for team in teams],
        )
        selection = teams[index].id

    try:
        return resolve_team(selection, teams)
    except UnresolvedTeamError as exc:
        _fail(f"Critical Error: {exc}")


def _report_outcome(index: int, outcome: ImportOutcome) -> None:
    if isinstance(outcome, ImportSuccess):
        created = f"Created {outcome.identifier}" if outcome.identifier else "Created"
        typer.secho(f'  ✓ [{index}] {created}: "{outcome.title}" -> {outcome.link}', fg=typer.colors.GREEN)
    else:
        typer.secho(
            f'  ✗ [{index}] Failed: "{outcome.title}" - {outcome.error}',
            fg=typer.colors.RED,
            err=True,
        )


def _build_client(config: LinearAPIConfig) -> LinearClient:
    assert config.access_token, "Token should be validated by config"
    return LinearGraphQLClient(
        api_url=config.api_url,
        access_token=config.access_token,
        http_timeout=config.http_timeout,
    )


@app.command()
def run(
    input_file: Optional[Path] = typer.Option(
        None,
        "--input",
        "-i",
        exists=True,
        dir_okay=False,
        readable=True,
        help="Path to the CSV file. Prompts with the CSV files found under --search-root when omitted.",
    ),
    search_root: Path = typer.Option(
        Path("."),
        "--search-root",
        exists=True,
        file_okay=False,
        help="Directory scanned for CSV files when --input is not given.",
    ),
    team: Optional[str] = typer.Option(
        None,
        "--team",
        "-t",
        help="Team id, key, name or '[KEY] Name'. Prompts when omitted.",
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
    dry_run: bool = typer.Option(False, help="Only parse and display the issue payloads."),
    delimiter: str = typer.Option(",", help="CSV delimiter character (default: comma)."),
    api_url: Optional[str] = typer.Option(
        None,
        "--api-url",
        envvar="LINEAR_API_API_URL",
        help="Override the Linear GraphQL URL.",
    ),
    token: Optional[str] = typer.Option(
        None,
        "--token",
        envvar="LINEAR_API_ACCESS_TOKEN",
        help="Linear personal API key.",
    ),
    token_path: Optional[Path] = typer.Option(
        None,
        "--token-path",
        envvar="LINEAR_API_TOKEN_PATH",
        exists=True,
        dir_okay=False,
        readable=True,
        resolve_path=True,
        help="Path to file containing the API key.",
    ),
    log_level: str = typer.Option("WARNING", help="DEBUG, INFO, WARNING or ERROR."),
    log_file: Optional[Path] = typer.Option(None, help="Also write logs to this file."),
) -> None:
    """Import issues from a CSV file into a Linear team."""

    setup_logging(log_level, str(log_file) if log_file else None)
    typer.echo("Starting Linear CSV importer...\n")

    config = _load_config(api_url, token, token_path)

    async def _run_import() -> ImportSummary | None:
        async with _build_client(config) as client:
            try:
                viewer = await client.viewer()
            except LinearClientError as exc:
                _fail(f"Failed to connect. Check your API Key. ({exc})")
            typer.secho(f"Connected as: {viewer.get('name', 'unknown')}", fg=typer.colors.GREEN)

            csv_path = _choose_csv_file(input_file, search_root)

            typer.echo("\nFetching teams...")
            try:
                teams = await client.list_teams()
            except LinearClientError as exc:
                _fail(f"Failed to fetch teams: {exc}")
            if not teams:
                _fail("No teams found in this Linear workspace.")

            team_id = _choose_team(team, teams)
            typer.echo(f"Using Team ID: {team_id}")

            typer.echo("\nFetching workflow states & labels...")
            try:
                states = await client.list_workflow_states(team_id)
                labels = await client.list_labels()
            except LinearClientError as exc:
                _fail(f"Failed to fetch workflow states and labels: {exc}")
            lookups = build_lookups(states, labels)
            typer.echo(
                f"  Mapped {len(lookups.statuses)} statuses and {len(lookups.labels)} labels."
            )

            if not dry_run and not yes:
                if not typer.confirm(f'Ready to import from "{csv_path}"?', default=False):
                    return None

            try:
                rows = read_csv_rows(csv_path.read_text(encoding="utf-8-sig"), delimiter=delimiter)
            except (OSError, UnicodeDecodeError, ValueError) as exc:
                _fail(f"CSV parsing error: {exc}")

            requests = [normalize_row(row, lookups, team_id) for row in rows]

            if dry_run:
                typer.echo(f"\nDry run - {len(requests)} issue(s) parsed:")
                for i, request in enumerate(requests, 1):
                    typer.echo(f"\n{i}. {request.title}")
                    print_json(data=request.as_input())
                    for note in request.notes:
                        typer.secho(f"   ! {note}", fg=typer.colors.YELLOW)
                return None

            typer.echo(f"\nImporting {len(requests)} rows...")
            return await import_issues(client, requests, on_outcome=_report_outcome)

    summary = anyio.run(_run_import)
    if summary is None:
        raise typer.Exit(code=0)

    # Summary
    typer.echo(f"\n{'=' * 60}")
    typer.echo(f"Done! Success: {summary.success_count}, Failed: {summary.fail_count}")

    if summary.failures:
        typer.echo(f"\n{'=' * 60}")
        typer.echo("Failed issues:")
        for failure in summary.failures:
            typer.secho(f"  • {failure.title}: {failure.error}", fg=typer.colors.RED)
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
