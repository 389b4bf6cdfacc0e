from pathlib import Path

import pytest
from conftest import TEAM_ID, FakeLinearClient
from typer.testing import CliRunner

from linear_csv_import import cli
from linear_csv_import.base_client import LinearClientError

runner = CliRunner()

CSV_TEXT = (
    "Title,Description,Priority,Estimate,Status,Labels\n"
    "Fix login bug,Users get logged out,1,3,Todo,\"bug, urgent\"\n"
    ",,,,Unknown,\n"
)


@pytest.fixture
def csv_file(tmp_path: Path) -> Path:
    path = tmp_path / "issues.csv"
    path.write_text(CSV_TEXT, encoding="utf-8")
    return path


@pytest.fixture
def use_client(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    # Keep a developer's .env and exported key out of the run
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("LINEAR_API_ACCESS_TOKEN", raising=False)
    monkeypatch.delenv("LINEAR_API_TOKEN_PATH", raising=False)

    def _use(client: FakeLinearClient) -> FakeLinearClient:
        monkeypatch.setattr(cli, "_build_client", lambda config: client)
        return client

    return _use


def test_imports_rows_with_options(use_client, fake_client: FakeLinearClient, csv_file: Path) -> None:
    use_client(fake_client)

    result = runner.invoke(
        cli.app,
        ["--token", "lin_api_test", "--input", str(csv_file), "--team", "ENG", "--yes"],
    )

    assert result.exit_code == 0, result.output
    assert "Connected as: Ada Lovelace" in result.output
    assert "Mapped 2 statuses and 2 labels." in result.output
    assert "Done! Success: 2, Failed: 0" in result.output
    assert fake_client.state_queries == [TEAM_ID]

    first, second = fake_client.created
    assert first.as_input() == {
        "teamId": TEAM_ID,
        "title": "Fix login bug",
        "description": "Users get logged out",
        "priority": 1,
        "estimate": 3,
        "stateId": "S-todo",
        "labelIds": ["L-bug"],
    }
    assert second.title == "Untitled Issue"
    assert second.state_id is None


def test_failed_row_exits_non_zero(use_client, fake_client: FakeLinearClient, csv_file: Path) -> None:
    fake_client.fail_titles = {"Fix login bug"}
    use_client(fake_client)

    result = runner.invoke(
        cli.app,
        ["--token", "lin_api_test", "--input", str(csv_file), "--team", "ENG", "--yes"],
    )

    assert result.exit_code == 1
    assert "Done! Success: 1, Failed: 1" in result.output
    assert "Validation failed for 'Fix login bug'" in result.output


def test_interactive_selection(use_client, fake_client: FakeLinearClient, csv_file: Path, tmp_path: Path) -> None:
    use_client(fake_client)

    result = runner.invoke(
        cli.app,
        ["--search-root", str(tmp_path)],
        input="not-a-key\nlin_api_prompted\n1\n1\ny\n",
    )

    assert result.exit_code == 0, result.output
    assert "Invalid key format" in result.output
    assert "1) issues.csv" in result.output
    assert "1) [ENG] Engineering" in result.output
    assert len(fake_client.created) == 2


def test_declining_confirmation_creates_nothing(
    use_client, fake_client: FakeLinearClient, csv_file: Path
) -> None:
    use_client(fake_client)

    result = runner.invoke(
        cli.app,
        ["--token", "lin_api_test", "--input", str(csv_file), "--team", "ENG"],
        input="n\n",
    )

    assert result.exit_code == 0
    assert fake_client.created == []


def test_dry_run_prints_payloads(use_client, fake_client: FakeLinearClient, csv_file: Path) -> None:
    use_client(fake_client)

    result = runner.invoke(
        cli.app,
        ["--token", "lin_api_test", "--input", str(csv_file), "--team", "ENG", "--dry-run"],
    )

    assert result.exit_code == 0, result.output
    assert '"stateId": "S-todo"' in result.output
    assert "Unknown label 'urgent'" in result.output
    assert fake_client.created == []


def test_unresolved_team_is_fatal(use_client, fake_client: FakeLinearClient, csv_file: Path) -> None:
    use_client(fake_client)

    result = runner.invoke(
        cli.app,
        ["--token", "lin_api_test", "--input", str(csv_file), "--team", "Marketing", "--yes"],
    )

    assert result.exit_code == 1
    assert "Could not resolve a Team ID" in result.output
    assert fake_client.created == []


def test_no_teams_is_fatal(use_client, csv_file: Path) -> None:
    use_client(FakeLinearClient(teams=[]))

    result = runner.invoke(cli.app, ["--token", "lin_api_test", "--input", str(csv_file)])

    assert result.exit_code == 1
    assert "No teams found" in result.output


def test_no_csv_files_is_fatal(use_client, fake_client: FakeLinearClient, tmp_path: Path) -> None:
    use_client(fake_client)
    empty = tmp_path / "empty"
    empty.mkdir()

    result = runner.invoke(cli.app, ["--token", "lin_api_test", "--search-root", str(empty)])

    assert result.exit_code == 1
    assert "No CSV files found." in result.output


def test_connection_failure_is_fatal(use_client, csv_file: Path) -> None:
    use_client(FakeLinearClient(viewer_error=LinearClientError("HTTP 401: Unauthorized")))

    result = runner.invoke(cli.app, ["--token", "lin_api_test", "--input", str(csv_file)])

    assert result.exit_code == 1
    assert "Failed to connect" in result.output


def test_malformed_token_option_is_fatal(use_client, fake_client: FakeLinearClient, csv_file: Path) -> None:
    use_client(fake_client)

    result = runner.invoke(cli.app, ["--token", "nope", "--input", str(csv_file)])

    assert result.exit_code == 1
    assert "Failed to load API configuration" in result.output


def test_reports_issue_identifier(use_client, fake_client: FakeLinearClient, csv_file: Path) -> None:
    use_client(fake_client)

    result = runner.invoke(
        cli.app,
        ["--token", "lin_api_test", "--input", str(csv_file), "--team", "ENG", "--yes"],
    )

    assert result.exit_code == 0, result.output
    assert 'Created ENG-1: "Fix login bug" -> https://linear.app/acme/issue/ENG-1' in result.output


def test_excel_utf8_export_keeps_titles(use_client, fake_client: FakeLinearClient, tmp_path: Path) -> None:
    use_client(fake_client)
    path = tmp_path / "excel.csv"
    path.write_text("Title,Status\nFix login bug,Todo\n", encoding="utf-8-sig")

    result = runner.invoke(
        cli.app,
        ["--token", "lin_api_test", "--input", str(path), "--team", "ENG", "--yes"],
    )

    assert result.exit_code == 0, result.output
    assert [request.title for request in fake_client.created] == ["Fix login bug"]
    assert fake_client.created[0].state_id == "S-todo"


def test_invalid_setting_fails_without_prompting_for_key(
    use_client, fake_client: FakeLinearClient, csv_file: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    use_client(fake_client)
    monkeypatch.setenv("LINEAR_API_HTTP_TIMEOUT", "soon")

    result = runner.invoke(cli.app, ["--input", str(csv_file)], input="lin_api_prompted\n")

    assert result.exit_code == 1
    assert "Failed to load API configuration" in result.output
    assert "Enter your Linear API Key" not in result.output
