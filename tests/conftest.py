"""Shared pytest fixtures for linear-csv-import tests."""

from __future__ import annotations

import logging

import pytest

from linear_csv_import.base_client import LinearClient, LinearClientError
from linear_csv_import.logging_config import LOGGER_NAME
from linear_csv_import.models import CreatedIssue, NamedRecord, Team
from linear_csv_import.parser import IssueRequest

TEAM_ID = "0f8e2c1a-7b3d-4e5f-9a6b-1c2d3e4f5a6b"


class FakeLinearClient(LinearClient):
    """In-memory Linear workspace that records every create call."""

    def __init__(
        self,
        *,
        teams: list[Team] | None = None,
        states: list[NamedRecord] | None = None,
        labels: list[NamedRecord] | None = None,
        fail_titles: set[str] | None = None,
        viewer_error: LinearClientError | None = None,
    ) -> None:
        self.teams = teams if teams is not None else [Team(id=TEAM_ID, key="ENG", name="Engineering")]
        self.states = states or []
        self.labels = labels or []
        self.fail_titles = fail_titles or set()
        self.viewer_error = viewer_error
        self.created: list[IssueRequest] = []
        self.state_queries: list[str] = []

    async def __aenter__(self) -> "FakeLinearClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        return None

    async def viewer(self) -> dict:
        if self.viewer_error is not None:
            raise self.viewer_error
        return {"id": "user-1", "name": "Ada Lovelace"}

    async def list_teams(self) -> list[Team]:
        return self.teams

    async def list_workflow_states(self, team_id: str) -> list[NamedRecord]:
        self.state_queries.append(team_id)
        return self.states

    async def list_labels(self) -> list[NamedRecord]:
        return self.labels

    async def create_issue(self, request: IssueRequest) -> CreatedIssue:
        if request.title in self.fail_titles:
            raise LinearClientError(f"Validation failed for '{request.title}'")
        self.created.append(request)
        number = len(self.created)
        return CreatedIssue(
            id=f"issue-{number}",
            identifier=f"ENG-{number}",
            url=f"https://linear.app/acme/issue/ENG-{number}",
        )


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Undo setup_logging() so caplog keeps seeing package records."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def fake_client() -> FakeLinearClient:
    return FakeLinearClient(
        states=[
            NamedRecord(id="S-todo", name="Todo"),
            NamedRecord(id="S-progress", name="In Progress"),
        ],
        labels=[
            NamedRecord(id="L-bug", name="Bug"),
            NamedRecord(id="L-feature", name="Feature"),
        ],
    )
