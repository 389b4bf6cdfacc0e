"""Abstract base interface for Linear clients."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from .models import CreatedIssue, NamedRecord, Team
from .parser import IssueRequest

JsonDict = dict[str, Any]


class LinearClientError(RuntimeError):
    """Base error for anything a Linear client fails to do."""


class LinearClient(ABC):
    """Abstract base class for Linear API clients."""

    @abstractmethod
    async def __aenter__(self) -> "LinearClient":
        """Enter async context manager."""
        ...

    @abstractmethod
    async def __aexit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        """Exit async context manager."""
        ...

    @abstractmethod
    async def viewer(self) -> JsonDict:
        """Return the authenticated user; used to verify the API key.

        Raises:
            LinearClientError: If the key is rejected or Linear is unreachable
        """
        ...

    @abstractmethod
    async def list_teams(self) -> list[Team]:
        """List every team visible to the API key."""
        ...

    @abstractmethod
    async def list_workflow_states(self, team_id: str) -> list[NamedRecord]:
        """List the workflow states that belong to ``team_id``."""
        ...

    @abstractmethod
    async def list_labels(self) -> list[NamedRecord]:
        """List the issue labels of the whole workspace."""
        ...

    @abstractmethod
    async def create_issue(self, request: IssueRequest) -> CreatedIssue:
        """Create an issue from a normalised request.

        Args:
            request: Issue payload produced from one CSV row

        Returns:
            Handle on the created issue

        Raises:
            LinearClientError: If issue creation fails
        """
        ...
