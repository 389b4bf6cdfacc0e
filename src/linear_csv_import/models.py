"""Linear records returned by workspace queries and issue creation."""

from __future__ import annotations

from pydantic import BaseModel


class NamedRecord(BaseModel):
    """A workflow state or label: anything addressable by a display name."""

    id: str
    name: str


class Team(NamedRecord):
    """A Linear team, which owns issues and its own workflow states."""

    key: str

    @property
    def display(self) -> str:
        """Label shown in the team picker, e.g. ``[ENG] Engineering``."""
        return f"[{self.key}] {self.name}"


class CreatedIssue(BaseModel):
    """Handle on an issue returned by ``issueCreate``.

    Every field stays ``None`` when Linear reports success but does not
    return the issue node.
    """

    id: str | None = None
    identifier: str | None = None
    url: str | None = None
