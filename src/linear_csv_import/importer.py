"""Create Linear issues one row at a time and keep score."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from .base_client import LinearClient, LinearClientError
from .parser import IssueRequest

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ImportSuccess:
    title: str
    issue_id: str | None = None
    identifier: str | None = None
    url: str | None = None

    @property
    def link(self) -> str:
        if self.url:
            return self.url
        if self.issue_id:
            return f"ID: {self.issue_id}"
        return "(issue id unavailable)"


@dataclass(slots=True, frozen=True)
class ImportFailure:
    title: str
    error: str


ImportOutcome = ImportSuccess | ImportFailure
OutcomeCallback = Callable[[int, ImportOutcome], None]


@dataclass(slots=True)
class ImportSummary:
    """Per-row outcomes of an import run, in input order."""

    outcomes: list[ImportOutcome] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for outcome in self.outcomes if isinstance(outcome, ImportSuccess))

    @property
    def fail_count(self) -> int:
        return sum(1 for outcome in self.outcomes if isinstance(outcome, ImportFailure))

    @property
    def failures(self) -> list[ImportFailure]:
        return [outcome for outcome in self.outcomes if isinstance(outcome, ImportFailure)]


async def import_issues(
    client: LinearClient,
    requests: Iterable[IssueRequest],
    *,
    on_outcome: OutcomeCallback | None = None,
) -> ImportSummary:
    """Create one issue per request, strictly in order.

    A failed creation is recorded and the loop moves on to the next row;
    one row's failure never stops the batch.

    Args:
        client: Open Linear client
        requests: Normalised rows
        on_outcome: Called with the 1-based row number and outcome of each row

    Returns:
        Summary holding one outcome per request
    """
    summary = ImportSummary()

    for index, request in enumerate(requests, 1):
        for note in request.notes:
            logger.warning("Row %d (%s): %s", index, request.title, note)

        outcome: ImportOutcome
        try:
            issue = await client.create_issue(request)
        except LinearClientError as exc:
            logger.debug("Row %d failed", index, exc_info=True)
            outcome = ImportFailure(title=request.title, error=str(exc))
        except Exception as exc:
            logger.exception("Row %d failed unexpectedly", index)
            outcome = ImportFailure(title=request.title, error=f"{type(exc).__name__}: {exc}")
        else:
            outcome = ImportSuccess(
                title=request.title,
                issue_id=issue.id,
                identifier=issue.identifier,
                url=issue.url,
            )

        summary.outcomes.append(outcome)
        if on_outcome is not None:
            on_outcome(index, outcome)

    logger.info("Import finished: %d succeeded, %d failed", summary.success_count, summary.fail_count)
    return summary
