"""Turn CSV rows into structured Linear issue-creation requests."""

from __future__ import annotations

import csv
import logging
import re
from io import StringIO
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .lookups import ImportLookups

logger = logging.getLogger(__name__)

RawRow = dict[str, str]

DEFAULT_TITLE = "Untitled Issue"

_COLUMNS = ("Title", "Description", "Priority", "Estimate", "Status", "Labels")
_CANONICAL_COLUMNS = {name.lower(): name for name in _COLUMNS}
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_SKIPPED_DIRS = {"node_modules"}


class IssueRequest(BaseModel):
    """One normalised row, shaped like Linear's ``IssueCreateInput``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    team_id: str
    title: str = DEFAULT_TITLE
    description: str = ""
    priority: int = 0
    estimate: int | None = None
    state_id: str | None = None
    label_ids: list[str] | None = None
    notes: list[str] = Field(default_factory=list, exclude=True)

    @field_validator("team_id", "title")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Field cannot be empty")
        return value

    def as_input(self) -> dict[str, Any]:
        """Return the GraphQL input payload, omitting every absent field."""
        return self.model_dump(by_alias=True, exclude_none=True)


def parse_leading_int(value: str) -> int | None:
    """Parse the integer prefix of ``value`` (``"2 - High"`` gives 2)."""
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else None


def normalize_row(row: RawRow, lookups: ImportLookups, team_id: str) -> IssueRequest:
    """Map one CSV record onto an :class:`IssueRequest`.

    Malformed values never raise: unparsable numbers fall back to their
    defaults and unknown status or label names are dropped. Each such
    degradation is recorded in ``notes``.
    """

    notes: list[str] = []

    title = (row.get("Title") or "").strip() or DEFAULT_TITLE
    description = row.get("Description") or ""

    priority = 0
    raw_priority = row.get("Priority")
    if raw_priority:
        parsed = parse_leading_int(raw_priority)
        if parsed is None:
            notes.append(f"Priority '{raw_priority}' is not a number, using 0")
        else:
            priority = parsed

    estimate = None
    raw_estimate = row.get("Estimate")
    if raw_estimate:
        estimate = parse_leading_int(raw_estimate)
        if estimate is None:
            notes.append(f"Estimate '{raw_estimate}' is not a number, leaving it unset")

    state_id = None
    raw_status = row.get("Status")
    if raw_status:
        state_id = lookups.statuses.get(raw_status.strip().lower())
        if state_id is None:
            notes.append(f"Unknown status '{raw_status.strip()}'")

    label_ids: list[str] = []
    raw_labels = row.get("Labels")
    if raw_labels:
        for name in (token.strip().lower() for token in raw_labels.split(",")):
            if not name:
                continue
            label_id = lookups.labels.get(name)
            if label_id is None:
                notes.append(f"Unknown label '{name}'")
            else:
                label_ids.append(label_id)

    return IssueRequest(
        team_id=team_id,
        title=title,
        description=description,
        priority=priority,
        estimate=estimate,
        state_id=state_id,
        label_ids=label_ids or None,
        notes=notes,
    )


def read_csv_rows(csv_text: str, delimiter: str = ",") -> list[RawRow]:
    """Parse CSV input into raw rows keyed by canonical column names.

    Known headers (Title, Description, Priority, Estimate, Status, Labels)
    are matched case-insensitively and ignoring surrounding whitespace.
    Other columns are passed through untouched. Completely blank rows are
    skipped.

    Raises:
        ValueError: If the input is empty or has no header row
    """
    # Excel's "CSV UTF-8" export starts with a byte order mark
    csv_text = csv_text.lstrip("\ufeff")
    if not csv_text.strip():
        raise ValueError("CSV input is empty")

    reader = csv.DictReader(StringIO(csv_text), delimiter=delimiter)

    if not reader.fieldnames:
        raise ValueError("CSV has no header row")

    if "title" not in {name.strip().lower() for name in reader.fieldnames if name}:
        logger.warning("CSV has no Title column, every issue will be '%s'", DEFAULT_TITLE)

    rows: list[RawRow] = []
    for record in reader:
        # DictReader files surplus cells under a None key and fills short rows with None
        row = {
            _CANONICAL_COLUMNS.get(name.strip().lower(), name): value or ""
            for name, value in record.items()
            if isinstance(name, str)
        }
        if not any(value.strip() for value in row.values()):
            continue
        rows.append(row)

    return rows


def find_csv_files(root: Path) -> list[Path]:
    """Recursively list CSV files under ``root``, relative to it.

    ``node_modules`` and hidden files or directories are skipped.
    """
    found: list[Path] = []
    for path in root.rglob("*.csv"):
        relative = path.relative_to(root)
        if any(part in _SKIPPED_DIRS or part.startswith(".") for part in relative.parts):
            continue
        if path.is_file():
            found.append(relative)
    return sorted(found)
