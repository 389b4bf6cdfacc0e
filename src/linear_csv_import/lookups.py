"""Resolve human-readable team, state and label names into Linear ids."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from .models import NamedRecord, Team

logger = logging.getLogger(__name__)

NameLookup = dict[str, str]

_UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


class UnresolvedTeamError(LookupError):
    """Raised when a team selection matches neither an id nor a known team."""

    def __init__(self, selection: str, teams: Sequence[Team] = ()) -> None:
        self.selection = selection
        available = ", ".join(team.display for team in teams)
        message = f"Could not resolve a Team ID from selection '{selection}'"
        if available:
            message += f". Available options: {available}"
        super().__init__(message)


@dataclass(slots=True)
class ImportLookups:
    """Case-insensitive name maps used while normalising rows."""

    statuses: NameLookup = field(default_factory=dict)
    labels: NameLookup = field(default_factory=dict)


def build_lookup(records: Iterable[NamedRecord]) -> NameLookup:
    """Map each record's lowercased name to its id.

    Names are expected to be unique within a scope; if two records collide
    after lowercasing, the later one wins.
    """

    lookup: NameLookup = {}
    for record in records:
        key = record.name.lower()
        if key in lookup:
            logger.debug("Duplicate name %r, keeping id %s", record.name, record.id)
        lookup[key] = record.id
    return lookup


def build_lookups(states: Iterable[NamedRecord], labels: Iterable[NamedRecord]) -> ImportLookups:
    return ImportLookups(statuses=build_lookup(states), labels=build_lookup(labels))


def is_uuid(value: str) -> bool:
    return bool(_UUID_PATTERN.match(value))


def resolve_team(selection: str, teams: Sequence[Team]) -> str:
    """Turn a team picker selection into a team id.

    An id-shaped selection is trusted as-is. Anything else is compared
    exactly against each team's name, key and ``[key] name`` display string,
    and the first match in list order wins.

    Raises:
        UnresolvedTeamError: If nothing matches.
    """

    if is_uuid(selection):
        return selection

    logger.warning("Selection %r does not look like a team id, matching by name", selection)
    for team in teams:
        if selection in (team.name, team.key, team.display):
            logger.info("Resolved %r to team id %s", selection, team.id)
            return team.id

    raise UnresolvedTeamError(selection, teams)
