"""Linear CSV importer package."""

from .importer import ImportSummary, import_issues
from .lookups import UnresolvedTeamError, build_lookup, resolve_team
from .parser import IssueRequest, normalize_row, read_csv_rows
from .settings import LinearAPIConfig

__all__ = [
    "ImportSummary",
    "IssueRequest",
    "LinearAPIConfig",
    "UnresolvedTeamError",
    "build_lookup",
    "import_issues",
    "normalize_row",
    "read_csv_rows",
    "resolve_team",
]
