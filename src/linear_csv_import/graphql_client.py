"""Linear GraphQL API client implementation."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from .base_client import LinearClient, LinearClientError
from .models import CreatedIssue, NamedRecord, Team
from .parser import IssueRequest

logger = logging.getLogger(__name__)

JsonDict = dict[str, Any]

PAGE_SIZE = 100


class LinearGraphQLError(LinearClientError):
    """Domain-specific error for GraphQL API failures."""


class LinearAuthenticationError(LinearGraphQLError):
    """Raised when Linear rejects the API key (401/403)."""


class LinearGraphQLClient(LinearClient):
    """Direct GraphQL API client for Linear."""

    def __init__(
        self,
        api_url: str,
        access_token: str,
        *,
        http_timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_url = api_url
        self.access_token = access_token
        self.http_timeout = http_timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

        # Simple caches to avoid duplicate lookups within a single CLI invocation
        self._teams_cache: list[Team] | None = None
        self._states_cache: dict[str, list[NamedRecord]] = {}

    async def __aenter__(self) -> "LinearGraphQLClient":
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.http_timeout),
            headers={
                "Authorization": self.access_token,
                "Content-Type": "application/json",
            },
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def viewer(self) -> JsonDict:
        query = """
        query Viewer {
            viewer {
                id
                name
                email
            }
        }
        """

        result = await self._execute_graphql(query)
        viewer = result.get("viewer")
        if not viewer:
            raise LinearGraphQLError("No viewer returned - is the API key valid?")
        return viewer

    async def list_teams(self) -> list[Team]:
        if self._teams_cache is not None:
            return self._teams_cache

        query = """
        query Teams($first: Int!, $after: String) {
            teams(first: $first, after: $after) {
                nodes {
                    id
                    name
                    key
                }
                pageInfo {
                    hasNextPage
                    endCursor
                }
            }
        }
        """

        nodes = await self._fetch_all(query, "teams")
        teams = [Team.model_validate(node) for node in nodes]
        self._teams_cache = teams
        return teams

    async def list_workflow_states(self, team_id: str) -> list[NamedRecord]:
        if team_id in self._states_cache:
            return self._states_cache[team_id]

        query = """
        query WorkflowStates($first: Int!, $after: String, $filter: WorkflowStateFilter) {
            workflowStates(first: $first, after: $after, filter: $filter) {
                nodes {
                    id
                    name
                }
                pageInfo {
                    hasNextPage
                    endCursor
                }
            }
        }
        """

        nodes = await self._fetch_all(
            query,
            "workflowStates",
            {"filter": {"team": {"id": {"eq": team_id}}}},
        )
        states = [NamedRecord.model_validate(node) for node in nodes]
        self._states_cache[team_id] = states
        return states

    async def list_labels(self) -> list[NamedRecord]:
        query = """
        query IssueLabels($first: Int!, $after: String) {
            issueLabels(first: $first, after: $after) {
                nodes {
                    id
                    name
                }
                pageInfo {
                    hasNextPage
                    endCursor
                }
            }
        }
        """

        nodes = await self._fetch_all(query, "issueLabels")
        return [NamedRecord.model_validate(node) for node in nodes]

    async def create_issue(self, request: IssueRequest) -> CreatedIssue:
        """Create an issue from a normalised CSV row."""
        mutation = """
        mutation IssueCreate($input: IssueCreateInput!) {
            issueCreate(input: $input) {
                success
                lastSyncId
                issue {
                    id
                    identifier
                    url
                }
            }
        }
        """

        result = await self._execute_graphql(mutation, {"input": request.as_input()})

        payload = result.get("issueCreate")
        if not isinstance(payload, dict) or not payload.get("success"):
            raise LinearGraphQLError("Issue creation failed")

        issue = payload.get("issue")
        if not issue:
            # Linear accepted the mutation but did not hand back the issue node
            logger.debug("issueCreate returned no issue for %r", request.title)
            return CreatedIssue()

        try:
            return CreatedIssue.model_validate(issue)
        except ValidationError as exc:
            raise LinearGraphQLError(f"Unexpected issue payload: {issue!r}") from exc

    async def _fetch_all(
        self, query: str, connection: str, variables: JsonDict | None = None
    ) -> list[JsonDict]:
        """Follow a connection's cursor until every page has been read."""
        nodes: list[JsonDict] = []
        cursor: str | None = None

        while True:
            page_variables: JsonDict = {**(variables or {}), "first": PAGE_SIZE, "after": cursor}
            result = await self._execute_graphql(query, page_variables)
            page = result.get(connection) or {}
            nodes.extend(page.get("nodes", []))

            page_info = page.get("pageInfo") or {}
            cursor = page_info.get("endCursor")
            if not page_info.get("hasNextPage") or not cursor:
                return nodes

    async def _execute_graphql(self, query: str, variables: JsonDict | None = None) -> JsonDict:
        """Execute a GraphQL query/mutation."""
        if self._client is None:
            raise LinearGraphQLError("Client not initialized - use async context manager")

        payload: JsonDict = {"query": query}
        if variables:
            payload["variables"] = variables

        try:
            response = await self._client.post(self.api_url, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            error_cls = LinearAuthenticationError if status in (401, 403) else LinearGraphQLError
            raise error_cls(f"HTTP {status}: {exc.response.text}") from exc
        except httpx.TimeoutException as exc:
            raise LinearGraphQLError("Request timed out") from exc
        except Exception as exc:
            raise LinearGraphQLError(f"Request failed: {exc}") from exc

        try:
            data = response.json()
        except ValueError as exc:
            # JSONDecodeError and UnicodeDecodeError are both ValueErrors
            raise LinearGraphQLError(f"Invalid JSON response: {response.text}") from exc

        if not isinstance(data, dict):
            raise LinearGraphQLError(f"Unexpected response body: {data!r}")

        # Check for GraphQL errors
        if data.get("errors"):
            errors = data["errors"]
            if not isinstance(errors, list):
                errors = [errors]
            error_messages = [
                e.get("message", str(e)) if isinstance(e, dict) else str(e) for e in errors
            ]
            raise LinearGraphQLError(f"GraphQL errors: {', '.join(error_messages)}")

        if not isinstance(data.get("data"), dict):
            raise LinearGraphQLError(f"No data in response: {data}")

        return data["data"]
