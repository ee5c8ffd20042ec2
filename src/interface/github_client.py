"""GitHub Actions REST client used by the CI performance monitor."""

import logging
from typing import Any

import httpx

from src.core.config import constants, settings


logger = logging.getLogger(__name__)


class CIFetchError(RuntimeError):
    """Raised when the CI provider cannot be reached or answers with an error."""


class GitHubActionsClient:
    """Read-only access to workflow runs and their jobs.

    Usage:
        async with GitHubActionsClient.from_settings() as client:
            runs = await client.fetch_workflow_runs()
    """

    def __init__(
        self,
        *,
        owner: str,
        repo: str,
        workflow_id: str,
        token: str | None = None,
        base_url: str = "https://api.github.com",
        max_runs: int = 50,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.owner = owner
        self.repo = repo
        self.workflow_id = workflow_id
        self.max_runs = max_runs

        headers = {
            "User-Agent": "CI-Performance-Monitor",
            "Accept": "application/vnd.github.v3+json",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=constants.API_TIMEOUT_SECONDS,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, *, transport: httpx.AsyncBaseTransport | None = None) -> "GitHubActionsClient":
        return cls(
            owner=settings.github_owner,
            repo=settings.github_repo,
            workflow_id=settings.github_workflow_id,
            token=settings.github_token,
            base_url=settings.github_api_url,
            max_runs=settings.ci_max_runs,
            transport=transport,
        )

    async def __aenter__(self) -> "GitHubActionsClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        try:
            response = await self._client.get(path, params=params)
        except httpx.HTTPError as e:
            raise CIFetchError(f"Request to {path} failed: {e!s}") from e

        if not response.is_success:
            raise CIFetchError(f"HTTP {response.status_code}: {response.text}")

        try:
            return response.json()
        except ValueError as e:
            raise CIFetchError(f"Failed to parse JSON from {path}: {e!s}") from e

    async def fetch_workflow_runs(self) -> list[dict[str, Any]]:
        """Fetch the most recent completed runs of the configured workflow.

        Raises:
            CIFetchError: If the run list cannot be fetched
        """
        data = await self._get(
            f"/repos/{self.owner}/{self.repo}/actions/workflows/{self.workflow_id}/runs",
            params={"per_page": self.max_runs, "status": "completed"},
        )
        runs = data.get("workflow_runs", [])
        logger.info("Fetched completed workflow runs", extra={"count": len(runs), "workflow": self.workflow_id})
        return runs

    async def fetch_workflow_jobs(self, run_id: int) -> list[dict[str, Any]]:
        """Fetch the jobs (with their steps) of one run."""
        data = await self._get(f"/repos/{self.owner}/{self.repo}/actions/runs/{run_id}/jobs")
        return data.get("jobs", [])
