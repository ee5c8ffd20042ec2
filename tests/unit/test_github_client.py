"""Tests for the GitHub Actions client."""

import httpx
import pytest

from src.interface.github_client import CIFetchError, GitHubActionsClient


def make_client(handler, token=None) -> GitHubActionsClient:
    return GitHubActionsClient(
        owner="acme",
        repo="planner",
        workflow_id="ci.yml",
        token=token,
        max_runs=10,
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.unit
class TestGitHubActionsClient:
    """Tests for GitHubActionsClient."""

    async def test_fetch_workflow_runs(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"workflow_runs": [{"id": 1}, {"id": 2}]})

        async with make_client(handler) as client:
            runs = await client.fetch_workflow_runs()

        assert [run["id"] for run in runs] == [1, 2]
        [request] = seen
        assert request.url.path == "/repos/acme/planner/actions/workflows/ci.yml/runs"
        assert request.url.params["per_page"] == "10"
        assert request.url.params["status"] == "completed"
        assert request.headers["User-Agent"] == "CI-Performance-Monitor"
        assert "Authorization" not in request.headers

    async def test_token_is_sent_as_bearer(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"jobs": []})

        async with make_client(handler, token="ghp_test") as client:
            jobs = await client.fetch_workflow_jobs(42)

        assert jobs == []
        assert seen[0].url.path == "/repos/acme/planner/actions/runs/42/jobs"
        assert seen[0].headers["Authorization"] == "Bearer ghp_test"

    async def test_error_status_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(403, text="rate limited")

        async with make_client(handler) as client:
            with pytest.raises(CIFetchError, match="HTTP 403"):
                await client.fetch_workflow_runs()

    async def test_invalid_json_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>")

        async with make_client(handler) as client:
            with pytest.raises(CIFetchError):
                await client.fetch_workflow_jobs(1)

    async def test_transport_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with make_client(handler) as client:
            with pytest.raises(CIFetchError, match="failed"):
                await client.fetch_workflow_runs()
