"""GitHub REST client for one pull request."""

from __future__ import annotations

import json
import os
import shlex

import httpx

from prlander.core.errors import (
    CommandFailed,
    ConfigurationError,
    ProviderError,
    TransientProviderError,
)
from prlander.core.log import logger
from prlander.github.models import (
    CheckRunRecord,
    PullRequestRef,
    PullRequestSnapshot,
    RepositoryInfo,
    Review,
)

PER_PAGE = 100
REDACTED = "$GITHUB_TOKEN"


def resolve_token(configured: str | None, runner=None, env=None) -> str:
    """Find an API token.

    Order: configured value, GITHUB_TOKEN, then ``gh auth token``.

    Raises:
        ConfigurationError: If no source yields a token
    """
    if configured:
        return configured
    env = os.environ if env is None else env
    if env.get("GITHUB_TOKEN"):
        return env["GITHUB_TOKEN"]
    if runner is not None:
        try:
            result = runner.execute("gh auth token")
        except CommandFailed as e:
            logger.debug("gh auth token failed", error=str(e))
        else:
            token = result.stdout.strip()
            if token:
                return token
    raise ConfigurationError(
        "No GitHub token found. Set GITHUB_TOKEN, configure "
        "config.github.token, or log in with 'gh auth login'."
    )


class GitHubClient:
    """Blocking client scoped to a single pull request.

    Every call is one synchronous round-trip. Network failures and 5xx
    responses raise TransientProviderError; any other non-success
    response raises ProviderError.
    """

    def __init__(
        self,
        pr: PullRequestRef,
        token: str,
        api_url: str = "https://api.github.com",
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
        log=logger,
    ):
        self.pr = pr
        self.api_url = api_url.rstrip("/")
        self.log = log
        self._http = httpx.Client(
            base_url=self.api_url,
            headers={
                "Authorization": f"token {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
                "User-Agent": "prlander",
            },
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    @property
    def repo_path(self) -> str:
        return f"/repos/{self.pr.owner}/{self.pr.repo}"

    def close(self) -> None:
        self._http.close()

    # ------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------

    def _request(
        self, method: str, path: str, json_body: dict | None = None,
        params: dict | None = None,
    ) -> httpx.Response:
        self.log.trace(f"GitHub {method} {path}", params=params)
        try:
            response = self._http.request(
                method, path, json=json_body, params=params
            )
        except httpx.TransportError as e:
            raise TransientProviderError(
                f"{method} {path} failed: {e}"
            ) from e

        if response.is_success:
            return response

        message = _error_message(response)
        if response.status_code >= 500:
            raise TransientProviderError(
                f"{method} {path} returned {response.status_code}: {message}",
                status_code=response.status_code,
            )
        raise ProviderError(
            f"{method} {path} returned {response.status_code}: {message}",
            status_code=response.status_code,
            next_step=self.curl(method, path, json_body),
        )

    def _get_json(self, path: str, params: dict | None = None):
        return self._request("GET", path, params=params).json()

    def _paginate(self, path: str, key: str | None = None,
                  params: dict | None = None) -> list[dict]:
        """Collect all pages of a list endpoint.

        Args:
            key: Name of the list inside the response object, for
                endpoints that wrap their items (check-runs,
                actions/runs); None for bare arrays
        """
        items: list[dict] = []
        page = 1
        while True:
            data = self._get_json(
                path, params={**(params or {}), "per_page": PER_PAGE,
                              "page": page},
            )
            batch = data.get(key, []) if key else data
            items.extend(batch)
            total = data.get("total_count") if key else None
            if len(batch) < PER_PAGE or (
                total is not None and len(items) >= total
            ):
                return items
            page += 1

    def curl(self, method: str, path: str, body: dict | None = None) -> str:
        """Reproducible curl command for a call, token redacted."""
        parts = [
            f"curl -X {method} {self.api_url}{path}",
            f'  -H "Authorization: token {REDACTED}"',
            '  -H "Accept: application/vnd.github+json"',
        ]
        if body is not None:
            parts.append('  -H "Content-Type: application/json"')
            parts.append(f"  -d {shlex.quote(json.dumps(body))}")
        return " \\\n".join(parts)

    # ------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------

    def get_repository(self) -> RepositoryInfo:
        return RepositoryInfo.from_api(self._get_json(self.repo_path))

    def get_pull_request(self) -> PullRequestSnapshot:
        data = self._get_json(f"{self.repo_path}/pulls/{self.pr.number}")
        return PullRequestSnapshot.from_api(data)

    def list_reviews(self) -> list[Review]:
        data = self._paginate(f"{self.repo_path}/pulls/{self.pr.number}/reviews")
        return [Review.from_api(item) for item in data]

    def list_workflow_runs(self, commit_sha: str) -> list[CheckRunRecord]:
        data = self._paginate(
            f"{self.repo_path}/actions/runs",
            key="workflow_runs",
            params={"head_sha": commit_sha},
        )
        return [CheckRunRecord.from_workflow_run(item) for item in data]

    def list_check_runs(self, commit_sha: str) -> list[CheckRunRecord]:
        data = self._paginate(
            f"{self.repo_path}/commits/{commit_sha}/check-runs",
            key="check_runs",
        )
        return [CheckRunRecord.from_check_run(item) for item in data]

    def download_run_logs(self, run_id: int) -> bytes:
        """Zip archive of a workflow run's logs (follows the redirect)."""
        path = f"{self.repo_path}/actions/runs/{run_id}/logs"
        return self._request("GET", path).content

    # ------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------

    def rerun_workflow_path(self, run_id: int) -> str:
        return f"{self.repo_path}/actions/runs/{run_id}/rerun"

    def rerun_check_suite_path(self, suite_id: int) -> str:
        return f"{self.repo_path}/check-suites/{suite_id}/rerequest"

    def merge_path(self) -> str:
        return f"{self.repo_path}/pulls/{self.pr.number}/merge"

    def rerun_workflow(self, run_id: int) -> None:
        self._request("POST", self.rerun_workflow_path(run_id))

    def rerun_check_suite(self, suite_id: int) -> None:
        self._request("POST", self.rerun_check_suite_path(suite_id))

    def merge_body(self, commit_title: str, merge_method: str) -> dict:
        return {"commit_title": commit_title, "merge_method": merge_method}

    def merge_pull_request(
        self, commit_title: str, merge_method: str = "merge",
    ) -> dict:
        """PUT the merge. Returns GitHub's {sha, merged, message}."""
        return self._request(
            "PUT",
            self.merge_path(),
            json_body=self.merge_body(commit_title, merge_method),
        ).json()


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text.strip() or response.reason_phrase
    if isinstance(data, dict):
        return data.get("message") or json.dumps(data)
    return json.dumps(data)
