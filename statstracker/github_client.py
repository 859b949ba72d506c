"""Client for the parts of the GitHub REST API the tools need."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from urllib.parse import parse_qs, urlsplit

import requests

from statstracker.github_models import PullRequest, PullRequestReview, RepositoryCommit

GITHUB_API_BASE_URL = "https://api.github.com"
PER_PAGE = 100
DEFAULT_TIMEOUT = 30.0
REVIEWS_TIMEOUT = 10.0


class GitHubError(Exception):
    """Raised when the GitHub API cannot be reached or answers with an error."""


def _aware(moment: datetime) -> datetime:
    return moment if moment.tzinfo is not None else moment.astimezone()


def _rfc3339(moment: datetime) -> str:
    return _aware(moment).astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _next_page(response: requests.Response) -> int:
    link = response.links.get("next")
    if not link:
        return 0
    pages = parse_qs(urlsplit(link.get("url", "")).query).get("page")
    try:
        return int(pages[0]) if pages else 0
    except ValueError:
        return 0


class GitHubClient:
    """Fetches pull requests, reviews and commits with a personal token."""

    def __init__(
        self,
        token: str,
        *,
        base_url: str = GITHUB_API_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github.v3+json",
        }
        self._session = session or requests.Session()

    def _request(
        self, path: str, params: dict[str, Any] | None = None, timeout: float | None = None
    ) -> tuple[Any, int]:
        url = f"{self.base_url}{path}"
        try:
            response = self._session.get(
                url, headers=self._headers, params=params, timeout=timeout or self.timeout
            )
        except requests.RequestException as exc:
            raise GitHubError(str(exc)) from exc
        with response:
            if not 200 <= response.status_code < 300:
                raise GitHubError(f"GET {url}: {response.status_code} {response.reason}")
            try:
                body = response.json()
            except ValueError as exc:
                raise GitHubError(f"invalid JSON from {url}: {exc}") from exc
            return body, _next_page(response)

    def _request_list(
        self, path: str, params: dict[str, Any] | None = None, timeout: float | None = None
    ) -> tuple[list[dict[str, Any]], int]:
        body, next_page = self._request(path, params, timeout)
        if not isinstance(body, list):
            raise GitHubError(f"expected a JSON array from {self.base_url}{path}")
        return body, next_page

    def fetch_pull_requests(
        self, owner: str, repo: str, start_date: datetime, end_date: datetime
    ) -> list[PullRequest]:
        """Return pull requests created between start_date and end_date inclusive."""
        start, end = _aware(start_date), _aware(end_date)
        path = f"/repos/{owner}/{repo}/pulls"
        params: dict[str, Any] = {"state": "all", "per_page": PER_PAGE}
        found: list[PullRequest] = []
        while True:
            try:
                body, next_page = self._request_list(path, params)
                prs = [PullRequest.from_json(item) for item in body]
            except (GitHubError, TypeError, ValueError, AttributeError) as exc:
                raise GitHubError(f"failed to fetch pull requests: {exc}") from exc
            found.extend(
                pr for pr in prs if pr.created_at is not None and start <= pr.created_at <= end
            )
            if not next_page or not prs:
                return found
            last_created = prs[-1].created_at
            if last_created is None or last_created < start:
                return found
            params["page"] = next_page

    def fetch_pull_request_reviews(
        self, owner: str, repo: str, pr_number: int
    ) -> list[PullRequestReview]:
        """Return the first page of reviews of a pull request."""
        path = f"/repos/{owner}/{repo}/pulls/{pr_number}/reviews"
        try:
            body, _ = self._request_list(path, timeout=REVIEWS_TIMEOUT)
            return [PullRequestReview.from_json(item) for item in body]
        except (GitHubError, TypeError, ValueError, AttributeError) as exc:
            raise GitHubError(f"failed to fetch pull request reviews: {exc}") from exc

    def fetch_commits(
        self, owner: str, repo: str, since: datetime | None, until: datetime | None
    ) -> list[RepositoryCommit]:
        """Return every commit in the time window, following pagination."""
        path = f"/repos/{owner}/{repo}/commits"
        params: dict[str, Any] = {"per_page": PER_PAGE}
        if since is not None:
            params["since"] = _rfc3339(since)
        if until is not None:
            params["until"] = _rfc3339(until)
        commits: list[RepositoryCommit] = []
        while True:
            try:
                body, next_page = self._request_list(path, params)
                commits.extend(RepositoryCommit.from_json(item) for item in body)
            except (GitHubError, TypeError, ValueError, AttributeError) as exc:
                raise GitHubError(f"failed to fetch commits: {exc}") from exc
            if not next_page:
                return commits
            params["page"] = next_page

    def fetch_commit(self, owner: str, repo: str, sha: str) -> RepositoryCommit:
        """Return a single commit together with its diff."""
        try:
            body, _ = self._request(f"/repos/{owner}/{repo}/commits/{sha}")
            if not isinstance(body, dict):
                raise GitHubError("expected a JSON object")
            return RepositoryCommit.from_json(body)
        except (GitHubError, TypeError, ValueError, AttributeError) as exc:
            raise GitHubError(f"failed to fetch commit {sha}: {exc}") from exc

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self._session.close()