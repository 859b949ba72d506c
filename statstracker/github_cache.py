"""GitHub client that keeps API responses in a file cache."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any, TypeVar

from statstracker.cache import CacheKeyBuilder, CacheMiss, FileCache
from statstracker.github_client import GITHUB_API_BASE_URL, GitHubClient
from statstracker.github_models import PullRequest, PullRequestReview, RepositoryCommit

log = logging.getLogger(__name__)

HISTORICAL_TTL = timedelta(hours=24)
RECENT_TTL = timedelta(hours=1)
HISTORICAL_AGE = timedelta(days=7)

_T = TypeVar("_T")
_DECODE_ERRORS = (TypeError, ValueError, AttributeError, KeyError)


def _aware(moment: datetime) -> datetime:
    return moment if moment.tzinfo is not None else moment.astimezone()


def list_ttl(end_date: datetime, now: datetime | None = None) -> timedelta:
    """TTL for a cached list: long once the window ended over a week ago."""
    current = _aware(now) if now is not None else datetime.now(timezone.utc)
    if current - _aware(end_date) > HISTORICAL_AGE:
        return HISTORICAL_TTL
    return RECENT_TTL


def _is_pr_cacheable(pr: PullRequest | None) -> bool:
    return pr is not None and pr.state == "closed"


class CachedGitHubClient:
    """Wraps GitHubClient, serving repeated requests from a FileCache."""

    def __init__(self, token: str, cache: FileCache, *, base_url: str = GITHUB_API_BASE_URL) -> None:
        self._client = GitHubClient(token, base_url=base_url)
        self._cache = cache
        self._keys = CacheKeyBuilder("github")

    def _lookup(self, key: str, decode: Callable[[Any], _T], label: str | None) -> _T | None:
        try:
            return decode(self._cache.get(key))
        except CacheMiss:
            return None
        except (OSError, *_DECODE_ERRORS) as exc:
            if label is not None:
                log.warning("Cache error for %s: %s", label, exc)
            return None

    def _store(self, key: str, value: Any, ttl: timedelta, label: str) -> None:
        try:
            self._cache.set(key, value, ttl)
        except (OSError, TypeError, ValueError) as exc:
            log.warning("Failed to cache %s: %s", label, exc)

    def fetch_pull_requests(
        self, owner: str, repo: str, start_date: datetime, end_date: datetime
    ) -> list[PullRequest]:
        """Return pull requests in the window, from cache when possible."""
        key = self._keys.prs_list_key(owner, repo, start_date, end_date)
        cached = self._lookup(
            key, lambda raw: [PullRequest.from_json(item) for item in raw or []], "PRs list"
        )
        if cached is not None:
            return cached

        prs = self._client.fetch_pull_requests(owner, repo, start_date, end_date)
        self._store(key, [pr.to_json() for pr in prs], list_ttl(end_date), "PRs list")
        for pr in prs:
            if _is_pr_cacheable(pr):
                self._store(
                    self._keys.pr_key(owner, repo, pr.number),
                    pr.to_json(),
                    HISTORICAL_TTL,
                    f"individual PR #{pr.number}",
                )
        return prs

    def fetch_pull_request_reviews(
        self, owner: str, repo: str, pr_number: int
    ) -> list[PullRequestReview]:
        """Return reviews of a pull request, from cache when possible."""
        key = self._keys.pr_reviews_key(owner, repo, pr_number)
        label = f"PR #{pr_number} reviews"
        cached = self._lookup(
            key, lambda raw: [PullRequestReview.from_json(item) for item in raw or []], label
        )
        if cached is not None:
            return cached

        reviews = self._client.fetch_pull_request_reviews(owner, repo, pr_number)
        pr = self._lookup(self._keys.pr_key(owner, repo, pr_number), PullRequest.from_json, None)
        ttl = HISTORICAL_TTL if _is_pr_cacheable(pr) else RECENT_TTL
        self._store(key, [review.to_json() for review in reviews], ttl, label)
        return reviews

    def fetch_commits(
        self, owner: str, repo: str, since: datetime, until: datetime
    ) -> list[RepositoryCommit]:
        """Return commits in the window, from cache when possible."""
        key = self._keys.commits_list_key(owner, repo, since, until)
        cached = self._lookup(
            key, lambda raw: [RepositoryCommit.from_json(item) for item in raw or []], "commits list"
        )
        if cached is not None:
            return cached

        commits = self._client.fetch_commits(owner, repo, since, until)
        self._store(key, [commit.to_json() for commit in commits], list_ttl(until), "commits list")
        return commits

    def fetch_commit(self, owner: str, repo: str, sha: str) -> RepositoryCommit:
        """Return a single commit, from cache when possible."""
        key = self._keys.commit_key(owner, repo, sha)
        cached = self._lookup(key, RepositoryCommit.from_json, None)
        if cached is not None:
            return cached

        commit = self._client.fetch_commit(owner, repo, sha)
        self._store(key, commit.to_json(), HISTORICAL_TTL, f"commit {sha}")
        return commit

    def close(self) -> None:
        """Close the cache and the HTTP session."""
        self._cache.close()
        self._client.close()