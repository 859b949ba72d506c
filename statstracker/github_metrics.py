"""Review-latency metrics for pull requests and their test-environment deploys."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone
from typing import Protocol

from statstracker.github_client import GitHubError
from statstracker.github_models import (
    PullRequest,
    PullRequestMetric,
    PullRequestReview,
    RepositoryCommit,
    TagCommit,
)

log = logging.getLogger(__name__)

TAG_SEARCH_WINDOW = timedelta(days=30)

_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)


class GitHubSource(Protocol):
    """The GitHub operations the metrics need."""

    def fetch_pull_request_reviews(
        self, owner: str, repo: str, pr_number: int
    ) -> list[PullRequestReview]: ...

    def fetch_commits(
        self, owner: str, repo: str, since: datetime, until: datetime
    ) -> list[RepositoryCommit]: ...

    def fetch_commit(self, owner: str, repo: str, sha: str) -> RepositoryCommit: ...


def process_pull_requests(
    client: GitHubSource,
    prs: Iterable[PullRequest],
    owner: str,
    repo: str,
    denylist: Iterable[str],
    tags_owner: str,
    tags_repo: str,
) -> list[PullRequestMetric]:
    """Compute review timings for each relevant pull request.

    Drafts, closed-but-unmerged pull requests and authors on the denylist are
    skipped, as are pending reviews, self-reviews and denylisted reviewers.
    """
    denied = set(denylist)
    results: list[PullRequestMetric] = []

    for pr in prs:
        if pr.draft:
            continue
        if pr.state == "closed" and pr.merged_at is None:
            continue
        author = pr.user_login
        if author in denied:
            continue

        try:
            reviews = client.fetch_pull_request_reviews(owner, repo, pr.number)
        except GitHubError as exc:
            log.warning("Error fetching reviews for PR #%d: %s", pr.number, exc)
            continue

        first_review: datetime | None = None
        first_reviewer = ""
        first_review_state = ""
        first_approval: datetime | None = None
        approver = ""
        valid_review_found = False

        for review in reviews:
            submitted = review.submitted_at or _ZERO_TIME
            reviewer = review.user_login
            state = review.state
            if state == "PENDING" or reviewer == author or reviewer in denied:
                continue

            valid_review_found = True
            if first_review is None or submitted < first_review:
                first_review = submitted
                first_reviewer = reviewer
                first_review_state = state
            if state == "APPROVED" and (first_approval is None or submitted < first_approval):
                first_approval = submitted
                approver = reviewer

        created = pr.created_at or _ZERO_TIME
        tag_commits: list[TagCommit] = []
        if tags_owner and tags_repo:
            tag_commits = check_pr_tag_commits(client, pr, tags_owner, tags_repo)

        results.append(
            PullRequestMetric(
                pr_title=pr.title,
                pr_number=pr.number,
                author=author,
                time_to_first_review=first_review - created if first_review else timedelta(0),
                first_reviewer=first_reviewer,
                first_review_state=first_review_state,
                time_to_approval=first_approval - created if first_approval else timedelta(0),
                approver=approver,
                has_review=valid_review_found,
                time_since_creation=datetime.now(timezone.utc) - created,
                tag_commits=tag_commits,
            )
        )

    return results


def _search_window(pr: PullRequest) -> tuple[datetime, datetime]:
    start = pr.created_at or _ZERO_TIME
    end = datetime.now(timezone.utc)
    if pr.state == "closed":
        if pr.merged_at is not None:
            end = pr.merged_at
        elif pr.closed_at is not None:
            end = pr.closed_at
        else:
            end = start + TAG_SEARCH_WINDOW
    return start, end


def check_pr_tag_commits(
    client: GitHubSource, pr: PullRequest, tags_owner: str, tags_repo: str
) -> list[TagCommit]:
    """Return the tags-repository commits made while the PR was open that deploy it."""
    start, end = _search_window(pr)
    try:
        commits = client.fetch_commits(tags_owner, tags_repo, start, end)
    except GitHubError as exc:
        log.warning("Error fetching commits from tags repo for PR #%d: %s", pr.number, exc)
        return []

    found: list[TagCommit] = []
    for commit in commits:
        try:
            full = client.fetch_commit(tags_owner, tags_repo, commit.sha)
        except GitHubError as exc:
            log.warning("Error fetching commit %s from tags repo: %s", commit.sha, exc)
            continue
        tag_commit = analyze_commit_diff_for_pr_reference(full, pr.number, pr.head_ref)
        if tag_commit is not None:
            found.append(tag_commit)
    return found


def analyze_commit_diff_for_pr_reference(
    commit: RepositoryCommit, pr_number: int, pr_branch: str
) -> TagCommit | None:
    """Look for an added diff line that deploys the PR, by number or by branch name."""
    if not commit.files:
        return None

    patterns = [re.compile(rf"\+\s*\w+:\s*pull-{pr_number}_[a-f0-9]{{7,40}}", re.ASCII)]
    if pr_branch:
        patterns.append(
            re.compile(
                r"\+\s*\w+:\s*\d{4}_\d{2}_\d{2}__\d{2}_\d{2}_\d{2}__"
                + re.escape(pr_branch)
                + r"__[a-f0-9]{7,40}",
                re.ASCII,
            )
        )

    for changed in commit.files:
        if changed.patch is None:
            continue
        for line in changed.patch.split("\n"):
            if line.startswith("+") and any(pattern.search(line) for pattern in patterns):
                return TagCommit(
                    sha=commit.sha,
                    message=commit.message,
                    date=commit.author_date,
                    author=commit.author_name,
                )
    return None