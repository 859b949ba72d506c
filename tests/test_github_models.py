from datetime import datetime, timedelta, timezone

from statstracker.github_models import (
    CommitFile,
    PullRequest,
    PullRequestMetric,
    PullRequestReview,
    RepositoryCommit,
    TagCommit,
)

PR_DATA = {
    "number": 42,
    "title": "Add feature",
    "state": "closed",
    "draft": False,
    "user": {"login": "octocat"},
    "head": {"ref": "feature-branch"},
    "created_at": "2024-01-15T14:30:45Z",
    "merged_at": "2024-01-16T09:00:00Z",
    "closed_at": None,
}


def test_pull_request_from_api_json():
    pr = PullRequest.from_json(PR_DATA)
    assert pr.number == 42
    assert pr.title == "Add feature"
    assert pr.state == "closed"
    assert pr.user_login == "octocat"
    assert pr.head_ref == "feature-branch"
    assert pr.created_at == datetime(2024, 1, 15, 14, 30, 45, tzinfo=timezone.utc)
    assert pr.merged_at == datetime(2024, 1, 16, 9, 0, 0, tzinfo=timezone.utc)
    assert pr.closed_at is None


def test_pull_request_round_trip():
    pr = PullRequest.from_json(PR_DATA)
    assert PullRequest.from_json(pr.to_json()) == pr


def test_pull_request_missing_fields_use_defaults():
    assert PullRequest.from_json({}) == PullRequest()


def test_fractional_seconds_and_offset_are_normalised():
    pr = PullRequest.from_json({"created_at": "2024-01-15T14:30:45.123456789+02:00"})
    assert pr.created_at == datetime(2024, 1, 15, 12, 30, 45, 123456, tzinfo=timezone.utc)


def test_review_from_json_and_round_trip():
    review = PullRequestReview.from_json(
        {"id": 7, "user": {"login": "reviewer"}, "state": "APPROVED", "submitted_at": "2024-01-15T15:00:00Z"}
    )
    assert review.user_login == "reviewer"
    assert review.state == "APPROVED"
    assert PullRequestReview.from_json(review.to_json()) == review


def test_commit_file_without_patch():
    item = CommitFile.from_json({"filename": "image.png"})
    assert item.patch is None
    assert CommitFile.from_json(item.to_json()) == item


def test_repository_commit_from_api_json():
    data = {
        "sha": "abc123def456",
        "commit": {
            "message": "Test commit",
            "author": {"name": "Test Author", "date": "2024-01-15T14:30:45Z"},
            "committer": {"date": "2024-01-15T14:31:00Z"},
        },
        "files": [
            {"filename": "tags.yaml", "patch": "+app2: pull-123_abc123def456"},
            {"filename": "logo.png"},
        ],
    }
    commit = RepositoryCommit.from_json(data)
    assert commit.sha == "abc123def456"
    assert commit.message == "Test commit"
    assert commit.author_name == "Test Author"
    assert commit.committer_date == datetime(2024, 1, 15, 14, 31, 0, tzinfo=timezone.utc)
    assert [f.patch for f in commit.files] == ["+app2: pull-123_abc123def456", None]
    assert RepositoryCommit.from_json(commit.to_json()) == commit


def test_metric_defaults_are_independent():
    first = PullRequestMetric(pr_title="a", pr_number=1, author="x")
    second = PullRequestMetric(pr_title="b", pr_number=2, author="y")
    first.tag_commits.append(TagCommit(sha="s", message="m", date=None, author="x"))
    assert second.tag_commits == []
    assert first.time_to_approval == timedelta(0)
    assert first.has_review is False