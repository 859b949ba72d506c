from datetime import datetime, timezone
from urllib.parse import parse_qs, urlsplit

import pytest
import responses

from statstracker.github_client import GitHubClient, GitHubError

BASE = "https://api.example.com"
PULLS = f"{BASE}/repos/o/r/pulls"
START = datetime(2024, 1, 1, tzinfo=timezone.utc)
END = datetime(2024, 1, 31, tzinfo=timezone.utc)


@pytest.fixture
def rsps():
    with responses.RequestsMock(assert_all_requests_are_fired=False) as mock:
        yield mock


@pytest.fixture
def client():
    return GitHubClient("token", base_url=BASE)


def pr_json(number, created, state="open"):
    return {
        "number": number,
        "title": f"PR {number}",
        "state": state,
        "user": {"login": "author"},
        "created_at": created,
    }


def query(call):
    return parse_qs(urlsplit(call.request.url).query)


def test_fetch_pull_requests_filters_by_creation_date(rsps, client):
    rsps.add(
        responses.GET,
        PULLS,
        json=[
            pr_json(3, "2024-02-10T00:00:00Z"),
            pr_json(2, "2024-01-10T00:00:00Z"),
            pr_json(1, "2023-12-01T00:00:00Z"),
        ],
    )
    prs = client.fetch_pull_requests("o", "r", START, END)
    assert [pr.number for pr in prs] == [2]
    assert query(rsps.calls[0])["state"] == ["all"]
    assert rsps.calls[0].request.headers["Authorization"] == "Bearer token"


def test_fetch_pull_requests_follows_pages(rsps, client):
    rsps.add(
        responses.GET,
        PULLS,
        json=[pr_json(4, "2024-01-20T00:00:00Z"), pr_json(3, "2024-01-15T00:00:00Z")],
        headers={"Link": f'<{PULLS}?state=all&page=2>; rel="next"'},
    )
    rsps.add(responses.GET, PULLS, json=[pr_json(2, "2024-01-10T00:00:00Z")])
    prs = client.fetch_pull_requests("o", "r", START, END)
    assert [pr.number for pr in prs] == [4, 3, 2]
    assert query(rsps.calls[1])["page"] == ["2"]


def test_fetch_pull_requests_stops_at_prs_older_than_start(rsps, client):
    rsps.add(
        responses.GET,
        PULLS,
        json=[pr_json(2, "2024-01-10T00:00:00Z"), pr_json(1, "2023-11-01T00:00:00Z")],
        headers={"Link": f'<{PULLS}?page=2>; rel="next"'},
    )
    rsps.add(responses.GET, PULLS, json=[pr_json(0, "2023-10-01T00:00:00Z")])
    prs = client.fetch_pull_requests("o", "r", START, END)
    assert [pr.number for pr in prs] == [2]
    assert len(rsps.calls) == 1


def test_fetch_pull_requests_error(rsps, client):
    rsps.add(responses.GET, PULLS, status=500)
    with pytest.raises(GitHubError, match="failed to fetch pull requests"):
        client.fetch_pull_requests("o", "r", START, END)


def test_fetch_pull_request_reviews(rsps, client):
    rsps.add(
        responses.GET,
        f"{PULLS}/5/reviews",
        json=[
            {"user": {"login": "reviewer1"}, "state": "CHANGES_REQUESTED", "submitted_at": "2024-01-10T01:00:00Z"},
            {"user": {"login": "reviewer2"}, "state": "APPROVED", "submitted_at": "2024-01-10T02:00:00Z"},
        ],
    )
    reviews = client.fetch_pull_request_reviews("o", "r", 5)
    assert [(r.user_login, r.state) for r in reviews] == [
        ("reviewer1", "CHANGES_REQUESTED"),
        ("reviewer2", "APPROVED"),
    ]


def test_fetch_pull_request_reviews_error(rsps, client):
    rsps.add(responses.GET, f"{PULLS}/5/reviews", status=403)
    with pytest.raises(GitHubError, match="failed to fetch pull request reviews"):
        client.fetch_pull_request_reviews("o", "r", 5)


def test_fetch_commits_passes_window_and_paginates(rsps, client):
    url = f"{BASE}/repos/o/tags/commits"
    rsps.add(
        responses.GET,
        url,
        json=[{"sha": "aaa"}],
        headers={"Link": f'<{url}?page=2>; rel="next"'},
    )
    rsps.add(responses.GET, url, json=[{"sha": "bbb"}])
    commits = client.fetch_commits("o", "tags", START, END)
    assert [c.sha for c in commits] == ["aaa", "bbb"]
    params = query(rsps.calls[0])
    assert params["since"] == ["2024-01-01T00:00:00Z"]
    assert params["until"] == ["2024-01-31T00:00:00Z"]


def test_fetch_commit_with_files(rsps, client):
    patch = "+app2: pull-123_abc123def456"
    rsps.add(
        responses.GET,
        f"{BASE}/repos/o/tags/commits/abc123",
        json={"sha": "abc123", "commit": {"message": "Test commit"}, "files": [{"patch": patch}]},
    )
    commit = client.fetch_commit("o", "tags", "abc123")
    assert commit.message == "Test commit"
    assert [f.patch for f in commit.files] == [patch]


def test_fetch_commit_not_found(rsps, client):
    rsps.add(responses.GET, f"{BASE}/repos/o/tags/commits/abc123", status=404)
    with pytest.raises(GitHubError, match="failed to fetch commit abc123"):
        client.fetch_commit("o", "tags", "abc123")