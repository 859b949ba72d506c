# statstracker

A command-line tool, **pr-tracker**, that reports on code review in a GitHub
repository:

- the time from opening a pull request to its first review and to its first
  approval, and who gave them;
- pull requests still waiting for review, and for how long;
- optionally, how many times each pull request was deployed to a test
  environment, judged from the commits of a separate tags repository;
- mean and median figures for all of the above.

GitHub API responses are cached on disk in the user cache directory (under
`statstracker`), so repeated runs over the same date range are fast. Lists
whose date range ended more than a week ago are kept for 24 hours; more recent
ones for one hour.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## pr-tracker

Requires the `GITHUB_TOKEN` environment variable.

```
export GITHUB_TOKEN=token
pr-tracker --since 2024-01-01 --until 2024-01-31 my-org/my-repo
```

The repository is given as `owner/repo`. Options (each also accepted with a
single dash, e.g. `-since`):

- `--since` – start date, `YYYY-MM-DD` (defaults to 30 days ago)
- `--until` – end date, `YYYY-MM-DD` (defaults to now)
- `--exclude` – comma-separated GitHub logins to ignore, as authors and as
  reviewers (bots, for example)
- `--tags-repo` – a repository in `owner/repo` form whose commits record
  deployments; when given, each pull request's open period is searched for
  commits adding a line such as `app: pull-123_<sha>` or
  `app: 2024_01_15__14_30_45__<branch>__<sha>`

Draft pull requests and pull requests closed without merging are skipped.
Pending reviews, self-reviews and reviews by excluded users are not counted.
The command exits with status 1 on bad arguments, a missing token or an API
error.

## Library use

The building blocks can be used directly:

```python
from statstracker.cache import FileCache
from statstracker.github_cache import CachedGitHubClient
from statstracker.github_metrics import process_pull_requests

with FileCache("/tmp/statstracker-cache") as cache:
    client = CachedGitHubClient("token", cache)
    prs = client.fetch_pull_requests("my-org", "my-repo", start, end)
    metrics = process_pull_requests(client, prs, "my-org", "my-repo", [], "", "")
```

- `statstracker.cache` – `FileCache` (one JSON file per key, with optional
  expiry), `CacheKeyBuilder`, `CacheMiss`, `default_cache()`.
- `statstracker.github_client` – `GitHubClient`, a plain REST client raising
  `GitHubError`.
- `statstracker.github_cache` – `CachedGitHubClient` and `list_ttl()`.
- `statstracker.github_metrics` – `process_pull_requests()`,
  `check_pr_tag_commits()`, `analyze_commit_diff_for_pr_reference()`.
- `statstracker.timefmt` – `format_duration()`, `format_timestamp()`,
  `median_duration()`, `parse_date_range()`.

## What it does not do

The package works only with GitHub pull requests. It has no report of
commit-to-deploy latency for cloud release pipelines and no report of flaky
tests from a CI service, and it provides no commands for either.