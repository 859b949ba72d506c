"""Command-line report of pull-request review latency."""

from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Sequence
from datetime import timedelta

from statstracker.cache import default_cache
from statstracker.github_cache import CachedGitHubClient
from statstracker.github_client import GitHubError
from statstracker.github_metrics import process_pull_requests
from statstracker.github_models import PullRequestMetric
from statstracker.timefmt import format_duration, median_duration, parse_date_range


def _print_deploys(count: int) -> None:
    if count == 1:
        print(f"  Deployed to test env {count} time")
    elif count > 1:
        print(f"  Deployed to test env {count} times")


def print_results(results: Sequence[PullRequestMetric]) -> None:
    """Print reviewed and waiting pull requests followed by summary statistics."""
    if not results:
        print("No pull requests found")
        return

    print("\nPull Requests With Reviews:")
    print("---------------------------")
    reviewed = [result for result in results if result.has_review]
    for result in reviewed:
        print(f"PR #{result.pr_number}: {result.pr_title}")
        print(
            f"  Time to First Review: {format_duration(result.time_to_first_review)}"
            f" (by {result.first_reviewer} - {result.first_review_state})"
        )
        if result.approver:
            print(
                f"  Time to Approval: {format_duration(result.time_to_approval)}"
                f" (by {result.approver})"
            )
        else:
            print("  Time to Approval: Not yet approved")
        _print_deploys(len(result.tag_commits))
        print()
    if not reviewed:
        print("  None found")

    print("\nPull Requests Awaiting Review:")
    print("------------------------------")
    waiting = [result for result in results if not result.has_review]
    for result in waiting:
        print(f"PR #{result.pr_number}: {result.pr_title}")
        print(f"Author: {result.author}")
        print(f"  Waiting for: {format_duration(result.time_since_creation)}")
        _print_deploys(len(result.tag_commits))
        print()
    if not waiting:
        print("  None found")

    print_summary_statistics(results)


def _mean(durations: Sequence[timedelta]) -> timedelta:
    return sum(durations, timedelta(0)) // len(durations)


def print_summary_statistics(results: Sequence[PullRequestMetric]) -> None:
    """Print mean and median review, approval and waiting times and tag-commit counts."""
    zero = timedelta(0)
    first_review_times = [
        r.time_to_first_review for r in results if r.has_review and r.time_to_first_review > zero
    ]
    approval_times = [
        r.time_to_approval for r in results if r.has_review and r.time_to_approval > zero
    ]
    waiting_times = [r.time_since_creation for r in results if not r.has_review]

    print("\nSummary Statistics:")
    print("-----------------")

    if first_review_times:
        print("Time to First Review:")
        print(f"  Mean: {format_duration(_mean(first_review_times))}")
        print(f"  Median: {format_duration(median_duration(first_review_times))}")
    else:
        print("Time to First Review: No data")

    if approval_times:
        print("Time to Approval:")
        print(f"  Mean: {format_duration(_mean(approval_times))}")
        print(f"  Median: {format_duration(median_duration(approval_times))}")
    else:
        print("Time to Approval: No data")

    if waiting_times:
        print(f"PRs Awaiting Review: {len(waiting_times)}")
        print(f"  Mean wait time: {format_duration(_mean(waiting_times))}")
        print(f"  Median wait time: {format_duration(median_duration(waiting_times))}")
    else:
        print("PRs Awaiting Review: 0")

    total_prs = len(results)
    tagged = [r for r in results if r.tag_commits]
    total_tag_commits = sum(len(r.tag_commits) for r in tagged)
    if total_prs:
        percentage = len(tagged) / total_prs * 100
        print(f"PRs with Tag Commits: {len(tagged)}/{total_prs} ({percentage:.1f}%)")
        if total_tag_commits:
            average = total_tag_commits / len(tagged)
            print(
                f"Total Tag Commits: {total_tag_commits} "
                f"(avg {average:.1f} per PR with tag commits)"
            )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pr-tracker", add_help=True)
    parser.add_argument(
        "--since", "-since", default="",
        help="Start date in YYYY-MM-DD format (defaults to 30 days ago)",
    )
    parser.add_argument(
        "--until", "-until", default="", help="End date in YYYY-MM-DD format (defaults to now)"
    )
    parser.add_argument(
        "--exclude", "-exclude", default="",
        help="Comma-separated list of GitHub usernames to ignore",
    )
    parser.add_argument(
        "--tags-repo", "-tags-repo", dest="tags_repo", default="",
        help="Tags repository in owner/repo format for checking tag commits",
    )
    parser.add_argument("args", nargs="*", help="owner/repo")
    return parser


def _fail(message: str) -> int:
    print(message, file=sys.stderr)
    return 1


def main(argv: Sequence[str] | None = None) -> int:
    """Run the pull-request tracker and return the exit status."""
    parser = _build_parser()
    options = parser.parse_args(argv)

    if not options.args:
        print("Usage: pr-tracker [flags] owner/repo")
        print("Flags:")
        print(parser.format_help())
        return 1

    parts = options.args[0].split("/")
    if len(parts) != 2:
        return _fail("Invalid repository format. Use 'owner/repo'")
    owner, repo = parts

    tags_owner = tags_repo = ""
    if options.tags_repo:
        tags_parts = options.tags_repo.split("/")
        if len(tags_parts) != 2:
            return _fail("Invalid tags repository format. Use 'owner/repo'")
        tags_owner, tags_repo = tags_parts

    denylist = options.exclude.split(",")

    try:
        start_date, end_date = parse_date_range(options.since, options.until)
    except ValueError as exc:
        return _fail(str(exc))

    token = os.environ.get("GITHUB_TOKEN", "")
    if not token:
        return _fail("GITHUB_TOKEN environment variable not set")

    try:
        cache = default_cache()
    except OSError as exc:
        return _fail(f"Error creating cache: {exc}")

    with cache:
        client = CachedGitHubClient(token, cache)
        try:
            print(
                f"Fetching PRs for {owner}/{repo} from "
                f"{start_date:%Y-%m-%d} to {end_date:%Y-%m-%d}..."
            )
            try:
                prs = client.fetch_pull_requests(owner, repo, start_date, end_date)
            except GitHubError as exc:
                return _fail(f"Error fetching pull requests: {exc}")
            print(f"Found {len(prs)} pull requests for {owner}/{repo}")
            results = process_pull_requests(
                client, prs, owner, repo, denylist, tags_owner, tags_repo
            )
            print_results(results)
        finally:
            client.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())