"""GitHub API records used by the pull-request and deployment tools."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

_FRACTION_RE = re.compile(r"^(.*T\d{2}:\d{2}:\d{2})\.(\d+)(.*)$")


def _parse_time(text: str | None) -> datetime | None:
    if not text:
        return None
    text = text.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    match = _FRACTION_RE.match(text)
    if match:
        fraction = (match.group(2) + "000000")[:6]
        text = f"{match.group(1)}.{fraction}{match.group(3)}"
    moment = datetime.fromisoformat(text)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _format_time(moment: datetime | None) -> str | None:
    if moment is None:
        return None
    text = moment.isoformat()
    if text.endswith("+00:00"):
        text = text[: -len("+00:00")] + "Z"
    return text


def _mapping(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


@dataclass
class PullRequest:
    """A pull request as listed by the GitHub API."""

    number: int = 0
    title: str = ""
    state: str = ""
    draft: bool = False
    user_login: str = ""
    head_ref: str = ""
    created_at: datetime | None = None
    merged_at: datetime | None = None
    closed_at: datetime | None = None

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> PullRequest:
        return cls(
            number=int(data.get("number") or 0),
            title=data.get("title") or "",
            state=data.get("state") or "",
            draft=bool(data.get("draft")),
            user_login=_mapping(data.get("user")).get("login") or "",
            head_ref=_mapping(data.get("head")).get("ref") or "",
            created_at=_parse_time(data.get("created_at")),
            merged_at=_parse_time(data.get("merged_at")),
            closed_at=_parse_time(data.get("closed_at")),
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "number": self.number,
            "title": self.title,
            "state": self.state,
            "draft": self.draft,
            "user": {"login": self.user_login},
            "head": {"ref": self.head_ref},
            "created_at": _format_time(self.created_at),
            "merged_at": _format_time(self.merged_at),
            "closed_at": _format_time(self.closed_at),
        }


@dataclass
class PullRequestReview:
    """A review submitted on a pull request."""

    id: int = 0
    user_login: str = ""
    state: str = ""
    submitted_at: datetime | None = None

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> PullRequestReview:
        return cls(
            id=int(data.get("id") or 0),
            user_login=_mapping(data.get("user")).get("login") or "",
            state=data.get("state") or "",
            submitted_at=_parse_time(data.get("submitted_at")),
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user": {"login": self.user_login},
            "state": self.state,
            "submitted_at": _format_time(self.submitted_at),
        }


@dataclass
class CommitFile:
    """A file touched by a commit, with its diff when GitHub provides one."""

    filename: str = ""
    patch: str | None = None

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> CommitFile:
        return cls(filename=data.get("filename") or "", patch=data.get("patch"))

    def to_json(self) -> dict[str, Any]:
        result: dict[str, Any] = {"filename": self.filename}
        if self.patch is not None:
            result["patch"] = self.patch
        return result


@dataclass
class RepositoryCommit:
    """A commit in a repository, optionally with the files it changed."""

    sha: str = ""
    message: str = ""
    author_name: str = ""
    author_date: datetime | None = None
    committer_date: datetime | None = None
    files: list[CommitFile] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> RepositoryCommit:
        commit = _mapping(data.get("commit"))
        author = _mapping(commit.get("author"))
        committer = _mapping(commit.get("committer"))
        return cls(
            sha=data.get("sha") or "",
            message=commit.get("message") or "",
            author_name=author.get("name") or "",
            author_date=_parse_time(author.get("date")),
            committer_date=_parse_time(committer.get("date")),
            files=[CommitFile.from_json(item) for item in data.get("files") or []],
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "sha": self.sha,
            "commit": {
                "message": self.message,
                "author": {"name": self.author_name, "date": _format_time(self.author_date)},
                "committer": {"date": _format_time(self.committer_date)},
            },
            "files": [item.to_json() for item in self.files],
        }


@dataclass
class TagCommit:
    """A commit in the tags repository that refers to a pull request."""

    sha: str
    message: str
    date: datetime | None
    author: str


@dataclass
class PullRequestMetric:
    """Review timings and deployment references for one pull request."""

    pr_title: str
    pr_number: int
    author: str
    time_to_first_review: timedelta = timedelta(0)
    first_reviewer: str = ""
    first_review_state: str = ""
    time_to_approval: timedelta = timedelta(0)
    approver: str = ""
    has_review: bool = False
    time_since_creation: timedelta = timedelta(0)
    tag_commits: list[TagCommit] = field(default_factory=list)