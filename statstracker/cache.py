"""File-backed cache for API responses, with optional expiry."""

from __future__ import annotations

import contextlib
import hashlib
import json
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import platformdirs

DEFAULT_APP_NAME = "statstracker"

_FRACTION_RE = re.compile(r"^(.*T\d{2}:\d{2}:\d{2})\.(\d+)(.*)$")


class CacheMiss(LookupError):
    """Raised when a key is absent from the cache or its entry has expired."""


def _format_time(moment: datetime) -> str:
    text = moment.isoformat()
    if text.endswith("+00:00"):
        text = text[: -len("+00:00")] + "Z"
    return text


def _parse_time(text: str) -> datetime:
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
    return moment


def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        return _format_time(value)
    to_json = getattr(value, "to_json", None)
    if callable(to_json):
        return to_json()
    raise TypeError(f"value of type {type(value).__name__} is not JSON serialisable")


@dataclass
class Entry:
    """A cached value together with its creation and expiry times."""

    data: Any
    created_at: datetime
    expires_at: datetime | None = None

    def is_expired(self) -> bool:
        """Return True once the expiry time has passed."""
        if self.expires_at is None:
            return False
        return datetime.now(timezone.utc) > self.expires_at

    def to_json(self) -> dict[str, Any]:
        """Return the entry as a JSON-ready mapping."""
        result: dict[str, Any] = {"data": self.data}
        if self.expires_at is not None:
            result["expires_at"] = _format_time(self.expires_at)
        result["created_at"] = _format_time(self.created_at)
        return result

    @classmethod
    def from_json(cls, data: Any) -> Entry:
        """Build an entry from a decoded JSON mapping."""
        if not isinstance(data, dict):
            raise ValueError("cache entry must be a JSON object")
        expires = data.get("expires_at")
        created = data.get("created_at")
        return cls(
            data=data.get("data"),
            created_at=_parse_time(created) if created else datetime.min.replace(tzinfo=timezone.utc),
            expires_at=_parse_time(expires) if expires else None,
        )


def _key_part(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (datetime, date)):
        return f"{value:%Y-%m-%d}"
    return str(value)


@dataclass(frozen=True)
class CacheKeyBuilder:
    """Builds consistent, prefixed cache keys."""

    prefix: str

    def _build(self, *parts: Any) -> str:
        return ":".join([self.prefix, *(_key_part(part) for part in parts)])

    def pr_key(self, owner: str, repo: str, pr_number: int) -> str:
        return self._build("pr", owner, repo, pr_number)

    def pr_reviews_key(self, owner: str, repo: str, pr_number: int) -> str:
        return self._build("pr_reviews", owner, repo, pr_number)

    def prs_list_key(self, owner: str, repo: str, start_date: date, end_date: date) -> str:
        return self._build("prs_list", owner, repo, start_date, end_date)

    def commits_list_key(self, owner: str, repo: str, start_date: date, end_date: date) -> str:
        return self._build("commits_list", owner, repo, start_date, end_date)

    def commit_key(self, owner: str, repo: str, sha: str) -> str:
        return self._build("commit", owner, repo, sha)

    def release_key(self, project_id: str, region: str, release_name: str) -> str:
        return self._build("release", project_id, region, release_name)

    def rollouts_key(self, project_id: str, region: str, release_name: str) -> str:
        return self._build("rollouts", project_id, region, release_name)

    def releases_list_key(
        self, project_id: str, region: str, pipeline: str, start_date: date, end_date: date
    ) -> str:
        return self._build("releases_list", project_id, region, pipeline, start_date, end_date)

    def flaky_tests_key(self, org: str, repo: str) -> str:
        return self._build("flaky-tests", org, repo)


class FileCache:
    """A cache that keeps one JSON file per key under a base directory."""

    def __init__(self, base_dir: str | Path) -> None:
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _path_for(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self.base_dir / digest[:2] / f"{digest[2:]}.json"

    def get(self, key: str) -> Any:
        """Return the decoded value stored under key, or raise CacheMiss."""
        path = self._path_for(key)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise CacheMiss(key) from None
        try:
            entry = Entry.from_json(json.loads(raw))
        except ValueError as exc:
            raise ValueError(f"failed to unmarshal cache entry: {exc}") from exc
        if entry.is_expired():
            with contextlib.suppress(OSError):
                self.delete(key)
            raise CacheMiss(key)
        return entry.data

    def set(self, key: str, value: Any, ttl: timedelta | None = None) -> None:
        """Store value under key; a positive ttl makes the entry expire."""
        data = json.loads(json.dumps(value, default=_encode))
        now = datetime.now(timezone.utc)
        expires_at = now + ttl if ttl is not None and ttl > timedelta(0) else None
        entry = Entry(data=data, created_at=now, expires_at=expires_at)
        path = self._path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(entry.to_json()), encoding="utf-8")

    def delete(self, key: str) -> None:
        """Remove key from the cache; a missing key is not an error."""
        self._path_for(key).unlink(missing_ok=True)

    def close(self) -> None:
        """Release resources; a file cache holds none."""

    def __enter__(self) -> FileCache:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


def new_file_cache(app_name: str) -> FileCache:
    """Create a file cache in the user's cache directory for app_name."""
    base = platformdirs.user_cache_dir(app_name, appauthor=False, opinion=False)
    return FileCache(base)


def default_cache() -> FileCache:
    """Create the cache the command-line tools use."""
    return new_file_cache(DEFAULT_APP_NAME)