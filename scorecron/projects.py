"""Project list files: CSV rows of repository URLs with optional metadata.

A project file has a header row naming the ``repo`` and ``metadata`` columns.
Lines starting with ``#`` are comments and blank lines are skipped.
"""

from __future__ import annotations

import csv
import dataclasses
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import IO
from urllib.parse import urlparse

_REPO_COLUMN = "repo"
_METADATA_COLUMN = "metadata"
_GITHUB_HOST = "github.com"


class InvalidURLError(ValueError):
    """The value is not a full repository URL."""


class UnsupportedHostError(ValueError):
    """The repository is hosted somewhere other than GitHub."""


@dataclass
class RepoURL:
    """A repository location together with its metadata tags."""

    host: str = ""
    owner: str = ""
    repo: str = ""
    metadata: list[str] = field(default_factory=list)

    @classmethod
    def parse(cls, value: str) -> RepoURL:
        """Parse ``host/owner/repo``, with or without a scheme; https is assumed."""
        if "://" not in value:
            value = "https://" + value
        try:
            parsed = urlparse(value)
        except ValueError as exc:
            raise InvalidURLError(f"cannot parse url {value!r}: {exc}") from exc
        parts = parsed.path.strip("/").split("/", 1)
        if len(parts) != 2:
            raise InvalidURLError(f"{value}. Expected full repository url")
        host = parsed.netloc.rsplit("@", 1)[-1]
        return cls(host=host, owner=parts[0], repo=parts[1])

    def url(self) -> str:
        """Return the URL as ``host/owner/repo``."""
        return f"{self.host}/{self.owner}/{self.repo}"

    def validate_github(self) -> None:
        """Raise unless this names a repository on GitHub."""
        if self.host != _GITHUB_HOST:
            raise UnsupportedHostError(f"unsupported host: {self.host}")
        if not self.owner.strip() or not self.repo.strip():
            raise InvalidURLError(f"{self.url()}. Expected the full repository url")

    def __str__(self) -> str:
        return self.url()


def parse_metadata(value: str | bytes | None) -> list[str]:
    """Split a metadata cell into its comma-separated values; empty gives []."""
    if not value:
        return []
    if isinstance(value, bytes):
        value = value.decode()
    return value.split(",")


def format_metadata(values: Iterable[str]) -> str:
    """Join metadata values into a single cell."""
    return ",".join(values)


class RepoIterator:
    """Iterates over the validated repositories of a project file.

    A bad row raises from ``next``; iteration may continue past it.
    """

    def __init__(self, stream: Iterable[str]) -> None:
        lines = (line for line in stream if not line.startswith("#"))
        self._rows = csv.reader(lines)
        header = self._read_row()
        if header is None:
            raise csv.Error("empty header: no header row found")
        self._width = len(header)
        self._repo_index = header.index(_REPO_COLUMN) if _REPO_COLUMN in header else None
        self._metadata_index = (
            header.index(_METADATA_COLUMN) if _METADATA_COLUMN in header else None
        )

    def _read_row(self) -> list[str] | None:
        for row in self._rows:
            if row:
                return row
        return None

    def __iter__(self) -> Iterator[RepoURL]:
        return self

    def __next__(self) -> RepoURL:
        row = self._read_row()
        if row is None:
            raise StopIteration
        if len(row) != self._width:
            raise csv.Error(
                f"wrong number of fields: expected {self._width}, got {len(row)} in {row!r}"
            )
        value = row[self._repo_index] if self._repo_index is not None else ""
        metadata = (
            parse_metadata(row[self._metadata_index]) if self._metadata_index is not None else []
        )
        repo = dataclasses.replace(RepoURL.parse(value), metadata=metadata)
        repo.validate_github()
        return repo


def make_iterator(stream: Iterable[str]) -> RepoIterator:
    """Return an iterator over the repositories in a project file."""
    return RepoIterator(stream)


def sort_and_append_to(
    out: IO[str],
    old_repos: Iterable[RepoURL] | None,
    new_repos: Iterable[RepoURL] | None,
) -> None:
    """Write old and new repositories to ``out`` as CSV, stably sorted by URL."""
    entries = [*(old_repos or ()), *(new_repos or ())]
    entries.sort(key=RepoURL.url)
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow([_REPO_COLUMN, _METADATA_COLUMN])
    writer.writerows([repo.url(), format_metadata(repo.metadata)] for repo in entries)


def sort_and_append_from(
    source: Iterable[str], out: IO[str], new_repos: Iterable[RepoURL] | None
) -> None:
    """Read repositories from ``source``, add ``new_repos`` and write them sorted."""
    old_repos = list(make_iterator(source))
    sort_and_append_to(out, old_repos, new_repos)