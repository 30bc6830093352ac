"""Maintenance commands for the project list file."""

from __future__ import annotations

import csv
import dataclasses
import io
import sys
from collections.abc import Iterable, Sequence
from typing import IO

from scorecron.projects import RepoURL, make_iterator, sort_and_append_to


class DuplicateRepoError(ValueError):
    """A repository appears more than once in a project file."""


def merge_repo_urls(repos: Iterable[RepoURL]) -> list[RepoURL]:
    """Collapse duplicate repositories, keeping the first and merging new metadata.

    Metadata seen for a repository already is skipped, as is empty metadata on
    later entries.
    """
    merged: dict[str, RepoURL] = {}
    seen: dict[str, set[str]] = {}
    for repo in repos:
        key = repo.url()
        if key not in merged:
            merged[key] = dataclasses.replace(repo, metadata=list(repo.metadata))
            seen[key] = set(repo.metadata)
            continue
        for value in repo.metadata:
            if value and value not in seen[key]:
                merged[key].metadata.append(value)
                seen[key].add(value)
    return list(merged.values())


def validate_projects(stream: IO[str]) -> int:
    """Check every row is a valid GitHub repository and none repeats; return the count."""
    seen: set[str] = set()
    for repo in make_iterator(stream):
        key = repo.url()
        if key in seen:
            raise DuplicateRepoError(f"Item already in the list {key}")
        seen.add(key)
    return len(seen)


def add_main(argv: Sequence[str] | None = None) -> int:
    """Deduplicate and sort a project file: ``add INPUT OUTPUT``."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 2:
        raise SystemExit("must provide 2 arguments")
    input_path, output_path = args
    try:
        with open(input_path, encoding="utf-8", newline="") as source:
            repos = merge_repo_urls(make_iterator(source))
    except (OSError, ValueError, csv.Error) as exc:
        raise SystemExit(str(exc)) from exc
    buffer = io.StringIO()
    sort_and_append_to(buffer, repos, None)
    try:
        with open(output_path, "w", encoding="utf-8", newline="") as out:
            out.write(buffer.getvalue())
    except OSError as exc:
        raise SystemExit(str(exc)) from exc
    return 0


def validate_main(argv: Sequence[str] | None = None) -> int:
    """Validate a project file: ``validate INPUT``."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 1:
        raise SystemExit("must provide single argument")
    try:
        with open(args[0], encoding="utf-8", newline="") as source:
            validate_projects(source)
    except (OSError, ValueError, csv.Error) as exc:
        raise SystemExit(str(exc)) from exc
    return 0


if __name__ == "__main__":
    sys.exit(add_main())