import io

import pytest

from scorecron.projects import InvalidURLError, RepoURL, make_iterator
from scorecron.tools import (
    DuplicateRepoError,
    add_main,
    merge_repo_urls,
    validate_main,
    validate_projects,
)

NO_CHANGE = """repo,metadata
github.com/owner1/repo1,"meta1,meta2"
github.com/owner2/repo2,
"""

ADD_METADATA = """repo,metadata
github.com/owner1/repo1,meta1
github.com/owner2/repo2,
github.com/owner1/repo1,meta2
github.com/owner2/repo2,meta1
"""

SKIP_LATEST = """repo,metadata
github.com/owner1/repo1,"meta1,meta2"
github.com/owner2/repo2,
github.com/owner1/repo1,meta1
github.com/owner1/repo1,meta2
"""

SKIP_EMPTY = """repo,metadata
github.com/owner1/repo1,"meta1,meta2"
github.com/owner2/repo2,meta3
github.com/owner2/repo2,
github.com/owner1/repo1,
"""

SKIP_EMPTY_2 = """repo,metadata
github.com/owner1/repo1,meta1
github.com/owner1/repo1,"meta2,"
github.com/owner2/repo2,
github.com/owner2/repo2,"meta3,,"
"""


def _repo(owner, name, metadata=()):
    return RepoURL(host="github.com", owner=owner, repo=name, metadata=list(metadata))


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        (NO_CHANGE, [_repo("owner1", "repo1", ["meta1", "meta2"]), _repo("owner2", "repo2")]),
        (
            ADD_METADATA,
            [_repo("owner1", "repo1", ["meta1", "meta2"]), _repo("owner2", "repo2", ["meta1"])],
        ),
        (SKIP_LATEST, [_repo("owner1", "repo1", ["meta1", "meta2"]), _repo("owner2", "repo2")]),
        (
            SKIP_EMPTY,
            [_repo("owner1", "repo1", ["meta1", "meta2"]), _repo("owner2", "repo2", ["meta3"])],
        ),
        (
            SKIP_EMPTY_2,
            [_repo("owner1", "repo1", ["meta1", "meta2"]), _repo("owner2", "repo2", ["meta3"])],
        ),
    ],
    ids=["NoChange", "AddMetadata", "SkipLatest", "SkipEmpty", "SkipEmpty_2"],
)
def test_merge_repo_urls(text, expected):
    merged = merge_repo_urls(make_iterator(io.StringIO(text)))
    assert sorted(merged, key=RepoURL.url) == expected


def test_merge_does_not_mutate_input():
    first = _repo("owner1", "repo1", ["a"])
    merge_repo_urls([first, _repo("owner1", "repo1", ["b"])])
    assert first.metadata == ["a"]


def test_validate_projects_counts_unique():
    assert validate_projects(io.StringIO(NO_CHANGE)) == 2


def test_validate_projects_rejects_duplicates():
    with pytest.raises(DuplicateRepoError):
        validate_projects(io.StringIO(ADD_METADATA))


def test_validate_projects_rejects_bad_url():
    with pytest.raises(InvalidURLError):
        validate_projects(io.StringIO("repo,metadata\ngithub.com/owner,\n"))


def test_add_main_writes_sorted_output(tmp_path):
    source = tmp_path / "in.csv"
    target = tmp_path / "out.csv"
    source.write_text(ADD_METADATA, encoding="utf-8")
    assert add_main([str(source), str(target)]) == 0
    assert target.read_text(encoding="utf-8") == (
        "repo,metadata\n"
        'github.com/owner1/repo1,"meta1,meta2"\n'
        "github.com/owner2/repo2,meta1\n"
    )


def test_add_main_requires_two_arguments():
    with pytest.raises(SystemExit, match="must provide 2 arguments"):
        add_main(["only-one"])


def test_validate_main_accepts_valid_file(tmp_path):
    source = tmp_path / "projects.csv"
    source.write_text(NO_CHANGE, encoding="utf-8")
    assert validate_main([str(source)]) == 0


def test_validate_main_fails_on_duplicates(tmp_path):
    source = tmp_path / "projects.csv"
    source.write_text(SKIP_LATEST, encoding="utf-8")
    with pytest.raises(SystemExit, match="already in the list"):
        validate_main([str(source)])


def test_validate_main_requires_single_argument():
    with pytest.raises(SystemExit, match="single argument"):
        validate_main([])