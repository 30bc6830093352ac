from datetime import datetime, timezone

import pytest

from scorecron.blob import get_blob_content, get_blob_keys, get_shard_metadata_filename
from scorecron.controller import build_shard_metadata, publish_requests, write_shard_metadata
from scorecron.messages import ShardMetadata
from scorecron.projects import RepoURL

JOB_TIME = datetime(2021, 4, 23, 15, 6, 43, tzinfo=timezone.utc)


class RecordingPublisher:
    def __init__(self):
        self.requests = []
        self.closed = False

    def publish(self, request):
        self.requests.append(request)

    def close(self):
        self.closed = True


def _repos(count):
    return [RepoURL.parse(f"github.com/owner{i}/repo{i}") for i in range(count)]


def _broken_repos():
    yield RepoURL.parse("github.com/owner1/repo1")
    raise ValueError("bad row")


def test_partial_last_shard():
    repos = _repos(5)
    publisher = RecordingPublisher()
    last = publish_requests(repos, publisher, 2, JOB_TIME)
    published = publisher.requests
    assert publisher.closed
    assert [len(r.repos) for r in published[:-1]] == [2] * (len(published) - 1)
    assert 0 < len(published[-1].repos) < 2
    assert [r.shard_num for r in published] == list(range(len(published)))
    assert last == published[-1].shard_num
    assert [url for r in published for url in r.repos] == [repo.url() for repo in repos]
    assert all(r.job_time == JOB_TIME for r in published)


def test_exact_multiple_of_shard_size():
    repos = _repos(4)
    publisher = RecordingPublisher()
    last = publish_requests(repos, publisher, 2, JOB_TIME)
    published = publisher.requests
    assert all(len(r.repos) == 2 for r in published)
    assert last == len(published)
    assert [url for r in published for url in r.repos] == [repo.url() for repo in repos]


def test_no_repos_publishes_nothing():
    publisher = RecordingPublisher()
    assert publish_requests([], publisher, 10, JOB_TIME) == 0
    assert publisher.requests == []
    assert publisher.closed


def test_iteration_error_propagates():
    with pytest.raises(ValueError, match="bad row"):
        publish_requests(_broken_repos(), RecordingPublisher(), 10, JOB_TIME)


def test_build_shard_metadata_location():
    metadata = build_shard_metadata(3, "gs://bucket", JOB_TIME, "abc123")
    assert metadata.shard_loc == "gs://bucket/2021.04.23/150643/"
    assert metadata.commit_sha == "abc123"
    assert metadata.num_shard == build_shard_metadata(2, "gs://bucket", JOB_TIME, "").num_shard + 1


def test_write_shard_metadata(tmp_path):
    bucket = tmp_path.as_uri()
    metadata = build_shard_metadata(0, bucket, JOB_TIME, "abc123")
    write_shard_metadata(bucket, metadata, JOB_TIME)
    key = get_shard_metadata_filename(JOB_TIME)
    assert get_blob_keys(bucket) == [key]
    assert ShardMetadata.from_json(get_blob_content(bucket, key)) == metadata