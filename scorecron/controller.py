"""Splitting the project list into shards and announcing them."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Any, Protocol

from scorecron.blob import get_blob_filename, get_shard_metadata_filename, write_to_blob_store
from scorecron.messages import ScorecardBatchRequest, ShardMetadata
from scorecron.projects import RepoURL


class _Publisher(Protocol):
    def publish(self, request: ScorecardBatchRequest) -> Any: ...

    def close(self) -> Any: ...


def publish_requests(
    repos: Iterable[RepoURL], publisher: _Publisher, shard_size: int, job_time: datetime
) -> int:
    """Publish ``repos`` in batches of ``shard_size`` and close the publisher.

    Returns the number of the last shard; shards are numbered from zero, so a
    trailing partial shard carries the returned number.
    """
    shard_num = 0
    batch: list[str] = []
    for repo in repos:
        batch.append(repo.url())
        if len(batch) < shard_size:
            continue
        publisher.publish(ScorecardBatchRequest(repos=batch, shard_num=shard_num, job_time=job_time))
        batch = []
        shard_num += 1
    if batch:
        publisher.publish(ScorecardBatchRequest(repos=batch, shard_num=shard_num, job_time=job_time))
    publisher.close()
    return shard_num


def build_shard_metadata(
    shard_num: int, bucket_url: str, job_time: datetime, commit_sha: str
) -> ShardMetadata:
    """Describe a job whose last shard is ``shard_num``."""
    return ShardMetadata(
        num_shard=shard_num + 1,
        shard_loc=f"{bucket_url}/{get_blob_filename('', job_time)}",
        commit_sha=commit_sha,
    )


def write_shard_metadata(bucket_url: str, metadata: ShardMetadata, job_time: datetime) -> None:
    """Store ``metadata`` as the job's shard metadata file in the bucket."""
    write_to_blob_store(bucket_url, get_shard_metadata_filename(job_time), metadata.to_json())