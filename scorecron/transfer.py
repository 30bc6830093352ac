"""Loading completed result shards from a bucket into BigQuery.

A job is ready for transfer once every expected shard exists and the
transfer-complete marker has not been written yet. The load itself is done by
a caller-supplied function, so any BigQuery client can be used.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import requests

from scorecron.blob import (
    BlobError,
    get_blob_content,
    get_blob_filename,
    get_blob_keys,
    get_transfer_status_filename,
    parse_blob_filename,
    write_to_blob_store,
)
from scorecron.config import (
    SHARD_METADATA_FILENAME,
    SHARD_NUM_FILENAME,
    TRANSFER_STATUS_FILENAME,
)
from scorecron.messages import MessageParseError, ShardMetadata

_log = logging.getLogger(__name__)

_SHARD_PREFIX = "shard-"
_SHARD_PATTERN = "shard-*"
_PARTITION_DATE_FORMAT = "%Y%m%d"
_INT_PATTERN = re.compile(r"[+-]?\d+")


class TransferError(Exception):
    """Raised when summarising or transferring shards fails."""


@dataclass
class ShardSummary:
    """What the bucket holds for one job."""

    shard_metadata: bytes = b""
    shards_expected: int = 0
    shards_created: int = 0
    is_transferred: bool = False


@dataclass
class BucketSummary:
    """Shard summaries keyed by job creation time."""

    shards: dict[datetime, ShardSummary] = field(default_factory=dict)

    def get_or_create(self, creation_time: datetime) -> ShardSummary:
        """Return the summary for ``creation_time``, creating an empty one if needed."""
        summary = self.shards.get(creation_time)
        if summary is None:
            summary = self.shards[creation_time] = ShardSummary()
        return summary


def _read_blob(bucket_url: str, key: str) -> bytes:
    try:
        return get_blob_content(bucket_url, key)
    except BlobError as exc:
        raise TransferError(f"error during GetBlobContent: {exc}") from exc


def _parse_shard_count(key: str, content: bytes) -> int:
    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise TransferError(f"invalid shard count in {key}: {exc}") from exc
    if not _INT_PATTERN.fullmatch(text):
        raise TransferError(f"invalid shard count in {key}: {text!r}")
    return int(text)


def get_bucket_summary(bucket_url: str) -> BucketSummary:
    """Scan every object in the bucket and summarise the shards of each job."""
    try:
        keys = get_blob_keys(bucket_url)
    except BlobError as exc:
        raise TransferError(f"error getting BlobKeys: {exc}") from exc

    summary = BucketSummary()
    for key in keys:
        try:
            creation_time, filename = parse_blob_filename(key)
        except BlobError as exc:
            raise TransferError(f"error parsing Blob key: {exc}") from exc
        if filename == SHARD_NUM_FILENAME:
            count = _parse_shard_count(key, _read_blob(bucket_url, key))
            summary.get_or_create(creation_time).shards_expected = count
        elif filename.startswith(_SHARD_PREFIX):
            summary.get_or_create(creation_time).shards_created += 1
        elif filename == TRANSFER_STATUS_FILENAME:
            summary.get_or_create(creation_time).is_transferred = True
        elif filename == SHARD_METADATA_FILENAME:
            content = _read_blob(bucket_url, key)
            try:
                metadata = ShardMetadata.from_json(content)
            except MessageParseError as exc:
                raise TransferError(f"error parsing data as ShardMetadata: {exc}") from exc
            shard = summary.get_or_create(creation_time)
            shard.shards_expected = metadata.num_shard or 0
            shard.shard_metadata = content
        else:
            raise TransferError(f"found unrecognized file: {key}")
    return summary


def partitioned_table_name(table_name: str, partition_date: datetime) -> str:
    """Name of the daily partition of ``table_name`` for ``partition_date``."""
    return f"{table_name}${partition_date.strftime(_PARTITION_DATE_FORMAT)}"


def gcs_source_uri(bucket_url: str, file_uri: str) -> str:
    """URI of ``file_uri`` inside the bucket, as handed to the load job."""
    return f"{bucket_url}/{file_uri}"


def transfer_data(
    bucket_url: str,
    summary: BucketSummary,
    start_transfer: Callable[[str, datetime], Any],
    webhook_url: str = "",
) -> list[datetime]:
    """Load every complete, untransferred job and mark it transferred.

    ``start_transfer(source_uri, partition_date)`` runs the load and returns
    once it has finished. When ``webhook_url`` is set, each job's shard
    metadata is posted to it. Returns the creation times transferred, in order.
    """
    transferred: list[datetime] = []
    for creation_time, shard in sorted(summary.shards.items()):
        if shard.is_transferred or shard.shards_expected != shard.shards_created:
            continue

        source_uri = gcs_source_uri(bucket_url, get_blob_filename(_SHARD_PATTERN, creation_time))
        try:
            start_transfer(source_uri, creation_time)
        except Exception as exc:  # the loader is caller-supplied; any failure stops the run
            raise TransferError(f"error during StartDataTransferJob: {exc}") from exc

        try:
            write_to_blob_store(bucket_url, get_transfer_status_filename(creation_time), None)
        except BlobError as exc:
            raise TransferError(f"error during WriteToBlobStore: {exc}") from exc
        transferred.append(creation_time)

        if not webhook_url:
            continue
        try:
            response = requests.post(
                webhook_url,
                data=shard.shard_metadata,
                headers={"Content-Type": "application/json"},
            )
        except requests.RequestException as exc:
            raise TransferError(f"error during http.Post to {webhook_url}: {exc}") from exc
        _log.info("Returned status: %s %s", response.status_code, response.text)
    return transferred