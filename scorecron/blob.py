"""Reading and writing blobs in a result bucket.

Buckets are addressed by URL; ``file://`` URLs name a local directory whose
files are the bucket's objects, with ``/``-separated keys.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import unquote, urlparse

from scorecron.config import (
    SHARD_METADATA_FILENAME,
    SHARD_NUM_FILENAME,
    TRANSFER_STATUS_FILENAME,
)

# Lexicographic order of these prefixes matches chronological order.
_FILE_PREFIX_FORMAT = "%Y.%m.%d/%H%M%S/"
_FILE_PREFIX_LENGTH = len("2006.01.02/150405/")
_PREFIX_PATTERN = re.compile(r"(\d{4})\.(\d{2})\.(\d{2})/(\d{2})(\d{2})(\d{2})/")


class BlobError(Exception):
    """Raised when a blob operation fails."""


class ShortBlobNameError(BlobError):
    """The blob key is shorter than the expected time prefix."""


class BlobNameParseError(BlobError):
    """The blob key's time prefix could not be parsed."""


def _open_bucket(bucket_url: str) -> Path:
    parsed = urlparse(bucket_url)
    if parsed.scheme != "file":
        raise BlobError(f"error opening bucket {bucket_url}: unsupported scheme {parsed.scheme!r}")
    root = Path(unquote(parsed.path))
    if not root.is_dir():
        raise BlobError(f"error opening bucket {bucket_url}: directory does not exist")
    return root


def _object_path(root: Path, key: str) -> Path:
    if not key or key.startswith("/") or ".." in key.split("/"):
        raise BlobError(f"invalid blob key: {key!r}")
    return root.joinpath(*key.split("/"))


def get_blob_keys(bucket_url: str) -> list[str]:
    """Return all object keys in the bucket, sorted."""
    root = _open_bucket(bucket_url)
    return sorted(p.relative_to(root).as_posix() for p in root.rglob("*") if p.is_file())


def get_blob_content(bucket_url: str, key: str) -> bytes:
    """Return the content of the object ``key``."""
    path = _object_path(_open_bucket(bucket_url), key)
    try:
        return path.read_bytes()
    except OSError as exc:
        raise BlobError(f"error reading {key}: {exc}") from exc


def blob_exists(bucket_url: str, key: str) -> bool:
    """Tell whether the object ``key`` exists in the bucket."""
    return _object_path(_open_bucket(bucket_url), key).is_file()


def write_to_blob_store(bucket_url: str, filename: str, data: bytes | None) -> None:
    """Create or replace the object ``filename`` with ``data``."""
    path = _object_path(_open_bucket(bucket_url), filename)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data or b"")
    except OSError as exc:
        raise BlobError(f"error writing {filename}: {exc}") from exc


def get_blob_filename(filename: str, datetime: datetime) -> str:
    """Return the blob key for ``filename`` in the shard created at ``datetime``."""
    return datetime.strftime(_FILE_PREFIX_FORMAT) + filename


def get_shard_num_filename(datetime: datetime) -> str:
    """Blob key of the shard-count file for a job."""
    return get_blob_filename(SHARD_NUM_FILENAME, datetime)


def get_transfer_status_filename(datetime: datetime) -> str:
    """Blob key of the transfer-complete marker for a job."""
    return get_blob_filename(TRANSFER_STATUS_FILENAME, datetime)


def get_shard_metadata_filename(datetime: datetime) -> str:
    """Blob key of the shard metadata file for a job."""
    return get_blob_filename(SHARD_METADATA_FILENAME, datetime)


def parse_blob_filename(key: str) -> tuple[datetime, str]:
    """Split a blob key into its UTC creation time and object name."""
    if len(key) < _FILE_PREFIX_LENGTH:
        raise ShortBlobNameError(f"input key length is shorter than expected: {key}")
    prefix, object_name = key[:_FILE_PREFIX_LENGTH], key[_FILE_PREFIX_LENGTH:]
    match = _PREFIX_PATTERN.fullmatch(prefix)
    if match is None:
        raise BlobNameParseError(f"error parsing input blob name: {prefix!r}")
    try:
        created = datetime(*(int(part) for part in match.groups()), tzinfo=timezone.utc)
    except ValueError as exc:
        raise BlobNameParseError(f"error parsing input blob name: {exc}") from exc
    return created, object_name