"""Messages exchanged by the cron job, in their protocol-buffer JSON form.

Field names are written in lowerCamelCase; on reading, the original
snake_case names are accepted as well. Unset fields are left out.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1
_TIMESTAMP_PATTERN = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d{1,9}))?(Z|[+-]\d{2}:\d{2})"
)
_INTEGER_PATTERN = re.compile(r"-?\d+")


class MessageParseError(ValueError):
    """A message could not be decoded from JSON."""


def _format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    text = value.strftime("%Y-%m-%dT%H:%M:%S")
    micros = value.microsecond
    if micros:
        text += f".{micros // 1000:03d}" if micros % 1000 == 0 else f".{micros:06d}"
    return text + "Z"


def _parse_timestamp(name: str, value: Any) -> datetime:
    if not isinstance(value, str):
        raise MessageParseError(f"invalid value for {name}: {value!r}")
    match = _TIMESTAMP_PATTERN.fullmatch(value)
    if match is None:
        raise MessageParseError(f"invalid timestamp for {name}: {value!r}")
    year, month, day, hour, minute, second, fraction, offset = match.groups()
    micros = int((fraction or "0").ljust(9, "0")[:6])
    if offset == "Z":
        zone = timezone.utc
    else:
        sign = -1 if offset[0] == "-" else 1
        hours, minutes = int(offset[1:3]), int(offset[4:6])
        zone = timezone(sign * timedelta(hours=hours, minutes=minutes))
    try:
        parsed = datetime(
            int(year), int(month), int(day), int(hour), int(minute), int(second), micros, zone
        )
    except ValueError as exc:
        raise MessageParseError(f"invalid timestamp for {name}: {value!r}") from exc
    return parsed.astimezone(timezone.utc)


def _parse_int32(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise MessageParseError(f"invalid value for {name}: {value!r}")
    if isinstance(value, int):
        number = value
    elif isinstance(value, float) and value.is_integer():
        number = int(value)
    elif isinstance(value, str) and _INTEGER_PATTERN.fullmatch(value):
        number = int(value)
    else:
        raise MessageParseError(f"invalid value for {name}: {value!r}")
    if not _INT32_MIN <= number <= _INT32_MAX:
        raise MessageParseError(f"value out of range for {name}: {value!r}")
    return number


def _parse_string(name: str, value: Any) -> str:
    if not isinstance(value, str):
        raise MessageParseError(f"invalid value for {name}: {value!r}")
    return value


def _decode_object(data: bytes | str, known: dict[str, str]) -> dict[str, Any]:
    if isinstance(data, (bytes, bytearray)):
        try:
            data = bytes(data).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MessageParseError(f"invalid UTF-8: {exc}") from exc
    try:
        document = json.loads(data)
    except json.JSONDecodeError as exc:
        raise MessageParseError(f"invalid JSON: {exc}") from exc
    if not isinstance(document, dict):
        raise MessageParseError("message is not a JSON object")
    values: dict[str, Any] = {}
    for key, value in document.items():
        name = known.get(key)
        if name is None:
            raise MessageParseError(f"unknown field {key!r}")
        if name in values:
            raise MessageParseError(f"duplicate field {key!r}")
        if value is not None:
            values[name] = value
    return values


def _encode(document: dict[str, Any]) -> bytes:
    return json.dumps(document, separators=(",", ":")).encode("utf-8")


@dataclass
class ScorecardBatchRequest:
    """A batch of repositories for one shard of a cron job."""

    repos: list[str] = field(default_factory=list)
    shard_num: int | None = None
    job_time: datetime | None = None

    _FIELDS = {
        "jobTime": "job_time",
        "job_time": "job_time",
        "shardNum": "shard_num",
        "shard_num": "shard_num",
        "repos": "repos",
    }

    def to_json(self) -> bytes:
        """Encode the request as compact JSON."""
        document: dict[str, Any] = {}
        if self.job_time is not None:
            document["jobTime"] = _format_timestamp(self.job_time)
        if self.shard_num is not None:
            document["shardNum"] = self.shard_num
        if self.repos:
            document["repos"] = list(self.repos)
        return _encode(document)

    @classmethod
    def from_json(cls, data: bytes | str) -> ScorecardBatchRequest:
        """Decode a request; raise MessageParseError on malformed input."""
        values = _decode_object(data, cls._FIELDS)
        repos = values.get("repos", [])
        if not isinstance(repos, list):
            raise MessageParseError(f"invalid value for repos: {repos!r}")
        return cls(
            repos=[_parse_string("repos", repo) for repo in repos],
            shard_num=(
                _parse_int32("shardNum", values["shard_num"]) if "shard_num" in values else None
            ),
            job_time=(
                _parse_timestamp("jobTime", values["job_time"]) if "job_time" in values else None
            ),
        )


@dataclass
class ShardMetadata:
    """Metadata describing the shards created by one cron job."""

    shard_loc: str | None = None
    num_shard: int | None = None
    commit_sha: str | None = None

    _FIELDS = {
        "shardLoc": "shard_loc",
        "shard_loc": "shard_loc",
        "numShard": "num_shard",
        "num_shard": "num_shard",
        "commitSha": "commit_sha",
        "commit_sha": "commit_sha",
    }

    def to_json(self) -> bytes:
        """Encode the metadata as compact JSON."""
        document: dict[str, Any] = {}
        if self.shard_loc is not None:
            document["shardLoc"] = self.shard_loc
        if self.num_shard is not None:
            document["numShard"] = self.num_shard
        if self.commit_sha is not None:
            document["commitSha"] = self.commit_sha
        return _encode(document)

    @classmethod
    def from_json(cls, data: bytes | str) -> ShardMetadata:
        """Decode metadata; raise MessageParseError on malformed input."""
        values = _decode_object(data, cls._FIELDS)
        return cls(
            shard_loc=(
                _parse_string("shardLoc", values["shard_loc"]) if "shard_loc" in values else None
            ),
            num_shard=(
                _parse_int32("numShard", values["num_shard"]) if "num_shard" in values else None
            ),
            commit_sha=(
                _parse_string("commitSha", values["commit_sha"])
                if "commit_sha" in values
                else None
            ),
        )