# scorecron

`scorecron` holds the batch side of a repository security scoring service.
It keeps the list of projects to score, splits that list into shards of
requests, reads and writes result blobs named by job time, and hands
finished shards on to a loader for the warehouse.

## Installation

```
pip install scorecron
```

For running the test suite:

```
pip install "scorecron[test]"
pytest
```

## Project lists

Projects live in a CSV file with a header row naming a `repo` column and a
`metadata` column. Metadata values are comma separated inside the cell,
lines starting with `#` are comments and blank lines are skipped:

```
repo,metadata
github.com/owner1/repo1,meta1
github.com/owner2/repo2,
```

Check a list for rows that are not valid GitHub repositories and for
duplicates:

```
scorecron-validate projects.csv
```

Merge duplicate entries (the first entry wins, metadata from later entries
is added once, empty values are dropped) and write the list, sorted by URL,
to a new file:

```
scorecron-add projects.csv projects.new.csv
```

Both commands exit with the error message when the file cannot be read or a
row is invalid.

The same work is available from Python:

```python
from scorecron.projects import make_iterator, sort_and_append_to
from scorecron.tools import merge_repo_urls, validate_projects

with open("projects.csv", newline="") as source:
    repos = merge_repo_urls(make_iterator(source))

with open("projects.new.csv", "w", newline="") as out:
    sort_and_append_to(out, repos, [])
```

`sort_and_append_from(source, out, new_repos)` reads a list, adds
`new_repos` and writes the sorted result. `validate_projects` returns the
number of repositories and raises `DuplicateRepoError` on a repeat.

`RepoURL.parse` turns `github.com/owner/repo` (with or without a scheme)
into a `RepoURL`, raising `InvalidURLError` when the owner or repository is
missing; `validate_github` raises `UnsupportedHostError` for hosts other
than `github.com` and `InvalidURLError` for blank parts. Iterating a project
file raises these errors from the bad row, and iteration may continue past
it. `parse_metadata` and `format_metadata` split and join a metadata cell.

## Configuration

Settings come from a bundled YAML document (`scorecron.config.CONFIG_YAML`)
and can be overridden one by one through environment variables:
`SCORECARD_PROJECT_ID`, `SCORECARD_DATA_BUCKET_URL`,
`SCORECARD_DATA_BUCKET_URLV2`, `SCORECARD_REQUEST_TOPIC_URL`,
`SCORECARD_REQUEST_SUBSCRIPTION_URL`, `SCORECARD_BIGQUERY_DATASET`,
`SCORECARD_BIGQUERY_TABLE`, `SCORECARD_BIGQUERY_TABLEV2`,
`SCORECARD_SHARD_SIZE`, `SCORECARD_WEBHOOK_URL` and
`SCORECARD_METRIC_EXPORTER`.

Read them with the functions in `scorecron.config`, for example
`get_project_id()`, `get_shard_size()` or `get_result_data_bucket_url()`.
An empty value raises `EmptyConfigValueError`, except for the webhook URL,
for which `get_webhook_url()` returns an empty string. A shard size that is
not an integer raises `ValueConversionError`. `parse_config` turns any YAML
text into a `CronConfig`.

## Blob names and buckets

Result blobs are keyed by job time, so sorting names sorts them by time:

```python
from datetime import datetime
from scorecron.blob import get_blob_filename, parse_blob_filename

key = get_blob_filename("shard-00010", datetime(2021, 6, 9, 16, 55, 3))
# "2021.06.09/165503/shard-00010"
when, name = parse_blob_filename(key)
# when is 2021-06-09 16:55:03 UTC, name is "shard-00010"
```

`parse_blob_filename` raises `ShortBlobNameError` or `BlobNameParseError`
for keys without a valid time prefix.

Buckets are addressed by `file://` URLs naming a local directory;
`get_blob_keys`, `get_blob_content`, `blob_exists` and `write_to_blob_store`
list, read, test and write objects in it, raising `BlobError` on failure.

## Requests and shards

`scorecron.messages` defines `ScorecardBatchRequest` and `ShardMetadata`,
which encode to and decode from compact JSON (`to_json`, `from_json`) with
lowerCamelCase field names; bad input raises `MessageParseError`.

`scorecron.controller.publish_requests(repos, publisher, shard_size,
job_time)` groups repositories into requests of `shard_size` and returns the
number of the last shard; `build_shard_metadata` and `write_shard_metadata`
record how many shards a job produced in the bucket.

`scorecron.pubsub.Publisher` wraps any topic object with a `send(body)`
method, sending in background threads; `close()` (or leaving a `with`
block) waits and raises `PublishError` if any send failed.
`Subscriber` wraps any receiver with `receive()` and `shutdown()`:
`synchronous_pull()` returns the next request, or `None` when receiving
fails, and `ack()` / `nack()` settle the last message.

## Transfers

`scorecron.transfer.get_bucket_summary(bucket_url)` looks over a result
bucket and returns a `BucketSummary` of expected and created shards per job.
`transfer_data(bucket_url, summary, start_transfer, webhook_url)` calls
`start_transfer(source_uri, partition_date)` for every job whose shards are
all present and not yet transferred, writes the transfer-complete marker,
and posts the job's shard metadata to the webhook if one is given. It
returns the job times transferred. `partitioned_table_name` and
`gcs_source_uri` build the names a loader needs.

## Check documentation

`scorecron.docs.read_docs` parses the check descriptions YAML into a `Doc`
of `CheckDoc` entries, and `render_markdown` turns it into a Markdown page,
one section per check in name order with its remediation steps:

```
scorecron-docs checks.yaml [OUTPUT]
```

The output file defaults to `checks.md`.

## Package registries

`scorecron.registry` finds the source repository of a package published on
npm (`fetch_repo_from_npm`), PyPI (`fetch_repo_from_pypi`) or RubyGems
(`fetch_repo_from_rubygems`), raising `RegistryError` when the registry
cannot be reached or names no source repository.

## What this package does not do

- It does not score repositories; it only prepares, moves and records the
  batches that a scoring worker would process.
- Buckets are local directories only; there is no driver for cloud object
  storage.
- There is no message-queue client: publishers and subscribers work with
  topic and receiver objects that the caller supplies.
- There is no warehouse client: the load itself is the `start_transfer`
  function passed to `transfer_data`.
- There is no long-running worker, controller command, metrics exporter or
  HTTP server.