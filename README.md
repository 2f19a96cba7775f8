# txcli

A Python library for working with a {json:api} localization service. It
looks up organizations, projects, resources, languages and file formats,
runs the service's asynchronous source and translation upload and download
jobs, and includes a small thread pool for running many tasks at once with
live progress output.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Modules

- `txcli.jsonapi.core`: a generic {json:api} client.
  - `Connection(host, token, headers, session, request_method)` with
    `request`, `get`, `get_from_path`, `list` and `list_from_path`.
    Passing `request_method` replaces the network with your own callable.
  - `Resource` with `fetch`, `save`, `save_as_multipart`, `reload`,
    `delete`, `add`, `remove`, `reset`, `set_related`, `map_attributes`
    (builds a dataclass from the attributes) and `unmap_attributes`.
  - `Collection` with `get_next` and `get_previous`; `Relationship`,
    `RelationshipType`, `Links`.
  - `payload_to_resource`, `make_included_map`, `json_equal`.
- `txcli.jsonapi.query`: `Query(filters, includes, extras).encode()`
  builds a sorted, URL-encoded query string; a filter key such as
  `age__gt` becomes `filter[age][gt]`.
- `txcli.jsonapi.errors`: `JsonApiError`, `ErrorItem`, `RetryError`,
  `RedirectError`, `parse_error_response`, `parse_retry_response`.
- `txcli.jsonapi.mocking`: `MockData`, `MockEndpoint`, `MockRequest`,
  `MockResponse`, `CapturedRequest`, `get_test_connection` and
  `get_mock_text_response`, for testing code against canned responses.
- `txcli.txapi.organizations`: `get_organization`, `get_organizations`.
- `txcli.txapi.projects`: `get_projects`, `get_project`,
  `get_project_languages`, `get_project_by_id`.
- `txcli.txapi.resources`: `get_resources`, `get_resource`,
  `create_resource`, `create_async_resource_merge`, `delete_resource`,
  `get_resource_by_id`, `poll_resource_merge`.
- `txcli.txapi.languages`: `get_languages` (the first result is cached;
  `get_languages.cache_clear()` forgets it) and `get_language`.
- `txcli.txapi.i18n_formats`: `get_i18n_formats`.
- `txcli.txapi.resource_language_stats`: `get_resource_stats`.
- `txcli.txapi.source_uploads`: `upload_source`, `poll_source_upload`,
  `SourceUploadError`.
- `txcli.txapi.source_downloads`: `create_resource_strings_async_download`,
  `poll_resource_strings_download`.
- `txcli.txapi.translation_uploads`: `upload_translation`,
  `poll_translation_upload`, `TranslationUploadError`.
- `txcli.txapi.translation_downloads`:
  `create_translations_async_download`, `poll_translation_download`.
- `txcli.txapi.backoff`: `get_backoff`, the polling delays
  (1, 1, 1, 2, 3, 5, 8, 13 seconds, then 13 forever).
- `txcli.worker_pool`: `Task` (subclass it and implement
  `run(send, abort)`), `Pool(num_workers, num_tasks, force_not_terminal,
  stream)` with `add`, `start` and `wait`, and `make_progress_bar`. On a
  terminal each task gets one line that `send` redraws, under a progress
  bar; otherwise messages are printed as they arrive. After `abort` no
  further tasks are started and `is_aborted` is true.
- `txcli.utils`: `figure_out_resources` (select by `project.resource`
  ids with `*` wildcards), `get_branch_resource_slug`,
  `get_base_resource_slug`, `apply_branch_to_resources`,
  `make_local_to_remote_language_mappings`,
  `make_remote_to_local_language_mappings`, `handle_retry`,
  `is_valid_resolution_policy` and `truncate_message`.

## Example

```python
from txcli.jsonapi.core import Connection
from txcli.jsonapi.query import Query
from txcli.txapi.organizations import get_organization
from txcli.txapi.projects import get_project
from txcli.txapi.resources import get_resource

api = Connection(host="https://api.example.com", token="token")

organization = get_organization(api, "my-org")
project = get_project(api, organization, "my-project")
resource = get_resource(api, project, "my-resource")
print(resource.attributes["name"])

print(Query(filters={"age__gt": "15"}).encode())  # filter%5Bage%5D%5Bgt%5D=15
```

## Errors

Failures are raised as exceptions:

- `JsonApiError` for responses with status 400 or above; it carries
  `status_code` and the parsed `errors`.
- `RetryError` for 429, 502, 503 and 504 responses; it carries
  `retry_after` (from `Retry-After` for 429, 10 for gateway errors).
  `txcli.utils.handle_retry` waits and retries when it is raised.
- `RedirectError` for redirects; it carries `location`. `Resource.reload`
  stores it in `redirect` instead of raising.
- `SourceUploadError` and `TranslationUploadError` when an upload job fails.
- `RuntimeError` when a download job fails or its file cannot be fetched.

## What it does not do

This is a library only: it installs no command. It does not read or write
a project configuration file; `figure_out_resources` and
`apply_branch_to_resources` work on objects you supply that have
`project_slug` and `resource_slug` attributes. It does not detect the
current version-control branch; branch names are passed in.