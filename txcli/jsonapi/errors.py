"""Error types raised while talking to a {json:api} server."""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from dataclasses import dataclass, field

_RETRY_STATUSES = frozenset({429, 502, 503, 504})
_GATEWAY_STATUSES = frozenset({502, 503, 504})
_GATEWAY_RETRY_AFTER = 10
_DEFAULT_RETRY_AFTER = 1
_INTEGER = re.compile(r"[+-]?[0-9]+")


@dataclass
class ErrorItem:
    """One entry of the ``errors`` array in an error response."""

    status: str = ""
    code: str = ""
    title: str = ""
    detail: str = ""
    source_pointer: str = ""
    source_parameter: str = ""

    @classmethod
    def from_dict(cls, data: Mapping) -> "ErrorItem":
        def text(mapping: Mapping, key: str) -> str:
            value = mapping.get(key, "")
            return value if isinstance(value, str) else ""

        source = data.get("source")
        if not isinstance(source, Mapping):
            source = {}
        return cls(
            status=text(data, "status"),
            code=text(data, "code"),
            title=text(data, "title"),
            detail=text(data, "detail"),
            source_pointer=text(source, "pointer"),
            source_parameter=text(source, "parameter"),
        )


class JsonApiError(Exception):
    """An error response (status 400 or above) from the server."""

    def __init__(self, status_code: int, errors: list[ErrorItem] | None = None):
        self.status_code = status_code
        self.errors: list[ErrorItem] = list(errors or [])
        super().__init__(str(self))

    def __str__(self) -> str:
        parts = [str(self.status_code)]
        parts.extend(f"{item.code}: {item.detail}" for item in self.errors)
        return ", ".join(parts)


class RedirectError(Exception):
    """The server answered with a redirect; ``location`` holds the target."""

    def __init__(self, location: str):
        self.location = location
        super().__init__(
            "jsonapi does not handle redirects. You can access the Location "
            "header through the 'location' attribute of the error"
        )


class RetryError(Exception):
    """The server asked the client to retry after some seconds."""

    def __init__(self, status_code: int, retry_after: int):
        self.status_code = status_code
        self.retry_after = retry_after
        super().__init__(
            f"Response error code {status_code}, retry after {retry_after}"
        )


def parse_error_response(status_code: int, body: bytes | str | None) -> JsonApiError | None:
    """Return a JsonApiError for error statuses, ``None`` otherwise.

    A body that cannot be parsed yields an error without items.
    """
    if status_code < 400:
        return None
    items: list[ErrorItem] = []
    try:
        data = json.loads(body) if body else None
    except (ValueError, TypeError):
        data = None
    if isinstance(data, Mapping):
        raw_errors = data.get("errors")
        if isinstance(raw_errors, list):
            items = [ErrorItem.from_dict(raw) for raw in raw_errors if isinstance(raw, Mapping)]
    return JsonApiError(status_code, items)


def _header(headers: Mapping | None, name: str) -> str | None:
    if not headers:
        return None
    value = headers.get(name)
    if value is not None:
        return value
    lowered = name.lower()
    for key, candidate in headers.items():
        if key.lower() == lowered:
            return candidate
    return None


def parse_retry_response(status_code: int, headers: Mapping | None) -> RetryError | None:
    """Return a RetryError for throttling and gateway statuses, ``None`` otherwise."""
    if status_code not in _RETRY_STATUSES:
        return None
    if status_code in _GATEWAY_STATUSES:
        return RetryError(status_code, _GATEWAY_RETRY_AFTER)
    value = _header(headers, "Retry-After")
    if value is None or not _INTEGER.fullmatch(value):
        return RetryError(status_code, _DEFAULT_RETRY_AFTER)
    return RetryError(status_code, int(value))