"""In-memory stand-ins for a {json:api} server, for use in tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from txcli.jsonapi.core import Connection
from txcli.jsonapi.errors import RedirectError, parse_error_response


@dataclass
class CapturedRequest:
    """What a client sent to a mocked endpoint."""

    method: str = ""
    payload: Optional[bytes] = None
    content_type: str = ""


@dataclass
class MockResponse:
    """The canned answer of a mocked endpoint."""

    status: int = 0
    text: str = ""
    redirect: str = ""


@dataclass
class MockRequest:
    """A canned response together with the request that consumed it."""

    response: MockResponse = field(default_factory=MockResponse)
    request: CapturedRequest = field(default_factory=CapturedRequest)


@dataclass
class MockEndpoint:
    """Responses served in order for one path; ``count`` says how many were used."""

    requests: list[MockRequest] = field(default_factory=list)
    count: int = 0


class MockData(dict):
    """Mocked endpoints keyed by request path."""

    def next_request(self, path: str) -> Optional[MockRequest]:
        """Hand out the next unused request of ``path``, or ``None``."""
        endpoint = self.get(path)
        if endpoint is None or endpoint.count >= len(endpoint.requests):
            return None
        endpoint.count += 1
        return endpoint.requests[endpoint.count - 1]


def get_test_connection(mock_data: MockData) -> Connection:
    """Return a Connection answered from ``mock_data`` instead of the network."""

    def request_method(
        method: str, path: str, payload: Optional[bytes], content_type: str
    ) -> bytes:
        mock_request = mock_data.next_request(path)
        if mock_request is None:
            raise LookupError(f"{path} not found")
        mock_request.request = CapturedRequest(
            method=method, payload=payload, content_type=content_type
        )
        error = parse_error_response(mock_request.response.status, mock_request.response.text)
        if error is not None:
            raise error
        if mock_request.response.redirect:
            raise RedirectError(mock_request.response.redirect)
        return mock_request.response.text.encode()

    return Connection(request_method=request_method)


def get_mock_text_response(text: str) -> MockEndpoint:
    """An endpoint that answers once with ``text``."""
    return MockEndpoint(requests=[MockRequest(response=MockResponse(text=text))])