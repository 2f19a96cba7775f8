import pytest

from txcli.jsonapi.errors import (
    ErrorItem,
    JsonApiError,
    RedirectError,
    RetryError,
    parse_error_response,
    parse_retry_response,
)

SINGLE = b"""{"errors": [{"status": "400",
                           "code": "bad_request",
                           "title": "Bad request",
                           "detail": "Invalid username"}]}"""

DOUBLE = b"""{"errors": [{"status": "409",
                           "code": "conflict",
                           "title": "Conflict",
                           "detail": "username is already taken"},
                          {"status": "409",
                           "code": "conflict",
                           "title": "Conflict",
                           "detail": "email is already taken"}]}"""


def test_single_error_response():
    error = parse_error_response(400, SINGLE)
    assert isinstance(error, JsonApiError)
    assert error.status_code == 400
    assert str(error) == "400, bad_request: Invalid username"


def test_single_error_response_structurally():
    error = parse_error_response(400, SINGLE)
    assert error.status_code == 400
    assert error.errors[0] == ErrorItem(
        status="400", code="bad_request", title="Bad request", detail="Invalid username"
    )


def test_double_error_response():
    error = parse_error_response(409, DOUBLE)
    assert error.status_code == 409
    assert str(error) == (
        "409, conflict: username is already taken, conflict: email is already taken"
    )


def test_success_status_is_not_an_error():
    assert parse_error_response(200, SINGLE) is None
    assert parse_error_response(399, b"") is None


def test_unparsable_body_gives_bare_error():
    error = parse_error_response(500, b"{errors:[{}]}")
    assert error.errors == []
    assert str(error) == "500"


def test_error_can_be_raised_and_caught():
    error = parse_error_response(404, b"{}")
    assert error.status_code == 404
    assert error.errors == []
    with pytest.raises(JsonApiError, match="^404$") as info:
        raise error
    assert info.value is error


def test_source_fields_are_parsed():
    body = b'{"errors": [{"code": "x", "source": {"pointer": "/data", "parameter": "p"}}]}'
    item = parse_error_response(400, body).errors[0]
    assert item.source_pointer == "/data"
    assert item.source_parameter == "p"


@pytest.mark.parametrize("status", [200, 400, 404, 500])
def test_non_retry_statuses(status):
    assert parse_retry_response(status, {"Retry-After": "5"}) is None


@pytest.mark.parametrize("status", [502, 503, 504])
def test_gateway_statuses_retry_after_ten(status):
    error = parse_retry_response(status, {})
    assert (error.status_code, error.retry_after) == (status, 10)


def test_throttled_uses_retry_after_header():
    error = parse_retry_response(429, {"retry-after": "7"})
    assert error.retry_after == 7
    assert str(error) == "Response error code 429, retry after 7"


@pytest.mark.parametrize("headers", [{}, None, {"Retry-After": "soon"}, {"Retry-After": "1.5"}])
def test_throttled_defaults_to_one_second(headers):
    error = parse_retry_response(429, headers)
    assert isinstance(error, RetryError)
    assert error.retry_after == 1


def test_redirect_error_keeps_location():
    error = RedirectError("https://files.example.com/x")
    assert error.location == "https://files.example.com/x"
    assert "does not handle redirects" in str(error)