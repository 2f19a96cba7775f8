import pytest

from txcli.jsonapi.errors import JsonApiError
from txcli.jsonapi.mocking import (
    MockData,
    MockEndpoint,
    MockRequest,
    MockResponse,
    get_mock_text_response,
    get_test_connection,
)
from txcli.txapi.languages import get_language, get_languages

LANGUAGES = """{"data": [
    {"type": "languages", "id": "l:fr", "attributes": {"code": "fr", "name": "French"}},
    {"type": "languages", "id": "l:el", "attributes": {"code": "el", "name": "Greek"}}
]}"""


@pytest.fixture(autouse=True)
def _fresh_languages():
    get_languages.cache_clear()
    yield
    get_languages.cache_clear()


def test_get_languages_keys_by_code():
    mock_data = MockData({"/languages": get_mock_text_response(LANGUAGES)})
    languages = get_languages(get_test_connection(mock_data))
    assert sorted(languages) == ["el", "fr"]
    assert languages["fr"].id == "l:fr"
    assert languages["el"].attributes["name"] == "Greek"


def test_get_languages_is_memoized():
    mock_data = MockData({"/languages": get_mock_text_response(LANGUAGES)})
    api = get_test_connection(mock_data)
    first = get_languages(api)
    second = get_languages(api)
    assert first is second
    assert mock_data["/languages"].count == 1


def test_get_languages_memoizes_errors():
    mock_data = MockData(
        {
            "/languages": MockEndpoint(
                requests=[MockRequest(response=MockResponse(status=500, text="{}"))]
            )
        }
    )
    api = get_test_connection(mock_data)
    with pytest.raises(JsonApiError):
        get_languages(api)
    with pytest.raises(JsonApiError):
        get_languages(api)
    assert mock_data["/languages"].count == 1


def test_cache_clear_refetches():
    mock_data = MockData(
        {
            "/languages": MockEndpoint(
                requests=[
                    MockRequest(response=MockResponse(text=LANGUAGES)),
                    MockRequest(response=MockResponse(text=LANGUAGES)),
                ]
            )
        }
    )
    api = get_test_connection(mock_data)
    get_languages(api)
    get_languages.cache_clear()
    languages = get_languages(api)
    assert mock_data["/languages"].count == 2
    assert set(languages) == {"fr", "el"}


def test_get_language_found():
    mock_data = MockData({"/languages": get_mock_text_response(LANGUAGES)})
    language = get_language(get_test_connection(mock_data), "el")
    assert language.id == "l:el"


def test_get_language_missing():
    mock_data = MockData({"/languages": get_mock_text_response(LANGUAGES)})
    assert get_language(get_test_connection(mock_data), "de") is None