import pytest

from txcli.jsonapi.query import Query


@pytest.mark.parametrize(
    "query, expected",
    [
        (Query(filters={"color": "red"}), "filter%5Bcolor%5D=red"),
        (Query(filters={"age__gt": "15"}), "filter%5Bage%5D%5Bgt%5D=15"),
        (Query(includes=["aaa", "bbb"]), "include=aaa%2Cbbb"),
        (Query(extras={"limit": "15"}), "limit=15"),
    ],
)
def test_encode(query, expected):
    assert query.encode() == expected


def test_empty_query_encodes_to_empty_string():
    assert Query().encode() == ""


def test_keys_are_sorted():
    query = Query(filters={"slug": "s", "organization": "o:org"}, extras={"a": "1"})
    assert query.encode() == (
        "a=1&filter%5Borganization%5D=o%3Aorg&filter%5Bslug%5D=s"
    )


def test_spaces_are_plus_encoded():
    assert Query(extras={"q": "a b"}).encode() == "q=a+b"