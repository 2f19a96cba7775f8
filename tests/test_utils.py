import io
from dataclasses import dataclass
from unittest import mock

import pytest

from txcli.jsonapi.errors import RetryError
from txcli.utils import (
    apply_branch_to_resources,
    figure_out_resources,
    get_base_resource_slug,
    get_branch_resource_slug,
    handle_retry,
    is_valid_resolution_policy,
    make_local_to_remote_language_mappings,
    make_remote_to_local_language_mappings,
    truncate_message,
)


@dataclass
class _Res:
    project_slug: str
    resource_slug: str


def _resources():
    return [_Res("abc", "def"), _Res("abc", "dfg"), _Res("oab", "def")]


@pytest.mark.parametrize(
    "pattern, expected",
    [
        ("abc.def", [("abc", "def")]),
        ("a*", [("abc", "def"), ("abc", "dfg")]),
        ("ab*", [("abc", "def"), ("abc", "dfg")]),
        ("abc*", [("abc", "def"), ("abc", "dfg")]),
        ("abc.*", [("abc", "def"), ("abc", "dfg")]),
        ("abc.d*", [("abc", "def"), ("abc", "dfg")]),
        ("abc.de*", [("abc", "def")]),
        ("abc*def", [("abc", "def")]),
        ("ab*def", [("abc", "def")]),
        ("a*def", [("abc", "def")]),
        ("*def", [("abc", "def"), ("oab", "def")]),
        ("abc*ef", [("abc", "def")]),
        ("abc*f", [("abc", "def")]),
        ("*bc.def", [("abc", "def")]),
        ("*c.def", [("abc", "def")]),
        ("*.def", [("abc", "def"), ("oab", "def")]),
        ("*bc.de*", [("abc", "def")]),
        ("*bc*de*", [("abc", "def")]),
    ],
)
def test_figure_out_resources(pattern, expected):
    result = figure_out_resources([pattern], _resources())
    assert sorted((r.project_slug, r.resource_slug) for r in result) == expected


def test_figure_out_resources_unknown_pattern():
    with pytest.raises(ValueError, match="could not find resource 'foo\\*'"):
        figure_out_resources(["foo*"], _resources())


def test_figure_out_resources_without_ids_returns_all():
    resources = _resources()
    assert figure_out_resources([], resources) == resources


def test_truncate_message():
    assert truncate_message("short message", 80) == "short message"
    assert truncate_message(
        "this is a long message that needs to be truncated because it exceeds "
        "the maximum length of 75 characters",
        80,
    ) == "this is a long message that needs to be truncated because it exceeds the max.."
    message = "a message with exactly 75 characters - this message should not be truncated"
    assert truncate_message(message, 80) == message


def test_truncate_message_result_fits_width():
    assert len(truncate_message("x" * 200, 40)) == 38


def test_branch_slugs():
    assert get_branch_resource_slug("res", "") == "res"
    assert get_branch_resource_slug("res", "Feature/New") == "feature-new--res"


def test_base_slugs():
    assert get_base_resource_slug("feature--res", "feature", "") == "res"
    assert get_base_resource_slug("feature--res", "feature", "-1") == "res"
    assert get_base_resource_slug("feature--res", "feature", "Main") == "main--res"
    assert get_base_resource_slug("res", "", "main") == "res"


def test_base_slug_undoes_branch_slug():
    branched = get_branch_resource_slug("res", "some branch")
    assert get_base_resource_slug(branched, "some branch", "") == "res"


def test_apply_branch_to_resources():
    resources = _resources()
    apply_branch_to_resources(resources, "main")
    assert [r.resource_slug for r in resources] == ["main--def", "main--dfg", "main--def"]
    apply_branch_to_resources(resources, "")
    assert resources[0].resource_slug == "main--def"


def test_language_mappings():
    local_to_remote = make_local_to_remote_language_mappings(
        {"pt_BR": "pt-br", "de_DE": "de"}, {"pt_PT": "pt-br"}
    )
    assert local_to_remote == {"pt-br": "pt_PT", "de": "de_DE"}
    assert make_remote_to_local_language_mappings(local_to_remote) == {
        "pt_PT": "pt-br",
        "de_DE": "de",
    }


def test_language_mappings_empty():
    assert make_local_to_remote_language_mappings(None, None) == {}


@pytest.mark.parametrize(
    "policy, valid",
    [("USE_HEAD", True), ("USE_BASE", True), ("use_head", False), ("", False)],
)
def test_resolution_policy(policy, valid):
    assert is_valid_resolution_policy(policy) is valid


class _TtyStream(io.StringIO):
    def isatty(self):
        return True


def _flaky(retry_after):
    calls = []

    def do():
        calls.append(1)
        if len(calls) == 1:
            raise RetryError(429, retry_after)
        return "done"

    return do


def test_handle_retry_not_terminal(monkeypatch):
    monkeypatch.setattr("sys.stdout", io.StringIO())
    sent = []
    with mock.patch("txcli.utils.time.sleep") as sleep:
        result = handle_retry(_flaky(2), "working", sent.append)
    assert result == "done"
    assert sent == ["working", "Response error code 429, retry after 2", "working"]
    sleep.assert_called_once_with(2)


def test_handle_retry_terminal_counts_down(monkeypatch):
    monkeypatch.setattr("sys.stdout", _TtyStream())
    sent = []
    with mock.patch("txcli.utils.time.sleep") as sleep:
        handle_retry(_flaky(2), "", sent.append)
    assert sent == ["Response error code 429, retry after 2"] * 2
    assert sleep.call_args_list == [mock.call(1), mock.call(1)]


def test_handle_retry_propagates_other_errors():
    def do():
        raise KeyError("boom")

    with pytest.raises(KeyError):
        handle_retry(do, "", lambda message: None)