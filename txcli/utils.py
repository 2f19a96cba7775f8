"""Helpers shared by the command-line commands."""

from __future__ import annotations

import os
import re
import sys
import time
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from slugify import slugify

from txcli.jsonapi.errors import RetryError

_RESOLUTION_POLICIES = ("USE_HEAD", "USE_BASE")
_DEFAULT_WIDTH = 80


def figure_out_resources(resource_ids: Iterable[str], resources: Iterable[Any]) -> list[Any]:
    """Select configured resources by ``project.resource`` ids; ``*`` is a wildcard.

    With no ids every resource is returned. Raises ValueError when an id
    matches nothing.
    """
    resources = list(resources)
    resource_ids = list(resource_ids or [])
    if not resource_ids:
        return resources

    existing = {f"{res.project_slug}.{res.resource_slug}": res for res in resources}
    result = []
    for resource_id in resource_ids:
        pattern = re.compile(re.escape(resource_id).replace(r"\*", ".*"))
        matches = [res for key, res in existing.items() if pattern.fullmatch(key)]
        if not matches:
            raise ValueError(
                f"could not find resource '{resource_id}' in local configuration "
                "or your resource slug is invalid"
            )
        result.extend(matches)
    return result


def get_branch_resource_slug(resource_slug: str, branch: str) -> str:
    """Prefix the resource slug with the slugified branch name."""
    if not branch:
        return resource_slug
    return f"{slugify(branch)}--{resource_slug}"


def get_base_resource_slug(resource_slug: str, branch: str, base: str) -> str:
    """Swap the branch prefix of a slug for the base branch's, or drop it.

    A base of ``""`` or ``"-1"`` means the main resource.
    """
    if not branch:
        return resource_slug
    main_slug = resource_slug[len(f"{slugify(branch)}--"):]
    base_branch = "" if base == "-1" else base
    if not base_branch:
        return main_slug
    return f"{slugify(base_branch)}--{main_slug}"


def apply_branch_to_resources(resources: Iterable[Any], branch: str) -> None:
    """Rewrite each resource's ``resource_slug`` for ``branch`` in place."""
    if not branch:
        return
    for resource in resources:
        resource.resource_slug = get_branch_resource_slug(resource.resource_slug, branch)


def make_local_to_remote_language_mappings(
    global_mappings: Mapping[str, str] | None,
    resource_mappings: Mapping[str, str] | None,
) -> dict[str, str]:
    """Reverse the configured remote->local mappings; resource ones win."""
    result = {local: remote for remote, local in (global_mappings or {}).items()}
    result.update({local: remote for remote, local in (resource_mappings or {}).items()})
    return result


def make_remote_to_local_language_mappings(local_to_remote: Mapping[str, str]) -> dict[str, str]:
    """Reverse a local->remote mapping."""
    return {remote: local for local, remote in local_to_remote.items()}


def _stdout_is_terminal() -> bool:
    try:
        return bool(sys.stdout.isatty())
    except (AttributeError, ValueError, OSError):
        return False


def handle_retry(do: Callable[[], Any], initial_msg: str, send: Callable[[str], None]) -> Any:
    """Call ``do`` until it stops raising RetryError, waiting as the error asks.

    Progress is reported through ``send``; other errors propagate.
    """
    while True:
        if initial_msg:
            send(initial_msg)
        try:
            return do()
        except RetryError as error:
            if _stdout_is_terminal():
                for _ in range(error.retry_after):
                    send(str(error))
                    time.sleep(1)
            else:
                send(str(error))
                time.sleep(error.retry_after)


def is_valid_resolution_policy(policy: str) -> bool:
    """Whether ``policy`` is a known merge conflict resolution policy."""
    return policy in _RESOLUTION_POLICIES


def _terminal_width() -> int:
    try:
        return os.get_terminal_size(sys.stdout.fileno()).columns
    except (AttributeError, ValueError, OSError):
        return _DEFAULT_WIDTH


def truncate_message(message: str, width: int | None = None) -> str:
    """Shorten ``message`` to fit in ``width`` columns (the terminal's by default)."""
    if width is None:
        width = _terminal_width()
    max_length = max(width - 2, 0)
    if len(message) > max_length:
        return message[: max(max_length - 2, 0)] + ".."
    return message