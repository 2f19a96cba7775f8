"""Translation progress of a resource per language."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Optional

from txcli.jsonapi.core import Collection, Connection, Resource
from txcli.jsonapi.query import Query


def _iter_resources(page: Collection) -> Iterator[Resource]:
    while True:
        yield from page.data
        if not page.next:
            return
        page = page.get_next()


def get_resource_stats(
    api: Connection, resource: Resource, language: Optional[Resource] = None
) -> dict[str, Resource]:
    """Return the resource's statistics keyed by language id.

    With ``language`` only that language's statistics are requested.
    """
    project = resource.relationships["project"].data_singular
    filters = {"project": project.id, "resource": resource.id}
    if language is not None:
        filters["language"] = language.id
    page = api.list("resource_language_stats", Query(filters=filters).encode())

    result = {}
    for stats in _iter_resources(page):
        stats.set_related("resource", resource)
        result[stats.relationships["language"].data_singular.id] = stats
    return result