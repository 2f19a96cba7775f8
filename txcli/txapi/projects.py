"""Looking up projects and their languages."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Optional

from txcli.jsonapi.core import Collection, Connection, Resource
from txcli.jsonapi.errors import JsonApiError
from txcli.jsonapi.query import Query


def _iter_resources(page: Collection) -> Iterator[Resource]:
    while True:
        yield from page.data
        if not page.next:
            return
        page = page.get_next()


def get_projects(api: Connection, organization: Resource) -> list[Resource]:
    """Return every project of the organization, following pagination."""
    query = Query(filters={"organization": organization.id}).encode()
    result = []
    for project in _iter_resources(api.list("projects", query)):
        project.set_related("organization", organization)
        result.append(project)
    return result


def get_project(
    api: Connection, organization: Resource, project_slug: str
) -> Optional[Resource]:
    """Return the organization's project with ``project_slug``, or ``None``."""
    query = Query(filters={"organization": organization.id, "slug": project_slug}).encode()
    projects = api.list("projects", query).data
    if not projects:
        return None
    if len(projects) > 1:
        raise ValueError(f"somehow found more than 1 projects with slug {project_slug}")
    project = projects[0]
    project.set_related("organization", organization)
    return project


def get_project_languages(project: Resource) -> dict[str, Resource]:
    """Return the project's target languages keyed by code."""
    relationship = project.fetch("languages")
    return {
        language.attributes.get("code", ""): language
        for language in _iter_resources(relationship.data_plural)
    }


def get_project_by_id(api: Connection, id_: str) -> Optional[Resource]:
    """Return the project with ``id_``, or ``None`` if the server says it is not found."""
    try:
        return api.get("projects", id_)
    except JsonApiError as error:
        if error.status_code == 404:
            return None
        raise