"""Looking up, creating, merging and deleting resources."""

from __future__ import annotations

import time
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


def _project_resources(api: Connection, project: Resource) -> Iterator[Resource]:
    query = Query(filters={"project": project.id}).encode()
    return _iter_resources(api.list("resources", query))


def get_resources(api: Connection, project: Resource) -> list[Resource]:
    """Return every resource of the project, following pagination."""
    result = []
    for resource in _project_resources(api, project):
        resource.set_related("project", project)
        result.append(resource)
    return result


def get_resource(api: Connection, project: Resource, resource_slug: str) -> Optional[Resource]:
    """Return the project's resource with ``resource_slug``, or ``None``."""
    for resource in _project_resources(api, project):
        if resource.attributes.get("slug") == resource_slug:
            resource.set_related("project", project)
            return resource
    return None


def create_resource(
    api: Connection,
    project_id: str,
    resource_name: str,
    resource_slug: str,
    type_: str,
    base: str = "",
) -> Resource:
    """Create a resource of file format ``type_``, optionally branched from ``base``."""
    resource = Resource(
        api=api,
        type="resources",
        attributes={"name": resource_name, "slug": resource_slug},
    )
    resource.set_related("project", Resource(type="projects", id=project_id))
    resource.set_related("i18n_format", Resource(type="i18n_formats", id=type_))
    fields = ["name", "slug", "project", "i18n_format"]
    if base:
        resource.set_related("base", Resource(type="resources", id=base))
        fields.append("base")
    resource.save(fields)

    project = resource.relationships.get("project")
    if project is not None:
        project.fetched = False
    return resource


def create_async_resource_merge(
    api: Connection,
    resource: Resource,
    conflict_resolution: str,
    force_merge: bool,
) -> Resource:
    """Start merging a branch resource into its base."""
    merge = Resource(
        api=api,
        type="resource_async_merges",
        attributes={"conflict_resolution": conflict_resolution, "force": force_merge},
    )
    merge.set_related("resource", resource)
    merge.save()
    return merge


def delete_resource(api: Connection, resource: Resource) -> None:
    """Delete the resource on the server."""
    resource.delete()


def get_resource_by_id(api: Connection, id_: str) -> Optional[Resource]:
    """Return the resource with ``id_``, or ``None`` if the server says it is not found."""
    try:
        return api.get("resources", id_)
    except JsonApiError as error:
        if error.status_code == 404:
            return None
        raise


def poll_resource_merge(merge: Resource, duration: float) -> None:
    """Reload ``merge`` every ``duration`` seconds until its status is COMPLETED."""
    while True:
        merge.reload()
        if merge.attributes.get("status") == "COMPLETED":
            return
        time.sleep(duration)