"""Looking up the organizations the user belongs to."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Optional

from txcli.jsonapi.core import Collection, Connection, Resource


def _iter_resources(page: Collection) -> Iterator[Resource]:
    while True:
        yield from page.data
        if not page.next:
            return
        page = page.get_next()


def get_organization(api: Connection, organization_slug: str) -> Optional[Resource]:
    """Return the organization with the given slug, or ``None`` if there is none."""
    return next(
        (
            organization
            for organization in _iter_resources(api.list("organizations"))
            if organization.attributes.get("slug") == organization_slug
        ),
        None,
    )


def get_organizations(api: Connection) -> list[Resource]:
    """Return every organization, following pagination."""
    return list(_iter_resources(api.list("organizations")))