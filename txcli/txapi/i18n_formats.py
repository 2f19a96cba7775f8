"""Looking up the file formats an organization can use."""

from __future__ import annotations

from txcli.jsonapi.core import Connection, Resource
from txcli.jsonapi.query import Query


def get_i18n_formats(api: Connection, organization: Resource) -> dict[str, Resource]:
    """Return the organization's file formats keyed by id."""
    query = Query(filters={"organization": organization.id}).encode()
    formats = api.list("i18n_formats", query)
    result = {}
    for i18n_format in formats.data:
        i18n_format.set_related("organization", organization)
        result[i18n_format.id] = i18n_format
    return result