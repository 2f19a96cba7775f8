"""Uploading a translation file through an asynchronous job."""

from __future__ import annotations

import time
from collections.abc import Iterable, Mapping
from typing import IO, Any, Optional

from txcli.jsonapi.core import Connection, Resource
from txcli.jsonapi.errors import ErrorItem
from txcli.txapi.backoff import get_backoff

UPLOAD_TYPE = "resource_translations_async_uploads"


class TranslationUploadError(Exception):
    """The server reported that a translation upload failed."""

    def __init__(
        self,
        resource_id: str,
        language_id: str,
        errors: Iterable[ErrorItem] = (),
        details: Optional[Mapping[str, Any]] = None,
    ):
        self.resource_id = resource_id
        self.language_id = language_id
        self.errors = list(errors)
        self.details = dict(details or {})
        super().__init__(str(self))

    def __str__(self) -> str:
        reasons = ", ".join(f"{item.code}: {item.detail}" for item in self.errors)
        return (
            f"failed to upload resource '{self.resource_id}', "
            f"language '{self.language_id}' - {reasons}"
        )


def _related_id(resource: Resource, key: str) -> str:
    relationship = resource.relationships.get(key)
    if relationship is None or relationship.data_singular is None:
        return ""
    return relationship.data_singular.id


def _error_items(raw: Any) -> list[ErrorItem]:
    if not isinstance(raw, list):
        return []
    return [ErrorItem.from_dict(item) for item in raw if isinstance(item, Mapping)]


def upload_translation(
    api: Connection,
    resource: Resource,
    language: Resource,
    file: IO,
    xliff: bool,
) -> Resource:
    """Start a job that uploads ``file`` as the translation of ``resource`` in ``language``."""
    content = file.read()
    if isinstance(content, str):
        content = content.encode()
    upload = Resource(
        api=api,
        type=UPLOAD_TYPE,
        attributes={"content": content, "file_type": "xliff" if xliff else "default"},
    )
    upload.set_related("resource", resource)
    upload.set_related("language", language)
    upload.save_as_multipart()
    return upload


def poll_translation_upload(upload: Resource) -> None:
    """Wait for the upload job to succeed; raise TranslationUploadError if it fails."""
    backoff = get_backoff()
    while True:
        time.sleep(backoff())
        upload.reload()
        status = upload.attributes.get("status")
        if status == "failed":
            details = upload.attributes.get("details")
            raise TranslationUploadError(
                _related_id(upload, "resource"),
                _related_id(upload, "language"),
                _error_items(upload.attributes.get("errors")),
                details if isinstance(details, Mapping) else None,
            )
        if status == "succeeded":
            return