"""Downloading a translation file through an asynchronous job."""

from __future__ import annotations

import time
from os import PathLike
from pathlib import Path

import requests

from txcli.jsonapi.core import Connection, Resource
from txcli.txapi.backoff import get_backoff

DOWNLOAD_TYPE = "resource_translations_async_downloads"


def _related_id(resource: Resource, key: str) -> str:
    relationship = resource.relationships.get(key)
    if relationship is None or relationship.data_singular is None:
        return ""
    return relationship.data_singular.id


def create_translations_async_download(
    api: Connection,
    resource: Resource,
    language_code: str,
    content_encoding: str,
    file_type: str,
    mode: str,
) -> Resource:
    """Start a job on the server that prepares one language's translation file."""
    download = Resource(
        api=api,
        type=DOWNLOAD_TYPE,
        attributes={
            "content_encoding": content_encoding,
            "file_type": file_type,
            "mode": mode,
            "pseudo": False,
        },
    )
    download.set_related("resource", resource)
    download.set_related("language", Resource(type="languages", id=f"l:{language_code}"))
    download.save()
    return download


def poll_translation_download(download: Resource, file_path: str | PathLike) -> None:
    """Wait for the job's file to be ready and write it to ``file_path``.

    Raises RuntimeError when the job fails or the file cannot be fetched.
    """
    backoff = get_backoff()
    while True:
        time.sleep(backoff())
        download.reload()
        if download.redirect:
            break
        if download.attributes.get("status") == "failed":
            raise RuntimeError(
                f"failed to download translation '{_related_id(download, 'resource')}'"
            )

    with requests.get(download.redirect) as response:
        if response.status_code != 200:
            raise RuntimeError("file download error")
        content = response.content
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)