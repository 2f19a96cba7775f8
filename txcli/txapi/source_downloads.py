"""Downloading the source file of a resource through an asynchronous job."""

from __future__ import annotations

import time
from os import PathLike
from pathlib import Path

import requests

from txcli.jsonapi.core import Connection, Resource
from txcli.txapi.backoff import get_backoff

DOWNLOAD_TYPE = "resource_strings_async_downloads"


def _related_id(resource: Resource, key: str) -> str:
    relationship = resource.relationships.get(key)
    if relationship is None or relationship.data_singular is None:
        return ""
    return relationship.data_singular.id


def _save_download(url: str, file_path: str | PathLike) -> None:
    with requests.get(url) as response:
        if response.status_code != 200:
            raise RuntimeError("file download error")
        content = response.content
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)


def create_resource_strings_async_download(
    api: Connection,
    resource: Resource,
    content_encoding: str,
    file_type: str,
    pseudo: bool,
) -> Resource:
    """Start a job on the server that prepares the resource's source file."""
    download = Resource(
        api=api,
        type=DOWNLOAD_TYPE,
        attributes={
            "content_encoding": content_encoding,
            "file_type": file_type,
            "pseudo": pseudo,
        },
    )
    download.set_related("resource", resource)
    download.save()
    return download


def poll_resource_strings_download(download: Resource, file_path: str | PathLike) -> None:
    """Wait for the job to finish and write the file it produced to ``file_path``.

    Raises RuntimeError when the job fails or the file cannot be fetched.
    """
    backoff = get_backoff()
    while True:
        time.sleep(backoff())
        download.reload()
        if download.redirect:
            _save_download(download.redirect, file_path)
            return
        status = download.attributes.get("status")
        if status == "failed":
            raise RuntimeError(
                f"failed to download translation '{_related_id(download, 'resource')}'"
            )
        if status == "succeeded":
            return