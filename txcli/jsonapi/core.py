"""Objects for talking to a {json:api} server.

A Connection fetches single resources and paginated collections. A Resource
can be saved, reloaded and deleted; its relationships can be fetched and, for
plural ones, modified::

    api = Connection(host="https://api.example.com", token="token")
    page = api.list("students", Query(filters={"age__gt": "15"}).encode())
    teacher = api.get("teachers", "1")
    teacher.attributes["age"] += 1
    teacher.save(["age"])
    manager = teacher.fetch("manager").data_singular
"""

from __future__ import annotations

import copy
import inspect
import json
import re
import uuid
from collections.abc import Callable, Iterable, Mapping
from dataclasses import MISSING, dataclass, field, is_dataclass
from dataclasses import fields as dataclass_fields
from enum import IntEnum
from typing import Any, Optional, get_args, get_origin
from urllib.parse import urljoin

import requests

from txcli.jsonapi.errors import (
    RedirectError,
    parse_error_response,
    parse_retry_response,
)

DEFAULT_CONTENT_TYPE = "application/vnd.api+json"

RequestMethod = Callable[[str, str, Optional[bytes], str], bytes]


def _text(mapping: Any, key: str) -> str:
    if not isinstance(mapping, Mapping):
        return ""
    value = mapping.get(key, "")
    return value if isinstance(value, str) else ""


def _load_object(body: bytes | str | None) -> Mapping:
    if not body:
        raise ValueError("empty response body")
    data = json.loads(body)
    if not isinstance(data, Mapping):
        raise ValueError("expected a JSON object in the response")
    return data


@dataclass
class Links:
    """The ``self`` and ``related`` links of a relationship or resource."""

    self_url: str = ""
    related: str = ""

    @classmethod
    def from_payload(cls, raw: Any) -> "Links":
        return cls(self_url=_text(raw, "self"), related=_text(raw, "related"))

    def __bool__(self) -> bool:
        return bool(self.self_url or self.related)


class RelationshipType(IntEnum):
    """Plurality of a relationship."""

    NULL = 0
    SINGULAR = 1
    PLURAL = 2


@dataclass(eq=False)
class Collection:
    """One page of resources, with links to its neighbouring pages."""

    api: Optional["Connection"] = None
    data: list["Resource"] = field(default_factory=list)
    next: str = ""
    previous: str = ""

    def _connection(self) -> "Connection":
        if self.api is None:
            raise ValueError("collection is not bound to a connection")
        return self.api

    def get_next(self) -> "Collection":
        """Fetch the page pointed to by the ``next`` link."""
        if not self.next:
            raise ValueError("no next page")
        return self._connection().list_from_path(self.next)

    def get_previous(self) -> "Collection":
        """Fetch the page pointed to by the ``previous`` link."""
        if not self.previous:
            raise ValueError("no previous page")
        return self._connection().list_from_path(self.previous)


@dataclass(eq=False)
class Relationship:
    """A relationship of a resource, fetched or not."""

    type: RelationshipType = RelationshipType.NULL
    fetched: bool = False
    data_singular: Optional["Resource"] = None
    data_plural: Collection = field(default_factory=Collection)
    links: Links = field(default_factory=Links)


def _identifier(resource: Optional["Resource"]) -> dict[str, str]:
    if resource is None:
        return {}
    result = {}
    if resource.type:
        result["type"] = resource.type
    if resource.id:
        result["id"] = resource.id
    return result


def _quote(name: str) -> str:
    return name.replace("\\", "\\\\").replace('"', '\\"')


def _form_field(name: str, value: str) -> tuple[str, bytes]:
    return f'Content-Disposition: form-data; name="{_quote(name)}"', value.encode()


def _form_file(name: str, content: bytes) -> tuple[str, bytes]:
    headers = (
        f'Content-Disposition: form-data; name="{_quote(name)}"; '
        f'filename="{_quote(name)}.txt"\r\n'
        "Content-Type: application/octet-stream"
    )
    return headers, bytes(content)


def _multipart_body(boundary: str, parts: Iterable[tuple[str, bytes]]) -> bytes:
    delimiter = f"--{boundary}\r\n".encode()
    chunks = [
        delimiter + headers.encode() + b"\r\n\r\n" + content + b"\r\n"
        for headers, content in parts
    ]
    chunks.append(f"--{boundary}--\r\n".encode())
    return b"".join(chunks)


def _to_plain(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return {
            item.metadata.get("json", item.name): _to_plain(getattr(value, item.name))
            for item in dataclass_fields(value)
        }
    if isinstance(value, Mapping):
        return {str(key): _to_plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_plain(item) for item in value]
    return copy.deepcopy(value)


_LIST_HINT = re.compile(r"(?:typing\.)?(?:list|List)\[(.*)\]")
_OPTIONAL_HINT = re.compile(r"(?:typing\.)?Optional\[(.*)\]")


def _resolve_text(text: str, namespace: Mapping[str, Any]) -> Any:
    text = text.strip().strip("'\"")
    match = _LIST_HINT.fullmatch(text)
    if match:
        inner = _resolve_text(match[1], namespace)
        return list[inner] if isinstance(inner, type) else list
    match = _OPTIONAL_HINT.fullmatch(text)
    if match:
        return _resolve_text(match[1], namespace)
    options = [part for part in (p.strip() for p in text.split("|")) if part != "None"]
    if len(options) == 1 and options[0] != text:
        return _resolve_text(options[0], namespace)
    return namespace.get(text)


def _resolve_hint(cls: type, hint: Any) -> Any:
    """Turn a string annotation of a field of ``cls`` into the type it names."""
    if not isinstance(hint, str):
        return hint
    module = inspect.getmodule(cls)
    namespace = vars(module) if module is not None else {}
    return _resolve_text(hint, namespace)


def _convert(hint: Any, value: Any) -> Any:
    if isinstance(hint, type) and is_dataclass(hint) and isinstance(value, Mapping):
        return _build(hint, value)
    if get_origin(hint) is list and isinstance(value, list):
        args = get_args(hint)
        if args:
            return [_convert(args[0], item) for item in value]
    return copy.deepcopy(value)


def _build(cls: type, data: Mapping) -> Any:
    kwargs = {}
    for item in dataclass_fields(cls):
        if not item.init:
            continue
        key = item.metadata.get("json", item.name)
        if key in data:
            kwargs[item.name] = _convert(_resolve_hint(cls, item.type), data[key])
        elif item.default is MISSING and item.default_factory is MISSING:
            kwargs[item.name] = None
    return cls(**kwargs)


@dataclass(eq=False)
class Resource:
    """A single {json:api} resource."""

    api: Optional["Connection"] = None
    type: str = ""
    id: str = ""
    attributes: dict[str, Any] = field(default_factory=dict)
    relationships: dict[str, Relationship] = field(default_factory=dict)
    redirect: str = ""
    links: Links = field(default_factory=Links)

    def _connection(self) -> "Connection":
        if self.api is None:
            raise ValueError("resource is not bound to a connection")
        return self.api

    def _all_fields(self) -> list[str]:
        return list(self.attributes) + list(self.relationships)

    def _target(self) -> tuple[str, str]:
        if self.id:
            return "PATCH", f"/{self.type}/{self.id}"
        return "POST", f"/{self.type}"

    def _self_url(self) -> str:
        return self.links.self_url or f"/{self.type}/{self.id}"

    def fetch(self, key: str) -> Relationship:
        """Fetch a relationship's data unless it was fetched already."""
        relationship = self.relationships.get(key)
        if relationship is None:
            raise KeyError(f"relationship {key} does not exist")
        if relationship.type is RelationshipType.NULL:
            raise ValueError("cannot fetch null relationship")
        if relationship.fetched:
            return relationship

        if relationship.type is RelationshipType.SINGULAR:
            url = relationship.links.related
            if not url:
                related = relationship.data_singular or Resource()
                url = f"/{related.type}/{related.id}"
            relationship.data_singular = self._connection().get_from_path(url)
            relationship.fetched = True
        else:
            url = relationship.links.related
            if not url:
                raise ValueError("plural relationship doesn't have a 'related' link")
            relationship.data_plural = self._connection().list_from_path(url)
            relationship.fetched = True
        return relationship

    def save(self, fields: Iterable[str] | None = None) -> None:
        """Send the given fields (all when none) with PATCH, or POST when new."""
        names = list(fields) if fields else self._all_fields()
        method, url = self._target()

        data: dict[str, Any] = {"type": self.type}
        if self.id:
            data["id"] = self.id
        attributes: dict[str, Any] = {}
        relationships: dict[str, Any] = {}
        for name in names:
            relationship = self.relationships.get(name)
            if name in self.attributes:
                attributes[name] = self.attributes[name]
            elif relationship is not None and relationship.type is RelationshipType.SINGULAR:
                relationships[name] = {"data": _identifier(relationship.data_singular)}
            else:
                raise ValueError(f"field {name} is invalid")
        if attributes:
            data["attributes"] = attributes
        if relationships:
            data["relationships"] = relationships

        body = json.dumps({"data": data}).encode()
        self._overwrite(self._connection().request(method, url, body, ""))

    def save_as_multipart(self, fields: Iterable[str] | None = None) -> None:
        """Like ``save`` but sends the fields as multipart form data."""
        names = list(fields) if fields else self._all_fields()
        method, url = self._target()

        boundary = uuid.uuid4().hex
        parts: list[tuple[str, bytes]] = []
        for name in names:
            if name in self.attributes:
                value = self.attributes[name]
                if isinstance(value, bool):
                    parts.append(_form_field(name, "true" if value else "false"))
                elif isinstance(value, str):
                    parts.append(_form_field(name, value))
                elif isinstance(value, (bytes, bytearray)):
                    parts.append(_form_file(name, value))
                else:
                    raise TypeError(f"field {name} is not of type string or bytes")
            elif name in self.relationships:
                relationship = self.relationships[name]
                if relationship.type is not RelationshipType.SINGULAR:
                    raise ValueError(f"field {name} is not a singular relationship")
                related = relationship.data_singular or Resource()
                parts.append(_form_field(name, related.id))
            else:
                raise ValueError(f"field {name} is invalid")

        body = self._connection().request(
            method,
            url,
            _multipart_body(boundary, parts),
            f"multipart/form-data;boundary={boundary}",
        )
        self._overwrite(body)

    def delete(self) -> None:
        """Delete the resource on the server and clear its id."""
        self._connection().request("DELETE", self._self_url(), None, "")
        self.id = ""

    def reload(self) -> None:
        """Refresh from the server; a redirect is stored in ``redirect``."""
        try:
            body = self._connection().request("GET", self._self_url(), None, "")
        except RedirectError as error:
            self.redirect = error.location
            return
        self._overwrite(body)

    def add(self, field: str, items: Iterable["Resource"]) -> None:
        """Add items to a plural relationship."""
        self._modify_plural_relationship("POST", field, items)

    def remove(self, field: str, items: Iterable["Resource"]) -> None:
        """Remove items from a plural relationship."""
        self._modify_plural_relationship("DELETE", field, items)

    def reset(self, field: str, items: Iterable["Resource"]) -> None:
        """Replace the items of a plural relationship."""
        self._modify_plural_relationship("PATCH", field, items)

    def _modify_plural_relationship(
        self, method: str, field_name: str, items: Iterable["Resource"]
    ) -> None:
        relationship = self.relationships.get(field_name)
        if relationship is None:
            raise KeyError(f"relationship '{field_name}' does not exist")
        if relationship.type is not RelationshipType.PLURAL:
            raise ValueError(f"cannot modify the non-plural relationship '{field_name}'")
        url = relationship.links.self_url or (
            f"/{self.type}/{self.id}/relationships/{field_name}"
        )
        data = [{"type": item.type, **({"id": item.id} if item.id else {})} for item in items]
        payload = json.dumps({"data": data or None}).encode()
        self._connection().request(method, url, payload, "")

        relationship.data_plural = Collection()
        relationship.fetched = False

    def _overwrite(self, body: bytes | str | None) -> None:
        response = _load_object(body)
        included = make_included_map(response.get("included"), self.api)
        result = payload_to_resource(response.get("data"), included, self.api)

        self.type = result.type
        self.id = result.id
        self.attributes = result.attributes

        for key in [key for key in self.relationships if key not in result.relationships]:
            del self.relationships[key]

        for key, new in result.relationships.items():
            old = self.relationships.get(key)
            if old is None or old.type != new.type:
                overwrite = True
            elif new.type is RelationshipType.SINGULAR:
                overwrite = (
                    _identifier(old.data_singular) != _identifier(new.data_singular)
                    or new.fetched
                )
            elif new.type is RelationshipType.PLURAL:
                overwrite = new.fetched
            else:
                overwrite = False
            if overwrite:
                self.relationships[key] = new
            self.relationships[key].links = new.links

    def map_attributes(self, target: type) -> Any:
        """Build an instance of the dataclass ``target`` from the attributes.

        A field's JSON key is its ``json`` metadata entry, else its name.
        """
        if not (isinstance(target, type) and is_dataclass(target)):
            raise TypeError("target must be a dataclass type")
        return _build(target, self.attributes)

    def unmap_attributes(self, source: Any) -> None:
        """Merge a dataclass instance or mapping into the attributes."""
        plain = _to_plain(source)
        if not isinstance(plain, dict):
            raise TypeError("source must be a dataclass instance or a mapping")
        self.attributes.update(plain)

    def set_related(self, field: str, related: "Resource") -> None:
        """Point a singular relationship at ``related``, marked as fetched."""
        existing = self.relationships.get(field)
        links = existing.links if existing is not None else Links()
        self.relationships[field] = Relationship(
            type=RelationshipType.SINGULAR,
            fetched=True,
            data_singular=related,
            links=links,
        )


def _parse_relationship(
    value: Any, included: Mapping[str, Resource] | None, api: Optional["Connection"]
) -> Relationship:
    if not isinstance(value, Mapping):
        value = {}
    raw_data = value.get("data")
    links = Links.from_payload(value.get("links"))

    if isinstance(raw_data, Mapping):
        type_, id_ = _text(raw_data, "type"), _text(raw_data, "id")
        if type_ or id_:
            item = (included or {}).get(f"{type_}:{id_}")
            if item is not None:
                return Relationship(
                    type=RelationshipType.SINGULAR,
                    fetched=True,
                    data_singular=item,
                    links=links,
                )
            return Relationship(
                type=RelationshipType.SINGULAR,
                fetched=False,
                data_singular=Resource(api=api, type=type_, id=id_),
                links=links,
            )
    if links:
        return Relationship(
            type=RelationshipType.PLURAL,
            fetched=False,
            data_plural=Collection(api=api),
            links=links,
        )
    return Relationship(type=RelationshipType.NULL)


def payload_to_resource(
    data: Any,
    included: Mapping[str, Resource] | None,
    api: Optional["Connection"],
) -> Resource:
    """Turn one resource object of a response into a Resource."""
    if not isinstance(data, Mapping):
        data = {}
    attributes = data.get("attributes")
    resource = Resource(
        api=api,
        type=_text(data, "type"),
        id=_text(data, "id"),
        attributes=dict(attributes) if isinstance(attributes, Mapping) else {},
    )
    relationships = data.get("relationships")
    if isinstance(relationships, Mapping):
        for key, value in relationships.items():
            resource.relationships[key] = _parse_relationship(value, included, api)
    return resource


def make_included_map(
    included: Iterable[Any] | None, api: Optional["Connection"]
) -> dict[str, Resource]:
    """Map the ``included`` resources of a response by ``type:id``."""
    result = {}
    for item in included or []:
        resource = payload_to_resource(item, None, api)
        result[f"{resource.type}:{resource.id}"] = resource
    return result


def json_equal(left: bytes | str, right: bytes | str) -> bool:
    """Whether two JSON documents hold the same value."""
    return json.loads(left) == json.loads(right)


@dataclass(eq=False)
class Connection:
    """Host, credentials and HTTP session used for every request."""

    host: str = ""
    token: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    session: requests.Session = field(default_factory=requests.Session, repr=False)
    request_method: Optional[RequestMethod] = None

    def request(
        self,
        method: str,
        path: str,
        payload: bytes | None = None,
        content_type: str = "",
    ) -> bytes:
        """Send a request and return the response body.

        Raises RedirectError, RetryError or JsonApiError as the response asks.
        """
        if self.request_method is not None:
            return self.request_method(method, path, payload, content_type)

        url = self.host + path if path.startswith("/") else path
        headers = {
            "Content-Type": content_type or DEFAULT_CONTENT_TYPE,
            "Authorization": f"Bearer {self.token}",
            **self.headers,
        }
        response = self.session.request(
            method, url, data=payload, headers=headers, allow_redirects=False
        )
        if response.is_redirect:
            raise RedirectError(urljoin(response.url, response.headers["Location"]))

        body = response.content
        retry_error = parse_retry_response(response.status_code, response.headers)
        if retry_error is not None:
            raise retry_error
        error = parse_error_response(response.status_code, body)
        if error is not None:
            raise error
        return body

    def get(self, type_: str, id_: str) -> Resource:
        """Fetch a resource by type and id."""
        return self.get_from_path(f"/{type_}/{id_}")

    def get_from_path(self, path: str) -> Resource:
        """Fetch the resource at ``path``."""
        response = _load_object(self.request("GET", path))
        return payload_to_resource(response.get("data"), None, self)

    def list(self, type_: str, query: str = "") -> Collection:
        """Fetch the first page of a collection; ``query`` is an encoded query string."""
        url = f"/{type_}"
        if query:
            url = f"{url}?{query}"
        return self.list_from_path(url)

    def list_from_path(self, url: str) -> Collection:
        """Fetch the collection page at ``url``."""
        response = _load_object(self.request("GET", url))
        included = make_included_map(response.get("included"), self)
        links = response.get("links")
        raw_items = response.get("data") or []
        if not isinstance(raw_items, Iterable) or isinstance(raw_items, (str, Mapping)):
            raise ValueError("expected a list of resources in the response")
        return Collection(
            api=self,
            data=[payload_to_resource(item, included, self) for item in raw_items],
            next=_text(links, "next"),
            previous=_text(links, "previous"),
        )