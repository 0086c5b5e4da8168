"""Hypermedia links, JSON responses and URL joining."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Iterable

HEADER_CONTENT_TYPE = "Content-Type"
MEDIA_TYPE_JSON = "application/json"


@dataclass(frozen=True)
class Link:
    """A hypermedia link with its relation."""

    href: str
    rel: str

    def to_dict(self) -> dict[str, str]:
        return {"href": self.href, "rel": self.rel}


@dataclass
class Response:
    """An HTTP response: status, headers and body bytes."""

    status: int = 200
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""


def _encode_default(value: Any) -> Any:
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def json_response(payload: Any, status: int = 200) -> Response:
    """Serialise payload as compact JSON into a response."""
    body = json.dumps(payload, separators=(",", ":"), default=_encode_default).encode("utf-8")
    return Response(status=status, headers={HEADER_CONTENT_TYPE: MEDIA_TYPE_JSON}, body=body)


def find_url_by_rel(links: Iterable[Link], rel: str) -> str:
    """Return the href of the first link whose relation ends with rel."""
    links = list(links)
    for link in links:
        if link.rel.endswith(rel):
            return link.href
    raise LookupError(f'Could not find link with rel "{rel}" in {links}')


def join(path: str, *elements: str) -> str:
    """Join URL path elements with single slashes, keeping a trailing slash on the last one."""
    if not elements:
        return path
    path = path.removesuffix("/")
    last = len(elements) - 1
    for position, element in enumerate(elements):
        if not element:
            continue
        element = element.removeprefix("/")
        if position != last:
            element = element.removesuffix("/")
        path = f"{path}/{element}"
    return path