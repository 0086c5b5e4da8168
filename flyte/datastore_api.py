"""HTTP handlers and views for data store items."""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Optional

from .datastore import DataItem, DataItemNotFound
from .web import HEADER_CONTENT_TYPE, MEDIA_TYPE_JSON, Link, Response, join, json_response

logger = logging.getLogger(__name__)

DATASTORE_PATH = "/v1/datastore"
DATASTORE_DOC_PATH = "/swagger#/datastore"
DEFAULT_CONTENT_TYPE = "text/plain; charset=us-ascii"


class DataStoreValueError(Exception):
    """Raised when a data store value cannot be found or decoded."""


class InvalidDataItem(ValueError):
    """Raised when an uploaded data item is missing its key or content."""


def _parent(url: str) -> str:
    return url.rstrip("/").rsplit("/", 1)[0]


def _item_response(base_url: str, item: DataItem) -> dict[str, Any]:
    body: dict[str, Any] = {"key": item.key, "contentType": item.content_type}
    if item.description:
        body["description"] = item.description
    body["links"] = [Link(join(base_url, DATASTORE_PATH, item.key), "self").to_dict()]
    return body


def data_items_response(base_url: str, items: Iterable[DataItem]) -> dict[str, Any]:
    """The items, each with its own link, plus navigation links."""
    collection = join(base_url, DATASTORE_PATH)
    return {
        "links": [
            Link(collection, "self").to_dict(),
            Link(_parent(collection), "up").to_dict(),
            Link(join(base_url, DATASTORE_DOC_PATH), "help").to_dict(),
        ],
        "datastore": [_item_response(base_url, item) for item in items],
    }


def data_item_from_upload(
    key: str,
    content: Optional[bytes],
    content_type: Optional[str] = "",
    description: Optional[str] = "",
) -> DataItem:
    """Build a data item from an uploaded file; raises InvalidDataItem when it is unusable."""
    if content is None:
        raise InvalidDataItem(
            "error getting multipart file: cannot parse multipart request: no file uploaded as 'value'"
        )
    if len(content) == 0:
        raise InvalidDataItem("error getting multipart file: file content is empty")
    if not key:
        raise InvalidDataItem("data store item key is empty")
    return DataItem(
        key=key,
        description=description or "",
        content_type=content_type or DEFAULT_CONTENT_TYPE,
        value=bytes(content),
    )


def get_items(repository: Any, base_url: str) -> Response:
    """Respond with all data items."""
    try:
        items = repository.find_all()
    except Exception as err:  # any repository failure is a server error
        logger.error("cannot retrieve data items: %s", err)
        return Response(status=500)
    return json_response(data_items_response(base_url, items or []))


def get_item(repository: Any, key: str) -> Response:
    """Respond with the raw value of one item, in its own content type."""
    try:
        item = repository.get(key)
    except DataItemNotFound as err:
        logger.error("Data item key=%s not found: %s", key, err)
        return Response(status=404)
    except Exception as err:  # any repository failure is a server error
        logger.error("Cannot retrieve data item key=%s: %s", key, err)
        return Response(status=500)
    return Response(status=200, headers={HEADER_CONTENT_TYPE: item.content_type}, body=item.value)


def store_item(
    repository: Any,
    key: str,
    content: Optional[bytes],
    content_type: Optional[str] = "",
    description: Optional[str] = "",
) -> Response:
    """Store an uploaded item: 201 when created, 204 when replaced."""
    try:
        item = data_item_from_upload(key, content, content_type, description)
    except InvalidDataItem as err:
        logger.error("Error storing data store item: %s", err)
        return Response(status=400)
    try:
        updated = repository.store(item)
    except Exception as err:  # any repository failure is a server error
        logger.error("Cannot store item key=%s: %s", item.key, err)
        return Response(status=500)
    return Response(status=204 if updated else 201)


def delete_item(repository: Any, key: str) -> Response:
    """Delete one item: 204 when deleted, 404 when unknown."""
    try:
        repository.remove(key)
    except DataItemNotFound as err:
        logger.error("Data item key=%s not found: %s", key, err)
        return Response(status=404)
    except Exception as err:  # any repository failure is a server error
        logger.error("Cannot delete item key=%s: %s", key, err)
        return Response(status=500)
    logger.info("Deleted data item key=%s", key)
    return Response(status=204)


def get_datastore_value(repository: Any, key: str) -> Any:
    """The item's value: a dict for JSON content types, otherwise its text."""
    try:
        item = repository.get(key)
    except Exception as err:
        raise DataStoreValueError(f"cannot find datastore item key={key}: {err}") from err

    content_type = item.content_type
    if not content_type.startswith(MEDIA_TYPE_JSON) and not content_type.startswith("text/json"):
        return bytes(item.value).decode("utf-8", errors="replace")

    try:
        value = json.loads(item.value)
    except ValueError as err:
        raise DataStoreValueError(f"cannot unmarshal datastore item key={key}: {err}") from err
    if not isinstance(value, dict):
        raise DataStoreValueError(
            f"cannot unmarshal datastore item key={key}: "
            f"cannot unmarshal {type(value).__name__} into a JSON object"
        )
    return value