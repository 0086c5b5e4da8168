"""Keyed data items kept in the data store, and their repository."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping


class DataItemNotFound(LookupError):
    """Raised when no data item has the requested key."""

    def __init__(self, message: str = "not found") -> None:
        super().__init__(message)


@dataclass
class DataItem:
    """A stored value with its key, content type and description."""

    key: str
    content_type: str = ""
    description: str = ""
    value: bytes = b""


def _to_document(item: DataItem) -> dict[str, Any]:
    return {
        "_id": item.key,
        "contentType": item.content_type,
        "description": item.description,
        "value": bytes(item.value),
    }


def _from_document(document: Mapping[str, Any]) -> DataItem:
    return DataItem(
        key=document.get("_id") or "",
        content_type=document.get("contentType") or "",
        description=document.get("description") or "",
        value=bytes(document.get("value") or b""),
    )


class MongoDataStoreRepository:
    """Data items kept in a document collection with a MongoDB-style API."""

    def __init__(self, collection: Any) -> None:
        self._collection = collection

    def store(self, item: DataItem) -> bool:
        """Insert or replace the item; True when an existing item was replaced."""
        result = self._collection.replace_one({"_id": item.key}, _to_document(item), upsert=True)
        return result.matched_count > 0

    def remove(self, key: str) -> None:
        """Delete the item with this key; raises DataItemNotFound if there is none."""
        result = self._collection.delete_one({"_id": key})
        if result.deleted_count == 0:
            raise DataItemNotFound()

    def get(self, key: str) -> DataItem:
        """The item with this key; raises DataItemNotFound if there is none."""
        document = self._collection.find_one({"_id": key})
        if document is None:
            raise DataItemNotFound()
        return _from_document(document)

    def find_all(self) -> list[DataItem]:
        """Every item with its key, description and content type, but without its value."""
        cursor = self._collection.find({}, {"_id": 1, "description": 1, "contentType": 1}).sort("key", 1)
        return [_from_document(document) for document in cursor]