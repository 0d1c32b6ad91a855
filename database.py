"""
MongoDB access helpers.

The connection is configured through DATABASE_URL and DATABASE_NAME.
When either is missing ``db`` stays None and every helper raises
DatabaseUnavailable, so the API can still start and report it on /test.

Dates are stored as ISO strings (YYYY-MM-DD) so month range filters
compare lexicographically.
"""
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel
from pymongo import MongoClient, ReturnDocument

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME")

db = None
if DATABASE_URL and DATABASE_NAME:
    _client = MongoClient(DATABASE_URL)
    db = _client[DATABASE_NAME]
else:
    logger.warning("DATABASE_URL / DATABASE_NAME not set, database disabled")


class DatabaseUnavailable(RuntimeError):
    pass


def _collection(collection_name: str):
    if db is None:
        raise DatabaseUnavailable("Database not available. Check DATABASE_URL and DATABASE_NAME.")
    return db[collection_name]


def _object_id(doc_id: str) -> Optional[ObjectId]:
    try:
        return ObjectId(doc_id)
    except (InvalidId, TypeError):
        return None


def _to_document(data: Union[BaseModel, Dict[str, Any]]) -> Dict[str, Any]:
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json", exclude={"id"})
    else:
        data = {k: v for k, v in data.items() if k not in ("id", "_id")}
    return data


def _from_document(doc: Dict[str, Any]) -> Dict[str, Any]:
    out = {k: v for k, v in doc.items() if k != "_id"}
    out["id"] = str(doc["_id"])
    return out


def create_document(collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> str:
    """Insert a document and return its id."""
    doc = _to_document(data)
    now = datetime.now(timezone.utc)
    doc["created_at"] = now
    doc["updated_at"] = now
    result = _collection(collection_name).insert_one(doc)
    logger.info("Created %s %s", collection_name, result.inserted_id)
    return str(result.inserted_id)


def get_documents(collection_name: str, filter_dict: Optional[Dict[str, Any]] = None,
                  sort: Optional[Sequence[Tuple[str, int]]] = None,
                  limit: Optional[int] = None) -> List[Dict[str, Any]]:
    cursor = _collection(collection_name).find(filter_dict or {})
    if sort:
        cursor = cursor.sort(list(sort))
    if limit:
        cursor = cursor.limit(int(limit))
    return [_from_document(d) for d in cursor]


def get_document(collection_name: str, doc_id: str) -> Optional[Dict[str, Any]]:
    oid = _object_id(doc_id)
    if oid is None:
        return None
    doc = _collection(collection_name).find_one({"_id": oid})
    return _from_document(doc) if doc else None


def update_document(collection_name: str, doc_id: str,
                    data: Union[BaseModel, Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Set the given fields and return the updated document, or None if it does not exist."""
    oid = _object_id(doc_id)
    if oid is None:
        return None
    changes = _to_document(data)
    changes["updated_at"] = datetime.now(timezone.utc)
    doc = _collection(collection_name).find_one_and_update(
        {"_id": oid}, {"$set": changes}, return_document=ReturnDocument.AFTER,
    )
    if doc:
        logger.info("Updated %s %s", collection_name, doc_id)
    return _from_document(doc) if doc else None


def delete_document(collection_name: str, doc_id: str) -> bool:
    oid = _object_id(doc_id)
    if oid is None:
        return False
    deleted = _collection(collection_name).delete_one({"_id": oid}).deleted_count > 0
    if deleted:
        logger.info("Deleted %s %s", collection_name, doc_id)
    return deleted
