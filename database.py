"""
MongoDB access helpers.

The client is opened once by the application lifespan and the resulting
``Database`` handle is passed to every service; nothing in this module holds
a global connection.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from bson.errors import InvalidId as BsonInvalidId
from pydantic import BaseModel
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.results import DeleteResult, InsertOneResult, UpdateResult

from errors import InvalidId

logger = logging.getLogger(__name__)

USERS = "users"
PLANTS = "plants"
ORDERS = "orders"


def connect(database_url: str, database_name: str) -> MongoClient:
    client = MongoClient(database_url)
    try:
        client.admin.command("ping")
        logger.info("Pinged MongoDB deployment, database %r is reachable", database_name)
    except Exception as exc:
        # requests will surface the connection error themselves
        logger.error("MongoDB ping failed: %s", exc)
    return client


def to_object_id(value: str) -> ObjectId:
    try:
        return ObjectId(value)
    except (BsonInvalidId, TypeError):
        raise InvalidId(f"Invalid id: {value}")


def _plain(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


def serialize(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Copy a stored document with every ObjectId, nested ones included, rendered as a string."""
    if doc is None:
        return None
    return _plain(dict(doc))


def create_document(db: Database, collection: str, data: Union[BaseModel, Dict[str, Any]]) -> InsertOneResult:
    if isinstance(data, BaseModel):
        data = data.model_dump(exclude_none=True)
    # insert_one mutates its argument with the generated _id
    return db[collection].insert_one(dict(data))


def get_documents(db: Database, collection: str, filter_dict: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    return [serialize(d) for d in db[collection].find(filter_dict or {})]


def ack(result: Union[InsertOneResult, UpdateResult, DeleteResult]) -> Dict[str, Any]:
    """Render a pymongo write result the way the frontend expects it."""
    if hasattr(result, "inserted_id"):
        return {"acknowledged": result.acknowledged, "insertedId": str(result.inserted_id)}
    if hasattr(result, "deleted_count"):
        return {"acknowledged": result.acknowledged, "deletedCount": result.deleted_count}
    return {
        "acknowledged": result.acknowledged,
        "matchedCount": result.matched_count,
        "modifiedCount": result.modified_count,
    }
