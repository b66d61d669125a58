"""
MongoDB access for the catalog.

The client is created once from DATABASE_URL / DATABASE_NAME. Routes receive
the database through the ``get_db`` dependency so it can be swapped in tests.
"""
from datetime import datetime, timezone
from typing import Union

from bson import ObjectId
from pydantic import BaseModel
from pymongo import MongoClient

from config import DATABASE_NAME, DATABASE_URL
from errors import InvalidReferenceError, StoreFault

client = MongoClient(DATABASE_URL) if DATABASE_URL and DATABASE_NAME else None
db = client[DATABASE_NAME] if client is not None else None


def get_db():
    if db is None:
        raise StoreFault("Database not configured")
    return db


def parse_object_id(value: str, message: str) -> ObjectId:
    if not ObjectId.is_valid(value):
        raise InvalidReferenceError(message)
    return ObjectId(value)


def create_document(database, collection_name: str, data: Union[BaseModel, dict]) -> str:
    doc = data.model_dump() if isinstance(data, BaseModel) else dict(data)
    now = datetime.now(timezone.utc)
    doc["created_at"] = now
    doc["updated_at"] = now
    result = database[collection_name].insert_one(doc)
    return str(result.inserted_id)


def serialize_doc(doc):
    if not doc:
        return doc
    doc = dict(doc)
    _id = doc.pop("_id", None)
    if _id is not None:
        doc["id"] = str(_id)
    for k, v in list(doc.items()):
        if isinstance(v, ObjectId):
            doc[k] = str(v)
        elif isinstance(v, datetime):
            doc[k] = v.isoformat()
    return doc
