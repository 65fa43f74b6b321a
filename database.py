"""
MongoDB connection and generic document helpers.

The connection is only opened when DATABASE_URL and DATABASE_NAME are set;
otherwise `db` stays None and callers report the database as unavailable.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Union

from bson import ObjectId
from pydantic import BaseModel
from pymongo import MongoClient
from pymongo.errors import PyMongoError

import config

logger = logging.getLogger(__name__)

db = None

if config.DATABASE_URL and config.DATABASE_NAME:
    client = MongoClient(config.DATABASE_URL)
    db = client[config.DATABASE_NAME]


def _to_document(data: Union[BaseModel, Dict[str, Any]], now: datetime) -> Dict[str, Any]:
    if isinstance(data, BaseModel):
        data_dict = data.model_dump(mode="json", exclude={"id"})
    else:
        data_dict = dict(data)
    data_dict["created_at"] = now
    data_dict["updated_at"] = now
    return data_dict


def create_documents(
    collection_name: str,
    items: Sequence[Union[BaseModel, Dict[str, Any]]],
    database=None
) -> List[str]:
    """
    Insert several documents as one unit; returns the new ids as strings.

    Ids are assigned up front so that when the driver fails partway through,
    whatever was already written is deleted again before the error propagates.
    """
    database = database if database is not None else db
    if database is None:
        raise RuntimeError("Database not available. Check DATABASE_URL and DATABASE_NAME environment variables.")

    now = datetime.now(timezone.utc)
    docs = [_to_document(item, now) for item in items]
    for doc in docs:
        doc["_id"] = ObjectId()
    ids = [doc["_id"] for doc in docs]

    collection = database[collection_name]
    try:
        collection.insert_many(docs, ordered=True)
    except PyMongoError:
        logger.error("Insert into %s failed, removing %d partial documents", collection_name, len(ids))
        collection.delete_many({"_id": {"$in": ids}})
        raise

    return [str(i) for i in ids]


def get_documents(
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    limit: Optional[int] = None,
    database=None
) -> List[Dict[str, Any]]:
    database = database if database is not None else db
    if database is None:
        raise RuntimeError("Database not available. Check DATABASE_URL and DATABASE_NAME environment variables.")

    cursor = database[collection_name].find(filter_dict or {})
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)
