"""
MongoDB access helpers

The client is created by the host application (see the lifespan in main.py)
and the database handle is passed to every store explicitly.
"""
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from bson import ObjectId
from pymongo import MongoClient
from pymongo.database import Database

DATABASE_URL = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
DATABASE_NAME = os.getenv("DATABASE_NAME", "training_site")

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def connect(url: Optional[str] = None, name: Optional[str] = None):
    """Open a client and return (client, database). Caller owns close()."""
    client = MongoClient(url or DATABASE_URL, tz_aware=True)
    db = client[name or DATABASE_NAME]
    logger.info("MongoDB client created for database %s", db.name)
    return client, db


def ping(db: Database) -> bool:
    db.client.admin.command("ping")
    return True


def to_object_id(value: Any) -> Optional[ObjectId]:
    """Parse an identifier, or None when it is not a 24-char hex string."""
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and len(value) == 24 and ObjectId.is_valid(value):
        return ObjectId(value)
    logger.debug("Invalid ObjectId format: %r", value)
    return None


def serialize(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Return a JSON-friendly copy: _id becomes id, ObjectId values become str."""
    if doc is None:
        return None
    out = {}
    for key, value in doc.items():
        if key == "_id":
            out["id"] = str(value)
        elif isinstance(value, ObjectId):
            out[key] = str(value)
        else:
            out[key] = value
    return out
