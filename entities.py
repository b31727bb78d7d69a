"""
Course and event stores

Both collections share one lifecycle: create, update, archive/unarchive and
delete, with image cleanup hooked into update and delete. Malformed ids are
treated as "not found"; database errors propagate to the caller.
"""
import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel
from pymongo import ASCENDING, DESCENDING

from database import serialize, to_object_id, utcnow
from images import ImageOwnerCleanup

logger = logging.getLogger(__name__)

ACTIVE = {"is_archived": {"$ne": True}}
PROTECTED_FIELDS = ("_id", "id", "created_at", "registration_count")


def _as_dict(data) -> Dict[str, Any]:
    if isinstance(data, BaseModel):
        return data.model_dump(exclude_unset=True)
    return dict(data)


class EntityStore:
    collection: str = ""
    sort = [("created_at", DESCENDING)]

    def __init__(self, db, cleanup: ImageOwnerCleanup, clock=utcnow):
        self.db = db
        self.col = db[self.collection]
        self.cleanup = cleanup
        self.clock = clock

    def list_all(self, include_archived: bool = False) -> List[Dict[str, Any]]:
        query = {} if include_archived else ACTIVE
        return [serialize(d) for d in self.col.find(query).sort(self.sort)]

    def get_by_id(self, entity_id: str) -> Optional[Dict[str, Any]]:
        oid = to_object_id(entity_id)
        if oid is None:
            return None
        return serialize(self.col.find_one({"_id": oid}))

    def create(self, data) -> Dict[str, Any]:
        doc = data.model_dump() if isinstance(data, BaseModel) else dict(data)
        for key in PROTECTED_FIELDS:
            doc.pop(key, None)
        now = self.clock()
        doc["created_at"] = now
        doc["updated_at"] = now
        doc.setdefault("is_archived", False)
        res = self.col.insert_one(doc)
        doc["_id"] = res.inserted_id
        logger.info("Created %s %s", self.collection, res.inserted_id)
        return serialize(doc)

    def update(self, entity_id: str, updates) -> bool:
        oid = to_object_id(entity_id)
        if oid is None:
            return False
        fields = {k: v for k, v in _as_dict(updates).items() if k not in PROTECTED_FIELDS}

        previous = None
        if "image_url" in fields:
            previous = self.col.find_one({"_id": oid}, {"image_url": 1})

        fields["updated_at"] = self.clock()
        res = self.col.update_one({"_id": oid}, {"$set": fields})
        if res.matched_count == 0:
            return False

        if previous is not None:
            self.cleanup.on_replaced(previous.get("image_url"), fields["image_url"])
        return True

    def archive(self, entity_id: str) -> bool:
        return self.update(entity_id, {"is_archived": True})

    def unarchive(self, entity_id: str) -> bool:
        return self.update(entity_id, {"is_archived": False})

    def delete(self, entity_id: str) -> bool:
        oid = to_object_id(entity_id)
        if oid is None:
            return False
        existing = self.col.find_one({"_id": oid}, {"image_url": 1})
        if existing is None:
            return False
        self.cleanup.on_removed(existing.get("image_url"))
        res = self.col.delete_one({"_id": oid})
        if res.deleted_count:
            logger.info("Deleted %s %s", self.collection, entity_id)
        return res.deleted_count > 0

    def get_statistics(self) -> Dict[str, int]:
        return {
            "total": self.col.count_documents({}),
            "active": self.col.count_documents(ACTIVE),
            "archived": self.col.count_documents({"is_archived": True}),
        }


class CourseStore(EntityStore):
    collection = "course"
    sort = [("created_at", DESCENDING)]


class EventStore(EntityStore):
    collection = "event"
    sort = [("event_date", ASCENDING)]
    registrations = "eventregistration"

    def registration_count(self, event_id: str) -> int:
        oid = to_object_id(event_id)
        if oid is None:
            return 0
        return self.db[self.registrations].count_documents({"event_id": oid})

    def list_all(self, include_archived: bool = False, with_registration_counts: bool = False):
        events = super().list_all(include_archived)
        if with_registration_counts:
            for ev in events:
                ev["registration_count"] = self.registration_count(ev["id"])
        return events

    def get_by_id(self, event_id: str, with_registration_count: bool = False):
        ev = super().get_by_id(event_id)
        if ev is not None and with_registration_count:
            ev["registration_count"] = self.registration_count(ev["id"])
        return ev

    def get_statistics(self) -> Dict[str, int]:
        stats = super().get_statistics()
        today = self.clock().date().isoformat()
        stats["upcoming"] = self.col.count_documents(
            {"is_archived": {"$ne": True}, "event_date": {"$gte": today}}
        )
        return stats
