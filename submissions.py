"""
Public form submissions: inquiries, demo bookings, event registrations and
contact messages.

Submissions are created with status "new" and move between statuses only by
admin action. Any status may follow any other, including back to "new".
"""
import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional

from pydantic import BaseModel
from pymongo import DESCENDING

from database import serialize, to_object_id, utcnow

logger = logging.getLogger(__name__)

STATS_WINDOW_DAYS = 7


class SubmissionStore:
    collection: str = ""
    statuses: tuple = ("new", "contacted", "completed", "archived")
    parent_field: Optional[str] = None
    daily_stats = True

    def __init__(self, db, clock=utcnow):
        self.col = db[self.collection]
        self.clock = clock

    def create(self, data) -> Dict[str, Any]:
        doc = data.model_dump() if isinstance(data, BaseModel) else dict(data)
        doc.pop("_id", None)
        doc.pop("id", None)
        if self.parent_field:
            parent = to_object_id(doc.get(self.parent_field))
            if parent is None:
                raise ValueError(f"invalid {self.parent_field}: {doc.get(self.parent_field)!r}")
            doc[self.parent_field] = parent
        doc["status"] = doc.get("status") or "new"
        if doc["status"] not in self.statuses:
            raise ValueError(f"unknown {self.collection} status: {doc['status']!r}")
        now = self.clock()
        doc["created_at"] = now
        doc["updated_at"] = now
        res = self.col.insert_one(doc)
        doc["_id"] = res.inserted_id
        logger.info("New %s %s", self.collection, res.inserted_id)
        return serialize(doc)

    def list_all(self) -> List[Dict[str, Any]]:
        return [serialize(d) for d in self.col.find().sort("created_at", DESCENDING)]

    def list_by_parent(self, parent_id: str) -> List[Dict[str, Any]]:
        oid = to_object_id(parent_id)
        if oid is None:
            return []
        cursor = self.col.find({self.parent_field: oid}).sort("created_at", DESCENDING)
        return [serialize(d) for d in cursor]

    def count_by_parent(self, parent_id: str) -> int:
        oid = to_object_id(parent_id)
        if oid is None:
            return 0
        return self.col.count_documents({self.parent_field: oid})

    def get_by_id(self, submission_id: str) -> Optional[Dict[str, Any]]:
        oid = to_object_id(submission_id)
        if oid is None:
            return None
        return serialize(self.col.find_one({"_id": oid}))

    def update_status(self, submission_id: str, status: str) -> bool:
        if status not in self.statuses:
            raise ValueError(f"unknown {self.collection} status: {status!r}")
        oid = to_object_id(submission_id)
        if oid is None:
            return False
        res = self.col.update_one(
            {"_id": oid},
            {"$set": {"status": status, "updated_at": self.clock()}},
        )
        return res.matched_count > 0

    def get_statistics(self, parent_id: Optional[str] = None) -> Dict[str, Any]:
        """Counts for the whole collection, or for one parent when parent_id is given."""
        query: Dict[str, Any] = {}
        if parent_id is not None and self.parent_field:
            oid = to_object_id(parent_id)
            if oid is None:
                return self.empty_statistics()
            query[self.parent_field] = oid

        stats: Dict[str, Any] = {
            "total": self.col.count_documents(query),
            "by_status": {s: self.col.count_documents({**query, "status": s}) for s in self.statuses},
        }
        if self.daily_stats:
            stats["by_date"] = self.daily_counts(query)
        return stats

    def empty_statistics(self) -> Dict[str, Any]:
        stats: Dict[str, Any] = {"total": 0, "by_status": {s: 0 for s in self.statuses}}
        if self.daily_stats:
            stats["by_date"] = []
        return stats

    def daily_counts(self, query: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        since = self.clock() - timedelta(days=STATS_WINDOW_DAYS)
        pipeline = [
            {"$match": {**(query or {}), "created_at": {"$gte": since}}},
            {"$group": {
                "_id": {
                    "year": {"$year": "$created_at"},
                    "month": {"$month": "$created_at"},
                    "day": {"$dayOfMonth": "$created_at"},
                },
                "count": {"$sum": 1},
            }},
            {"$sort": {"_id.year": 1, "_id.month": 1, "_id.day": 1}},
        ]
        return [
            {"date": "%04d-%02d-%02d" % (r["_id"]["year"], r["_id"]["month"], r["_id"]["day"]), "count": r["count"]}
            for r in self.col.aggregate(pipeline)
        ]


class InquiryStore(SubmissionStore):
    collection = "inquiry"
    parent_field = "course_id"

    def get_statistics(self, parent_id: Optional[str] = None) -> Dict[str, Any]:
        stats = super().get_statistics(parent_id)
        if parent_id is None:
            query: Dict[str, Any] = {}
        else:
            oid = to_object_id(parent_id)
            if oid is None:
                stats["by_course"] = []
                return stats
            query = {self.parent_field: oid}
        pipeline = [
            {"$match": query},
            {"$group": {
                "_id": {"course_id": "$course_id", "course_title": "$course_title"},
                "count": {"$sum": 1},
            }},
            {"$sort": {"count": -1}},
        ]
        stats["by_course"] = [
            {
                "course_id": str(r["_id"].get("course_id")),
                "course_title": r["_id"].get("course_title"),
                "count": r["count"],
            }
            for r in self.col.aggregate(pipeline)
        ]
        return stats


class DemoBookingStore(SubmissionStore):
    collection = "demobooking"


class EventRegistrationStore(SubmissionStore):
    collection = "eventregistration"
    statuses = ("new", "contacted", "confirmed", "attended", "cancelled")
    parent_field = "event_id"
    daily_stats = False


class ContactMessageStore(SubmissionStore):
    collection = "contactmessage"
    daily_stats = False
