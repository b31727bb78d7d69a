"""
Image blobs stored in the "image" collection

Entities reference images by URL. Only URLs under INTERNAL_IMAGE_PREFIX point
at this store; anything else is an external URL and is never deleted here.
"""
import logging
from typing import Any, Dict, Optional

from bson import Binary

from database import serialize, to_object_id, utcnow
from schemas import Image

INTERNAL_IMAGE_PREFIX = "/api/images/"

logger = logging.getLogger(__name__)


def image_url(image_id: str) -> str:
    return f"{INTERNAL_IMAGE_PREFIX}{image_id}"


def internal_image_id(url: Optional[str]) -> Optional[str]:
    """Return the image id behind an internal URL, or None for external/empty URLs."""
    if not url or not isinstance(url, str) or not url.startswith(INTERNAL_IMAGE_PREFIX):
        return None
    image_id = url[len(INTERNAL_IMAGE_PREFIX):].split("?", 1)[0].strip("/")
    return image_id or None


class ImageStore:
    collection = "image"

    def __init__(self, db, clock=utcnow):
        self.col = db[self.collection]
        self.clock = clock

    def store(self, filename: str, content_type: str, data: bytes) -> str:
        image = Image(filename=filename, content_type=content_type, data=data, created_at=self.clock())
        doc = image.model_dump()
        doc["data"] = Binary(image.data)
        res = self.col.insert_one(doc)
        logger.info("Stored image %s (%s, %d bytes)", res.inserted_id, content_type, len(data))
        return str(res.inserted_id)

    def get_by_id(self, image_id: str) -> Optional[Dict[str, Any]]:
        oid = to_object_id(image_id)
        if oid is None:
            return None
        doc = self.col.find_one({"_id": oid})
        if doc is None:
            logger.debug("Image not found: %s", image_id)
            return None
        doc["data"] = bytes(doc["data"])
        return serialize(doc)

    def delete(self, image_id: str) -> bool:
        oid = to_object_id(image_id)
        if oid is None:
            return False
        res = self.col.delete_one({"_id": oid})
        return res.deleted_count > 0


class ImageOwnerCleanup:
    """
    Best-effort removal of images no longer referenced by their owner.

    Failures are logged and never raised; the owning write has already
    happened (or must still happen) regardless of the outcome here.
    """

    def __init__(self, images: ImageStore):
        self.images = images

    def on_replaced(self, old_ref: Optional[str], new_ref: Optional[str]) -> bool:
        old_id = internal_image_id(old_ref)
        if old_id is None or old_id == internal_image_id(new_ref):
            return False
        return self.on_removed(old_ref)

    def on_removed(self, ref: Optional[str]) -> bool:
        image_id = internal_image_id(ref)
        if image_id is None:
            return False
        try:
            if not self.images.delete(image_id):
                logger.warning("Image %s was already gone", image_id)
        except Exception as e:
            logger.warning(f"Failed to delete image {image_id}: {e}")
        return True
