import os
import re
import time
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Depends, Request, UploadFile, File
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

import database
from entities import CourseStore, EventStore
from images import ImageStore, ImageOwnerCleanup, image_url
from logging_setup import setup_logging
from schemas import (
    Course, Event, CourseUpdate, EventUpdate,
    Inquiry, InquiryCreate, InquiryStatusUpdate,
    Demobooking, DemoBookingCreate, DemoBookingStatusUpdate,
    Eventregistration, EventRegistrationCreate, RegistrationStatusUpdate,
    Contactmessage, ContactRequest,
)
from submissions import InquiryStore, DemoBookingStore, EventRegistrationStore, ContactMessageStore

MAX_UPLOAD_SIZE_MB = int(os.getenv("MAX_UPLOAD_SIZE_MB", "10"))

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting training site API...")
    client, app.state.db = database.connect()
    yield
    logger.info("Shutting down, closing MongoDB client")
    client.close()


app = FastAPI(title="Training Site API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Dependencies
def get_db(request: Request):
    db = getattr(request.app.state, "db", None)
    if db is None:
        raise HTTPException(status_code=500, detail="Database not configured")
    return db

def get_images(db=Depends(get_db)) -> ImageStore:
    return ImageStore(db)

def get_courses(db=Depends(get_db)) -> CourseStore:
    return CourseStore(db, ImageOwnerCleanup(ImageStore(db)))

def get_events(db=Depends(get_db)) -> EventStore:
    return EventStore(db, ImageOwnerCleanup(ImageStore(db)))

def get_inquiries(db=Depends(get_db)) -> InquiryStore:
    return InquiryStore(db)

def get_demo_bookings(db=Depends(get_db)) -> DemoBookingStore:
    return DemoBookingStore(db)

def get_registrations(db=Depends(get_db)) -> EventRegistrationStore:
    return EventRegistrationStore(db)

def get_contacts(db=Depends(get_db)) -> ContactMessageStore:
    return ContactMessageStore(db)


def found(item, what: str):
    if not item:
        raise HTTPException(status_code=404, detail=f"{what} not found")
    return item


@app.get("/")
def read_root():
    return {"message": "Training Site Backend Running"}


@app.get("/test")
def test_database(db=Depends(get_db)):
    response = {
        "backend": "✅ Running",
        "database": "✅ Available",
        "database_url": "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set",
        "database_name": getattr(db, "name", None) or "✅ Connected",
        "connection_status": "Connected",
        "collections": [],
    }
    try:
        response["collections"] = db.list_collection_names()
        response["database"] = "✅ Connected & Working"
    except Exception as e:
        response["database"] = f"⚠️ Connected but Error: {str(e)[:80]}"
    return response


@app.get("/api/db-status")
def db_status(db=Depends(get_db)):
    try:
        database.ping(db)
    except Exception as e:
        logger.error(f"MongoDB connection error: {e}")
        raise HTTPException(status_code=500, detail="Failed to connect to MongoDB")
    return {"status": "success", "message": "Connected to MongoDB!", "timestamp": database.utcnow().isoformat()}


# Courses
@app.get("/api/courses")
def list_courses(include_archived: bool = False, courses: CourseStore = Depends(get_courses)):
    return courses.list_all(include_archived)


@app.post("/api/courses", status_code=201)
def create_course(payload: Course, courses: CourseStore = Depends(get_courses)):
    return courses.create(payload)


@app.get("/api/courses/statistics")
def course_statistics(courses: CourseStore = Depends(get_courses)):
    return courses.get_statistics()


@app.get("/api/courses/{course_id}")
def get_course(course_id: str, courses: CourseStore = Depends(get_courses)):
    return found(courses.get_by_id(course_id), "Course")


@app.patch("/api/courses/{course_id}")
def update_course(course_id: str, payload: CourseUpdate, courses: CourseStore = Depends(get_courses)):
    found(courses.update(course_id, payload), "Course")
    return courses.get_by_id(course_id)


@app.put("/api/courses/{course_id}/archive")
def archive_course(course_id: str, courses: CourseStore = Depends(get_courses)):
    found(courses.archive(course_id), "Course")
    return {"success": True}


@app.put("/api/courses/{course_id}/unarchive")
def unarchive_course(course_id: str, courses: CourseStore = Depends(get_courses)):
    found(courses.unarchive(course_id), "Course")
    return {"success": True}


@app.delete("/api/courses/{course_id}")
def delete_course(course_id: str, courses: CourseStore = Depends(get_courses)):
    found(courses.delete(course_id), "Course")
    return {"success": True}


# Events
@app.get("/api/events")
def list_events(include_archived: bool = False, events: EventStore = Depends(get_events)):
    return events.list_all(include_archived, with_registration_counts=True)


@app.post("/api/events", status_code=201)
def create_event(payload: Event, events: EventStore = Depends(get_events)):
    return events.create(payload)


@app.get("/api/events/statistics")
def event_statistics(events: EventStore = Depends(get_events)):
    return events.get_statistics()


@app.get("/api/events/{event_id}")
def get_event(event_id: str, events: EventStore = Depends(get_events)):
    return found(events.get_by_id(event_id, with_registration_count=True), "Event")


@app.patch("/api/events/{event_id}")
def update_event(event_id: str, payload: EventUpdate, events: EventStore = Depends(get_events)):
    found(events.update(event_id, payload), "Event")
    return events.get_by_id(event_id)


@app.put("/api/events/{event_id}/archive")
def archive_event(event_id: str, events: EventStore = Depends(get_events)):
    found(events.archive(event_id), "Event")
    return {"success": True}


@app.put("/api/events/{event_id}/unarchive")
def unarchive_event(event_id: str, events: EventStore = Depends(get_events)):
    found(events.unarchive(event_id), "Event")
    return {"success": True}


@app.delete("/api/events/{event_id}")
def delete_event(event_id: str, events: EventStore = Depends(get_events)):
    found(events.delete(event_id), "Event")
    return {"success": True}


@app.get("/api/events/{event_id}/registrations")
def list_event_registrations(event_id: str, registrations: EventRegistrationStore = Depends(get_registrations)):
    return registrations.list_by_parent(event_id)


# Images
@app.post("/api/upload")
async def upload_image(file: UploadFile = File(...), images: ImageStore = Depends(get_images)):
    content_type = file.content_type or ""
    if not content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="File must be an image")
    data = await file.read()
    if len(data) > MAX_UPLOAD_SIZE_MB * 1024 * 1024:
        raise HTTPException(status_code=413, detail=f"File exceeds {MAX_UPLOAD_SIZE_MB} MB")
    safe_name = re.sub(r"\s+", "-", file.filename or "upload")
    filename = f"{int(time.time() * 1000)}-{safe_name}"
    image_id = images.store(filename, content_type, data)
    return {"url": image_url(image_id)}


@app.get("/api/images/{image_id}")
def get_image(image_id: str, images: ImageStore = Depends(get_images)):
    image = images.get_by_id(image_id)
    if image is None:
        raise HTTPException(status_code=404, detail="Image not found")
    return Response(
        content=image["data"],
        media_type=image["content_type"],
        headers={"Cache-Control": "public, max-age=31536000"},
    )


# Inquiries
@app.post("/api/inquiries")
def create_inquiry(
    payload: InquiryCreate,
    inquiries: InquiryStore = Depends(get_inquiries),
    courses: CourseStore = Depends(get_courses),
):
    course = found(courses.get_by_id(payload.course_id), "Course")
    inquiry = Inquiry(**payload.model_dump(), course_title=course["title"])
    return inquiries.create(inquiry)


@app.get("/api/inquiries")
def list_inquiries(inquiries: InquiryStore = Depends(get_inquiries)):
    return inquiries.list_all()


@app.get("/api/inquiries/statistics")
def inquiry_statistics(inquiries: InquiryStore = Depends(get_inquiries)):
    return inquiries.get_statistics()


@app.get("/api/inquiries/{inquiry_id}")
def get_inquiry(inquiry_id: str, inquiries: InquiryStore = Depends(get_inquiries)):
    return found(inquiries.get_by_id(inquiry_id), "Inquiry")


@app.patch("/api/inquiries/{inquiry_id}")
def update_inquiry(inquiry_id: str, payload: InquiryStatusUpdate, inquiries: InquiryStore = Depends(get_inquiries)):
    found(inquiries.update_status(inquiry_id, payload.status), "Inquiry")
    return inquiries.get_by_id(inquiry_id)


# Demo bookings
@app.post("/api/demo-bookings")
def create_demo_booking(payload: DemoBookingCreate, bookings: DemoBookingStore = Depends(get_demo_bookings)):
    return bookings.create(Demobooking(**payload.model_dump()))


@app.get("/api/demo-bookings")
def list_demo_bookings(bookings: DemoBookingStore = Depends(get_demo_bookings)):
    return bookings.list_all()


@app.get("/api/demo-bookings/statistics")
def demo_booking_statistics(bookings: DemoBookingStore = Depends(get_demo_bookings)):
    return bookings.get_statistics()


@app.get("/api/demo-bookings/{booking_id}")
def get_demo_booking(booking_id: str, bookings: DemoBookingStore = Depends(get_demo_bookings)):
    return found(bookings.get_by_id(booking_id), "Demo booking")


@app.patch("/api/demo-bookings/{booking_id}")
def update_demo_booking(booking_id: str, payload: DemoBookingStatusUpdate, bookings: DemoBookingStore = Depends(get_demo_bookings)):
    found(bookings.update_status(booking_id, payload.status), "Demo booking")
    return bookings.get_by_id(booking_id)


# Event registrations
@app.post("/api/event-registrations")
def create_event_registration(
    payload: EventRegistrationCreate,
    registrations: EventRegistrationStore = Depends(get_registrations),
    events: EventStore = Depends(get_events),
):
    found(events.get_by_id(payload.event_id), "Event")
    return registrations.create(Eventregistration(**payload.model_dump()))


@app.get("/api/event-registrations")
def list_registrations(registrations: EventRegistrationStore = Depends(get_registrations)):
    return registrations.list_all()


@app.get("/api/event-registrations/statistics")
def registration_statistics(event_id: Optional[str] = None, registrations: EventRegistrationStore = Depends(get_registrations)):
    return registrations.get_statistics(event_id)


@app.get("/api/event-registrations/{registration_id}")
def get_registration(registration_id: str, registrations: EventRegistrationStore = Depends(get_registrations)):
    return found(registrations.get_by_id(registration_id), "Registration")


@app.patch("/api/event-registrations/{registration_id}")
def update_registration(registration_id: str, payload: RegistrationStatusUpdate, registrations: EventRegistrationStore = Depends(get_registrations)):
    found(registrations.update_status(registration_id, payload.status), "Registration")
    return registrations.get_by_id(registration_id)


# Contact form
@app.post("/api/contact")
def submit_contact(payload: ContactRequest, contacts: ContactMessageStore = Depends(get_contacts)):
    doc = contacts.create(Contactmessage(**payload.model_dump()))
    return {"success": True, "message": "Contact message submitted successfully", "contact_id": doc["id"]}


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
