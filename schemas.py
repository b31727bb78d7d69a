from pydantic import BaseModel, Field, EmailStr
from typing import Optional, Literal
from datetime import datetime

# Each model corresponds to a MongoDB collection named by the lowercase class name
# Example: class Course -> collection "course"

InquiryStatus = Literal["new", "contacted", "completed", "archived"]
DemoBookingStatus = Literal["new", "contacted", "completed", "archived"]
RegistrationStatus = Literal["new", "contacted", "confirmed", "attended", "cancelled"]
ContactStatus = Literal["new", "contacted", "completed", "archived"]

PHONE_PATTERN = r"^\+?[0-9\s\-\(\)]{8,20}$"
DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


class Course(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = ""
    image_url: Optional[str] = None
    is_archived: bool = False
    program: Optional[str] = None
    instructor: Optional[str] = None
    dates: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Event(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = ""
    image_url: Optional[str] = None
    event_date: str = Field(..., pattern=DATE_PATTERN, description="YYYY-MM-DD")
    location: str = Field(..., min_length=1)
    is_archived: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Image(BaseModel):
    filename: str
    content_type: str
    data: bytes
    created_at: Optional[datetime] = None


class Inquiry(BaseModel):
    full_name: str = Field(..., min_length=1)
    email: EmailStr
    phone: str = Field(..., pattern=PHONE_PATTERN)
    message: str = ""
    course_id: str
    course_title: Optional[str] = None
    status: InquiryStatus = "new"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Demobooking(BaseModel):
    full_name: str = Field(..., min_length=1)
    email: EmailStr
    phone: str = Field(..., min_length=1)
    company: Optional[str] = None
    message: Optional[str] = None
    preferred_date: Optional[str] = None
    status: DemoBookingStatus = "new"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Eventregistration(BaseModel):
    event_id: str
    full_name: str = Field(..., min_length=1)
    email: EmailStr
    phone: str = Field(..., min_length=1)
    organization: Optional[str] = None
    message: Optional[str] = None
    status: RegistrationStatus = "new"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Contactmessage(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    message: str = Field(..., min_length=1)
    phone: Optional[str] = None
    company: Optional[str] = None
    status: ContactStatus = "new"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Request payloads

class CourseUpdate(BaseModel):
    # unset fields are left alone; explicit nulls are rejected for non-nullable fields
    title: str = Field(None, min_length=1)
    description: str = None
    image_url: Optional[str] = None
    is_archived: bool = None
    program: Optional[str] = None
    instructor: Optional[str] = None
    dates: Optional[str] = None


class EventUpdate(BaseModel):
    title: str = Field(None, min_length=1)
    description: str = None
    image_url: Optional[str] = None
    event_date: str = Field(None, pattern=DATE_PATTERN)
    location: str = Field(None, min_length=1)
    is_archived: bool = None


class InquiryCreate(BaseModel):
    full_name: str = Field(..., min_length=1)
    email: EmailStr
    phone: str = Field(..., pattern=PHONE_PATTERN)
    message: str = ""
    course_id: str


class DemoBookingCreate(BaseModel):
    full_name: str = Field(..., min_length=1)
    email: EmailStr
    phone: str = Field(..., min_length=1)
    company: Optional[str] = None
    message: Optional[str] = None
    preferred_date: Optional[str] = None


class EventRegistrationCreate(BaseModel):
    event_id: str
    full_name: str = Field(..., min_length=1)
    email: EmailStr
    phone: str = Field(..., min_length=1)
    organization: Optional[str] = None
    message: Optional[str] = None


class ContactRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    message: str = Field(..., min_length=1)
    phone: Optional[str] = None
    company: Optional[str] = None


class InquiryStatusUpdate(BaseModel):
    status: InquiryStatus


class DemoBookingStatusUpdate(BaseModel):
    status: DemoBookingStatus


class RegistrationStatusUpdate(BaseModel):
    status: RegistrationStatus
