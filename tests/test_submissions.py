import pytest

from submissions import ContactMessageStore, DemoBookingStore, EventRegistrationStore, InquiryStore


@pytest.fixture
def inquiries(db, clock):
    return InquiryStore(db, clock=clock)


@pytest.fixture
def bookings(db, clock):
    return DemoBookingStore(db, clock=clock)


@pytest.fixture
def registrations(db, clock):
    return EventRegistrationStore(db, clock=clock)


def _inquiry(course_id, **extra):
    data = {
        "full_name": "Ada Planner",
        "email": "ada@example.com",
        "phone": "+33 6 12 34 56 78",
        "course_id": course_id,
        "course_title": "DDP Level 1",
    }
    data.update(extra)
    return data


def test_create_defaults_to_new_and_stores_reference(inquiries, db, courses):
    course = courses.create({"title": "DDP Level 1"})
    inquiry = inquiries.create(_inquiry(course["id"]))
    assert inquiry["status"] == "new"
    assert inquiry["course_id"] == course["id"]
    assert inquiry["created_at"] == inquiry["updated_at"]
    raw = db["inquiry"].find_one()
    assert str(raw["course_id"]) == course["id"]
    assert not isinstance(raw["course_id"], str)


def test_create_rejects_malformed_parent(inquiries):
    with pytest.raises(ValueError):
        inquiries.create(_inquiry("not-a-course"))


def test_status_transitions_are_unrestricted(bookings):
    booking = bookings.create({"full_name": "Bo", "email": "bo@example.com", "phone": "12345678"})
    for status in ("completed", "archived", "new", "contacted", "archived"):
        assert bookings.update_status(booking["id"], status) is True
        assert bookings.get_by_id(booking["id"])["status"] == status


def test_update_status_moves_updated_at(bookings):
    booking = bookings.create({"full_name": "Bo", "email": "bo@example.com", "phone": "12345678"})
    bookings.update_status(booking["id"], "contacted")
    stored = bookings.get_by_id(booking["id"])
    assert stored["updated_at"] > stored["created_at"]


def test_update_status_unknown_status_raises(registrations):
    with pytest.raises(ValueError):
        registrations.update_status("0123456789abcdef01234567", "completed")


def test_update_status_malformed_or_unknown_id(registrations):
    assert registrations.update_status("nope", "confirmed") is False
    assert registrations.update_status("0123456789abcdef01234567", "confirmed") is False


def test_get_by_id_malformed(inquiries, bookings, registrations, db):
    contacts = ContactMessageStore(db)
    for store in (inquiries, bookings, registrations, contacts):
        assert store.get_by_id("not-a-valid-id") is None


def test_list_all_newest_first(bookings):
    first = bookings.create({"full_name": "A", "email": "a@example.com", "phone": "12345678"})
    second = bookings.create({"full_name": "B", "email": "b@example.com", "phone": "12345678"})
    assert [b["id"] for b in bookings.list_all()] == [second["id"], first["id"]]


def test_list_and_count_by_parent(registrations, events):
    event = events.create({"title": "e", "event_date": "2026-02-01", "location": "x"})
    other = events.create({"title": "o", "event_date": "2026-02-01", "location": "x"})
    registrations.create({"event_id": event["id"], "full_name": "A", "email": "a@example.com", "phone": "1"})
    registrations.create({"event_id": other["id"], "full_name": "B", "email": "b@example.com", "phone": "1"})
    listed = registrations.list_by_parent(event["id"])
    assert [r["full_name"] for r in listed] == ["A"]
    assert registrations.count_by_parent(other["id"]) == 1
    assert registrations.list_by_parent("bad") == []
    assert registrations.count_by_parent("bad") == 0


def test_registration_statistics_by_event(registrations, events):
    event = events.create({"title": "e", "event_date": "2026-02-01", "location": "x"})
    other = events.create({"title": "o", "event_date": "2026-02-01", "location": "x"})
    a = registrations.create({"event_id": event["id"], "full_name": "A", "email": "a@example.com", "phone": "1"})
    registrations.create({"event_id": event["id"], "full_name": "B", "email": "b@example.com", "phone": "1"})
    registrations.create({"event_id": other["id"], "full_name": "C", "email": "c@example.com", "phone": "1"})
    registrations.update_status(a["id"], "attended")

    overall = registrations.get_statistics()
    assert overall["total"] == 3
    assert overall["by_status"]["new"] == 2
    assert "by_date" not in overall

    scoped = registrations.get_statistics(event["id"])
    assert scoped == {
        "total": 2,
        "by_status": {"new": 1, "contacted": 0, "confirmed": 0, "attended": 1, "cancelled": 0},
    }


def test_inquiry_statistics(inquiries, courses):
    course = courses.create({"title": "DDP Level 1"})
    first = inquiries.create(_inquiry(course["id"]))
    inquiries.create(_inquiry(course["id"], full_name="Grace"))
    inquiries.update_status(first["id"], "archived")

    stats = inquiries.get_statistics()
    assert stats["total"] == 2
    assert stats["by_status"] == {"new": 1, "contacted": 0, "completed": 0, "archived": 1}
    assert stats["by_course"] == [{"course_id": course["id"], "course_title": "DDP Level 1", "count": 2}]
    assert stats["by_date"] == [{"date": "2026-01-05", "count": 2}]


def test_create_rejects_unknown_status(bookings, registrations):
    with pytest.raises(ValueError):
        bookings.create({"full_name": "Bo", "email": "bo@example.com", "phone": "12345678", "status": "confirmed"})
    assert bookings.list_all() == []
    booking = bookings.create({"full_name": "Bo", "email": "bo@example.com", "phone": "12345678", "status": "contacted"})
    assert booking["status"] == "contacted"


def test_inquiry_statistics_scoped_to_course(inquiries, courses):
    ddp = courses.create({"title": "DDP Level 1"})
    sop = courses.create({"title": "DDS&OP"})
    inquiries.create(_inquiry(ddp["id"]))
    inquiries.create(_inquiry(ddp["id"], full_name="Grace"))
    inquiries.create(_inquiry(sop["id"], course_title="DDS&OP"))

    scoped = inquiries.get_statistics(sop["id"])
    assert scoped["total"] == 1
    assert scoped["by_status"]["new"] == 1
    assert scoped["by_course"] == [{"course_id": sop["id"], "course_title": "DDS&OP", "count": 1}]
    assert scoped["by_date"] == [{"date": "2026-01-05", "count": 1}]


def test_statistics_for_malformed_parent_keep_their_shape(inquiries, registrations):
    assert inquiries.get_statistics("not-a-course") == {
        "total": 0,
        "by_status": {"new": 0, "contacted": 0, "completed": 0, "archived": 0},
        "by_date": [],
        "by_course": [],
    }
    assert registrations.get_statistics("not-an-event") == {
        "total": 0,
        "by_status": {"new": 0, "contacted": 0, "confirmed": 0, "attended": 0, "cancelled": 0},
    }
