import logging
import uuid
from collections import Counter, defaultdict
from datetime import datetime, timezone
from typing import Any, Optional

from .db import ATTENDANCES, COLLEGES, EVENTS, FEEDBACKS, REGISTRATIONS, CollectionStore
from .exceptions import (
    AlreadyRegisteredError,
    AttendanceAlreadyMarkedError,
    EventFullError,
    FeedbackAlreadySubmittedError,
    RegistrationClosedError,
)
from .schemas import Attendance, College, Event, EventOut, Feedback, Registration, as_utc

logger = logging.getLogger(__name__)

_last_timestamp = datetime.min.replace(tzinfo=timezone.utc)


def now_utc() -> datetime:
    # never goes backwards within the process, even if the wall clock does
    global _last_timestamp
    _last_timestamp = max(_last_timestamp, datetime.now(timezone.utc))
    return _last_timestamp


def new_id(existing: list[dict]) -> str:
    taken = {r.get("id") for r in existing}
    while True:
        candidate = uuid.uuid4().hex
        if candidate not in taken:
            return candidate


def average(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0


def _matches(record: dict, **filters: Optional[str]) -> bool:
    return all(value is None or record.get(field) == value for field, value in filters.items())


# ---------- Colleges ----------
async def get_colleges(store: CollectionStore) -> list[College]:
    return [College.model_validate(c) for c in await store.read(COLLEGES)]


async def get_college(store: CollectionStore, college_id: str) -> Optional[College]:
    for c in await store.read(COLLEGES):
        if c.get("id") == college_id:
            return College.model_validate(c)
    return None


async def update_college(store: CollectionStore, college_id: str, updates: dict[str, Any]) -> Optional[College]:
    async with store.lock(COLLEGES):
        colleges = await store.read(COLLEGES)
        for i, c in enumerate(colleges):
            if c.get("id") == college_id:
                college = College.model_validate({**c, **updates})
                colleges[i] = college.model_dump(mode="json")
                await store.write(COLLEGES, colleges)
                return college
    return None


# ---------- Events ----------
def decorate_events(
    events: list[dict],
    registrations: list[dict],
    attendances: list[dict],
    feedbacks: list[dict],
) -> list[EventOut]:
    """Attach registration/attendance counts and average rating to raw event records."""
    registered = Counter(r["event_id"] for r in registrations if r.get("status") == "registered")
    attended = Counter(a["event_id"] for a in attendances)
    ratings = defaultdict(list)
    for f in feedbacks:
        ratings[f["event_id"]].append(f["rating"])

    return [
        EventOut.model_validate({
            **e,
            "registration_count": registered[e["id"]],
            "attendance_count": attended[e["id"]],
            "average_rating": average(ratings[e["id"]]),
        })
        for e in events
    ]


async def list_events(
    store: CollectionStore,
    college_id: Optional[str] = None,
    event_type: Optional[str] = None,
) -> list[EventOut]:
    events = [
        e for e in await store.read(EVENTS)
        if _matches(e, college_id=college_id, type=event_type)
    ]
    return decorate_events(
        events,
        await store.read(REGISTRATIONS),
        await store.read(ATTENDANCES),
        await store.read(FEEDBACKS),
    )


async def get_event(store: CollectionStore, event_id: str) -> Optional[EventOut]:
    for event in await list_events(store):
        if event.id == event_id:
            return event
    return None


async def create_event(store: CollectionStore, fields: dict[str, Any]) -> Event:
    """Append a new event. Field values are stored as given; callers validate."""
    async with store.lock(EVENTS):
        events = await store.read(EVENTS)
        event = Event.model_validate({**fields, "id": new_id(events), "created_at": now_utc()})
        events.append(event.model_dump(mode="json"))
        await store.write(EVENTS, events)
    logger.info("Created event %s (%s) for college %s", event.id, event.title, event.college_id)
    return event


async def update_event(store: CollectionStore, event_id: str, updates: dict[str, Any]) -> Optional[Event]:
    async with store.lock(EVENTS):
        events = await store.read(EVENTS)
        for i, e in enumerate(events):
            if e.get("id") == event_id:
                event = Event.model_validate({**e, **updates})
                events[i] = event.model_dump(mode="json")
                await store.write(EVENTS, events)
                logger.info("Updated event %s: %s", event_id, sorted(updates))
                return event
    return None


# ---------- Registrations ----------
async def register_for_event(
    store: CollectionStore,
    event_id: str,
    student_id: str,
    enforce_limits: bool = False,
) -> Registration:
    async with store.lock(REGISTRATIONS):
        registrations = await store.read(REGISTRATIONS)

        active = [r for r in registrations if r["event_id"] == event_id and r.get("status") == "registered"]
        if any(r["student_id"] == student_id for r in active):
            logger.warning("Student %s already registered for event %s", student_id, event_id)
            raise AlreadyRegisteredError()

        if enforce_limits:
            event = next((e for e in await store.read(EVENTS) if e.get("id") == event_id), None)
            if event is not None:
                event = Event.model_validate(event)
                if now_utc() > as_utc(event.registration_deadline):
                    raise RegistrationClosedError()
                if len(active) >= event.max_capacity:
                    raise EventFullError()

        registration = Registration(
            id=new_id(registrations),
            event_id=event_id,
            student_id=student_id,
            registered_at=now_utc(),
            status="registered",
        )
        registrations.append(registration.model_dump(mode="json"))
        await store.write(REGISTRATIONS, registrations)

    logger.info("Student %s registered for event %s", student_id, event_id)
    return registration


async def cancel_registration(store: CollectionStore, event_id: str, student_id: str) -> Optional[Registration]:
    async with store.lock(REGISTRATIONS):
        registrations = await store.read(REGISTRATIONS)
        for r in registrations:
            if r["event_id"] == event_id and r["student_id"] == student_id and r.get("status") == "registered":
                r["status"] = "cancelled"
                await store.write(REGISTRATIONS, registrations)
                logger.info("Student %s cancelled registration for event %s", student_id, event_id)
                return Registration.model_validate(r)
    return None


async def get_registrations(
    store: CollectionStore,
    event_id: Optional[str] = None,
    student_id: Optional[str] = None,
) -> list[Registration]:
    return [
        Registration.model_validate(r) for r in await store.read(REGISTRATIONS)
        if _matches(r, event_id=event_id, student_id=student_id)
    ]


# ---------- Attendance ----------
async def mark_attendance(store: CollectionStore, event_id: str, student_id: str, checked_in_by: str) -> Attendance:
    # No registration check: walk-ins can be checked in.
    async with store.lock(ATTENDANCES):
        attendances = await store.read(ATTENDANCES)
        if any(a["event_id"] == event_id and a["student_id"] == student_id for a in attendances):
            logger.warning("Attendance for student %s at event %s already marked", student_id, event_id)
            raise AttendanceAlreadyMarkedError()

        attendance = Attendance(
            id=new_id(attendances),
            event_id=event_id,
            student_id=student_id,
            checked_in_at=now_utc(),
            checked_in_by=checked_in_by,
        )
        attendances.append(attendance.model_dump(mode="json"))
        await store.write(ATTENDANCES, attendances)

    logger.info("Marked student %s present at event %s", student_id, event_id)
    return attendance


async def get_attendances(
    store: CollectionStore,
    event_id: Optional[str] = None,
    student_id: Optional[str] = None,
) -> list[Attendance]:
    return [
        Attendance.model_validate(a) for a in await store.read(ATTENDANCES)
        if _matches(a, event_id=event_id, student_id=student_id)
    ]


# ---------- Feedback ----------
async def submit_feedback(
    store: CollectionStore,
    event_id: str,
    student_id: str,
    rating: int,
    comment: Optional[str] = None,
) -> Feedback:
    async with store.lock(FEEDBACKS):
        feedbacks = await store.read(FEEDBACKS)
        if any(f["event_id"] == event_id and f["student_id"] == student_id for f in feedbacks):
            logger.warning("Feedback from student %s for event %s already submitted", student_id, event_id)
            raise FeedbackAlreadySubmittedError()

        feedback = Feedback(
            id=new_id(feedbacks),
            event_id=event_id,
            student_id=student_id,
            rating=rating,
            comment=comment,
            submitted_at=now_utc(),
        )
        feedbacks.append(feedback.model_dump(mode="json"))
        await store.write(FEEDBACKS, feedbacks)

    logger.info("Student %s rated event %s: %s", student_id, event_id, rating)
    return feedback


async def get_feedbacks(
    store: CollectionStore,
    event_id: Optional[str] = None,
    student_id: Optional[str] = None,
) -> list[Feedback]:
    return [
        Feedback.model_validate(f) for f in await store.read(FEEDBACKS)
        if _matches(f, event_id=event_id, student_id=student_id)
    ]
