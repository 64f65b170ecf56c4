"""Reporting over the event collections.

Everything here is computed at read time by joining whole collections in
memory; nothing derived is ever stored.
"""

from collections import Counter
from typing import Literal, Optional

from .auth import get_users
from .crud import average, get_attendances, get_feedbacks, get_registrations, list_events
from .db import ATTENDANCES, FEEDBACKS, REGISTRATIONS, USERS, CollectionStore
from .schemas import (
    ActiveStudent,
    EventStats,
    MyEvent,
    PopularEvent,
    ProfileStats,
    StudentSummary,
)

POPULAR_EVENTS_LIMIT = 5
ACTIVE_STUDENTS_LIMIT = 10
RECENT_EVENTS_LIMIT = 3


def _rate(part: int, whole: int) -> float:
    return part / whole * 100 if whole else 0


async def get_event_stats(store: CollectionStore, college_id: str) -> EventStats:
    """College-wide totals, top events by registrations and most active students."""
    events = await list_events(store, college_id=college_id)
    event_ids = {e.id for e in events}

    registrations = await store.read(REGISTRATIONS)
    attendances = [a for a in await store.read(ATTENDANCES) if a["event_id"] in event_ids]
    ratings = [f["rating"] for f in await store.read(FEEDBACKS) if f["event_id"] in event_ids]

    total_registrations = sum(
        1 for r in registrations
        if r["event_id"] in event_ids and r.get("status") == "registered"
    )

    # sorted() is stable, so ties keep collection order
    popular = sorted(events, key=lambda e: e.registration_count, reverse=True)[:POPULAR_EVENTS_LIMIT]
    popular_events = [
        PopularEvent(
            event_id=e.id,
            title=e.title,
            registrations=e.registration_count,
            attendance=e.attendance_count,
            rating=e.average_rating,
        )
        for e in popular
    ]

    attended = Counter(a["student_id"] for a in attendances)
    names = {
        u["id"]: f"{u.get('first_name', '')} {u.get('last_name', '')}".strip()
        for u in await store.read(USERS)
    }
    most_active = sorted(attended.items(), key=lambda item: item[1], reverse=True)[:ACTIVE_STUDENTS_LIMIT]
    active_students = [
        ActiveStudent(
            student_id=student_id,
            name=names.get(student_id) or f"Student {student_id[:8]}",
            events_attended=count,
        )
        for student_id, count in most_active
    ]

    return EventStats(
        total_events=len(events),
        total_registrations=total_registrations,
        total_attendance=len(attendances),
        average_rating=average(ratings),
        popular_events=popular_events,
        active_students=active_students,
    )


async def get_student_summaries(store: CollectionStore, college_id: str) -> list[StudentSummary]:
    students = await get_users(store, college_id=college_id, role="student")
    registrations = await get_registrations(store)
    attendances = await get_attendances(store)
    titles = {e.id: e.title for e in await list_events(store, college_id=college_id)}

    summaries = []
    for student in students:
        regs = [r for r in registrations if r.student_id == student.id]
        attended = sum(1 for a in attendances if a.student_id == student.id)
        summaries.append(StudentSummary(
            **student.model_dump(),
            total_registrations=len(regs),
            total_attendance=attended,
            attendance_rate=_rate(attended, len(regs)),
            recent_events=[titles.get(r.event_id, "Unknown Event") for r in regs[-RECENT_EVENTS_LIMIT:]],
        ))
    return summaries


def filter_students(
    summaries: list[StudentSummary],
    search: Optional[str] = None,
    activity: Literal["all", "active", "inactive"] = "all",
    sort_by: Literal["name", "registrations", "attendance"] = "name",
) -> list[StudentSummary]:
    result = list(summaries)

    if search:
        needle = search.lower()
        result = [s for s in result if needle in s.full_name.lower() or needle in s.email.lower()]

    if activity == "active":
        result = [s for s in result if s.total_registrations > 0]
    elif activity == "inactive":
        result = [s for s in result if s.total_registrations == 0]

    if sort_by == "name":
        result.sort(key=lambda s: s.full_name.lower())
    elif sort_by == "registrations":
        result.sort(key=lambda s: s.total_registrations, reverse=True)
    elif sort_by == "attendance":
        result.sort(key=lambda s: s.attendance_rate, reverse=True)
    return result


async def get_profile_stats(store: CollectionStore, student_id: str) -> ProfileStats:
    registrations = await get_registrations(store, student_id=student_id)
    attendances = await get_attendances(store, student_id=student_id)
    feedbacks = await get_feedbacks(store, student_id=student_id)

    return ProfileStats(
        total_registrations=len(registrations),
        total_attendance=len(attendances),
        attendance_rate=_rate(len(attendances), len(registrations)),
        average_rating=average([f.rating for f in feedbacks]),
        feedback_count=len(feedbacks),
    )


async def get_student_events(store: CollectionStore, student_id: str, college_id: str) -> list[MyEvent]:
    """Events the student registered for, flagged with attendance and feedback state."""
    registered = {r.event_id for r in await get_registrations(store, student_id=student_id)}
    attended = {a.event_id for a in await get_attendances(store, student_id=student_id)}
    reviewed = {f.event_id for f in await get_feedbacks(store, student_id=student_id)}

    return [
        MyEvent(
            **e.model_dump(),
            attended=e.id in attended,
            feedback_submitted=e.id in reviewed,
        )
        for e in await list_events(store, college_id=college_id)
        if e.id in registered
    ]
