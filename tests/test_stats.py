# tests/test_stats.py

import pytest

from campus_events import auth, crud, stats


async def _student(store, first_name, email, college_id="college-1"):
    return await auth.signup(store, {
        "email": email,
        "first_name": first_name,
        "last_name": "Lovelace",
        "role": "student",
        "college_id": college_id,
    })


async def _registrations(store, event_id, count, prefix="stu"):
    for i in range(count):
        await crud.register_for_event(store, event_id, f"{prefix}_{event_id}_{i}")


@pytest.mark.asyncio
async def test_stats_for_college_without_events(store):
    result = await stats.get_event_stats(store, "college-9")

    assert result.total_events == 0
    assert result.total_registrations == 0
    assert result.total_attendance == 0
    assert result.average_rating == 0
    assert result.popular_events == []
    assert result.active_students == []


@pytest.mark.asyncio
async def test_popular_events_ordered_by_registrations(store, event_fields):
    counts = {"Ten": 10, "Five": 5, "Twenty": 20}
    for title, count in counts.items():
        event = await crud.create_event(store, event_fields(title=title))
        await _registrations(store, event.id, count)

    result = await stats.get_event_stats(store, "college-1")

    assert [p.registrations for p in result.popular_events] == [20, 10, 5]
    assert [p.title for p in result.popular_events] == ["Twenty", "Ten", "Five"]
    assert result.total_registrations == 35


@pytest.mark.asyncio
async def test_popular_events_capped_at_five_with_stable_ties(store, event_fields):
    ids = []
    for i in range(7):
        event = await crud.create_event(store, event_fields(title=f"E{i}"))
        ids.append(event.id)
    await _registrations(store, ids[6], 2)

    result = await stats.get_event_stats(store, "college-1")

    assert result.total_events == 7
    assert [p.event_id for p in result.popular_events] == [ids[6], ids[0], ids[1], ids[2], ids[3]]


@pytest.mark.asyncio
async def test_totals_only_cover_the_college_and_active_registrations(store, event_fields):
    own = await crud.create_event(store, event_fields(college_id="college-1"))
    other = await crud.create_event(store, event_fields(college_id="college-2"))

    await crud.register_for_event(store, own.id, "stu_1")
    await crud.register_for_event(store, own.id, "stu_2")
    await crud.cancel_registration(store, own.id, "stu_2")
    await crud.register_for_event(store, other.id, "stu_1")
    await crud.mark_attendance(store, own.id, "stu_1", "admin-1")
    await crud.mark_attendance(store, other.id, "stu_1", "admin-2")
    await crud.submit_feedback(store, own.id, "stu_1", 4)
    await crud.submit_feedback(store, own.id, "stu_3", 3)
    await crud.submit_feedback(store, other.id, "stu_1", 1)

    result = await stats.get_event_stats(store, "college-1")

    assert result.total_events == 1
    assert result.total_registrations == 1
    assert result.total_attendance == 1
    assert result.average_rating == 3.5
    assert result.popular_events[0].attendance == 1
    assert result.popular_events[0].rating == 3.5


@pytest.mark.asyncio
async def test_active_students_ranked_by_attendance(store, event_fields):
    ada = await _student(store, "Ada", "ada@mit.edu")
    events = [await crud.create_event(store, event_fields(title=f"E{i}")) for i in range(3)]

    # "anon" attends first, ada attends most, "walk_in" ties with anon
    await crud.mark_attendance(store, events[0].id, "anon_1234567890", "admin-1")
    await crud.mark_attendance(store, events[0].id, "walk_in", "admin-1")
    for event in events:
        await crud.mark_attendance(store, event.id, ada.id, "admin-1")

    result = await stats.get_event_stats(store, "college-1")

    assert [(s.student_id, s.events_attended) for s in result.active_students] == [
        (ada.id, 3),
        ("anon_1234567890", 1),
        ("walk_in", 1),
    ]
    assert result.active_students[0].name == "Ada Lovelace"
    assert result.active_students[1].name == "Student anon_123"


@pytest.mark.asyncio
async def test_active_students_capped_at_ten(store, event_fields):
    event = await crud.create_event(store, event_fields())
    for i in range(12):
        await crud.mark_attendance(store, event.id, f"stu_{i:02d}", "admin-1")

    result = await stats.get_event_stats(store, "college-1")

    assert len(result.active_students) == 10
    assert result.active_students[0].student_id == "stu_00"


@pytest.mark.asyncio
async def test_student_summaries_and_filtering(store, event_fields):
    ada = await _student(store, "Ada", "ada@mit.edu")
    bob = await _student(store, "Bob", "bob@mit.edu")
    await _student(store, "Cy", "cy@stanford.edu", college_id="college-2")
    events = [await crud.create_event(store, event_fields(title=f"Event {i}")) for i in range(4)]

    for event in events:
        await crud.register_for_event(store, event.id, ada.id)
    await crud.register_for_event(store, "elsewhere", ada.id)
    await crud.mark_attendance(store, events[0].id, ada.id, "admin-1")
    await crud.mark_attendance(store, events[1].id, ada.id, "admin-1")

    summaries = await stats.get_student_summaries(store, "college-1")

    assert [s.first_name for s in summaries] == ["Ada", "Bob"]
    ada_summary = summaries[0]
    assert ada_summary.total_registrations == 5
    assert ada_summary.total_attendance == 2
    assert ada_summary.attendance_rate == 40.0
    assert ada_summary.recent_events == ["Event 2", "Event 3", "Unknown Event"]
    assert summaries[1].attendance_rate == 0

    assert [s.id for s in stats.filter_students(summaries, activity="inactive")] == [bob.id]
    assert [s.id for s in stats.filter_students(summaries, search="BOB@")] == [bob.id]
    assert [s.id for s in stats.filter_students(summaries, search="lovelace")] == [ada.id, bob.id]
    assert [s.id for s in stats.filter_students(summaries, sort_by="registrations")] == [ada.id, bob.id]


@pytest.mark.asyncio
async def test_profile_stats(store):
    await crud.register_for_event(store, "evt_1", "stu_1")
    await crud.register_for_event(store, "evt_2", "stu_1")
    await crud.mark_attendance(store, "evt_1", "stu_1", "admin-1")
    await crud.submit_feedback(store, "evt_1", "stu_1", 5)
    await crud.submit_feedback(store, "evt_2", "stu_1", 2)

    profile = await stats.get_profile_stats(store, "stu_1")

    assert profile.total_registrations == 2
    assert profile.total_attendance == 1
    assert profile.attendance_rate == 50.0
    assert profile.average_rating == 3.5
    assert profile.feedback_count == 2


@pytest.mark.asyncio
async def test_profile_stats_for_new_student_are_zero(store):
    profile = await stats.get_profile_stats(store, "stu_new")
    assert profile.attendance_rate == 0
    assert profile.average_rating == 0


@pytest.mark.asyncio
async def test_student_events_flags_attendance_and_feedback(store, event_fields):
    first = await crud.create_event(store, event_fields(title="First"))
    second = await crud.create_event(store, event_fields(title="Second"))
    await crud.create_event(store, event_fields(title="Not mine"))
    await crud.register_for_event(store, first.id, "stu_1")
    await crud.register_for_event(store, second.id, "stu_1")
    await crud.mark_attendance(store, first.id, "stu_1", "admin-1")
    await crud.submit_feedback(store, first.id, "stu_1", 5)

    mine = await stats.get_student_events(store, "stu_1", "college-1")

    assert [(e.title, e.attended, e.feedback_submitted) for e in mine] == [
        ("First", True, True),
        ("Second", False, False),
    ]
