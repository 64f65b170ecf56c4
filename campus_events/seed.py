import logging
from datetime import timedelta

from .crud import now_utc
from .db import COLLEGES, EVENTS, CollectionStore
from .schemas import College, Event

logger = logging.getLogger(__name__)


async def seed_sample_data(store: CollectionStore) -> None:
    """Insert sample colleges and events into empty collections."""
    now = now_utc()

    async with store.lock(COLLEGES):
        if not await store.read(COLLEGES):
            colleges = [
                College(id="college-1", name="MIT Technology Institute", city="Boston",
                        state="Massachusetts", created_at=now),
                College(id="college-2", name="Stanford University", city="Stanford",
                        state="California", created_at=now),
            ]
            await store.write(COLLEGES, [c.model_dump(mode="json") for c in colleges])
            logger.info("Seeded %d sample colleges", len(colleges))

    async with store.lock(EVENTS):
        if not await store.read(EVENTS):
            events = [
                Event(
                    id="event-1",
                    title="AI/ML Workshop",
                    description="Learn the fundamentals of Machine Learning and AI development",
                    type="workshop",
                    venue="Main Auditorium",
                    start_date=now + timedelta(days=7),
                    end_date=now + timedelta(days=7, hours=4),
                    registration_deadline=now + timedelta(days=5),
                    max_capacity=100,
                    college_id="college-1",
                    created_by="admin-1",
                    status="published",
                    created_at=now,
                ),
                Event(
                    id="event-2",
                    title="Annual Hackathon 2025",
                    description="48-hour coding marathon with exciting prizes",
                    type="hackathon",
                    venue="Tech Center",
                    start_date=now + timedelta(days=14),
                    end_date=now + timedelta(days=16),
                    registration_deadline=now + timedelta(days=10),
                    max_capacity=200,
                    college_id="college-1",
                    created_by="admin-1",
                    status="published",
                    created_at=now,
                ),
            ]
            await store.write(EVENTS, [e.model_dump(mode="json") for e in events])
            logger.info("Seeded %d sample events", len(events))
