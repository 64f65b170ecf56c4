import logging
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from pymongo.errors import PyMongoError

from .auth import Session, get_session, require_admin
from .config import settings
from .crud import (
    cancel_registration,
    create_event,
    get_attendances,
    get_event,
    get_feedbacks,
    get_registrations,
    list_events,
    mark_attendance,
    register_for_event,
    submit_feedback,
    update_event,
)
from .db import CollectionStore, get_store
from .exceptions import DuplicateActionError, RegistrationLimitError
from .logging_config import setup_logging
from .routes.accounts import router as accounts_router
from .routes.analytics import router as analytics_router
from .routes.export_registrations import router as export_router
from .schemas import (
    Attendance,
    AttendanceIn,
    EventIn,
    EventOut,
    EventType,
    EventUpdate,
    Feedback,
    FeedbackIn,
    Registration,
)
from .seed import seed_sample_data

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Campus Events Backend", version="1.0.0")

app.include_router(accounts_router, prefix="/api", tags=["Accounts"])
app.include_router(analytics_router, prefix="/api", tags=["Colleges & Analytics"])
app.include_router(export_router, prefix="/api", tags=["Export"])


@app.on_event("startup")
async def on_startup():
    if not settings.SEED_SAMPLE_DATA:
        return
    try:
        await seed_sample_data(get_store())
    except PyMongoError as e:
        logger.warning("Could not seed sample data: %s", e)


async def _event_or_404(store: CollectionStore, event_id: str) -> EventOut:
    event = await get_event(store, event_id)
    if event is None:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


# ---------- Events ----------
@app.get("/api/events", response_model=list[EventOut])
async def api_list_events(
    college_id: Optional[str] = None,
    event_type: Optional[EventType] = Query(default=None, alias="type"),
    store: CollectionStore = Depends(get_store),
):
    return await list_events(store, college_id=college_id, event_type=event_type)


@app.get("/api/events/{event_id}", response_model=EventOut)
async def api_get_event(event_id: str, store: CollectionStore = Depends(get_store)):
    return await _event_or_404(store, event_id)


@app.post("/api/events", response_model=EventOut, status_code=201)
async def api_create_event(
    payload: EventIn,
    session: Session = Depends(require_admin),
    store: CollectionStore = Depends(get_store),
):
    fields = payload.model_dump()
    fields["college_id"] = session.user.college_id
    fields["created_by"] = session.user.id
    event = await create_event(store, fields)
    return EventOut(**event.model_dump())


@app.patch("/api/events/{event_id}", response_model=EventOut)
async def api_update_event(
    event_id: str,
    payload: EventUpdate,
    session: Session = Depends(require_admin),
    store: CollectionStore = Depends(get_store),
):
    event = await _event_or_404(store, event_id)
    if event.college_id != session.user.college_id:
        raise HTTPException(status_code=403, detail="Event belongs to another college")

    await update_event(store, event_id, payload.model_dump(exclude_unset=True, exclude_none=True))
    return await _event_or_404(store, event_id)


# ---------- Registrations ----------
@app.post("/api/events/{event_id}/registrations", response_model=Registration, status_code=201)
async def api_register(
    event_id: str,
    session: Session = Depends(get_session),
    store: CollectionStore = Depends(get_store),
):
    if session.is_admin:
        raise HTTPException(status_code=403, detail="Only students can register for events")
    await _event_or_404(store, event_id)
    try:
        return await register_for_event(
            store, event_id, session.user.id,
            enforce_limits=settings.ENFORCE_REGISTRATION_LIMITS,
        )
    except (DuplicateActionError, RegistrationLimitError) as e:
        raise HTTPException(status_code=409, detail=str(e))


@app.delete("/api/events/{event_id}/registrations/me", response_model=Registration)
async def api_cancel_registration(
    event_id: str,
    session: Session = Depends(get_session),
    store: CollectionStore = Depends(get_store),
):
    registration = await cancel_registration(store, event_id, session.user.id)
    if registration is None:
        raise HTTPException(status_code=404, detail="No active registration for this event")
    return registration


@app.get("/api/registrations", response_model=list[Registration])
async def api_list_registrations(
    event_id: Optional[str] = None,
    student_id: Optional[str] = None,
    store: CollectionStore = Depends(get_store),
):
    return await get_registrations(store, event_id=event_id, student_id=student_id)


# ---------- Attendance ----------
@app.post("/api/events/{event_id}/attendance", response_model=Attendance, status_code=201)
async def api_mark_attendance(
    event_id: str,
    payload: AttendanceIn,
    session: Session = Depends(require_admin),
    store: CollectionStore = Depends(get_store),
):
    event = await _event_or_404(store, event_id)
    if event.college_id != session.user.college_id:
        raise HTTPException(status_code=403, detail="Event belongs to another college")
    try:
        return await mark_attendance(store, event_id, payload.student_id, checked_in_by=session.user.id)
    except DuplicateActionError as e:
        raise HTTPException(status_code=409, detail=str(e))


@app.get("/api/attendances", response_model=list[Attendance])
async def api_list_attendances(
    event_id: Optional[str] = None,
    student_id: Optional[str] = None,
    store: CollectionStore = Depends(get_store),
):
    return await get_attendances(store, event_id=event_id, student_id=student_id)


# ---------- Feedback ----------
@app.post("/api/events/{event_id}/feedback", response_model=Feedback, status_code=201)
async def api_submit_feedback(
    event_id: str,
    payload: FeedbackIn,
    session: Session = Depends(get_session),
    store: CollectionStore = Depends(get_store),
):
    await _event_or_404(store, event_id)
    comment = payload.comment.strip() if payload.comment else None
    try:
        return await submit_feedback(store, event_id, session.user.id, payload.rating, comment or None)
    except DuplicateActionError as e:
        raise HTTPException(status_code=409, detail=str(e))


@app.get("/api/feedbacks", response_model=list[Feedback])
async def api_list_feedbacks(
    event_id: Optional[str] = None,
    student_id: Optional[str] = None,
    store: CollectionStore = Depends(get_store),
):
    return await get_feedbacks(store, event_id=event_id, student_id=student_id)
