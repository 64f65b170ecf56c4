from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException

from ..auth import Session, get_user, require_admin
from ..crud import get_colleges, update_college
from ..db import CollectionStore, get_store
from ..schemas import College, CollegeUpdate, EventStats, MyEvent, StudentSummary
from ..stats import filter_students, get_event_stats, get_student_events, get_student_summaries

router = APIRouter()


def _own_college(college_id: str, session: Session) -> None:
    if session.user.college_id != college_id:
        raise HTTPException(status_code=403, detail="Admins can only manage their own college")


@router.get("/colleges", response_model=list[College])
async def api_list_colleges(store: CollectionStore = Depends(get_store)):
    return await get_colleges(store)


@router.patch("/colleges/{college_id}", response_model=College)
async def api_update_college(
    college_id: str,
    payload: CollegeUpdate,
    session: Session = Depends(require_admin),
    store: CollectionStore = Depends(get_store),
):
    _own_college(college_id, session)
    college = await update_college(store, college_id, payload.model_dump(exclude_unset=True, exclude_none=True))
    if college is None:
        raise HTTPException(status_code=404, detail="College not found")
    return college


@router.get("/colleges/{college_id}/stats", response_model=EventStats)
async def api_college_stats(
    college_id: str,
    session: Session = Depends(require_admin),
    store: CollectionStore = Depends(get_store),
):
    _own_college(college_id, session)
    return await get_event_stats(store, college_id)


@router.get("/colleges/{college_id}/students", response_model=list[StudentSummary])
async def api_college_students(
    college_id: str,
    search: Optional[str] = None,
    activity: Literal["all", "active", "inactive"] = "all",
    sort_by: Literal["name", "registrations", "attendance"] = "name",
    session: Session = Depends(require_admin),
    store: CollectionStore = Depends(get_store),
):
    _own_college(college_id, session)
    summaries = await get_student_summaries(store, college_id)
    return filter_students(summaries, search=search, activity=activity, sort_by=sort_by)


@router.get("/colleges/{college_id}/students/{student_id}/events", response_model=list[MyEvent])
async def api_college_student_events(
    college_id: str,
    student_id: str,
    session: Session = Depends(require_admin),
    store: CollectionStore = Depends(get_store),
):
    _own_college(college_id, session)
    student = await get_user(store, student_id)
    if student is None or student.role != "student" or student.college_id != college_id:
        raise HTTPException(status_code=404, detail="Student not found in this college")
    return await get_student_events(store, student.id, college_id)
