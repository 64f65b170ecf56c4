import csv
import io
from io import BytesIO

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse
from openpyxl import Workbook

from ..auth import Session, get_users, require_admin
from ..crud import get_event, get_registrations
from ..db import CollectionStore, get_store
from ..schemas import EventOut

router = APIRouter()

HEADER = ["Registration ID", "Event ID", "Event", "Student ID", "Name", "Email", "Status", "Registered At"]
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


async def registration_rows(store: CollectionStore, event: EventOut) -> list[list]:
    users = {u.id: u for u in await get_users(store)}
    rows = []
    for r in await get_registrations(store, event_id=event.id):
        student = users.get(r.student_id)
        rows.append([
            r.id,
            r.event_id,
            event.title,
            r.student_id,
            student.full_name if student else "",
            student.email if student else "",
            r.status,
            r.registered_at.isoformat(),
        ])
    return rows


def build_csv(rows: list[list]) -> str:
    buf = io.StringIO()
    w = csv.writer(buf)
    w.writerow(HEADER)
    w.writerows(rows)
    return buf.getvalue()


def build_excel(rows: list[list]) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Registrations"

    ws.append(HEADER)
    for row in rows:
        ws.append(row)

    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()


async def _exportable_event(store: CollectionStore, event_id: str, session: Session) -> EventOut:
    event = await get_event(store, event_id)
    if event is None:
        raise HTTPException(status_code=404, detail="Event not found")
    if event.college_id != session.user.college_id:
        raise HTTPException(status_code=403, detail="Event belongs to another college")
    return event


@router.get("/events/{event_id}/export/registrations.csv")
async def export_registrations_csv(
    event_id: str,
    session: Session = Depends(require_admin),
    store: CollectionStore = Depends(get_store),
):
    event = await _exportable_event(store, event_id, session)
    body = build_csv(await registration_rows(store, event))
    return StreamingResponse(
        iter([body]),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="registrations_{event_id}.csv"'},
    )


@router.get("/events/{event_id}/export/registrations.xlsx")
async def export_registrations_xlsx(
    event_id: str,
    session: Session = Depends(require_admin),
    store: CollectionStore = Depends(get_store),
):
    event = await _exportable_event(store, event_id, session)
    body = build_excel(await registration_rows(store, event))
    return StreamingResponse(
        iter([body]),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="registrations_{event_id}.xlsx"'},
    )
