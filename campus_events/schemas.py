from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

Role = Literal["admin", "student"]
EventType = Literal["workshop", "hackathon", "tech-talk", "fest", "seminar", "other"]
EventStatus = Literal["draft", "published", "cancelled", "completed"]
RegistrationStatus = Literal["registered", "cancelled"]


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # naive datetimes are taken to be UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ---------- Stored records ----------
class College(BaseModel):
    id: str
    name: str
    city: str
    state: str
    created_at: datetime


class User(BaseModel):
    id: str
    email: EmailStr
    first_name: str
    last_name: str
    role: Role
    college_id: str
    created_at: datetime

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Event(BaseModel):
    id: str
    title: str
    description: str = ""
    type: EventType
    venue: str
    start_date: datetime
    end_date: datetime
    registration_deadline: datetime
    max_capacity: int
    college_id: str
    created_by: str
    status: EventStatus = "published"
    created_at: datetime


class EventOut(Event):
    registration_count: int = 0
    attendance_count: int = 0
    average_rating: float = 0


class Registration(BaseModel):
    id: str
    event_id: str
    student_id: str
    registered_at: datetime
    status: RegistrationStatus = "registered"


class Attendance(BaseModel):
    id: str
    event_id: str
    student_id: str
    checked_in_at: datetime
    checked_in_by: str


class Feedback(BaseModel):
    id: str
    event_id: str
    student_id: str
    rating: int
    comment: Optional[str] = None
    submitted_at: datetime


# ---------- Request payloads ----------
class SignupIn(BaseModel):
    email: EmailStr
    first_name: str = Field(min_length=1, max_length=120)
    last_name: str = Field(default="", max_length=120)
    role: Role = "student"
    college_id: str = Field(min_length=1)


class LoginIn(BaseModel):
    email: EmailStr


class ProfileUpdate(BaseModel):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    last_name: Optional[str] = Field(default=None, max_length=120)
    email: Optional[EmailStr] = None


class CollegeUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    city: Optional[str] = Field(default=None, max_length=120)
    state: Optional[str] = Field(default=None, max_length=120)


class EventIn(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(default="", max_length=5000)
    type: EventType = "workshop"
    venue: str = Field(min_length=1, max_length=200)
    start_date: datetime
    end_date: datetime
    registration_deadline: datetime
    max_capacity: int = Field(default=50, gt=0)
    status: EventStatus = "published"

    dates_as_utc = field_validator("start_date", "end_date", "registration_deadline")(as_utc)

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        if self.registration_deadline > self.end_date:
            raise ValueError("registration_deadline must not be after end_date")
        return self


class EventUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=5000)
    type: Optional[EventType] = None
    venue: Optional[str] = Field(default=None, min_length=1, max_length=200)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    registration_deadline: Optional[datetime] = None
    max_capacity: Optional[int] = Field(default=None, gt=0)
    status: Optional[EventStatus] = None

    dates_as_utc = field_validator("start_date", "end_date", "registration_deadline")(as_utc)


class AttendanceIn(BaseModel):
    student_id: str = Field(min_length=1)


class FeedbackIn(BaseModel):
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = Field(default=None, max_length=2000)


# ---------- Reports ----------
class PopularEvent(BaseModel):
    event_id: str
    title: str
    registrations: int
    attendance: int
    rating: float


class ActiveStudent(BaseModel):
    student_id: str
    name: str
    events_attended: int


class EventStats(BaseModel):
    total_events: int = 0
    total_registrations: int = 0
    total_attendance: int = 0
    average_rating: float = 0
    popular_events: list[PopularEvent] = []
    active_students: list[ActiveStudent] = []


class StudentSummary(User):
    total_registrations: int = 0
    total_attendance: int = 0
    attendance_rate: float = 0
    recent_events: list[str] = []


class ProfileStats(BaseModel):
    total_registrations: int = 0
    total_attendance: int = 0
    attendance_rate: float = 0
    average_rating: float = 0
    feedback_count: int = 0


class MyEvent(EventOut):
    attended: bool = False
    feedback_submitted: bool = False
