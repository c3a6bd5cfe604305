import datetime as dt
import re

from pydantic import BaseModel, Field, field_validator, model_validator

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d(:[0-5]\d)?$")


class TimetableEntry(BaseModel):
    """An exam as held in a student's personal timetable.

    Times stay as the raw ``HH:MM`` / ``HH:MM:SS`` strings they were given in so
    clash messages show them verbatim. Date and times may be missing for
    entries that are not scheduled yet; the overlap checker skips those.
    """

    id: int | None = None
    title: str | None = None
    date: dt.date | None = None
    day: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    course_code: str | None = None
    room_name: str | None = None

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def normalize_time(cls, value):
        if value is None or value == "":
            return None
        if isinstance(value, dt.time):
            return value.isoformat(timespec="seconds")
        text = str(value).strip()
        if not TIME_PATTERN.match(text):
            raise ValueError("Time must be in HH:MM or HH:MM:SS 24-hour format")
        return text


class TimeOverlap(BaseModel):
    new_start: str
    new_end: str
    conflicting_start: str
    conflicting_end: str


class ClashInfo(BaseModel):
    new_entry: TimetableEntry
    conflicting_entry: TimetableEntry
    date: dt.date
    time_overlap: TimeOverlap


class TimetableCheckRequest(BaseModel):
    candidate: TimetableEntry
    selected: list[TimetableEntry] = Field(default_factory=list, max_length=500)


class TimetableCheckOut(BaseModel):
    has_clash: bool
    clashes: list[ClashInfo]
    messages: list[str]


class CourseCodeOut(BaseModel):
    id: int
    code: str

    model_config = {"from_attributes": True}


class SavedClassCreate(BaseModel):
    exam_id: int | None = Field(default=None, ge=1)
    class_code_id: int | None = Field(default=None, ge=1)

    @model_validator(mode="after")
    def validate_single_target(self) -> "SavedClassCreate":
        if (self.exam_id is None) == (self.class_code_id is None):
            raise ValueError("Provide exactly one of exam_id or class_code_id")
        return self


class SavedClassOut(BaseModel):
    id: int
    exam_id: int | None = None
    class_code_id: int | None = None
    course_code: str | None = None
    created_at: dt.datetime | None = None


class SelectionOut(BaseModel):
    classes: list[SavedClassOut]
    entries: list[TimetableEntry]
    clashes: list[ClashInfo]
    messages: list[str]
