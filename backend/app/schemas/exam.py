import datetime as dt

from pydantic import BaseModel, Field, field_validator, model_validator

from app.schemas.class_code import ClassCodeSummary
from app.schemas.room import RoomOut

DAY_VALUES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def day_name(value: dt.date) -> str:
    return DAY_VALUES[value.weekday()]


def _strip_or_none(value: str | None) -> str | None:
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None


class ExamCreate(BaseModel):
    title: str | None = Field(default=None, max_length=200)
    day: str | None = None
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    room_id: int | None = Field(default=None, ge=1)
    room_name: str | None = Field(default=None, max_length=100)
    class_code_id: int | None = Field(default=None, ge=1)
    class_code: str | None = Field(default=None, max_length=50)
    user_id: int | None = Field(default=None, ge=1)

    @field_validator("title", "room_name", "class_code")
    @classmethod
    def normalize_text(cls, value: str | None) -> str | None:
        return _strip_or_none(value)

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str | None) -> str | None:
        day = _strip_or_none(value)
        if day is not None and day not in DAY_VALUES:
            raise ValueError("Invalid day value")
        return day

    @model_validator(mode="after")
    def validate_references(self) -> "ExamCreate":
        if self.room_id is None and self.room_name is None:
            raise ValueError("Room name is required")
        if self.class_code_id is None and self.class_code is None:
            raise ValueError("Class code is required")
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class ExamUpdate(BaseModel):
    title: str | None = Field(default=None, max_length=200)
    day: str | None = None
    date: dt.date | None = None
    start_time: dt.time | None = None
    end_time: dt.time | None = None
    room_id: int | None = Field(default=None, ge=1)
    room_name: str | None = Field(default=None, min_length=1, max_length=100)
    class_code_id: int | None = Field(default=None, ge=1)
    class_code: str | None = Field(default=None, min_length=1, max_length=50)
    user_id: int | None = Field(default=None, ge=1)

    @field_validator("room_name", "class_code")
    @classmethod
    def normalize_reference(cls, value: str | None) -> str | None:
        if value is None:
            return None
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Value cannot be blank")
        return trimmed

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str | None) -> str | None:
        day = _strip_or_none(value)
        if day is not None and day not in DAY_VALUES:
            raise ValueError("Invalid day value")
        return day


class ExamClashCheck(BaseModel):
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    room_id: int = Field(ge=1)
    class_code_id: int = Field(ge=1)
    exclude_exam_id: int | None = Field(default=None, ge=1)


class ExamOwner(BaseModel):
    id: int
    name: str

    model_config = {"from_attributes": True}


class ExamOut(BaseModel):
    id: int
    title: str | None = None
    day: str
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    room_id: int
    class_code_id: int
    room: RoomOut
    class_code: ClassCodeSummary
    owner: ExamOwner | None = None

    model_config = {"from_attributes": True}


class ExamDeleteAllOut(BaseModel):
    success: bool
    deleted_count: int
