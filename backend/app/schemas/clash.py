import datetime as dt
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

ClashKind = Literal["room", "teacher", "student"]


class ConflictingExam(BaseModel):
    """Enough of an already scheduled exam to render a clash without another lookup."""

    id: int
    title: str | None = None
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    room_id: int
    room_name: str | None = None
    class_code_id: int
    class_code: str | None = None


class RoomClash(BaseModel):
    kind: Literal["room"] = "room"
    message: str
    conflicting_exam: ConflictingExam


class TeacherClash(BaseModel):
    kind: Literal["teacher"] = "teacher"
    message: str
    conflicting_exam: ConflictingExam
    teacher_id: int
    teacher_name: str | None = None


class ClashStudent(BaseModel):
    id: int
    name: str


class StudentClash(BaseModel):
    kind: Literal["student"] = "student"
    message: str
    conflicting_exam: ConflictingExam
    students: list[ClashStudent]


ClashRecord = Annotated[Union[RoomClash, TeacherClash, StudentClash], Field(discriminator="kind")]


class ClashReport(BaseModel):
    has_clash: bool
    clashes: list[ClashRecord] = Field(default_factory=list)

    @classmethod
    def from_clashes(cls, clashes: list[RoomClash | TeacherClash | StudentClash]) -> "ClashReport":
        return cls(has_clash=bool(clashes), clashes=clashes)

    def of_kind(self, kind: ClashKind) -> list[RoomClash | TeacherClash | StudentClash]:
        return [clash for clash in self.clashes if clash.kind == kind]


class ClashPreviewOut(ClashReport):
    message: str | None = None
