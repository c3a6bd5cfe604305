from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Protocol

from app.schemas.clash import (
    ClashReport,
    ClashStudent,
    ConflictingExam,
    RoomClash,
    StudentClash,
    TeacherClash,
)
from app.services.time_overlap import time_ranges_overlap


@dataclass(frozen=True)
class ClassCodeMembers:
    id: int
    code: str
    teacher_id: int | None = None
    teacher_name: str | None = None
    # student id -> display name, in enrolment order
    students: dict[int, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ScheduledExam:
    id: int
    date: dt.date
    start_time: dt.time | str
    end_time: dt.time | str
    room_id: int
    class_code_id: int
    title: str | None = None
    room_name: str | None = None
    class_code: ClassCodeMembers | None = None


@dataclass(frozen=True)
class ExamCandidate:
    date: dt.date
    start_time: dt.time | str
    end_time: dt.time | str
    room_id: int
    class_code_id: int
    exclude_exam_id: int | None = None


class ExamLookup(Protocol):
    def exams_on_date(self, exam_date: dt.date, *, exclude_exam_id: int | None = None) -> list[ScheduledExam]:
        ...

    def class_code(self, class_code_id: int) -> ClassCodeMembers | None:
        ...


ROOM_CLASH_MESSAGE = "Room is already booked for another exam during this time"


def _conflicting_exam(exam: ScheduledExam) -> ConflictingExam:
    return ConflictingExam(
        id=exam.id,
        title=exam.title,
        date=exam.date,
        start_time=exam.start_time,
        end_time=exam.end_time,
        room_id=exam.room_id,
        room_name=exam.room_name,
        class_code_id=exam.class_code_id,
        class_code=exam.class_code.code if exam.class_code else None,
    )


def _shared_students(candidate: ClassCodeMembers, existing: ClassCodeMembers | None) -> list[ClashStudent]:
    if existing is None or not existing.students:
        return []
    return [
        ClashStudent(id=student_id, name=name)
        for student_id, name in candidate.students.items()
        if student_id in existing.students
    ]


def detect_clashes(lookup: ExamLookup, candidate: ExamCandidate) -> ClashReport:
    """Report every exam on the candidate's date that it would clash with.

    Only exams whose time range overlaps the candidate's are considered. Each
    of those is then checked for a shared room, a shared teacher and shared
    enrolled students independently, so one exam can produce up to three
    records. A candidate whose class code does not exist reports no clashes
    at all, room clashes included.
    """
    existing_exams = lookup.exams_on_date(candidate.date, exclude_exam_id=candidate.exclude_exam_id)
    members = lookup.class_code(candidate.class_code_id)
    if members is None:
        return ClashReport.from_clashes([])

    clashes: list[RoomClash | TeacherClash | StudentClash] = []
    for existing in existing_exams:
        if existing.date != candidate.date:
            continue
        if not time_ranges_overlap(candidate.start_time, candidate.end_time, existing.start_time, existing.end_time):
            continue

        conflicting = _conflicting_exam(existing)
        existing_members = existing.class_code

        if existing.room_id == candidate.room_id:
            clashes.append(RoomClash(message=ROOM_CLASH_MESSAGE, conflicting_exam=conflicting))

        existing_teacher_id = existing_members.teacher_id if existing_members else None
        if members.teacher_id and existing_teacher_id and members.teacher_id == existing_teacher_id:
            clashes.append(
                TeacherClash(
                    message=f'Teacher "{members.teacher_name}" is already assigned to another exam during this time',
                    conflicting_exam=conflicting,
                    teacher_id=members.teacher_id,
                    teacher_name=members.teacher_name,
                )
            )

        shared = _shared_students(members, existing_members)
        if shared:
            names = ", ".join(student.name for student in shared)
            clashes.append(
                StudentClash(
                    message=f'Student(s) "{names}" are enrolled in both courses and have overlapping exam times',
                    conflicting_exam=conflicting,
                    students=shared,
                )
            )

    return ClashReport.from_clashes(clashes)
