from __future__ import annotations

import datetime as dt

from app.schemas.clash import ClashReport, RoomClash, StudentClash, TeacherClash
from app.schemas.timetable import ClashInfo, TimetableEntry

CLASH_MESSAGE_PREFIX = "Exam scheduling conflict detected: "
UNKNOWN_COURSE = "Unknown Course"


def _clock(value: dt.time) -> str:
    return value.strftime("%H:%M")


def describe_clash(record: RoomClash | TeacherClash | StudentClash, *, room_id: int, class_code_id: int) -> str:
    """One admin-facing sentence for a clash, phrased by what the candidate shares with the other exam."""
    exam = record.conflicting_exam
    room_name = exam.room_name or "Unknown Room"
    class_code = exam.class_code or "Unknown Class"
    when = f"on {exam.date.isoformat()} from {_clock(exam.start_time)} to {_clock(exam.end_time)}"

    same_room = exam.room_id == room_id
    same_class = exam.class_code_id == class_code_id
    if same_room and same_class:
        return f'Room "{room_name}" and class "{class_code}" already have an exam {when}'
    if same_room:
        return f'Room "{room_name}" is already booked {when}'
    if same_class:
        return f'Class "{class_code}" already has another exam {when}'
    return f'{record.message} (class "{class_code}" {when})'


def build_clash_message(report: ClashReport, *, room_id: int, class_code_id: int) -> str:
    details = [describe_clash(record, room_id=room_id, class_code_id=class_code_id) for record in report.clashes]
    return CLASH_MESSAGE_PREFIX + "; ".join(details)


def _course_name(entry: TimetableEntry) -> str:
    return entry.course_code or UNKNOWN_COURSE


def clash_message(clash: ClashInfo) -> str:
    overlap = clash.time_overlap
    return (
        f'The class "{_course_name(clash.new_entry)}" ({overlap.new_start} - {overlap.new_end}) '
        f'overlaps with "{_course_name(clash.conflicting_entry)}" '
        f"({overlap.conflicting_start} - {overlap.conflicting_end}) on {clash.date.isoformat()}."
    )
