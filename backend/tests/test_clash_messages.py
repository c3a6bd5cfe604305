import datetime as dt

from app.schemas.clash import ClashReport, ConflictingExam, RoomClash, StudentClash, ClashStudent
from app.schemas.timetable import ClashInfo, TimeOverlap, TimetableEntry
from app.services.clash_messages import build_clash_message, clash_message, describe_clash


def _conflicting(*, room_id=1, class_code_id=1):
    return ConflictingExam(
        id=9,
        date=dt.date(2026, 6, 1),
        start_time=dt.time(9, 0),
        end_time=dt.time(11, 0),
        room_id=room_id,
        room_name="Hall A",
        class_code_id=class_code_id,
        class_code="CS101",
    )


def _room_clash(**kwargs):
    return RoomClash(message="Room is already booked for another exam during this time", conflicting_exam=_conflicting(**kwargs))


def test_describe_room_and_class_clash():
    text = describe_clash(_room_clash(), room_id=1, class_code_id=1)
    assert text == 'Room "Hall A" and class "CS101" already have an exam on 2026-06-01 from 09:00 to 11:00'


def test_describe_room_only_clash():
    text = describe_clash(_room_clash(), room_id=1, class_code_id=2)
    assert text == 'Room "Hall A" is already booked on 2026-06-01 from 09:00 to 11:00'


def test_describe_class_only_clash():
    text = describe_clash(_room_clash(), room_id=2, class_code_id=1)
    assert text == 'Class "CS101" already has another exam on 2026-06-01 from 09:00 to 11:00'


def test_describe_falls_back_to_record_message():
    record = StudentClash(
        message='Student(s) "Kim" are enrolled in both courses and have overlapping exam times',
        conflicting_exam=_conflicting(room_id=3, class_code_id=3),
        students=[ClashStudent(id=1, name="Kim")],
    )
    text = describe_clash(record, room_id=1, class_code_id=1)
    assert text.startswith('Student(s) "Kim" are enrolled')
    assert text.endswith('(class "CS101" on 2026-06-01 from 09:00 to 11:00)')


def test_build_clash_message_joins_details():
    report = ClashReport.from_clashes([_room_clash(), _room_clash(room_id=3)])
    message = build_clash_message(report, room_id=1, class_code_id=2)
    assert message.startswith("Exam scheduling conflict detected: ")
    assert message.count("; ") == 1


def test_clash_message_uses_unknown_course_fallback():
    clash = ClashInfo(
        new_entry=TimetableEntry(date=dt.date(2026, 6, 1), start_time="09:00", end_time="10:00"),
        conflicting_entry=TimetableEntry(
            course_code="MA201", date=dt.date(2026, 6, 1), start_time="09:30", end_time="10:30"
        ),
        date=dt.date(2026, 6, 1),
        time_overlap=TimeOverlap(new_start="09:00", new_end="10:00", conflicting_start="09:30", conflicting_end="10:30"),
    )
    assert clash_message(clash) == (
        'The class "Unknown Course" (09:00 - 10:00) overlaps with "MA201" (09:30 - 10:30) on 2026-06-01.'
    )
