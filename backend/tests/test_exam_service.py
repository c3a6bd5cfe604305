import datetime as dt

import pytest
from sqlalchemy import select

from app.core.exceptions import ResourceNotFoundError, ScheduleClashError, ScheduleValidationError
from app.models.class_code import ClassCode
from app.models.room import Room
from app.models.user import User, UserRole
from app.schemas.exam import ExamClashCheck, ExamCreate, ExamUpdate
from app.services import exam_service
from app.services.exam_lookup import SqlExamLookup

DAY = dt.date(2026, 6, 1)


def _user(db, name, role):
    user = User(name=name, email=f"{name.lower()}@example.com", hashed_password="x", role=role)
    db.add(user)
    db.flush()
    return user


def _exam_payload(**overrides):
    payload = {
        "date": DAY,
        "start_time": "09:00",
        "end_time": "11:00",
        "room_name": "Hall A",
        "class_code": "CS101",
    }
    payload.update(overrides)
    return ExamCreate(**payload)


def test_create_exam_creates_missing_room_and_class_code(db_session):
    exam = exam_service.create_exam(db_session, _exam_payload(title="Midterm"))

    assert exam.id is not None
    assert exam.day == "Monday"
    assert exam.room.name == "Hall A"
    assert exam.room.capacity == 50
    assert exam.class_code.code == "CS101"


def test_rejected_exam_leaves_no_partial_rows(db_session):
    exam_service.create_exam(db_session, _exam_payload())

    with pytest.raises(ScheduleClashError) as exc_info:
        exam_service.create_exam(db_session, _exam_payload(class_code="MA201", start_time="10:00", end_time="12:00"))

    assert exc_info.value.status_code == 409
    assert exc_info.value.clashes[0]["kind"] == "room"
    assert str(exc_info.value).startswith('Exam scheduling conflict detected: Room "Hall A" is already booked')
    codes = db_session.execute(select(ClassCode.code)).scalars().all()
    assert codes == ["CS101"]


def test_unknown_room_id_is_not_found(db_session):
    with pytest.raises(ResourceNotFoundError):
        exam_service.create_exam(db_session, _exam_payload(room_name=None, room_id=99))


def test_teacher_and_student_clashes_come_from_memberships(db_session):
    teacher = _user(db_session, "Ada", UserRole.teacher)
    student = _user(db_session, "Kim", UserRole.student)
    db_session.add_all(
        [
            ClassCode(code="CS101", teacher=teacher, students=[student]),
            ClassCode(code="MA201", teacher=teacher, students=[student]),
            Room(name="Hall A"),
            Room(name="Hall B"),
        ]
    )
    db_session.commit()
    exam_service.create_exam(db_session, _exam_payload())

    with pytest.raises(ScheduleClashError) as exc_info:
        exam_service.create_exam(
            db_session,
            _exam_payload(room_name="Hall B", class_code="MA201", start_time="10:30", end_time="12:00"),
        )

    kinds = [clash["kind"] for clash in exc_info.value.clashes]
    assert kinds == ["teacher", "student"]
    assert exc_info.value.clashes[1]["students"] == [{"id": student.id, "name": "Kim"}]


def test_update_does_not_clash_with_itself(db_session):
    exam = exam_service.create_exam(db_session, _exam_payload())

    updated = exam_service.update_exam(db_session, exam.id, ExamUpdate(start_time="09:30", end_time="11:30"))

    assert updated.start_time == dt.time(9, 30)
    assert updated.day == "Monday"


def test_update_moves_day_with_date(db_session):
    exam = exam_service.create_exam(db_session, _exam_payload())

    updated = exam_service.update_exam(db_session, exam.id, ExamUpdate(date=DAY + dt.timedelta(days=1)))

    assert updated.day == "Tuesday"


def test_update_day_is_trimmed_like_create(db_session):
    exam = exam_service.create_exam(db_session, _exam_payload(day=" Monday "))
    assert exam.day == "Monday"

    assert ExamUpdate(day="  ").day is None
    updated = exam_service.update_exam(db_session, exam.id, ExamUpdate(day=" Monday"))

    assert updated.day == "Monday"
    with pytest.raises(ValueError):
        ExamUpdate(day="Funday")

    cleared = exam_service.update_exam(db_session, exam.id, ExamUpdate(day=" ", date=DAY + dt.timedelta(days=2)))
    assert cleared.day == "Wednesday"


def test_update_checks_effective_times(db_session):
    exam = exam_service.create_exam(db_session, _exam_payload())

    with pytest.raises(ScheduleValidationError):
        exam_service.update_exam(db_session, exam.id, ExamUpdate(start_time="12:00"))


def test_update_into_another_exam_is_rejected(db_session):
    exam_service.create_exam(db_session, _exam_payload())
    other = exam_service.create_exam(
        db_session, _exam_payload(class_code="MA201", start_time="13:00", end_time="14:00")
    )

    with pytest.raises(ScheduleClashError):
        exam_service.update_exam(db_session, other.id, ExamUpdate(start_time="10:00"))

    db_session.expire_all()
    assert exam_service.get_exam(db_session, other.id).start_time == dt.time(13, 0)


def test_title_only_update_skips_clash_check(db_session):
    exam = exam_service.create_exam(db_session, _exam_payload())

    updated = exam_service.update_exam(db_session, exam.id, ExamUpdate(title="Final"))

    assert updated.title == "Final"


def test_list_exams_filters(db_session):
    exam_service.create_exam(db_session, _exam_payload(title="Algorithms"))
    exam_service.create_exam(
        db_session, _exam_payload(class_code="MA201", room_name="Hall B", date=DAY + dt.timedelta(days=1))
    )

    assert [exam.class_code.code for exam in exam_service.list_exams(db_session)] == ["CS101", "MA201"]
    assert [exam.title for exam in exam_service.list_exams(db_session, search="algo")] == ["Algorithms"]
    assert len(exam_service.list_exams(db_session, search="ma2")) == 1
    assert len(exam_service.list_exams(db_session, exam_date=DAY)) == 1


def test_preview_reports_without_writing(db_session):
    exam = exam_service.create_exam(db_session, _exam_payload())

    preview = exam_service.preview_clashes(
        db_session,
        ExamClashCheck(
            date=DAY,
            start_time="10:00",
            end_time="12:00",
            room_id=exam.room_id,
            class_code_id=exam.class_code_id,
        ),
    )
    assert preview.has_clash
    assert preview.message.startswith('Exam scheduling conflict detected: Room "Hall A" and class "CS101"')

    excluded = exam_service.preview_clashes(
        db_session,
        ExamClashCheck(
            date=DAY,
            start_time="10:00",
            end_time="12:00",
            room_id=exam.room_id,
            class_code_id=exam.class_code_id,
            exclude_exam_id=exam.id,
        ),
    )
    assert not excluded.has_clash
    assert excluded.message is None


def test_sql_lookup_loads_memberships(db_session):
    teacher = _user(db_session, "Ada", UserRole.teacher)
    student = _user(db_session, "Kim", UserRole.student)
    db_session.add(ClassCode(code="CS101", teacher=teacher, students=[student]))
    db_session.commit()
    exam = exam_service.create_exam(db_session, _exam_payload())

    lookup = SqlExamLookup(db_session)
    [scheduled] = lookup.exams_on_date(DAY)

    assert scheduled.id == exam.id
    assert scheduled.room_name == "Hall A"
    assert scheduled.class_code.teacher_name == "Ada"
    assert scheduled.class_code.students == {student.id: "Kim"}
    assert lookup.exams_on_date(DAY, exclude_exam_id=exam.id) == []
    assert lookup.class_code(999) is None


def test_delete_all_exams_reports_count(db_session):
    exam_service.create_exam(db_session, _exam_payload())
    exam_service.create_exam(db_session, _exam_payload(date=DAY + dt.timedelta(days=2)))

    assert exam_service.delete_all_exams(db_session) == 2
    assert exam_service.list_exams(db_session) == []
