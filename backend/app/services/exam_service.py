from __future__ import annotations

import datetime as dt
import logging

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.core.config import get_settings
from app.core.exceptions import ResourceNotFoundError, ScheduleClashError, ScheduleValidationError
from app.models.class_code import ClassCode
from app.models.exam import ExamTable
from app.models.room import Room
from app.models.user import User
from app.models.user_class import UserClass
from app.schemas.clash import ClashPreviewOut, ClashReport
from app.schemas.exam import ExamClashCheck, ExamCreate, ExamUpdate, day_name
from app.services.clash_detection import ExamCandidate, detect_clashes
from app.services.clash_messages import build_clash_message
from app.services.exam_lookup import SqlExamLookup
from app.services.schedule_lock import schedule_lock

logger = logging.getLogger(__name__)

SCHEDULE_FIELDS = {"date", "start_time", "end_time", "room_id", "room_name", "class_code_id", "class_code"}
# Columns an update may set back to null; every other field ignores an explicit null.
NULLABLE_FIELDS = {"title", "user_id"}


def find_or_create_room(db: Session, name: str, capacity: int | None = None) -> Room:
    room = db.execute(select(Room).where(Room.name == name)).scalar_one_or_none()
    if room is None:
        room = Room(name=name, capacity=capacity or get_settings().default_room_capacity)
        db.add(room)
        db.flush()
        logger.info("Created room %s while scheduling an exam", name)
    return room


def find_or_create_class_code(db: Session, code: str) -> ClassCode:
    class_code = db.execute(select(ClassCode).where(ClassCode.code == code)).scalar_one_or_none()
    if class_code is None:
        class_code = ClassCode(code=code)
        db.add(class_code)
        db.flush()
        logger.info("Created class code %s while scheduling an exam", code)
    return class_code


def _resolve_room_id(db: Session, room_id: int | None, room_name: str | None) -> int:
    if room_id is not None:
        if db.get(Room, room_id) is None:
            raise ResourceNotFoundError("Room", room_id)
        return room_id
    if room_name:
        return find_or_create_room(db, room_name).id
    raise ScheduleValidationError("Room name is required")


def _resolve_class_code_id(db: Session, class_code_id: int | None, code: str | None) -> int:
    if class_code_id is not None:
        if db.get(ClassCode, class_code_id) is None:
            raise ResourceNotFoundError("Class code", class_code_id)
        return class_code_id
    if code:
        return find_or_create_class_code(db, code).id
    raise ScheduleValidationError("Class code is required")


def _ensure_user(db: Session, user_id: int | None) -> None:
    if user_id is not None and db.get(User, user_id) is None:
        raise ResourceNotFoundError("User", user_id)


def _detect(db: Session, candidate: ExamCandidate) -> ClashReport:
    try:
        return detect_clashes(SqlExamLookup(db), candidate)
    except SQLAlchemyError:
        logger.exception("Clash detection failed for exam on %s", candidate.date)
        raise


def _reject_clashes(db: Session, candidate: ExamCandidate) -> None:
    report = _detect(db, candidate)
    if not report.has_clash:
        return
    message = build_clash_message(report, room_id=candidate.room_id, class_code_id=candidate.class_code_id)
    logger.warning(
        "Rejected exam on %s %s-%s: %d clash(es)",
        candidate.date,
        candidate.start_time,
        candidate.end_time,
        len(report.clashes),
    )
    # Nothing from this request is kept, including rooms or class codes created on the way.
    db.rollback()
    raise ScheduleClashError(message, [clash.model_dump(mode="json") for clash in report.clashes])


def create_exam(db: Session, payload: ExamCreate) -> ExamTable:
    room_id = _resolve_room_id(db, payload.room_id, payload.room_name)
    class_code_id = _resolve_class_code_id(db, payload.class_code_id, payload.class_code)
    _ensure_user(db, payload.user_id)

    candidate = ExamCandidate(
        date=payload.date,
        start_time=payload.start_time,
        end_time=payload.end_time,
        room_id=room_id,
        class_code_id=class_code_id,
    )
    with schedule_lock(db, payload.date):
        _reject_clashes(db, candidate)
        exam = ExamTable(
            title=payload.title,
            day=payload.day or day_name(payload.date),
            date=payload.date,
            start_time=payload.start_time,
            end_time=payload.end_time,
            room_id=room_id,
            class_code_id=class_code_id,
            user_id=payload.user_id,
        )
        db.add(exam)
        db.commit()
    db.refresh(exam)
    logger.info("Created exam %s on %s for class code %s", exam.id, exam.date, class_code_id)
    return exam


def get_exam(db: Session, exam_id: int) -> ExamTable:
    exam = db.get(ExamTable, exam_id)
    if exam is None:
        raise ResourceNotFoundError("Exam", exam_id)
    return exam


def update_exam(db: Session, exam_id: int, payload: ExamUpdate) -> ExamTable:
    exam = get_exam(db, exam_id)
    data = {
        key: value
        for key, value in payload.model_dump(exclude_unset=True).items()
        if value is not None or key in NULLABLE_FIELDS
    }

    room_id = exam.room_id
    if "room_id" in data or "room_name" in data:
        room_id = _resolve_room_id(db, data.get("room_id"), data.get("room_name"))
    class_code_id = exam.class_code_id
    if "class_code_id" in data or "class_code" in data:
        class_code_id = _resolve_class_code_id(db, data.get("class_code_id"), data.get("class_code"))
    if "user_id" in data:
        _ensure_user(db, data["user_id"])

    exam_date = data.get("date", exam.date)
    start_time = data.get("start_time", exam.start_time)
    end_time = data.get("end_time", exam.end_time)
    if end_time <= start_time:
        raise ScheduleValidationError(
            "end_time must be after start_time",
            details={"start_time": start_time.isoformat(), "end_time": end_time.isoformat()},
        )

    changes = {
        "date": exam_date,
        "start_time": start_time,
        "end_time": end_time,
        "room_id": room_id,
        "class_code_id": class_code_id,
    }
    if "title" in data:
        changes["title"] = data["title"]
    if "user_id" in data:
        changes["user_id"] = data["user_id"]
    if data.get("day"):
        changes["day"] = data["day"]
    elif "day" in data or "date" in data:
        changes["day"] = day_name(exam_date)

    if SCHEDULE_FIELDS & data.keys():
        candidate = ExamCandidate(
            date=exam_date,
            start_time=start_time,
            end_time=end_time,
            room_id=room_id,
            class_code_id=class_code_id,
            exclude_exam_id=exam.id,
        )
        with schedule_lock(db, exam.date, exam_date):
            _reject_clashes(db, candidate)
            _apply(exam, changes)
            db.commit()
    else:
        _apply(exam, changes)
        db.commit()

    db.refresh(exam)
    logger.info("Updated exam %s", exam.id)
    return exam


def _apply(exam: ExamTable, changes: dict) -> None:
    for key, value in changes.items():
        setattr(exam, key, value)


def delete_exam(db: Session, exam_id: int) -> None:
    exam = get_exam(db, exam_id)
    db.execute(delete(UserClass).where(UserClass.exam_id == exam.id))
    db.delete(exam)
    db.commit()
    logger.info("Deleted exam %s", exam_id)


def delete_all_exams(db: Session) -> int:
    db.execute(delete(UserClass).where(UserClass.exam_id.is_not(None)))
    result = db.execute(delete(ExamTable))
    db.commit()
    logger.info("Deleted all exams (%d rows)", result.rowcount)
    return result.rowcount


def list_exams(
    db: Session,
    *,
    search: str | None = None,
    exam_date: dt.date | None = None,
    room_id: int | None = None,
) -> list[ExamTable]:
    statement = (
        select(ExamTable)
        .join(ExamTable.class_code)
        .options(
            selectinload(ExamTable.room),
            selectinload(ExamTable.class_code),
            selectinload(ExamTable.owner),
        )
        .order_by(ExamTable.date, ExamTable.start_time)
    )
    if exam_date is not None:
        statement = statement.where(ExamTable.date == exam_date)
    if room_id is not None:
        statement = statement.where(ExamTable.room_id == room_id)
    if search and search.strip():
        needle = search.strip().lower()
        statement = statement.where(
            or_(
                func.lower(ClassCode.code).contains(needle, autoescape=True),
                func.lower(ExamTable.title).contains(needle, autoescape=True),
            )
        )
    return list(db.execute(statement).scalars())


def preview_clashes(db: Session, payload: ExamClashCheck) -> ClashPreviewOut:
    candidate = ExamCandidate(
        date=payload.date,
        start_time=payload.start_time,
        end_time=payload.end_time,
        room_id=payload.room_id,
        class_code_id=payload.class_code_id,
        exclude_exam_id=payload.exclude_exam_id,
    )
    report = _detect(db, candidate)
    message = None
    if report.has_clash:
        message = build_clash_message(report, room_id=payload.room_id, class_code_id=payload.class_code_id)
    return ClashPreviewOut(has_clash=report.has_clash, clashes=report.clashes, message=message)
