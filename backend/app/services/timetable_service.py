from __future__ import annotations

import datetime as dt
import logging

from sqlalchemy import and_, delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.core.exceptions import AppError, DuplicateSelectionError, ResourceNotFoundError, TimetableClashError
from app.models.class_code import ClassCode
from app.models.exam import ExamTable
from app.models.user import User
from app.models.user_class import UserClass
from app.schemas.timetable import (
    ClashInfo,
    SavedClassCreate,
    SavedClassOut,
    SelectionOut,
    TimetableCheckOut,
    TimetableCheckRequest,
    TimetableEntry,
)
from app.services.exam_service import list_exams
from app.services.timetable_overlap import (
    detect_course_clashes,
    detect_timetable_clashes,
    find_selection_clashes,
    unique_clash_messages,
)

logger = logging.getLogger(__name__)


def exam_entry(exam: ExamTable) -> TimetableEntry:
    return TimetableEntry(
        id=exam.id,
        title=exam.title,
        date=exam.date,
        day=exam.day,
        start_time=exam.start_time,
        end_time=exam.end_time,
        course_code=exam.class_code.code if exam.class_code else None,
        room_name=exam.room.name if exam.room else None,
    )


def _exam_statement():
    return (
        select(ExamTable)
        .join(ExamTable.class_code)
        .options(selectinload(ExamTable.room), selectinload(ExamTable.class_code))
        .order_by(ExamTable.date, ExamTable.start_time)
    )


def list_course_codes(db: Session) -> list[ClassCode]:
    return list(db.execute(select(ClassCode).order_by(ClassCode.code)).scalars())


def student_timetable(db: Session, course_codes: list[str]) -> list[TimetableEntry]:
    codes = list(dict.fromkeys(code.strip() for code in course_codes if code and code.strip()))
    if not codes:
        return []
    exams = db.execute(_exam_statement().where(ClassCode.code.in_(codes))).scalars()
    return [exam_entry(exam) for exam in exams]


def exam_catalog(
    db: Session,
    *,
    search: str | None = None,
    exam_date: dt.date | None = None,
    room_id: int | None = None,
) -> list[TimetableEntry]:
    """Every scheduled exam, read-only, for students browsing before they pick courses."""
    return [exam_entry(exam) for exam in list_exams(db, search=search, exam_date=exam_date, room_id=room_id)]


def _saved_rows(db: Session, user_id: int) -> list[UserClass]:
    statement = (
        select(UserClass)
        .where(UserClass.user_id == user_id)
        .options(
            selectinload(UserClass.exam).options(selectinload(ExamTable.room), selectinload(ExamTable.class_code)),
            selectinload(UserClass.class_code),
        )
        .order_by(UserClass.created_at.desc(), UserClass.id.desc())
    )
    return list(db.execute(statement).scalars())


def _selection_entries(db: Session, rows: list[UserClass]) -> list[TimetableEntry]:
    by_id: dict[int, TimetableEntry] = {}
    for row in rows:
        if row.exam is not None:
            by_id[row.exam.id] = exam_entry(row.exam)
    class_code_ids = [row.class_code_id for row in rows if row.class_code_id is not None]
    if class_code_ids:
        exams = db.execute(_exam_statement().where(ExamTable.class_code_id.in_(class_code_ids))).scalars()
        for exam in exams:
            by_id.setdefault(exam.id, exam_entry(exam))
    return sorted(by_id.values(), key=lambda entry: (entry.date, entry.start_time or ""))


def _saved_class_out(row: UserClass) -> SavedClassOut:
    course_code = None
    if row.class_code is not None:
        course_code = row.class_code.code
    elif row.exam is not None and row.exam.class_code is not None:
        course_code = row.exam.class_code.code
    return SavedClassOut(
        id=row.id,
        exam_id=row.exam_id,
        class_code_id=row.class_code_id,
        course_code=course_code,
        created_at=row.created_at,
    )


def get_selection(db: Session, user: User) -> SelectionOut:
    rows = _saved_rows(db, user.id)
    entries = _selection_entries(db, rows)
    clashes = find_selection_clashes(entries)
    return SelectionOut(
        classes=[_saved_class_out(row) for row in rows],
        entries=entries,
        clashes=clashes,
        messages=unique_clash_messages(clashes),
    )


def _reject_timetable_clashes(user: User, clashes: list[ClashInfo]) -> None:
    if not clashes:
        return
    messages = unique_clash_messages(clashes)
    logger.info("Blocked timetable addition for user %s: %d clash(es)", user.id, len(messages))
    raise TimetableClashError(messages, [clash.model_dump(mode="json") for clash in clashes])


def _saved_filter(user_id: int, exam_id: int | None, class_code_id: int | None):
    return and_(
        UserClass.user_id == user_id,
        UserClass.exam_id.is_(None) if exam_id is None else UserClass.exam_id == exam_id,
        UserClass.class_code_id.is_(None) if class_code_id is None else UserClass.class_code_id == class_code_id,
    )


def _find_saved(db: Session, user_id: int, exam_id: int | None, class_code_id: int | None) -> UserClass | None:
    return db.execute(select(UserClass).where(_saved_filter(user_id, exam_id, class_code_id))).scalars().first()


def add_saved_class(db: Session, user: User, payload: SavedClassCreate) -> SavedClassOut:
    if _find_saved(db, user.id, payload.exam_id, payload.class_code_id) is not None:
        raise DuplicateSelectionError()

    entries = _selection_entries(db, _saved_rows(db, user.id))
    if payload.exam_id is not None:
        exam = db.execute(
            select(ExamTable)
            .where(ExamTable.id == payload.exam_id)
            .options(selectinload(ExamTable.room), selectinload(ExamTable.class_code))
        ).scalar_one_or_none()
        if exam is None:
            raise ResourceNotFoundError("Exam", payload.exam_id)
        others = [entry for entry in entries if entry.id != exam.id]
        _reject_timetable_clashes(user, detect_timetable_clashes(exam_entry(exam), others))
    else:
        class_code = db.get(ClassCode, payload.class_code_id)
        if class_code is None:
            raise ResourceNotFoundError("Class code", payload.class_code_id)
        catalog = student_timetable(db, [class_code.code])
        others = [entry for entry in entries if entry.course_code != class_code.code]
        _reject_timetable_clashes(user, detect_course_clashes(class_code.code, others, catalog))

    row = UserClass(user_id=user.id, exam_id=payload.exam_id, class_code_id=payload.class_code_id)
    db.add(row)
    try:
        db.commit()
    except IntegrityError as exc:
        # A concurrent request saved the same target between the check and the insert.
        db.rollback()
        raise DuplicateSelectionError() from exc
    db.refresh(row)
    logger.info("User %s saved exam=%s class_code=%s", user.id, row.exam_id, row.class_code_id)
    return _saved_class_out(row)


def remove_saved_class(db: Session, user: User, *, exam_id: int | None, class_code_id: int | None) -> None:
    result = db.execute(delete(UserClass).where(_saved_filter(user.id, exam_id, class_code_id)))
    if not result.rowcount:
        db.rollback()
        raise AppError("No matching record found to delete.", status_code=404)
    db.commit()
    logger.info("User %s removed exam=%s class_code=%s", user.id, exam_id, class_code_id)


def check_timetable(request: TimetableCheckRequest) -> TimetableCheckOut:
    clashes = detect_timetable_clashes(request.candidate, request.selected)
    return TimetableCheckOut(
        has_clash=bool(clashes),
        clashes=clashes,
        messages=unique_clash_messages(clashes),
    )
