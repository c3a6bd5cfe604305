import datetime as dt

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_student, selection_writer
from app.models.user import User
from app.schemas.timetable import (
    CourseCodeOut,
    SavedClassCreate,
    SavedClassOut,
    SelectionOut,
    TimetableCheckOut,
    TimetableCheckRequest,
    TimetableEntry,
)
from app.services import timetable_service

router = APIRouter()


@router.get("/student/courses", response_model=list[CourseCodeOut])
def list_courses(
    current_user: User = Depends(require_student),
    db: Session = Depends(get_db),
) -> list[CourseCodeOut]:
    return timetable_service.list_course_codes(db)


@router.get("/student/exams", response_model=list[TimetableEntry])
def list_exam_catalog(
    search: str | None = Query(default=None, max_length=100),
    date: dt.date | None = None,
    room_id: int | None = Query(default=None, ge=1),
    current_user: User = Depends(require_student),
    db: Session = Depends(get_db),
) -> list[TimetableEntry]:
    return timetable_service.exam_catalog(db, search=search, exam_date=date, room_id=room_id)


@router.get("/student/timetable", response_model=list[TimetableEntry])
def get_timetable(
    course_codes: list[str] | None = Query(default=None, alias="course_code"),
    current_user: User = Depends(require_student),
    db: Session = Depends(get_db),
) -> list[TimetableEntry]:
    return timetable_service.student_timetable(db, course_codes or [])


@router.post("/student/timetable/check", response_model=TimetableCheckOut)
def check_timetable(
    payload: TimetableCheckRequest,
    current_user: User = Depends(require_student),
) -> TimetableCheckOut:
    return timetable_service.check_timetable(payload)


@router.get("/student/classes", response_model=SelectionOut)
def list_saved_classes(
    current_user: User = Depends(require_student),
    db: Session = Depends(get_db),
) -> SelectionOut:
    return timetable_service.get_selection(db, current_user)


@router.post("/student/classes", response_model=SavedClassOut, status_code=status.HTTP_201_CREATED)
def add_saved_class(
    payload: SavedClassCreate,
    current_user: User = Depends(selection_writer),
    db: Session = Depends(get_db),
) -> SavedClassOut:
    return timetable_service.add_saved_class(db, current_user, payload)


@router.delete("/student/classes")
def remove_saved_class(
    exam_id: int | None = Query(default=None, ge=1),
    class_code_id: int | None = Query(default=None, ge=1),
    current_user: User = Depends(selection_writer),
    db: Session = Depends(get_db),
) -> dict:
    timetable_service.remove_saved_class(db, current_user, exam_id=exam_id, class_code_id=class_code_id)
    return {"success": True}
