import datetime as dt

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_admin, schedule_writer
from app.models.user import User
from app.schemas.clash import ClashPreviewOut
from app.schemas.exam import ExamClashCheck, ExamCreate, ExamDeleteAllOut, ExamOut, ExamUpdate
from app.services import exam_service

router = APIRouter()


@router.get("/", response_model=list[ExamOut])
def list_exams(
    search: str | None = Query(default=None, max_length=100),
    date: dt.date | None = None,
    room_id: int | None = Query(default=None, ge=1),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> list[ExamOut]:
    return exam_service.list_exams(db, search=search, exam_date=date, room_id=room_id)


@router.post("/", response_model=ExamOut, status_code=status.HTTP_201_CREATED)
def create_exam(
    payload: ExamCreate,
    current_user: User = Depends(schedule_writer),
    db: Session = Depends(get_db),
) -> ExamOut:
    return exam_service.create_exam(db, payload)


@router.delete("/", response_model=ExamDeleteAllOut)
def delete_all_exams(
    current_user: User = Depends(schedule_writer),
    db: Session = Depends(get_db),
) -> ExamDeleteAllOut:
    deleted = exam_service.delete_all_exams(db)
    return ExamDeleteAllOut(success=True, deleted_count=deleted)


@router.post("/check", response_model=ClashPreviewOut)
def check_exam_clashes(
    payload: ExamClashCheck,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ClashPreviewOut:
    return exam_service.preview_clashes(db, payload)


@router.get("/{exam_id}", response_model=ExamOut)
def get_exam(
    exam_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ExamOut:
    return exam_service.get_exam(db, exam_id)


@router.put("/{exam_id}", response_model=ExamOut)
def update_exam(
    exam_id: int,
    payload: ExamUpdate,
    current_user: User = Depends(schedule_writer),
    db: Session = Depends(get_db),
) -> ExamOut:
    return exam_service.update_exam(db, exam_id, payload)


@router.delete("/{exam_id}")
def delete_exam(
    exam_id: int,
    current_user: User = Depends(schedule_writer),
    db: Session = Depends(get_db),
) -> dict:
    exam_service.delete_exam(db, exam_id)
    return {"success": True}
