import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.api.deps import get_db, require_admin, schedule_writer
from app.models.class_code import ClassCode
from app.models.user import User, UserRole
from app.schemas.class_code import ClassCodeCreate, ClassCodeOut, ClassCodeUpdate

router = APIRouter()
logger = logging.getLogger(__name__)


def _load_class_code(db: Session, class_code_id: int) -> ClassCode | None:
    statement = (
        select(ClassCode)
        .where(ClassCode.id == class_code_id)
        .options(selectinload(ClassCode.teacher), selectinload(ClassCode.students))
        .execution_options(populate_existing=True)
    )
    return db.execute(statement).scalar_one_or_none()


def _resolve_teacher(db: Session, teacher_id: int | None) -> User | None:
    if teacher_id is None:
        return None
    teacher = db.get(User, teacher_id)
    if teacher is None or teacher.role != UserRole.teacher:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Teacher {teacher_id} not found")
    return teacher


def _resolve_students(db: Session, student_ids: list[int]) -> list[User]:
    if not student_ids:
        return []
    students = list(db.execute(select(User).where(User.id.in_(student_ids))).scalars())
    found = {student.id for student in students if student.role == UserRole.student}
    missing = [student_id for student_id in student_ids if student_id not in found]
    if missing:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Students not found: {', '.join(str(item) for item in missing)}",
        )
    by_id = {student.id: student for student in students}
    return [by_id[student_id] for student_id in student_ids]


@router.get("/", response_model=list[ClassCodeOut])
def list_class_codes(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> list[ClassCodeOut]:
    statement = (
        select(ClassCode)
        .options(selectinload(ClassCode.teacher), selectinload(ClassCode.students))
        .order_by(ClassCode.code)
    )
    return list(db.execute(statement).scalars())


@router.post("/", response_model=ClassCodeOut, status_code=status.HTTP_201_CREATED)
def create_class_code(
    payload: ClassCodeCreate,
    current_user: User = Depends(schedule_writer),
    db: Session = Depends(get_db),
) -> ClassCodeOut:
    existing = db.execute(select(ClassCode).where(ClassCode.code == payload.code)).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Class code already exists")

    class_code = ClassCode(
        code=payload.code,
        teacher=_resolve_teacher(db, payload.teacher_id),
        students=_resolve_students(db, payload.student_ids),
    )
    db.add(class_code)
    db.commit()
    logger.info("Created class code %s with %d student(s)", payload.code, len(payload.student_ids))
    return _load_class_code(db, class_code.id)


@router.put("/{class_code_id}", response_model=ClassCodeOut)
def update_class_code(
    class_code_id: int,
    payload: ClassCodeUpdate,
    current_user: User = Depends(schedule_writer),
    db: Session = Depends(get_db),
) -> ClassCodeOut:
    class_code = _load_class_code(db, class_code_id)
    if class_code is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Class code not found")

    data = payload.model_dump(exclude_unset=True)
    if "teacher_id" in data:
        class_code.teacher = _resolve_teacher(db, data["teacher_id"])
    if data.get("student_ids") is not None:
        class_code.students = _resolve_students(db, data["student_ids"])
    db.commit()
    return _load_class_code(db, class_code_id)
