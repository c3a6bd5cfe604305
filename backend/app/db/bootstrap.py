from __future__ import annotations

import logging

from sqlalchemy import inspect, text

import app.models  # noqa: F401
from app.db.base import Base
from app.db.session import engine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "users": {"id", "email", "role"},
    "rooms": {"id", "name", "capacity"},
    "class_codes": {"id", "code", "teacher_id"},
    "class_code_students": {"class_code_id", "user_id"},
    "exam_tables": {"id", "date", "day", "start_time", "end_time", "room_id", "class_code_id"},
    "user_classes": {"id", "user_id", "exam_id", "class_code_id"},
}


def _ensure_exam_day_column() -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        if "exam_tables" not in set(inspector.get_table_names()):
            return
        column_names = {item["name"] for item in inspector.get_columns("exam_tables")}
        if "day" in column_names:
            return
        connection.execute(text("ALTER TABLE exam_tables ADD COLUMN day VARCHAR(10) NOT NULL DEFAULT ''"))


def _assert_required_columns() -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        table_names = set(inspector.get_table_names())
        missing_tables = [name for name in REQUIRED_COLUMNS if name not in table_names]
        if missing_tables:
            raise RuntimeError(f"Missing required tables: {', '.join(sorted(missing_tables))}")

        missing_columns: list[str] = []
        for table_name, required in REQUIRED_COLUMNS.items():
            existing = {item["name"] for item in inspector.get_columns(table_name)}
            for column_name in sorted(required - existing):
                missing_columns.append(f"{table_name}.{column_name}")
        if missing_columns:
            raise RuntimeError(f"Missing required columns: {', '.join(missing_columns)}")


def ensure_runtime_schema_compatibility() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        _ensure_exam_day_column()
        _assert_required_columns()
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema compatibility bootstrap failed")
        raise RuntimeError("Runtime schema compatibility bootstrap failed") from exc
