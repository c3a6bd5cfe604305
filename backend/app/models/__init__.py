from app.models.class_code import ClassCode, class_code_students  # noqa: F401
from app.models.exam import ExamTable  # noqa: F401
from app.models.room import Room  # noqa: F401
from app.models.user import User, UserRole  # noqa: F401
from app.models.user_class import UserClass  # noqa: F401
