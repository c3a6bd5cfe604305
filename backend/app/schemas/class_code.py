from pydantic import BaseModel, Field, field_validator


class ClassCodeCreate(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    teacher_id: int | None = Field(default=None, ge=1)
    student_ids: list[int] = Field(default_factory=list, max_length=2000)

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Class code cannot be empty")
        return trimmed

    @field_validator("student_ids")
    @classmethod
    def dedupe_student_ids(cls, value: list[int]) -> list[int]:
        return list(dict.fromkeys(value))


class ClassCodeUpdate(BaseModel):
    teacher_id: int | None = Field(default=None, ge=1)
    student_ids: list[int] | None = Field(default=None, max_length=2000)

    @field_validator("student_ids")
    @classmethod
    def dedupe_student_ids(cls, value: list[int] | None) -> list[int] | None:
        if value is None:
            return None
        return list(dict.fromkeys(value))


class ClassCodeMember(BaseModel):
    id: int
    name: str

    model_config = {"from_attributes": True}


class ClassCodeSummary(BaseModel):
    id: int
    code: str

    model_config = {"from_attributes": True}


class ClassCodeOut(ClassCodeSummary):
    teacher: ClassCodeMember | None = None
    students: list[ClassCodeMember] = Field(default_factory=list)
