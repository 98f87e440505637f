import re
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator

EXAM_STATUSES = ("draft", "published", "completed")
PHONE_PATTERN = re.compile(r"^\d{10,15}$")


def _strip(v):
    return v.strip() if isinstance(v, str) else v


def _not_blank(v):
    v = _strip(v)
    if not v:
        raise ValueError("must not be blank")
    return v


def _phone(v):
    v = _not_blank(v)
    if not PHONE_PATTERN.match(v):
        raise ValueError("must be 10 to 15 digits")
    return v


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# ========== Auth ==========
class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email", "password")
    def required(cls, v):
        return _not_blank(v)


class PrincipalOut(BaseModel):
    id: int
    role: str
    name: str
    email: str


class Token(BaseModel):
    access_token: str
    token_type: str
    user: PrincipalOut


class AdminCreate(BaseModel):
    name: str
    email: EmailStr
    password: str

    @field_validator("name")
    def name_required(cls, v):
        return _not_blank(v)

    @field_validator("email")
    def email_lower(cls, v):
        return v.lower()


# ========== Teachers ==========
class TeacherBase(BaseModel):
    name: str
    email: EmailStr
    phone: str

    @field_validator("name")
    def required(cls, v):
        return _not_blank(v)

    @field_validator("phone")
    def phone_digits(cls, v):
        return _phone(v)

    @field_validator("email")
    def email_lower(cls, v):
        return v.lower()


class TeacherCreate(TeacherBase):
    password: str


class TeacherUpdate(TeacherBase):
    password: Optional[str] = None


class Teacher(TeacherBase, ORMModel):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ========== Students ==========
class StudentBase(BaseModel):
    name: str
    roll_no: str
    father_name: str
    student_phone: str
    father_phone: str

    @field_validator("name", "roll_no", "father_name")
    def required(cls, v):
        return _not_blank(v)

    @field_validator("student_phone", "father_phone")
    def phone_digits(cls, v):
        return _phone(v)


class StudentCreate(StudentBase):
    pass


class Student(StudentBase, ORMModel):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ========== Subjects ==========
class SubjectBase(BaseModel):
    name: str

    @field_validator("name")
    def required(cls, v):
        return _not_blank(v)


class SubjectCreate(SubjectBase):
    pass


class Subject(SubjectBase, ORMModel):
    id: int


# ========== Classes and mappings ==========
class ClassSectionBase(BaseModel):
    class_name: str
    section: str

    @field_validator("class_name", "section")
    def required(cls, v):
        return _not_blank(v)


class ClassSectionCreate(ClassSectionBase):
    pass


class ClassSection(ClassSectionBase, ORMModel):
    id: int


class ClassStudentCreate(ClassSectionBase):
    student_id: int


class ClassStudent(ClassStudentCreate, ORMModel):
    id: int
    student_name: str = ""
    student_roll_no: str = ""


class ClassSubjectCreate(ClassSectionBase):
    subject_id: int


class ClassSubject(ClassSubjectCreate, ORMModel):
    id: int


class TeacherSubjectCreate(ClassSectionBase):
    subject_id: int
    teacher_id: int


class TeacherSubject(TeacherSubjectCreate, ORMModel):
    id: int
    teacher_name: str


# ========== Exams ==========
class ExamClass(BaseModel):
    class_id: str
    section_id: str
    subjects: List[int] = []

    @field_validator("class_id", "section_id", mode="before")
    def strip(cls, v):
        return _strip(v) or ""


class ExamCreate(BaseModel):
    exam_name: str
    exam_classes: List[ExamClass] = []
    class_id: Optional[str] = None
    section_id: Optional[str] = None
    academic_year: str
    exam_date: Optional[date] = None
    total_marks: Optional[int] = None
    description: str = ""
    status: str = "draft"

    @field_validator("exam_name", "academic_year")
    def required(cls, v):
        return _not_blank(v)

    @field_validator("description")
    def strip_description(cls, v):
        return _strip(v) or ""

    @field_validator("status", mode="before")
    def known_status(cls, v):
        v = (_strip(v) or "draft").lower()
        if v not in EXAM_STATUSES:
            raise ValueError("Status is invalid")
        return v


class Exam(BaseModel):
    id: int
    exam_name: str
    exam_classes: List[ExamClass]
    class_id: str
    section_id: str
    academic_year: str
    exam_date: Optional[date] = None
    total_marks: Optional[int] = None
    description: str = ""
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ExamSubjectCreate(BaseModel):
    exam_id: Optional[int] = None
    subject_id: Optional[int] = None
    exam_date: Optional[date] = None
    total_marks: Optional[int] = None
    passing_marks: Optional[int] = None
    instructions: str = ""

    @field_validator("instructions", mode="before")
    def strip_instructions(cls, v):
        return _strip(v) or ""


class ExamSubject(ORMModel):
    id: int
    exam_id: int
    subject_id: int
    exam_date: date
    total_marks: int
    passing_marks: int
    instructions: str = ""


# ========== Exam marks ==========
class ExamMarkInput(BaseModel):
    exam_id: Optional[int] = None
    exam_subject_id: Optional[int] = None
    student_id: Optional[int] = None
    marks_obtained: Optional[float] = None
    remarks: str = ""

    @field_validator("remarks", mode="before")
    def strip_remarks(cls, v):
        return _strip(v) or ""


class ExamMark(BaseModel):
    id: int
    exam_id: int
    exam_subject_id: int
    student_id: int
    student_name: str = ""
    student_roll_no: str = ""
    subject_id: Optional[int] = None
    total_marks: Optional[int] = None
    passing_marks: Optional[int] = None
    marks_obtained: int
    remarks: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Message(BaseModel):
    message: str
