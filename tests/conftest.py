import os
import sys
from datetime import date
from pathlib import Path
from types import SimpleNamespace

import pytest

# Add the project root to PYTHONPATH
sys.path.insert(0, str(Path(__file__).parent.parent))

TEST_DB_URL = "sqlite:///./test.db"
os.environ.setdefault("DATABASE_URL", TEST_DB_URL)
os.environ.setdefault("JWT_SECRET", "test-secret-key-with-enough-length-0123")

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import auth
import database
from database import Base
from main import app

engine = create_engine(TEST_DB_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Database fixture (runs for each test function)
@pytest.fixture(scope="function")
def db():
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    def override_get_db():
        try:
            yield db
        finally:
            db.rollback()

    app.dependency_overrides[database.get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def headers_for(principal):
    return {"Authorization": f"Bearer {auth.create_access_token(principal)}"}


@pytest.fixture
def admin(db):
    record = database.Admin(
        name="Head Admin",
        email="admin@school.org",
        hashed_password=auth.get_password_hash("adminpass"),
    )
    db.add(record)
    db.commit()
    return auth.Principal(record.id, auth.ADMIN, record.name, record.email)


@pytest.fixture
def admin_headers(admin):
    return headers_for(admin)


def add(db, record):
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


@pytest.fixture
def school(db):
    """Two sections of class 10, one exam over both, Maths taught by one teacher in 10-A."""
    s = SimpleNamespace()
    s.class_a = add(db, database.ClassSection(class_name="10", section="A"))
    s.class_b = add(db, database.ClassSection(class_name="10", section="B"))
    s.math = add(db, database.Subject(name="Mathematics"))
    s.science = add(db, database.Subject(name="Science"))

    s.alice = add(db, database.Student(
        name="Alice", roll_no="10A-01", father_name="Bob",
        student_phone="9875550001", father_phone="9875550002",
    ))
    s.bruno = add(db, database.Student(
        name="Bruno", roll_no="10B-01", father_name="Carl",
        student_phone="9875550003", father_phone="9875550004",
    ))
    s.alice_enrollment = add(db, database.ClassStudent(class_name="10", section="A", student_id=s.alice.id))
    s.bruno_enrollment = add(db, database.ClassStudent(class_name="10", section="B", student_id=s.bruno.id))

    for section in ("A", "B"):
        add(db, database.ClassSubject(class_name="10", section=section, subject_id=s.math.id))

    s.teacher = add(db, database.Teacher(
        name="Tara", email="tara@school.org", phone="9875551000",
        hashed_password=auth.get_password_hash("teacherpass"),
    ))
    s.other_teacher = add(db, database.Teacher(
        name="Omar", email="omar@school.org", phone="9875551001",
        hashed_password=auth.get_password_hash("teacherpass"),
    ))
    s.assignment = add(db, database.TeacherSubject(
        class_name="10", section="A", subject_id=s.math.id,
        teacher_id=s.teacher.id, teacher_name=s.teacher.name,
    ))

    s.exam = add(db, database.Exam(
        exam_name="Midterm",
        academic_year="2026",
        exam_classes=[
            {"class_id": "10", "section_id": "A", "subjects": [s.math.id]},
            {"class_id": "10", "section_id": "B", "subjects": [s.math.id]},
        ],
        class_id="10",
        section_id="A",
        status="published",
    ))
    s.exam_math = add(db, database.ExamSubject(
        exam_id=s.exam.id, subject_id=s.math.id, exam_date=date(2026, 3, 1),
        total_marks=100, passing_marks=35,
    ))

    s.teacher_principal = auth.Principal(s.teacher.id, auth.TEACHER, s.teacher.name, s.teacher.email)
    s.other_principal = auth.Principal(
        s.other_teacher.id, auth.TEACHER, s.other_teacher.name, s.other_teacher.email
    )
    return s


def mark_payload(school, student, marks_obtained=80, exam_subject=None):
    return {
        "exam_id": school.exam.id,
        "exam_subject_id": (exam_subject or school.exam_math).id,
        "student_id": student.id,
        "marks_obtained": marks_obtained,
        "remarks": "  good  ",
    }
