from sqlalchemy import (
    create_engine, Column, Integer, String, Date, DateTime, ForeignKey, JSON, Text,
    UniqueConstraint, func,
)
from sqlalchemy.orm import sessionmaker, relationship, declarative_base

import config

SQLALCHEMY_DATABASE_URL = config.DATABASE_URL

connect_args = {"check_same_thread": False} if SQLALCHEMY_DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


class TimestampMixin:
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Admin(TimestampMixin, Base):
    __tablename__ = "admins"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String)


class Teacher(TimestampMixin, Base):
    __tablename__ = "teachers"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    phone = Column(String, unique=True, nullable=False)
    hashed_password = Column(String)


class Student(TimestampMixin, Base):
    __tablename__ = "students"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, index=True, nullable=False)
    roll_no = Column(String, unique=True, nullable=False)
    father_name = Column(String, nullable=False)
    student_phone = Column(String, nullable=False)
    father_phone = Column(String, nullable=False)


class Subject(TimestampMixin, Base):
    __tablename__ = "subjects"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)


class ClassSection(TimestampMixin, Base):
    __tablename__ = "classes"
    __table_args__ = (UniqueConstraint("class_name", "section", name="uq_class_section"),)
    id = Column(Integer, primary_key=True, index=True)
    class_name = Column(String, nullable=False)
    section = Column(String, nullable=False)


class ClassStudent(TimestampMixin, Base):
    __tablename__ = "class_students"
    __table_args__ = (
        UniqueConstraint("class_name", "section", "student_id", name="uq_class_student"),
    )
    id = Column(Integer, primary_key=True, index=True)
    class_name = Column(String, nullable=False)
    section = Column(String, nullable=False)
    student_id = Column(Integer, ForeignKey("students.id"), index=True, nullable=False)

    student = relationship("Student")


class ClassSubject(TimestampMixin, Base):
    __tablename__ = "class_subjects"
    __table_args__ = (
        UniqueConstraint("class_name", "section", "subject_id", name="uq_class_subject"),
    )
    id = Column(Integer, primary_key=True, index=True)
    class_name = Column(String, nullable=False)
    section = Column(String, nullable=False)
    subject_id = Column(Integer, ForeignKey("subjects.id"), nullable=False)


class TeacherSubject(TimestampMixin, Base):
    __tablename__ = "teacher_subjects"
    __table_args__ = (
        UniqueConstraint("class_name", "section", "subject_id", name="uq_teacher_subject"),
    )
    id = Column(Integer, primary_key=True, index=True)
    class_name = Column(String, nullable=False)
    section = Column(String, nullable=False)
    subject_id = Column(Integer, ForeignKey("subjects.id"), nullable=False)
    teacher_id = Column(Integer, ForeignKey("teachers.id"), index=True, nullable=False)
    teacher_name = Column(String, nullable=False)  # kept in sync with Teacher.name


class Exam(TimestampMixin, Base):
    __tablename__ = "exams"
    __table_args__ = (
        UniqueConstraint("exam_name", "class_id", "section_id", "academic_year", name="uq_exam"),
    )
    id = Column(Integer, primary_key=True, index=True)
    exam_name = Column(String, nullable=False)
    exam_date = Column(Date)
    total_marks = Column(Integer)
    # list of {"class_id", "section_id", "subjects"} entries
    exam_classes = Column(JSON, default=list)
    # legacy single target, also mirrors the first entry of exam_classes
    class_id = Column(String)
    section_id = Column(String)
    academic_year = Column(String, nullable=False)
    description = Column(Text, default="")
    status = Column(String, default="draft", nullable=False)


class ExamSubject(TimestampMixin, Base):
    __tablename__ = "exam_subjects"
    __table_args__ = (UniqueConstraint("exam_id", "subject_id", name="uq_exam_subject"),)
    id = Column(Integer, primary_key=True, index=True)
    exam_id = Column(Integer, ForeignKey("exams.id"), index=True, nullable=False)
    subject_id = Column(Integer, ForeignKey("subjects.id"), nullable=False)
    exam_date = Column(Date, nullable=False)
    total_marks = Column(Integer, nullable=False)
    passing_marks = Column(Integer, nullable=False)
    instructions = Column(Text, default="")


class ExamMark(TimestampMixin, Base):
    __tablename__ = "exam_marks"
    __table_args__ = (
        UniqueConstraint("exam_subject_id", "student_id", name="uq_exam_mark"),
    )
    id = Column(Integer, primary_key=True, index=True)
    exam_id = Column(Integer, ForeignKey("exams.id"), index=True, nullable=False)
    exam_subject_id = Column(Integer, ForeignKey("exam_subjects.id"), index=True, nullable=False)
    student_id = Column(Integer, ForeignKey("students.id"), index=True, nullable=False)
    marks_obtained = Column(Integer, nullable=False)
    remarks = Column(Text, default="")

    exam_subject = relationship("ExamSubject", lazy="joined")
    student = relationship("Student", lazy="joined")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
