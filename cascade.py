"""Dependent-row cleanup around the deletion of a primary record.

The store has no multi-table transaction we rely on, so a cascade is a list of
independent cleanup steps. Each step runs and commits on its own, and failures
are collected rather than stopping the remaining steps. The primary record is
deleted last, in its own commit, so stores that enforce foreign keys never see
it removed while rows still reference it; a step failure does not undo it.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import database
from errors import CascadeError, NotFoundError

logger = logging.getLogger(__name__)


@dataclass
class CleanupStep:
    name: str
    run: Callable[[Session], int]


@dataclass
class CascadeReport:
    entity: str
    deleted: Dict[str, int] = field(default_factory=dict)
    failed: Dict[str, str] = field(default_factory=dict)
    primary_deleted: bool = False

    @property
    def ok(self) -> bool:
        return self.primary_deleted and not self.failed

    def raise_for_failures(self) -> None:
        if not self.ok:
            raise CascadeError(self.entity, list(self.failed), self.primary_deleted)


def delete_where(model, *criteria) -> Callable[[Session], int]:
    def run(db: Session) -> int:
        return db.query(model).filter(*criteria).delete(synchronize_session=False)

    return run


def run_cascade(db: Session, entity: str, record, steps: List[CleanupStep]) -> CascadeReport:
    report = CascadeReport(entity)
    for step in steps:
        try:
            report.deleted[step.name] = step.run(db)
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("%s cleanup step %s failed: %s", entity, step.name, exc)
            report.failed[step.name] = str(exc)
        else:
            logger.info(
                "%s cleanup step %s removed %d rows", entity, step.name, report.deleted[step.name]
            )

    try:
        db.delete(record)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("%s delete failed after cleanup: %s", entity, exc)
        report.failed[record.__tablename__] = str(exc)
    else:
        report.primary_deleted = True
    return report


def _get_primary(db: Session, model, record_id: int, not_found: str):
    record = db.get(model, record_id)
    if record is None:
        raise NotFoundError(not_found)
    return record


def class_section_steps(class_name: str, section: str) -> List[CleanupStep]:
    return [
        CleanupStep(
            "class_subjects",
            delete_where(
                database.ClassSubject,
                database.ClassSubject.class_name == class_name,
                database.ClassSubject.section == section,
            ),
        ),
        CleanupStep(
            "class_students",
            delete_where(
                database.ClassStudent,
                database.ClassStudent.class_name == class_name,
                database.ClassStudent.section == section,
            ),
        ),
        CleanupStep(
            "teacher_subjects",
            delete_where(
                database.TeacherSubject,
                database.TeacherSubject.class_name == class_name,
                database.TeacherSubject.section == section,
            ),
        ),
    ]


def delete_class_section(db: Session, class_section_id: int) -> CascadeReport:
    # exams and marks that name this class-section are left alone
    record = _get_primary(db, database.ClassSection, class_section_id, "Class not found")
    steps = class_section_steps(record.class_name, record.section)
    return run_cascade(db, "Class", record, steps)


def delete_teacher(db: Session, teacher_id: int) -> CascadeReport:
    record = _get_primary(db, database.Teacher, teacher_id, "Teacher not found")
    steps = [
        CleanupStep(
            "teacher_subjects",
            delete_where(database.TeacherSubject, database.TeacherSubject.teacher_id == teacher_id),
        ),
    ]
    return run_cascade(db, "Teacher", record, steps)


def delete_exam_subject(db: Session, exam_subject_id: int) -> CascadeReport:
    record = _get_primary(db, database.ExamSubject, exam_subject_id, "Exam subject not found")
    steps = [
        CleanupStep(
            "exam_marks",
            delete_where(database.ExamMark, database.ExamMark.exam_subject_id == exam_subject_id),
        ),
    ]
    return run_cascade(db, "Exam subject", record, steps)


def delete_student(db: Session, student_id: int) -> CascadeReport:
    record = _get_primary(db, database.Student, student_id, "Student not found")
    steps = [
        CleanupStep(
            "class_students",
            delete_where(database.ClassStudent, database.ClassStudent.student_id == student_id),
        ),
        CleanupStep(
            "exam_marks",
            delete_where(database.ExamMark, database.ExamMark.student_id == student_id),
        ),
    ]
    return run_cascade(db, "Student", record, steps)


def delete_exam(db: Session, exam_id: int) -> CascadeReport:
    record = _get_primary(db, database.Exam, exam_id, "Exam not found")
    exam_subject_ids = [
        row.id
        for row in db.query(database.ExamSubject.id).filter(database.ExamSubject.exam_id == exam_id)
    ]
    # marks go before the exam subjects they reference
    steps = [
        CleanupStep(
            "exam_marks",
            delete_where(
                database.ExamMark,
                (database.ExamMark.exam_id == exam_id)
                | database.ExamMark.exam_subject_id.in_(exam_subject_ids),
            ),
        ),
        CleanupStep(
            "exam_subjects",
            delete_where(database.ExamSubject, database.ExamSubject.exam_id == exam_id),
        ),
    ]
    return run_cascade(db, "Exam", record, steps)
