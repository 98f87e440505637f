"""Exam mark consistency checks, teacher scope authorization and mark operations.

A mark is consistent when its exam subject belongs to its exam, the marks fit
within the exam subject's maximum, and the student is enrolled in one of the
exam's class-sections. Teachers may only touch marks whose
(class, section, subject) triple is assigned to them; admins are not scoped.
"""
import logging
import math
from dataclasses import dataclass
from typing import List, Sequence

from sqlalchemy.orm import Session

import database
import models
import relations
from auth import Principal
from errors import ForbiddenError, NotFoundError, ValidationError, store_errors
from targets import labels, resolve_exam_targets

logger = logging.getLogger(__name__)

MARK_CONFLICT = "Marks already exist for this student and exam subject"


@dataclass
class ValidatedMark:
    exam: database.Exam
    exam_subject: database.ExamSubject
    # the student's enrollments inside the exam's targets, lowest id first
    enrollments: List[database.ClassStudent]

    @property
    def class_student(self) -> database.ClassStudent:
        return self.enrollments[0]


def _check_structure(mark_in: models.ExamMarkInput) -> int:
    if not mark_in.exam_id:
        raise ValidationError("Exam is required")
    if not mark_in.exam_subject_id:
        raise ValidationError("Exam subject is required")
    if not mark_in.student_id:
        raise ValidationError("Student is required")

    marks = mark_in.marks_obtained
    if marks is None or not math.isfinite(marks):
        raise ValidationError("Marks obtained must be a number")
    if not float(marks).is_integer() or marks < 0:
        raise ValidationError("Marks obtained must be a whole number 0 or greater")
    return int(marks)


def validate_mark(db: Session, mark_in: models.ExamMarkInput) -> ValidatedMark:
    """Check that a mark write references a consistent exam/subject/student graph."""
    marks_obtained = _check_structure(mark_in)

    exam = db.get(database.Exam, mark_in.exam_id)
    if exam is None:
        raise NotFoundError("Selected exam does not exist")
    exam_subject = db.get(database.ExamSubject, mark_in.exam_subject_id)
    if exam_subject is None:
        raise NotFoundError("Selected exam subject does not exist")
    if db.get(database.Student, mark_in.student_id) is None:
        raise NotFoundError("Selected student does not exist")

    if exam_subject.exam_id != exam.id:
        raise ValidationError("Selected exam subject does not belong to the selected exam")

    if marks_obtained > exam_subject.total_marks:
        raise ValidationError(
            f"Marks obtained cannot be greater than maximum marks ({exam_subject.total_marks})"
        )

    pairs = resolve_exam_targets(exam)
    if not pairs:
        raise ValidationError("Selected exam has no class-section mapping")

    enrollments = relations.find_enrollments(db, mark_in.student_id, pairs)
    if not enrollments:
        raise ValidationError(f"Selected student is not mapped to {labels(pairs)}")

    return ValidatedMark(exam, exam_subject, enrollments)


def is_authorized(
    db: Session,
    teacher_id: int,
    class_student: database.ClassStudent,
    exam_subject: database.ExamSubject,
) -> bool:
    assignment = relations.find_teacher_assignment(
        db,
        teacher_id,
        class_student.class_name,
        class_student.section,
        exam_subject.subject_id,
    )
    return assignment is not None


def authorize(
    db: Session,
    teacher_id: int,
    enrollments: Sequence[database.ClassStudent],
    exam_subject: database.ExamSubject,
) -> None:
    """Pass when any of the student's in-target enrollments is assigned to the teacher."""
    if not any(is_authorized(db, teacher_id, row, exam_subject) for row in enrollments):
        logger.warning(
            "Teacher %s denied marks access for %s subject %s",
            teacher_id,
            ", ".join(f"{row.class_name}-{row.section}" for row in enrollments),
            exam_subject.subject_id,
        )
        raise ForbiddenError("You are not allowed to manage marks for this class and subject")


def filter_visible(
    db: Session, teacher_id: int, marks: Sequence[database.ExamMark]
) -> List[database.ExamMark]:
    """Keep the marks a teacher may see, with one query per relation.

    A mark is visible under the same rule :func:`authorize` applies: one of
    the student's enrollments inside the mark's exam targets must carry a
    teacher assignment for the exam subject's subject.
    """
    allowed = relations.teacher_scope(db, teacher_id)
    if not allowed:
        return []

    sections = relations.enrollments_by_student(db, {mark.student_id for mark in marks})
    targets = relations.targets_by_exam(db, {mark.exam_id for mark in marks})

    visible = []
    for mark in marks:
        if mark.exam_subject is None:
            continue
        subject_id = mark.exam_subject.subject_id
        in_targets = set(targets.get(mark.exam_id, []))
        if any(
            pair in in_targets and (pair.class_name, pair.section, subject_id) in allowed
            for pair in sections.get(mark.student_id, [])
        ):
            visible.append(mark)
    return visible


def check_subject_mapped_to_exam_targets(db: Session, exam: database.Exam, subject_id: int) -> None:
    pairs = resolve_exam_targets(exam)
    if not pairs:
        raise ValidationError("Selected exam has no class-section mapping")
    if relations.find_class_subject(db, pairs, subject_id) is None:
        raise ValidationError(f"Subject {subject_id} is not mapped for {labels(pairs)}")


def _guard(db: Session, principal: Principal, mark_in: models.ExamMarkInput) -> ValidatedMark:
    validated = validate_mark(db, mark_in)
    if not principal.is_admin:
        authorize(db, principal.id, validated.enrollments, validated.exam_subject)
    return validated


def _existing_input(mark: database.ExamMark) -> models.ExamMarkInput:
    return models.ExamMarkInput(
        exam_id=mark.exam_id,
        exam_subject_id=mark.exam_subject_id,
        student_id=mark.student_id,
        marks_obtained=mark.marks_obtained,
        remarks=mark.remarks or "",
    )


def guard_stored(db: Session, principal: Principal, mark: database.ExamMark) -> ValidatedMark:
    """Re-derive a stored mark's relations and check the principal may manage it."""
    return _guard(db, principal, _existing_input(mark))


def _get_mark(db: Session, mark_id: int) -> database.ExamMark:
    mark = db.get(database.ExamMark, mark_id)
    if mark is None:
        raise NotFoundError("Marks record not found")
    return mark


def mark_view(mark: database.ExamMark) -> models.ExamMark:
    student = mark.student
    exam_subject = mark.exam_subject
    return models.ExamMark(
        id=mark.id,
        exam_id=mark.exam_id,
        exam_subject_id=mark.exam_subject_id,
        student_id=mark.student_id,
        student_name=student.name if student else "",
        student_roll_no=student.roll_no if student else "",
        subject_id=exam_subject.subject_id if exam_subject else None,
        total_marks=exam_subject.total_marks if exam_subject else None,
        passing_marks=exam_subject.passing_marks if exam_subject else None,
        marks_obtained=mark.marks_obtained,
        remarks=mark.remarks or "",
        created_at=mark.created_at,
        updated_at=mark.updated_at,
    )


def create_mark(db: Session, principal: Principal, mark_in: models.ExamMarkInput) -> database.ExamMark:
    _guard(db, principal, mark_in)
    mark = database.ExamMark(
        exam_id=mark_in.exam_id,
        exam_subject_id=mark_in.exam_subject_id,
        student_id=mark_in.student_id,
        marks_obtained=int(mark_in.marks_obtained),
        remarks=mark_in.remarks,
    )
    with store_errors(db, MARK_CONFLICT):
        db.add(mark)
        db.commit()
    db.refresh(mark)
    return mark


def update_mark(
    db: Session, principal: Principal, mark_id: int, mark_in: models.ExamMarkInput
) -> database.ExamMark:
    mark = _get_mark(db, mark_id)
    if not principal.is_admin:
        guard_stored(db, principal, mark)
    _guard(db, principal, mark_in)

    mark.exam_id = mark_in.exam_id
    mark.exam_subject_id = mark_in.exam_subject_id
    mark.student_id = mark_in.student_id
    mark.marks_obtained = int(mark_in.marks_obtained)
    mark.remarks = mark_in.remarks
    with store_errors(db, MARK_CONFLICT):
        db.commit()
    db.refresh(mark)
    return mark


def delete_mark(db: Session, principal: Principal, mark_id: int) -> None:
    mark = _get_mark(db, mark_id)
    # the stored mark may no longer satisfy current mappings; it is re-validated anyway
    guard_stored(db, principal, mark)
    with store_errors(db):
        db.delete(mark)
        db.commit()


def _visible(db: Session, principal: Principal, marks: List[database.ExamMark]) -> List[database.ExamMark]:
    if principal.is_admin:
        return marks
    return filter_visible(db, principal.id, marks)


def _ordered(query):
    return query.order_by(
        database.ExamMark.updated_at.desc(),
        database.ExamMark.created_at.desc(),
        database.ExamMark.id.desc(),
    )


def list_marks_for_exam(db: Session, principal: Principal, exam_id: int) -> List[database.ExamMark]:
    marks = _ordered(db.query(database.ExamMark).filter(database.ExamMark.exam_id == exam_id)).all()
    return _visible(db, principal, marks)


def list_marks_for_exam_subject(
    db: Session, principal: Principal, exam_subject_id: int
) -> List[database.ExamMark]:
    marks = _ordered(
        db.query(database.ExamMark).filter(database.ExamMark.exam_subject_id == exam_subject_id)
    ).all()
    return _visible(db, principal, marks)
