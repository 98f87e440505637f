from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Set, Tuple

from sqlalchemy import and_, false, or_
from sqlalchemy.orm import Session

import database
from targets import ClassSectionKey, resolve_exam_targets

ScopeKey = Tuple[str, str, int]


def _pairs_clause(model, pairs: Iterable[ClassSectionKey]):
    conditions = [
        and_(model.class_name == pair.class_name, model.section == pair.section)
        for pair in pairs
    ]
    return or_(*conditions) if conditions else false()


def find_enrollments(
    db: Session, student_id: int, pairs: List[ClassSectionKey]
) -> List[database.ClassStudent]:
    """Every ClassStudent row linking the student to one of the class-sections."""
    return (
        db.query(database.ClassStudent)
        .filter(database.ClassStudent.student_id == student_id)
        .filter(_pairs_clause(database.ClassStudent, pairs))
        .order_by(database.ClassStudent.id)
        .all()
    )


def find_class_subject(
    db: Session, pairs: List[ClassSectionKey], subject_id: int
) -> Optional[database.ClassSubject]:
    return (
        db.query(database.ClassSubject)
        .filter(database.ClassSubject.subject_id == subject_id)
        .filter(_pairs_clause(database.ClassSubject, pairs))
        .first()
    )


def find_teacher_assignment(
    db: Session, teacher_id: int, class_name: str, section: str, subject_id: int
) -> Optional[database.TeacherSubject]:
    return (
        db.query(database.TeacherSubject)
        .filter(
            database.TeacherSubject.teacher_id == teacher_id,
            database.TeacherSubject.class_name == class_name,
            database.TeacherSubject.section == section,
            database.TeacherSubject.subject_id == subject_id,
        )
        .first()
    )


def teacher_scope(db: Session, teacher_id: int) -> Set[ScopeKey]:
    rows = (
        db.query(
            database.TeacherSubject.class_name,
            database.TeacherSubject.section,
            database.TeacherSubject.subject_id,
        )
        .filter(database.TeacherSubject.teacher_id == teacher_id)
        .all()
    )
    return {(class_name, section, subject_id) for class_name, section, subject_id in rows}


def teacher_class_sections(db: Session, teacher_id: int) -> Set[ClassSectionKey]:
    return {
        ClassSectionKey(class_name, section)
        for class_name, section, _ in teacher_scope(db, teacher_id)
    }


def students_in_class_sections(db: Session, pairs: Iterable[ClassSectionKey]) -> Set[int]:
    pairs = list(pairs)
    if not pairs:
        return set()
    rows = (
        db.query(database.ClassStudent.student_id)
        .filter(_pairs_clause(database.ClassStudent, pairs))
        .all()
    )
    return {student_id for (student_id,) in rows}


def enrollments_by_student(
    db: Session, student_ids: Iterable[int]
) -> Dict[int, List[ClassSectionKey]]:
    """Class-sections per student, fetched with a single query."""
    ids = set(student_ids)
    result = defaultdict(list)
    if not ids:
        return result
    rows = (
        db.query(database.ClassStudent)
        .filter(database.ClassStudent.student_id.in_(ids))
        .order_by(database.ClassStudent.id)
        .all()
    )
    for row in rows:
        result[row.student_id].append(ClassSectionKey(row.class_name, row.section))
    return result


def targets_by_exam(
    db: Session, exam_ids: Iterable[int]
) -> Dict[int, List[ClassSectionKey]]:
    """Expanded class-section targets per exam, fetched with a single query."""
    ids = set(exam_ids)
    if not ids:
        return {}
    exams = db.query(database.Exam).filter(database.Exam.id.in_(ids)).all()
    return {exam.id: resolve_exam_targets(exam) for exam in exams}


def class_section_exists(db: Session, class_name: str, section: str) -> bool:
    return (
        db.query(database.ClassSection)
        .filter(
            database.ClassSection.class_name == class_name,
            database.ClassSection.section == section,
        )
        .first()
        is not None
    )


def missing_class_sections(
    db: Session, pairs: List[ClassSectionKey]
) -> List[ClassSectionKey]:
    rows = db.query(database.ClassSection).filter(
        _pairs_clause(database.ClassSection, pairs)
    )
    existing = {ClassSectionKey(row.class_name, row.section) for row in rows}
    return [pair for pair in pairs if pair not in existing]
