import logging
from dataclasses import asdict
from typing import List, Optional

from fastapi import FastAPI, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import auth
import cascade
import config
import database
import marks
import models
import relations
from auth import Principal, require_admin, require_staff
from database import get_db, engine, Base
from errors import (
    ConflictError, DomainError, ForbiddenError, NotFoundError, UnexpectedError,
    ValidationError, store_errors,
)
from targets import build_targets, expand, resolve_exam_targets, stored_entries, exam_targets

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(title="School Marks")

Base.metadata.create_all(bind=engine)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Unhandled store error on %s %s", request.method, request.url.path)
    error = UnexpectedError()
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def get_or_404(db: Session, model, record_id: int, detail: str):
    record = db.get(model, record_id)
    if record is None:
        raise NotFoundError(detail)
    return record


def save(db: Session, record, conflict_message: str):
    with store_errors(db, conflict_message):
        db.add(record)
        db.commit()
    db.refresh(record)
    return record


@app.get("/health")
def health():
    return {"status": "ok"}


# ========== Authentication ==========
@app.post("/auth/login", response_model=models.Token)
def login(credentials: models.LoginRequest, db: Session = Depends(get_db)):
    principal = auth.authenticate(db, credentials.email, credentials.password)
    if principal is None:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"detail": "Invalid email or password"},
        )
    logger.info("Login success role=%s id=%s", principal.role, principal.id)
    return {
        "access_token": auth.create_access_token(principal),
        "token_type": "bearer",
        "user": asdict(principal),
    }


@app.get("/auth/me", response_model=models.PrincipalOut)
def read_me(principal: Principal = Depends(auth.get_current_principal), db: Session = Depends(get_db)):
    model = database.Admin if principal.is_admin else database.Teacher
    user = db.get(model, principal.id)
    if user is None:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED, content={"detail": "User not found"}
        )
    return {"id": user.id, "role": principal.role, "name": user.name, "email": user.email}


@app.post("/auth/admins", response_model=models.PrincipalOut, status_code=status.HTTP_201_CREATED)
def create_first_admin(admin_in: models.AdminCreate, db: Session = Depends(get_db)):
    if db.query(database.Admin).first() is not None:
        raise ForbiddenError("An admin account already exists")
    admin = database.Admin(
        name=admin_in.name,
        email=admin_in.email,
        hashed_password=auth.get_password_hash(admin_in.password),
    )
    save(db, admin, "Admin already exists")
    return {"id": admin.id, "role": auth.ADMIN, "name": admin.name, "email": admin.email}


# ========== Students ==========
def _teacher_student_ids(db: Session, principal: Principal):
    """Students enrolled in any class-section the teacher is assigned to."""
    sections = relations.teacher_class_sections(db, principal.id)
    return relations.students_in_class_sections(db, sections)


@app.get("/students/", response_model=List[models.Student])
def read_students(
        skip: int = 0,
        limit: int = 100,
        db: Session = Depends(get_db),
        principal: Principal = Depends(require_staff),
):
    query = db.query(database.Student)
    if not principal.is_admin:
        student_ids = _teacher_student_ids(db, principal)
        if not student_ids:
            return []
        query = query.filter(database.Student.id.in_(student_ids))
    return (
        query
        .order_by(database.Student.created_at.desc(), database.Student.id.desc())
        .offset(skip).limit(limit).all()
    )


@app.get("/students/{student_id}", response_model=models.Student)
def read_student(student_id: int, db: Session = Depends(get_db), principal: Principal = Depends(require_staff)):
    student = get_or_404(db, database.Student, student_id, "Student not found")
    if not principal.is_admin and student_id not in _teacher_student_ids(db, principal):
        raise ForbiddenError("Access denied")
    return student


@app.post("/students/", response_model=models.Student, status_code=status.HTTP_201_CREATED)
def create_student(student: models.StudentCreate, db: Session = Depends(get_db), principal: Principal = Depends(require_admin)):
    return save(db, database.Student(**student.model_dump()), "Roll number already exists")


@app.put("/students/{student_id}", response_model=models.Student)
def update_student(
        student_id: int,
        student: models.StudentCreate,
        db: Session = Depends(get_db),
        principal: Principal = Depends(require_admin),
):
    db_student = get_or_404(db, database.Student, student_id, "Student not found")
    for key, value in student.model_dump().items():
        setattr(db_student, key, value)
    return save(db, db_student, "Roll number already exists")


@app.delete("/students/{student_id}", response_model=models.Message)
def delete_student(student_id: int, db: Session = Depends(get_db), principal: Principal = Depends(require_admin)):
    # enrollments and marks of the student go with it
    cascade.delete_student(db, student_id).raise_for_failures()
    return {"message": "Student deleted"}


# ========== Teachers ==========
def _check_teacher_contact(db: Session, teacher: models.TeacherBase, teacher_id: Optional[int] = None):
    for column, value, message in (
            (database.Teacher.email, teacher.email, "Email already exists"),
            (database.Teacher.phone, teacher.phone, "Phone already exists"),
    ):
        query = db.query(database.Teacher).filter(column == value)
        if teacher_id is not None:
            query = query.filter(database.Teacher.id != teacher_id)
        if query.first() is not None:
            raise ConflictError(message)


@app.get("/teachers/", response_model=List[models.Teacher])
def read_teachers(db: Session = Depends(get_db), principal: Principal = Depends(require_admin)):
    return db.query(database.Teacher).order_by(database.Teacher.name).all()


@app.get("/teachers/{teacher_id}", response_model=models.Teacher)
def read_teacher(teacher_id: int, db: Session = Depends(get_db), principal: Principal = Depends(require_admin)):
    return get_or_404(db, database.Teacher, teacher_id, "Teacher not found")


@app.post("/teachers/", response_model=models.Teacher, status_code=status.HTTP_201_CREATED)
def create_teacher(teacher: models.TeacherCreate, db: Session = Depends(get_db), principal: Principal = Depends(require_admin)):
    _check_teacher_contact(db, teacher)
    db_teacher = database.Teacher(
        name=teacher.name,
        email=teacher.email,
        phone=teacher.phone,
        hashed_password=auth.get_password_hash(teacher.password),
    )
    return save(db, db_teacher, "Teacher already exists")


@app.put("/teachers/{teacher_id}", response_model=models.Teacher)
def update_teacher(
        teacher_id: int,
        teacher: models.TeacherUpdate,
        db: Session = Depends(get_db),
        principal: Principal = Depends(require_admin),
):
    db_teacher = get_or_404(db, database.Teacher, teacher_id, "Teacher not found")
    _check_teacher_contact(db, teacher, teacher_id)

    previous_name = db_teacher.name
    db_teacher.name = teacher.name
    db_teacher.email = teacher.email
    db_teacher.phone = teacher.phone
    if teacher.password:
        db_teacher.hashed_password = auth.get_password_hash(teacher.password)

    if teacher.name != previous_name:
        db.query(database.TeacherSubject).filter(
            database.TeacherSubject.teacher_id == teacher_id
        ).update({"teacher_name": teacher.name}, synchronize_session=False)
    return save(db, db_teacher, "Teacher already exists")


@app.delete("/teachers/{teacher_id}", response_model=models.Message)
def delete_teacher(teacher_id: int, db: Session = Depends(get_db), principal: Principal = Depends(require_admin)):
    cascade.delete_teacher(db, teacher_id).raise_for_failures()
    return {"message": "Teacher deleted"}


# ========== Subjects ==========
@app.get("/subjects/", response_model=List[models.Subject])
def read_subjects(db: Session = Depends(get_db), principal: Principal = Depends(require_staff)):
    return db.query(database.Subject).order_by(database.Subject.name).all()


@app.post("/subjects/", response_model=models.Subject, status_code=status.HTTP_201_CREATED)
def create_subject(subject: models.SubjectCreate, db: Session = Depends(get_db), principal: Principal = Depends(require_admin)):
    return save(db, database.Subject(**subject.model_dump()), "Subject already exists")


@app.put("/subjects/{subject_id}", response_model=models.Subject)
def update_subject(
        subject_id: int,
        subject: models.SubjectCreate,
        db: Session = Depends(get_db),
        principal: Principal = Depends(require_admin),
):
    db_subject = get_or_404(db, database.Subject, subject_id, "Subject not found")
    db_subject.name = subject.name
    return save(db, db_subject, "Subject already exists")


@app.delete("/subjects/{subject_id}", response_model=models.Message)
def delete_subject(subject_id: int, db: Session = Depends(get_db), principal: Principal = Depends(require_admin)):
    db_subject = get_or_404(db, database.Subject, subject_id, "Subject not found")
    with store_errors(db):
        db.delete(db_subject)
        db.commit()
    return {"message": "Subject deleted"}


# ========== Classes ==========
@app.get("/classes/", response_model=List[models.ClassSection])
def read_classes(db: Session = Depends(get_db), principal: Principal = Depends(require_staff)):
    return (
        db.query(database.ClassSection)
        .order_by(database.ClassSection.class_name, database.ClassSection.section)
        .all()
    )


@app.post("/classes/", response_model=models.ClassSection, status_code=status.HTTP_201_CREATED)
def create_class(class_in: models.ClassSectionCreate, db: Session = Depends(get_db), principal: Principal = Depends(require_admin)):
    return save(db, database.ClassSection(**class_in.model_dump()), "Class already exists for this section")


@app.put("/classes/{class_id}", response_model=models.ClassSection)
def update_class(
        class_id: int,
        class_in: models.ClassSectionCreate,
        db: Session = Depends(get_db),
        principal: Principal = Depends(require_admin),
):
    db_class = get_or_404(db, database.ClassSection, class_id, "Class not found")
    db_class.class_name = class_in.class_name
    db_class.section = class_in.section
    return save(db, db_class, "Class already exists for this section")


@app.delete("/classes/{class_id}", response_model=models.Message)
def delete_class(class_id: int, db: Session = Depends(get_db), principal: Principal = Depends(require_admin)):
    cascade.delete_class_section(db, class_id).raise_for_failures()
    return {"message": "Class deleted"}


# ========== Class-student mappings ==========
def _require_class_section(db: Session, class_name: str, section: str):
    if not relations.class_section_exists(db, class_name, section):
        raise ValidationError("Selected class and section does not exist")


def _class_student_view(row: database.ClassStudent) -> models.ClassStudent:
    return models.ClassStudent(
        id=row.id,
        class_name=row.class_name,
        section=row.section,
        student_id=row.student_id,
        student_name=row.student.name if row.student else "",
        student_roll_no=row.student.roll_no if row.student else "",
    )


def _fill_class_student(db: Session, row: database.ClassStudent, mapping: models.ClassStudentCreate):
    _require_class_section(db, mapping.class_name, mapping.section)
    if db.get(database.Student, mapping.student_id) is None:
        raise ValidationError("Selected student does not exist")
    row.class_name = mapping.class_name
    row.section = mapping.section
    row.student_id = mapping.student_id
    return save(db, row, "Mapping already exists")


@app.get("/class-students/", response_model=List[models.ClassStudent])
def read_class_students(db: Session = Depends(get_db), principal: Principal = Depends(require_staff)):
    rows = (
        db.query(database.ClassStudent)
        .order_by(database.ClassStudent.class_name, database.ClassStudent.section)
        .all()
    )
    return [_class_student_view(row) for row in rows]


@app.post("/class-students/", response_model=models.ClassStudent, status_code=status.HTTP_201_CREATED)
def create_class_student(mapping: models.ClassStudentCreate, db: Session = Depends(get_db), principal: Principal = Depends(require_admin)):
    return _class_student_view(_fill_class_student(db, database.ClassStudent(), mapping))


@app.put("/class-students/{mapping_id}", response_model=models.ClassStudent)
def update_class_student(
        mapping_id: int,
        mapping: models.ClassStudentCreate,
        db: Session = Depends(get_db),
        principal: Principal = Depends(require_admin),
):
    row = get_or_404(db, database.ClassStudent, mapping_id, "Mapping not found")
    return _class_student_view(_fill_class_student(db, row, mapping))


@app.delete("/class-students/{mapping_id}", response_model=models.Message)
def delete_class_student(mapping_id: int, db: Session = Depends(get_db), principal: Principal = Depends(require_admin)):
    row = get_or_404(db, database.ClassStudent, mapping_id, "Mapping not found")
    with store_errors(db):
        db.delete(row)
        db.commit()
    return {"message": "Mapping deleted"}


# ========== Class-subject mappings ==========
def _fill_class_subject(db: Session, row: database.ClassSubject, mapping: models.ClassSubjectCreate):
    _require_class_section(db, mapping.class_name, mapping.section)
    if db.get(database.Subject, mapping.subject_id) is None:
        raise ValidationError("Selected subject does not exist")
    row.class_name = mapping.class_name
    row.section = mapping.section
    row.subject_id = mapping.subject_id
    return save(db, row, "Subject already mapped to this class and section")


@app.get("/class-subjects/", response_model=List[models.ClassSubject])
def read_class_subjects(db: Session = Depends(get_db), principal: Principal = Depends(require_staff)):
    return (
        db.query(database.ClassSubject)
        .order_by(database.ClassSubject.class_name, database.ClassSubject.section)
        .all()
    )


@app.post("/class-subjects/", response_model=models.ClassSubject, status_code=status.HTTP_201_CREATED)
def create_class_subject(mapping: models.ClassSubjectCreate, db: Session = Depends(get_db), principal: Principal = Depends(require_admin)):
    return _fill_class_subject(db, database.ClassSubject(), mapping)


@app.put("/class-subjects/{mapping_id}", response_model=models.ClassSubject)
def update_class_subject(
        mapping_id: int,
        mapping: models.ClassSubjectCreate,
        db: Session = Depends(get_db),
        principal: Principal = Depends(require_admin),
):
    row = get_or_404(db, database.ClassSubject, mapping_id, "Mapping not found")
    return _fill_class_subject(db, row, mapping)


@app.delete("/class-subjects/{mapping_id}", response_model=models.Message)
def delete_class_subject(mapping_id: int, db: Session = Depends(get_db), principal: Principal = Depends(require_admin)):
    row = get_or_404(db, database.ClassSubject, mapping_id, "Mapping not found")
    with store_errors(db):
        db.delete(row)
        db.commit()
    return {"message": "Mapping deleted"}


# ========== Teacher-subject mappings ==========
def _fill_teacher_subject(db: Session, row: database.TeacherSubject, mapping: models.TeacherSubjectCreate):
    _require_class_section(db, mapping.class_name, mapping.section)
    if db.get(database.Subject, mapping.subject_id) is None:
        raise ValidationError("Selected subject does not exist")
    teacher = db.get(database.Teacher, mapping.teacher_id)
    if teacher is None:
        raise ValidationError("Selected teacher does not exist")
    row.class_name = mapping.class_name
    row.section = mapping.section
    row.subject_id = mapping.subject_id
    row.teacher_id = teacher.id
    row.teacher_name = teacher.name
    return save(db, row, "Mapping already exists for this class and subject")


@app.get("/teacher-subjects/", response_model=List[models.TeacherSubject])
def read_teacher_subjects(db: Session = Depends(get_db), principal: Principal = Depends(require_staff)):
    query = db.query(database.TeacherSubject)
    if not principal.is_admin:
        query = query.filter(database.TeacherSubject.teacher_id == principal.id)
    return query.order_by(
        database.TeacherSubject.class_name,
        database.TeacherSubject.section,
        database.TeacherSubject.subject_id,
    ).all()


@app.post("/teacher-subjects/", response_model=models.TeacherSubject, status_code=status.HTTP_201_CREATED)
def create_teacher_subject(mapping: models.TeacherSubjectCreate, db: Session = Depends(get_db), principal: Principal = Depends(require_admin)):
    return _fill_teacher_subject(db, database.TeacherSubject(), mapping)


@app.put("/teacher-subjects/{mapping_id}", response_model=models.TeacherSubject)
def update_teacher_subject(
        mapping_id: int,
        mapping: models.TeacherSubjectCreate,
        db: Session = Depends(get_db),
        principal: Principal = Depends(require_admin),
):
    row = get_or_404(db, database.TeacherSubject, mapping_id, "Mapping not found")
    return _fill_teacher_subject(db, row, mapping)


@app.delete("/teacher-subjects/{mapping_id}", response_model=models.Message)
def delete_teacher_subject(mapping_id: int, db: Session = Depends(get_db), principal: Principal = Depends(require_admin)):
    row = get_or_404(db, database.TeacherSubject, mapping_id, "Mapping not found")
    with store_errors(db):
        db.delete(row)
        db.commit()
    return {"message": "Mapping deleted"}


# ========== Exams ==========
def exam_view(exam: database.Exam) -> models.Exam:
    entries = stored_entries(exam_targets(exam))
    primary = entries[0] if entries else {"class_id": "", "section_id": ""}
    return models.Exam(
        id=exam.id,
        exam_name=exam.exam_name,
        exam_classes=entries,
        class_id=primary["class_id"],
        section_id=primary["section_id"],
        academic_year=exam.academic_year,
        exam_date=exam.exam_date,
        total_marks=exam.total_marks,
        description=exam.description or "",
        status=exam.status,
        created_at=exam.created_at,
        updated_at=exam.updated_at,
    )


def _fill_exam(db: Session, exam: database.Exam, exam_in: models.ExamCreate) -> database.Exam:
    targets = build_targets(exam_in.exam_classes, exam_in.class_id, exam_in.section_id)
    pairs = expand(targets)
    if not pairs:
        raise ValidationError("At least one class-section is required")
    missing = relations.missing_class_sections(db, pairs)
    if missing:
        raise ValidationError(
            f"Selected class and section does not exist: {missing[0].class_name}-{missing[0].section}"
        )

    exam.exam_name = exam_in.exam_name
    exam.exam_classes = stored_entries(targets)
    exam.class_id = pairs[0].class_name
    exam.section_id = pairs[0].section
    exam.academic_year = exam_in.academic_year
    exam.exam_date = exam_in.exam_date
    exam.total_marks = exam_in.total_marks
    exam.description = exam_in.description
    exam.status = exam_in.status
    return save(db, exam, "Exam already exists for this class and year")


@app.get("/exams/", response_model=List[models.Exam])
def read_exams(
        class_name: str = "",
        section: str = "",
        academic_year: str = "",
        exam_status: str = Query("", alias="status"),
        search: str = "",
        db: Session = Depends(get_db),
        principal: Principal = Depends(require_staff),
):
    query = db.query(database.Exam)
    if academic_year.strip():
        query = query.filter(database.Exam.academic_year == academic_year.strip())
    if exam_status.strip():
        query = query.filter(database.Exam.status == exam_status.strip().lower())
    if search.strip():
        query = query.filter(database.Exam.exam_name.ilike(f"%{search.strip()}%"))
    exams = query.order_by(database.Exam.created_at.desc(), database.Exam.id.desc()).all()

    scope = None
    if not principal.is_admin:
        scope = relations.teacher_class_sections(db, principal.id)
        if not scope:
            return []

    class_name = class_name.strip()
    section = section.strip()
    result = []
    for exam in exams:
        pairs = resolve_exam_targets(exam)
        # both filters must hold on the same target
        if (class_name or section) and not any(
            (not class_name or p.class_name == class_name) and (not section or p.section == section)
            for p in pairs
        ):
            continue
        if scope is not None and not scope.intersection(pairs):
            continue
        result.append(exam_view(exam))
    return result


@app.get("/exams/{exam_id}", response_model=models.Exam)
def read_exam(exam_id: int, db: Session = Depends(get_db), principal: Principal = Depends(require_staff)):
    exam = get_or_404(db, database.Exam, exam_id, "Exam not found")
    if not principal.is_admin:
        scope = relations.teacher_class_sections(db, principal.id)
        if not scope.intersection(resolve_exam_targets(exam)):
            raise ForbiddenError("Access denied")
    return exam_view(exam)


@app.post("/exams/", response_model=models.Exam, status_code=status.HTTP_201_CREATED)
def create_exam(exam_in: models.ExamCreate, db: Session = Depends(get_db), principal: Principal = Depends(require_admin)):
    return exam_view(_fill_exam(db, database.Exam(), exam_in))


@app.put("/exams/{exam_id}", response_model=models.Exam)
def update_exam(
        exam_id: int,
        exam_in: models.ExamCreate,
        db: Session = Depends(get_db),
        principal: Principal = Depends(require_admin),
):
    exam = get_or_404(db, database.Exam, exam_id, "Exam not found")
    return exam_view(_fill_exam(db, exam, exam_in))


@app.delete("/exams/{exam_id}", response_model=models.Message)
def delete_exam(exam_id: int, db: Session = Depends(get_db), principal: Principal = Depends(require_admin)):
    cascade.delete_exam(db, exam_id).raise_for_failures()
    return {"message": "Exam deleted"}


# ========== Exam subjects ==========
def _fill_exam_subject(
        db: Session, row: database.ExamSubject, exam_subject: models.ExamSubjectCreate
) -> database.ExamSubject:
    if not exam_subject.exam_id:
        raise ValidationError("Exam is required")
    if not exam_subject.subject_id:
        raise ValidationError("Subject is required")
    if exam_subject.exam_date is None:
        raise ValidationError("Exam date is required")
    if exam_subject.total_marks is None or exam_subject.total_marks < 1:
        raise ValidationError("Maximum marks must be a whole number greater than 0")
    if exam_subject.passing_marks is None or exam_subject.passing_marks < 0:
        raise ValidationError("Passing marks must be a whole number 0 or greater")
    if exam_subject.passing_marks > exam_subject.total_marks:
        raise ValidationError("Passing marks cannot be greater than maximum marks")

    exam = get_or_404(db, database.Exam, exam_subject.exam_id, "Exam not found")
    marks.check_subject_mapped_to_exam_targets(db, exam, exam_subject.subject_id)

    for key, value in exam_subject.model_dump().items():
        setattr(row, key, value)
    return save(db, row, "Subject already exists in this exam")


@app.get("/exam-subjects/exam/{exam_id}", response_model=List[models.ExamSubject])
def read_exam_subjects(exam_id: int, db: Session = Depends(get_db), principal: Principal = Depends(require_staff)):
    return (
        db.query(database.ExamSubject)
        .filter(database.ExamSubject.exam_id == exam_id)
        .order_by(database.ExamSubject.exam_date, database.ExamSubject.id)
        .all()
    )


@app.post("/exam-subjects/", response_model=models.ExamSubject, status_code=status.HTTP_201_CREATED)
def create_exam_subject(exam_subject: models.ExamSubjectCreate, db: Session = Depends(get_db), principal: Principal = Depends(require_admin)):
    return _fill_exam_subject(db, database.ExamSubject(), exam_subject)


@app.put("/exam-subjects/{exam_subject_id}", response_model=models.ExamSubject)
def update_exam_subject(
        exam_subject_id: int,
        exam_subject: models.ExamSubjectCreate,
        db: Session = Depends(get_db),
        principal: Principal = Depends(require_admin),
):
    row = get_or_404(db, database.ExamSubject, exam_subject_id, "Exam subject not found")
    return _fill_exam_subject(db, row, exam_subject)


@app.delete("/exam-subjects/{exam_subject_id}", response_model=models.Message)
def delete_exam_subject(exam_subject_id: int, db: Session = Depends(get_db), principal: Principal = Depends(require_admin)):
    cascade.delete_exam_subject(db, exam_subject_id).raise_for_failures()
    return {"message": "Exam subject deleted"}


# ========== Exam marks ==========
@app.get("/exam-marks/exam/{exam_id}", response_model=List[models.ExamMark])
def read_exam_marks(exam_id: int, db: Session = Depends(get_db), principal: Principal = Depends(require_staff)):
    return [marks.mark_view(m) for m in marks.list_marks_for_exam(db, principal, exam_id)]


@app.get("/exam-marks/exam-subject/{exam_subject_id}", response_model=List[models.ExamMark])
def read_exam_subject_marks(
        exam_subject_id: int,
        db: Session = Depends(get_db),
        principal: Principal = Depends(require_staff),
):
    return [
        marks.mark_view(m)
        for m in marks.list_marks_for_exam_subject(db, principal, exam_subject_id)
    ]


@app.post("/exam-marks/", response_model=models.ExamMark, status_code=status.HTTP_201_CREATED)
def create_exam_mark(mark_in: models.ExamMarkInput, db: Session = Depends(get_db), principal: Principal = Depends(require_staff)):
    return marks.mark_view(marks.create_mark(db, principal, mark_in))


@app.put("/exam-marks/{mark_id}", response_model=models.ExamMark)
def update_exam_mark(
        mark_id: int,
        mark_in: models.ExamMarkInput,
        db: Session = Depends(get_db),
        principal: Principal = Depends(require_staff),
):
    return marks.mark_view(marks.update_mark(db, principal, mark_id, mark_in))


@app.delete("/exam-marks/{mark_id}", response_model=models.Message)
def delete_exam_mark(mark_id: int, db: Session = Depends(get_db), principal: Principal = Depends(require_staff)):
    marks.delete_mark(db, principal, mark_id)
    return {"message": "Marks deleted"}
