from datetime import date

import pytest

import database
from conftest import add, headers_for, mark_payload


# Request payload fixtures
@pytest.fixture
def test_teacher():
    return {
        "name": "Test Teacher",
        "email": "Teacher@Example.com",
        "phone": "9875559000",
        "password": "testpassword",
    }


@pytest.fixture
def test_student():
    return {
        "name": "Test Student",
        "roll_no": "R-100",
        "father_name": "Test Father",
        "student_phone": "9875558000",
        "father_phone": "9875558001",
    }


@pytest.fixture
def teacher_headers(school):
    return headers_for(school.teacher_principal)


# ========== Auth ==========
def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_bootstrap_admin_only_once(client):
    payload = {"name": "Root", "email": "root@school.org", "password": "rootpass"}
    response = client.post("/auth/admins", json=payload)
    assert response.status_code == 201
    assert response.json()["role"] == "admin"

    response = client.post("/auth/admins", json={**payload, "email": "second@school.org"})
    assert response.status_code == 403


def test_admin_login_and_me(client, admin):
    response = client.post("/auth/login", json={"email": "ADMIN@school.org", "password": "adminpass"})
    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["role"] == "admin"

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.status_code == 200
    assert me.json()["email"] == "admin@school.org"


def test_teacher_login(client, school):
    response = client.post("/auth/login", json={"email": "tara@school.org", "password": "teacherpass"})
    assert response.status_code == 200
    assert response.json()["user"] == {
        "id": school.teacher.id, "role": "teacher", "name": "Tara", "email": "tara@school.org",
    }


def test_login_with_wrong_password(client, admin):
    response = client.post("/auth/login", json={"email": "admin@school.org", "password": "nope-nope"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid email or password"


def test_protected_endpoint_requires_token(client):
    assert client.get("/students/").status_code == 401
    response = client.get("/students/", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


def test_teacher_cannot_use_admin_endpoints(client, teacher_headers, test_student):
    response = client.post("/students/", json=test_student, headers=teacher_headers)
    assert response.status_code == 403
    assert response.json()["detail"] == "Access denied"


# ========== Students ==========
def test_create_and_get_student(client, admin_headers, test_student):
    response = client.post("/students/", json=test_student, headers=admin_headers)
    assert response.status_code == 201
    student_id = response.json()["id"]

    response = client.get(f"/students/{student_id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["name"] == test_student["name"]


def test_duplicate_roll_number_is_conflict(client, admin_headers, test_student):
    client.post("/students/", json=test_student, headers=admin_headers)
    response = client.post("/students/", json={**test_student, "name": "Other"}, headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["detail"] == "Roll number already exists"


def test_blank_student_field_is_rejected(client, admin_headers, test_student):
    response = client.post("/students/", json={**test_student, "name": "   "}, headers=admin_headers)
    assert response.status_code == 422


def test_get_missing_student(client, admin_headers):
    response = client.get("/students/999", headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["detail"] == "Student not found"


@pytest.mark.parametrize("phone", ["5558000", "98765abcde", "1234567890123456"])
def test_student_phone_must_be_10_to_15_digits(client, admin_headers, test_student, phone):
    response = client.post("/students/", json={**test_student, "father_phone": phone}, headers=admin_headers)
    assert response.status_code == 422
    assert "10 to 15 digits" in str(response.json()["detail"])


def test_teacher_lists_only_students_of_assigned_sections(client, teacher_headers, school):
    rows = client.get("/students/", headers=teacher_headers).json()
    assert [row["id"] for row in rows] == [school.alice.id]

    assert client.get(f"/students/{school.alice.id}", headers=teacher_headers).status_code == 200
    response = client.get(f"/students/{school.bruno.id}", headers=teacher_headers)
    assert response.status_code == 403

    assert client.get("/students/", headers=headers_for(school.other_principal)).json() == []


# ========== Teachers ==========
def test_create_teacher_hides_password(client, admin_headers, test_teacher):
    response = client.post("/teachers/", json=test_teacher, headers=admin_headers)
    assert response.status_code == 201
    body = response.json()
    assert body["email"] == "teacher@example.com"
    assert "password" not in body
    assert "hashed_password" not in body


def test_duplicate_teacher_phone(client, admin_headers, test_teacher):
    client.post("/teachers/", json=test_teacher, headers=admin_headers)
    response = client.post(
        "/teachers/", json={**test_teacher, "email": "new@example.com"}, headers=admin_headers
    )
    assert response.status_code == 409
    assert response.json()["detail"] == "Phone already exists"


def test_short_teacher_password(client, admin_headers, test_teacher):
    response = client.post("/teachers/", json={**test_teacher, "password": "abc"}, headers=admin_headers)
    assert response.status_code == 400
    assert "at least 6" in response.json()["detail"]


def test_teacher_phone_must_be_digits(client, admin_headers, test_teacher):
    response = client.post("/teachers/", json={**test_teacher, "phone": "555-9000"}, headers=admin_headers)
    assert response.status_code == 422
    assert "10 to 15 digits" in str(response.json()["detail"])


def test_teacher_rename_syncs_assignments(client, db, admin_headers, school):
    response = client.put(f"/teachers/{school.teacher.id}", json={
        "name": "Tara Singh", "email": "tara@school.org", "phone": "9875551000",
    }, headers=admin_headers)
    assert response.status_code == 200
    db.expire_all()
    assert db.get(database.TeacherSubject, school.assignment.id).teacher_name == "Tara Singh"


def test_delete_teacher_cascades(client, db, admin_headers, school):
    response = client.delete(f"/teachers/{school.teacher.id}", headers=admin_headers)
    assert response.status_code == 200
    assert db.query(database.TeacherSubject).count() == 0


# ========== Classes and mappings ==========
def test_duplicate_class_section(client, admin_headers, school):
    response = client.post("/classes/", json={"class_name": "10", "section": "A"}, headers=admin_headers)
    assert response.status_code == 409


def test_class_student_requires_existing_class(client, admin_headers, school):
    response = client.post("/class-students/", json={
        "class_name": "12", "section": "Z", "student_id": school.alice.id,
    }, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Selected class and section does not exist"


def test_class_student_listing_includes_student(client, admin_headers, school):
    rows = client.get("/class-students/", headers=admin_headers).json()
    alice = next(row for row in rows if row["student_id"] == school.alice.id)
    assert alice["student_name"] == "Alice"
    assert alice["student_roll_no"] == "10A-01"


def test_teacher_subject_copies_teacher_name(client, admin_headers, school):
    response = client.post("/teacher-subjects/", json={
        "class_name": "10", "section": "B", "subject_id": school.math.id,
        "teacher_id": school.other_teacher.id,
    }, headers=admin_headers)
    assert response.status_code == 201
    assert response.json()["teacher_name"] == "Omar"


def test_one_teacher_per_class_subject(client, admin_headers, school):
    response = client.post("/teacher-subjects/", json={
        "class_name": "10", "section": "A", "subject_id": school.math.id,
        "teacher_id": school.other_teacher.id,
    }, headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["detail"] == "Mapping already exists for this class and subject"


def test_delete_class_cascades(client, db, admin_headers, school):
    response = client.delete(f"/classes/{school.class_a.id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {"message": "Class deleted"}
    assert db.query(database.ClassStudent).filter_by(section="A").count() == 0


# ========== Exams ==========
def test_create_exam_with_multiple_targets(client, admin_headers, school):
    response = client.post("/exams/", json={
        "exam_name": "Unit Test 1",
        "academic_year": "2026",
        "exam_classes": [
            {"class_id": "10", "section_id": "B", "subjects": [school.math.id]},
            {"class_id": "10", "section_id": "A"},
            {"class_id": "10", "section_id": "B"},
        ],
    }, headers=admin_headers)
    assert response.status_code == 201
    body = response.json()
    assert [(c["class_id"], c["section_id"]) for c in body["exam_classes"]] == [("10", "B"), ("10", "A")]
    assert (body["class_id"], body["section_id"]) == ("10", "B")
    assert body["status"] == "draft"


def test_create_exam_with_legacy_target(client, admin_headers, school):
    response = client.post("/exams/", json={
        "exam_name": "Unit Test 2", "academic_year": "2026", "class_id": "10", "section_id": "A",
    }, headers=admin_headers)
    assert response.status_code == 201
    assert response.json()["exam_classes"] == [{"class_id": "10", "section_id": "A", "subjects": []}]


def test_create_exam_without_targets(client, admin_headers, school):
    response = client.post("/exams/", json={"exam_name": "X", "academic_year": "2026"}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "At least one class-section is required"


def test_create_exam_with_unknown_section(client, admin_headers, school):
    response = client.post("/exams/", json={
        "exam_name": "X", "academic_year": "2026",
        "exam_classes": [{"class_id": "10", "section_id": "Q"}],
    }, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["detail"].endswith("10-Q")


def test_teacher_exam_listing_is_scoped(client, db, admin_headers, school):
    add(db, database.ClassSection(class_name="11", section="C"))
    client.post("/exams/", json={
        "exam_name": "Other Class", "academic_year": "2026", "class_id": "11", "section_id": "C",
    }, headers=admin_headers)

    teacher_exams = client.get("/exams/", headers=headers_for(school.teacher_principal)).json()
    assert [e["exam_name"] for e in teacher_exams] == ["Midterm"]
    assert client.get("/exams/", headers=headers_for(school.other_principal)).json() == []
    assert len(client.get("/exams/", headers=admin_headers).json()) == 2
    by_section = client.get("/exams/?class_name=11&section=C", headers=admin_headers).json()
    assert [e["exam_name"] for e in by_section] == ["Other Class"]


def test_exam_class_and_section_filters_match_one_target(client, db, admin_headers, school):
    add(db, database.ClassSection(class_name="11", section="A"))
    response = client.post("/exams/", json={
        "exam_name": "Cross", "academic_year": "2026",
        "exam_classes": [{"class_id": "10", "section_id": "B"}, {"class_id": "11", "section_id": "A"}],
    }, headers=admin_headers)
    assert response.status_code == 201

    def names(query):
        return {e["exam_name"] for e in client.get(f"/exams/?{query}", headers=admin_headers).json()}

    assert names("class_name=11&section=B") == set()
    assert names("class_name=11&section=A") == {"Cross"}
    assert names("class_name=10&section=B") == {"Cross", "Midterm"}
    assert names("section=A") == {"Cross", "Midterm"}


# ========== Exam subjects ==========
def test_exam_subject_requires_mapped_subject(client, admin_headers, school):
    payload = {
        "exam_id": school.exam.id,
        "subject_id": school.science.id,
        "exam_date": str(date(2026, 3, 5)),
        "total_marks": 50,
        "passing_marks": 20,
    }
    response = client.post("/exam-subjects/", json=payload, headers=admin_headers)
    assert response.status_code == 400
    assert "is not mapped for" in response.json()["detail"]


def test_exam_subject_passing_above_total(client, admin_headers, school):
    response = client.post("/exam-subjects/", json={
        "exam_id": school.exam.id, "subject_id": school.math.id,
        "exam_date": "2026-03-05", "total_marks": 50, "passing_marks": 60,
    }, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Passing marks cannot be greater than maximum marks"


def test_duplicate_exam_subject(client, admin_headers, school):
    response = client.post("/exam-subjects/", json={
        "exam_id": school.exam.id, "subject_id": school.math.id,
        "exam_date": "2026-03-05", "total_marks": 50, "passing_marks": 20,
    }, headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["detail"] == "Subject already exists in this exam"


# ========== Exam marks ==========
def test_teacher_creates_mark(client, teacher_headers, school):
    response = client.post("/exam-marks/", json=mark_payload(school, school.alice), headers=teacher_headers)
    assert response.status_code == 201
    body = response.json()
    assert body["student_name"] == "Alice"
    assert body["subject_id"] == school.math.id
    assert body["total_marks"] == 100
    assert body["remarks"] == "good"


def test_mark_above_maximum_over_http(client, teacher_headers, school):
    response = client.post(
        "/exam-marks/", json=mark_payload(school, school.alice, 101), headers=teacher_headers
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Marks obtained cannot be greater than maximum marks (100)"


def test_out_of_scope_mark_is_forbidden(client, teacher_headers, school):
    response = client.post("/exam-marks/", json=mark_payload(school, school.bruno), headers=teacher_headers)
    assert response.status_code == 403


def test_second_mark_for_same_student_is_conflict(client, teacher_headers, school):
    client.post("/exam-marks/", json=mark_payload(school, school.alice), headers=teacher_headers)
    response = client.post("/exam-marks/", json=mark_payload(school, school.alice, 60), headers=teacher_headers)
    assert response.status_code == 409
    assert response.json()["detail"] == "Marks already exist for this student and exam subject"


def test_mark_listing_filters_for_teacher(client, admin_headers, teacher_headers, school):
    for student in (school.alice, school.bruno):
        client.post("/exam-marks/", json=mark_payload(school, student), headers=admin_headers)

    teacher_rows = client.get(f"/exam-marks/exam/{school.exam.id}", headers=teacher_headers).json()
    assert [row["student_id"] for row in teacher_rows] == [school.alice.id]

    admin_rows = client.get(
        f"/exam-marks/exam-subject/{school.exam_math.id}", headers=admin_headers
    ).json()
    assert {row["student_id"] for row in admin_rows} == {school.alice.id, school.bruno.id}


def test_update_and_delete_mark(client, teacher_headers, school):
    mark_id = client.post(
        "/exam-marks/", json=mark_payload(school, school.alice), headers=teacher_headers
    ).json()["id"]

    response = client.put(
        f"/exam-marks/{mark_id}", json=mark_payload(school, school.alice, 90), headers=teacher_headers
    )
    assert response.status_code == 200
    assert response.json()["marks_obtained"] == 90

    response = client.delete(f"/exam-marks/{mark_id}", headers=teacher_headers)
    assert response.status_code == 200
    assert client.delete(f"/exam-marks/{mark_id}", headers=teacher_headers).status_code == 404


def test_delete_exam_subject_removes_its_marks(client, db, admin_headers, school):
    client.post("/exam-marks/", json=mark_payload(school, school.alice), headers=admin_headers)
    response = client.delete(f"/exam-subjects/{school.exam_math.id}", headers=admin_headers)
    assert response.status_code == 200
    assert db.query(database.ExamMark).count() == 0


def test_cascade_failure_is_reported(client, db, admin_headers, school, monkeypatch):
    import cascade
    from sqlalchemy.exc import OperationalError

    def broken(session):
        raise OperationalError("DELETE", {}, Exception("disk I/O error"))

    real_steps = cascade.class_section_steps

    def steps_with_failure(class_name, section):
        steps = real_steps(class_name, section)
        steps[0] = cascade.CleanupStep("class_subjects", broken)
        return steps

    monkeypatch.setattr(cascade, "class_section_steps", steps_with_failure)

    response = client.delete(f"/classes/{school.class_a.id}", headers=admin_headers)
    assert response.status_code == 500
    body = response.json()
    assert body["primary_deleted"] is True
    assert body["failed_steps"] == ["class_subjects"]
    assert "disk I/O" not in body["detail"]
    assert db.get(database.ClassSection, school.class_a.id) is None
