import base64

from prep_portal import models
from prep_portal.generators.schemas import GenMCQQuestion, GenMCQTest, GenSubjectiveTest
from prep_portal.models import UserRole

from conftest import SAMPLE_QUESTIONS, auth

GOOD = GenMCQQuestion(
    question="Which schedule of the Constitution lists the languages?",
    options=["Seventh", "Eighth", "Ninth", "Tenth"],
    answer="Eighth",
)


def test_generate_mcq_test(client, fake_llm, make_user):
    teacher = make_user("teacher@example.com", role=UserRole.TEACHER)
    fake_llm.queue(GenMCQTest, GenMCQTest(questions=[GOOD, GOOD]))

    response = client.post(
        "/api/teacher/generate",
        json={"test_type": "mcq", "topic": "Constitution", "number_of_questions": 2},
        headers=auth(teacher),
    )

    assert response.status_code == 200
    data = response.json()
    assert data["topic"] == "Constitution"
    assert len(data["questions"]) == 2
    assert all(q["type"] == "mcq" and q["answer"] == "Eighth" for q in data["questions"])


def test_generate_from_document_only(client, fake_llm, make_user):
    teacher = make_user("teacher@example.com", role=UserRole.TEACHER)
    fake_llm.queue(GenSubjectiveTest, GenSubjectiveTest(questions=["Assess the impact of the Green Revolution."]))
    document = "data:text/plain;base64," + base64.b64encode(b"Green Revolution notes").decode()

    response = client.post(
        "/api/teacher/generate",
        json={"test_type": "subjective", "document_data_uri": document},
        headers=auth(teacher),
    )

    assert response.status_code == 200
    assert response.json()["topic"] == "the provided document"
    assert "Green Revolution notes" in fake_llm.calls[0]["user"]


def test_generate_needs_topic_or_document(client, make_user):
    teacher = make_user("teacher@example.com", role=UserRole.TEACHER)

    response = client.post("/api/teacher/generate", json={"test_type": "mcq", "topic": "  "}, headers=auth(teacher))

    assert response.status_code == 400


def test_generate_rejects_bad_document(client, make_user):
    teacher = make_user("teacher@example.com", role=UserRole.TEACHER)

    response = client.post(
        "/api/teacher/generate",
        json={"test_type": "mcq", "document_data_uri": "data:image/png;base64,AAAA"},
        headers=auth(teacher),
    )

    assert response.status_code == 400


def test_generate_llm_failure_is_502(client, make_user):
    teacher = make_user("teacher@example.com", role=UserRole.TEACHER)

    response = client.post("/api/teacher/generate", json={"test_type": "mcq", "topic": "Geography"}, headers=auth(teacher))

    assert response.status_code == 502


def test_question_count_is_bounded(client, make_user):
    teacher = make_user("teacher@example.com", role=UserRole.TEACHER)

    response = client.post(
        "/api/teacher/generate",
        json={"test_type": "mcq", "topic": "Geography", "number_of_questions": 50},
        headers=auth(teacher),
    )

    assert response.status_code == 422


def test_regenerate_question(client, fake_llm, make_user):
    teacher = make_user("teacher@example.com", role=UserRole.TEACHER)
    fake_llm.queue(GenMCQTest, GenMCQTest(questions=[GOOD]))

    response = client.post(
        "/api/teacher/regenerate",
        json={"question_type": "mcq", "topic": "Constitution"},
        headers=auth(teacher),
    )

    assert response.status_code == 200
    assert response.json()["question"] == GOOD.question
    assert "Generate 1 MCQs" in fake_llm.calls[0]["user"]


def test_save_test_validation(client, make_user, make_class):
    teacher = make_user("teacher@example.com", role=UserRole.TEACHER)
    other_teacher = make_user("other@example.com", role=UserRole.TEACHER)
    other_class = make_class(teacher=other_teacher)
    headers = auth(teacher)

    no_name = client.post("/api/teacher/tests", json={"name": " ", "questions": SAMPLE_QUESTIONS}, headers=headers)
    no_questions = client.post("/api/teacher/tests", json={"name": "Polity", "questions": [], "is_draft": True}, headers=headers)
    no_class = client.post("/api/teacher/tests", json={"name": "Polity", "questions": SAMPLE_QUESTIONS}, headers=headers)
    foreign_class = client.post(
        "/api/teacher/tests",
        json={"name": "Polity", "questions": SAMPLE_QUESTIONS, "class_id": other_class.id},
        headers=headers,
    )
    duplicate_options = client.post(
        "/api/teacher/tests",
        json={
            "name": "Polity",
            "is_draft": True,
            "questions": [{"question": "Q?", "type": "mcq", "options": ["a", "b", "c", " A "], "answer": "a"}],
        },
        headers=headers,
    )
    bad_answer = client.post(
        "/api/teacher/tests",
        json={
            "name": "Polity",
            "is_draft": True,
            "questions": [{"question": "Q?", "type": "mcq", "options": ["a", "b", "c", "d"], "answer": "e"}],
        },
        headers=headers,
    )

    assert no_name.status_code == 400
    assert no_questions.status_code == 400
    assert no_class.status_code == 400
    assert foreign_class.status_code == 403
    assert bad_answer.status_code == 400
    assert duplicate_options.status_code == 400


def test_save_draft_then_assign(client, make_user, make_class, db):
    teacher = make_user("teacher@example.com", role=UserRole.TEACHER)
    classroom = make_class(teacher=teacher)
    headers = auth(teacher)
    document = "data:text/plain;base64," + base64.b64encode(b"notes").decode()

    draft = client.post(
        "/api/teacher/tests",
        json={"name": "Polity", "questions": SAMPLE_QUESTIONS, "is_draft": True, "document_data_uri": document},
        headers=headers,
    )
    assert draft.status_code == 201
    test_id = draft.json()["id"]
    assert draft.json()["is_draft"] is True
    assert db.get(models.Test, test_id).document_base64 == document

    assigned = client.put(
        f"/api/teacher/tests/{test_id}",
        json={"class_id": classroom.id, "is_draft": False},
        headers=headers,
    )
    assert assigned.status_code == 200
    assert assigned.json()["class_id"] == classroom.id
    assert assigned.json()["is_draft"] is False

    unassign = client.put(f"/api/teacher/tests/{test_id}", json={"class_id": None}, headers=headers)
    assert unassign.status_code == 400

    listed = client.get("/api/teacher/tests", headers=headers).json()
    assert [t["id"] for t in listed] == [test_id]


def test_other_teacher_cannot_see_test(client, make_user, make_test):
    owner = make_user("owner@example.com", role=UserRole.TEACHER)
    other = make_user("other@example.com", role=UserRole.TEACHER)
    test = make_test(owner, is_draft=True)

    assert client.get(f"/api/teacher/tests/{test.id}", headers=auth(other)).status_code == 403
    assert client.get("/api/teacher/tests/missing", headers=auth(other)).status_code == 404


def test_questions_locked_once_started(client, make_user, make_class, make_test, make_submission):
    teacher = make_user("teacher@example.com", role=UserRole.TEACHER)
    student = make_user("student@example.com")
    classroom = make_class(teacher=teacher, students=[student])
    test = make_test(teacher, classroom)
    make_submission(test, student)

    locked = client.put(
        f"/api/teacher/tests/{test.id}",
        json={"questions": SAMPLE_QUESTIONS[:1]},
        headers=auth(teacher),
    )
    renamed = client.put(f"/api/teacher/tests/{test.id}", json={"name": "Polity Revision"}, headers=auth(teacher))

    assert locked.status_code == 409
    assert renamed.status_code == 200
    assert renamed.json()["name"] == "Polity Revision"


def test_teacher_classes_and_submissions(client, make_user, make_class, make_test, make_submission):
    teacher = make_user("teacher@example.com", role=UserRole.TEACHER)
    student = make_user("student@example.com")
    classroom = make_class(teacher=teacher, students=[student])
    make_class(name="Someone else's")
    test = make_test(teacher, classroom)
    evaluation = {
        "results": [
            {"question": "q1", "type": "mcq", "user_answer": "Article 17", "is_correct": True, "explanation": "Right"},
            {"question": "q2", "type": "subjective", "user_answer": "...", "is_correct": False, "explanation": "Thin"},
        ],
        "overall_feedback": "Revise fiscal federalism.",
    }
    make_submission(test, student, answers=["Article 17", "..."], evaluation=evaluation)

    classes = client.get("/api/teacher/classes", headers=auth(teacher)).json()
    summaries = client.get(f"/api/teacher/tests/{test.id}/submissions", headers=auth(teacher)).json()

    assert [c["id"] for c in classes] == [classroom.id]
    assert summaries[0]["student_email"] == "student@example.com"
    assert summaries[0]["status"] == "completed"
    assert summaries[0]["score"] == {"correct": 1, "total": 2, "percentage": 50.0}
