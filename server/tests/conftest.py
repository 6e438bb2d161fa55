import os

# Must be set before prep_portal.config is imported
os.environ.setdefault("OPENAI_API_KEY", "test-key")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("BOOTSTRAP_ADMIN_EMAIL", None)
os.environ.pop("BOOTSTRAP_ADMIN_PASSWORD", None)

import pytest
from fastapi.testclient import TestClient

from prep_portal import database, models
from prep_portal.main import app
from prep_portal.models import Classroom, Submission, User, UserRole
from prep_portal.services import evaluation
from prep_portal.services.auth import create_access_token, hash_password
from prep_portal.services.llm_service import llm_service
from prep_portal.services.sse_manager import sse_manager

PASSWORD = "secret123"


class FakeLLM:
    """Scripted stand-in for the structured LLM service."""

    def __init__(self):
        self.responses = {}
        self.calls = []
        self.evaluation = None
        self.evaluation_calls = []

    def queue(self, response_model, *results):
        self.responses.setdefault(response_model, []).extend(results)

    def generate_response(self, response_model, system_prompt, user_prompt, temperature=0.7, max_tokens=4000):
        self.calls.append({"model": response_model, "system": system_prompt, "user": user_prompt})
        queued = self.responses.get(response_model)
        if not queued:
            return None
        # The last queued result repeats
        return queued.pop(0) if len(queued) > 1 else queued[0]

    def evaluate_test(self, topic, questions, answers):
        self.evaluation_calls.append({"topic": topic, "questions": questions, "answers": answers})
        if callable(self.evaluation):
            return self.evaluation(questions, answers)
        return self.evaluation


@pytest.fixture(autouse=True)
def reset_state():
    database.Base.metadata.drop_all(bind=database.engine)
    database.Base.metadata.create_all(bind=database.engine)
    evaluation._in_flight.clear()
    sse_manager.active_connections.clear()
    yield
    evaluation._in_flight.clear()
    sse_manager.active_connections.clear()


@pytest.fixture
def fake_llm(monkeypatch):
    fake = FakeLLM()
    monkeypatch.setattr(llm_service, "generate_response", fake.generate_response)
    monkeypatch.setattr(llm_service, "evaluate_test", fake.evaluate_test)
    return fake


@pytest.fixture
def broadcasts(monkeypatch):
    """Record every SSE broadcast as (channel, message)."""
    sent = []

    async def record(channel, message):
        sent.append((channel, message))

    monkeypatch.setattr(sse_manager, "broadcast", record)
    return sent


@pytest.fixture
def client(fake_llm):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db():
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    def _make(email, role=UserRole.STUDENT, password=PASSWORD, class_ids=None):
        user = User(
            email=email,
            role=role,
            hashed_password=hash_password(password),
            class_ids=class_ids or [],
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def make_class(db):
    def _make(name="GS Foundation", division="A", teacher=None, students=()):
        classroom = Classroom(
            name=name,
            division=division,
            teacher_id=teacher.id if teacher else None,
            student_ids=[s.id for s in students],
        )
        db.add(classroom)
        db.commit()
        db.refresh(classroom)
        for student in students:
            student.class_ids = list(student.class_ids or []) + [classroom.id]
        db.commit()
        return classroom
    return _make


SAMPLE_QUESTIONS = [
    {
        "question": "Which article of the Constitution abolishes untouchability?",
        "type": "mcq",
        "options": ["Article 14", "Article 17", "Article 21", "Article 32"],
        "answer": "Article 17",
    },
    {
        "question": "Discuss the role of the Finance Commission in fiscal federalism.",
        "type": "subjective",
    },
]


@pytest.fixture
def make_test(db):
    def _make(teacher, classroom=None, questions=None, is_draft=False, name="Polity Weekly"):
        test = models.Test(
            name=name,
            class_id=classroom.id if classroom else None,
            questions=questions or SAMPLE_QUESTIONS,
            created_by=teacher.id,
            is_draft=is_draft,
        )
        db.add(test)
        db.commit()
        db.refresh(test)
        return test
    return _make


@pytest.fixture
def make_submission(db):
    def _make(test, student, answers=None, evaluation=None):
        submission = Submission(
            test_id=test.id,
            student_id=student.id,
            class_id=test.class_id,
            answers=answers or [""] * len(test.questions),
            evaluation=evaluation,
        )
        db.add(submission)
        db.commit()
        db.refresh(submission)
        return submission
    return _make


def auth(user):
    return {"Authorization": f"Bearer {create_access_token(user)}"}
