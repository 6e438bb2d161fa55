import logging
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from prep_portal.database import get_db
from prep_portal.generators.schemas import GenMCQQuestion, mcq_errors
from prep_portal.models import Classroom, Submission, Test, User, UserRole
from prep_portal.schemas import (
    AnyQuestion,
    ClassResponse,
    Evaluation,
    GeneratedTestResponse,
    GenerateTestRequest,
    MCQQuestion,
    RegenerateQuestionRequest,
    SubjectiveQuestion,
    SubmissionSummary,
    TestCreate,
    TestResponse,
    TestUpdate,
)
from prep_portal.services.auth import require_roles
from prep_portal.services.evaluation import score
from prep_portal.services.generation import generate_material
from prep_portal.services.sse_manager import event_stream, test_channel

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Teacher"])

teacher_only = require_roles(UserRole.TEACHER)


def _own_class(db: Session, class_id: str, teacher: User) -> Classroom:
    classroom = db.get(Classroom, class_id)
    if not classroom:
        raise HTTPException(status_code=404, detail="Class not found")
    if classroom.teacher_id != teacher.id:
        raise HTTPException(status_code=403, detail="You do not teach this class")
    return classroom


def _own_test(db: Session, test_id: str, teacher: User) -> Test:
    test = db.get(Test, test_id)
    if not test:
        raise HTTPException(status_code=404, detail="Test not found")
    if test.created_by != teacher.id:
        raise HTTPException(status_code=403, detail="This test belongs to another teacher")
    return test


def _check_questions(questions: List[AnyQuestion]) -> List[dict]:
    """Validate questions for saving and return them as stored dicts."""
    if not questions:
        raise HTTPException(status_code=400, detail="Please add questions to the test.")

    stored = []
    for position, q in enumerate(questions, start=1):
        if not q.question.strip():
            raise HTTPException(status_code=400, detail=f"Question {position} is empty")
        if isinstance(q, MCQQuestion):
            errors = mcq_errors(GenMCQQuestion(question=q.question, options=q.options, answer=q.answer), position)
            if errors:
                raise HTTPException(status_code=400, detail="; ".join(errors))
        stored.append(q.model_dump())
    return stored


@router.get("/classes", response_model=List[ClassResponse])
async def my_classes(db: Session = Depends(get_db), teacher: User = Depends(teacher_only)):
    """Classes assigned to the current teacher"""
    return db.query(Classroom).filter(Classroom.teacher_id == teacher.id).order_by(Classroom.name).all()


@router.post("/generate", response_model=GeneratedTestResponse)
async def generate_test(request: GenerateTestRequest, teacher: User = Depends(teacher_only)):
    """
    Generate a test for review. Nothing is saved until the teacher
    approves it through POST /tests.
    """
    topic, questions = await generate_material(
        request.test_type,
        request.topic,
        request.document_data_uri,
        count=request.number_of_questions if request.test_type == "mcq" else None,
    )
    return GeneratedTestResponse(topic=topic, questions=questions)


@router.post("/regenerate", response_model=Union[MCQQuestion, SubjectiveQuestion])
async def regenerate_question(request: RegenerateQuestionRequest, teacher: User = Depends(teacher_only)):
    """Generate one replacement question of the same type"""
    _, questions = await generate_material(
        request.question_type,
        request.topic,
        request.document_data_uri,
        count=1,
    )
    return questions[0]


@router.post("/tests", response_model=TestResponse, status_code=201)
async def save_test(
    request: TestCreate,
    db: Session = Depends(get_db),
    teacher: User = Depends(teacher_only),
):
    """Save as draft, or approve and assign to a class"""
    name = request.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Please provide a name for the test.")
    questions = _check_questions(request.questions)

    if not request.class_id and not request.is_draft:
        raise HTTPException(status_code=400, detail="Please select a class to assign the test to.")
    if request.class_id:
        _own_class(db, request.class_id, teacher)

    test = Test(
        name=name,
        class_id=request.class_id,
        questions=questions,
        created_by=teacher.id,
        is_draft=request.is_draft,
        document_base64=request.document_data_uri,
    )
    db.add(test)
    db.commit()
    db.refresh(test)
    logger.info("📝 Test %s %s by %s", test.id, "saved as draft" if test.is_draft else "assigned", teacher.email)
    return test


@router.get("/tests", response_model=List[TestResponse])
async def my_tests(db: Session = Depends(get_db), teacher: User = Depends(teacher_only)):
    return db.query(Test).filter(Test.created_by == teacher.id).order_by(Test.created_at.desc()).all()


@router.get("/tests/{test_id}", response_model=TestResponse)
async def get_test(test_id: str, db: Session = Depends(get_db), teacher: User = Depends(teacher_only)):
    return _own_test(db, test_id, teacher)


@router.put("/tests/{test_id}", response_model=TestResponse)
async def update_test(
    test_id: str,
    request: TestUpdate,
    db: Session = Depends(get_db),
    teacher: User = Depends(teacher_only),
):
    """Edit a test, e.g. finish a draft and assign it"""
    test = _own_test(db, test_id, teacher)

    if request.name is not None:
        if not request.name.strip():
            raise HTTPException(status_code=400, detail="Please provide a name for the test.")
        test.name = request.name.strip()

    if request.questions is not None:
        if test.submissions:
            raise HTTPException(status_code=409, detail="Questions cannot change once students have started the test")
        test.questions = _check_questions(request.questions)

    class_id: Optional[str] = test.class_id
    if "class_id" in request.model_fields_set:
        class_id = request.class_id
        if class_id:
            _own_class(db, class_id, teacher)
    is_draft = test.is_draft if request.is_draft is None else request.is_draft
    if not class_id and not is_draft:
        raise HTTPException(status_code=400, detail="Please select a class to assign the test to.")

    test.class_id = class_id
    test.is_draft = is_draft
    db.commit()
    db.refresh(test)
    return test


@router.get("/tests/{test_id}/submissions", response_model=List[SubmissionSummary])
async def test_submissions(test_id: str, db: Session = Depends(get_db), teacher: User = Depends(teacher_only)):
    """Submissions for one of the teacher's tests, with scores once evaluated"""
    test = _own_test(db, test_id, teacher)

    summaries = []
    for submission in db.query(Submission).filter(Submission.test_id == test.id).all():
        student = db.get(User, submission.student_id)
        summaries.append(SubmissionSummary(
            submission_id=submission.id,
            student_id=submission.student_id,
            student_email=student.email if student else None,
            status=submission.status,
            submitted_at=submission.submitted_at,
            score=score(Evaluation.model_validate(submission.evaluation)) if submission.evaluation else None,
        ))
    return summaries


@router.get("/tests/{test_id}/events")
async def test_events(
    test_id: str,
    request: Request,
    db: Session = Depends(get_db),
    teacher: User = Depends(teacher_only),
):
    """SSE stream of submissions for this test being evaluated"""
    _own_test(db, test_id, teacher)
    return event_stream(test_channel(test_id), request)
