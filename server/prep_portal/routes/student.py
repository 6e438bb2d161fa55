import logging
from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from prep_portal.database import get_db
from prep_portal.models import Classroom, Submission, SubmissionStatus, Test, User, UserRole
from prep_portal.schemas import (
    AnswersSavedResponse,
    AnswersUpdate,
    AssignedTest,
    Evaluation,
    ResultsResponse,
    StudentQuestion,
    SubmissionDetail,
    SubmissionResponse,
)
from prep_portal.services.auth import get_current_user, require_roles
from prep_portal.services.evaluation import (
    evaluate_submission,
    is_evaluating,
    mark_evaluating,
    score,
)
from prep_portal.services.sse_manager import event_stream, sse_manager, submission_channel

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Student"])

student_only = require_roles(UserRole.STUDENT)

ACTIONS = {
    SubmissionStatus.NOT_STARTED: "Start Test",
    SubmissionStatus.IN_PROGRESS: "Continue Test",
    SubmissionStatus.COMPLETED: "View Results",
}


def _is_assigned(test: Test, student: User) -> bool:
    return not test.is_draft and test.class_id is not None and test.class_id in (student.class_ids or [])


def _own_submission(db: Session, submission_id: str, student: User) -> Submission:
    submission = db.get(Submission, submission_id)
    if not submission or submission.student_id != student.id:
        raise HTTPException(status_code=404, detail="Submission not found")
    return submission


def _viewable_submission(db: Session, submission_id: str, user: User) -> Submission:
    """The owner, the class teacher, the test author or an admin may look."""
    submission = db.get(Submission, submission_id)
    if not submission:
        raise HTTPException(status_code=404, detail="Submission not found")

    if user.role == UserRole.ADMIN or submission.student_id == user.id:
        return submission
    if user.role == UserRole.TEACHER:
        if submission.test and submission.test.created_by == user.id:
            return submission
        classroom = db.get(Classroom, submission.class_id) if submission.class_id else None
        if classroom and classroom.teacher_id == user.id:
            return submission
    raise HTTPException(status_code=403, detail="Not allowed to view this submission")


def _detail(submission: Submission) -> SubmissionDetail:
    """Submission with its questions; MCQ answers stay hidden until evaluated."""
    completed = submission.status == SubmissionStatus.COMPLETED
    questions = [
        StudentQuestion(
            question=q["question"],
            type=q.get("type", "subjective"),
            options=q.get("options"),
            answer=q.get("answer") if completed else None,
        )
        for q in submission.test.questions
    ]
    base = SubmissionResponse.model_validate(submission)
    return SubmissionDetail(**base.model_dump(), test_name=submission.test.name, questions=questions)


def _check_answers(submission: Submission, answers: List[str]) -> None:
    if submission.evaluation:
        raise HTTPException(status_code=409, detail="This test has already been evaluated")
    if is_evaluating(submission.id):
        raise HTTPException(status_code=409, detail="This test is being evaluated")
    expected = len(submission.test.questions)
    if len(answers) != expected:
        raise HTTPException(status_code=400, detail=f"Expected {expected} answers, got {len(answers)}")


@router.get("/tests", response_model=List[AssignedTest])
async def assigned_tests(db: Session = Depends(get_db), student: User = Depends(student_only)):
    """Tests assigned to the student's classes, with progress"""
    class_ids = student.class_ids or []
    if not class_ids:
        return []

    tests = (
        db.query(Test)
        .filter(Test.class_id.in_(class_ids), Test.is_draft.is_(False))
        .order_by(Test.created_at.desc())
        .all()
    )
    submissions = {
        s.test_id: s
        for s in db.query(Submission).filter(Submission.student_id == student.id).all()
    }

    result = []
    for test in tests:
        submission = submissions.get(test.id)
        status = submission.status if submission else SubmissionStatus.NOT_STARTED
        result.append(AssignedTest(
            id=test.id,
            name=test.name,
            class_id=test.class_id,
            created_at=test.created_at,
            question_count=len(test.questions),
            status=status,
            action=ACTIONS[status],
            submission_id=submission.id if submission else None,
        ))
    return result


@router.post("/tests/{test_id}/start", response_model=SubmissionDetail)
async def start_test(test_id: str, db: Session = Depends(get_db), student: User = Depends(student_only)):
    """Start a test, or resume the existing attempt"""
    test = db.get(Test, test_id)
    if not test or not _is_assigned(test, student):
        raise HTTPException(status_code=404, detail="Test not found")

    submission = (
        db.query(Submission)
        .filter(Submission.test_id == test.id, Submission.student_id == student.id)
        .first()
    )
    if not submission:
        submission = Submission(
            test_id=test.id,
            student_id=student.id,
            class_id=test.class_id,
            answers=[""] * len(test.questions),
        )
        db.add(submission)
        db.commit()
        db.refresh(submission)
        logger.info("🚀 %s started test %s", student.email, test.id)

    return _detail(submission)


@router.get("/submissions/{submission_id}", response_model=SubmissionDetail)
async def get_submission(submission_id: str, db: Session = Depends(get_db), student: User = Depends(student_only)):
    return _detail(_own_submission(db, submission_id, student))


@router.put("/submissions/{submission_id}/answers", response_model=AnswersSavedResponse)
async def save_answers(
    submission_id: str,
    request: AnswersUpdate,
    db: Session = Depends(get_db),
    student: User = Depends(student_only),
):
    """Autosave; only writes when the answers actually changed"""
    submission = _own_submission(db, submission_id, student)
    _check_answers(submission, request.answers)

    saved = list(submission.answers or []) != request.answers
    if saved:
        submission.answers = list(request.answers)
        db.commit()
        db.refresh(submission)
        await sse_manager.broadcast(submission_channel(submission.id), {
            "type": "answers_saved",
            "data": {"answers": submission.answers},
        })

    return AnswersSavedResponse(saved=saved, submission=SubmissionResponse.model_validate(submission))


@router.post("/submissions/{submission_id}/submit", response_model=SubmissionResponse, status_code=202)
async def submit_test(
    submission_id: str,
    request: AnswersUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    student: User = Depends(student_only),
):
    """
    Submit final answers. Evaluation runs in the background and is
    announced on the submission's event stream.
    """
    submission = _own_submission(db, submission_id, student)
    _check_answers(submission, request.answers)
    if any(not answer.strip() for answer in request.answers):
        raise HTTPException(status_code=400, detail="Please answer all questions before submitting.")

    submission.answers = list(request.answers)
    submission.submitted_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(submission)

    mark_evaluating(submission.id)
    await sse_manager.broadcast(submission_channel(submission.id), {
        "type": "submitted",
        "data": {"submission_id": submission.id},
    })
    background_tasks.add_task(evaluate_submission, submission.id)
    logger.info("📨 %s submitted %s", student.email, submission.id)

    return submission


@router.get("/submissions/{submission_id}/results", response_model=ResultsResponse)
async def get_results(
    submission_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    submission = _viewable_submission(db, submission_id, user)
    test_name = submission.test.name if submission.test else None

    if not submission.evaluation:
        return ResultsResponse(
            status="pending",
            submission_id=submission.id,
            test_id=submission.test_id,
            test_name=test_name,
        )

    evaluation = Evaluation.model_validate(submission.evaluation)
    return ResultsResponse(
        status="completed",
        submission_id=submission.id,
        test_id=submission.test_id,
        test_name=test_name,
        evaluation=evaluation,
        score=score(evaluation),
    )


@router.get("/submissions/{submission_id}/events")
async def submission_events(
    submission_id: str,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """SSE stream for one submission: saves, submit, evaluation outcome"""
    _viewable_submission(db, submission_id, user)
    return event_stream(submission_channel(submission_id), request)
