"""
Submission evaluation.

Runs after a student submits: grades the answers with the LLM, stores the
evaluation on the submission and notifies listeners.
"""
import asyncio
import logging
from typing import List, Optional, Set

from prep_portal import database
from prep_portal.generators.schemas import normalize_option
from prep_portal.models import Submission
from prep_portal.schemas import (
    Evaluation,
    EvaluationResult,
    QuestionForEvaluation,
    ScoreSummary,
)
from prep_portal.services.llm_service import GenEvaluation
from prep_portal.services.sse_manager import sse_manager, submission_channel, test_channel

logger = logging.getLogger(__name__)

# Submissions with an evaluation currently running
_in_flight: Set[str] = set()

MISSING_VERDICT = "The evaluator did not return feedback for this question."


def is_evaluating(submission_id: str) -> bool:
    return submission_id in _in_flight


def mark_evaluating(submission_id: str) -> None:
    _in_flight.add(submission_id)


def questions_for_evaluation(questions: List[dict]) -> List[QuestionForEvaluation]:
    """Strip stored test questions down to what the evaluator needs."""
    result = []
    for q in questions:
        if q.get("type") == "mcq":
            result.append(QuestionForEvaluation(
                question=q["question"],
                type="mcq",
                options=q.get("options", []),
                correct_answer=q.get("answer"),
            ))
        else:
            result.append(QuestionForEvaluation(question=q["question"], type="subjective"))
    return result


def mcq_is_correct(user_answer: str, correct_answer: Optional[str]) -> bool:
    if not correct_answer:
        return False
    return normalize_option(user_answer) == normalize_option(correct_answer)


def merge_results(
    questions: List[QuestionForEvaluation],
    answers: List[str],
    generated: GenEvaluation,
) -> Evaluation:
    """
    Combine the LLM's grading with the stored answer key.

    MCQ correctness always comes from the answer key; the LLM only explains.
    Missing results (the model returned too few) get a neutral explanation.
    """
    results = []
    for index, question in enumerate(questions):
        user_answer = answers[index] if index < len(answers) else ""
        verdict = generated.results[index] if index < len(generated.results) else None

        if question.type == "mcq":
            is_correct = mcq_is_correct(user_answer, question.correct_answer)
            explanation = verdict.explanation if verdict else f"Correct answer: {question.correct_answer}"
        else:
            is_correct = verdict.is_correct if verdict else False
            explanation = verdict.explanation if verdict else MISSING_VERDICT

        results.append(EvaluationResult(
            question=question.question,
            type=question.type,
            user_answer=user_answer,
            is_correct=is_correct,
            explanation=explanation,
        ))

    return Evaluation(results=results, overall_feedback=generated.overall_feedback)


def score(evaluation: Evaluation) -> ScoreSummary:
    total = len(evaluation.results)
    correct = sum(1 for r in evaluation.results if r.is_correct)
    percentage = (correct / total * 100) if total > 0 else 0
    return ScoreSummary(correct=correct, total=total, percentage=round(percentage, 1))


async def evaluate_submission(submission_id: str) -> Optional[Evaluation]:
    """
    Background task: grade a submitted test and store the evaluation.

    On failure the submission keeps `evaluation = None` so the student can
    submit again, and an `evaluation_failed` event is pushed.
    """
    from prep_portal.services.llm_service import llm_service

    mark_evaluating(submission_id)
    db = database.SessionLocal()
    try:
        submission = db.get(Submission, submission_id)
        if not submission or not submission.test:
            logger.warning("⚠️ Submission %s vanished before evaluation", submission_id)
            return None

        test = submission.test
        questions = questions_for_evaluation(test.questions)
        answers = list(submission.answers or [])
        logger.info("🤖 Evaluating submission %s (%d questions)", submission_id, len(questions))

        generated = await asyncio.to_thread(
            llm_service.evaluate_test,
            topic=test.name,
            questions=questions,
            answers=answers,
        )
        if generated is None:
            logger.error("❌ Evaluation failed for submission %s", submission_id)
            await sse_manager.broadcast(submission_channel(submission_id), {
                "type": "evaluation_failed",
                "message": "Evaluation failed, please submit again.",
            })
            return None

        if len(generated.results) != len(questions):
            logger.warning(
                "⚠️ Evaluator returned %d results for %d questions",
                len(generated.results), len(questions),
            )

        evaluation = merge_results(questions, answers, generated)
        submission.evaluation = evaluation.model_dump()
        db.commit()

        summary = score(evaluation)
        logger.info(
            "✅ Submission %s evaluated: %d/%d", submission_id, summary.correct, summary.total,
        )

        await sse_manager.broadcast(submission_channel(submission_id), {
            "type": "evaluation_ready",
            "data": {"submission_id": submission_id, "score": summary.model_dump()},
        })
        await sse_manager.broadcast(test_channel(test.id), {
            "type": "submission_evaluated",
            "data": {
                "submission_id": submission_id,
                "student_id": submission.student_id,
                "score": summary.model_dump(),
            },
        })
        return evaluation

    except Exception as e:
        db.rollback()
        logger.exception("❌ Evaluation crashed for submission %s", submission_id)
        await sse_manager.broadcast(submission_channel(submission_id), {
            "type": "evaluation_failed",
            "message": str(e),
        })
        return None
    finally:
        _in_flight.discard(submission_id)
        db.close()
