"""
Class roster reconciliation.

A class keeps its roster in `student_ids` and every student keeps the reverse
index in `class_ids`. Editing a roster rewrites both sides in one transaction.
"""
import logging
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from prep_portal.models import Classroom, Submission, Test, User, UserRole
from prep_portal.schemas import RosterDiff

logger = logging.getLogger(__name__)


class RosterError(ValueError):
    """Raised when a roster edit names unknown users or users with the wrong role."""


def dedupe(ids: Iterable[str]) -> List[str]:
    """Drop duplicates, keep first-seen order."""
    seen = set()
    result = []
    for item in ids:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


def diff_roster(original_ids: Iterable[str], new_ids: Iterable[str]) -> RosterDiff:
    original = set(original_ids)
    new = set(new_ids)
    return RosterDiff(added=sorted(new - original), removed=sorted(original - new))


def _with_class(class_ids: Optional[List[str]], class_id: str) -> List[str]:
    current = list(class_ids or [])
    if class_id not in current:
        current.append(class_id)
    return current


def _without_class(class_ids: Optional[List[str]], class_id: str) -> List[str]:
    return [cid for cid in (class_ids or []) if cid != class_id]


def _load_users(db: Session, ids: List[str]) -> dict:
    if not ids:
        return {}
    return {user.id: user for user in db.query(User).filter(User.id.in_(ids)).all()}


def reconcile_roster(
    db: Session,
    classroom: Classroom,
    teacher_id: Optional[str],
    student_ids: Iterable[str],
) -> RosterDiff:
    """
    Replace a class's teacher and roster, and update every affected student.

    Students in the new roster get the class ID added to their profile, students
    dropped from it get it removed. Students present in both are rewritten too so
    a profile that drifted is repaired. Nothing is written unless every ID checks out.

    Raises:
        RosterError: unknown teacher/student ID or wrong role. No changes are made.
    """
    teacher_id = teacher_id or None
    new_ids = dedupe(student_ids)
    original_ids = list(classroom.student_ids or [])

    if teacher_id:
        teacher = db.get(User, teacher_id)
        if not teacher or teacher.role != UserRole.TEACHER:
            raise RosterError(f"{teacher_id} is not a teacher")

    new_students = _load_users(db, new_ids)
    invalid = [sid for sid in new_ids if sid not in new_students or new_students[sid].role != UserRole.STUDENT]
    if invalid:
        raise RosterError(f"Not students: {', '.join(invalid)}")

    diff = diff_roster(original_ids, new_ids)
    affected = _load_users(db, dedupe(original_ids + new_ids))
    new_set = set(new_ids)

    try:
        classroom.teacher_id = teacher_id
        classroom.student_ids = new_ids

        for student_id, student in affected.items():
            if student_id in new_set:
                student.class_ids = _with_class(student.class_ids, classroom.id)
            else:
                student.class_ids = _without_class(student.class_ids, classroom.id)

        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Roster update for class %s failed, batch rolled back", classroom.id)
        raise

    db.refresh(classroom)
    logger.info(
        "📋 Class %s roster updated: +%d -%d (%d profiles rewritten)",
        classroom.id, len(diff.added), len(diff.removed), len(affected),
    )
    return diff


def delete_classroom(db: Session, classroom: Classroom) -> None:
    """Delete a class, strip it from student profiles and turn its tests back into drafts."""
    class_id = classroom.id
    try:
        for student in _load_users(db, list(classroom.student_ids or [])).values():
            student.class_ids = _without_class(student.class_ids, class_id)

        for test in db.query(Test).filter(Test.class_id == class_id).all():
            test.class_id = None
            test.is_draft = True

        db.delete(classroom)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("🗑️ Class %s deleted", class_id)


def remove_user_everywhere(db: Session, user: User) -> None:
    """Delete a user and every roster reference to them in one transaction."""
    user_id = user.id
    try:
        if user.role == UserRole.STUDENT:
            for classroom in db.query(Classroom).all():
                if user_id in (classroom.student_ids or []):
                    classroom.student_ids = [sid for sid in classroom.student_ids if sid != user_id]
            db.query(Submission).filter(Submission.student_id == user_id).delete(synchronize_session=False)
        elif user.role == UserRole.TEACHER:
            for classroom in db.query(Classroom).filter(Classroom.teacher_id == user_id).all():
                classroom.teacher_id = None

        db.delete(user)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("🗑️ User %s deleted", user_id)
