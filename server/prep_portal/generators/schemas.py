"""
Generation Schemas.

Response models handed to the LLM. They carry no 'type' field; the
generators inject it when converting to the application schemas in
prep_portal.schemas.

IMPORTANT: an MCQ 'answer' is the text of the correct option, not a letter
or an index. Shuffling options therefore never invalidates it.
"""
from typing import List
from pydantic import BaseModel


class GenFlashCard(BaseModel):
    front: str
    back: str


class GenFlashCards(BaseModel):
    cards: List[GenFlashCard]


class GenMCQQuestion(BaseModel):
    question: str
    options: List[str]
    answer: str


class GenMCQTest(BaseModel):
    questions: List[GenMCQQuestion]


class GenSubjectiveTest(BaseModel):
    questions: List[str]


def normalize_option(text: str) -> str:
    """Comparison form of an option or answer."""
    return " ".join(text.split()).casefold()


def mcq_errors(question: GenMCQQuestion, position: int) -> List[str]:
    """Problems with a single generated MCQ, empty when it is usable."""
    errors = []
    label = f"Question {position}"
    if not question.question.strip():
        errors.append(f"{label}: question text is empty")
    options = [normalize_option(o) for o in question.options]
    if len(options) != 4:
        errors.append(f"{label}: has {len(options)} options, expected 4")
    if any(not o for o in options):
        errors.append(f"{label}: has an empty option")
    if len(set(options)) != len(options):
        errors.append(f"{label}: options are not distinct")
    if normalize_option(question.answer) not in options:
        errors.append(f"{label}: answer '{question.answer}' is not one of the options")
    return errors
