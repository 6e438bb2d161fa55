from pydantic import BaseModel, Field
from typing import Optional, List, Union, Literal, Annotated
from datetime import datetime
from prep_portal.config import settings
from prep_portal.models.user import UserRole
from prep_portal.models.submission import SubmissionStatus


# User Schemas
class UserBase(BaseModel):
    email: str
    role: UserRole


class UserCreate(UserBase):
    password: Optional[str] = None


class UserResponse(UserBase):
    id: str
    class_ids: List[str] = []
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserCreatedResponse(BaseModel):
    user: UserResponse
    message: str
    temporary_password: Optional[str] = None


class ProfileResponse(UserResponse):
    dashboard: str


# Auth Schemas
class LoginRequest(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: ProfileResponse


class ChangePasswordRequest(BaseModel):
    new_password: str
    confirm_password: str


# Class Schemas
class ClassCreate(BaseModel):
    name: str
    division: str


class ClassUpdate(BaseModel):
    """Roster edit: full replacement of teacher and students"""
    teacher_id: Optional[str] = None
    student_ids: List[str] = []


class ClassResponse(ClassCreate):
    id: str
    teacher_id: Optional[str] = None
    student_ids: List[str] = []

    class Config:
        from_attributes = True


class RosterDiff(BaseModel):
    added: List[str]
    removed: List[str]


class ClassUpdateResponse(BaseModel):
    classroom: ClassResponse
    diff: RosterDiff


# Question Schemas
class MCQQuestion(BaseModel):
    question: str
    options: List[str]
    answer: str
    type: Literal["mcq"] = "mcq"


class SubjectiveQuestion(BaseModel):
    question: str
    type: Literal["subjective"] = "subjective"


AnyQuestion = Annotated[Union[MCQQuestion, SubjectiveQuestion], Field(discriminator="type")]


class FlashCard(BaseModel):
    front: str
    back: str


# Generation Requests
class GenerationSource(BaseModel):
    topic: Optional[str] = None
    document_data_uri: Optional[str] = None


class GenerateTestRequest(GenerationSource):
    test_type: Literal["mcq", "subjective"] = "mcq"
    number_of_questions: int = Field(ge=1, le=settings.max_question_count, default=settings.default_question_count)


class RegenerateQuestionRequest(GenerationSource):
    question_type: Literal["mcq", "subjective"]


class FlashCardsRequest(GenerationSource):
    number_of_cards: int = Field(ge=1, le=settings.max_question_count, default=settings.default_question_count)


class PracticeMCQRequest(GenerationSource):
    number_of_questions: int = Field(ge=1, le=settings.max_question_count, default=settings.default_question_count)


class GeneratedTestResponse(BaseModel):
    topic: str
    questions: List[AnyQuestion]


class FlashCardsResponse(BaseModel):
    topic: str
    cards: List[FlashCard]


# Test Schemas
class TestCreate(BaseModel):
    name: str
    questions: List[AnyQuestion]
    class_id: Optional[str] = None
    is_draft: bool = False
    document_data_uri: Optional[str] = None


class TestUpdate(BaseModel):
    name: Optional[str] = None
    questions: Optional[List[AnyQuestion]] = None
    class_id: Optional[str] = None
    is_draft: Optional[bool] = None


class TestResponse(BaseModel):
    id: str
    name: str
    class_id: Optional[str] = None
    questions: List[AnyQuestion]
    created_by: str
    created_at: Optional[datetime] = None
    is_draft: bool

    class Config:
        from_attributes = True


# Evaluation Schemas
class QuestionForEvaluation(BaseModel):
    question: str
    type: Literal["mcq", "subjective"]
    correct_answer: Optional[str] = None
    options: Optional[List[str]] = None


class EvaluationResult(BaseModel):
    question: str
    type: Literal["mcq", "subjective"]
    user_answer: str
    is_correct: bool
    explanation: str


class Evaluation(BaseModel):
    results: List[EvaluationResult]
    overall_feedback: str


# Submission Schemas
class AnswersUpdate(BaseModel):
    answers: List[str]


class SubmissionResponse(BaseModel):
    id: str
    test_id: str
    student_id: str
    class_id: Optional[str] = None
    answers: List[str]
    evaluation: Optional[Evaluation] = None
    status: SubmissionStatus
    started_at: Optional[datetime] = None
    submitted_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StudentQuestion(BaseModel):
    """A question as shown to a student; the answer only after evaluation"""
    question: str
    type: Literal["mcq", "subjective"]
    options: Optional[List[str]] = None
    answer: Optional[str] = None


class SubmissionDetail(SubmissionResponse):
    test_name: str
    questions: List[StudentQuestion]


class AnswersSavedResponse(BaseModel):
    saved: bool
    submission: SubmissionResponse


class AssignedTest(BaseModel):
    id: str
    name: str
    class_id: str
    created_at: Optional[datetime] = None
    question_count: int
    status: SubmissionStatus
    action: str
    submission_id: Optional[str] = None


class ScoreSummary(BaseModel):
    correct: int
    total: int
    percentage: float


class SubmissionSummary(BaseModel):
    submission_id: str
    student_id: str
    student_email: Optional[str] = None
    status: SubmissionStatus
    submitted_at: Optional[datetime] = None
    score: Optional[ScoreSummary] = None


class ResultsResponse(BaseModel):
    status: Literal["pending", "completed"]
    submission_id: str
    test_id: str
    test_name: Optional[str] = None
    evaluation: Optional[Evaluation] = None
    score: Optional[ScoreSummary] = None
