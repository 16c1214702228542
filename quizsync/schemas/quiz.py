"""
Pydantic schemas for quiz records, attempts and sync requests
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Dict, Any, Optional
from datetime import datetime

from quizsync.config import settings

BUILTIN_CATEGORIES = [
    "General Knowledge",
    "Mathematics",
    "Science",
    "Reasoning",
    "Custom",
]
DEFAULT_CATEGORY = "General Knowledge"


class Question(BaseModel):
    """Multiple-choice question; correct_answer holds the option text"""
    question: str = Field(..., min_length=1)
    options: List[str] = Field(..., min_length=1)
    correct_answer: str = Field(..., min_length=1)
    answer_description: str = ""
    question_images: List[str] = Field(default_factory=list)
    answer_images: List[str] = Field(default_factory=list)


class QuestionResult(BaseModel):
    """Outcome of a single question inside an attempt"""
    question: str
    user_answer: str
    correct_answer: str
    is_correct: bool


class QuizAttempt(BaseModel):
    """One scored run through a quiz"""
    date: datetime
    score: int = Field(..., ge=0)
    total_questions: int = Field(..., ge=0)
    time_spent: int = Field(..., ge=0, description="Seconds spent")
    question_results: List[QuestionResult] = Field(default_factory=list)


class QuizContent(BaseModel):
    """Quiz payload; reconciliation treats it as one unit"""
    title: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    questions: List[Question]
    timer: int = Field(settings.DEFAULT_QUIZ_TIMER, gt=0, description="Countdown in seconds")
    category: str = Field(DEFAULT_CATEGORY, min_length=1, max_length=50)
    is_public: bool = True
    password: Optional[str] = None
    history: List[QuizAttempt] = Field(default_factory=list)
    last_taken: Optional[datetime] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("title must not be blank")
        return value


class QuizRecord(QuizContent):
    """Quiz content plus identity and version metadata"""
    id: Optional[str] = None
    version: Optional[int] = Field(None, ge=1)
    created_at: Optional[datetime] = None


class QuizCreate(QuizContent):
    """Request schema for creating a quiz"""
    id: Optional[str] = Field(None, max_length=64, description="Stable id, generated when omitted")


class QuizUpdate(BaseModel):
    """Partial update; every accepted update bumps the version by one"""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    questions: Optional[List[Question]] = None
    timer: Optional[int] = Field(None, gt=0)
    category: Optional[str] = Field(None, min_length=1, max_length=50)
    is_public: Optional[bool] = None
    password: Optional[str] = None


class QuizResponse(QuizContent):
    """Quiz as returned by the API"""
    id: str
    version: int
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class RecordError(BaseModel):
    """A rejected incoming record"""
    position: Optional[int] = None
    record_id: Optional[str] = None
    message: str


class SyncRequest(BaseModel):
    """
    Quizzes pushed by a device

    Records stay untyped here so one malformed entry is reported
    instead of failing the whole batch.
    """
    quizzes: List[Dict[str, Any]]


class SyncResponse(BaseModel):
    """Result of a sync or import"""
    quizzes: List[QuizResponse]
    created: List[str]
    updated: List[str]
    skipped: List[str]
    errors: List[RecordError]


class AttemptSubmission(BaseModel):
    """Answers in question order; None marks an unanswered question"""
    answers: List[Optional[str]]
    time_spent: int = Field(..., ge=0, description="Seconds spent")


class MergeRequest(BaseModel):
    """Combine questions of several quizzes into a new quiz"""
    quiz_ids: List[str] = Field(..., min_length=2)
    title: str = Field(..., min_length=1, max_length=255)
    category: str = Field(DEFAULT_CATEGORY, min_length=1, max_length=50)


class ImportRequest(BaseModel):
    """Pasted export text (plain JSON or obfuscated)"""
    text: str = Field(..., min_length=1)


class ExportResponse(BaseModel):
    """Export text for download or sharing"""
    content: str
    encoded: bool
    count: int
