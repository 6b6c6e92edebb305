"""Database models."""

# Import all models here so Base.metadata sees every table
from studyhub.models.exam import ExamAnswer, ExamSession, ExamSessionQuestion
from studyhub.models.flashcard import Card, Deck, ReviewSchedule
from studyhub.models.progress import ProgressEvent, ProgressEventType
from studyhub.models.question import AnswerOption, DifficultyLevel, Question, QuestionCategory

__all__ = [
    "AnswerOption",
    "Card",
    "Deck",
    "DifficultyLevel",
    "ExamAnswer",
    "ExamSession",
    "ExamSessionQuestion",
    "ProgressEvent",
    "ProgressEventType",
    "Question",
    "QuestionCategory",
    "ReviewSchedule",
]
