"""Question bank access and frozen question snapshots."""

from dataclasses import dataclass
from typing import Any, Protocol
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from studyhub.learning_engine.errors import QuestionBankUnavailableError, StoreUnavailableError
from studyhub.models.question import DifficultyLevel, Question, QuestionCategory
from studyhub.services.session_store import read_with_retry


@dataclass(frozen=True)
class OptionSnapshot:
    id: UUID
    text: str
    is_correct: bool


@dataclass(frozen=True)
class QuestionSnapshot:
    """Question content as it was when a session started.

    Later edits to the bank never reach a session that already holds a snapshot.
    """

    id: UUID
    stem: str
    category: QuestionCategory
    difficulty: DifficultyLevel
    explanation: str | None
    options: tuple[OptionSnapshot, ...]

    @property
    def correct_option_id(self) -> UUID | None:
        for option in self.options:
            if option.is_correct:
                return option.id
        return None

    def has_option(self, option_id: UUID) -> bool:
        return any(option.id == option_id for option in self.options)

    def to_json(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "stem": self.stem,
            "category": self.category.value,
            "difficulty": self.difficulty.value,
            "explanation": self.explanation,
            "options": [
                {"id": str(o.id), "text": o.text, "is_correct": o.is_correct} for o in self.options
            ],
        }

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "QuestionSnapshot":
        return cls(
            id=UUID(data["id"]),
            stem=data["stem"],
            category=QuestionCategory(data["category"]),
            difficulty=DifficultyLevel(data["difficulty"]),
            explanation=data.get("explanation"),
            options=tuple(
                OptionSnapshot(id=UUID(o["id"]), text=o["text"], is_correct=bool(o["is_correct"]))
                for o in data["options"]
            ),
        )

    @classmethod
    def from_model(cls, question: Question) -> "QuestionSnapshot":
        return cls(
            id=question.id,
            stem=question.stem,
            category=QuestionCategory(question.category),
            difficulty=DifficultyLevel(question.difficulty),
            explanation=question.explanation,
            options=tuple(
                OptionSnapshot(id=o.id, text=o.text, is_correct=o.is_correct)
                for o in question.options
            ),
        )


class QuestionBank(Protocol):
    def find_pool(
        self,
        category: QuestionCategory | None = None,
        difficulty: DifficultyLevel | None = None,
    ) -> list[QuestionSnapshot]: ...


class SqlQuestionBank:
    """Active questions from the ``questions`` table."""

    def __init__(self, db: Session):
        self.db = db

    def find_pool(
        self,
        category: QuestionCategory | None = None,
        difficulty: DifficultyLevel | None = None,
    ) -> list[QuestionSnapshot]:
        stmt = select(Question).options(selectinload(Question.options)).where(Question.is_active.is_(True))
        if category is not None:
            stmt = stmt.where(Question.category == category)
        if difficulty is not None:
            stmt = stmt.where(Question.difficulty == difficulty)

        try:
            questions = read_with_retry(self.db, "question_pool", lambda: list(self.db.scalars(stmt)))
        except StoreUnavailableError as e:
            raise QuestionBankUnavailableError() from e

        return [QuestionSnapshot.from_model(q) for q in questions]
