#!/usr/bin/env python3
"""Script to seed demo data: a small PANCE question bank and one flashcard deck."""

import sys
from datetime import UTC, datetime
from pathlib import Path
from uuid import UUID

# Add parent directory to path to import studyhub modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import select

import studyhub.models  # noqa: F401
from studyhub.core.logging import get_logger, setup_logging
from studyhub.db.base import Base
from studyhub.db.engine import engine
from studyhub.db.session import SessionLocal
from studyhub.learning_engine.srs import service as srs_service
from studyhub.models.flashcard import Deck
from studyhub.models.question import AnswerOption, DifficultyLevel, Question, QuestionCategory

logger = get_logger(__name__)

DEMO_OWNER_ID = UUID("00000000-0000-4000-8000-000000000001")

# (category, difficulty, stem, options, correct index, explanation)
DEMO_QUESTIONS = [
    (
        QuestionCategory.CARDIOLOGY,
        DifficultyLevel.MEDIUM,
        "A 64-year-old presents with crushing chest pain and ST elevation in II, III and aVF. "
        "Which coronary artery is most likely occluded?",
        ["Left anterior descending", "Left circumflex", "Right coronary", "Left main"],
        2,
        "Inferior leads II, III and aVF are usually supplied by the right coronary artery.",
    ),
    (
        QuestionCategory.CARDIOLOGY,
        DifficultyLevel.EASY,
        "Which murmur is classically heard in aortic stenosis?",
        [
            "Crescendo-decrescendo systolic murmur at the right upper sternal border",
            "Holosystolic murmur at the apex",
            "Diastolic rumble at the apex",
            "Continuous machinery murmur",
        ],
        0,
        "Aortic stenosis produces a crescendo-decrescendo systolic ejection murmur radiating to the carotids.",
    ),
    (
        QuestionCategory.PULMONOLOGY,
        DifficultyLevel.MEDIUM,
        "What is the first-line controller medication for persistent asthma?",
        ["Short-acting beta agonist", "Inhaled corticosteroid", "Oral theophylline", "Montelukast"],
        1,
        "Inhaled corticosteroids are the preferred long-term controller for persistent asthma.",
    ),
    (
        QuestionCategory.ENDOCRINOLOGY,
        DifficultyLevel.EASY,
        "Which laboratory value confirms diabetes mellitus?",
        ["HbA1c of 5.9%", "Fasting glucose of 110 mg/dL", "HbA1c of 6.7%", "Random glucose of 150 mg/dL"],
        2,
        "An HbA1c of 6.5% or higher meets the diagnostic threshold.",
    ),
    (
        QuestionCategory.NEUROLOGY,
        DifficultyLevel.HARD,
        "A patient has ptosis, miosis and anhidrosis on the left. Which structure is affected?",
        ["Oculomotor nerve", "Sympathetic chain", "Facial nerve", "Abducens nerve"],
        1,
        "Horner syndrome results from interruption of the oculosympathetic pathway.",
    ),
    (
        QuestionCategory.GASTROENTEROLOGY,
        DifficultyLevel.MEDIUM,
        "Which test is most appropriate to confirm eradication of H. pylori?",
        ["Serology", "Urea breath test", "Stool guaiac", "Upper GI series"],
        1,
        "Serology stays positive after treatment; the urea breath test reflects active infection.",
    ),
]

DEMO_CARDS = [
    ("Normal adult resting heart rate", "60-100 bpm", None),
    ("Inferior MI leads", "II, III, aVF", "Think right coronary"),
    ("Horner syndrome triad", "Ptosis, miosis, anhidrosis", None),
    ("HbA1c diagnostic threshold for diabetes", "6.5% or higher", None),
    ("First-line controller for persistent asthma", "Inhaled corticosteroid", None),
]


def seed_demo_data() -> None:
    """Seed the demo question bank and deck, skipping rows that already exist."""
    Base.metadata.create_all(bind=engine)
    now = datetime.now(UTC)
    db = SessionLocal()
    try:
        questions_created = 0
        for category, difficulty, stem, options, correct_idx, explanation in DEMO_QUESTIONS:
            existing = db.scalar(select(Question).where(Question.stem == stem))
            if existing:
                logger.info("Question already exists, skipping", extra={"question_id": str(existing.id)})
                continue

            question = Question(stem=stem, category=category, difficulty=difficulty, explanation=explanation)
            for position, text in enumerate(options):
                question.options.append(
                    AnswerOption(text=text, is_correct=position == correct_idx, position=position)
                )
            db.add(question)
            questions_created += 1

        db.commit()
        logger.info(f"Created {questions_created} questions")

        deck = db.scalar(select(Deck).where(Deck.owner_id == DEMO_OWNER_ID, Deck.name == "PANCE essentials"))
        cards_created = 0
        if deck is None:
            deck = srs_service.create_deck(
                db, DEMO_OWNER_ID, "PANCE essentials", description="High-yield facts"
            )
            for front, back, hint in DEMO_CARDS:
                srs_service.add_card(db, deck, front=front, back=back, now=now, hint=hint)
                cards_created += 1
        logger.info(f"Created {cards_created} flashcards", extra={"deck_id": str(deck.id)})

        print("\n✓ Demo data seeded successfully!")
        print(f"  Questions created: {questions_created}/{len(DEMO_QUESTIONS)}")
        print(f"  Flashcards created: {cards_created}/{len(DEMO_CARDS)}")
        print(f"\nDemo owner (send as X-User-Id): {DEMO_OWNER_ID}")
        print(f"Demo deck: {deck.id}")

    except Exception as e:
        db.rollback()
        logger.error(f"Error seeding demo data: {e}", exc_info=True)
        print(f"\n✗ Error seeding demo data: {e}")
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    setup_logging()
    print("Seeding demo data (question bank + flashcard deck)...")
    seed_demo_data()
