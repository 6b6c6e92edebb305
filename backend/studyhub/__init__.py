"""Study Hub backend: flashcard scheduling and practice exams."""

__version__ = "1.0.0"
