"""Exam session lifecycle, question selection and scoring."""
