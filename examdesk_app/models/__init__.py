"""Database models package for ExamDesk."""

from ..core.extensions import db

from .user import RetiredUser, User
from .quiz import Quiz, QuizQuestion
from .result import QuizResult

__all__ = [
    'db',
    'User',
    'RetiredUser',
    'Quiz',
    'QuizQuestion',
    'QuizResult',
]
