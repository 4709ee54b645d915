from .user import User
from .category import Category
from .question import Question
from .quiz import Quiz, QuizQuestion
from .quiz_attempt import QuizAttempt
from .answer import Answer

__all__ = ["User", "Category", "Question", "Quiz", "QuizQuestion", "QuizAttempt", "Answer"]
