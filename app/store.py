"""
Persistence boundary for scoring, ranking and analytics

Reads return plain dict snapshots detached from the session, so the
services above only ever see data, never ORM state. Writes of an attempt and
its answers happen in one transaction.
"""
import logging
from contextlib import contextmanager
from typing import Any, Dict, List

from sqlalchemy import select, func, distinct
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from app.database import SessionLocal
from app.errors import NotFoundError, StoreError
from app.models import User, Category, Question, Quiz, QuizQuestion, QuizAttempt, Answer
from app.utils.options import normalize_options
from app.utils.time_utils import to_iso

logger = logging.getLogger(__name__)

ATTEMPT_JOINS = (
    selectinload(QuizAttempt.quiz).selectinload(Quiz.category),
    selectinload(QuizAttempt.user),
    selectinload(QuizAttempt.answers).selectinload(Answer.question),
)


class AttemptStore:
    def __init__(self, session_factory=None):
        self.session_factory = session_factory or SessionLocal

    @contextmanager
    def _session(self, operation: str):
        try:
            with self.session_factory() as session:
                yield session
        except SQLAlchemyError as e:
            logger.error(f"Store error during {operation}: {e}")
            raise StoreError(f"Failed to {operation}") from e

    def load_quiz(self, quiz_id: str) -> Dict[str, Any]:
        """Quiz with its questions in quiz order"""
        with self._session("load quiz") as session:
            quiz = session.get(
                Quiz,
                quiz_id,
                options=[
                    selectinload(Quiz.questions).selectinload(QuizQuestion.question),
                    selectinload(Quiz.category),
                ],
            )
            if quiz is None:
                raise NotFoundError("Quiz not found")

            return {
                "id": quiz.id,
                "title": quiz.title,
                "description": quiz.description,
                "categoryId": quiz.category_id,
                "categoryName": quiz.category.name if quiz.category else None,
                "questions": [
                    {
                        "questionId": link.question.id,
                        "points": link.question.points,
                        "type": link.question.type,
                        "correctAnswer": link.question.correct_answer
                    }
                    for link in quiz.questions
                    if link.question is not None
                ]
            }

    def get_user(self, user_id: str) -> Dict[str, Any]:
        with self._session("load user") as session:
            user = session.get(User, user_id)
            if user is None:
                raise NotFoundError("User not found")
            return {"id": user.id, "name": user.display_name, "email": user.email}

    def save_attempt(self, attempt: Dict[str, Any], answers: List[Dict[str, Any]]) -> str:
        """
        Insert an attempt and all of its answers atomically

        Either both the attempt and every answer row are committed, or the
        transaction is rolled back and nothing is stored.
        """
        try:
            with self.session_factory.begin() as session:
                row = QuizAttempt(**attempt)
                session.add(row)
                session.flush()

                session.add_all([
                    Answer(quiz_attempt_id=row.id, **answer)
                    for answer in answers
                ])
                attempt_id = row.id
        except SQLAlchemyError as e:
            logger.error(f"Store error while saving attempt for user {attempt.get('user_id')}: {e}")
            raise StoreError("Failed to save quiz attempt") from e

        logger.info(f"Saved attempt {attempt_id} with {len(answers)} answers")
        return attempt_id

    def all_attempts(self) -> List[Dict[str, Any]]:
        with self._session("load attempts") as session:
            attempts = session.scalars(select(QuizAttempt).options(*ATTEMPT_JOINS)).all()
            return [self._snapshot(attempt) for attempt in attempts]

    def attempts_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        """One user's attempts, oldest first"""
        with self._session("load user attempts") as session:
            query = (
                select(QuizAttempt)
                .where(QuizAttempt.user_id == user_id)
                .options(*ATTEMPT_JOINS)
                .order_by(QuizAttempt.completed_at.asc())
            )
            return [self._snapshot(attempt) for attempt in session.scalars(query).all()]

    def user_standings(self) -> List[Dict[str, Any]]:
        """Per-user score aggregates for every user with at least one attempt"""
        with self._session("load standings") as session:
            query = (
                select(
                    QuizAttempt.user_id,
                    User.name,
                    User.email,
                    func.sum(QuizAttempt.score).label("total_score"),
                    func.sum(QuizAttempt.max_score).label("max_score"),
                    func.avg(QuizAttempt.percentage).label("average_percentage"),
                    func.count(QuizAttempt.id).label("attempt_count"),
                    func.max(QuizAttempt.score).label("best_score")
                )
                .join(User, User.id == QuizAttempt.user_id)
                .group_by(QuizAttempt.user_id, User.name, User.email)
            )
            rows = session.execute(query).all()

            return [{
                "user_id": row.user_id,
                "name": row.name or row.email,
                "email": row.email,
                "total_score": int(row.total_score or 0),
                "max_score": int(row.max_score or 0),
                "average_percentage": float(row.average_percentage or 0),
                "attempt_count": int(row.attempt_count),
                "best_score": int(row.best_score or 0)
            } for row in rows]

    def platform_totals(self) -> Dict[str, int]:
        with self._session("count platform totals") as session:
            def count(query):
                return int(session.scalar(query) or 0)

            return {
                "totalUsers": count(select(func.count()).select_from(User)),
                "totalCategories": count(select(func.count()).select_from(Category)),
                "totalQuestions": count(select(func.count()).select_from(Question)),
                "totalQuizzes": count(select(func.count()).select_from(Quiz).where(Quiz.is_active.is_(True))),
                "totalAttempts": count(select(func.count()).select_from(QuizAttempt)),
                "activeUsers": count(select(func.count(distinct(QuizAttempt.user_id))))
            }

    def attempt_detail(self, attempt_id: str) -> Dict[str, Any]:
        """The persisted attempt with user, quiz and answered questions"""
        with self._session("load attempt") as session:
            attempt = session.get(QuizAttempt, attempt_id, options=list(ATTEMPT_JOINS))
            if attempt is None:
                raise NotFoundError("Quiz attempt not found")

            return {
                "id": attempt.id,
                "userId": attempt.user_id,
                "quizId": attempt.quiz_id,
                "score": attempt.score,
                "maxScore": attempt.max_score,
                "percentage": attempt.percentage,
                "timeSpent": attempt.time_spent,
                "timingSuspect": attempt.timing_suspect,
                "startedAt": to_iso(attempt.started_at),
                "completedAt": to_iso(attempt.completed_at),
                "user": {
                    "id": attempt.user.id,
                    "name": attempt.user.name,
                    "email": attempt.user.email
                },
                "quiz": {
                    "id": attempt.quiz.id,
                    "title": attempt.quiz.title,
                    "description": attempt.quiz.description
                },
                "answers": [
                    {
                        "id": answer.id,
                        "questionId": answer.question_id,
                        "answer": answer.answer,
                        "isCorrect": answer.is_correct,
                        "points": answer.points,
                        "question": self._question_payload(answer.question)
                    }
                    for answer in attempt.answers
                ]
            }

    @staticmethod
    def _question_payload(question: Question) -> Dict[str, Any]:
        if question is None:
            return None
        return {
            "id": question.id,
            "content": question.content,
            "type": question.type,
            "options": normalize_options(question.options),
            "correctAnswer": question.correct_answer,
            "points": question.points,
            "categoryId": question.category_id
        }

    @staticmethod
    def _snapshot(attempt: QuizAttempt) -> Dict[str, Any]:
        quiz = attempt.quiz
        category = quiz.category if quiz else None
        user = attempt.user
        return {
            "id": attempt.id,
            "user_id": attempt.user_id,
            "user_name": user.name if user else None,
            "user_email": user.email if user else None,
            "quiz_id": attempt.quiz_id,
            "quiz_title": quiz.title if quiz else None,
            "category_id": category.id if category else None,
            "category_name": category.name if category else None,
            "score": attempt.score,
            "max_score": attempt.max_score,
            "percentage": attempt.percentage,
            "time_spent": attempt.time_spent,
            "timing_suspect": attempt.timing_suspect,
            "started_at": attempt.started_at,
            "completed_at": attempt.completed_at,
            "answers": [
                {
                    "question_id": answer.question_id,
                    "question_content": answer.question.content if answer.question else None,
                    "answer": answer.answer,
                    "is_correct": answer.is_correct,
                    "points": answer.points,
                    "created_at": answer.created_at
                }
                for answer in attempt.answers
            ]
        }


def get_store() -> AttemptStore:
    return AttemptStore()
