import pytest
from datetime import datetime
import pytz
from app.errors import NotFoundError, StoreError
from app.models import QuizAttempt, Answer

UTC = pytz.UTC

class TestAttemptStore:
    """Integration tests for the persistence layer"""

    def test_load_quiz_keeps_quiz_order(self, store, seeded):
        quiz = store.load_quiz("quiz-1")

        assert quiz["title"] == "World Basics"
        assert quiz["categoryName"] == "Geography"
        assert [q["questionId"] for q in quiz["questions"]] == ["q1", "q2"]
        assert quiz["questions"][1] == {"questionId": "q2", "points": 2, "type": "TEXT", "correctAnswer": "Paris"}

    def test_unknown_quiz_and_user(self, store, seeded):
        with pytest.raises(NotFoundError):
            store.load_quiz("missing")
        with pytest.raises(NotFoundError):
            store.get_user("missing")

    def test_user_without_name_falls_back_to_email(self, store, seeded):
        assert store.get_user("u3")["name"] == "anon@example.com"

    def test_attempt_and_answers_saved_together(self, store, seeded, session_factory):
        attempt_id = store.save_attempt(
            {
                "user_id": "u1", "quiz_id": "quiz-1", "score": 1, "max_score": 3,
                "percentage": 33.3, "time_spent": 40, "timing_suspect": False,
                "started_at": datetime(2024, 3, 1, 11, 59, tzinfo=UTC),
                "completed_at": datetime(2024, 3, 1, 12, 0, tzinfo=UTC)
            },
            [
                {"question_id": "q1", "user_id": "u1", "answer": "0", "is_correct": True, "points": 1},
                {"question_id": "q2", "user_id": "u1", "answer": "Lyon", "is_correct": False, "points": 0},
            ]
        )

        detail = store.attempt_detail(attempt_id)

        assert detail["score"] == 1
        assert detail["user"]["name"] == "Ayşe"
        assert {answer["questionId"] for answer in detail["answers"]} == {"q1", "q2"}
        options = {answer["questionId"]: answer["question"]["options"] for answer in detail["answers"]}
        assert options["q1"][0] == {"text": "Asia", "imageUrl": ""}
        assert [option["text"] for option in options["q2"]] == ["Paris", "Lyon"]

    def test_failed_answer_insert_rolls_back_attempt(self, store, seeded, session_factory, save_attempt):
        duplicate = {"question_id": "q1", "user_id": "u1", "answer": "0", "is_correct": True, "points": 1}

        with pytest.raises(StoreError):
            save_attempt("u1", 1, answers=[duplicate, dict(duplicate)])

        with session_factory() as session:
            assert session.query(QuizAttempt).count() == 0
            assert session.query(Answer).count() == 0

    def test_user_standings(self, store, seeded, save_attempt):
        save_attempt("u1", 3)
        save_attempt("u1", 1)
        save_attempt("u2", 2)

        standings = {s["user_id"]: s for s in store.user_standings()}

        assert set(standings) == {"u1", "u2"}
        assert standings["u1"]["total_score"] == 4
        assert standings["u1"]["attempt_count"] == 2
        assert standings["u1"]["best_score"] == 3
        assert standings["u2"]["max_score"] == 3

    def test_attempts_for_user_oldest_first(self, store, seeded, save_attempt):
        save_attempt("u1", 3, completed_at=datetime(2024, 3, 2, tzinfo=UTC))
        save_attempt("u1", 1, completed_at=datetime(2024, 3, 1, tzinfo=UTC))
        save_attempt("u2", 2)

        attempts = store.attempts_for_user("u1")

        assert [a["score"] for a in attempts] == [1, 3]
        assert attempts[0]["category_name"] == "Geography"

    def test_platform_totals(self, store, seeded, save_attempt):
        save_attempt("u1", 3)

        assert store.platform_totals() == {
            "totalUsers": 3,
            "totalCategories": 1,
            "totalQuestions": 2,
            "totalQuizzes": 1,
            "totalAttempts": 1,
            "activeUsers": 1
        }
