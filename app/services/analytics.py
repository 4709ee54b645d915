"""
Platform-wide analytics over the full attempt history

Category, quiz and question health, the performance timeline and the
"smart insights" used by the admin dashboard. Everything is recomputed from
the attempt snapshot on each call.
"""
import logging
from collections import defaultdict
from typing import Any, Dict, List, Optional

from app.config import settings
from app.utils.percentages import to_percentage, round_half_up
from app.utils.time_utils import format_day_label, to_iso, ensure_utc

logger = logging.getLogger(__name__)

EMPTY_TOTALS = {
    "totalUsers": 0,
    "totalCategories": 0,
    "totalQuestions": 0,
    "totalQuizzes": 0,
    "totalAttempts": 0,
    "activeUsers": 0
}


def per_answer_seconds(attempt: Dict[str, Any]) -> Optional[float]:
    """
    Even split of the attempt's time over its answers

    The platform does not record per-question timing. Attempts with
    untrusted timing contribute no time at all (None).
    """
    answers = attempt.get("answers") or []
    if attempt.get("timing_suspect"):
        return None
    return (attempt.get("time_spent") or 0) / len(answers) if answers else 0.0


class QuestionStats:
    """Running totals for one question"""

    def __init__(self, question_id: str, content: str):
        self.question_id = question_id
        self.content = content
        self.incorrect = 0
        self.total = 0
        self.total_time = 0.0
        self.timed = 0
        self.last_answered_at = None
        self.last_result = None

    def add(self, is_correct: bool, seconds: Optional[float], answered_at=None):
        if not is_correct:
            self.incorrect += 1
        self.total += 1
        if seconds is not None:
            self.total_time += seconds
            self.timed += 1
        self.last_answered_at = answered_at
        self.last_result = is_correct

    @property
    def incorrect_ratio(self) -> float:
        return self.incorrect / self.total if self.total > 0 else 0.0

    @property
    def average_time(self) -> Optional[float]:
        return self.total_time / self.timed if self.timed > 0 else None


class AnalyticsAggregator:
    """Derives platform diagnostics from every stored attempt"""

    def __init__(self, config=None):
        self.config = config or settings

    def build_overview(self, attempts: List[Dict[str, Any]], totals: Optional[Dict[str, int]] = None) -> Dict[str, Any]:
        """
        Build the admin analytics overview

        Args:
            attempts: Attempt snapshots with quiz, category, user and answers
            totals: Platform counters from the store

        Returns:
            {totals, highlights, charts, smartInsights}
        """
        logger.debug(f"Building analytics overview over {len(attempts)} attempts")

        category_success = self.category_success(attempts)
        quiz_success = self.quiz_success(attempts)
        hardest_questions = self.question_difficulty(attempts)

        return {
            "totals": {**EMPTY_TOTALS, **(totals or {})},
            "highlights": {
                "mostChallengingCategory": self.most_challenging_category(category_success),
                "mostChallengingQuiz": self.most_challenging_quiz(quiz_success),
                "mostMissedQuestions": self.most_missed_questions(hardest_questions)
            },
            "charts": {
                "categorySuccess": category_success,
                "quizSuccess": quiz_success,
                "performanceTimeline": self.performance_timeline(attempts),
                "hardestQuestions": hardest_questions
            },
            "smartInsights": {
                "strugglingAssignments": self.struggling_assignments(attempts),
                "qualityAlerts": self.quality_alerts(hardest_questions)
            }
        }

    def category_success(self, attempts: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Average attempt percentage per category; categories without attempts are left out"""
        categories = {}
        for attempt in attempts:
            category_id = attempt.get("category_id")
            if category_id is None:
                continue
            entry = categories.setdefault(category_id, {"name": attempt.get("category_name"), "total": 0.0, "count": 0})
            entry["total"] += attempt.get("percentage") or 0
            entry["count"] += 1

        return [
            {"category": entry["name"], "successRate": to_percentage(entry["total"] / entry["count"])}
            for entry in categories.values()
        ]

    def most_challenging_category(self, category_success: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        candidates = [item for item in category_success if item["successRate"] > 0]
        return min(candidates, key=lambda item: item["successRate"]) if candidates else None

    def quiz_success(self, attempts: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        quizzes = {}
        for attempt in attempts:
            entry = quizzes.setdefault(attempt["quiz_id"], {"title": attempt.get("quiz_title"), "total": 0.0, "count": 0})
            entry["total"] += attempt.get("percentage") or 0
            entry["count"] += 1

        return [
            {
                "quiz": entry["title"],
                "successRate": to_percentage(entry["total"] / entry["count"]),
                "attemptCount": entry["count"]
            }
            for entry in quizzes.values()
        ]

    def most_challenging_quiz(self, quiz_success: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        candidates = [item for item in quiz_success if item["attemptCount"] > 0]
        return min(candidates, key=lambda item: item["successRate"]) if candidates else None

    def performance_timeline(self, attempts: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        completed = [attempt for attempt in attempts if attempt.get("completed_at") is not None]
        completed.sort(key=lambda attempt: ensure_utc(attempt["completed_at"]))

        return [
            {
                "completedAt": to_iso(attempt["completed_at"]),
                "label": format_day_label(attempt["completed_at"]),
                "percentage": to_percentage(attempt.get("percentage") or 0),
                "quizTitle": attempt.get("quiz_title")
            }
            for attempt in completed
        ]

    def question_difficulty(self, attempts: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Incorrect rate and even-split average time for every answered question"""
        questions: Dict[str, QuestionStats] = {}
        for attempt in attempts:
            seconds = per_answer_seconds(attempt)
            for answer in attempt.get("answers") or []:
                question_id = answer.get("question_id")
                if question_id is None:
                    continue
                stats = questions.get(question_id)
                if stats is None:
                    stats = questions[question_id] = QuestionStats(question_id, answer.get("question_content"))
                stats.add(bool(answer.get("is_correct")), seconds)

        return [
            {
                "questionId": stats.question_id,
                "content": stats.content,
                "incorrectRate": to_percentage(stats.incorrect_ratio * 100),
                "averageTime": round_half_up(stats.average_time) if stats.average_time is not None else None,
                "attempts": stats.total
            }
            for stats in questions.values()
        ]

    def most_missed_questions(self, hardest_questions: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        answered = [item for item in hardest_questions if item["attempts"] > 0]
        answered.sort(key=lambda item: item["incorrectRate"], reverse=True)
        return answered[:self.config.most_missed_limit]

    def quality_alerts(self, hardest_questions: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Questions wrong often enough, over enough attempts, to deserve a content review"""
        flagged = [
            item for item in hardest_questions
            if item["attempts"] >= self.config.quality_alert_min_attempts
            and item["incorrectRate"] >= self.config.quality_alert_min_incorrect_rate
        ]
        flagged.sort(key=lambda item: item["incorrectRate"], reverse=True)
        return flagged[:self.config.quality_alert_limit]

    def struggling_assignments(self, attempts: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Each user's relatively weakest category

        One entry per user who attempted at least one categorised quiz, even
        when that user does well everywhere.
        """
        per_user = defaultdict(dict)
        users = {}
        for attempt in attempts:
            category_id = attempt.get("category_id")
            if category_id is None:
                continue
            users.setdefault(attempt["user_id"], attempt)
            entry = per_user[attempt["user_id"]].setdefault(
                category_id, {"name": attempt.get("category_name"), "total": 0.0, "count": 0}
            )
            entry["total"] += attempt.get("percentage") or 0
            entry["count"] += 1

        assignments = []
        for user_id, categories in per_user.items():
            summaries = [
                {
                    "categoryId": category_id,
                    "categoryName": entry["name"],
                    "successRate": to_percentage(entry["total"] / entry["count"]),
                    "attemptCount": entry["count"]
                }
                for category_id, entry in categories.items()
            ]
            weakest = min(summaries, key=lambda item: item["successRate"])
            user = users[user_id]
            assignments.append({
                "userId": user_id,
                "name": user.get("user_name") or user.get("user_email"),
                "email": user.get("user_email"),
                **weakest
            })

        assignments.sort(key=lambda item: item["successRate"])
        return assignments[:self.config.struggling_limit]


# Global instance
analytics_aggregator = AnalyticsAggregator()
