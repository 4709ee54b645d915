"""
Personal analytics for a single user
"""
import logging
from typing import Any, Dict, List, Optional

from app.config import settings
from app.services.analytics import QuestionStats, per_answer_seconds
from app.utils.percentages import to_percentage, round_half_up, average
from app.utils.time_utils import ensure_utc, to_iso

logger = logging.getLogger(__name__)

GUESS_FLAG = "Hızlı doğru cevap — tahmin olabilir"
STRUGGLE_FLAG = "Zorlanıyor"


def chronological(attempts: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Oldest first; attempts without a completion time go last"""
    return sorted(
        attempts,
        key=lambda attempt: (attempt.get("completed_at") is None, ensure_utc(attempt.get("completed_at")) or 0)
    )


class UserAnalyticsAggregator:
    """Learning curve, weak spots and guess/struggle flags for one user"""

    def __init__(self, config=None):
        self.config = config or settings

    def build_user_analytics(self, user: Dict[str, Any], attempts: List[Dict[str, Any]]) -> Dict[str, Any]:
        attempts = chronological(attempts)
        logger.debug(f"Building analytics for user {user.get('id')} over {len(attempts)} attempts")

        return {
            "user": {"id": user.get("id"), "name": user.get("name"), "email": user.get("email")},
            "summary": self.summary(attempts),
            "learningCurve": self.learning_curve(attempts),
            "categoryPerformance": self.category_performance(attempts),
            "quizPerformance": self.quiz_performance(attempts),
            "questionInsights": self.question_insights(attempts)
        }

    def summary(self, attempts: List[Dict[str, Any]]) -> Dict[str, Any]:
        percentages = [attempt.get("percentage") or 0 for attempt in attempts]
        improvement = to_percentage(percentages[-1] - percentages[0]) if len(percentages) >= 2 else 0
        return {
            "totalAttempts": len(attempts),
            "averagePercentage": to_percentage(average(percentages)) if percentages else 0,
            "improvement": improvement
        }

    def learning_curve(self, attempts: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return [
            {"completedAt": to_iso(attempt.get("completed_at")), "percentage": to_percentage(attempt.get("percentage") or 0)}
            for attempt in attempts
        ]

    def category_performance(self, attempts: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        categories = {}
        for attempt in attempts:
            if attempt.get("category_id") is None:
                continue
            entry = categories.setdefault(attempt["category_id"], {"name": attempt.get("category_name"), "percentages": []})
            entry["percentages"].append(attempt.get("percentage") or 0)

        return [
            {
                "category": entry["name"],
                "successRate": to_percentage(average(entry["percentages"])),
                "attempts": len(entry["percentages"])
            }
            for entry in categories.values()
        ]

    def quiz_performance(self, attempts: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        quizzes = {}
        for attempt in attempts:
            entry = quizzes.setdefault(
                attempt["quiz_id"],
                {"title": attempt.get("quiz_title"), "percentages": [], "correct": 0, "total": 0}
            )
            answers = attempt.get("answers") or []
            entry["percentages"].append(attempt.get("percentage") or 0)
            entry["correct"] += sum(1 for answer in answers if answer.get("is_correct"))
            entry["total"] += len(answers)

        return [
            {
                "quiz": entry["title"],
                "successRate": to_percentage(average(entry["percentages"])),
                "attempts": len(entry["percentages"]),
                "correct": entry["correct"],
                "total": entry["total"]
            }
            for entry in quizzes.values()
        ]

    def question_insights(self, attempts: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Per question diagnostics, hardest first, capped"""
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
                stats.add(
                    bool(answer.get("is_correct")),
                    seconds,
                    answer.get("created_at") or attempt.get("completed_at")
                )

        insights = []
        for stats in questions.values():
            average_time = stats.average_time
            insights.append({
                "questionId": stats.question_id,
                "content": stats.content,
                "attempts": stats.total,
                "incorrectRate": to_percentage(stats.incorrect_ratio * 100),
                "averageTime": round_half_up(average_time) if average_time is not None else None,
                "lastAnsweredAt": to_iso(stats.last_answered_at),
                "lastResult": stats.last_result,
                "flag": self.flag_for(1 - stats.incorrect_ratio, average_time)
            })

        insights.sort(key=lambda item: item["incorrectRate"], reverse=True)
        return insights[:self.config.question_insight_limit]

    def flag_for(self, accuracy: float, average_time: Optional[float]) -> Optional[str]:
        if accuracy >= self.config.guess_accuracy and average_time is not None \
                and average_time <= self.config.guess_max_seconds:
            return GUESS_FLAG
        if accuracy <= self.config.struggle_accuracy:
            return STRUGGLE_FLAG
        return None


# Global instance
user_analytics_aggregator = UserAnalyticsAggregator()
