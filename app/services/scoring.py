"""
Quiz grading

TEXT questions: case-insensitive, whitespace-trimmed match
Choice questions (MULTIPLE_CHOICE, TRUE_FALSE, IMAGE): exact match on the
option index rendered as text
"""
import logging
from typing import Any, Dict, List, Mapping

from app.utils.percentages import percentage_of

logger = logging.getLogger(__name__)


class ScoringEngine:
    """
    Grades one submitted attempt against a quiz definition.

    Grading never raises on bad input: a missing answer, a non-string value
    or an unknown question type all degrade to "incorrect" or to exact
    matching, so a submission is always scored.
    """

    TEXT_TYPE = "TEXT"

    def grade(
        self,
        questions: List[Dict[str, Any]],
        submitted_answers: Mapping[str, Any]
    ) -> Dict[str, Any]:
        """
        Grade a complete submission

        Args:
            questions: Ordered list of {questionId, points, type, correctAnswer}
            submitted_answers: {questionId: answer text}

        Returns:
            {perQuestion, score, maxScore, percentage}
        """
        submitted_answers = submitted_answers or {}

        per_question = []
        score = 0
        max_score = 0

        for question in questions:
            question_id = question["questionId"]
            points = int(question.get("points") or 0)
            max_score += points

            user_answer = submitted_answers.get(question_id)
            if user_answer is None:
                answer_text, is_correct = "", False
            else:
                answer_text = user_answer if isinstance(user_answer, str) else str(user_answer)
                is_correct = self.is_correct(question.get("type"), answer_text, question.get("correctAnswer"))

            points_awarded = points if is_correct else 0
            score += points_awarded

            per_question.append({
                "questionId": question_id,
                "answerText": answer_text,
                "isCorrect": is_correct,
                "pointsAwarded": points_awarded
            })

        percentage = percentage_of(score, max_score)

        logger.info(f"Quiz graded: {score}/{max_score} ({percentage}%)")

        return {
            "perQuestion": per_question,
            "score": score,
            "maxScore": max_score,
            "percentage": percentage
        }

    def is_correct(self, question_type: str, answer_text: str, correct_answer: Any) -> bool:
        if correct_answer is None:
            return False
        correct_text = correct_answer if isinstance(correct_answer, str) else str(correct_answer)

        if question_type == self.TEXT_TYPE:
            return answer_text.strip().lower() == correct_text.strip().lower()

        return answer_text == correct_text


# Global instance
scoring_engine = ScoringEngine()
