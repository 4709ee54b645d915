"""
Quiz submission flow

validate -> load user and quiz -> ordering before -> grade -> store attempt
and answers in one transaction -> ordering after -> rank delta -> events

The two ordering reads are not isolated from submissions by other users
running at the same time, so under concurrency oldRank/newRank can reflect
different snapshots. Nothing here locks around them.
"""
import logging
from typing import Any, Dict, List, Mapping, Tuple

from starlette.concurrency import run_in_threadpool

from app.config import settings
from app.errors import ValidationError
from app.models.events import BaseEvent, QuizCompletedEvent, RankChangedEvent
from app.services.ranking import RankingService, get_ranking_service
from app.services.scoring import ScoringEngine, scoring_engine
from app.store import AttemptStore
from app.utils.time_utils import get_utc_time, sanitize_time_spent, resolve_started_at

logger = logging.getLogger(__name__)


class SubmissionService:
    def __init__(
        self,
        store: AttemptStore,
        publisher=None,
        ranking: RankingService = None,
        scoring: ScoringEngine = None,
        config=None
    ):
        self.store = store
        self.publisher = publisher
        self.ranking = ranking or get_ranking_service()
        self.scoring = scoring or scoring_engine
        self.config = config or settings

    async def submit(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        """Grade and store a submission, then hand its events to the publisher"""
        result, events = await run_in_threadpool(self.process, payload)
        await self.publish(events)
        return result

    def process(self, payload: Mapping[str, Any]) -> Tuple[Dict[str, Any], List[BaseEvent]]:
        """
        Run the submission synchronously

        Args:
            payload: {userId, quizId, answers, timeSpent, startedAt}

        Returns:
            Tuple of (response body, events to publish)
        """
        user_id = payload.get("userId")
        quiz_id = payload.get("quizId")
        answers = payload.get("answers")

        if not user_id or not quiz_id or answers is None:
            raise ValidationError("userId, quizId and answers are required")
        if not isinstance(answers, Mapping):
            raise ValidationError("answers must map question ids to answers")

        user = self.store.get_user(user_id)
        quiz = self.store.load_quiz(quiz_id)

        before = self.ranking.global_ordering(self.store.user_standings())

        graded = self.scoring.grade(quiz["questions"], answers)

        completed_at = get_utc_time()
        answered_count = sum(1 for question in quiz["questions"] if question["questionId"] in answers)
        time_spent, time_suspect = sanitize_time_spent(
            payload.get("timeSpent"), answered_count, self.config.max_time_spent_seconds
        )
        started_at, start_suspect = resolve_started_at(payload.get("startedAt"), completed_at, time_spent)
        if time_suspect or start_suspect:
            logger.warning(
                f"Implausible timing from user {user_id} on quiz {quiz_id}: "
                f"timeSpent={payload.get('timeSpent')!r}, startedAt={payload.get('startedAt')!r}"
            )

        attempt_id = self.store.save_attempt(
            {
                "user_id": user_id,
                "quiz_id": quiz_id,
                "score": graded["score"],
                "max_score": graded["maxScore"],
                "percentage": graded["percentage"],
                "time_spent": time_spent,
                "timing_suspect": time_suspect or start_suspect,
                "started_at": started_at,
                "completed_at": completed_at
            },
            [
                {
                    "question_id": item["questionId"],
                    "user_id": user_id,
                    "answer": item["answerText"],
                    "is_correct": item["isCorrect"],
                    "points": item["pointsAwarded"]
                }
                for item in graded["perQuestion"]
            ]
        )

        after = self.ranking.global_ordering(self.store.user_standings())
        rank_data = self.ranking.rank_delta(user_id, before, after)

        events = [
            QuizCompletedEvent(
                user_id=user_id,
                user_name=user["name"],
                score=graded["score"],
                max_score=graded["maxScore"],
                percentage=graded["percentage"],
                quiz_id=quiz_id,
                quiz_title=quiz["title"]
            )
        ]
        if rank_data["improved"]:
            passed = rank_data["passedUser"] or {}
            events.append(RankChangedEvent(
                user_id=user_id,
                user_name=user["name"],
                old_rank=rank_data["oldRank"],
                new_rank=rank_data["newRank"],
                passed_user_id=passed.get("id"),
                passed_user_name=passed.get("name")
            ))

        return {
            "message": "Quiz submitted successfully",
            "quizAttempt": self.store.attempt_detail(attempt_id),
            "rankData": rank_data
        }, events

    async def publish(self, events: List[BaseEvent]):
        """Fire and forget: a failed publish is logged, the submission still succeeds"""
        if self.publisher is None:
            return
        for event in events:
            try:
                await self.publisher.publish(event)
            except Exception as e:
                logger.error(f"Failed to publish {event.type} event: {e}")
