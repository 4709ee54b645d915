"""
Global ranking over summed attempt scores

No rank is stored anywhere: every call recomputes the ordering from a
snapshot of per-user standings read from the store.
"""
import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from app.config import settings
from app.utils.percentages import to_percentage

logger = logging.getLogger(__name__)


class TieBreak(str, Enum):
    # Equal total scores share a rank
    SCORE = "score"
    # Equal total scores are separated by average percentage
    SCORE_THEN_PERCENTAGE = "score_then_percentage"


class RankingService:
    """
    Computes a user's position in the global score ordering.

    A standing is a dict with at least user_id, name, total_score,
    average_percentage and attempt_count. Ranks use competition ranking:
    rank = 1 + number of users strictly ahead under the tie-break rule, so
    users equal under the rule share a rank. Users with no attempts are not
    in the ordering and have no rank (None).
    """

    def __init__(self, tie_break: Optional[str] = None):
        self.tie_break = TieBreak(tie_break or settings.ranking_tie_break)

    def sort_key(self, standing: Dict[str, Any]) -> Tuple:
        if self.tie_break is TieBreak.SCORE:
            return (standing["total_score"],)
        # Averages compare at one decimal, as reported
        return (standing["total_score"], to_percentage(standing.get("average_percentage") or 0.0))

    def global_ordering(self, standings: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Order standings best first; fully tied users are listed by user id"""
        ordering = [s for s in standings if s.get("attempt_count", 0) > 0]
        ordering.sort(key=lambda s: str(s["user_id"]))
        ordering.sort(key=self.sort_key, reverse=True)
        return ordering

    def rank_of(self, ordering: List[Dict[str, Any]], user_id: str) -> Optional[int]:
        entry = self._find(ordering, user_id)
        if entry is None:
            return None
        key = self.sort_key(entry)
        return 1 + sum(1 for standing in ordering if self.sort_key(standing) > key)

    def with_ranks(self, ordering: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Copy of the ordering with a "rank" on every entry"""
        ranked = []
        previous_key = None
        rank = 0
        for position, standing in enumerate(ordering, 1):
            key = self.sort_key(standing)
            if key != previous_key:
                rank = position
                previous_key = key
            ranked.append({**standing, "rank": rank})
        return ranked

    def neighbors(self, ordering: List[Dict[str, Any]], rank: int, window: int = None) -> List[Dict[str, Any]]:
        """Slice of the ordering around a 1-based listing position"""
        window = settings.neighbor_window if window is None else window
        start = max(0, rank - window - 1)
        end = min(len(ordering), rank + window)
        return ordering[start:end]

    def rank_delta(
        self,
        user_id: str,
        before: List[Dict[str, Any]],
        after: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        """
        Compare a user's rank before and after an attempt was stored

        Args:
            user_id: Submitting user
            before: Ordering read before the attempt insert
            after: Ordering read after the attempt insert

        Returns:
            {oldRank, newRank, improved, passedUser}

        A first attempt (no old rank) is never an improvement. The passed
        user is whoever sits at newRank + 1 once the submitter is left out of
        the post-insert ordering, provided they are strictly behind.
        """
        old_rank = self.rank_of(before, user_id)
        new_rank = self.rank_of(after, user_id)
        improved = old_rank is not None and new_rank is not None and new_rank < old_rank

        passed_user = None
        if improved:
            passed_user = self._passed_user(user_id, after, new_rank)
            logger.info(
                f"User {user_id} moved from rank {old_rank} to {new_rank}"
                + (f", passing {passed_user['id']}" if passed_user else "")
            )

        return {
            "oldRank": old_rank,
            "newRank": new_rank,
            "improved": improved,
            "passedUser": passed_user
        }

    def _passed_user(self, user_id: str, after: List[Dict[str, Any]], new_rank: int) -> Optional[Dict[str, str]]:
        me = self._find(after, user_id)
        others = [standing for standing in after if standing["user_id"] != user_id]
        if me is None or len(others) < new_rank:
            return None

        candidate = others[new_rank - 1]
        if self.sort_key(candidate) >= self.sort_key(me):
            return None
        return {"id": candidate["user_id"], "name": candidate.get("name") or candidate.get("email")}

    @staticmethod
    def _find(ordering: List[Dict[str, Any]], user_id: str) -> Optional[Dict[str, Any]]:
        return next((standing for standing in ordering if standing["user_id"] == user_id), None)


def get_ranking_service() -> RankingService:
    return RankingService(settings.ranking_tie_break)
