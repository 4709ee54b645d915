from fastapi import APIRouter, Depends, Query
from app.config import settings
from app.services.ranking import RankingService, get_ranking_service
from app.store import AttemptStore, get_store
from app.utils.percentages import to_percentage, round_half_up
from app.utils.time_utils import to_iso

router = APIRouter()

@router.get("")
def get_global_leaderboard(
    limit: int = Query(settings.leaderboard_size, ge=1, le=500),
    store: AttemptStore = Depends(get_store),
    ranking: RankingService = Depends(get_ranking_service)
):
    """Get global leaderboard by total score"""
    ordering = ranking.with_ranks(ranking.global_ordering(store.user_standings()))

    return {
        "topUsers": [
            {
                "rank": entry["rank"],
                "id": entry["user_id"],
                "name": entry["name"],
                "email": entry["email"],
                "totalScore": entry["total_score"],
                "totalQuizzes": entry["attempt_count"],
                "averagePercentage": to_percentage(entry["average_percentage"]),
                "bestScore": entry["best_score"]
            }
            for entry in ordering[:limit]
        ],
        "totalEntries": len(ordering),
        "tieBreak": ranking.tie_break.value
    }

@router.get("/users/{user_id}")
def get_user_stats(
    user_id: str,
    store: AttemptStore = Depends(get_store),
    ranking: RankingService = Depends(get_ranking_service)
):
    """Get a user's totals and current rank"""
    store.get_user(user_id)
    attempts = store.attempts_for_user(user_id)
    ordering = ranking.global_ordering(store.user_standings())
    rank = ranking.rank_of(ordering, user_id)
    ranked = ranking.with_ranks(ordering)
    # Position in the listing; differs from rank when users tie
    position = next((i for i, entry in enumerate(ranked, 1) if entry["user_id"] == user_id), None)

    total_score = sum(attempt["score"] for attempt in attempts)
    max_score = sum(attempt["max_score"] for attempt in attempts)
    recent = list(reversed(attempts))[:5]

    return {
        "completedTests": len(attempts),
        "successRate": round_half_up(total_score / max_score * 100) if max_score > 0 else 0,
        "ranking": rank,
        "totalScore": total_score,
        "maxScore": max_score,
        "totalTimeSpent": sum(attempt["time_spent"] for attempt in attempts),
        "recentAttempts": [
            {
                "id": attempt["id"],
                "quizId": attempt["quiz_id"],
                "quizTitle": attempt["quiz_title"],
                "categoryName": attempt["category_name"],
                "score": attempt["score"],
                "maxScore": attempt["max_score"],
                "percentage": to_percentage(attempt["percentage"]),
                "timeSpent": attempt["time_spent"],
                "completedAt": to_iso(attempt["completed_at"])
            }
            for attempt in recent
        ],
        "nearbyUsers": [
            {"rank": entry["rank"], "id": entry["user_id"], "name": entry["name"], "totalScore": entry["total_score"]}
            for entry in (ranking.neighbors(ranked, position) if position else [])
        ]
    }
