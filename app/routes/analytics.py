from fastapi import APIRouter, Depends
from app.services.analytics import analytics_aggregator
from app.services.user_analytics import user_analytics_aggregator
from app.store import AttemptStore, get_store

router = APIRouter()

@router.get("/analytics/overview")
def get_analytics_overview(store: AttemptStore = Depends(get_store)):
    """Platform-wide analytics: totals, highlights, charts and smart insights"""
    return analytics_aggregator.build_overview(store.all_attempts(), store.platform_totals())

@router.get("/analytics/users/{user_id}")
def get_user_analytics(user_id: str, store: AttemptStore = Depends(get_store)):
    """Learning curve and weak spots for one user"""
    user = store.get_user(user_id)
    return user_analytics_aggregator.build_user_analytics(user, store.attempts_for_user(user_id))

@router.get("/stats")
def get_platform_stats(store: AttemptStore = Depends(get_store)):
    """Platform counters"""
    return store.platform_totals()
