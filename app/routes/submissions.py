from fastapi import APIRouter, Depends
from pydantic import BaseModel
from typing import Any, Dict, Optional
from app.services.submission import SubmissionService
from app.store import AttemptStore, get_store
from app.utils.notification_manager import notification_manager

router = APIRouter()

class SubmitQuizRequest(BaseModel):
    userId: Optional[str] = None
    quizId: Optional[str] = None
    answers: Optional[Dict[str, Any]] = None
    timeSpent: Optional[Any] = None  # seconds, client-reported
    startedAt: Optional[str] = None  # ISO8601

def get_publisher():
    return notification_manager

@router.post("/submit")
async def submit_quiz(
    request: SubmitQuizRequest,
    store: AttemptStore = Depends(get_store),
    publisher=Depends(get_publisher)
):
    """Grade a quiz submission, store it and report the rank change"""
    service = SubmissionService(store, publisher=publisher)
    return await service.submit(request.model_dump())
