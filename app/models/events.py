from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional
from enum import Enum
import time

class EventType(str, Enum):
    QUIZ_COMPLETED = "quiz_completed"
    RANK_CHANGED = "rank_changed"
    NEW_TEST_CREATED = "new_test_created"

    # Connection status
    HEARTBEAT = "heartbeat"
    ERROR = "error"

class BaseEvent(BaseModel):
    """Payload handed to the notification fan-out; serialised with camelCase keys"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, use_enum_values=True)

    type: EventType
    timestamp: Optional[float] = None

    def __init__(self, **data):
        if 'timestamp' not in data:
            data['timestamp'] = time.time()
        super().__init__(**data)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)

# Scoring events
class QuizCompletedEvent(BaseEvent):
    type: EventType = EventType.QUIZ_COMPLETED
    user_id: str
    user_name: str
    score: int
    max_score: int
    percentage: float
    quiz_id: str
    quiz_title: str

class RankChangedEvent(BaseEvent):
    type: EventType = EventType.RANK_CHANGED
    user_id: str
    user_name: str
    old_rank: int
    new_rank: int
    passed_user_id: Optional[str] = None
    passed_user_name: Optional[str] = None

# Produced by the quiz management collaborator, shares the same channel
class NewTestCreatedEvent(BaseEvent):
    type: EventType = EventType.NEW_TEST_CREATED
    test_id: str
    test_title: str
    category_name: str
    created_by: str

# Status messages
class HeartbeatEvent(BaseEvent):
    type: EventType = EventType.HEARTBEAT

class ErrorEvent(BaseEvent):
    type: EventType = EventType.ERROR
    message: str
