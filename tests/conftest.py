import os

# The app builds its engine at import time; keep it off the real database
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from datetime import datetime, timedelta
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
import pytz

from app.database import Base
from app.main import app
from app.models import User, Category, Question, Quiz, QuizQuestion
from app.routes.submissions import get_publisher
from app.store import AttemptStore, get_store

UTC = pytz.UTC

@pytest.fixture
def engine():
    """Fresh in-memory database per test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()

@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False, future=True)

@pytest.fixture
def store(session_factory):
    return AttemptStore(session_factory)

@pytest.fixture
def seeded(session_factory):
    """Three users, one category and a two-question quiz (1 + 2 points)"""
    with session_factory.begin() as session:
        session.add_all([
            User(id="u1", name="Ayşe", email="ayse@example.com"),
            User(id="u2", name="Mehmet", email="mehmet@example.com"),
            User(id="u3", name=None, email="anon@example.com"),
            Category(id="c1", name="Geography"),
        ])
        session.flush()
        session.add_all([
            Question(
                id="q1",
                content="Which is a continent?",
                type="MULTIPLE_CHOICE",
                options=["Asia", "Nile", "Alps"],
                correct_answer="0",
                points=1,
                category_id="c1"
            ),
            Question(
                id="q2",
                content="Capital of France?",
                type="TEXT",
                options="Paris, Lyon",
                correct_answer="Paris",
                points=2,
                category_id="c1"
            ),
            Quiz(id="quiz-1", title="World Basics", description="Warm-up", category_id="c1"),
        ])
        session.flush()
        session.add_all([
            QuizQuestion(quiz_id="quiz-1", question_id="q2", order=2),
            QuizQuestion(quiz_id="quiz-1", question_id="q1", order=1),
        ])

    return {"users": ["u1", "u2", "u3"], "quiz_id": "quiz-1", "category_id": "c1"}

@pytest.fixture
def save_attempt(store):
    """Store an attempt directly, bypassing grading"""
    def _save_attempt(user_id, score, max_score=3, quiz_id="quiz-1", answers=None, completed_at=None, time_spent=30):
        completed_at = completed_at or datetime.now(UTC)
        return store.save_attempt(
            {
                "user_id": user_id,
                "quiz_id": quiz_id,
                "score": score,
                "max_score": max_score,
                "percentage": round(score / max_score * 100, 1) if max_score else 0,
                "time_spent": time_spent,
                "timing_suspect": False,
                "started_at": completed_at - timedelta(seconds=time_spent),
                "completed_at": completed_at
            },
            answers or []
        )
    return _save_attempt

class RecordingPublisher:
    """Collects published events instead of sending them"""

    def __init__(self, fail=False):
        self.events = []
        self.fail = fail

    async def publish(self, event):
        if self.fail:
            raise RuntimeError("receiver gone")
        self.events.append(event)
        return 1

@pytest.fixture
def publisher():
    return RecordingPublisher()

@pytest.fixture
def failing_publisher():
    return RecordingPublisher(fail=True)

@pytest.fixture
def client(store, publisher):
    """Test client wired to the in-memory store"""
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_publisher] = lambda: publisher
    yield TestClient(app)
    app.dependency_overrides.clear()
