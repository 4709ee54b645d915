from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from app.database import Base
from datetime import datetime
import pytz
import uuid

UTC = pytz.UTC

class Answer(Base):
    __tablename__ = "answers"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    quiz_attempt_id = Column(String, ForeignKey("quiz_attempts.id"), nullable=False, index=True)
    question_id = Column(String, ForeignKey("questions.id"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False)
    answer = Column(Text, nullable=False, default="")
    is_correct = Column(Boolean, nullable=False, default=False)
    points = Column(Integer, nullable=False, default=0)  # full question points or 0
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC))

    # One graded row per question per attempt
    __table_args__ = (
        UniqueConstraint('quiz_attempt_id', 'question_id', name='unique_attempt_question_answer'),
    )

    quiz_attempt = relationship("QuizAttempt", back_populates="answers")
    question = relationship("Question")

    def __repr__(self):
        return f"<Answer(attempt={self.quiz_attempt_id}, question={self.question_id}, correct={self.is_correct})>"
