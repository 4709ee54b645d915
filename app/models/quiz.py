from sqlalchemy import Column, Integer, String, Text, Boolean, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
from app.database import Base
from datetime import datetime
import pytz

UTC = pytz.UTC

class Quiz(Base):
    __tablename__ = "quizzes"

    id = Column(String, primary_key=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    category_id = Column(String, ForeignKey("categories.id"), nullable=False)
    time_limit = Column(Integer, nullable=True)  # In minutes
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC))

    # Relationships
    category = relationship("Category", back_populates="quizzes")
    questions = relationship(
        "QuizQuestion",
        back_populates="quiz",
        order_by="QuizQuestion.order",
        cascade="all, delete-orphan",
    )
    attempts = relationship("QuizAttempt", back_populates="quiz", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Quiz(id={self.id}, title={self.title})>"

class QuizQuestion(Base):
    __tablename__ = "quiz_questions"

    quiz_id = Column(String, ForeignKey("quizzes.id"), primary_key=True)
    question_id = Column(String, ForeignKey("questions.id"), primary_key=True)
    order = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint('quiz_id', 'order', name='unique_quiz_question_order'),
    )

    quiz = relationship("Quiz", back_populates="questions")
    question = relationship("Question")

    def __repr__(self):
        return f"<QuizQuestion(quiz_id={self.quiz_id}, question_id={self.question_id}, order={self.order})>"
