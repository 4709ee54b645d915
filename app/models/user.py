from sqlalchemy import Column, String, DateTime, Boolean
from sqlalchemy.orm import relationship
from app.database import Base
from datetime import datetime
import pytz

UTC = pytz.UTC

class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=True)
    email = Column(String, unique=True, nullable=False)
    role = Column(String, nullable=False, default="STUDENT")  # 'STUDENT' or 'ADMIN'
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC))

    # Relationships
    quiz_attempts = relationship("QuizAttempt", back_populates="user", cascade="all, delete-orphan")

    @property
    def display_name(self):
        return self.name or self.email

    def __repr__(self):
        return f"<User(id={self.id}, name={self.name}, email={self.email})>"
