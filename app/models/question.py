from sqlalchemy import Column, Integer, String, Text, JSON, ForeignKey
from sqlalchemy.orm import relationship
from app.database import Base

QUESTION_TYPES = ("MULTIPLE_CHOICE", "TRUE_FALSE", "TEXT", "IMAGE")

class Question(Base):
    __tablename__ = "questions"

    id = Column(String, primary_key=True)
    content = Column(Text, nullable=False)
    type = Column(String, nullable=False, default="MULTIPLE_CHOICE")
    options = Column(JSON, nullable=True)  # legacy rows may hold a JSON string or a comma-separated string
    correct_answer = Column(String, nullable=False)  # option index as text, free text for TEXT
    points = Column(Integer, nullable=False, default=1)
    category_id = Column(String, ForeignKey("categories.id"), nullable=False)

    category = relationship("Category", back_populates="questions")

    def __repr__(self):
        return f"<Question(id={self.id}, type={self.type}, content={self.content[:20]})>"
