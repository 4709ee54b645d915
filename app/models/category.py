from sqlalchemy import Column, String
from sqlalchemy.orm import relationship
from app.database import Base

class Category(Base):
    __tablename__ = "categories"

    id = Column(String, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    color = Column(String, nullable=True)

    # Relationships
    questions = relationship("Question", back_populates="category")
    quizzes = relationship("Quiz", back_populates="category")

    def __repr__(self):
        return f"<Category(id={self.id}, name={self.name})>"
