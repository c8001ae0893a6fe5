"""
SkillPulse User Models
Per-user skill list, keyed by email
"""
from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.sql import func
import uuid

from app.core.database import Base


class UserSkills(Base):
    """Skills a user has saved on their profile"""
    __tablename__ = "user_skills"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # Same email for password and OAuth sign-ins
    email = Column(String(255), unique=True, index=True, nullable=False)

    # Skill names as entered (JSON array)
    skills = Column(JSON, default=list)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
