"""
SkillPulse User Schemas
Saved skill list requests/responses
"""
from typing import Any

from pydantic import BaseModel, Field


class UserSkillsUpdate(BaseModel):
    """Replace the signed-in user's skills."""
    skills: Any = Field(..., description="Skill names", examples=[["Python", "Docker", "AWS"]])


class UserSkillsResponse(BaseModel):
    email: str = Field(..., examples=["jane@example.com"])
    skills: list[str] = Field(default_factory=list)
