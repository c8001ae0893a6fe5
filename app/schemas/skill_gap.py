"""
SkillPulse Skill Gap Schemas
Analysis result models and request bodies

Attributes are snake_case in Python and camelCase on the wire.
"""
from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Priority(str, Enum):
    """Gap priority tier, by share of the corpus requiring the skill."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}


class SkillDemand(CamelModel):
    """How many indexed jobs ask for a skill."""
    skill: str = Field(..., description="Normalized skill name", examples=["docker"])
    job_count: int = Field(..., ge=0, description="Jobs listing the skill", examples=[20])
    percentage: int = Field(..., ge=0, le=100, description="Share of all jobs (0-100)", examples=[20])


class SkillGap(SkillDemand):
    """An in-demand skill missing from the user's profile."""
    priority: Priority = Field(..., description="high (>=30%), medium (>=15%) or low")
    potential_job_increase: int = Field(..., ge=0, description="Jobs that list this skill")


class LearningResource(BaseModel):
    """
    Learning resource entry owned by the CMS.

    Only the fields used for matching are declared; everything else the CMS
    returns is carried through untouched.
    """
    uid: Optional[str] = None
    title: Optional[str] = None
    slug: Optional[str] = None
    technology: Optional[str] = Field(None, description="Technology category", examples=["kubernetes"])
    skills_covered: list[str] = Field(default_factory=list)
    featured: bool = False

    model_config = ConfigDict(extra="allow")

    @field_validator("skills_covered", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return v or []


class LearningRecommendation(CamelModel):
    """Learning resources for one skill gap."""
    skill: str
    priority: Priority
    jobs_unlocked: int = Field(..., ge=0)
    learning_resources: list[LearningResource] = Field(default_factory=list, max_length=3)


class SkillGapAnalysis(CamelModel):
    """
    Full skill gap analysis for one skill list.

    Built fresh per request. data_available is False when the job market scan
    could not reach the search index, so an all-zero result means
    "no market data" rather than "no demand".
    """
    user_skills: list[str]
    total_jobs: int = 0
    matching_jobs: int = 0
    match_percentage: int = Field(0, ge=0, le=100)
    top_demanded_skills: list[SkillDemand] = Field(default_factory=list, max_length=10)
    skill_gaps: list[SkillGap] = Field(default_factory=list, max_length=10)
    recommendations: list[LearningRecommendation] = Field(default_factory=list, max_length=5)
    potential_match_after_learning: int = 0
    data_available: bool = True

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "userSkills": ["React", "TypeScript"],
                "totalJobs": 100,
                "matchingJobs": 45,
                "matchPercentage": 45,
                "topDemandedSkills": [{"skill": "react", "jobCount": 40, "percentage": 40}],
                "skillGaps": [{
                    "skill": "docker", "jobCount": 20, "percentage": 20,
                    "priority": "medium", "potentialJobIncrease": 20,
                }],
                "recommendations": [],
                "potentialMatchAfterLearning": 60,
                "dataAvailable": True,
            }
        },
    )


class QuickSkillGapSummary(CamelModel):
    """Condensed analysis for banners and widgets."""
    match_percentage: int = Field(0, ge=0, le=100)
    top_missing_skills: list[str] = Field(default_factory=list, max_length=3)
    potential_increase: int = 0


def clean_skill_list(value: Any) -> Optional[list[str]]:
    """
    Trim skills and drop blanks and non-strings.

    A comma-separated string is split; anything that is not a list or string
    becomes None.
    """
    if value is None:
        return None
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, (list, tuple)):
        return None
    return [s.strip() for s in value if isinstance(s, str) and s.strip()]


class SkillGapRequest(BaseModel):
    """Body of POST /skill-gap."""
    user_skills: Optional[list[str]] = Field(
        None,
        validation_alias=AliasChoices("userSkills", "skills", "user_skills"),
        description="Skills to analyze",
        examples=[["React", "TypeScript", "Node.js"]],
    )
    quick: bool = Field(False, description="Return the condensed summary instead of the full analysis")

    @field_validator("user_skills", mode="before")
    @classmethod
    def _clean(cls, v: Any) -> Optional[list[str]]:
        return clean_skill_list(v)
