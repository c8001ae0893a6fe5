"""
SkillPulse Job Schemas
Indexed job records, recommendation requests and responses
"""
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.schemas.skill_gap import clean_skill_list


class JobSkill(BaseModel):
    """Skill requirement on a job posting."""
    skill: str
    proficiency: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class Salary(BaseModel):
    min: Optional[float] = None
    max: Optional[float] = None
    currency: Optional[str] = None
    period: Optional[str] = None


class CompanySummary(BaseModel):
    uid: Optional[str] = None
    title: Optional[str] = None
    location: Optional[str] = None


class JobRecord(BaseModel):
    """
    Job document as stored in the search index.

    Field aliases are the index attribute names; dump with by_alias=True
    before writing to the index.
    """
    object_id: str = Field(..., alias="objectID")
    title: str = ""
    description: str = ""
    requirements: str = ""
    responsibilities: str = ""
    location: Optional[str] = None
    type: Optional[str] = None
    experience: Optional[str] = None
    category: Optional[str] = None
    status: Optional[str] = None
    skills: list[JobSkill] = Field(default_factory=list)
    skill_names: list[str] = Field(default_factory=list, alias="skillNames")
    skills_text: str = Field("", alias="skillsText")
    benefits: list[Any] = Field(default_factory=list)
    salary: Optional[Salary] = None
    is_remote: bool = False
    is_urgent: bool = False
    posted_at: Optional[str] = None
    expires_at: Optional[str] = None
    contact_email: Optional[str] = None
    applications_count: int = 0
    views_count: int = 0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    company: Optional[CompanySummary] = None

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @field_validator("skills", mode="before")
    @classmethod
    def _coerce_skills(cls, v: Any) -> list:
        # Older records store bare skill names
        items = []
        if not isinstance(v, (list, tuple)):
            return items
        for s in v:
            if isinstance(s, str):
                items.append({"skill": s})
            elif isinstance(s, dict) and s.get("skill"):
                items.append(s)
        return items

    @field_validator("title", "description", "requirements", "responsibilities", "skills_text", mode="before")
    @classmethod
    def _none_to_blank(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("skill_names", "benefits", mode="before")
    @classmethod
    def _list_or_empty(cls, v: Any) -> Any:
        return list(v) if isinstance(v, (list, tuple)) else []

    @field_validator("is_remote", "is_urgent", mode="before")
    @classmethod
    def _none_to_false(cls, v: Any) -> Any:
        return bool(v)

    @field_validator("applications_count", "views_count", mode="before")
    @classmethod
    def _none_to_zero(cls, v: Any) -> Any:
        return v or 0

    def job_skill_names(self) -> list[str]:
        """Skill names from the structured list, else the flattened names."""
        names = [s.skill for s in self.skills if s.skill]
        return names or list(self.skill_names)


class ScoredJob(JobRecord):
    """Job record with its locally computed skill match."""
    match_score: float = Field(0.0, ge=0.0, le=1.0)
    matching_skills_count: int = 0


class Geolocation(BaseModel):
    """Visitor location forwarded by the edge as request headers."""
    country: str = ""
    region: str = ""
    city: str = ""

    @property
    def known(self) -> bool:
        return bool(self.country or self.region or self.city)


class RecommendedJob(BaseModel):
    """Job recommendation as returned to the site."""
    id: str
    title: str
    description: str = ""
    location: Optional[str] = None
    type: Optional[str] = None
    experience: Optional[str] = None
    category: Optional[str] = None
    skills: list[JobSkill] = Field(default_factory=list)
    salary: Optional[Salary] = None
    is_remote: bool = False
    is_urgent: bool = False
    posted_at: Optional[str] = None
    match_score: float = 0.0
    matching_skills_count: int = 0

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @classmethod
    def from_scored(cls, job: ScoredJob) -> "RecommendedJob":
        return cls(
            id=job.object_id,
            title=job.title,
            description=job.description,
            location=job.location,
            type=job.type,
            experience=job.experience,
            category=job.category,
            skills=job.skills,
            salary=job.salary,
            is_remote=job.is_remote,
            is_urgent=job.is_urgent,
            posted_at=job.posted_at,
            match_score=job.match_score,
            matching_skills_count=job.matching_skills_count,
        )


class JobRecommendationRequest(BaseModel):
    """Body of POST /jobs/recommendations."""
    skills: Optional[list[str]] = Field(
        None,
        description="Skills to match against open jobs",
        examples=[["React", "TypeScript"]],
    )
    limit: int = Field(6, ge=1, le=100, description="Maximum jobs to return")

    @field_validator("skills", mode="before")
    @classmethod
    def _clean(cls, v: Any) -> Optional[list[str]]:
        return clean_skill_list(v)


class JobRecommendationResponse(BaseModel):
    recommendations: list[RecommendedJob]
    total_found: int
    searched_skills: list[str]
    geolocation: Geolocation

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class IndexSyncResponse(BaseModel):
    """Outcome of pushing CMS jobs into the search index."""
    synced: int
    jobs: list[dict] = Field(default_factory=list, description="id, title and skills of each synced job")
