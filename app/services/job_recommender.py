"""
SkillPulse Job Recommender
Jobs for a skill list, re-scored by the fraction of the user's skills they use

The index ranks by text relevance; it has no notion of "share of the user's
skills this job asks for", so that score is computed here.
"""
import logging
from typing import Optional

from app.schemas.job import Geolocation, JobRecord, ScoredJob
from app.services.search_client import SearchClient
from app.services.skill_normalizer import has_overlapping_skill, normalize_skill

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 6


def score_job(job: JobRecord, user_skills: list[str]) -> ScoredJob:
    """Attach matchScore and matchingSkillsCount to a job."""
    job_skills = [normalize_skill(s) for s in job.job_skill_names()]
    user = [normalize_skill(s) for s in user_skills]

    matching = [s for s in user if s and has_overlapping_skill(s, job_skills)]
    score = len(matching) / len(user) if user else 0.0

    return ScoredJob(
        **job.model_dump(by_alias=True),
        match_score=score,
        matching_skills_count=len(matching),
    )


def is_local(job: JobRecord, geo: Optional[Geolocation]) -> bool:
    if not geo or not geo.known or not job.location:
        return False
    location = job.location.lower()
    return any(part and part.lower() in location for part in (geo.city, geo.region, geo.country))


def rank_jobs(jobs: list[ScoredJob], geo: Optional[Geolocation] = None) -> list[ScoredJob]:
    """Best score first; equal scores put local jobs ahead, else keep index order."""
    return sorted(jobs, key=lambda j: (-j.match_score, not is_local(j, geo)))


class JobRecommender:
    """Skill-based job recommendations from the search index."""

    def __init__(self, search_client: SearchClient):
        self.search = search_client

    async def get_job_recommendations(
        self,
        user_skills: list[str],
        limit: int = DEFAULT_LIMIT,
        geolocation: Optional[Geolocation] = None,
    ) -> list[ScoredJob]:
        """
        Search with every skill optional, then re-score and sort locally.

        Returns [] for an empty skill list or an unavailable index.
        """
        if not user_skills:
            return []

        result = await self.search.search_by_skills(user_skills, limit=limit)
        if not result.is_ok:
            logger.warning("Job recommendations unavailable: %s", result.reason)
            return []

        scored = []
        for hit in result.value.hits:
            try:
                job = JobRecord.model_validate(hit)
            except ValueError as e:
                logger.warning("Skipping malformed job record %s: %s", hit.get("objectID"), e)
                continue
            scored.append(score_job(job, user_skills))

        return rank_jobs(scored, geolocation)
