"""
SkillPulse Skill Gap Analyzer
Compares a user's skills with job market demand and recommends what to learn next
"""
import asyncio
import logging
from typing import Optional

from app.core.errors import Outcome
from app.schemas.skill_gap import (
    LearningRecommendation, LearningResource, Priority, QuickSkillGapSummary,
    SkillDemand, SkillGap, SkillGapAnalysis,
)
from app.services.content_client import ContentClient
from app.services.market_analyzer import MarketAnalyzer, percentage_of
from app.services.search_client import SearchClient
from app.services.skill_normalizer import (
    SkillNormalizer, has_overlapping_skill, normalize_skill,
)

logger = logging.getLogger(__name__)

HIGH_PRIORITY_THRESHOLD = 30
MEDIUM_PRIORITY_THRESHOLD = 15

MAX_TOP_DEMANDED = 10
MAX_SKILL_GAPS = 10
MAX_RECOMMENDED_GAPS = 5
MAX_RESOURCES_PER_SKILL = 3
PROJECTION_GAP_COUNT = 3


def assign_priority(percentage: int) -> Priority:
    if percentage >= HIGH_PRIORITY_THRESHOLD:
        return Priority.HIGH
    if percentage >= MEDIUM_PRIORITY_THRESHOLD:
        return Priority.MEDIUM
    return Priority.LOW


def find_skill_gaps(top_skills: list[SkillDemand], user_skills: list[str]) -> list[SkillGap]:
    """
    In-demand skills the user does not have, most urgent first.

    A user "has" a demanded skill when the two overlap by substring in either
    direction. Gaps sort by priority tier, then by job count descending.
    """
    normalized_user = [s for s in (normalize_skill(u) for u in user_skills) if s]

    gaps = []
    for demand in top_skills:
        if demand.job_count <= 0 or has_overlapping_skill(demand.skill, normalized_user):
            continue
        gaps.append(SkillGap(
            skill=demand.skill,
            job_count=demand.job_count,
            percentage=demand.percentage,
            priority=assign_priority(demand.percentage),
            potential_job_increase=demand.job_count,
        ))

    gaps.sort(key=lambda g: (g.priority.rank, -g.job_count))
    return gaps


def get_learning_resources_for_skill(
    skill: str,
    resources: list[LearningResource],
    normalizer: SkillNormalizer,
) -> list[LearningResource]:
    """
    Up to three resources for a skill, in fetch order.

    Skills with a known technology category match resources filed under that
    category. Unmapped skills fall back to overlap with the resource's
    skills_covered tags.
    """
    technology = normalizer.technology_for(skill)

    if technology:
        matched = [r for r in resources if normalize_skill(r.technology) == technology]
    else:
        matched = [r for r in resources if has_overlapping_skill(skill, r.skills_covered)]

    return matched[:MAX_RESOURCES_PER_SKILL]


def build_recommendations(
    gaps: list[SkillGap],
    resources: list[LearningResource],
    normalizer: SkillNormalizer,
) -> list[LearningRecommendation]:
    """Recommendations for the top gaps that have at least one resource."""
    recommendations = []
    for gap in gaps[:MAX_RECOMMENDED_GAPS]:
        matched = get_learning_resources_for_skill(gap.skill, resources, normalizer)
        if not matched:
            continue
        recommendations.append(LearningRecommendation(
            skill=gap.skill,
            priority=gap.priority,
            jobs_unlocked=gap.job_count,
            learning_resources=matched,
        ))
    return recommendations


def _parse_resources(entries: list[dict]) -> list[LearningResource]:
    resources = []
    for entry in entries:
        try:
            resources.append(LearningResource.model_validate(entry))
        except ValueError as e:
            logger.warning("Skipping malformed learning resource %s: %s", entry.get("uid"), e)
    return resources


class SkillGapAnalyzer:
    """
    Skill gap analysis over the live job index.

    Every call re-queries the backends. Backend failures degrade the affected
    numbers to zero; analyze_skill_gaps() always returns a complete SkillGapAnalysis.
    """

    def __init__(
        self,
        search_client: SearchClient,
        content_client: ContentClient,
        normalizer: Optional[SkillNormalizer] = None,
        scan_limit: int = 1000,
    ):
        self.search = search_client
        self.content = content_client
        self.normalizer = normalizer or SkillNormalizer()
        self.market = MarketAnalyzer(search_client, scan_limit=scan_limit)

    async def count_matching_jobs(self, skills: list[str]) -> Outcome[int]:
        """Jobs matching any of the skills (normalized, OR semantics)."""
        terms = [s for s in (normalize_skill(x) for x in skills) if s]
        return await self.search.count_matching(terms)

    async def _learning_resources(self) -> list[LearningResource]:
        result = await self.content.get_learning_resources()
        if not result.is_ok:
            logger.warning("Learning resources unavailable: %s", result.reason)
            return []
        return _parse_resources(result.value or [])

    async def analyze_skill_gaps(self, user_skills: list[str]) -> SkillGapAnalysis:
        """
        Analyze skill gaps for a user.

        Args:
            user_skills: Skills as the user wrote them; may be empty

        Returns:
            SkillGapAnalysis with demand, gaps, recommendations and the
            projected match after learning the top three gaps
        """
        user_skills = list(user_skills or [])

        market, matching, resources = await asyncio.gather(
            self.market.analyze_job_market(),
            self.count_matching_jobs(user_skills),
            self._learning_resources(),
        )

        if not matching.is_ok:
            logger.warning("Matching job count unavailable: %s", matching.reason)
        matching_jobs = matching.value_or(0)
        match_percentage = min(100, percentage_of(matching_jobs, market.total_jobs))

        gaps = find_skill_gaps(market.top_skills, user_skills)
        recommendations = build_recommendations(gaps, resources, self.normalizer)

        # Optimistic: counts postings mentioning the new terms, not jobs the user qualifies for
        top_gap_skills = [g.skill for g in gaps[:PROJECTION_GAP_COUNT]]
        projected = await self.count_matching_jobs(user_skills + top_gap_skills)
        if not projected.is_ok:
            logger.warning("Projected job count unavailable: %s", projected.reason)

        return SkillGapAnalysis(
            user_skills=user_skills,
            total_jobs=market.total_jobs,
            matching_jobs=matching_jobs,
            match_percentage=match_percentage,
            top_demanded_skills=market.top_skills[:MAX_TOP_DEMANDED],
            skill_gaps=gaps[:MAX_SKILL_GAPS],
            recommendations=recommendations,
            potential_match_after_learning=projected.value_or(0),
            data_available=market.available,
        )

    async def quick_summary(self, user_skills: list[str]) -> QuickSkillGapSummary:
        """Match percentage, top three missing skills and the projected job gain."""
        analysis = await self.analyze_skill_gaps(user_skills)
        return QuickSkillGapSummary(
            match_percentage=analysis.match_percentage,
            top_missing_skills=[g.skill for g in analysis.skill_gaps[:PROJECTION_GAP_COUNT]],
            potential_increase=analysis.potential_match_after_learning - analysis.matching_jobs,
        )
