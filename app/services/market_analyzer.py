"""
SkillPulse Market Analyzer
Skill demand statistics across the indexed job corpus
"""
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from app.schemas.skill_gap import SkillDemand
from app.services.search_client import SearchClient
from app.services.skill_normalizer import normalize_skill

logger = logging.getLogger(__name__)

TOP_SKILLS_LIMIT = 50


@dataclass
class MarketSnapshot:
    """Skill demand across the corpus at the time of the scan."""
    total_jobs: int = 0
    skill_demand: dict[str, int] = field(default_factory=dict)
    top_skills: list[SkillDemand] = field(default_factory=list)
    available: bool = True

    @classmethod
    def unavailable(cls) -> "MarketSnapshot":
        return cls(available=False)


def percentage_of(count: int, total: int) -> int:
    """Integer percentage, rounding halves up; 0 when total is 0."""
    if total <= 0:
        return 0
    return (count * 200 + total) // (2 * total)


def _as_list(value: Any) -> list:
    # A bare string would otherwise iterate as characters
    return list(value) if isinstance(value, (list, tuple)) else []


def job_skill_set(job: dict) -> set[str]:
    """
    Normalized, deduplicated skills of one indexed job.

    Merges the flattened skillNames list with the structured skills list,
    which may hold plain strings or {"skill": ...} objects.
    """
    names = _as_list(job.get("skillNames"))
    for s in _as_list(job.get("skills")):
        if isinstance(s, str):
            names.append(s)
        elif isinstance(s, dict) and s.get("skill"):
            names.append(s["skill"])

    return {n for n in (normalize_skill(name) for name in names) if n}


def count_skill_demand(jobs: list[dict]) -> Counter:
    """Count each skill at most once per job."""
    counts: Counter = Counter()
    for job in jobs:
        # sorted for a deterministic first-seen order among equal counts
        counts.update(sorted(job_skill_set(job)))
    return counts


def rank_skill_demand(counts: Counter, total_jobs: int, limit: int = TOP_SKILLS_LIMIT) -> list[SkillDemand]:
    return [
        SkillDemand(skill=skill, job_count=count, percentage=min(100, percentage_of(count, total_jobs)))
        for skill, count in counts.most_common(limit)
    ]


class MarketAnalyzer:
    """Scans the job index and tallies skill demand."""

    def __init__(self, search_client: SearchClient, scan_limit: int = 1000):
        self.search = search_client
        self.scan_limit = scan_limit

    async def analyze_job_market(self) -> MarketSnapshot:
        """
        Skill demand over up to scan_limit jobs fetched in one page.

        Never raises: an unreachable or unconfigured index gives an empty
        snapshot with available=False.
        """
        result = await self.search.scan_skills(self.scan_limit)
        if not result.is_ok:
            logger.warning("Job market analysis unavailable: %s", result.reason)
            return MarketSnapshot.unavailable()

        page = result.value
        total_jobs = page.nb_hits or len(page.hits)
        if total_jobs == 0:
            return MarketSnapshot(total_jobs=0)

        counts = count_skill_demand(page.hits)
        return MarketSnapshot(
            total_jobs=total_jobs,
            skill_demand=dict(counts),
            top_skills=rank_skill_demand(counts, total_jobs),
        )
