"""
SkillPulse Skill Gap API
Skill gap analysis against the live job market
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.dependencies import get_skill_gap_analyzer
from app.core.database import get_db
from app.core.security import get_optional_user_email
from app.schemas.skill_gap import SkillGapRequest, clean_skill_list
from app.services.skill_gap_analyzer import SkillGapAnalyzer
from app.services.user_skills import get_user_skills

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/skill-gap",
    tags=["Skill Gap"],
    responses={
        400: {"description": "No skills provided"},
        503: {"description": "Search index not configured"},
    },
)

SEARCH_NOT_CONFIGURED = "Search service not configured"


async def _run(analyzer: SkillGapAnalyzer, skills: list[str], quick: bool):
    if not analyzer.search.configured:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=SEARCH_NOT_CONFIGURED)

    logger.info("Skill gap analysis for %d skills (quick=%s)", len(skills), quick)
    if quick:
        return await analyzer.quick_summary(skills)
    return await analyzer.analyze_skill_gaps(skills)


@router.post(
    "",
    responses={200: {"description": "SkillGapAnalysis, or QuickSkillGapSummary when quick is set"}},
    summary="Analyze Skill Gaps",
    description="""
    Compare a skill list against demand across every indexed job.

    **How it works:**
    1. Tallies how many jobs list each skill (top 50)
    2. Counts jobs matching any of your skills
    3. Lists in-demand skills you don't have, ranked by priority
       (high >= 30% of jobs, medium >= 15%, low otherwise)
    4. Attaches up to 3 learning resources to each of the top 5 gaps
    5. Projects how many jobs match after learning the top 3 gaps

    Skills match loosely: "React" covers "react.js", and "java" also covers
    "javascript".

    Set `quick` for a condensed summary.
    """,
)
async def analyze_skill_gaps(
    request: SkillGapRequest,
    analyzer: SkillGapAnalyzer = Depends(get_skill_gap_analyzer),
):
    """Analyze skill gaps for the provided skills (no sign-in needed)."""
    if not request.user_skills:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please provide a non-empty array of skills",
        )

    return await _run(analyzer, request.user_skills, request.quick)


@router.get(
    "",
    responses={200: {"description": "SkillGapAnalysis, or QuickSkillGapSummary when quick is set"}},
    summary="Analyze Skill Gaps (query or profile)",
)
async def analyze_skill_gaps_get(
    skills: Optional[str] = Query(None, description="Comma-separated skills; defaults to your saved skills"),
    quick: bool = Query(False, description="Return the condensed summary"),
    email: Optional[str] = Depends(get_optional_user_email),
    db=Depends(get_db),
    analyzer: SkillGapAnalyzer = Depends(get_skill_gap_analyzer),
):
    """Analyze skill gaps for query-string skills or the signed-in user's profile."""
    if skills is not None:
        skill_list = clean_skill_list(skills) or []
    elif email:
        skill_list = await get_user_skills(db, email)
    else:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Please log in or provide skills parameter",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not skill_list:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No skills found. Please add skills to your profile.",
        )

    return await _run(analyzer, skill_list, quick)
