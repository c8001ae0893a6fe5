"""
SkillPulse Jobs API
Skill-based job recommendations and search index sync

This module provides endpoints for:
- Recommending open jobs for a skill list
- Pushing CMS job entries into the search index
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.dependencies import (
    get_geolocation, get_index_sync, get_job_recommender,
)
from app.core.errors import ContentBackendError, SearchBackendError
from app.schemas.job import (
    Geolocation, IndexSyncResponse, JobRecommendationRequest,
    JobRecommendationResponse, RecommendedJob,
)
from app.schemas.skill_gap import clean_skill_list
from app.services.index_sync import IndexSyncService
from app.services.job_recommender import DEFAULT_LIMIT, JobRecommender

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/jobs",
    tags=["Jobs"],
    responses={
        503: {"description": "Search index not configured"},
    },
)


async def _recommend(
    recommender: JobRecommender,
    skills: Optional[list[str]],
    limit: int,
    geolocation: Geolocation,
) -> JobRecommendationResponse:
    if not recommender.search.configured:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Search service not configured. Add ALGOLIA_APP_ID and ALGOLIA_SEARCH_KEY to the environment.",
        )

    if not skills:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please provide an array of skills",
        )

    jobs = await recommender.get_job_recommendations(skills, limit=limit, geolocation=geolocation)
    recommendations = [RecommendedJob.from_scored(job) for job in jobs]

    return JobRecommendationResponse(
        recommendations=recommendations,
        total_found=len(recommendations),
        searched_skills=skills,
        geolocation=geolocation,
    )


@router.post(
    "/recommendations",
    response_model=JobRecommendationResponse,
    summary="Recommend Jobs for Skills",
    description="""
    Find open jobs that use any of the given skills.

    Jobs are fetched with every skill optional (a job matching any one skill
    qualifies), then ranked by **matchScore**: the fraction of your skills
    the job lists. Among equal scores, jobs near the visitor's location come
    first.
    """,
)
async def recommend_jobs(
    request: JobRecommendationRequest,
    recommender: JobRecommender = Depends(get_job_recommender),
    geolocation: Geolocation = Depends(get_geolocation),
):
    """Job recommendations for a skill list."""
    return await _recommend(recommender, request.skills, request.limit, geolocation)


@router.get("/recommendations", summary="Recommend Jobs (query string)")
async def recommend_jobs_get(
    skills: Optional[str] = Query(None, description="Comma-separated skills"),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=100),
    recommender: JobRecommender = Depends(get_job_recommender),
    geolocation: Geolocation = Depends(get_geolocation),
):
    """Job recommendations for comma-separated skills; usage info without them."""
    if skills is None:
        return {
            "message": "Job Recommendations API",
            "usage": {
                "POST": {
                    "body": {"skills": ["React", "TypeScript"], "limit": DEFAULT_LIMIT},
                    "description": "Get job recommendations based on skills",
                },
                "GET": {
                    "query": f"?skills=React,TypeScript&limit={DEFAULT_LIMIT}",
                    "description": "Get job recommendations (skills comma-separated)",
                },
            },
            "searchConfigured": recommender.search.configured,
        }

    response = await _recommend(recommender, clean_skill_list(skills), limit, geolocation)
    return response.model_dump(by_alias=True)


@router.post(
    "/sync-index",
    response_model=IndexSyncResponse,
    summary="Sync CMS Jobs to Search Index",
    responses={
        404: {"description": "No jobs in the CMS"},
        502: {"description": "CMS or search index request failed"},
    },
)
async def sync_index(sync: IndexSyncService = Depends(get_index_sync)):
    """
    Copy every CMS job into the search index.

    Needs the index admin key. Company references are resolved for each job;
    jobs whose company lookup fails are still synced.
    """
    if not sync.search.writable:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Search admin credentials not configured. Add ALGOLIA_ADMIN_KEY to the environment.",
        )
    if not sync.content.configured:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Content service not configured",
        )

    try:
        records = await sync.sync()
    except (ContentBackendError, SearchBackendError) as e:
        logger.error("Index sync failed: %s", e)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Sync failed: {e}")

    if not records:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No jobs found in the CMS")

    return IndexSyncResponse(
        synced=len(records),
        jobs=[{"id": r.object_id, "title": r.title, "skills": r.skill_names} for r in records],
    )
