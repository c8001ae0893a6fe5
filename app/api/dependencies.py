"""
SkillPulse API Dependencies
Backend clients and services wired from settings

Clients are built once per process; tests swap them with
app.dependency_overrides.
"""
from functools import lru_cache

from fastapi import Depends, Request

from app.core.config import settings
from app.schemas.job import Geolocation
from app.services.content_client import ContentClient, build_content_client
from app.services.index_sync import IndexSyncService
from app.services.job_recommender import JobRecommender
from app.services.search_client import SearchClient, build_search_client
from app.services.skill_gap_analyzer import SkillGapAnalyzer
from app.services.skill_normalizer import SkillNormalizer, build_skill_normalizer


@lru_cache
def get_search_client() -> SearchClient:
    return build_search_client(settings)


@lru_cache
def get_content_client() -> ContentClient:
    return build_content_client(settings)


@lru_cache
def get_skill_normalizer() -> SkillNormalizer:
    return build_skill_normalizer(settings)


def get_skill_gap_analyzer(
    search: SearchClient = Depends(get_search_client),
    content: ContentClient = Depends(get_content_client),
    normalizer: SkillNormalizer = Depends(get_skill_normalizer),
) -> SkillGapAnalyzer:
    return SkillGapAnalyzer(search, content, normalizer, scan_limit=settings.MARKET_SCAN_LIMIT)


def get_job_recommender(search: SearchClient = Depends(get_search_client)) -> JobRecommender:
    return JobRecommender(search)


def get_index_sync(
    search: SearchClient = Depends(get_search_client),
    content: ContentClient = Depends(get_content_client),
) -> IndexSyncService:
    return IndexSyncService(content, search)


def get_geolocation(request: Request) -> Geolocation:
    """
    Visitor location from edge headers.

    The edge proxy forwards x-visitor-*; requests that reach us directly from
    the edge carry visitor-ip-* instead.
    """
    headers = request.headers
    return Geolocation(
        country=headers.get("x-visitor-country") or headers.get("visitor-ip-country") or "",
        region=headers.get("x-visitor-region") or headers.get("visitor-ip-region") or "",
        city=headers.get("x-visitor-city") or headers.get("visitor-ip-city") or "",
    )
