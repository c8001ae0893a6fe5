"""
SkillPulse Index Sync
Pushes CMS job entries into the search index

Each job's company reference is resolved concurrently. One failed company
lookup does not fail the batch: the job is indexed with its unresolved
reference. Jobs without any company reference get a placeholder company.
"""
import asyncio
import logging
from typing import Any, Optional

from bs4 import BeautifulSoup

from app.core.errors import ContentBackendError, SearchBackendError
from app.schemas.job import CompanySummary, JobRecord
from app.services.content_client import ContentClient
from app.services.search_client import SearchClient

logger = logging.getLogger(__name__)


def strip_html(value: Optional[str]) -> str:
    if not value:
        return ""
    return BeautifulSoup(value, "lxml").get_text()


def company_uid(reference: Any) -> Optional[str]:
    """
    Company uid from a CMS reference field.

    The field may be a uid string, a reference object, or a list of either.
    """
    if isinstance(reference, list):
        reference = reference[0] if reference else None
    if isinstance(reference, str):
        return reference or None
    if isinstance(reference, dict):
        return reference.get("uid")
    return None


def placeholder_company(job: dict) -> dict:
    return {
        "uid": "placeholder",
        "title": "Company (Not Specified)",
        "description": "Company information not available",
        "location": job.get("location") or "Location not specified",
        "industry": "Various",
        "size": "Not specified",
        "created_at": job.get("created_at"),
        "updated_at": job.get("updated_at"),
    }


def to_index_record(job: dict) -> JobRecord:
    """Flatten a CMS job entry (with resolved company) into an index record."""
    skills = [s for s in (job.get("skills") or []) if isinstance(s, dict) and s.get("skill")]
    skill_names = [s["skill"] for s in skills]

    company = job.get("company")
    if isinstance(company, list):
        company = company[0] if company else None
    summary = None
    if isinstance(company, dict):
        summary = CompanySummary(
            uid=company.get("uid"),
            title=company.get("title"),
            location=company.get("location"),
        )
    elif isinstance(company, str):
        summary = CompanySummary(uid=company)

    return JobRecord(
        object_id=job["uid"],
        title=job.get("title") or "",
        description=strip_html(job.get("description")),
        requirements=strip_html(job.get("requirements")),
        responsibilities=strip_html(job.get("responsibilities")),
        location=job.get("location"),
        type=job.get("type"),
        experience=job.get("experience"),
        category=job.get("category"),
        status=job.get("status"),
        skills=skills,
        skill_names=skill_names,
        skills_text=" ".join(skill_names),
        benefits=job.get("benefits") or [],
        salary=job.get("salary") or None,
        is_remote=job.get("is_remote") or False,
        is_urgent=job.get("is_urgent") or False,
        posted_at=job.get("posted_at"),
        expires_at=job.get("expires_at"),
        contact_email=job.get("contact_email"),
        applications_count=job.get("applications_count") or 0,
        views_count=job.get("views_count") or 0,
        created_at=job.get("created_at"),
        updated_at=job.get("updated_at"),
        company=summary,
    )


class IndexSyncService:
    """Reads every job from the CMS and writes it to the search index."""

    def __init__(self, content_client: ContentClient, search_client: SearchClient):
        self.content = content_client
        self.search = search_client

    async def _with_company(self, job: dict) -> dict:
        uid = company_uid(job.get("company"))
        if not uid:
            return {**job, "company": [placeholder_company(job)]}

        result = await self.content.get_company(uid)
        if not result.is_ok:
            logger.warning("Failed to fetch company %s for job %s: %s", uid, job.get("uid"), result.reason)
            return job
        if result.value:
            return {**job, "company": [result.value]}
        return job

    async def enrich_with_companies(self, jobs: list[dict]) -> list[dict]:
        results = await asyncio.gather(
            *(self._with_company(job) for job in jobs),
            return_exceptions=True,
        )

        enriched = []
        for job, result in zip(jobs, results):
            if isinstance(result, Exception):
                logger.error("Company lookup for job %s raised: %s", job.get("uid"), result)
                enriched.append(job)
            else:
                enriched.append(result)
        return enriched

    async def sync(self) -> list[JobRecord]:
        """
        Sync all CMS jobs into the index.

        Returns:
            The records written (empty if the CMS has no jobs)

        Raises:
            ContentBackendError: jobs could not be read from the CMS
            SearchBackendError: the index rejected the write
        """
        jobs_result = await self.content.get_jobs()
        if not jobs_result.is_ok:
            raise ContentBackendError(jobs_result.reason)

        jobs = [j for j in (jobs_result.value or []) if j.get("uid")]
        if not jobs:
            return []

        enriched = await self.enrich_with_companies(jobs)
        records = [to_index_record(job) for job in enriched]

        write = await self.search.save_objects([r.model_dump(by_alias=True) for r in records])
        if not write.is_ok:
            raise SearchBackendError(write.reason)

        logger.info("Synced %d jobs to index %s", len(records), self.search.index_name)
        return records
