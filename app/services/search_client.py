"""
SkillPulse Search Index Client
Queries the hosted job index (Algolia) with a uniform timeout

Three variants share one interface:
- AlgoliaSearchClient: REST calls through aiohttp
- InMemorySearchClient: demo dataset / test corpus
- UnconfiguredSearchClient: credentials absent, every query is unavailable
"""
import asyncio
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import aiohttp

from app.core.errors import Outcome, SearchBackendError

logger = logging.getLogger(__name__)

# Fields the market scan needs from each job
SKILL_ATTRIBUTES = ["skillNames", "skills"]

# Algolia caps hitsPerPage and batch size at 1000
MAX_HITS_PER_PAGE = 1000
BATCH_SIZE = 1000


@dataclass
class SearchPage:
    """One page of search results."""
    hits: list[dict] = field(default_factory=list)
    nb_hits: int = 0
    page: int = 0
    nb_pages: int = 0
    hits_per_page: int = 0
    query: str = ""


class SearchClient:
    """Interface for the job search index."""

    configured = True
    writable = True
    index_name = "job"

    async def search(
        self,
        query: str,
        hits_per_page: int = 20,
        optional_words: Optional[list[str]] = None,
        attributes_to_retrieve: Optional[list[str]] = None,
        typo_tolerance: bool = True,
    ) -> Outcome[SearchPage]:
        raise NotImplementedError

    async def save_objects(self, records: list[dict]) -> Outcome[dict]:
        raise NotImplementedError

    async def scan_skills(self, limit: int = MAX_HITS_PER_PAGE) -> Outcome[SearchPage]:
        """Fetch up to `limit` jobs with only their skill fields."""
        return await self.search(
            "",
            hits_per_page=min(limit, MAX_HITS_PER_PAGE),
            attributes_to_retrieve=SKILL_ATTRIBUTES,
        )

    async def count_matching(self, terms: list[str]) -> Outcome[int]:
        """
        Number of jobs matching any of the terms.

        All terms are optional (OR semantics) and no hits are fetched.
        """
        terms = [t for t in terms if t]
        if not terms:
            return Outcome.ok(0)

        result = await self.search(
            " ".join(terms),
            hits_per_page=0,
            optional_words=terms,
        )
        if not result.is_ok:
            return Outcome.unavailable(result.reason)
        return Outcome.ok(result.value.nb_hits)

    async def search_by_skills(self, skills: list[str], limit: int = 10) -> Outcome[SearchPage]:
        """Jobs matching any of the skills, ranked by index relevance."""
        return await self.search(
            " ".join(skills),
            hits_per_page=limit,
            optional_words=list(skills),
            typo_tolerance=True,
        )


class UnconfiguredSearchClient(SearchClient):
    """Search backend without credentials."""

    configured = False
    writable = False
    REASON = "search backend not configured"

    async def search(self, query, hits_per_page=20, optional_words=None,
                     attributes_to_retrieve=None, typo_tolerance=True):
        return Outcome.unavailable(self.REASON)

    async def save_objects(self, records):
        return Outcome.unavailable(self.REASON)


class AlgoliaSearchClient(SearchClient):
    """
    Algolia REST client.

    Reads go to the DSN host with the search key; writes need the admin key.
    """

    def __init__(
        self,
        app_id: str,
        search_key: str,
        index_name: str = "job",
        admin_key: Optional[str] = None,
        timeout: float = 10.0,
    ):
        self.app_id = app_id
        self.search_key = search_key
        self.admin_key = admin_key
        self.index_name = index_name
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    @property
    def writable(self) -> bool:
        return bool(self.admin_key)

    def _headers(self, api_key: str) -> dict:
        return {
            "X-Algolia-Application-Id": self.app_id,
            "X-Algolia-API-Key": api_key,
            "Content-Type": "application/json",
        }

    @property
    def _read_url(self) -> str:
        return f"https://{self.app_id}-dsn.algolia.net/1/indexes/{self.index_name}/query"

    @property
    def _write_url(self) -> str:
        return f"https://{self.app_id}.algolia.net/1/indexes/{self.index_name}/batch"

    async def _post(self, url: str, api_key: str, payload: dict) -> dict:
        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            async with session.post(url, headers=self._headers(api_key), json=payload) as response:
                if response.status != 200:
                    text = await response.text()
                    raise SearchBackendError(
                        f"Algolia returned {response.status}: {text[:200]}",
                        status=response.status,
                    )
                return await response.json()

    async def search(self, query, hits_per_page=20, optional_words=None,
                     attributes_to_retrieve=None, typo_tolerance=True):
        payload = {
            "query": query,
            "hitsPerPage": hits_per_page,
            "typoTolerance": typo_tolerance,
        }
        if optional_words:
            payload["optionalWords"] = optional_words
        if attributes_to_retrieve:
            payload["attributesToRetrieve"] = attributes_to_retrieve

        try:
            data = await self._post(self._read_url, self.search_key, payload)
        except (aiohttp.ClientError, asyncio.TimeoutError, SearchBackendError, ValueError) as e:
            logger.warning("Algolia search failed (query=%r): %s", query, e)
            return Outcome.unavailable(str(e) or e.__class__.__name__)

        hits = data.get("hits") or []
        return Outcome.ok(SearchPage(
            hits=hits,
            nb_hits=data.get("nbHits") or len(hits),
            page=data.get("page") or 0,
            nb_pages=data.get("nbPages") or 0,
            hits_per_page=data.get("hitsPerPage") or hits_per_page,
            query=query,
        ))

    async def save_objects(self, records):
        if not self.admin_key:
            return Outcome.unavailable("Algolia admin key not configured")

        task_ids = []
        try:
            for start in range(0, len(records), BATCH_SIZE):
                chunk = records[start:start + BATCH_SIZE]
                data = await self._post(self._write_url, self.admin_key, {
                    "requests": [{"action": "updateObject", "body": r} for r in chunk],
                })
                task_ids.append(data.get("taskID"))
        except (aiohttp.ClientError, asyncio.TimeoutError, SearchBackendError, ValueError) as e:
            logger.warning("Algolia batch write failed: %s", e)
            return Outcome.unavailable(str(e) or e.__class__.__name__)

        return Outcome.ok({"taskIDs": task_ids, "objectIDs": [r.get("objectID") for r in records]})


def _searchable_text(record: dict) -> str:
    parts = [
        record.get("title"),
        record.get("description"),
        record.get("category"),
        record.get("skillsText"),
        " ".join(str(s) for s in record.get("skillNames") or []),
    ]
    for skill in record.get("skills") or []:
        parts.append(skill.get("skill") if isinstance(skill, dict) else skill)
    return " ".join(str(p) for p in parts if p).lower()


class InMemorySearchClient(SearchClient):
    """
    Job index held in memory.

    Matching is plain case-insensitive containment: an empty query matches
    everything, and with optional words a record matches when any term does.
    Typo tolerance is not emulated.
    """

    def __init__(self, records: Optional[list[dict]] = None, index_name: str = "job"):
        self.records = list(records or [])
        self.index_name = index_name

    @classmethod
    def from_json(cls, path: Path, index_name: str = "job") -> "InMemorySearchClient":
        with open(path, "r", encoding="utf-8") as f:
            return cls(json.load(f), index_name=index_name)

    def _matches(self, record: dict, query: str, optional_words: Optional[list[str]]) -> bool:
        terms = [t.lower() for t in query.split() if t]
        if not terms:
            return True

        text = _searchable_text(record)
        if optional_words:
            return any(t in text for t in terms)
        return all(t in text for t in terms)

    async def search(self, query, hits_per_page=20, optional_words=None,
                     attributes_to_retrieve=None, typo_tolerance=True):
        matched = [r for r in self.records if self._matches(r, query, optional_words)]

        hits = matched[:hits_per_page]
        if attributes_to_retrieve:
            keep = set(attributes_to_retrieve) | {"objectID"}
            hits = [{k: v for k, v in r.items() if k in keep} for r in hits]

        nb_pages = 0
        if hits_per_page:
            nb_pages = -(-len(matched) // hits_per_page)

        return Outcome.ok(SearchPage(
            hits=hits,
            nb_hits=len(matched),
            page=0,
            nb_pages=nb_pages,
            hits_per_page=hits_per_page,
            query=query,
        ))

    async def save_objects(self, records):
        by_id = {r.get("objectID"): i for i, r in enumerate(self.records)}
        for record in records:
            idx = by_id.get(record.get("objectID"))
            if idx is None:
                self.records.append(record)
            else:
                self.records[idx] = record
        return Outcome.ok({"taskIDs": [], "objectIDs": [r.get("objectID") for r in records]})


def build_search_client(settings) -> SearchClient:
    """Pick the search client variant for the current settings."""
    if settings.DEMO_MODE:
        path = settings.demo_data_dir() / "demo_jobs.json"
        try:
            return InMemorySearchClient.from_json(path, index_name=settings.ALGOLIA_INDEX_NAME)
        except (OSError, ValueError) as e:
            logger.warning("Could not load demo jobs from %s: %s", path, e)
            return UnconfiguredSearchClient()

    if not settings.search_configured:
        logger.warning("Algolia credentials not configured. Skill analysis and job recommendations are disabled.")
        return UnconfiguredSearchClient()

    return AlgoliaSearchClient(
        app_id=settings.ALGOLIA_APP_ID,
        search_key=settings.ALGOLIA_SEARCH_KEY,
        index_name=settings.ALGOLIA_INDEX_NAME,
        admin_key=settings.ALGOLIA_ADMIN_KEY,
        timeout=settings.UPSTREAM_TIMEOUT_SECONDS,
    )
