"""
SkillPulse Content Client
Reads learning resources, jobs and companies from the headless CMS (Contentstack)
"""
import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import aiohttp

from app.core.errors import ContentBackendError, Outcome

logger = logging.getLogger(__name__)

LEARNING_RESOURCE = "learning_resource"
JOB = "job"
COMPANY = "company"

# Delivery API hosts by region
CDN_HOSTS = {
    "us": "cdn.contentstack.io",
    "eu": "eu-cdn.contentstack.com",
    "azure-na": "azure-na-cdn.contentstack.com",
    "azure-eu": "azure-eu-cdn.contentstack.com",
    "gcp-na": "gcp-na-cdn.contentstack.com",
}

# Delivery API page size limit
PAGE_SIZE = 100


class ContentClient:
    """Interface for CMS reads."""

    configured = True

    async def get_entries(
        self,
        content_type: str,
        query: Optional[dict] = None,
        limit: Optional[int] = None,
        order_by: Optional[str] = None,
    ) -> Outcome[list[dict]]:
        raise NotImplementedError

    async def get_entry(self, content_type: str, uid: str) -> Outcome[Optional[dict]]:
        raise NotImplementedError

    async def get_learning_resources(
        self,
        technology: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> Outcome[list[dict]]:
        """Learning resources in CMS order, optionally for one technology."""
        query = {"technology": technology} if technology else None
        return await self.get_entries(LEARNING_RESOURCE, query=query, limit=limit, order_by="order")

    async def get_jobs(self) -> Outcome[list[dict]]:
        return await self.get_entries(JOB)

    async def get_company(self, uid: str) -> Outcome[Optional[dict]]:
        return await self.get_entry(COMPANY, uid)


class UnconfiguredContentClient(ContentClient):
    """CMS without credentials."""

    configured = False
    REASON = "content backend not configured"

    async def get_entries(self, content_type, query=None, limit=None, order_by=None):
        return Outcome.unavailable(self.REASON)

    async def get_entry(self, content_type, uid):
        return Outcome.unavailable(self.REASON)


class ContentstackClient(ContentClient):
    """Contentstack Content Delivery API over REST."""

    def __init__(
        self,
        api_key: str,
        delivery_token: str,
        environment: str,
        region: str = "us",
        timeout: float = 10.0,
    ):
        self.api_key = api_key
        self.delivery_token = delivery_token
        self.environment = environment
        self.host = CDN_HOSTS.get((region or "us").lower(), CDN_HOSTS["us"])
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    @property
    def _headers(self) -> dict:
        return {
            "api_key": self.api_key,
            "access_token": self.delivery_token,
        }

    async def _get(self, path: str, params: dict) -> dict:
        url = f"https://{self.host}/v3{path}"
        params = {"environment": self.environment, **params}

        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            async with session.get(url, headers=self._headers, params=params) as response:
                if response.status == 404:
                    return {}
                if response.status != 200:
                    text = await response.text()
                    raise ContentBackendError(
                        f"Contentstack returned {response.status}: {text[:200]}",
                        status=response.status,
                    )
                return await response.json()

    async def get_entries(self, content_type, query=None, limit=None, order_by=None):
        entries: list[dict] = []
        skip = 0

        try:
            while True:
                page_size = PAGE_SIZE if limit is None else min(PAGE_SIZE, limit - len(entries))
                params = {"limit": page_size, "skip": skip, "include_count": "true"}
                if query:
                    params["query"] = json.dumps(query)
                if order_by:
                    params["asc"] = order_by

                data = await self._get(f"/content_types/{content_type}/entries", params)
                page = data.get("entries") or []
                entries.extend(page)
                skip += len(page)

                total = data.get("count", len(entries))
                if not page or skip >= total or (limit is not None and len(entries) >= limit):
                    break
        except (aiohttp.ClientError, asyncio.TimeoutError, ContentBackendError, ValueError) as e:
            logger.warning("Contentstack query for %s failed: %s", content_type, e)
            return Outcome.unavailable(str(e) or e.__class__.__name__)

        return Outcome.ok(entries)

    async def get_entry(self, content_type, uid):
        try:
            data = await self._get(f"/content_types/{content_type}/entries/{uid}", {})
        except (aiohttp.ClientError, asyncio.TimeoutError, ContentBackendError, ValueError) as e:
            logger.warning("Contentstack fetch of %s/%s failed: %s", content_type, uid, e)
            return Outcome.unavailable(str(e) or e.__class__.__name__)

        return Outcome.ok(data.get("entry"))


class InMemoryContentClient(ContentClient):
    """CMS entries held in memory, keyed by content type."""

    def __init__(self, entries: Optional[dict[str, list[dict]]] = None):
        self.entries = {k: list(v) for k, v in (entries or {}).items()}

    @classmethod
    def from_json(cls, path: Path) -> "InMemoryContentClient":
        with open(path, "r", encoding="utf-8") as f:
            return cls(json.load(f))

    async def get_entries(self, content_type, query=None, limit=None, order_by=None):
        entries = list(self.entries.get(content_type, []))
        if query:
            entries = [e for e in entries if all(e.get(k) == v for k, v in query.items())]
        if order_by:
            # Entries without the field keep their place after ordered ones
            entries.sort(key=lambda e: (e.get(order_by) is None, e.get(order_by) or 0))
        if limit is not None:
            entries = entries[:limit]
        return Outcome.ok(entries)

    async def get_entry(self, content_type, uid):
        for entry in self.entries.get(content_type, []):
            if entry.get("uid") == uid:
                return Outcome.ok(entry)
        return Outcome.ok(None)


def build_content_client(settings) -> ContentClient:
    """Pick the CMS client variant for the current settings."""
    if settings.DEMO_MODE:
        path = settings.demo_data_dir() / "demo_content.json"
        try:
            return InMemoryContentClient.from_json(path)
        except (OSError, ValueError) as e:
            logger.warning("Could not load demo content from %s: %s", path, e)
            return UnconfiguredContentClient()

    if not settings.content_configured:
        logger.warning("Contentstack credentials not configured. Learning recommendations are disabled.")
        return UnconfiguredContentClient()

    return ContentstackClient(
        api_key=settings.CONTENTSTACK_API_KEY,
        delivery_token=settings.CONTENTSTACK_DELIVERY_TOKEN,
        environment=settings.CONTENTSTACK_ENVIRONMENT,
        region=settings.CONTENTSTACK_REGION,
        timeout=settings.UPSTREAM_TIMEOUT_SECONDS,
    )
