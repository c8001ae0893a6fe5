"""
SkillPulse - Skill Gap Analysis for Job Seekers
Main FastAPI Application
"""
from datetime import datetime, timezone

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.database import init_db
from app.core.logging import configure_logging
from app.api import jobs, skill_gap, users
from app.api.dependencies import get_content_client, get_geolocation, get_search_client
from app.schemas.job import Geolocation
from app.services.content_client import ContentClient
from app.services.search_client import SearchClient

configure_logging()

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="""
    SkillPulse - Know Which Skills the Market Wants

    ## Features
    - **Skill Gap Analysis**: Compares your skills with demand across every indexed job
    - **Learning Recommendations**: Tutorials from the CMS for your top missing skills
    - **Job Recommendations**: Open jobs ranked by the share of your skills they use
    - **Index Sync**: Pushes CMS job postings into the search index

    ## Backends
    Job postings are searched in Algolia; learning resources, jobs and companies
    come from Contentstack. Without credentials the service still answers,
    with zeroed market data.
    """,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Startup event
@app.on_event("startup")
async def startup():
    """Initialize database on startup."""
    await init_db()


# Health check
@app.get("/health")
async def health_check(
    search: SearchClient = Depends(get_search_client),
    content: ContentClient = Depends(get_content_client),
):
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "demo_mode": settings.DEMO_MODE,
        "search_configured": search.configured,
        "content_configured": content.configured,
    }


@app.get(f"{settings.API_PREFIX}/geo")
async def visitor_geolocation(geo: Geolocation = Depends(get_geolocation)):
    """Visitor location as seen by the edge."""
    return {
        **geo.model_dump(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# Include routers
app.include_router(skill_gap.router, prefix=settings.API_PREFIX)
app.include_router(jobs.router, prefix=settings.API_PREFIX)
app.include_router(users.router, prefix=settings.API_PREFIX)


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/health",
        "api_prefix": settings.API_PREFIX,
        "endpoints": {
            "skill_gap": f"{settings.API_PREFIX}/skill-gap",
            "job_recommendations": f"{settings.API_PREFIX}/jobs/recommendations",
            "index_sync": f"{settings.API_PREFIX}/jobs/sync-index",
            "user_skills": f"{settings.API_PREFIX}/user/skills",
            "geo": f"{settings.API_PREFIX}/geo",
        }
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
