"""
Pytest configuration and fixtures for SkillPulse tests.
"""
import json
import os
import pytest
from pathlib import Path


def pytest_configure():
    # Settings are read at import time; keep tests off real backends
    os.environ["SKIP_DB"] = "true"
    os.environ["DEMO_MODE"] = "false"
    os.environ["SECRET_KEY"] = "test-secret-key"
    for name in (
        "ALGOLIA_APP_ID", "ALGOLIA_SEARCH_KEY", "ALGOLIA_ADMIN_KEY",
        "CONTENTSTACK_API_KEY", "CONTENTSTACK_DELIVERY_TOKEN", "CONTENTSTACK_ENVIRONMENT",
        "SKILL_TECHNOLOGY_MAP_PATH",
    ):
        os.environ.pop(name, None)


def make_job(uid, skills, **fields):
    """Index record with the given skill names."""
    return {
        "objectID": uid,
        "title": fields.pop("title", f"Opening {uid}"),
        "skills": [{"skill": s, "proficiency": "intermediate"} for s in skills],
        "skillNames": list(skills),
        "skillsText": " ".join(skills),
        **fields,
    }


@pytest.fixture
def demo_jobs():
    """Load demo jobs dataset."""
    demo_path = Path(__file__).parent.parent / "data" / "demo_jobs.json"
    with open(demo_path, "r") as f:
        return json.load(f)


@pytest.fixture
def market_jobs():
    """
    100 jobs: React in 40, Docker in 20, the rest list no skills.
    """
    jobs = []
    for i in range(100):
        if i < 40:
            skills = ["React"]
        elif i < 60:
            skills = ["Docker"]
        else:
            skills = []
        jobs.append(make_job(f"job_{i:03d}", skills))
    return jobs


@pytest.fixture
def learning_resources():
    """CMS learning resources across a few technology buckets, in CMS order."""
    return [
        {"uid": "lr_docker_1", "title": "Docker from Zero", "slug": "docker-from-zero",
         "technology": "docker", "skills_covered": ["Docker"], "featured": True, "order": 1},
        {"uid": "lr_docker_2", "title": "Multi-stage Builds", "slug": "docker-multi-stage",
         "technology": "docker", "skills_covered": ["Docker"], "featured": False, "order": 2},
        {"uid": "lr_docker_3", "title": "Compose in Practice", "slug": "docker-compose",
         "technology": "docker", "skills_covered": ["Docker", "Compose"], "featured": False, "order": 3},
        {"uid": "lr_docker_4", "title": "Docker Security", "slug": "docker-security",
         "technology": "docker", "skills_covered": ["Docker"], "featured": False, "order": 4},
        {"uid": "lr_k8s_1", "title": "Kubernetes Basics", "slug": "kubernetes-basics",
         "technology": "kubernetes", "skills_covered": ["Kubernetes"], "featured": True, "order": 5},
        {"uid": "lr_tf_1", "title": "Terraform Up and Running", "slug": "terraform-basics",
         "technology": "infrastructure", "skills_covered": ["Terraform"], "featured": False, "order": 6},
    ]


@pytest.fixture
def search_client(market_jobs):
    from app.services.search_client import InMemorySearchClient
    return InMemorySearchClient(market_jobs)


@pytest.fixture
def content_client(learning_resources):
    from app.services.content_client import InMemoryContentClient
    return InMemoryContentClient({"learning_resource": learning_resources})


@pytest.fixture(autouse=True)
def clear_user_skills():
    """Skipped-database skill storage is process-wide."""
    from app.services.user_skills import reset_memory_store
    reset_memory_store()
    yield
    reset_memory_store()


@pytest.fixture
def client(search_client, content_client):
    """API client wired to in-memory backends."""
    from fastapi.testclient import TestClient
    from app.api.dependencies import get_content_client, get_search_client
    from app.main import app

    app.dependency_overrides[get_search_client] = lambda: search_client
    app.dependency_overrides[get_content_client] = lambda: content_client

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    """Bearer token for jane@example.com."""
    from app.core.security import create_access_token
    token = create_access_token("jane@example.com")
    return {"Authorization": f"Bearer {token}"}
