"""
SkillPulse Skill Normalizer
Skill name normalization and skill -> technology category lookup

Technology categories are the buckets learning resources are filed under in
the CMS (e.g. "react", "kubernetes", "ai_ml").
"""
import json
import logging
from pathlib import Path
from typing import Iterable, Mapping, Optional

logger = logging.getLogger(__name__)


DEFAULT_SKILL_TECHNOLOGY_MAP: dict[str, str] = {
    # Next.js & React
    "next.js": "nextjs",
    "nextjs": "nextjs",
    "react": "react",
    "react.js": "react",
    "reactjs": "react",

    # TypeScript & JavaScript (TypeScript resources cover JS)
    "typescript": "typescript",
    "javascript": "typescript",
    "js": "typescript",
    "ts": "typescript",

    # Backend
    "node.js": "nodejs",
    "nodejs": "nodejs",
    "node": "nodejs",
    "express": "nodejs",
    "express.js": "nodejs",

    # Python
    "python": "python",
    "django": "python",
    "flask": "python",

    # DevOps & Cloud (all clouds share the "aws" bucket)
    "docker": "docker",
    "kubernetes": "kubernetes",
    "k8s": "kubernetes",
    "aws": "aws",
    "amazon web services": "aws",
    "azure": "aws",
    "gcp": "aws",
    "google cloud": "aws",
    "ci/cd": "devops",
    "jenkins": "devops",
    "github actions": "devops",
    "devops": "devops",

    # Data & ML
    "machine learning": "ai_ml",
    "ml": "ai_ml",
    "ai": "ai_ml",
    "tensorflow": "ai_ml",
    "pytorch": "ai_ml",
    "data science": "ai_ml",

    # Database
    "sql": "database",
    "mysql": "database",
    "postgresql": "database",
    "postgres": "database",
    "mongodb": "database",
    "nosql": "database",
    "database": "database",

    # Go
    "go": "golang",
    "golang": "golang",

    # Security
    "security": "security",
    "cybersecurity": "security",
    "owasp": "security",

    # Architecture
    "microservices": "microservices",
    "api design": "microservices",
    "system design": "microservices",
}


def normalize_skill(skill) -> str:
    """Lowercase and trim a skill name. Non-strings normalize to ''."""
    if not isinstance(skill, str):
        return ""
    return skill.strip().lower()


def skills_overlap(skill1: str, skill2: str) -> bool:
    """
    Check if two skills match by substring containment in either direction.

    Deliberately loose so "React" matches "React.js". It also means "java"
    matches "javascript"; every "does the user have this skill" check in the
    service uses this same rule so results stay consistent.
    """
    s1, s2 = normalize_skill(skill1), normalize_skill(skill2)
    if not s1 or not s2:
        return False
    return s1 in s2 or s2 in s1


def has_overlapping_skill(skill: str, candidates: Iterable[str]) -> bool:
    return any(skills_overlap(skill, c) for c in candidates)


class SkillNormalizer:
    """
    Resolves skills to technology categories through a lookup table.

    The table is injected so deployments can extend it without code changes;
    keys are normalized on the way in.
    """

    def __init__(self, mapping: Optional[Mapping[str, str]] = None):
        source = DEFAULT_SKILL_TECHNOLOGY_MAP if mapping is None else mapping
        self.mapping = {
            normalize_skill(skill): normalize_skill(tech)
            for skill, tech in source.items()
            if normalize_skill(skill) and normalize_skill(tech)
        }

    @classmethod
    def from_file(cls, path: str, extend_default: bool = True) -> "SkillNormalizer":
        """
        Load the table from a JSON object of {skill: technology}.

        With extend_default, entries are layered over the built-in table.
        """
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"Skill map at {path} must be a JSON object")

        mapping = dict(DEFAULT_SKILL_TECHNOLOGY_MAP) if extend_default else {}
        mapping.update({str(k): str(v) for k, v in data.items()})
        return cls(mapping)

    def technology_for(self, skill: str) -> Optional[str]:
        """Exact lookup of the normalized skill; None when unmapped."""
        return self.mapping.get(normalize_skill(skill))


def build_skill_normalizer(settings) -> SkillNormalizer:
    """Normalizer for the configured skill map, falling back to the built-in table."""
    path = settings.SKILL_TECHNOLOGY_MAP_PATH
    if not path:
        return SkillNormalizer()

    try:
        normalizer = SkillNormalizer.from_file(path)
    except (OSError, ValueError) as e:
        logger.warning("Could not load skill map %s, using built-in table: %s", path, e)
        return SkillNormalizer()

    logger.info("Loaded skill map from %s (%d entries)", path, len(normalizer.mapping))
    return normalizer
