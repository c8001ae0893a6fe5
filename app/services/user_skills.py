"""
SkillPulse User Skill Store
Saves and loads a user's skill list

Uses the user_skills table, or an in-process dict when the database is skipped.
"""
import logging

from sqlalchemy import select

from app.core.database import use_database
from app.models.user import UserSkills

logger = logging.getLogger(__name__)

# Skipped-database storage: email -> skills
_memory_skills: dict[str, list[str]] = {}


def clean_skills(skills: list) -> list[str]:
    """Trim, drop blanks, and dedupe case-insensitively keeping the first spelling."""
    seen = set()
    cleaned = []
    for skill in skills or []:
        if not isinstance(skill, str):
            continue
        skill = skill.strip()
        key = skill.lower()
        if skill and key not in seen:
            seen.add(key)
            cleaned.append(skill)
    return cleaned


def _key(email: str) -> str:
    return (email or "").strip().lower()


async def get_user_skills(db, email: str) -> list[str]:
    """Saved skills for a user; [] when none are saved."""
    if not use_database():
        return list(_memory_skills.get(_key(email), []))

    result = await db.execute(select(UserSkills).where(UserSkills.email == _key(email)))
    row = result.scalar_one_or_none()
    return list(row.skills or []) if row else []


async def save_user_skills(db, email: str, skills: list) -> list[str]:
    """Replace a user's skills. Returns what was stored."""
    cleaned = clean_skills(skills)

    if not use_database():
        _memory_skills[_key(email)] = cleaned
        return list(cleaned)

    result = await db.execute(select(UserSkills).where(UserSkills.email == _key(email)))
    row = result.scalar_one_or_none()
    if row is None:
        row = UserSkills(email=_key(email), skills=cleaned)
        db.add(row)
    else:
        row.skills = cleaned
    await db.flush()

    logger.info("Saved %d skills for %s", len(cleaned), _key(email))
    return list(cleaned)


def reset_memory_store() -> None:
    """Clear skipped-database storage (tests)."""
    _memory_skills.clear()
