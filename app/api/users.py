"""
SkillPulse User API
The signed-in user's saved skills
"""
from fastapi import APIRouter, Depends, HTTPException, status

from app.core.database import get_db
from app.core.security import get_current_user_email
from app.schemas.user import UserSkillsResponse, UserSkillsUpdate
from app.services.user_skills import get_user_skills, save_user_skills

router = APIRouter(
    prefix="/user",
    tags=["User"],
    responses={401: {"description": "Not authenticated"}},
)


@router.get("/skills", response_model=UserSkillsResponse)
async def read_skills(
    email: str = Depends(get_current_user_email),
    db=Depends(get_db),
):
    """Get the signed-in user's skills."""
    return UserSkillsResponse(email=email, skills=await get_user_skills(db, email))


@router.post("/skills", response_model=UserSkillsResponse)
async def replace_skills(
    update: UserSkillsUpdate,
    email: str = Depends(get_current_user_email),
    db=Depends(get_db),
):
    """Replace the signed-in user's skills."""
    if not isinstance(update.skills, list):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Skills must be an array",
        )

    saved = await save_user_skills(db, email, update.skills)
    return UserSkillsResponse(email=email, skills=saved)
