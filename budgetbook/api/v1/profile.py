"""
Profile API endpoints
"""
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from budgetbook.api.deps import get_db, get_current_user
from budgetbook.application.profile import ProfileService
from budgetbook.infrastructure.db.models import User, Profile


router = APIRouter(prefix="/api/v1/profile", tags=["profile"])


class UpdateProfileRequest(BaseModel):
    name: str | None = None
    age: Any = None  # int or numeric string
    location: str | None = None


class ProfileResponse(BaseModel):
    name: str | None = None
    age: int | None = None
    location: str | None = None
    updated_at: datetime | None = None


def _profile_response(profile: Profile) -> ProfileResponse:
    return ProfileResponse(
        name=profile.name,
        age=profile.age,
        location=profile.location,
        updated_at=profile.updated_at,
    )


@router.get("/")
def get_profile(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Профиль текущего пользователя (пустой создаётся при первом запросе)"""
    profile = ProfileService(db).get_or_create(user.id)
    return {
        "profile": _profile_response(profile),
        "user": {"id": str(user.id), "email": user.email},
    }


@router.put("/")
def update_profile(
    req: UpdateProfileRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Сохранить имя, возраст и город"""
    profile = ProfileService(db).update(user.id, name=req.name, age=req.age, location=req.location)
    return {"profile": _profile_response(profile)}
