"""User router - the signed-in user's profile and settings"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .schemas import (
    NotificationPreferences,
    NotificationPreferencesUpdate,
    UserProfile,
    UserProfileUpdate,
)
from .service import UserService

router = APIRouter(prefix="/users", tags=["Users"])


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    """Dependency injection for UserService"""
    return UserService(db)


@router.get("/me", response_model=UserProfile)
def get_me(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return service.get_profile(current_user)


@router.put("/me", response_model=UserProfile)
def update_me(
    data: UserProfileUpdate,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    """Update name and phone from the profile page"""
    return service.update_profile(current_user, data)


@router.get("/me/preferences", response_model=NotificationPreferences)
def get_preferences(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return service.get_preferences(current_user)


@router.put("/me/preferences", response_model=NotificationPreferences)
def update_preferences(
    data: NotificationPreferencesUpdate,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return service.update_preferences(current_user, data)
