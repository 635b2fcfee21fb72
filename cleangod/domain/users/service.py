"""User service - profile and settings pages"""

import logging

from sqlalchemy.orm import Session

from ...models import User
from ...retry import COLLABORATOR_ERRORS, service_unavailable
from .repository import UserRepository
from .schemas import (
    NotificationPreferences,
    NotificationPreferencesUpdate,
    UserProfile,
    UserProfileUpdate,
)

logger = logging.getLogger(__name__)


def user_to_profile(u: User) -> UserProfile:
    return UserProfile(
        id=u.id,
        name=u.name,
        email=u.email,
        phone=u.phone,
        avatar=u.avatar,
        role=u.role,
        isVerified=u.is_verified,
        createdAt=u.created_at,
    )


def stored_preferences(u: User) -> NotificationPreferences:
    """Saved switches over the defaults; unknown keys in old records are ignored"""
    saved = u.preferences or {}
    known = {key: value for key, value in saved.items() if key in NotificationPreferences.model_fields}
    return NotificationPreferences(**known)


class UserService:
    """Service layer for the signed-in user's own record"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = UserRepository()

    def get_profile(self, user: User) -> UserProfile:
        return user_to_profile(user)

    def update_profile(self, user: User, data: UserProfileUpdate) -> UserProfile:
        try:
            user = self.repo.update_user(self.db, user, name=data.name, phone=data.phone)
        except COLLABORATOR_ERRORS as e:
            self.db.rollback()
            raise service_unavailable("update profile", e) from e
        logger.info(f"👤 Profile updated for user {user.id}")
        return user_to_profile(user)

    def get_preferences(self, user: User) -> NotificationPreferences:
        return stored_preferences(user)

    def update_preferences(
        self, user: User, data: NotificationPreferencesUpdate
    ) -> NotificationPreferences:
        merged = stored_preferences(user).model_copy(update=data.model_dump(exclude_none=True))
        try:
            user = self.repo.set_preferences(self.db, user, merged.model_dump())
        except COLLABORATOR_ERRORS as e:
            self.db.rollback()
            raise service_unavailable("update preferences", e) from e
        return stored_preferences(user)
