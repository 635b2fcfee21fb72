"""User repository - Database operations for the signed-in user's record"""

from sqlalchemy.orm import Session

from ...models import User


class UserRepository:
    """Repository for user profile updates"""

    @staticmethod
    def update_user(db: Session, user: User, **updates) -> User:
        for key, value in updates.items():
            if value is not None and hasattr(user, key):
                setattr(user, key, value)
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def set_preferences(db: Session, user: User, preferences: dict) -> User:
        # Reassign so the JSON column is marked dirty
        user.preferences = dict(preferences)
        db.commit()
        db.refresh(user)
        return user
