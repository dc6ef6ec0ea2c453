"""User repository - Database operations for user profiles"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import User


class UserRepository:
    """Repository for user database operations"""

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email.lower()).first()

    @staticmethod
    def upsert_user(db: Session, email: str, name: str, group_id: Optional[str] = None) -> User:
        """Create the profile on first sight, refresh name and group afterwards"""
        user = db.query(User).filter(User.email == email.lower()).first()
        if user:
            user.name = name
            if group_id:
                user.group_id = group_id
        else:
            user = User(email=email.lower(), name=name, group_id=group_id)
            db.add(user)

        db.commit()
        db.refresh(user)
        return user
