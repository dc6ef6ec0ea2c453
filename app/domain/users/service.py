"""User service - Registration and profile lookup"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...database import require_admin_session
from ...models import User
from ...security_utils import create_user_token
from .repository import UserRepository
from .schemas import UserRegister

logger = logging.getLogger(__name__)


class UserService:
    """Service layer for user business logic"""

    def __init__(self, db: Session, admin_db: Optional[Session] = None):
        self.db = db
        self.admin_db = admin_db
        self.repo = UserRepository()

    def register(self, data: UserRegister) -> tuple[User, str]:
        """Upsert by email and mint a user session token"""
        db = require_admin_session(self.admin_db)
        user = self.repo.upsert_user(db, data.email, data.name, data.group_id)
        logger.info(f"👤 User session issued for {user.email}")
        return user, create_user_token(user.id, user.email, user.name)

    def get_current_user(self, claims: dict) -> User:
        # Profile reads fall back to the public session when no service key is configured
        db = self.admin_db if self.admin_db is not None else self.db
        user = self.repo.get_user_by_email(db, claims["email"])
        if not user:
            raise HTTPException(status_code=404, detail="User not found")
        return user
