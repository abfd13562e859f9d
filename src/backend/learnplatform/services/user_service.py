"""
User management
Registration, login and the leaderboard
"""
import logging
import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from learnplatform.core.errors import MESSAGES, BadRequestError
from learnplatform.core.security import hash_password, verify_password
from learnplatform.models import User
from learnplatform.models.user import ROLE_STUDENT

logger = logging.getLogger(__name__)


class UserService:
    """User service"""

    @staticmethod
    def register_user(
        db: Session,
        username: str,
        password: str,
        email: str,
        name: str,
        role: str = ROLE_STUDENT
    ) -> User:
        """
        Create a user with zeroed progression counters

        Args:
            db: database session
            username: unique login name
            password: plain password, stored hashed
            email: unique email
            name: display name
            role: student | instructor | admin

        Returns:
            User: the new user

        Raises:
            BadRequestError: username or email already taken
        """
        if db.query(User).filter(User.username == username).first():
            raise BadRequestError(MESSAGES["username_taken"])
        if db.query(User).filter(User.email == email).first():
            raise BadRequestError(MESSAGES["email_taken"])

        user = User(
            id=str(uuid.uuid4()),
            username=username,
            email=email,
            password_hash=hash_password(password),
            name=name,
            role=role,
            level=1,
            xp=0,
            points=0,
            streak=0,
            is_active=True,
            created_at=datetime.utcnow()
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info(f"User registered: id={user.id}, username={username}, role={role}")
        return user

    @staticmethod
    def authenticate(db: Session, username: str, password: str) -> Optional[User]:
        """
        Check credentials

        Returns:
            Optional[User]: the user, or None for unknown user, wrong password or deactivated account
        """
        user = db.query(User).filter(User.username == username).first()
        if not user or not user.is_active:
            return None
        if not verify_password(password, user.password_hash):
            return None
        return user

    @staticmethod
    def get_user(db: Session, user_id: str) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_leaderboard(db: Session, limit: int = 10) -> List[User]:
        """
        Active students ranked by points

        Args:
            db: database session
            limit: number of rows

        Returns:
            List[User]: students, highest points first
        """
        return db.query(User).filter(
            User.role == ROLE_STUDENT,
            User.is_active == True
        ).order_by(
            User.points.desc(),
            User.created_at.asc()
        ).limit(limit).all()

    @staticmethod
    def deactivate_user(db: Session, user_id: str) -> bool:
        """
        Soft-deactivate a user; users are never deleted

        Returns:
            bool: False when the user does not exist
        """
        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            return False
        user.is_active = False
        db.commit()
        logger.info(f"User deactivated: id={user_id}")
        return True
