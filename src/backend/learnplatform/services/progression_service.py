"""
XP / level ledger

Single write path for a learner's xp, points and level. Lesson completion, quiz passes
and lab completion all go through ProgressionService.award_xp.
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from learnplatform.core.errors import MESSAGES, BadRequestError
from learnplatform.models import User

logger = logging.getLogger(__name__)

XP_PER_LEVEL = 500


def level_for_xp(xp: int) -> int:
    """Level derived from total xp: xp // 500 + 1"""
    return xp // XP_PER_LEVEL + 1


class ProgressionService:
    """XP / level ledger"""

    @staticmethod
    def award_xp(db: Session, user_id: str, amount: int) -> Optional[User]:
        """
        Add xp (and the same amount of leaderboard points) to a learner

        The read-compute-write happens inside one UPDATE statement, so concurrent
        awards to the same learner cannot lose an increment. SET expressions see the
        pre-update row, which keeps level == (xp + amount) // 500 + 1.

        Args:
            db: database session
            user_id: learner id
            amount: positive xp amount

        Returns:
            Optional[User]: the refreshed user, or None when the user does not exist

        Raises:
            BadRequestError: amount is not a positive integer
        """
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise BadRequestError(MESSAGES["invalid_xp_amount"])

        updated = db.query(User).filter(User.id == user_id).update(
            {
                User.xp: User.xp + amount,
                User.points: User.points + amount,
                User.level: (User.xp + amount) // XP_PER_LEVEL + 1,
            },
            synchronize_session=False,
        )

        if not updated:
            logger.warning(f"XP award skipped, user not found: user={user_id}, amount={amount}")
            db.rollback()
            return None

        db.commit()

        user = db.query(User).filter(User.id == user_id).first()
        db.refresh(user)
        logger.info(f"XP awarded: user={user_id}, amount={amount}, xp={user.xp}, level={user.level}")
        return user

    @staticmethod
    def level_progress(xp: int) -> dict:
        """
        Position of an xp total inside its level

        Args:
            xp: total xp

        Returns:
            dict: level, xp, xp_into_level, xp_for_next_level, percent (0-100)
        """
        xp_into_level = xp % XP_PER_LEVEL
        return {
            "level": level_for_xp(xp),
            "xp": xp,
            "xp_into_level": xp_into_level,
            "xp_for_next_level": XP_PER_LEVEL - xp_into_level,
            "percent": round(xp_into_level / XP_PER_LEVEL * 100, 2),
        }
