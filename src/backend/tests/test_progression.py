"""
XP / level ledger tests
"""
import pytest

from learnplatform.core.errors import BadRequestError
from learnplatform.models import User
from learnplatform.models.user import ROLE_INSTRUCTOR
from learnplatform.services.progression_service import ProgressionService, XP_PER_LEVEL, level_for_xp
from learnplatform.services.user_service import UserService


class TestLevelForXp:
    """Level derived from xp"""

    @pytest.mark.parametrize("xp,level", [
        (0, 1),
        (499, 1),
        (500, 2),
        (530, 2),
        (999, 2),
        (1000, 3),
        (12345, 25),
    ])
    def test_level_boundaries(self, xp, level):
        assert level_for_xp(xp) == level

    def test_level_progress_mid_level(self):
        progress = ProgressionService.level_progress(530)

        assert progress["level"] == 2
        assert progress["xp_into_level"] == 30
        assert progress["xp_for_next_level"] == XP_PER_LEVEL - 30
        assert progress["percent"] == 6.0

    def test_level_progress_fresh_learner(self):
        progress = ProgressionService.level_progress(0)

        assert progress["level"] == 1
        assert progress["xp_for_next_level"] == 500
        assert progress["percent"] == 0


class TestAwardXp:
    """award_xp behavior"""

    def test_crossing_a_level(self, db_session, make_user):
        user = make_user(xp=480)

        updated = ProgressionService.award_xp(db_session, user.id, 50)

        assert updated.xp == 530
        assert updated.points == 530
        assert updated.level == 2

    def test_points_mirror_gains_not_totals(self, db_session, make_user):
        user = make_user(xp=100, points=40)

        updated = ProgressionService.award_xp(db_session, user.id, 25)

        assert updated.xp == 125
        assert updated.points == 65

    def test_level_invariant_over_a_sequence(self, db_session, make_user):
        user = make_user()

        for amount in [1, 24, 475, 499, 1, 250, 750, 3]:
            updated = ProgressionService.award_xp(db_session, user.id, amount)
            assert updated.level == updated.xp // 500 + 1

        assert updated.xp == 2003
        assert updated.level == 5

    def test_unknown_user_is_noop(self, db_session, make_user):
        other = make_user(xp=10)

        result = ProgressionService.award_xp(db_session, "no-such-user", 50)

        assert result is None
        db_session.expire_all()
        assert db_session.query(User).filter(User.id == other.id).first().xp == 10

    @pytest.mark.parametrize("amount", [0, -5, True, 2.5])
    def test_rejects_non_positive_or_non_integer_amounts(self, db_session, make_user, amount):
        user = make_user(xp=10)

        with pytest.raises(BadRequestError):
            ProgressionService.award_xp(db_session, user.id, amount)

        db_session.expire_all()
        assert db_session.query(User).filter(User.id == user.id).first().xp == 10

    def test_awards_from_separate_sessions_both_land(self, db_session, session_factory, make_user):
        user = make_user(xp=0)
        first = session_factory()
        second = session_factory()
        try:
            # both sessions loaded the row before either award
            assert first.query(User).filter(User.id == user.id).first().xp == 0
            assert second.query(User).filter(User.id == user.id).first().xp == 0

            ProgressionService.award_xp(first, user.id, 300)
            ProgressionService.award_xp(second, user.id, 300)
        finally:
            first.close()
            second.close()

        db_session.expire_all()
        stored = db_session.query(User).filter(User.id == user.id).first()
        assert stored.xp == 600
        assert stored.level == 2


class TestLeaderboard:
    """Leaderboard ordering"""

    def test_students_by_points_desc(self, db_session, make_user):
        low = make_user(xp=10)
        high = make_user(xp=900)
        mid = make_user(xp=300)
        make_user(role=ROLE_INSTRUCTOR, xp=5000)

        board = UserService.get_leaderboard(db_session, limit=10)

        assert [u.id for u in board] == [high.id, mid.id, low.id]

    def test_limit_and_inactive_users(self, db_session, make_user):
        users = [make_user(xp=100 * i) for i in range(1, 5)]
        UserService.deactivate_user(db_session, users[-1].id)

        board = UserService.get_leaderboard(db_session, limit=2)

        assert [u.id for u in board] == [users[2].id, users[1].id]
