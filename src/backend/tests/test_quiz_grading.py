"""
Quiz grading tests
"""
from datetime import datetime, timedelta

import pytest

from learnplatform.core.errors import BadRequestError, ForbiddenError, NotFoundError
from learnplatform.models import QuizAttempt, QuizQuestion, User
from learnplatform.models.enrollment import ENROLLMENT_PENDING
from learnplatform.services.quiz_service import DEFAULT_QUIZ_TITLE, QuizService, grade_answers


class TestGradeAnswers:
    """Pure scoring"""

    def test_three_of_four(self):
        assert grade_answers([0, 1, 2, 3], [0, 1, 2, 0]) == (3, 75)

    def test_one_of_four(self):
        assert grade_answers([0, 1, 2, 3], [1, 1, 1, 1]) == (1, 25)

    def test_no_questions_scores_zero(self):
        assert grade_answers([], []) == (0, 0)
        assert grade_answers([], [1, 2]) == (0, 0)

    def test_rounds_half_up(self):
        # 1/8 = 12.5 -> 13, 3/8 = 37.5 -> 38
        assert grade_answers([0] * 8, [0] + [1] * 7) == (1, 13)
        assert grade_answers([0] * 8, [0, 0, 0] + [1] * 5) == (3, 38)

    def test_rounds_thirds(self):
        assert grade_answers([0, 0, 0], [0, 1, 1]) == (1, 33)
        assert grade_answers([0, 0, 0], [0, 0, 1]) == (2, 67)

    def test_missing_and_null_answers_are_wrong(self):
        assert grade_answers([0, 1, 2, 3], [0, 1]) == (2, 50)
        assert grade_answers([0, 1, 2, 3], [0, None, 2, None]) == (2, 50)

    def test_extra_answers_are_ignored(self):
        assert grade_answers([0, 1], [0, 1, 3, 3, 3]) == (2, 100)

    @pytest.mark.parametrize("answers", [
        [0, 1, 2, 3],
        [3, 2, 1, 0],
        [0, 0, 0, 0],
        [None, None, None, None],
    ])
    def test_matches_formula(self, answers):
        key = [0, 1, 2, 3]
        matches = sum(1 for a, k in zip(answers, key) if a == k)
        assert grade_answers(key, answers) == (matches, int(100 * matches / len(key) + 0.5))


@pytest.fixture
def quiz_setup(db_session, student, make_course, make_lesson, make_quiz, make_enrollment):
    course = make_course()
    lesson = make_lesson(course)
    quiz = make_quiz(lesson, correct_answers=(0, 1, 2, 3), passing_score=70, xp_reward=25)
    make_enrollment(student, course)
    return {"course": course, "lesson": lesson, "quiz": quiz, "user": student}


def _reload_user(db_session, user_id):
    db_session.expire_all()
    return db_session.query(User).filter(User.id == user_id).first()


class TestSubmitAttempt:
    """Recording attempts and awarding xp"""

    def test_passing_attempt_awards_xp(self, db_session, quiz_setup):
        user, quiz = quiz_setup["user"], quiz_setup["quiz"]

        result = QuizService.submit_attempt(db_session, user.id, quiz.id, [0, 1, 2, 0])

        assert result["score"] == 75
        assert result["passed"] is True
        assert result["correct_count"] == 3
        assert result["total_questions"] == 4
        assert result["passing_score"] == 70
        assert result["xp_awarded"] == 25
        assert _reload_user(db_session, user.id).xp == 25

    def test_failing_attempt_is_recorded_without_xp(self, db_session, quiz_setup):
        user, quiz = quiz_setup["user"], quiz_setup["quiz"]

        result = QuizService.submit_attempt(db_session, user.id, quiz.id, [1, 1, 1, 1])

        assert result["score"] == 25
        assert result["passed"] is False
        assert result["xp_awarded"] == 0
        assert db_session.query(QuizAttempt).filter(QuizAttempt.user_id == user.id).count() == 1
        assert _reload_user(db_session, user.id).xp == 0

    def test_answers_stored_as_strings(self, db_session, quiz_setup):
        user, quiz = quiz_setup["user"], quiz_setup["quiz"]

        result = QuizService.submit_attempt(db_session, user.id, quiz.id, [0, None, 2])

        attempt = db_session.query(QuizAttempt).filter(QuizAttempt.id == result["id"]).first()
        assert attempt.answers == ["0", "", "2"]

    def test_pass_threshold_boundary(self, db_session, student, make_course, make_lesson,
                                     make_quiz, make_enrollment):
        course = make_course()
        make_enrollment(student, course)
        # 4 questions: 3/4 = 75
        at_threshold = make_quiz(make_lesson(course), passing_score=75)
        above_score = make_quiz(make_lesson(course), passing_score=76)

        passed = QuizService.submit_attempt(db_session, student.id, at_threshold.id, [0, 1, 2, 0])
        failed = QuizService.submit_attempt(db_session, student.id, above_score.id, [0, 1, 2, 0])

        assert passed["passed"] is True
        assert failed["passed"] is False

    def test_every_pass_policy_awards_on_each_pass(self, db_session, quiz_setup):
        user, quiz = quiz_setup["user"], quiz_setup["quiz"]

        QuizService.submit_attempt(db_session, user.id, quiz.id, [0, 1, 2, 3])
        second = QuizService.submit_attempt(db_session, user.id, quiz.id, [0, 1, 2, 3])

        assert second["xp_awarded"] == 25
        assert _reload_user(db_session, user.id).xp == 50

    def test_first_pass_policy_awards_once(self, db_session, quiz_setup, monkeypatch):
        monkeypatch.setenv("QUIZ_XP_POLICY", "first_pass")
        user, quiz = quiz_setup["user"], quiz_setup["quiz"]

        failed = QuizService.submit_attempt(db_session, user.id, quiz.id, [3, 3, 3, 3])
        first = QuizService.submit_attempt(db_session, user.id, quiz.id, [0, 1, 2, 3])
        again = QuizService.submit_attempt(db_session, user.id, quiz.id, [0, 1, 2, 3])

        assert failed["xp_awarded"] == 0
        assert first["xp_awarded"] == 25
        assert again["xp_awarded"] == 0
        assert again["passed"] is True
        assert _reload_user(db_session, user.id).xp == 25

    def test_zero_xp_reward_never_awards(self, db_session, student, make_course, make_lesson,
                                         make_quiz, make_enrollment):
        course = make_course()
        make_enrollment(student, course)
        quiz = make_quiz(make_lesson(course), xp_reward=0)

        result = QuizService.submit_attempt(db_session, student.id, quiz.id, [0, 1, 2, 3])

        assert result["passed"] is True
        assert result["xp_awarded"] == 0

    def test_quiz_without_questions_scores_zero(self, db_session, student, make_course, make_lesson,
                                                make_quiz, make_enrollment):
        course = make_course()
        make_enrollment(student, course)
        quiz = make_quiz(make_lesson(course), correct_answers=())

        result = QuizService.submit_attempt(db_session, student.id, quiz.id, [])

        assert result["score"] == 0
        assert result["total_questions"] == 0
        assert result["passed"] is False

    def test_unknown_quiz(self, db_session, student):
        with pytest.raises(NotFoundError):
            QuizService.submit_attempt(db_session, student.id, "missing", [0])

    def test_unpublished_quiz_cannot_be_taken(self, db_session, student, make_course, make_lesson,
                                              make_quiz, make_enrollment):
        course = make_course()
        make_enrollment(student, course)
        quiz = make_quiz(make_lesson(course), is_published=False)

        with pytest.raises(NotFoundError):
            QuizService.submit_attempt(db_session, student.id, quiz.id, [0, 1, 2, 3])

        assert db_session.query(QuizAttempt).filter(QuizAttempt.quiz_id == quiz.id).count() == 0
        assert _reload_user(db_session, student.id).xp == 0

    def test_requires_approved_enrollment(self, db_session, make_user, quiz_setup, make_enrollment):
        outsider = make_user()
        pending = make_user()
        make_enrollment(pending, quiz_setup["course"], status=ENROLLMENT_PENDING)

        for user in (outsider, pending):
            with pytest.raises(ForbiddenError):
                QuizService.submit_attempt(db_session, user.id, quiz_setup["quiz"].id, [0, 1, 2, 3])

        assert db_session.query(QuizAttempt).count() == 0


class TestAttemptHistory:
    """Immutability, best attempt and has_passed"""

    def test_new_attempt_leaves_old_one_untouched(self, db_session, quiz_setup):
        user, quiz = quiz_setup["user"], quiz_setup["quiz"]

        first = QuizService.submit_attempt(db_session, user.id, quiz.id, [0, 1, 2, 3])
        QuizService.submit_attempt(db_session, user.id, quiz.id, [3, 3, 3, 3])

        db_session.expire_all()
        stored = db_session.query(QuizAttempt).filter(QuizAttempt.id == first["id"]).first()
        assert stored.score == 100
        assert stored.passed is True
        assert stored.answers == ["0", "1", "2", "3"]

    def test_best_attempt_is_highest_score(self, db_session, quiz_setup):
        user, quiz = quiz_setup["user"], quiz_setup["quiz"]

        QuizService.submit_attempt(db_session, user.id, quiz.id, [0, 3, 3, 3])
        best = QuizService.submit_attempt(db_session, user.id, quiz.id, [0, 1, 2, 0])
        QuizService.submit_attempt(db_session, user.id, quiz.id, [3, 3, 3, 3])

        assert QuizService.get_best_attempt(db_session, user.id, quiz.id).id == best["id"]

    def test_best_attempt_tie_prefers_most_recent(self, db_session, quiz_setup):
        user, quiz = quiz_setup["user"], quiz_setup["quiz"]
        now = datetime.utcnow()
        older = QuizAttempt(user_id=user.id, quiz_id=quiz.id, score=75, answers=[], passed=True,
                            completed_at=now - timedelta(hours=1))
        newer = QuizAttempt(user_id=user.id, quiz_id=quiz.id, score=75, answers=[], passed=True,
                            completed_at=now)
        db_session.add_all([older, newer])
        db_session.commit()

        assert QuizService.get_best_attempt(db_session, user.id, quiz.id).id == newer.id

    def test_best_attempt_none_without_attempts(self, db_session, quiz_setup):
        assert QuizService.get_best_attempt(db_session, quiz_setup["user"].id, quiz_setup["quiz"].id) is None

    def test_has_passed_survives_a_later_failure(self, db_session, quiz_setup):
        user, quiz = quiz_setup["user"], quiz_setup["quiz"]

        assert QuizService.has_passed(db_session, user.id, quiz.id) is False
        QuizService.submit_attempt(db_session, user.id, quiz.id, [0, 1, 2, 3])
        QuizService.submit_attempt(db_session, user.id, quiz.id, [3, 3, 3, 3])

        assert QuizService.has_passed(db_session, user.id, quiz.id) is True

    def test_list_attempts_newest_first(self, db_session, quiz_setup):
        user, quiz = quiz_setup["user"], quiz_setup["quiz"]
        now = datetime.utcnow()
        for offset, score in [(3, 10), (1, 30), (2, 20)]:
            db_session.add(QuizAttempt(user_id=user.id, quiz_id=quiz.id, score=score, answers=[],
                                       passed=False, completed_at=now - timedelta(minutes=offset)))
        db_session.commit()

        assert [a.score for a in QuizService.list_attempts(db_session, user.id, quiz.id)] == [30, 20, 10]


class TestLearnerQuiz:
    """Learner read path"""

    def test_strips_correct_answers(self, db_session, quiz_setup):
        quiz = QuizService.get_learner_quiz(db_session, quiz_setup["user"].id, quiz_setup["lesson"].id)

        assert len(quiz["questions"]) == 4
        for question in quiz["questions"]:
            assert "correct_answer" not in question

    def test_admin_view_includes_answers(self, db_session, quiz_setup):
        quiz = QuizService.get_quiz_with_answers(db_session, quiz_setup["quiz"].id)

        assert [q["correct_answer"] for q in quiz["questions"]] == [0, 1, 2, 3]

    def test_unpublished_quiz_is_hidden(self, db_session, student, make_course, make_lesson,
                                        make_quiz, make_enrollment):
        course = make_course()
        make_enrollment(student, course)
        lesson = make_lesson(course)
        make_quiz(lesson, is_published=False)

        assert QuizService.get_learner_quiz(db_session, student.id, lesson.id) is None

    def test_quiz_without_questions_is_hidden(self, db_session, student, make_course, make_lesson,
                                              make_quiz, make_enrollment):
        course = make_course()
        make_enrollment(student, course)
        lesson = make_lesson(course)
        make_quiz(lesson, correct_answers=())

        assert QuizService.get_learner_quiz(db_session, student.id, lesson.id) is None

    def test_lesson_without_quiz(self, db_session, student, make_course, make_lesson, make_enrollment):
        course = make_course()
        make_enrollment(student, course)
        lesson = make_lesson(course)

        assert QuizService.get_learner_quiz(db_session, student.id, lesson.id) is None

    def test_gated_by_enrollment(self, db_session, make_user, quiz_setup):
        with pytest.raises(ForbiddenError):
            QuizService.get_learner_quiz(db_session, make_user().id, quiz_setup["lesson"].id)


class TestQuizCatalog:
    """Admin quiz and question management"""

    def test_create_quiz_defaults(self, db_session, make_course, make_lesson):
        lesson = make_lesson(make_course())

        quiz = QuizService.create_quiz(db_session, lesson.id)

        assert quiz.title == DEFAULT_QUIZ_TITLE
        assert quiz.passing_score == 70
        assert quiz.xp_reward == 25
        assert quiz.is_published is False

    def test_one_quiz_per_lesson(self, db_session, make_course, make_lesson):
        lesson = make_lesson(make_course())
        QuizService.create_quiz(db_session, lesson.id)

        with pytest.raises(BadRequestError):
            QuizService.create_quiz(db_session, lesson.id)

    def test_create_quiz_unknown_lesson(self, db_session):
        with pytest.raises(NotFoundError):
            QuizService.create_quiz(db_session, "missing")

    def test_update_quiz(self, db_session, quiz_setup):
        quiz = QuizService.update_quiz(db_session, quiz_setup["quiz"].id, passing_score=80, is_published=False)

        assert quiz.passing_score == 80
        assert quiz.is_published is False
        assert quiz.xp_reward == 25

    @pytest.mark.parametrize("options,correct", [
        (["only one"], 0),
        (["a", "b"], 2),
        (["a", "b"], -1),
    ])
    def test_add_question_validation(self, db_session, quiz_setup, options, correct):
        with pytest.raises(BadRequestError):
            QuizService.add_question(db_session, quiz_setup["quiz"].id, "سؤال", options, correct)

    def test_add_and_update_question(self, db_session, quiz_setup):
        question = QuizService.add_question(db_session, quiz_setup["quiz"].id, "سؤال", ["a", "b", "c"], 2, 9)

        updated = QuizService.update_question(db_session, question.id, correct_answer=0)
        assert updated.correct_answer == 0

        with pytest.raises(BadRequestError):
            QuizService.update_question(db_session, question.id, options=["a", "b"], correct_answer=2)

    def test_delete_quiz_removes_questions_and_attempts(self, db_session, quiz_setup):
        user, quiz = quiz_setup["user"], quiz_setup["quiz"]
        QuizService.submit_attempt(db_session, user.id, quiz.id, [0, 1, 2, 3])
        quiz_id = quiz.id

        assert QuizService.delete_quiz(db_session, quiz_id) is True

        assert db_session.query(QuizQuestion).filter(QuizQuestion.quiz_id == quiz_id).count() == 0
        assert db_session.query(QuizAttempt).filter(QuizAttempt.quiz_id == quiz_id).count() == 0
        assert QuizService.delete_quiz(db_session, quiz_id) is False

    def test_list_quizzes_by_course(self, db_session, quiz_setup, make_course, make_lesson, make_quiz):
        make_quiz(make_lesson(make_course()))

        quizzes = QuizService.list_quizzes_by_course(db_session, quiz_setup["course"].id)

        assert [q.id for q in quizzes] == [quiz_setup["quiz"].id]
