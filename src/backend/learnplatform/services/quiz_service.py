"""
Quiz grading service
Scores submitted answers against a quiz's answer key, records every attempt and
awards xp on a pass. Also holds the admin catalog operations for quizzes and questions.
"""
import logging
import uuid
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from learnplatform.core.config import QUIZ_XP_FIRST_PASS, get_settings
from learnplatform.core.errors import MESSAGES, BadRequestError, NotFoundError
from learnplatform.models import Lesson, Quiz, QuizAttempt, QuizQuestion
from learnplatform.models.quiz import DEFAULT_PASSING_SCORE, DEFAULT_QUIZ_XP_REWARD
from learnplatform.services.enrollment_service import EnrollmentService
from learnplatform.services.progression_service import ProgressionService

logger = logging.getLogger(__name__)

DEFAULT_QUIZ_TITLE = "كويز الدرس"
QUIZ_UPDATABLE_FIELDS = ("title", "description", "passing_score", "xp_reward", "is_published")
QUESTION_UPDATABLE_FIELDS = ("question", "options", "correct_answer", "sort_order")


def grade_answers(correct_answers: Sequence[int], answers: Sequence[Optional[int]]) -> Tuple[int, int]:
    """
    Score answers positionally against an answer key

    Missing or None answers count as wrong, answers past the last question are ignored.
    The percentage is rounded half-up; an empty key scores 0.

    Args:
        correct_answers: zero-based correct option index per question
        answers: submitted option index per question

    Returns:
        Tuple[int, int]: (correct_count, score 0-100)
    """
    total = len(correct_answers)
    correct_count = 0
    for idx, correct in enumerate(correct_answers):
        if idx < len(answers) and answers[idx] is not None and answers[idx] == correct:
            correct_count += 1

    if total == 0:
        return correct_count, 0

    # floor(100 * c / n + 1/2) in integer arithmetic
    score = (200 * correct_count + total) // (2 * total)
    return correct_count, score


def _validate_question(options, correct_answer) -> None:
    if not isinstance(options, list) or len(options) < 2:
        raise BadRequestError(MESSAGES["invalid_question"])
    if isinstance(correct_answer, bool) or not isinstance(correct_answer, int):
        raise BadRequestError(MESSAGES["invalid_question"])
    if correct_answer < 0 or correct_answer >= len(options):
        raise BadRequestError(MESSAGES["invalid_question"])


def _question_dict(question: QuizQuestion, with_answer: bool) -> dict:
    data = {
        "id": question.id,
        "question": question.question,
        "options": question.options,
        "sort_order": question.sort_order,
    }
    if with_answer:
        data["correct_answer"] = question.correct_answer
    return data


def _quiz_dict(quiz: Quiz, questions: List[QuizQuestion], with_answers: bool) -> dict:
    return {
        "id": quiz.id,
        "lesson_id": quiz.lesson_id,
        "title": quiz.title,
        "description": quiz.description,
        "passing_score": quiz.passing_score,
        "xp_reward": quiz.xp_reward,
        "is_published": quiz.is_published,
        "created_at": quiz.created_at,
        "questions": [_question_dict(q, with_answers) for q in questions],
    }


class QuizService:
    """Quiz grading service"""

    @staticmethod
    def get_quiz(db: Session, quiz_id: str) -> Optional[Quiz]:
        return db.query(Quiz).filter(Quiz.id == quiz_id).first()

    @staticmethod
    def _questions(db: Session, quiz_id: str) -> List[QuizQuestion]:
        return db.query(QuizQuestion).filter(
            QuizQuestion.quiz_id == quiz_id
        ).order_by(QuizQuestion.sort_order.asc(), QuizQuestion.id.asc()).all()

    # ==================== learner side ====================

    @staticmethod
    def submit_attempt(
        db: Session,
        user_id: str,
        quiz_id: str,
        answers: List[Optional[int]]
    ) -> dict:
        """
        Grade and record a quiz attempt

        Every submission is stored as a new QuizAttempt, pass or fail. A pass with a
        positive xp_reward awards xp; under the first_pass policy only when the learner
        had no earlier passing attempt.

        Args:
            db: database session
            user_id: learner id
            quiz_id: quiz id
            answers: option index per question, in question order

        Returns:
            dict: attempt fields plus correct_count, total_questions, passing_score, xp_awarded

        Raises:
            NotFoundError: quiz does not exist or is not published
            ForbiddenError: no approved enrollment in the quiz's course
        """
        quiz = QuizService.get_quiz(db, quiz_id)
        if not quiz or not quiz.is_published:
            raise NotFoundError(MESSAGES["quiz_not_found"])

        lesson = db.query(Lesson).filter(Lesson.id == quiz.lesson_id).first()
        if lesson:
            EnrollmentService.ensure_content_access(db, user_id, lesson.course_id)

        questions = QuizService._questions(db, quiz_id)
        correct_count, score = grade_answers([q.correct_answer for q in questions], answers)
        passing_score = quiz.passing_score if quiz.passing_score is not None else DEFAULT_PASSING_SCORE
        passed = score >= passing_score

        eligible_for_xp = passed and bool(quiz.xp_reward) and quiz.xp_reward > 0
        if eligible_for_xp and get_settings().quiz_xp_policy == QUIZ_XP_FIRST_PASS:
            eligible_for_xp = not QuizService.has_passed(db, user_id, quiz_id)

        attempt = QuizAttempt(
            id=str(uuid.uuid4()),
            user_id=user_id,
            quiz_id=quiz_id,
            score=score,
            answers=["" if a is None else str(a) for a in answers],
            passed=passed,
            completed_at=datetime.utcnow()
        )
        db.add(attempt)
        db.commit()
        db.refresh(attempt)

        logger.info(
            f"Quiz graded: user={user_id}, quiz={quiz_id}, correct={correct_count}/{len(questions)}, "
            f"score={score}, passed={passed}"
        )

        # A failed award leaves the attempt recorded
        xp_awarded = 0
        if eligible_for_xp and ProgressionService.award_xp(db, user_id, quiz.xp_reward):
            xp_awarded = quiz.xp_reward

        return {
            "id": attempt.id,
            "user_id": attempt.user_id,
            "quiz_id": attempt.quiz_id,
            "score": attempt.score,
            "answers": attempt.answers,
            "passed": attempt.passed,
            "completed_at": attempt.completed_at,
            "correct_count": correct_count,
            "total_questions": len(questions),
            "passing_score": passing_score,
            "xp_awarded": xp_awarded,
        }

    @staticmethod
    def get_learner_quiz(db: Session, user_id: str, lesson_id: str) -> Optional[dict]:
        """
        Quiz of a lesson as a learner sees it, without correct answers

        Returns:
            Optional[dict]: None when the lesson has no quiz, it is unpublished or it has no questions

        Raises:
            NotFoundError: lesson does not exist
            ForbiddenError: no approved enrollment in the lesson's course
        """
        lesson = db.query(Lesson).filter(Lesson.id == lesson_id).first()
        if not lesson:
            raise NotFoundError(MESSAGES["lesson_not_found"])

        EnrollmentService.ensure_content_access(db, user_id, lesson.course_id)

        quiz = db.query(Quiz).filter(Quiz.lesson_id == lesson_id).first()
        if not quiz or not quiz.is_published:
            return None

        questions = QuizService._questions(db, quiz.id)
        if not questions:
            return None

        return _quiz_dict(quiz, questions, with_answers=False)

    @staticmethod
    def get_quiz_with_answers(db: Session, quiz_id: str) -> dict:
        """
        Raises:
            NotFoundError: quiz does not exist
        """
        quiz = QuizService.get_quiz(db, quiz_id)
        if not quiz:
            raise NotFoundError(MESSAGES["quiz_not_found"])
        return _quiz_dict(quiz, QuizService._questions(db, quiz_id), with_answers=True)

    @staticmethod
    def get_best_attempt(db: Session, user_id: str, quiz_id: str) -> Optional[QuizAttempt]:
        """Highest score; among equal scores the most recent"""
        return db.query(QuizAttempt).filter(
            QuizAttempt.user_id == user_id,
            QuizAttempt.quiz_id == quiz_id
        ).order_by(
            QuizAttempt.score.desc(),
            QuizAttempt.completed_at.desc(),
            QuizAttempt.id.desc()
        ).first()

    @staticmethod
    def list_attempts(db: Session, user_id: str, quiz_id: str) -> List[QuizAttempt]:
        return db.query(QuizAttempt).filter(
            QuizAttempt.user_id == user_id,
            QuizAttempt.quiz_id == quiz_id
        ).order_by(QuizAttempt.completed_at.desc(), QuizAttempt.id.desc()).all()

    @staticmethod
    def has_passed(db: Session, user_id: str, quiz_id: str) -> bool:
        """True once any attempt passed, whatever the latest outcome"""
        return db.query(QuizAttempt).filter(
            QuizAttempt.user_id == user_id,
            QuizAttempt.quiz_id == quiz_id,
            QuizAttempt.passed == True
        ).first() is not None

    # ==================== admin catalog ====================

    @staticmethod
    def list_quizzes_by_course(db: Session, course_id: str) -> List[Quiz]:
        return db.query(Quiz).join(Lesson, Quiz.lesson_id == Lesson.id).filter(
            Lesson.course_id == course_id
        ).order_by(Lesson.sort_order.asc()).all()

    @staticmethod
    def create_quiz(
        db: Session,
        lesson_id: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
        passing_score: Optional[int] = None,
        xp_reward: Optional[int] = None,
        is_published: bool = False
    ) -> Quiz:
        """
        Create the quiz of a lesson (one per lesson)

        Raises:
            NotFoundError: lesson does not exist
            BadRequestError: the lesson already has a quiz
        """
        lesson = db.query(Lesson).filter(Lesson.id == lesson_id).first()
        if not lesson:
            raise NotFoundError(MESSAGES["lesson_not_found"])

        if db.query(Quiz).filter(Quiz.lesson_id == lesson_id).first():
            raise BadRequestError(MESSAGES["quiz_exists"])

        quiz = Quiz(
            id=str(uuid.uuid4()),
            lesson_id=lesson_id,
            title=title or DEFAULT_QUIZ_TITLE,
            description=description,
            passing_score=passing_score if passing_score is not None else DEFAULT_PASSING_SCORE,
            xp_reward=xp_reward if xp_reward is not None else DEFAULT_QUIZ_XP_REWARD,
            is_published=bool(is_published),
            created_at=datetime.utcnow()
        )
        db.add(quiz)
        db.commit()
        db.refresh(quiz)
        logger.info(f"Quiz created: id={quiz.id}, lesson={lesson_id}")
        return quiz

    @staticmethod
    def update_quiz(db: Session, quiz_id: str, **fields) -> Quiz:
        """
        Raises:
            NotFoundError: quiz does not exist
        """
        quiz = QuizService.get_quiz(db, quiz_id)
        if not quiz:
            raise NotFoundError(MESSAGES["quiz_not_found"])

        for key, value in fields.items():
            if key in QUIZ_UPDATABLE_FIELDS and value is not None:
                setattr(quiz, key, value)

        db.commit()
        db.refresh(quiz)
        return quiz

    @staticmethod
    def delete_quiz(db: Session, quiz_id: str) -> bool:
        """
        Delete a quiz together with its questions and attempts

        Returns:
            bool: False when the quiz does not exist
        """
        quiz = QuizService.get_quiz(db, quiz_id)
        if not quiz:
            return False

        db.query(QuizAttempt).filter(QuizAttempt.quiz_id == quiz_id).delete(synchronize_session=False)
        db.delete(quiz)
        db.commit()
        logger.info(f"Quiz deleted: id={quiz_id}")
        return True

    @staticmethod
    def add_question(
        db: Session,
        quiz_id: str,
        question: str,
        options: List[str],
        correct_answer: int,
        sort_order: int = 0
    ) -> QuizQuestion:
        """
        Add a single-answer question

        Raises:
            NotFoundError: quiz does not exist
            BadRequestError: empty text, fewer than two options or correct_answer out of range
        """
        quiz = QuizService.get_quiz(db, quiz_id)
        if not quiz:
            raise NotFoundError(MESSAGES["quiz_not_found"])

        if not question:
            raise BadRequestError(MESSAGES["invalid_question"])
        _validate_question(options, correct_answer)

        new_question = QuizQuestion(
            id=str(uuid.uuid4()),
            quiz_id=quiz_id,
            question=question,
            options=list(options),
            correct_answer=correct_answer,
            sort_order=sort_order or 0
        )
        db.add(new_question)
        db.commit()
        db.refresh(new_question)
        return new_question

    @staticmethod
    def update_question(db: Session, question_id: str, **fields) -> QuizQuestion:
        """
        Raises:
            NotFoundError: question does not exist
            BadRequestError: the resulting options/correct_answer pair is invalid
        """
        question = db.query(QuizQuestion).filter(QuizQuestion.id == question_id).first()
        if not question:
            raise NotFoundError(MESSAGES["question_not_found"])

        updates = {k: v for k, v in fields.items() if k in QUESTION_UPDATABLE_FIELDS and v is not None}
        _validate_question(
            updates.get("options", question.options),
            updates.get("correct_answer", question.correct_answer)
        )

        for key, value in updates.items():
            setattr(question, key, value)

        db.commit()
        db.refresh(question)
        return question

    @staticmethod
    def delete_question(db: Session, question_id: str) -> bool:
        question = db.query(QuizQuestion).filter(QuizQuestion.id == question_id).first()
        if not question:
            return False
        db.delete(question)
        db.commit()
        return True
