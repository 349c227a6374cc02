import logging
import math
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError

from classes.certificate_issuer import IssuanceResult
from models import Attempt, Question, QuestionOption, Test
from utils.errors import Conflict, Forbidden, InternalError, NotFound
from utils.helpers import utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GradeResult:
    score: float
    passed: bool
    earned_points: int
    total_points: int
    pass_score: int


@dataclass(frozen=True)
class SubmissionOutcome:
    attempt_id: str
    grade: GradeResult
    certificate: Optional[IssuanceResult] = None


def question_points(question):
    points = question.points
    if isinstance(points, int) and not isinstance(points, bool) and points >= 0:
        return points
    return 1


def is_exact_match(selected, correct):
    """All and only the correct options were selected."""
    selected = set(selected)
    correct = set(correct)
    return len(selected) == len(correct) and correct.issubset(selected)


def percentage_score(earned, total):
    """100 * earned / total rounded half-up to one decimal; 0 when there is nothing to earn."""
    if total <= 0:
        return 0.0
    return math.floor(earned / total * 1000 + 0.5) / 10


def grade_answers(questions, correct_by_question, answers, pass_score):
    """Score a set of answers against the correct option sets.

    ``questions`` are Question rows, ``correct_by_question`` maps a question id to
    the ids of its correct options, and ``answers`` maps a question id to the
    option ids the learner picked. A missing answer counts as an empty selection.
    """
    earned = 0
    total = 0
    for question in questions:
        points = question_points(question)
        total += points
        correct = correct_by_question.get(question.id, set())
        selected = answers.get(question.id) or []
        if is_exact_match(selected, correct):
            earned += points

    score = percentage_score(earned, total)
    return GradeResult(
        score=score,
        passed=score >= pass_score,
        earned_points=earned,
        total_points=total,
        pass_score=pass_score,
    )


class GradingEngine:
    """Grades a submitted attempt exactly once and then hands passing results to the certificate issuer."""

    def __init__(self, session, issuer=None, clock=utcnow):
        self.session = session
        self.issuer = issuer
        self.clock = clock

    def load_correct_options(self, questions):
        question_ids = [q.id for q in questions]
        correct_by_question = {}
        if not question_ids:
            return correct_by_question

        rows = (
            self.session.query(QuestionOption.id, QuestionOption.question_id)
            .filter(QuestionOption.question_id.in_(question_ids), QuestionOption.is_correct.is_(True))
            .all()
        )
        for option_id, question_id in rows:
            correct_by_question.setdefault(question_id, set()).add(option_id)
        return correct_by_question

    def submit(self, caller, attempt_id, answers):
        attempt = self.session.get(Attempt, attempt_id)
        if attempt is None:
            raise NotFound("Attempt not found")
        if attempt.user_id != caller.get("user_id"):
            raise Forbidden()
        if attempt.is_submitted:
            raise Conflict("Attempt already submitted")

        test = self.session.get(Test, attempt.test_id)
        if test is None:
            raise NotFound("Test not found")

        questions = self.session.query(Question).filter_by(test_id=test.id).all()
        correct_by_question = self.load_correct_options(questions)
        grade = grade_answers(questions, correct_by_question, answers, test.effective_pass_score)

        submitted_at = self.clock()
        self._save_submission(attempt_id, grade, answers, submitted_at)
        logger.info(
            "Attempt %s graded: %s/%s points, score=%s passed=%s",
            attempt_id, grade.earned_points, grade.total_points, grade.score, grade.passed,
        )

        certificate = None
        if grade.passed and self.issuer is not None:
            # The grade is already committed; nothing in this phase may fail the submission.
            try:
                certificate = self.issuer.issue(attempt, caller, test.course_id, submitted_at)
            except Exception as e:
                self.session.rollback()
                logger.exception("Certificate phase failed for attempt %s", attempt_id)
                certificate = IssuanceResult(error=str(e))

        return SubmissionOutcome(attempt_id=attempt_id, grade=grade, certificate=certificate)

    def _save_submission(self, attempt_id, grade, answers, submitted_at):
        # Conditional on submitted_at still being NULL so a concurrent submit cannot grade twice.
        try:
            result = self.session.execute(
                update(Attempt)
                .where(Attempt.id == attempt_id, Attempt.submitted_at.is_(None))
                .values(score=grade.score, passed=grade.passed, submitted_at=submitted_at, answers=answers)
                .execution_options(synchronize_session=False)
            )
            saved = result.rowcount > 0
            if saved:
                self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("Failed to save attempt %s: %s", attempt_id, e)
            raise InternalError("Failed to save attempt.") from e

        if not saved:
            self.session.rollback()
            raise Conflict("Attempt already submitted")
