import logging
from flask import Blueprint, jsonify, g, request
from sqlalchemy import func

from classes.certificate_issuer import CertificateIssuer
from classes.grading_engine import GradingEngine
from classes.progress_manager import ProgressManager
from classes.validators import SubmitAnswersRequest, validate_body
from models import db, Attempt, Question, Test
from models.users import ADMIN_ROLES
from utils.errors import Conflict, InternalError, NotFound, ValidationFailed, api_ok
from utils.helpers import utcnow
from utils.utils import ensure_course_visible, ensure_org_access, get_course_or_404, login_required, roles_required

logger = logging.getLogger(__name__)

attempt_bp = Blueprint("attempts", __name__)


def latest_course_test(course_id):
    return Test.query.filter_by(course_id=course_id).order_by(Test.created_at.desc()).first()


# Fetch the course's test
@attempt_bp.route("/courses/<course_id>/test", methods=["GET"])
@login_required
def get_course_test(course_id):
    course = get_course_or_404(course_id)
    ensure_course_visible(g.user, course)

    test = latest_course_test(course_id)
    question_count = 0
    if test:
        question_count = Question.query.filter_by(test_id=test.id).count()

    return api_ok({"test": test.to_dict() if test else None, "questionCount": question_count})


# Create the course's test, or return the one it already has
@attempt_bp.route("/courses/<course_id>/test", methods=["POST"])
@login_required
@roles_required(*ADMIN_ROLES)
def create_course_test(course_id):
    course = get_course_or_404(course_id)
    if g.user.get("role") == "organization_admin":
        ensure_org_access(g.user, course.organization_id)

    existing = latest_course_test(course_id)
    if existing:
        return api_ok({"test": existing.to_dict()})

    title = (course.title or "").strip() or "Course"
    test = Test(
        title=f"{title} Assessment",
        course_id=course_id,
        organization_id=course.organization_id,
        is_published=False,
        max_attempts=1,
        pass_score=0,
    )
    db.session.add(test)
    db.session.commit()
    logger.info("User %s created test %s for course %s", g.user.get("user_id"), test.id, course_id)

    return api_ok({"test": test.to_dict()}, status=201, message="Assessment created.")


# Start an attempt
@attempt_bp.route("/tests/<test_id>/attempts/start", methods=["POST"])
@login_required
@roles_required("member")
def start_attempt(test_id):
    user_id = g.user.get("user_id")
    organization_id = g.user.get("organization_id")
    if not organization_id:
        raise ValidationFailed("Missing organization")

    test = db.session.get(Test, test_id)
    if not test:
        raise NotFound("Test not found")
    if test.is_published is not True:
        raise Conflict("Test not published")
    if not test.course_id:
        raise InternalError("Test is missing course")

    total_items, missing = ProgressManager.course_content_status(db.session, test.course_id, user_id)
    if total_items == 0:
        raise Conflict("Course has no content")
    if missing:
        raise Conflict("Complete the course content before starting the test.")

    existing_attempts = (
        db.session.query(func.count(Attempt.id)).filter_by(test_id=test_id, user_id=user_id).scalar() or 0
    )
    max_attempts = test.effective_max_attempts
    if existing_attempts + 1 > max_attempts:
        raise Conflict("No attempts remaining.")

    attempt = Attempt(
        organization_id=organization_id,
        test_id=test_id,
        user_id=user_id,
        score=None,
        passed=False,
        started_at=utcnow(),
        submitted_at=None,
        attempt_number=existing_attempts + 1,
        answers={},
    )
    db.session.add(attempt)
    db.session.commit()
    logger.info("User %s started attempt %s on test %s", user_id, attempt.id, test_id)

    return jsonify({
        "ok": True,
        "attempt": {
            "id": attempt.id,
            "attempt_number": attempt.attempt_number,
            "started_at": attempt.started_at.isoformat(),
        },
        "max_attempts": max_attempts,
        "pass_score": test.pass_score,
    }), 201


# Submit and grade an attempt
@attempt_bp.route("/test-attempts/<attempt_id>/submit", methods=["POST"])
@login_required
@roles_required("member")
def submit_attempt(attempt_id):
    payload = validate_body(SubmitAnswersRequest, request.get_json(silent=True))

    engine = GradingEngine(db.session, issuer=CertificateIssuer(db.session))
    outcome = engine.submit(g.user, attempt_id, payload.answers)

    if outcome.certificate is not None and not outcome.certificate.ok:
        logger.warning("Attempt %s passed but certificate phase did not complete: %s",
                       attempt_id, outcome.certificate.error)

    return jsonify({
        "ok": True,
        "score": outcome.grade.score,
        "passed": outcome.grade.passed,
        "pass_score": outcome.grade.pass_score,
    }), 200
