from types import SimpleNamespace

import pytest
from sqlalchemy import update

from classes.certificate_issuer import CertificateIssuer
from classes.grading_engine import GradingEngine, grade_answers, is_exact_match, percentage_score
from models import db, Attempt, Certificate
from utils.errors import Conflict, Forbidden, NotFound
from utils.helpers import utcnow

from conftest import fresh


def q(qid, points=1):
    return SimpleNamespace(id=qid, points=points)


@pytest.mark.parametrize("selected, correct, expected", [
    ({"a", "b"}, {"a", "b"}, True),
    (["b", "a"], {"a", "b"}, True),
    ({"a"}, {"a", "b"}, False),
    ({"a", "b", "c"}, {"a", "b"}, False),
    ({"a", "c"}, {"a", "b"}, False),
    (set(), set(), True),
    (set(), {"a"}, False),
])
def test_exact_match(selected, correct, expected):
    assert is_exact_match(selected, correct) is expected


def test_percentage_score_rounds_to_one_decimal():
    assert percentage_score(1, 3) == 33.3
    assert percentage_score(2, 3) == 66.7
    assert percentage_score(1, 2) == 50.0
    assert percentage_score(0, 0) == 0.0


def test_grade_half_right():
    questions = [q("q1"), q("q2")]
    correct = {"q1": {"a", "b"}, "q2": {"t"}}
    result = grade_answers(questions, correct, {"q1": ["a", "b"], "q2": []}, pass_score=60)
    assert result.score == 50.0
    assert result.passed is False
    assert (result.earned_points, result.total_points) == (1, 2)


def test_grade_pass_boundary_is_inclusive():
    questions = [q(f"q{i}") for i in range(10)]
    correct = {f"q{i}": {f"o{i}"} for i in range(10)}
    answers = {f"q{i}": [f"o{i}"] for i in range(7)}
    result = grade_answers(questions, correct, answers, pass_score=70)
    assert result.score == 70.0
    assert result.passed is True


def test_grade_uses_question_points():
    questions = [q("q1", points=3), q("q2", points=1)]
    correct = {"q1": {"a"}, "q2": {"b"}}
    result = grade_answers(questions, correct, {"q1": ["a"]}, pass_score=0)
    assert result.score == 75.0


def test_grade_zero_total_points():
    result = grade_answers([q("q1", points=0)], {"q1": {"a"}}, {"q1": ["a"]}, pass_score=0)
    assert result.score == 0.0
    assert result.passed is True


def test_missing_points_default_to_one():
    result = grade_answers([q("q1", points=None), q("q2", points=None)], {"q1": {"a"}}, {"q1": ["a"]}, 0)
    assert result.total_points == 2


def test_submit_persists_grade_once(seed):
    engine = GradingEngine(db.session)
    caller = {"user_id": seed.member.id, "role": "member", "organization_id": seed.org.id}
    answers = {seed.q1.id: [seed.q1_a.id, seed.q1_b.id], seed.q2.id: [seed.q2_true.id]}

    outcome = engine.submit(caller, seed.attempt.id, answers)
    assert outcome.grade.score == 100.0
    assert outcome.certificate is None

    attempt = fresh(Attempt, seed.attempt.id)
    assert attempt.submitted_at is not None
    assert attempt.score == 100.0
    assert attempt.passed is True
    assert attempt.answers == answers

    with pytest.raises(Conflict):
        engine.submit(caller, seed.attempt.id, {})

    attempt = fresh(Attempt, seed.attempt.id)
    assert attempt.score == 100.0
    assert attempt.answers == answers


def test_submit_rejects_other_users_attempt(seed):
    engine = GradingEngine(db.session)
    caller = {"user_id": seed.other_member.id, "role": "member", "organization_id": seed.org.id}
    with pytest.raises(Forbidden):
        engine.submit(caller, seed.attempt.id, {})
    assert fresh(Attempt, seed.attempt.id).submitted_at is None


def test_submit_missing_attempt(seed):
    engine = GradingEngine(db.session)
    with pytest.raises(NotFound):
        engine.submit({"user_id": seed.member.id}, "00000000-0000-0000-0000-000000000000", {})


def test_submit_with_issuer_creates_certificate(seed):
    engine = GradingEngine(db.session, issuer=CertificateIssuer(db.session))
    caller = {"user_id": seed.member.id, "role": "member", "organization_id": seed.org.id}
    outcome = engine.submit(caller, seed.attempt.id, {seed.q2.id: [seed.q2_true.id]})

    assert outcome.grade.passed is True
    assert outcome.certificate.ok
    assert outcome.certificate.created is True
    cert = fresh(Certificate, outcome.certificate.certificate_id)
    assert cert.source_attempt_id == seed.attempt.id
    assert cert.storage_path is None


def test_concurrent_submission_keeps_the_first_grade(seed):
    attempt_id = seed.attempt.id
    caller = {"user_id": seed.member.id, "role": "member", "organization_id": seed.org.id}

    def clock_after_other_submit():
        # another request grades the attempt after this one has read it
        with db.engine.begin() as conn:
            conn.execute(
                update(Attempt)
                .where(Attempt.id == attempt_id)
                .values(submitted_at=utcnow(), score=12.5, passed=False)
            )
        return utcnow()

    engine = GradingEngine(db.session, clock=clock_after_other_submit)
    with pytest.raises(Conflict):
        engine.submit(caller, attempt_id, {seed.q2.id: [seed.q2_true.id]})

    attempt = fresh(Attempt, attempt_id)
    assert attempt.score == 12.5
    assert attempt.answers == {}
