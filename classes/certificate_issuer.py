import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from classes.enrolment_manager import EnrolmentManager
from models import Certificate, new_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssuanceResult:
    """Outcome of the best-effort certificate phase. ``error`` is set instead of raising."""

    certificate_id: Optional[str] = None
    created: bool = False
    enrolment_completed: bool = False
    error: Optional[str] = None

    @property
    def ok(self):
        return self.error is None and self.certificate_id is not None


def _insert_ignoring_duplicates(session, values):
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        # no ON CONFLICT support; rely on the unique constraint instead
        try:
            with session.begin_nested():
                session.add(Certificate(**values))
            return True
        except IntegrityError:
            return False

    stmt = (
        insert(Certificate.__table__)
        .values(**values)
        .on_conflict_do_nothing(index_elements=["user_id", "course_id"])
    )
    return session.execute(stmt).rowcount > 0


class CertificateIssuer:
    """Creates at most one certificate per (user, course) and marks the enrolment complete."""

    def __init__(self, session):
        self.session = session

    def issue(self, attempt, caller, course_id, issued_at):
        organization_id = attempt.organization_id or caller.get("organization_id") or None
        user_id = caller.get("user_id")
        if not course_id or not organization_id:
            logger.warning("Attempt %s passed but has no course or organization; no certificate issued", attempt.id)
            return IssuanceResult(error="missing course or organization")

        try:
            created = _insert_ignoring_duplicates(self.session, {
                "id": new_id(),
                "organization_id": organization_id,
                "user_id": user_id,
                "course_id": course_id,
                "issued_at": issued_at,
                "status": "valid",
                "expires_at": None,
                "source_attempt_id": attempt.id,
            })
            self.session.commit()
            certificate = self.session.query(Certificate).filter_by(user_id=user_id, course_id=course_id).first()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.exception("Certificate issuance failed for attempt %s", attempt.id)
            return IssuanceResult(error=str(e))

        if created:
            logger.info("Issued certificate %s to user %s for course %s", certificate.id, user_id, course_id)

        try:
            completed = EnrolmentManager.mark_completed(self.session, course_id, user_id, issued_at)
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.exception("Enrolment completion failed for user %s course %s", user_id, course_id)
            return IssuanceResult(certificate_id=certificate.id, created=created, error=str(e))

        return IssuanceResult(certificate_id=certificate.id, created=created, enrolment_completed=completed)
