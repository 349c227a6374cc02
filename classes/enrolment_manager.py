import logging

from sqlalchemy import update
from sqlalchemy.exc import OperationalError, ProgrammingError

from models import Enrolment

logger = logging.getLogger(__name__)


class EnrolmentManager:
    @staticmethod
    def mark_completed(session, course_id, user_id, completed_at):
        """Stamp completed_at on the learner's active enrolment if it is not set yet.

        Returns True when a row was stamped. A database without the completed_at
        column is treated as nothing to do.
        """
        try:
            result = session.execute(
                update(Enrolment)
                .where(
                    Enrolment.course_id == course_id,
                    Enrolment.user_id == user_id,
                    Enrolment.status == "active",
                    Enrolment.completed_at.is_(None),
                )
                .values(completed_at=completed_at)
                .execution_options(synchronize_session=False)
            )
            session.commit()
        except (OperationalError, ProgrammingError) as e:
            session.rollback()
            logger.warning("Skipping enrolment completion for course %s user %s: %s", course_id, user_id, e)
            return False
        return result.rowcount > 0
