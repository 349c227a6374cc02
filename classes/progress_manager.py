from models import CourseContentProgress, CourseResource, CourseVideo


class ProgressManager:
    @staticmethod
    def content_items(session, course_id):
        """Every resource and video of a course as ``(item_type, item_id)`` pairs."""
        resources = session.query(CourseResource.id).filter_by(course_id=course_id).all()
        videos = session.query(CourseVideo.id).filter_by(course_id=course_id).all()
        return {("resource", r.id) for r in resources} | {("video", v.id) for v in videos}

    @staticmethod
    def completed_items(session, course_id, user_id):
        rows = (
            session.query(CourseContentProgress.item_type, CourseContentProgress.item_id)
            .filter(
                CourseContentProgress.course_id == course_id,
                CourseContentProgress.user_id == user_id,
                CourseContentProgress.completed_at.isnot(None),
            )
            .all()
        )
        return {(row.item_type, row.item_id) for row in rows if row.item_type in ("resource", "video")}

    @staticmethod
    def course_content_status(session, course_id, user_id):
        """Return ``(total_items, missing_items)`` for the learner on this course."""
        items = ProgressManager.content_items(session, course_id)
        completed = ProgressManager.completed_items(session, course_id, user_id)
        return len(items), items - completed
