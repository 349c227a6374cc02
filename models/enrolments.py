from models import db, new_id
from sqlalchemy.orm import relationship


class Enrolment(db.Model):
    __tablename__ = 'course_enrollments'
    __table_args__ = (db.UniqueConstraint("course_id", "user_id", name="uq_course_enrollments_course_user"),)

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    course_id = db.Column(db.String(36), db.ForeignKey('courses.id'), nullable=False)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False)
    organization_id = db.Column(db.String(36), db.ForeignKey('organizations.id'), nullable=True)
    status = db.Column(db.String(20), nullable=False, default="active")
    enrolled_at = db.Column(db.DateTime, default=db.func.now(), nullable=False)
    completed_at = db.Column(db.DateTime, nullable=True)

    user = relationship("User")
    course = relationship("Course")

    def __repr__(self):
        return f"<Enrolment User {self.user_id} Course {self.course_id}>"

    def to_dict(self):
        return {
            "id": self.id,
            "course_id": self.course_id,
            "user_id": self.user_id,
            "organization_id": self.organization_id,
            "status": self.status,
            "enrolled_at": self.enrolled_at.isoformat() if self.enrolled_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }
