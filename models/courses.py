from models import db, new_id
from sqlalchemy.orm import relationship


class Course(db.Model):
    __tablename__ = "courses"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    organization_id = db.Column(db.String(36), db.ForeignKey("organizations.id"), nullable=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=db.func.now(), nullable=False)

    organization = relationship("Organization", back_populates="courses")
    resources = relationship("CourseResource", back_populates="course", cascade="all, delete-orphan")
    videos = relationship("CourseVideo", back_populates="course", cascade="all, delete-orphan")
    tests = relationship("Test", back_populates="course", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Course {self.title} (Organization ID {self.organization_id})>"

    def to_dict(self):
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "title": self.title,
            "description": self.description,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class CourseResource(db.Model):
    __tablename__ = "course_resources"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    course_id = db.Column(db.String(36), db.ForeignKey("courses.id"), nullable=False)
    title = db.Column(db.String(255), nullable=True)

    course = relationship("Course", back_populates="resources")


class CourseVideo(db.Model):
    __tablename__ = "course_videos"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    course_id = db.Column(db.String(36), db.ForeignKey("courses.id"), nullable=False)
    title = db.Column(db.String(255), nullable=True)

    course = relationship("Course", back_populates="videos")


class CourseContentProgress(db.Model):
    __tablename__ = "course_content_progress"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    course_id = db.Column(db.String(36), db.ForeignKey("courses.id"), nullable=False)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    item_type = db.Column(db.String(20), nullable=False)  # 'resource' or 'video'
    item_id = db.Column(db.String(36), nullable=False)
    completed_at = db.Column(db.DateTime, nullable=True)
