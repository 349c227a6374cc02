from models import db


class CertificateSettings(db.Model):
    __tablename__ = "course_certificate_settings"

    course_id = db.Column(db.String(36), db.ForeignKey("courses.id"), primary_key=True)
    organization_id = db.Column(db.String(36), db.ForeignKey("organizations.id"), nullable=False)
    enabled = db.Column(db.Boolean, nullable=False, default=False)
    certificate_title = db.Column(db.Text, nullable=True)
    course_passing_grade_percent = db.Column(db.Integer, nullable=True)
    name_placement_json = db.Column(db.JSON, nullable=True)
    updated_at = db.Column(db.DateTime, default=db.func.now(), nullable=False)
    updated_by = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=True)

    def to_dict(self):
        return {
            "course_id": self.course_id,
            "organization_id": self.organization_id,
            "enabled": self.enabled,
            "certificate_title": self.certificate_title,
            "course_passing_grade_percent": self.course_passing_grade_percent,
            "name_placement_json": self.name_placement_json,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "updated_by": self.updated_by,
        }
