from models import db, new_id


class Certificate(db.Model):
    __tablename__ = "certificates"
    __table_args__ = (db.UniqueConstraint("user_id", "course_id", name="uq_certificates_user_course"),)

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    organization_id = db.Column(db.String(36), db.ForeignKey("organizations.id"), nullable=False)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    course_id = db.Column(db.String(36), db.ForeignKey("courses.id"), nullable=False)
    issued_at = db.Column(db.DateTime, default=db.func.now(), nullable=False)
    status = db.Column(db.String(20), nullable=False, default="valid")
    expires_at = db.Column(db.DateTime, nullable=True)
    source_attempt_id = db.Column(db.String(36), db.ForeignKey("test_attempts.id"), nullable=True)

    # filled in the first time the PDF is rendered, never rewritten afterwards
    storage_bucket = db.Column(db.String(100), nullable=True)
    storage_path = db.Column(db.String(500), nullable=True)
    file_name = db.Column(db.String(255), nullable=True)
    mime_type = db.Column(db.String(100), nullable=True)
    size_bytes = db.Column(db.Integer, nullable=True)
    generated_at = db.Column(db.DateTime, nullable=True)
    template_id = db.Column(db.String(36), nullable=True)

    user = db.relationship("User")
    course = db.relationship("Course")

    @property
    def is_generated(self):
        return bool(self.storage_bucket and self.storage_path)

    def __repr__(self):
        return f"<Certificate {self.id} User {self.user_id} Course {self.course_id}>"

    def to_dict(self):
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "user_id": self.user_id,
            "course_id": self.course_id,
            "issued_at": self.issued_at.isoformat() if self.issued_at else None,
            "status": self.status,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "source_attempt_id": self.source_attempt_id,
            "file_name": self.file_name,
            "mime_type": self.mime_type,
            "size_bytes": self.size_bytes,
            "generated_at": self.generated_at.isoformat() if self.generated_at else None,
            "template_id": self.template_id,
        }
