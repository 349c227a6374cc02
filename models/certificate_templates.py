from models import db, new_id


class CertificateTemplate(db.Model):
    __tablename__ = "course_certificate_templates"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    course_id = db.Column(db.String(36), db.ForeignKey("courses.id"), nullable=False, unique=True)
    organization_id = db.Column(db.String(36), db.ForeignKey("organizations.id"), nullable=True)
    storage_bucket = db.Column(db.String(100), nullable=False)
    storage_path = db.Column(db.String(500), nullable=False)
    file_name = db.Column(db.String(255), nullable=True)
    mime_type = db.Column(db.String(100), nullable=False)
    size_bytes = db.Column(db.Integer, nullable=True)
    uploaded_by = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime, default=db.func.now(), nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "course_id": self.course_id,
            "storage_bucket": self.storage_bucket,
            "storage_path": self.storage_path,
            "file_name": self.file_name,
            "mime_type": self.mime_type,
            "size_bytes": self.size_bytes,
        }
