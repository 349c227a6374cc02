from models import db, new_id


class Attempt(db.Model):
    __tablename__ = "test_attempts"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    test_id = db.Column(db.String(36), db.ForeignKey("tests.id"), nullable=False)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    organization_id = db.Column(db.String(36), db.ForeignKey("organizations.id"), nullable=True)
    attempt_number = db.Column(db.Integer, nullable=False, default=1)
    started_at = db.Column(db.DateTime, default=db.func.now(), nullable=False)
    submitted_at = db.Column(db.DateTime, nullable=True)
    score = db.Column(db.Float, nullable=True)
    passed = db.Column(db.Boolean, nullable=False, default=False)
    answers = db.Column(db.JSON, nullable=False, default=dict)

    test = db.relationship("Test", backref=db.backref("attempts", lazy=True))
    user = db.relationship("User", backref=db.backref("test_attempts", lazy=True))

    @property
    def is_submitted(self):
        return self.submitted_at is not None

    def to_dict(self):
        return {
            "id": self.id,
            "test_id": self.test_id,
            "user_id": self.user_id,
            "organization_id": self.organization_id,
            "attempt_number": self.attempt_number,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "submitted_at": self.submitted_at.isoformat() if self.submitted_at else None,
            "score": self.score,
            "passed": self.passed,
            "answers": self.answers,
        }
