from models import db, new_id

QUESTION_TYPES = ("true_false", "single_choice", "multi_choice")


class Question(db.Model):
    __tablename__ = "test_questions"
    __table_args__ = (db.CheckConstraint("points >= 0", name="ck_test_questions_points_non_negative"),)

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    test_id = db.Column(db.String(36), db.ForeignKey("tests.id"), nullable=False)
    prompt = db.Column(db.Text, nullable=False, default="")
    type = db.Column(db.String(20), nullable=False, default="single_choice")
    points = db.Column(db.Integer, nullable=False, default=1)
    position = db.Column(db.Integer, nullable=False, default=0)

    test = db.relationship("Test", back_populates="questions")
    options = db.relationship(
        "QuestionOption", back_populates="question", cascade="all, delete-orphan", order_by="QuestionOption.position"
    )

    def to_dict(self):
        return {
            "id": self.id,
            "test_id": self.test_id,
            "prompt": self.prompt,
            "type": self.type,
            "points": self.points,
            "position": self.position,
        }
