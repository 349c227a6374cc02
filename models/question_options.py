from models import db, new_id


class QuestionOption(db.Model):
    __tablename__ = "test_question_options"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    question_id = db.Column(db.String(36), db.ForeignKey("test_questions.id"), nullable=False)
    text = db.Column(db.Text, nullable=False, default="")
    is_correct = db.Column(db.Boolean, nullable=False, default=False)
    position = db.Column(db.Integer, nullable=False, default=0)

    question = db.relationship("Question", back_populates="options")

    def to_dict(self):
        # is_correct is deliberately left out; options are shown to learners
        return {
            "id": self.id,
            "question_id": self.question_id,
            "text": self.text,
            "position": self.position,
        }
