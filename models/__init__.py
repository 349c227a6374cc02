import uuid
from flask_sqlalchemy import SQLAlchemy

# Initialize SQLAlchemy
db = SQLAlchemy()


def new_id():
    return str(uuid.uuid4())


# Import models
from models.organizations import Organization
from models.users import User

from models.courses import Course, CourseResource, CourseVideo, CourseContentProgress
from models.enrolments import Enrolment

from models.course_tests import Test
from models.questions import Question
from models.question_options import QuestionOption
from models.attempts import Attempt

from models.certificates import Certificate
from models.certificate_templates import CertificateTemplate
from models.certificate_settings import CertificateSettings
