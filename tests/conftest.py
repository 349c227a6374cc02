import io
from types import SimpleNamespace

import pytest
from reportlab.pdfgen import canvas

from app import create_app
from models import (
    db, Attempt, Certificate, CertificateSettings, CertificateTemplate, Course, CourseContentProgress,
    CourseResource, CourseVideo, Enrolment, Organization, Question, QuestionOption, Test, User,
)
from utils.dropbox_service import StorageError
from utils.tokens import get_jwt_token


class MemoryStorage:
    """In-memory stand-in for the Dropbox storage client."""

    def __init__(self):
        self.objects = {}
        self.uploads = []
        self.removed = []

    def upload(self, bucket, path, data, content_type=None):
        self.objects[(bucket, path)] = data
        self.uploads.append((bucket, path, content_type))
        return f"/{bucket}/{path}"

    def download(self, bucket, path):
        try:
            return self.objects[(bucket, path)]
        except KeyError:
            raise StorageError(f"missing {bucket}/{path}")

    def remove(self, bucket, path):
        self.objects.pop((bucket, path), None)
        self.removed.append((bucket, path))

    def create_signed_url(self, bucket, path, expires_in):
        return f"https://files.example.test/{bucket}/{path}?expires_in={expires_in}"


def make_pdf(width=600, height=400, pages=1):
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=(width, height))
    for i in range(pages):
        c.drawString(20, 20, f"Template page {i + 1}")
        c.showPage()
    c.save()
    return buf.getvalue()


def token_for(user):
    return get_jwt_token({
        "user_id": user.id,
        "email": user.email,
        "role": user.role,
        "organization_id": user.organization_id,
    })


def auth(user):
    return {"Authorization": f"Bearer {token_for(user)}"}


def fresh(model, ident):
    db.session.expire_all()
    return db.session.get(model, ident)


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def app(storage):
    app = create_app("testing", storage_factory=lambda: storage)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def seed(app):
    """Two organizations, one course with a two-question test, and an in-progress attempt."""
    org = Organization(name="Acme Training")
    other_org = Organization(name="Globex")
    db.session.add_all([org, other_org])
    db.session.flush()

    member = User(email="ana@acme.test", full_name="Ana Lovelace", role="member", organization_id=org.id)
    other_member = User(email="bo@acme.test", full_name="Bo", role="member", organization_id=org.id)
    org_admin = User(email="admin@acme.test", role="organization_admin", organization_id=org.id)
    foreign_admin = User(email="admin@globex.test", role="organization_admin", organization_id=other_org.id)
    system_admin = User(email="ops@platform.test", role="system_admin")
    db.session.add_all([member, other_member, org_admin, foreign_admin, system_admin])
    db.session.flush()

    course = Course(title="Safety Basics", organization_id=org.id)
    db.session.add(course)
    db.session.flush()

    test = Test(course_id=course.id, organization_id=org.id, title="Final", is_published=True,
                max_attempts=2, pass_score=50)
    db.session.add(test)
    db.session.flush()

    q1 = Question(test_id=test.id, prompt="Pick the safe ones", type="multi_choice", points=1, position=0)
    q2 = Question(test_id=test.id, prompt="True or false", type="true_false", points=1, position=1)
    db.session.add_all([q1, q2])
    db.session.flush()

    q1_a = QuestionOption(question_id=q1.id, text="Helmet", is_correct=True, position=0)
    q1_b = QuestionOption(question_id=q1.id, text="Gloves", is_correct=True, position=1)
    q1_c = QuestionOption(question_id=q1.id, text="Sandals", is_correct=False, position=2)
    q2_true = QuestionOption(question_id=q2.id, text="True", is_correct=True, position=0)
    q2_false = QuestionOption(question_id=q2.id, text="False", is_correct=False, position=1)
    db.session.add_all([q1_a, q1_b, q1_c, q2_true, q2_false])

    enrolment = Enrolment(course_id=course.id, user_id=member.id, organization_id=org.id, status="active")
    db.session.add(enrolment)

    attempt = Attempt(test_id=test.id, user_id=member.id, organization_id=org.id, attempt_number=1, answers={})
    db.session.add(attempt)
    db.session.commit()

    return SimpleNamespace(
        org=org, other_org=other_org, member=member, other_member=other_member, org_admin=org_admin,
        foreign_admin=foreign_admin, system_admin=system_admin, course=course, test=test,
        q1=q1, q2=q2, q1_a=q1_a, q1_b=q1_b, q1_c=q1_c, q2_true=q2_true, q2_false=q2_false,
        enrolment=enrolment, attempt=attempt,
    )


@pytest.fixture
def certificate_setup(seed, storage):
    """An issued certificate for the member plus a PDF template and enabled settings."""
    template_bytes = make_pdf()
    storage.objects[("certificate-templates", f"courses/{seed.course.id}/template-1.pdf")] = template_bytes

    template = CertificateTemplate(
        course_id=seed.course.id, organization_id=seed.org.id, storage_bucket="certificate-templates",
        storage_path=f"courses/{seed.course.id}/template-1.pdf", file_name="template.pdf",
        mime_type="application/pdf", size_bytes=len(template_bytes),
    )
    settings = CertificateSettings(
        course_id=seed.course.id, organization_id=seed.org.id, enabled=True,
        certificate_title="Safety Basics Certificate",
        name_placement_json={"page": 1, "xPct": 0.5, "yPct": 0.1, "align": "center", "fontSize": 32},
    )
    certificate = Certificate(organization_id=seed.org.id, user_id=seed.member.id, course_id=seed.course.id,
                              status="valid")
    db.session.add_all([template, settings, certificate])
    db.session.commit()

    seed.template = template
    seed.settings = settings
    seed.certificate = certificate
    return seed


@pytest.fixture
def course_content(seed):
    resource = CourseResource(course_id=seed.course.id, title="Handbook")
    video = CourseVideo(course_id=seed.course.id, title="Intro")
    db.session.add_all([resource, video])
    db.session.commit()
    seed.resource = resource
    seed.video = video
    return seed


def complete_content(seed):
    for item_type, item in (("resource", seed.resource), ("video", seed.video)):
        db.session.add(CourseContentProgress(
            course_id=seed.course.id, user_id=seed.member.id, item_type=item_type, item_id=item.id,
            completed_at=db.func.now(),
        ))
    db.session.commit()
