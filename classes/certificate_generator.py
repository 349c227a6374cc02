import logging

from sqlalchemy import update

from classes.certificate_renderer import PDF_MIME, render_certificate
from classes.validators import parse_placement
from models import Certificate, CertificateSettings, CertificateTemplate, Course, User
from utils.dropbox_service import StorageError
from utils.errors import Conflict, Forbidden, InternalError, NotFound
from utils.helpers import safe_filename, utcnow

logger = logging.getLogger(__name__)

CERTIFICATES_BUCKET = "certificates"


def certificate_storage_path(certificate):
    return (
        f"orgs/{certificate.organization_id}/courses/{certificate.course_id}"
        f"/users/{certificate.user_id}/cert-{certificate.id}.pdf"
    )


def ensure_can_view_certificate(caller, certificate):
    role = caller.get("role")
    if role == "member":
        if str(certificate.user_id) != str(caller.get("user_id")):
            raise Forbidden()
    elif role == "organization_admin":
        if not caller.get("organization_id") or str(certificate.organization_id) != str(caller.get("organization_id")):
            raise Forbidden()
    elif role not in ("super_admin", "system_admin"):
        raise Forbidden()


class CertificateGenerator:
    """Renders a certificate PDF on first request and serves the stored file afterwards."""

    def __init__(self, session, storage, signed_url_ttl=600):
        self.session = session
        self.storage = storage
        self.signed_url_ttl = signed_url_ttl

    def _signed_url(self, bucket, path):
        try:
            return self.storage.create_signed_url(bucket, path, self.signed_url_ttl)
        except StorageError as e:
            raise InternalError("Failed to create download URL.") from e

    def download_url(self, caller, certificate_id):
        certificate = self.session.get(Certificate, certificate_id)
        if certificate is None:
            raise NotFound("Certificate not found.")
        ensure_can_view_certificate(caller, certificate)

        if certificate.is_generated:
            return self._signed_url(certificate.storage_bucket, certificate.storage_path)

        if not (certificate.course_id and certificate.user_id and certificate.organization_id):
            raise InternalError("Invalid certificate record.")

        bucket, path = self.generate(certificate)
        return self._signed_url(bucket, path)

    def generate(self, certificate):
        course_id = certificate.course_id
        template = self.session.query(CertificateTemplate).filter_by(course_id=course_id).first()
        settings = self.session.get(CertificateSettings, course_id)

        if template is None or not template.storage_bucket or not template.storage_path:
            raise NotFound("Certificate template not found.")
        if settings is None or not settings.enabled:
            raise Conflict("Certificate is not enabled for this course.")
        placement = parse_placement(settings.name_placement_json)
        if placement is None:
            raise Conflict("Certificate name placement is not configured yet.")

        user = self.session.get(User, certificate.user_id)
        course = self.session.get(Course, course_id)
        display_name = user.display_name if user else "Member"

        try:
            template_bytes = self.storage.download(template.storage_bucket, template.storage_path)
        except StorageError as e:
            raise InternalError("Failed to download template.") from e

        pdf_bytes = render_certificate(template_bytes, template.mime_type, placement, display_name)

        course_title = course.title if course and course.title else "Course"
        title = (settings.certificate_title or "").strip()
        file_name = f"{safe_filename(title or f'Certificate - {course_title}')}.pdf"

        path = certificate_storage_path(certificate)
        try:
            self.storage.upload(CERTIFICATES_BUCKET, path, pdf_bytes, content_type=PDF_MIME)
        except StorageError as e:
            raise InternalError("Failed to store generated certificate.") from e

        # only the first generation records its metadata
        result = self.session.execute(
            update(Certificate)
            .where(Certificate.id == certificate.id, Certificate.storage_path.is_(None))
            .values(
                storage_bucket=CERTIFICATES_BUCKET,
                storage_path=path,
                file_name=file_name,
                mime_type=PDF_MIME,
                size_bytes=len(pdf_bytes),
                generated_at=utcnow(),
                template_id=template.id,
            )
            .execution_options(synchronize_session=False)
        )
        self.session.commit()

        if result.rowcount == 0:
            self.session.refresh(certificate)
            logger.info("Certificate %s was generated concurrently; serving stored copy", certificate.id)
            return certificate.storage_bucket, certificate.storage_path

        logger.info("Generated certificate %s (%s bytes) from template %s", certificate.id, len(pdf_bytes), template.id)
        return CERTIFICATES_BUCKET, path
