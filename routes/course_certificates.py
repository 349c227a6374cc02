import logging
import time
from flask import Blueprint, current_app, g, redirect, request

from classes.validators import CertificateSettingsUpdate, validate_body
from models import db, Certificate, CertificateSettings, CertificateTemplate
from models.users import ADMIN_ROLES, PLATFORM_ADMIN_ROLES
from utils.dropbox_service import StorageError, get_storage
from utils.errors import Forbidden, InternalError, NotFound, ValidationFailed, api_ok
from utils.helpers import ext_from_mime, utcnow
from utils.utils import ensure_course_visible, ensure_org_access, get_course_or_404, login_required, roles_required

logger = logging.getLogger(__name__)

course_certificate_bp = Blueprint("course_certificates", __name__)

TEMPLATES_BUCKET = "certificate-templates"
ALLOWED_TEMPLATE_TYPES = {"application/pdf", "image/png", "image/jpeg", "image/webp"}


def ensure_can_download_template(caller, course_id):
    role = caller.get("role")
    if role == "member":
        cert = Certificate.query.filter_by(course_id=course_id, user_id=caller.get("user_id")).first()
        if not cert:
            raise Forbidden()
    elif role == "organization_admin":
        if not caller.get("organization_id"):
            raise Forbidden()
        cert = Certificate.query.filter_by(course_id=course_id, organization_id=caller.get("organization_id")).first()
        if not cert:
            raise Forbidden()
    elif role not in PLATFORM_ADMIN_ROLES:
        raise Forbidden()


#__________________________________________________________________________________________ * Templates *__________________________________________________

@course_certificate_bp.route("/courses/<course_id>/certificate-template", methods=["GET"])
@login_required
def get_certificate_template(course_id):
    if request.args.get("download") != "1":
        course = get_course_or_404(course_id)
        ensure_course_visible(g.user, course)
        template = CertificateTemplate.query.filter_by(course_id=course_id).first()
        return api_ok({"template": template.to_dict() if template else None})

    ensure_can_download_template(g.user, course_id)

    template = CertificateTemplate.query.filter_by(course_id=course_id).first()
    if not template or not template.storage_bucket or not template.storage_path:
        raise NotFound("Certificate template not found.")

    try:
        url = get_storage().create_signed_url(
            template.storage_bucket, template.storage_path, current_app.config["SIGNED_URL_TTL_SECONDS"]
        )
    except StorageError as e:
        raise InternalError("Failed to create signed URL.") from e

    return redirect(url, code=302)


@course_certificate_bp.route("/courses/<course_id>/certificate-template", methods=["POST"])
@login_required
@roles_required(*ADMIN_ROLES)
def upload_certificate_template(course_id):
    file = request.files.get("file")
    if not file or not file.filename:
        raise ValidationFailed("Missing file.")

    mime = file.mimetype
    if mime not in ALLOWED_TEMPLATE_TYPES:
        raise ValidationFailed("Invalid file type (allowed: PDF, PNG, JPG, WebP).")

    data = file.read()
    max_bytes = current_app.config["CERTIFICATE_TEMPLATE_MAX_BYTES"]
    if len(data) > max_bytes:
        raise ValidationFailed(f"File too large (max {max_bytes // (1024 * 1024)}MB).")

    course = get_course_or_404(course_id)
    if g.user.get("role") == "organization_admin":
        ensure_org_access(g.user, course.organization_id)

    template = CertificateTemplate.query.filter_by(course_id=course_id).first()
    previous = (template.storage_bucket, template.storage_path) if template else None

    path = f"courses/{course_id}/template-{int(time.time() * 1000)}.{ext_from_mime(mime)}"
    storage = get_storage()
    try:
        storage.upload(TEMPLATES_BUCKET, path, data, content_type=mime)
    except StorageError as e:
        raise InternalError("Upload failed.") from e

    if not template:
        template = CertificateTemplate(course_id=course_id)
        db.session.add(template)
    template.organization_id = course.organization_id
    template.storage_bucket = TEMPLATES_BUCKET
    template.storage_path = path
    template.file_name = file.filename
    template.mime_type = mime
    template.size_bytes = len(data)
    template.uploaded_by = g.user.get("user_id")
    db.session.commit()

    # old file goes only after the new one is saved
    if previous and previous[1] and previous != (TEMPLATES_BUCKET, path):
        try:
            storage.remove(*previous)
        except StorageError:
            logger.warning("Could not remove previous template %s/%s", *previous)

    logger.info("Certificate template for course %s uploaded by %s", course_id, g.user.get("user_id"))
    return api_ok({"template": template.to_dict()}, status=201, message="Certificate template uploaded.")


@course_certificate_bp.route("/courses/<course_id>/certificate-template", methods=["DELETE"])
@login_required
@roles_required(*ADMIN_ROLES)
def delete_certificate_template(course_id):
    template = CertificateTemplate.query.filter_by(course_id=course_id).first()
    if not template:
        return api_ok({"ok": True})

    if g.user.get("role") == "organization_admin":
        ensure_org_access(g.user, template.organization_id)

    bucket, path = template.storage_bucket, template.storage_path
    db.session.delete(template)
    db.session.commit()

    try:
        get_storage().remove(bucket, path)
    except StorageError:
        logger.warning("Could not remove template file %s/%s", bucket, path)

    return api_ok({"ok": True}, message="Certificate template deleted.")


#__________________________________________________________________________________________ * Settings *__________________________________________________

@course_certificate_bp.route("/courses/<course_id>/certificate-settings", methods=["GET"])
@login_required
def get_certificate_settings(course_id):
    course = get_course_or_404(course_id)
    ensure_course_visible(g.user, course)

    settings = db.session.get(CertificateSettings, course_id)
    template = CertificateTemplate.query.filter_by(course_id=course_id).first()
    return api_ok({
        "settings": settings.to_dict() if settings else None,
        "template": template.to_dict() if template else None,
    })


@course_certificate_bp.route("/courses/<course_id>/certificate-settings", methods=["PUT"])
@login_required
@roles_required(*ADMIN_ROLES)
def update_certificate_settings(course_id):
    payload = validate_body(CertificateSettingsUpdate, request.get_json(silent=True))

    course = get_course_or_404(course_id)
    if not course.organization_id:
        raise ValidationFailed("Course has no organization.")
    if g.user.get("role") == "organization_admin":
        ensure_org_access(g.user, course.organization_id)

    settings = db.session.get(CertificateSettings, course_id)
    if not settings:
        settings = CertificateSettings(course_id=course_id, enabled=False)
        db.session.add(settings)

    settings.organization_id = course.organization_id
    settings.updated_at = utcnow()
    settings.updated_by = g.user.get("user_id")

    fields = payload.model_fields_set
    if "enabled" in fields and payload.enabled is not None:
        settings.enabled = payload.enabled
    if "certificate_title" in fields and payload.certificate_title is not None:
        settings.certificate_title = payload.certificate_title
    if "course_passing_grade_percent" in fields and payload.course_passing_grade_percent is not None:
        settings.course_passing_grade_percent = payload.course_passing_grade_percent
    if "name_placement_json" in fields:
        placement = payload.name_placement_json
        settings.name_placement_json = placement.to_json() if placement else None

    db.session.commit()
    return api_ok({"settings": settings.to_dict()}, message="Certificate settings saved.")
