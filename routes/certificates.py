from flask import Blueprint, current_app, g, redirect

from classes.certificate_generator import CertificateGenerator
from models import db
from utils.dropbox_service import get_storage
from utils.utils import login_required

certificate_bp = Blueprint("certificates", __name__)


# Render on first request, then always serve the stored PDF
@certificate_bp.route("/certificates/<certificate_id>/generate", methods=["GET"])
@certificate_bp.route("/certificates/<certificate_id>/download", methods=["GET"])
@login_required
def generate_certificate(certificate_id):
    generator = CertificateGenerator(
        db.session,
        get_storage(),
        signed_url_ttl=current_app.config["SIGNED_URL_TTL_SECONDS"],
    )
    url = generator.download_url(g.user, certificate_id)
    return redirect(url, code=302)
