import io

from PIL import Image

from models import db, CertificateSettings, CertificateTemplate

from conftest import auth, fresh, make_pdf


def png_bytes():
    buf = io.BytesIO()
    Image.new("RGB", (300, 200), color=(255, 255, 255)).save(buf, format="PNG")
    return buf.getvalue()


def upload(client, course_id, user, data, filename="template.pdf", mimetype="application/pdf"):
    return client.post(
        f"/api/courses/{course_id}/certificate-template",
        data={"file": (io.BytesIO(data), filename, mimetype)},
        content_type="multipart/form-data",
        headers=auth(user),
    )


def put_settings(client, course_id, user, body):
    return client.put(f"/api/courses/{course_id}/certificate-settings", json=body, headers=auth(user))


#__________________________________________________________________________________________ * Templates *__________________________________________________

def test_admin_uploads_template(client, seed, storage):
    pdf = make_pdf()
    res = upload(client, seed.course.id, seed.org_admin, pdf)

    assert res.status_code == 201
    body = res.get_json()
    assert body["success"] is True
    template = body["data"]["template"]
    assert template["storage_bucket"] == "certificate-templates"
    assert template["storage_path"].startswith(f"courses/{seed.course.id}/template-")
    assert template["storage_path"].endswith(".pdf")
    assert template["mime_type"] == "application/pdf"
    assert template["size_bytes"] == len(pdf)
    assert storage.objects[("certificate-templates", template["storage_path"])] == pdf


def test_replacing_template_removes_old_file(client, certificate_setup, storage):
    seed = certificate_setup
    old_path = seed.template.storage_path

    res = upload(client, seed.course.id, seed.org_admin, png_bytes(), filename="bg.png", mimetype="image/png")
    assert res.status_code == 201

    assert CertificateTemplate.query.filter_by(course_id=seed.course.id).count() == 1
    template = CertificateTemplate.query.filter_by(course_id=seed.course.id).one()
    assert template.storage_path.endswith(".png")
    assert template.mime_type == "image/png"
    assert ("certificate-templates", old_path) in storage.removed
    assert ("certificate-templates", old_path) not in storage.objects


def test_members_cannot_upload(client, seed, storage):
    res = upload(client, seed.course.id, seed.member, make_pdf())
    assert res.status_code == 403
    assert storage.uploads == []


def test_foreign_admin_cannot_upload(client, seed, storage):
    res = upload(client, seed.course.id, seed.foreign_admin, make_pdf())
    assert res.status_code == 403
    assert storage.uploads == []


def test_system_admin_can_upload_anywhere(client, seed):
    assert upload(client, seed.course.id, seed.system_admin, make_pdf()).status_code == 201


def test_upload_rejects_bad_type(client, seed):
    res = upload(client, seed.course.id, seed.org_admin, b"hello", filename="notes.txt", mimetype="text/plain")
    assert res.status_code == 400
    assert res.get_json()["error"]["code"] == "VALIDATION_ERROR"


def test_upload_rejects_missing_file(client, seed):
    res = client.post(f"/api/courses/{seed.course.id}/certificate-template", data={},
                      content_type="multipart/form-data", headers=auth(seed.org_admin))
    assert res.status_code == 400


def test_upload_rejects_large_file(app, client, seed, storage):
    app.config["CERTIFICATE_TEMPLATE_MAX_BYTES"] = 100
    res = upload(client, seed.course.id, seed.org_admin, make_pdf())
    assert res.status_code == 400
    assert "too large" in res.get_json()["error"]["message"]
    assert storage.uploads == []


def test_upload_unknown_course(client, seed):
    res = upload(client, "00000000-0000-0000-0000-000000000000", seed.system_admin, make_pdf())
    assert res.status_code == 404


def test_template_metadata(client, certificate_setup):
    seed = certificate_setup
    res = client.get(f"/api/courses/{seed.course.id}/certificate-template", headers=auth(seed.member))
    assert res.status_code == 200
    assert res.get_json()["data"]["template"]["id"] == seed.template.id


def test_template_metadata_when_none_uploaded(client, seed):
    res = client.get(f"/api/courses/{seed.course.id}/certificate-template", headers=auth(seed.member))
    assert res.status_code == 200
    assert res.get_json()["data"]["template"] is None


def test_template_metadata_hidden_from_other_orgs(client, certificate_setup):
    seed = certificate_setup
    res = client.get(f"/api/courses/{seed.course.id}/certificate-template", headers=auth(seed.foreign_admin))
    assert res.status_code == 403


def test_template_download_needs_a_certificate(client, certificate_setup):
    seed = certificate_setup
    url = f"/api/courses/{seed.course.id}/certificate-template?download=1"

    owner = client.get(url, headers=auth(seed.member))
    assert owner.status_code == 302
    assert owner.headers["Location"].startswith(
        f"https://files.example.test/certificate-templates/{seed.template.storage_path}"
    )

    assert client.get(url, headers=auth(seed.other_member)).status_code == 403
    assert client.get(url, headers=auth(seed.org_admin)).status_code == 302
    assert client.get(url, headers=auth(seed.foreign_admin)).status_code == 403
    assert client.get(url, headers=auth(seed.system_admin)).status_code == 302


def test_delete_template(client, certificate_setup, storage):
    seed = certificate_setup
    path = seed.template.storage_path

    res = client.delete(f"/api/courses/{seed.course.id}/certificate-template", headers=auth(seed.org_admin))
    assert res.status_code == 200
    assert res.get_json()["data"] == {"ok": True}
    assert CertificateTemplate.query.filter_by(course_id=seed.course.id).count() == 0
    assert ("certificate-templates", path) in storage.removed

    again = client.delete(f"/api/courses/{seed.course.id}/certificate-template", headers=auth(seed.org_admin))
    assert again.status_code == 200


def test_foreign_admin_cannot_delete_template(client, certificate_setup, storage):
    seed = certificate_setup
    res = client.delete(f"/api/courses/{seed.course.id}/certificate-template", headers=auth(seed.foreign_admin))
    assert res.status_code == 403
    assert storage.removed == []


#__________________________________________________________________________________________ * Settings *__________________________________________________

def test_save_and_read_settings(client, seed):
    placement = {"page": 1, "xPct": 0.5, "yPct": 0.2, "fontSize": 28, "align": "left", "color": "#112233"}
    res = put_settings(client, seed.course.id, seed.org_admin, {
        "enabled": True,
        "certificate_title": "Well done",
        "course_passing_grade_percent": 80,
        "name_placement_json": placement,
    })
    assert res.status_code == 200

    stored = fresh(CertificateSettings, seed.course.id)
    assert stored.enabled is True
    assert stored.certificate_title == "Well done"
    assert stored.course_passing_grade_percent == 80
    assert stored.name_placement_json == placement
    assert stored.organization_id == seed.org.id
    assert stored.updated_by == seed.org_admin.id

    res = client.get(f"/api/courses/{seed.course.id}/certificate-settings", headers=auth(seed.member))
    data = res.get_json()["data"]
    assert data["settings"]["name_placement_json"] == placement
    assert data["template"] is None


def test_partial_update_keeps_other_fields(client, certificate_setup):
    seed = certificate_setup
    res = put_settings(client, seed.course.id, seed.org_admin, {"certificate_title": "Renamed"})
    assert res.status_code == 200

    stored = fresh(CertificateSettings, seed.course.id)
    assert stored.certificate_title == "Renamed"
    assert stored.enabled is True
    assert stored.name_placement_json["xPct"] == 0.5


def test_placement_can_be_cleared(client, certificate_setup):
    seed = certificate_setup
    put_settings(client, seed.course.id, seed.org_admin, {"name_placement_json": None})
    assert fresh(CertificateSettings, seed.course.id).name_placement_json is None


def test_settings_reject_unknown_fields(client, seed):
    res = put_settings(client, seed.course.id, seed.org_admin, {"enabled": True, "theme": "dark"})
    assert res.status_code == 400
    assert res.get_json()["error"]["code"] == "VALIDATION_ERROR"


def test_settings_are_strictly_typed(client, seed):
    assert put_settings(client, seed.course.id, seed.org_admin, {"enabled": "yes"}).status_code == 400
    assert put_settings(client, seed.course.id, seed.org_admin,
                        {"course_passing_grade_percent": 101}).status_code == 400


def test_settings_reject_bad_placement(client, seed):
    for placement in (
        {"page": 1, "xPct": 1.5, "yPct": 0.2},
        {"page": 0, "xPct": 0.5, "yPct": 0.2},
        {"page": 1, "xPct": 0.5, "yPct": 0.2, "align": "justify"},
        {"page": 1, "xPct": 0.5, "yPct": 0.2, "fontSize": 500},
        {"page": 1, "xPct": 0.5, "yPct": 0.2, "rotation": 90},
    ):
        res = put_settings(client, seed.course.id, seed.org_admin, {"name_placement_json": placement})
        assert res.status_code == 400, placement
    assert db.session.get(CertificateSettings, seed.course.id) is None


def test_members_cannot_change_settings(client, seed):
    assert put_settings(client, seed.course.id, seed.member, {"enabled": True}).status_code == 403


def test_foreign_admin_cannot_change_settings(client, seed):
    assert put_settings(client, seed.course.id, seed.foreign_admin, {"enabled": True}).status_code == 403


def test_settings_hidden_from_other_orgs(client, certificate_setup):
    seed = certificate_setup
    res = client.get(f"/api/courses/{seed.course.id}/certificate-settings", headers=auth(seed.foreign_admin))
    assert res.status_code == 403

    res = client.get(f"/api/courses/{seed.course.id}/certificate-settings", headers=auth(seed.system_admin))
    assert res.status_code == 200
    assert res.get_json()["data"]["settings"]["enabled"] is True
