from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from academy.adapters.render.certificate_renderer import MatplotlibCertificateRenderer
from academy.adapters.sqlite.repos import SQLiteEnrollmentRepo
from academy.components.certificates import build_layout, default_template, validate_template_updates
from academy.core.ports.renderer import CertificateLayout
from academy.domain.entities import Certificate, Enrollment


def _issue(services, user, item):
    cert, errors = services.certificates.issue(user.id, item.item_type, str(item.id))
    assert errors == []
    return cert


# --- Pure helpers ---


def test_default_template_uses_configured_issuer(rules):
    template = default_template("OFFLINE_BATCH", rules.certificates)
    assert template.name == "Offline Batch Certificate"
    assert template.issuer_name == rules.certificates.issuer_name
    assert template.primary_color == rules.certificates.primary_color


def test_template_update_validation():
    assert validate_template_updates({"issuer_name": "Jane"}) == []
    codes = {e.code for e in validate_template_updates({"name": " ", "primary_color": "blue"})}
    assert codes == {"name_required", "invalid_color"}


def test_layout_links_to_verification_page(rules):
    cert = Certificate(
        certificate_no="CERT-ABC-1234ABCD",
        user_id=uuid4(),
        item_type="MENTORSHIP",
        reference_id="m1",
        recipient_name="Asha",
        title="One-on-One",
    )
    layout = build_layout(
        cert, default_template("MENTORSHIP", rules.certificates), "Shrestha Academy", "https://x.test/verify/"
    )
    assert layout.verify_url == "https://x.test/verify/CERT-ABC-1234ABCD"
    assert layout.type_label == "mentorship program"
    assert build_layout(cert, default_template("MENTORSHIP", rules.certificates), "B", None).verify_url is None


# --- Issuing ---


def test_issue_renders_stores_and_emails(services, student, new_item):
    course = new_item(title="Technical Analysis")
    cert = _issue(services, student, course)

    assert cert.certificate_no.startswith("CERT-")
    assert cert.recipient_name == student.name
    assert cert.file_path == f"certificates/{student.id}/{cert.certificate_no}.pdf"
    assert services.store.get(cert.file_path).startswith(b"%PDF")
    assert services.renderer.layouts[-1].verify_url.endswith(cert.certificate_no)
    mail = services.email.of_kind("CERTIFICATE")[-1]
    assert mail.recipient == student.email
    assert cert.certificate_no in mail.body_text
    assert mail.attachment_names == [f"{cert.certificate_no}.pdf"]


def test_issue_is_idempotent(services, student, new_item):
    course = new_item()
    first = _issue(services, student, course)
    second = _issue(services, student, course)

    assert first.id == second.id
    assert len(services.renderer.layouts) == 1


def test_issue_rejects_bad_input(services, student, new_item):
    ebook = new_item("EBOOK", "Not Certifiable")
    course = new_item()

    _, errors = services.certificates.issue(student.id, "EBOOK", str(ebook.id))
    assert [e.code for e in errors] == ["invalid_item_type"]
    _, errors = services.certificates.issue(student.id, "WEBINAR", str(course.id))
    assert [e.code for e in errors] == ["item_not_found"]
    _, errors = services.certificates.issue(student.id, "COURSE", "not-a-uuid")
    assert [e.code for e in errors] == ["item_not_found"]


# --- Verification & download ---


def test_verify_valid_revoked_and_unknown(services, student, new_item):
    cert = _issue(services, student, new_item(title="Options"))

    result = services.certificates.verify(cert.certificate_no)
    assert result.valid
    assert result.recipient_name == student.name
    assert result.title == "Options"

    services.certificates.revoke(cert.id)
    result = services.certificates.verify(cert.certificate_no)
    assert not result.valid
    assert result.recipient_name is None
    assert result.message == "This certificate has been revoked"

    assert services.certificates.verify("CERT-NOPE-00000000") is None


def test_revoked_certificates_leave_my_list(services, student, new_item):
    cert = _issue(services, student, new_item())
    services.certificates.revoke(cert.id)
    assert services.certificates.mine(student) == []

    restored, errors = services.certificates.restore(cert.id)
    assert errors == [] and restored.status == "GENERATED"
    assert [c.id for c in services.certificates.mine(student)] == [cert.id]

    _, errors = services.certificates.restore(cert.id)
    assert [e.code for e in errors] == ["certificate_not_revoked"]


def test_download_access_rules(services, student, new_user, new_item):
    cert = _issue(services, student, new_item())
    stranger = new_user("stranger@example.com")
    admin = new_user("boss@example.com", admin=True)

    file, errors = services.certificates.download(cert.id, student)
    assert errors == []
    assert file.filename == f"{cert.certificate_no}.pdf"

    _, errors = services.certificates.download(cert.id, stranger)
    assert [e.code for e in errors] == ["certificate_not_found"]

    services.certificates.revoke(cert.id)
    _, errors = services.certificates.download(cert.id, student)
    assert [e.code for e in errors] == ["certificate_revoked"]
    file, errors = services.certificates.download(cert.id, admin)
    assert errors == [] and file.data


def test_download_rerenders_missing_file(services, student, new_item):
    cert = _issue(services, student, new_item())
    services.store.delete(cert.file_path)

    file, errors = services.certificates.download(cert.id, student)
    assert errors == []
    assert file.data == f"%PDF-fake {cert.certificate_no}".encode()
    assert len(services.renderer.layouts) == 2


# --- Admin ---


def test_template_changes_apply_to_regeneration(services, student, new_item):
    cert = _issue(services, student, new_item())

    template, errors = services.certificates.upsert_template(
        "COURSE", {"issuer_name": "R. Shrestha", "primary_color": "#112233"}
    )
    assert errors == [] and template.issuer_name == "R. Shrestha"

    student.name = "Renamed Student"
    services.users.save(student)
    regenerated, _ = services.certificates.regenerate(cert.id)

    assert regenerated.certificate_no == cert.certificate_no
    assert regenerated.recipient_name == "Renamed Student"
    layout = services.renderer.layouts[-1]
    assert layout.issuer_name == "R. Shrestha"
    assert layout.primary_color == "#112233"

    assert services.certificates.delete_template("COURSE") == []
    assert services.certificates.get_template("COURSE").issuer_name == services.rules.certificates.issuer_name
    assert [e.code for e in services.certificates.delete_template("COURSE")] == ["template_not_found"]


def test_list_templates_covers_every_type(services):
    types = [t.item_type for t in services.certificates.list_templates()]
    assert types == ["COURSE", "WEBINAR", "MENTORSHIP", "GUIDANCE", "OFFLINE_BATCH", "BUNDLE"]
    _, errors = services.certificates.upsert_template("EBOOK", {})
    assert [e.code for e in errors] == ["invalid_item_type"]


def test_stats_and_delete(services, student, new_item):
    course_cert = _issue(services, student, new_item())
    _issue(services, student, new_item("BUNDLE", "Starter Bundle"))
    services.certificates.revoke(course_cert.id)

    stats = services.certificates.stats()
    assert stats["total"] == 2
    assert stats["revoked"] == 1
    assert stats["course"] == 1 and stats["bundle"] == 1 and stats["webinar"] == 0

    assert services.certificates.delete(course_cert.id) == []
    assert services.certificates.get(course_cert.id) is None
    with pytest.raises(FileNotFoundError):
        services.store.get(course_cert.file_path)


def test_finished_webinars_certify_attendees(services, student, new_user, new_item):
    now = services.clock.now_utc()
    finished = new_item("WEBINAR", "Budget Day Live", starts_at=now - timedelta(hours=3), duration_minutes=90)
    upcoming = new_item("WEBINAR", "Next Week Live", starts_at=now + timedelta(days=7), duration_minutes=60)
    other = new_user("other@example.com")
    enrollments = SQLiteEnrollmentRepo(services.db_path)
    for user in (student, other):
        for webinar in (finished, upcoming):
            enrollments.save(Enrollment(user_id=user.id, item_type="WEBINAR", item_id=str(webinar.id)))

    # before the first webinar ended nothing is due
    assert services.certificates.process_webinar_completions(now - timedelta(hours=2)) == 0
    assert services.certificates.process_webinar_completions() == 2
    assert services.certificates.process_webinar_completions() == 0
    assert {c.title for c in services.certificates.mine(student)} == {"Budget Day Live"}

    next_month = now + timedelta(days=30)
    assert services.certificates.process_webinar_completions(next_month) == 2
    assert {c.title for c in services.certificates.mine(other)} == {"Budget Day Live", "Next Week Live"}


# --- Renderer ---


def test_matplotlib_renderer_produces_pdf():
    layout = CertificateLayout(
        brand_name="Shrestha Academy",
        recipient_name="Asha Sharma",
        type_label="course",
        title="Price Action Basics",
        certificate_no="CERT-M5X2K1-1A2B3C4D",
        issued_at=datetime(2025, 1, 15, tzinfo=UTC),
        issuer_name="Shrestha Academy",
        issuer_title="Platform Director",
        primary_color="#6366F1",
        secondary_color="#A5B4FC",
        footer_text="Keep learning",
        verify_url="https://academy.test/certificates/verify/CERT-M5X2K1-1A2B3C4D",
    )
    pdf = MatplotlibCertificateRenderer(dpi=50).render_pdf(layout)
    assert pdf.startswith(b"%PDF")
    assert len(pdf) > 1000
