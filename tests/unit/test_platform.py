from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import patch

import pytest

from academy.adapters.clock import FixedClock
from academy.adapters.dev_email import DevEmailAdapter
from academy.adapters.fs.filestore import FileSystemStore
from academy.adapters.smtp_email import SMTPEmailAdapter
from academy.api.envelope import ApiError, raise_for_errors, status_for
from academy.app_shell.config import ConfigurationError, validate_ops_rules
from academy.app_shell.rate_limit import RateLimiter
from academy.components.errors import ComponentError
from academy.core.ports.email import Attachment, EmailAddress, EmailMessage, EmailStatus
from academy.core.services.notifier import Notifier
from academy.domain.pagination import Page, clamp_page, pagination_meta
from academy.rules.loader import load_rules

ROOT = Path(__file__).resolve().parents[2]


def _message(to: str = "a@example.com") -> EmailMessage:
    return EmailMessage(recipient=EmailAddress(to), subject="Hello", body_html="<p>Hi</p>", body_text="Hi")


# --- Error mapping ---


@pytest.mark.parametrize(
    "code,status",
    [
        ("item_not_found", 404),
        ("email_taken", 409),
        ("invalid_credentials", 401),
        ("invalid_refresh_token", 401),
        ("email_not_verified", 403),
        ("account_disabled", 403),
        ("forbidden", 403),
        ("weak_password", 400),
    ],
)
def test_status_for(code, status):
    assert status_for(code) == status


def test_raise_for_errors_uses_first_error():
    raise_for_errors([])
    with pytest.raises(ApiError) as exc:
        raise_for_errors(
            [ComponentError("slug_taken", "Slug exists", "slug"), ComponentError("x", "y")]
        )
    assert exc.value.status_code == 409
    assert exc.value.message == "Slug exists"
    assert len(exc.value.errors) == 2


# --- Paging ---


def test_clamp_page():
    assert clamp_page(None, None, 10, 100) == Page(page=1, limit=10)
    assert clamp_page(-3, 500, 10, 100) == Page(page=1, limit=100)
    assert clamp_page(3, 20, 10, 100).offset == 40
    assert pagination_meta(41, Page(page=1, limit=20))["total_pages"] == 3
    assert pagination_meta(0, Page(page=1, limit=20))["total_pages"] == 0


# --- Rules & config ---


def test_rules_file_loads():
    rules = load_rules(ROOT / "academy_rules.yaml")
    assert rules.auth.otp.length == 6
    assert "INDICATOR" not in rules.checkout.cart_item_types
    assert rules.checkout.currency == "INR"


def test_rules_loader_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_rules(tmp_path / "missing.yaml")

    bad = tmp_path / "bad.yaml"
    bad.write_text("auth: [unclosed")
    with pytest.raises(ValueError, match="YAML"):
        load_rules(bad)

    scalar = tmp_path / "scalar.yaml"
    scalar.write_text("just a string")
    with pytest.raises(ValueError, match="mapping"):
        load_rules(scalar)

    incomplete = tmp_path / "incomplete.yaml"
    incomplete.write_text("project:\n  name: x\n")
    with pytest.raises(ValueError, match="validation") as exc:
        load_rules(incomplete)
    assert "project.slug" in str(exc.value)
    assert "rate_limits" in str(exc.value)


def test_ops_validation(rules, tmp_path, monkeypatch):
    data_dir = tmp_path / "data"
    validate_ops_rules(rules, data_dir)
    assert data_dir.is_dir()

    strict = rules.model_copy(
        update={"ops": rules.ops.model_copy(update={"required_env": ["ACADEMY_TEST_REQUIRED"]})}
    )
    monkeypatch.delenv("ACADEMY_TEST_REQUIRED", raising=False)
    with pytest.raises(ConfigurationError, match="ACADEMY_TEST_REQUIRED"):
        validate_ops_rules(strict, data_dir)
    monkeypatch.setenv("ACADEMY_TEST_REQUIRED", "1")
    validate_ops_rules(strict, data_dir)


# --- Rate limiting ---


def test_login_limit_per_ip(rules):
    clock = FixedClock(datetime(2025, 1, 15, tzinfo=UTC))
    limiter = RateLimiter(rules.rate_limits, clock)

    assert all(limiter.check_login("1.2.3.4") for _ in range(10))
    assert not limiter.check_login("1.2.3.4")
    assert limiter.check_login("5.6.7.8")

    assert limiter.login_retry_after("1.2.3.4") == rules.rate_limits.login.window_seconds
    assert limiter.login_retry_after("9.9.9.9") == 0

    clock.advance(seconds=60)
    assert limiter.login_retry_after("1.2.3.4") == rules.rate_limits.login.window_seconds - 60

    clock.advance(seconds=rules.rate_limits.login.window_seconds + 1)
    assert limiter.check_login("1.2.3.4")


def test_otp_limit_per_email(rules):
    limiter = RateLimiter(rules.rate_limits, FixedClock(datetime(2025, 1, 15, tzinfo=UTC)))
    assert all(limiter.check_otp("a@example.com") for _ in range(5))
    assert not limiter.check_otp(" A@Example.com ")
    limiter.reset()
    assert limiter.check_otp("a@example.com")


# --- Files ---


def test_filestore_round_trip_and_traversal(tmp_path):
    store = FileSystemStore(str(tmp_path / "files"))
    path = store.save("certificates/u1/CERT-1.pdf", b"%PDF-1")
    assert path == "certificates/u1/CERT-1.pdf"
    assert store.get(path) == b"%PDF-1"
    assert store.exists(path)

    # overwrite in place
    store.save(path, b"%PDF-2")
    assert store.get(path) == b"%PDF-2"
    assert [p.name for p in (tmp_path / "files" / "certificates" / "u1").iterdir()] == ["CERT-1.pdf"]

    assert store.delete(path) is True
    assert store.delete(path) is False
    assert not store.exists(path)
    with pytest.raises(FileNotFoundError):
        store.get(path)
    with pytest.raises(ValueError):
        store.save("../escape.pdf", b"x")
    with pytest.raises(ValueError):
        store.get("")


# --- Email ---


def test_notifier_never_raises():
    class Exploding:
        def send(self, message):
            raise ConnectionError("smtp down")

    assert Notifier(Exploding()).send(_message()) is False
    dev = DevEmailAdapter()
    assert Notifier(dev).send(_message()) is True
    assert dev.get_last_email().recipient == "a@example.com"


def test_email_message_requires_recipient():
    with pytest.raises(ValueError):
        EmailMessage(recipient=EmailAddress(""), subject="x", body_html="", body_text="x")


def test_smtp_adapter_sends_multipart():
    adapter = SMTPEmailAdapter(
        "smtp.test", 587, "user", "pass", EmailAddress("no-reply@academy.test", "Shrestha Academy")
    )
    with patch("academy.adapters.smtp_email.smtplib.SMTP") as smtp:
        result = adapter.send(_message())

    server = smtp.return_value.__enter__.return_value
    server.starttls.assert_called_once()
    server.login.assert_called_once_with("user", "pass")
    sender, recipients, raw = server.sendmail.call_args.args
    assert sender == "no-reply@academy.test"
    assert recipients == ["a@example.com"]
    assert "Subject: Hello" in raw
    assert result.status is EmailStatus.SENT


def test_smtp_failure_is_reported():
    adapter = SMTPEmailAdapter("smtp.test", 25, None, None, EmailAddress("no-reply@academy.test"), use_tls=False)
    with patch("academy.adapters.smtp_email.smtplib.SMTP", side_effect=OSError("refused")):
        result = adapter.send(_message())
    assert not result.ok
    assert "refused" in result.error


def test_smtp_adapter_attaches_files():
    adapter = SMTPEmailAdapter("smtp.test", 25, None, None, EmailAddress("no-reply@academy.test"), use_tls=False)
    message = EmailMessage(
        recipient=EmailAddress("a@example.com", "Asha"),
        subject="Your certificate",
        body_html="<p>Attached</p>",
        body_text="Attached",
        kind="CERTIFICATE",
        attachments=(Attachment("CERT-1.pdf", b"%PDF-1"),),
    )
    with patch("academy.adapters.smtp_email.smtplib.SMTP") as smtp:
        result = adapter.send(message)

    server = smtp.return_value.__enter__.return_value
    server.starttls.assert_not_called()
    server.login.assert_not_called()
    raw = server.sendmail.call_args.args[2]
    assert "multipart/mixed" in raw
    assert 'filename="CERT-1.pdf"' in raw
    assert "X-Academy-Mail-Kind: CERTIFICATE" in raw
    assert result.ok


def test_dev_outbox_is_queryable_by_kind_and_recipient():
    dev = DevEmailAdapter()
    dev.send(_message("Asha@Example.com"))
    dev.send(
        EmailMessage(
            recipient=EmailAddress("b@example.com"),
            subject="Code",
            body_html="",
            body_text="Your code is 123456",
            kind="OTP",
        )
    )
    assert dev.email_count == 2
    assert [e.recipient for e in dev.get_emails_to("asha@example.com")] == ["Asha@Example.com"]
    assert [e.subject for e in dev.of_kind("OTP")] == ["Code"]
    assert dev.get_last_email().attachment_names == []
