from dataclasses import replace

import resend

from storefront.config import Settings
from storefront.mailer import PasswordResetMailer, send_email_via_resend


def test_reset_url_points_at_frontend():
    mailer = PasswordResetMailer(Settings(frontend_url="https://shop.example.com/"))
    assert mailer.build_reset_url("abc123") == "https://shop.example.com/reset-password/abc123"


def test_missing_api_key_is_reported_not_raised():
    sent, error = send_email_via_resend({"to": ["a@x.com"]}, "  ")
    assert sent is False
    assert error == "Resend API key is not configured."


def test_reset_email_carries_raw_token(monkeypatch):
    captured = {}

    def fake_send(payload):
        captured.update(payload)
        return {"id": "email_123"}

    monkeypatch.setattr(resend.Emails, "send", fake_send)
    settings = replace(Settings(), resend_api_key="re_test", frontend_url="https://shop.example.com")

    sent, error = PasswordResetMailer(settings).send_password_reset_email("a@x.com", "tok")

    assert (sent, error) == (True, None)
    assert captured["to"] == ["a@x.com"]
    assert "https://shop.example.com/reset-password/tok" in captured["text"]


def test_provider_errors_are_swallowed(monkeypatch):
    def failing_send(payload):
        raise RuntimeError("provider down")

    monkeypatch.setattr(resend.Emails, "send", failing_send)

    sent, error = send_email_via_resend({"to": ["a@x.com"]}, "re_test")
    assert sent is False
    assert error == "provider down"
