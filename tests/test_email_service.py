import asyncio

import aiosmtplib

import config
from utils.email_service import EmailService


def test_send_uses_smtp_timeout(monkeypatch):
    sent = {}

    async def fake_send(message, **kwargs):
        sent["to"] = message["To"]
        sent.update(kwargs)

    monkeypatch.setattr(config, "SMTP_USERNAME", "mailer")
    monkeypatch.setattr(config, "SMTP_PASSWORD", "secret")
    monkeypatch.setattr(config, "SMTP_TIMEOUT_SECONDS", 3.5)
    monkeypatch.setattr(config, "DB_TIMEOUT_SECONDS", 99.0)
    monkeypatch.setattr(aiosmtplib, "send", fake_send)

    assert asyncio.run(EmailService.send_status_update_email("alice@example.com", "Alice", "active"))
    assert sent["to"] == "alice@example.com"
    assert sent["timeout"] == 3.5


def test_send_failure_is_logged_not_raised(monkeypatch):
    async def fake_send(message, **kwargs):
        raise aiosmtplib.SMTPException("connection refused")

    monkeypatch.setattr(config, "SMTP_USERNAME", "mailer")
    monkeypatch.setattr(config, "SMTP_PASSWORD", "secret")
    monkeypatch.setattr(aiosmtplib, "send", fake_send)

    assert asyncio.run(EmailService.send_status_update_email("alice@example.com", "Alice", "active")) is False


def test_send_skipped_without_credentials():
    assert asyncio.run(EmailService.send_status_update_email("alice@example.com", "Alice", "active")) is False
