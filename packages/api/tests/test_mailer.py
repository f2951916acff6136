# This project was developed with assistance from AI tools.
"""Tests for onboarding email rendering and SMTP delivery."""

import smtplib
from unittest.mock import MagicMock, patch

import pytest
from db import Advisor
from db.enums import OnboardingLanguage

from gervis.core.config import settings
from gervis.services import mailer
from gervis.services.errors import MailDeliveryError
from gervis.services.mailer import SmtpConfig, render_onboarding_email, resolve_smtp_config, strip_greetings

LINK = "https://app.gervis.test/onboarding?token=abc"


def _make_advisor(**overrides):
    fields = {"id": "advisor-rossi", "email": "rossi@gervis.test", "first_name": "Marco", "last_name": "Rossi"}
    fields.update(overrides)
    return Advisor(**fields)


def _render(**overrides):
    kwargs = {
        "language": OnboardingLanguage.ENGLISH,
        "first_name": "Giulia",
        "last_name": "Verdi",
        "link": LINK,
    }
    kwargs.update(overrides)
    return render_onboarding_email(**kwargs)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def test_english_defaults():
    email = _render()
    assert email.subject == "Complete Your Financial Profile"
    assert "Dear Giulia Verdi," in email.html
    assert "Complete My Profile" in email.html
    assert LINK.replace("&", "&amp;") in email.html
    assert "expire in 7 days" in email.html


def test_italian_defaults():
    email = _render(language=OnboardingLanguage.ITALIAN)
    assert email.subject == "Completa il tuo Profilo Finanziario"
    assert "Gentile Giulia Verdi," in email.html
    assert "Completa il Mio Profilo" in email.html


def test_custom_subject_wins():
    assert _render(custom_subject="Your onboarding").subject == "Your onboarding"


def test_custom_message_replaces_invitation():
    email = _render(custom_message="Ciao Giulia,\nas discussed on the phone.")
    assert "as discussed on the phone." in email.html
    assert "personally invited you" not in email.html


def test_custom_message_is_escaped():
    email = _render(custom_message="<script>alert(1)</script>")
    assert "<script>" not in email.html
    assert "&lt;script&gt;" in email.html


def test_advisor_signature_used():
    email = _render(advisor_signature="Marco Rossi\nGervis Wealth")
    assert "Marco Rossi\nGervis Wealth" in email.html
    assert "Financial Advisor</p>" not in email.html


def test_template_escapes_names_and_link():
    email = _render(first_name="<b>Giulia</b>", link='https://gervis.test/onboarding?token="x"')
    assert "<b>Giulia</b>" not in email.html
    assert "&lt;b&gt;Giulia&lt;/b&gt;" in email.html
    assert 'token="x"' not in email.html


def test_strip_greetings_removes_salutations():
    message = "Dear Giulia Verdi,\nHere is your link.\ngentile cliente,\nThanks"
    assert strip_greetings(message, "Giulia", "Verdi") == "Here is your link.\nThanks"


def test_strip_greetings_keeps_plain_text():
    message = "We spoke about your dear old portfolio."
    assert strip_greetings(message, "Giulia", "Verdi") == message


# ---------------------------------------------------------------------------
# SMTP configuration
# ---------------------------------------------------------------------------


def test_advisor_smtp_preferred(monkeypatch):
    monkeypatch.setattr(settings, "SMTP_HOST", "smtp.global.test")
    advisor = _make_advisor(smtp_host="smtp.rossi.test", smtp_port=587, smtp_user="marco", smtp_use_ssl=False)

    config = resolve_smtp_config(advisor)

    assert config.host == "smtp.rossi.test"
    assert config.port == 587
    assert config.sender == "marco"
    assert config.use_ssl is False


def test_global_smtp_fallback(monkeypatch):
    monkeypatch.setattr(settings, "SMTP_HOST", "smtp.global.test")
    monkeypatch.setattr(settings, "SMTP_FROM", "onboarding@gervis.test")

    config = resolve_smtp_config(_make_advisor())

    assert config.host == "smtp.global.test"
    assert config.sender == "onboarding@gervis.test"


def test_no_transport_configured(monkeypatch):
    monkeypatch.setattr(settings, "SMTP_HOST", None)
    with pytest.raises(MailDeliveryError, match="No mail transport"):
        resolve_smtp_config(None)


# ---------------------------------------------------------------------------
# Delivery
# ---------------------------------------------------------------------------


def _config(use_ssl=True):
    return SmtpConfig(
        host="smtp.test", port=465, user="u", password="p", sender="u@gervis.test",
        use_ssl=use_ssl, timeout=5,
    )


async def test_send_email_over_ssl():
    smtp = MagicMock()
    with patch.object(mailer.smtplib, "SMTP_SSL", return_value=smtp) as ssl_cls:
        await mailer.send_email(_config(), to="c@example.com", subject="Hi", html_body="<p>x</p>", cc="a@x.test")

    ssl_cls.assert_called_once()
    session = smtp.__enter__.return_value
    session.login.assert_called_once_with("u", "p")
    message = session.send_message.call_args.args[0]
    assert message["To"] == "c@example.com"
    assert message["Cc"] == "a@x.test"
    assert message["Subject"] == "Hi"


async def test_send_email_starttls_when_not_ssl():
    smtp = MagicMock()
    with patch.object(mailer.smtplib, "SMTP", return_value=smtp):
        await mailer.send_email(_config(use_ssl=False), to="c@example.com", subject="Hi", html_body="x")

    smtp.__enter__.return_value.starttls.assert_called_once()


async def test_send_email_wraps_smtp_errors():
    smtp = MagicMock()
    smtp.__enter__.return_value.send_message.side_effect = smtplib.SMTPRecipientsRefused({})
    with patch.object(mailer.smtplib, "SMTP_SSL", return_value=smtp):
        with pytest.raises(MailDeliveryError, match="Email delivery failed"):
            await mailer.send_email(_config(), to="c@example.com", subject="Hi", html_body="x")


async def test_send_email_wraps_connection_errors():
    with patch.object(mailer.smtplib, "SMTP_SSL", side_effect=ConnectionRefusedError("refused")):
        with pytest.raises(MailDeliveryError):
            await mailer.send_email(_config(), to="c@example.com", subject="Hi", html_body="x")


async def test_send_onboarding_email_copies_advisor(monkeypatch):
    monkeypatch.setattr(settings, "SMTP_HOST", "smtp.global.test")
    sent = {}

    async def fake_send(config, **kwargs):
        sent.update(kwargs)

    monkeypatch.setattr(mailer, "send_email", fake_send)
    await mailer.send_onboarding_email(
        _make_advisor(signature="Marco"),
        to="giulia.verdi@example.com",
        first_name="Giulia",
        last_name="Verdi",
        link=LINK,
        language=OnboardingLanguage.ITALIAN,
    )

    assert sent["to"] == "giulia.verdi@example.com"
    assert sent["cc"] == "rossi@gervis.test"
    assert sent["subject"] == "Completa il tuo Profilo Finanziario"
