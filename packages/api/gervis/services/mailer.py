# This project was developed with assistance from AI tools.
"""Outbound mail for onboarding invitations.

Each advisor may configure a personal SMTP account; when they have not,
the global ``SMTP_*`` settings are used. smtplib is synchronous, so the
send runs in a thread-pool executor.
"""

import asyncio
import logging
import re
import smtplib
import ssl
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr
from functools import partial
from pathlib import Path

from db import Advisor
from db.enums import OnboardingLanguage
from jinja2 import Environment, FileSystemLoader

from ..core.config import settings
from .errors import MailDeliveryError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SmtpConfig:
    host: str
    port: int
    user: str | None
    password: str | None
    sender: str
    use_ssl: bool
    timeout: int


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    html: str


_TEMPLATES = {
    OnboardingLanguage.ENGLISH: "onboarding_en.html",
    OnboardingLanguage.ITALIAN: "onboarding_it.html",
}

_SUBJECTS = {
    OnboardingLanguage.ENGLISH: "Complete Your Financial Profile",
    OnboardingLanguage.ITALIAN: "Completa il tuo Profilo Finanziario",
}

_TEMPLATE_DIR = Path(__file__).parent.parent / "templates" / "emails"
_jinja_env = Environment(loader=FileSystemLoader(_TEMPLATE_DIR), autoescape=True)

_GENERIC_GREETING = re.compile(r"^(dear|gentile)\s+.*,$", re.IGNORECASE)


def strip_greetings(message: str, first_name: str, last_name: str) -> str:
    """Drop salutation lines from a custom message; the template adds its own."""
    named = re.compile(
        rf"(dear|gentile)\s+{re.escape(first_name)}\s+{re.escape(last_name)}",
        re.IGNORECASE,
    )
    kept = [
        line
        for line in message.split("\n")
        if not (named.search(line.strip()) or _GENERIC_GREETING.match(line.strip()))
    ]
    return "\n".join(kept)


def render_onboarding_email(
    *,
    language: OnboardingLanguage,
    first_name: str,
    last_name: str,
    link: str,
    custom_message: str | None = None,
    custom_subject: str | None = None,
    advisor_signature: str | None = None,
) -> RenderedEmail:
    """Build the subject and HTML body of an onboarding invitation."""
    language = OnboardingLanguage(language)
    message_lines = None
    if custom_message:
        message_lines = strip_greetings(custom_message, first_name, last_name).split("\n")

    template = _jinja_env.get_template(_TEMPLATES[language])
    body = template.render(
        first_name=first_name,
        last_name=last_name,
        link=link,
        message_lines=message_lines,
        advisor_signature=advisor_signature,
        expiry_days=settings.ONBOARDING_TOKEN_TTL_DAYS,
    )
    return RenderedEmail(subject=custom_subject or _SUBJECTS[language], html=body)


def resolve_smtp_config(advisor: Advisor | None) -> SmtpConfig:
    """Pick the advisor's own SMTP account, else the global one.

    Raises:
        MailDeliveryError: Neither the advisor nor the deployment has an SMTP host.
    """
    if advisor is not None and advisor.smtp_host:
        return SmtpConfig(
            host=advisor.smtp_host,
            port=advisor.smtp_port or settings.SMTP_PORT,
            user=advisor.smtp_user,
            password=advisor.smtp_password,
            sender=advisor.smtp_from or advisor.smtp_user or advisor.email,
            use_ssl=settings.SMTP_USE_SSL if advisor.smtp_use_ssl is None else advisor.smtp_use_ssl,
            timeout=settings.SMTP_TIMEOUT,
        )
    if settings.SMTP_HOST:
        return SmtpConfig(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            user=settings.SMTP_USER,
            password=settings.SMTP_PASSWORD,
            sender=settings.SMTP_FROM or settings.SMTP_USER or "registration@gervis.it",
            use_ssl=settings.SMTP_USE_SSL,
            timeout=settings.SMTP_TIMEOUT,
        )
    raise MailDeliveryError("No mail transport configured")


def _deliver(config: SmtpConfig, message: EmailMessage) -> None:
    if config.use_ssl:
        smtp = smtplib.SMTP_SSL(
            config.host, config.port, timeout=config.timeout, context=ssl.create_default_context()
        )
    else:
        smtp = smtplib.SMTP(config.host, config.port, timeout=config.timeout)
    with smtp as s:
        if not config.use_ssl:
            s.starttls(context=ssl.create_default_context())
        if config.user and config.password:
            s.login(config.user, config.password)
        s.send_message(message)


async def send_email(
    config: SmtpConfig,
    *,
    to: str,
    subject: str,
    html_body: str,
    cc: str | None = None,
) -> None:
    """Send an HTML email.

    Raises:
        MailDeliveryError: The SMTP exchange failed.
    """
    message = EmailMessage()
    message["Subject"] = subject
    message["From"] = formataddr((settings.MAIL_SENDER_NAME, config.sender))
    message["To"] = to
    if cc:
        message["Cc"] = cc
    message.set_content("This message requires an HTML-capable mail client.")
    message.add_alternative(html_body, subtype="html")

    loop = asyncio.get_running_loop()
    try:
        await loop.run_in_executor(None, partial(_deliver, config, message))
    except (smtplib.SMTPException, OSError) as exc:
        raise MailDeliveryError(f"Email delivery failed: {exc}") from exc
    logger.info("Email '%s' sent to %s via %s", subject, to, config.host)


async def send_onboarding_email(
    advisor: Advisor | None,
    *,
    to: str,
    first_name: str,
    last_name: str,
    link: str,
    language: OnboardingLanguage,
    custom_message: str | None = None,
    custom_subject: str | None = None,
) -> None:
    """Render and send an onboarding invitation, copying the advisor.

    Raises:
        MailDeliveryError: No transport is configured or delivery failed.
    """
    config = resolve_smtp_config(advisor)
    email = render_onboarding_email(
        language=language,
        first_name=first_name,
        last_name=last_name,
        link=link,
        custom_message=custom_message,
        custom_subject=custom_subject,
        advisor_signature=advisor.signature if advisor is not None else None,
    )
    await send_email(
        config,
        to=to,
        subject=email.subject,
        html_body=email.html,
        cc=advisor.email if advisor is not None else None,
    )
