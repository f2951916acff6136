# This project was developed with assistance from AI tools.
"""Onboarding link issuance and questionnaire intake.

An advisor issues a single-use link for one of their clients; the client
opens it, fills in the questionnaire, and the submission marks the client
onboarded. Issuing a new link revokes any link still outstanding for the
same client.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

from db import Advisor, Asset, Client, MifidProfile, OnboardingToken
from db.enums import ClientSegment, OnboardingLanguage
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..schemas.auth import UserContext
from ..schemas.onboarding import OnboardingSubmission
from . import audit
from .clock import as_utc, utcnow
from .errors import AlreadyOnboarded, MailDeliveryError, MissingClientEmail, NotFound
from .mailer import send_onboarding_email
from .scope import get_owned_client

logger = logging.getLogger(__name__)

INVALID_TOKEN = "Invalid or expired token"


@dataclass(frozen=True)
class IssuedToken:
    token: str
    link: str
    language: OnboardingLanguage
    email_sent: bool
    email_error: str | None = None


def build_onboarding_link(token: str) -> str:
    return f"{settings.BASE_URL.rstrip('/')}/onboarding?token={token}"


async def issue_onboarding_token(
    session: AsyncSession,
    user: UserContext,
    client_id: int,
    *,
    language: OnboardingLanguage = OnboardingLanguage.ITALIAN,
    custom_message: str | None = None,
    custom_subject: str | None = None,
    send_email: bool = False,
    now: datetime | None = None,
) -> IssuedToken:
    """Create an onboarding link for a client and optionally email it.

    Mail failures never invalidate the link: the result reports
    ``email_sent=False`` with the error so the advisor can resend.

    Raises:
        ClientNotFound: No such client.
        NotAuthorized: Client belongs to another advisor.
        MissingClientEmail: ``send_email`` requested for a client without email.
    """
    client = await get_owned_client(session, user, client_id)
    if send_email and not client.email:
        raise MissingClientEmail()

    now = now or utcnow()
    await session.execute(
        update(OnboardingToken)
        .where(
            OnboardingToken.client_id == client.id,
            OnboardingToken.consumed_at.is_(None),
            OnboardingToken.revoked_at.is_(None),
        )
        .values(revoked_at=now)
    )

    token = secrets.token_urlsafe(24)
    session.add(
        OnboardingToken(
            token=token,
            client_id=client.id,
            advisor_id=user.user_id,
            language=language,
            custom_message=custom_message,
            custom_subject=custom_subject,
            created_at=now,
            expires_at=now + timedelta(days=settings.ONBOARDING_TOKEN_TTL_DAYS),
        )
    )
    await audit.write_client_log(
        session,
        client_id=client.id,
        log_type=audit.ONBOARDING_TOKEN_ISSUED,
        title="Onboarding link generated",
        content=f"Language: {OnboardingLanguage(language).value}",
        created_by=user.user_id,
    )
    await session.commit()
    link = build_onboarding_link(token)
    logger.info("Onboarding link issued for client %s by %s", client.id, user.user_id)

    if not send_email:
        return IssuedToken(token=token, link=link, language=language, email_sent=False)

    advisor = await session.get(Advisor, user.user_id)
    try:
        await send_onboarding_email(
            advisor,
            to=client.email,
            first_name=client.first_name,
            last_name=client.last_name,
            link=link,
            language=language,
            custom_message=custom_message,
            custom_subject=custom_subject,
        )
    except MailDeliveryError as exc:
        logger.warning("Onboarding email for client %s not delivered: %s", client.id, exc.detail)
        return IssuedToken(
            token=token, link=link, language=language, email_sent=False, email_error=exc.detail
        )

    await audit.write_client_log(
        session,
        client_id=client.id,
        log_type=audit.ONBOARDING_EMAIL_SENT,
        title="Onboarding email sent",
        content=f"Sent to {client.email}",
        created_by=user.user_id,
    )
    await session.commit()
    return IssuedToken(token=token, link=link, language=language, email_sent=True)


async def resolve_onboarding_token(
    session: AsyncSession,
    token: str,
    *,
    now: datetime | None = None,
) -> tuple[OnboardingToken, Client]:
    """Look up a live onboarding token and its client.

    Unknown, consumed, revoked and expired tokens all produce the same
    ``NotFound`` so callers cannot tell which tokens exist.
    """
    now = now or utcnow()
    if not token:
        raise NotFound(INVALID_TOKEN)

    result = await session.execute(select(OnboardingToken).where(OnboardingToken.token == token))
    record = result.scalar_one_or_none()
    if (
        record is None
        or record.consumed_at is not None
        or record.revoked_at is not None
        or as_utc(record.expires_at) < now
    ):
        raise NotFound(INVALID_TOKEN)

    client = await session.get(Client, record.client_id)
    if client is None:
        raise NotFound(INVALID_TOKEN)
    return record, client


async def submit_onboarding(
    session: AsyncSession,
    token: str,
    payload: OnboardingSubmission,
    *,
    now: datetime | None = None,
) -> Client:
    """Store the questionnaire and mark the client onboarded.

    The token is consumed with a conditional update before any profile
    write, so two concurrent submissions cannot both succeed.

    Raises:
        NotFound: Token invalid, expired, or already used.
        AlreadyOnboarded: Client already completed onboarding (nothing is changed).
    """
    now = now or utcnow()
    record, client = await resolve_onboarding_token(session, token, now=now)
    if client.is_onboarded:
        logger.info("Rejected onboarding re-submission for client %s", client.id)
        raise AlreadyOnboarded()

    result = await session.execute(
        update(OnboardingToken)
        .where(
            OnboardingToken.id == record.id,
            OnboardingToken.consumed_at.is_(None),
            OnboardingToken.revoked_at.is_(None),
        )
        .values(consumed_at=now)
    )
    if result.rowcount != 1:
        await session.rollback()
        raise NotFound(INVALID_TOKEN)

    held_assets = payload.held_assets()
    session.add(
        MifidProfile(
            client_id=client.id,
            address=payload.address,
            phone=payload.phone,
            birth_date=payload.birth_date,
            marital_status=payload.marital_status,
            employment_status=payload.employment_status,
            education_level=payload.education_level,
            annual_income=payload.annual_income,
            monthly_expenses=payload.monthly_expenses,
            debts=payload.debts,
            dependents=payload.dependents,
            assets=[asset.model_dump(mode="json") for asset in held_assets],
            investment_horizon=payload.investment_horizon.value,
            retirement_interest=payload.retirement_interest,
            wealth_growth_interest=payload.wealth_growth_interest,
            income_generation_interest=payload.income_generation_interest,
            capital_preservation_interest=payload.capital_preservation_interest,
            estate_planning_interest=payload.estate_planning_interest,
            investment_experience=payload.investment_experience.value,
            past_investment_experience=payload.past_investment_experience,
            financial_education=payload.financial_education,
            risk_profile=payload.risk_profile.value,
            portfolio_drop_reaction=payload.portfolio_drop_reaction,
            volatility_tolerance=payload.volatility_tolerance,
            years_of_experience=payload.years_of_experience,
            investment_frequency=payload.investment_frequency,
            advisor_usage=payload.advisor_usage,
            monitoring_time=payload.monitoring_time,
            specific_questions=payload.specific_questions,
        )
    )
    for asset in held_assets:
        session.add(
            Asset(
                client_id=client.id,
                category=asset.category,
                value=asset.value,
                description=asset.description,
            )
        )

    total_assets = sum(asset.value for asset in held_assets)
    net_worth = total_assets - payload.debts

    client.address = payload.address
    client.phone = payload.phone
    if payload.tax_code:
        client.tax_code = payload.tax_code
    client.birth_date = payload.birth_date
    client.marital_status = payload.marital_status
    client.employment_status = payload.employment_status
    client.education_level = payload.education_level
    client.annual_income = payload.annual_income
    client.monthly_expenses = payload.monthly_expenses
    client.debts = payload.debts
    client.dependents = payload.dependents
    client.risk_profile = payload.risk_profile
    client.investment_experience = payload.investment_experience
    client.investment_horizon = payload.investment_horizon
    client.retirement_interest = payload.retirement_interest
    client.wealth_growth_interest = payload.wealth_growth_interest
    client.income_generation_interest = payload.income_generation_interest
    client.capital_preservation_interest = payload.capital_preservation_interest
    client.estate_planning_interest = payload.estate_planning_interest
    client.total_assets = total_assets
    client.net_worth = net_worth
    client.client_segment = ClientSegment.for_net_worth(net_worth)
    client.is_onboarded = True
    client.onboarded_at = now
    client.active = False

    await audit.write_client_log(
        session,
        client_id=client.id,
        log_type=audit.ONBOARDING_COMPLETED,
        title="Onboarding completed",
        content=f"Net worth {net_worth:.2f}, segment {client.client_segment.value}",
    )
    await session.commit()
    logger.info(
        "Client %s onboarded (net_worth=%.2f, segment=%s)",
        client.id,
        net_worth,
        client.client_segment.value,
    )
    return client
