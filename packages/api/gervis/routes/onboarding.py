# This project was developed with assistance from AI tools.
"""Onboarding link issuance (advisor) and questionnaire intake (client, token-authenticated)."""

import logging

from db import get_db
from db.enums import UserRole
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser, require_roles
from ..schemas.onboarding import (
    OnboardingClientSummary,
    OnboardingSubmission,
    OnboardingSubmitResponse,
    OnboardingTokenRequest,
    OnboardingTokenResponse,
)
from ..services import onboarding as onboarding_service
from ..services.errors import AlreadyOnboarded

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/onboarding-tokens",
    response_model=OnboardingTokenResponse,
    status_code=201,
    dependencies=[Depends(require_roles(UserRole.ADVISOR, UserRole.ADMIN))],
)
async def issue_onboarding_token(
    body: OnboardingTokenRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> OnboardingTokenResponse:
    """Generate an onboarding link for a client, optionally emailing it."""
    issued = await onboarding_service.issue_onboarding_token(
        session,
        user,
        body.client_id,
        language=body.language,
        custom_message=body.custom_message,
        custom_subject=body.custom_subject,
        send_email=body.send_email,
    )
    return OnboardingTokenResponse(
        token=issued.token,
        link=issued.link,
        language=issued.language,
        email_sent=issued.email_sent,
        email_error=issued.email_error,
    )


@router.get("/onboarding", response_model=OnboardingClientSummary)
async def get_onboarding(
    token: str = Query(default=""),
    session: AsyncSession = Depends(get_db),
) -> OnboardingClientSummary:
    """Resolve an onboarding link to the client it was issued for."""
    record, client = await onboarding_service.resolve_onboarding_token(session, token)
    return OnboardingClientSummary(
        client_id=client.id,
        first_name=client.first_name,
        last_name=client.last_name,
        email=client.email,
        is_onboarded=client.is_onboarded,
        language=record.language,
    )


@router.post("/onboarding", response_model=OnboardingSubmitResponse)
async def submit_onboarding(
    body: OnboardingSubmission,
    token: str = Query(default=""),
    session: AsyncSession = Depends(get_db),
) -> OnboardingSubmitResponse:
    """Accept the completed questionnaire.

    A client who already finished onboarding gets a terminal
    ``alreadyOnboarded`` answer with status 200, not an error.
    """
    try:
        await onboarding_service.submit_onboarding(session, token, body)
    except AlreadyOnboarded as exc:
        return OnboardingSubmitResponse(success=False, already_onboarded=True, message=exc.detail)
    return OnboardingSubmitResponse(message="Onboarding completed successfully")
