# This project was developed with assistance from AI tools.
"""Remote signature sessions: created by advisors, polled by the client's phone."""

import logging

from db import get_db
from db.enums import UserRole
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser, require_roles
from ..schemas.signature import (
    SignatureSessionCreate,
    SignatureSessionCreated,
    SignatureSessionInfo,
    SignatureSessionStatusResponse,
)
from ..services import signature as signature_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=SignatureSessionCreated,
    status_code=201,
    dependencies=[Depends(require_roles(UserRole.ADVISOR, UserRole.ADMIN))],
)
async def create_signature_session(
    body: SignatureSessionCreate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> SignatureSessionCreated:
    created = await signature_service.create_signature_session(
        session, user, body.client_id, body.document_url,
    )
    return SignatureSessionCreated(
        session_id=created.id,
        token=created.token,
        expires_at=created.expires_at,
    )


@router.get("/{session_id}", response_model=SignatureSessionInfo)
async def get_signature_session(
    session_id: str,
    token: str | None = Query(default=None),
    session: AsyncSession = Depends(get_db),
) -> SignatureSessionInfo:
    """Session details for the capture page; fails unless the session is still pending."""
    info = await signature_service.get_session_info(session, session_id, token)
    return SignatureSessionInfo(
        client_name=info.client_name,
        client_id=info.client_id,
        document_url=info.document_url,
    )


@router.get("/{session_id}/status", response_model=SignatureSessionStatusResponse)
async def get_signature_session_status(
    session_id: str,
    token: str | None = Query(default=None),
    session: AsyncSession = Depends(get_db),
) -> SignatureSessionStatusResponse:
    result = await signature_service.get_session_status(session, session_id, token)
    return SignatureSessionStatusResponse(
        status=result.status,
        message=result.message,
        completed_at=result.completed_at,
    )
