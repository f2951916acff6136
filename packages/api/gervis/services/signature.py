# This project was developed with assistance from AI tools.
"""Signature session lifecycle.

A session moves ``pending -> completed | expired | rejected`` and never
leaves a terminal state. Expiry is lazy: ``effective_status`` computes it
without side effects, and ``materialize_expiry`` persists it the first
time a request notices. Both the expiry write and the completion write
are conditional UPDATEs restricted to the statuses
``SignatureSessionStatus.valid_transitions()`` allows to enter the target
(only pending), so of two concurrent writers at most one wins.
"""

import hmac
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

from db import Client, SignatureSession
from db.enums import SignatureSessionStatus
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..schemas.auth import UserContext
from . import audit
from .clock import as_utc, utcnow
from .errors import InvalidState, NotAuthorized, NotFound, SessionExpired, ValidationFailed
from .scope import get_owned_client
from .storage import is_secured_url, parse_secured_url

logger = logging.getLogger(__name__)

SESSION_NOT_FOUND = "Session not found or no longer valid"
INVALID_TOKEN = "Invalid session token"

_STATUS_MESSAGES = {
    "valid": "Session is valid",
    SignatureSessionStatus.COMPLETED: "Identity verification already completed",
    SignatureSessionStatus.EXPIRED: "Session has expired",
    SignatureSessionStatus.REJECTED: "Session was rejected",
}


@dataclass(frozen=True)
class SessionInfo:
    client_name: str
    client_id: int
    document_url: str | None


@dataclass(frozen=True)
class SessionStatus:
    status: str
    message: str
    completed_at: datetime | None = None


def new_session_id(now: datetime) -> str:
    """Time-ordered, collision-resistant id. Not a secret."""
    return f"sig-{int(now.timestamp() * 1000)}-{secrets.token_hex(4)}"


def new_session_token() -> str:
    """256-bit bearer credential for the mobile capture page."""
    return secrets.token_hex(32)


def tokens_match(expected: str, supplied: str | None) -> bool:
    if not supplied:
        return False
    return hmac.compare_digest(expected.encode(), supplied.encode())


def _check_document_url(document_url: str | None, client_id: int) -> None:
    """A session may only reference secured files of its own client."""
    if not document_url or not is_secured_url(document_url):
        return
    parts = parse_secured_url(document_url)
    if parts is None or parts[0] != client_id:
        raise ValidationFailed("Document must belong to the session's client")


def _sources_of(target: SignatureSessionStatus) -> list[SignatureSessionStatus]:
    """Statuses from which ``target`` may be entered."""
    return [
        state
        for state, allowed in SignatureSessionStatus.valid_transitions().items()
        if target in allowed
    ]


def effective_status(signature_session: SignatureSession, now: datetime) -> SignatureSessionStatus:
    """Status as of ``now``, treating an overdue pending session as expired."""
    status = SignatureSessionStatus(signature_session.status)
    if status == SignatureSessionStatus.PENDING and as_utc(signature_session.expires_at) < now:
        return SignatureSessionStatus.EXPIRED
    return status


async def materialize_expiry(session: AsyncSession, session_id: str, now: datetime) -> bool:
    """Persist the expired state of an overdue pending session.

    Idempotent; returns True only for the call that performed the write.
    """
    result = await session.execute(
        update(SignatureSession)
        .where(
            SignatureSession.id == session_id,
            SignatureSession.status.in_(_sources_of(SignatureSessionStatus.EXPIRED)),
            SignatureSession.expires_at < now,
        )
        .values(status=SignatureSessionStatus.EXPIRED, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    await session.commit()
    expired = result.rowcount == 1
    if expired:
        logger.info("Signature session %s expired", session_id)
    return expired


async def claim_completion(session: AsyncSession, session_id: str, now: datetime) -> bool:
    """Atomically move a live pending session to completed.

    Does not commit; the caller commits together with the verification
    record. Returns False when another request already completed the
    session or it is no longer live.
    """
    result = await session.execute(
        update(SignatureSession)
        .where(
            SignatureSession.id == session_id,
            SignatureSession.status.in_(_sources_of(SignatureSessionStatus.COMPLETED)),
            SignatureSession.expires_at >= now,
        )
        .values(status=SignatureSessionStatus.COMPLETED, completed_at=now, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def get_signature_session(session: AsyncSession, session_id: str) -> SignatureSession | None:
    result = await session.execute(select(SignatureSession).where(SignatureSession.id == session_id))
    return result.scalar_one_or_none()


async def create_signature_session(
    session: AsyncSession,
    user: UserContext,
    client_id: int,
    document_url: str | None = None,
    *,
    now: datetime | None = None,
) -> SignatureSession:
    """Open a pending session for one of the caller's clients.

    Raises:
        ClientNotFound: No such client.
        NotAuthorized: Client belongs to another advisor.
        ValidationFailed: ``document_url`` is a secured file of another client.
    """
    client = await get_owned_client(session, user, client_id)
    _check_document_url(document_url, client.id)
    now = now or utcnow()

    signature_session = SignatureSession(
        id=new_session_id(now),
        token=new_session_token(),
        client_id=client.id,
        created_by=user.user_id,
        document_url=document_url or None,
        status=SignatureSessionStatus.PENDING,
        created_at=now,
        updated_at=now,
        expires_at=now + timedelta(hours=settings.SIGNATURE_SESSION_TTL_HOURS),
    )
    session.add(signature_session)
    await audit.write_client_log(
        session,
        client_id=client.id,
        log_type=audit.SIGNATURE_SESSION_CREATED,
        title="Remote signature session created",
        content=f"Session {signature_session.id}"
        + (f" for document {document_url}" if document_url else ""),
        created_by=user.user_id,
    )
    await session.commit()
    logger.info("Signature session %s created for client %s", signature_session.id, client.id)
    return signature_session


async def get_session_info(
    session: AsyncSession,
    session_id: str,
    token: str | None,
    *,
    now: datetime | None = None,
) -> SessionInfo:
    """Details the capture page shows before the client starts.

    Raises:
        NotFound: Unknown session.
        NotAuthorized: Token does not match.
        SessionExpired: Session is past its expiry (persisted on first notice).
        InvalidState: Session already completed (``already_verified``) or rejected.
    """
    now = now or utcnow()
    signature_session = await get_signature_session(session, session_id)
    if signature_session is None:
        raise NotFound(SESSION_NOT_FOUND)
    if not tokens_match(signature_session.token, token):
        logger.warning("Token mismatch on signature session %s", session_id)
        raise NotAuthorized(INVALID_TOKEN)

    status = effective_status(signature_session, now)
    if status == SignatureSessionStatus.EXPIRED:
        await materialize_expiry(session, session_id, now)
        raise SessionExpired(_STATUS_MESSAGES[SignatureSessionStatus.EXPIRED])
    if status == SignatureSessionStatus.COMPLETED:
        raise InvalidState(_STATUS_MESSAGES[status], already_verified=True)
    if status == SignatureSessionStatus.REJECTED:
        raise InvalidState(_STATUS_MESSAGES[status])

    client = await session.get(Client, signature_session.client_id)
    if client is None:
        raise NotFound("Client not found")
    return SessionInfo(
        client_name=client.full_name,
        client_id=client.id,
        document_url=signature_session.document_url,
    )


async def get_session_status(
    session: AsyncSession,
    session_id: str,
    token: str | None,
    *,
    now: datetime | None = None,
) -> SessionStatus:
    """Poll-friendly status: valid, completed, expired or rejected.

    Raises:
        NotFound: Unknown session.
        NotAuthorized: Token does not match.
    """
    now = now or utcnow()
    signature_session = await get_signature_session(session, session_id)
    if signature_session is None:
        raise NotFound(SESSION_NOT_FOUND)
    if not tokens_match(signature_session.token, token):
        logger.warning("Token mismatch on signature session %s status", session_id)
        raise NotAuthorized(INVALID_TOKEN)

    status = effective_status(signature_session, now)
    if status == SignatureSessionStatus.PENDING:
        return SessionStatus(status="valid", message=_STATUS_MESSAGES["valid"])
    if status == SignatureSessionStatus.EXPIRED:
        if signature_session.status == SignatureSessionStatus.PENDING:
            await materialize_expiry(session, session_id, now)
        return SessionStatus(status=status.value, message=_STATUS_MESSAGES[status])
    if status == SignatureSessionStatus.COMPLETED:
        return SessionStatus(
            status=status.value,
            message=_STATUS_MESSAGES[status],
            completed_at=signature_session.completed_at,
        )
    return SessionStatus(status=status.value, message=_STATUS_MESSAGES[status])
