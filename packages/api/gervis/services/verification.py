# This project was developed with assistance from AI tools.
"""Remote identity verification.

The client's phone uploads two ID images and a selfie against a pending
signature session. On success the captures are stored privately, the
session document (if any) is stamped, a VerifiedDocument is recorded and
the session is completed, all in one transaction gated by the atomic
completion update.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime

from db import Client, SignatureSession, VerifiedDocument
from db.enums import SignatureSessionStatus
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..schemas.auth import UserContext
from . import audit
from .clock import utcnow
from .errors import InvalidState, NotAuthorized, NotFound, SessionExpired, ValidationFailed
from .scope import get_owned_client
from .signature import (
    INVALID_TOKEN,
    SESSION_NOT_FOUND,
    claim_completion,
    effective_status,
    get_signature_session,
    materialize_expiry,
    tokens_match,
)
from .stamper import resolve_document_path, stamp_document
from .storage import get_storage_service

logger = logging.getLogger(__name__)

ALREADY_VERIFIED = "Identity already verified for this session"
MANUAL_PLACEHOLDER_URL = "/api/placeholder-image"
MANUAL_TOKEN = "manual-upload"

_MISSING_TOKEN_VALUES = {"", "undefined", "null"}


@dataclass(frozen=True)
class VerificationOutcome:
    verified_document: VerifiedDocument
    document_url: str | None


def resolve_bearer_token(
    body_token: str | None,
    query_token: str | None,
    authorization: str | None,
) -> str | None:
    """Pick the session token from the form body, the query string, or a Bearer header.

    Mobile browsers are inconsistent about which of these survives, so each
    is tried in turn; blank and ``"undefined"`` values count as absent.
    """
    bearer = None
    if authorization and authorization.startswith("Bearer "):
        bearer = authorization[7:]
    for candidate in (body_token, query_token, bearer):
        if candidate is not None and candidate.strip() not in _MISSING_TOKEN_VALUES:
            return candidate.strip()
    return None


async def _existing_verification(session: AsyncSession, session_id: str) -> VerifiedDocument | None:
    result = await session.execute(
        select(VerifiedDocument).where(VerifiedDocument.session_id == session_id)
    )
    return result.scalar_one_or_none()


def _check_captures(id_front: bytes | None, id_back: bytes | None, selfie: bytes | None) -> None:
    missing = [
        name
        for name, data in (("idFront", id_front), ("idBack", id_back), ("selfie", selfie))
        if not data
    ]
    if missing:
        raise ValidationFailed(
            f"All three images are required (idFront, idBack, selfie); missing: {', '.join(missing)}"
        )
    limit = settings.UPLOAD_MAX_SIZE_MB * 1024 * 1024
    for name, data in (("idFront", id_front), ("idBack", id_back), ("selfie", selfie)):
        if len(data) > limit:
            raise ValidationFailed(f"{name} exceeds {settings.UPLOAD_MAX_SIZE_MB} MB limit")


async def _stamp_session_document(
    document_url: str,
    *,
    client_id: int,
    session_id: str,
    completed_at: datetime,
) -> tuple[str, str | None]:
    """Return (url to record, name of the signed file written, if any).

    Never raises: any failure keeps the original document URL.
    """
    storage = get_storage_service()
    try:
        original = resolve_document_path(document_url, storage, client_id)
        if original is None:
            logger.warning("Session %s document URL not resolvable: %s", session_id, document_url)
            return document_url, None
        result = await stamp_document(
            original,
            output_dir=storage.client_dir(client_id),
            session_id=session_id,
            completed_at=completed_at,
        )
    except Exception:
        logger.exception("Stamping failed for session %s; keeping original document", session_id)
        return document_url, None

    if result is None:
        return document_url, None
    if not result.enriched:
        logger.warning("Session %s document signed without attestation page", session_id)
    name = result.artifact_path.name
    return storage.build_url(client_id, name), name


async def verify_identity(
    session: AsyncSession,
    *,
    session_id: str | None,
    token: str | None,
    id_front: bytes | None,
    id_back: bytes | None,
    selfie: bytes | None,
    now: datetime | None = None,
) -> VerificationOutcome:
    """Accept identity captures for a signature session and complete it.

    Checks run in a fixed order, each with its own error, and nothing is
    written until all of them pass.

    Raises:
        ValidationFailed: Missing session id/token or capture image.
        NotFound: Unknown session or client.
        InvalidState: Session no longer pending (``already_verified`` when completed).
        NotAuthorized: Token does not match.
        SessionExpired: Session past its expiry.
    """
    if not session_id or not token:
        raise ValidationFailed("Session ID and token are required")
    now = now or utcnow()

    signature_session = await get_signature_session(session, session_id)
    if signature_session is None:
        raise NotFound(SESSION_NOT_FOUND)

    stored_status = SignatureSessionStatus(signature_session.status)
    if stored_status == SignatureSessionStatus.COMPLETED:
        raise InvalidState(ALREADY_VERIFIED, already_verified=True)
    if stored_status == SignatureSessionStatus.EXPIRED:
        raise SessionExpired("Session has expired")
    if stored_status in SignatureSessionStatus.terminal_states():
        raise InvalidState(f"Session is {stored_status.value}")

    if not tokens_match(signature_session.token, token):
        logger.warning("Token mismatch on identity verification for session %s", session_id)
        raise NotAuthorized(INVALID_TOKEN)

    if effective_status(signature_session, now) == SignatureSessionStatus.EXPIRED:
        await materialize_expiry(session, session_id, now)
        raise SessionExpired("Session has expired")

    client = await session.get(Client, signature_session.client_id)
    if client is None:
        raise NotFound("Client not found")

    if await _existing_verification(session, session_id) is not None:
        raise InvalidState(ALREADY_VERIFIED, already_verified=True)

    _check_captures(id_front, id_back, selfie)

    storage = get_storage_service()
    stamp = int(now.timestamp() * 1000)
    names = {
        "id_front": f"id_front_{client.id}_{stamp}.jpg",
        "id_back": f"id_back_{client.id}_{stamp}.jpg",
        "selfie": f"selfie_{client.id}_{stamp}.jpg",
    }
    written: list[str] = []
    urls = {}
    for kind, data in (("id_front", id_front), ("id_back", id_back), ("selfie", selfie)):
        urls[kind] = await storage.save_file(client.id, names[kind], data)
        written.append(names[kind])

    document_url = signature_session.document_url
    if document_url:
        document_url, signed_name = await _stamp_session_document(
            document_url,
            client_id=client.id,
            session_id=session_id,
            completed_at=now,
        )
        if signed_name:
            written.append(signed_name)

    client_id = client.id

    async def _abandon() -> None:
        await session.rollback()
        for name in written:
            await storage.delete_file(client_id, name)

    if not await claim_completion(session, session_id, now):
        logger.warning("Session %s was completed concurrently; discarding captures", session_id)
        await _abandon()
        raise InvalidState(ALREADY_VERIFIED, already_verified=True)

    verified = VerifiedDocument(
        client_id=client.id,
        session_id=session_id,
        id_front_url=urls["id_front"],
        id_back_url=urls["id_back"],
        selfie_url=urls["selfie"],
        document_url=document_url,
        token_used=token,
        verification_date=now,
        created_by=signature_session.created_by,
    )
    session.add(verified)
    try:
        await session.flush()
    except IntegrityError:
        logger.warning("Duplicate verification for session %s rejected by constraint", session_id)
        await _abandon()
        raise InvalidState(ALREADY_VERIFIED, already_verified=True) from None

    await audit.write_client_log(
        session,
        client_id=client.id,
        log_type=audit.IDENTITY_VERIFIED,
        title="Identity verified",
        content=f"Remote identity verification completed (session {session_id})",
        created_by=signature_session.created_by,
    )
    await session.commit()
    logger.info("Identity verified for client %s via session %s", client.id, session_id)
    return VerificationOutcome(verified_document=verified, document_url=document_url)


async def list_verified_documents(
    session: AsyncSession,
    user: UserContext,
    client_id: int,
) -> list[VerifiedDocument]:
    """Verification records for one of the caller's clients, newest first."""
    await get_owned_client(session, user, client_id)
    result = await session.execute(
        select(VerifiedDocument)
        .where(VerifiedDocument.client_id == client_id)
        .order_by(VerifiedDocument.verification_date.desc(), VerifiedDocument.id.desc())
    )
    return list(result.scalars().all())


def new_manual_session_id(now: datetime) -> str:
    return f"manual-{int(now.timestamp() * 1000)}-{secrets.token_hex(4)}"


async def record_manual_verification(
    session: AsyncSession,
    user: UserContext,
    *,
    client_id: int,
    session_id: str | None,
    document_url: str,
    now: datetime | None = None,
) -> VerifiedDocument:
    """Record a verification the advisor performed outside the capture flow.

    ``session_id`` may name one of the client's own signature sessions, in
    which case a still-pending session is completed as well. Without it a
    ``manual-*`` id is generated.

    Raises:
        NotFound: ``session_id`` is not a signature session of this client.
        InvalidState: The session already has a verification record.
    """
    client = await get_owned_client(session, user, client_id)
    now = now or utcnow()

    if session_id:
        signature_session = await get_signature_session(session, session_id)
        if signature_session is None or signature_session.client_id != client.id:
            raise NotFound(SESSION_NOT_FOUND)
        if await _existing_verification(session, session_id) is not None:
            raise InvalidState(ALREADY_VERIFIED, already_verified=True)
        if signature_session.status == SignatureSessionStatus.PENDING:
            await claim_completion(session, session_id, now)
    else:
        session_id = new_manual_session_id(now)

    verified = VerifiedDocument(
        client_id=client.id,
        session_id=session_id,
        id_front_url=MANUAL_PLACEHOLDER_URL,
        id_back_url=MANUAL_PLACEHOLDER_URL,
        selfie_url=MANUAL_PLACEHOLDER_URL,
        document_url=document_url,
        token_used=MANUAL_TOKEN,
        verification_date=now,
        created_by=user.user_id,
    )
    session.add(verified)
    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        raise InvalidState(ALREADY_VERIFIED, already_verified=True) from None

    await audit.write_client_log(
        session,
        client_id=client.id,
        log_type=audit.IDENTITY_VERIFIED,
        title="Verified document recorded manually",
        content=document_url,
        created_by=user.user_id,
    )
    await session.commit()
    logger.info("Manual verification recorded for client %s by %s", client.id, user.user_id)
    return verified


async def file_access_granted_by_token(
    session: AsyncSession,
    client_id: int,
    token: str,
    *,
    now: datetime | None = None,
) -> bool:
    """True when ``token`` belongs to a usable signature session of the client.

    Completed sessions keep granting access so the capture page can show
    the signed document; expired ones do not.
    """
    now = now or utcnow()
    result = await session.execute(
        select(SignatureSession).where(SignatureSession.client_id == client_id)
    )
    for candidate in result.scalars().all():
        if not tokens_match(candidate.token, token):
            continue
        status = effective_status(candidate, now)
        return status in (SignatureSessionStatus.PENDING, SignatureSessionStatus.COMPLETED)
    return False
