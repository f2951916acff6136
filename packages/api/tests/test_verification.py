# This project was developed with assistance from AI tools.
"""Tests for the identity verification service."""

import io
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, patch

import pytest
from db import ClientLog, SignatureSession, VerifiedDocument
from db.enums import SignatureSessionStatus
from fastapi import UploadFile
from sqlalchemy import select

from gervis.core.config import settings
from gervis.routes.verification import _read_capture
from gervis.services import signature as signature_service
from gervis.services import verification as verification_service
from gervis.services.errors import (
    InvalidState,
    NotAuthorized,
    NotFound,
    SessionExpired,
    ValidationFailed,
)
from gervis.services.verification import resolve_bearer_token

NOW = datetime(2026, 3, 2, 11, 0, tzinfo=UTC)
IMAGE = b"\xff\xd8\xff\xe0" + b"\x01" * 64


async def _open_session(db_session, user, client_id=42, document_url=None):
    return await signature_service.create_signature_session(
        db_session, user, client_id, document_url, now=NOW
    )


async def _verify(db_session, signature_session, *, token=None, now=NOW, **captures):
    images = {"id_front": IMAGE, "id_back": IMAGE, "selfie": IMAGE}
    images.update(captures)
    return await verification_service.verify_identity(
        db_session,
        session_id=signature_session.id,
        token=signature_session.token if token is None else token,
        now=now,
        **images,
    )


async def _verified_rows(db_session):
    return (await db_session.execute(select(VerifiedDocument))).scalars().all()


def _stored_files(storage, client_id=42):
    directory = storage.client_dir(client_id)
    return sorted(p.name for p in directory.iterdir()) if directory.exists() else []


# ---------------------------------------------------------------------------
# Token extraction
# ---------------------------------------------------------------------------


def test_body_token_preferred():
    assert resolve_bearer_token("body", "query", "Bearer header") == "body"


def test_query_token_when_body_missing():
    assert resolve_bearer_token(None, "query", "Bearer header") == "query"


def test_bearer_header_fallback():
    assert resolve_bearer_token("undefined", "null", "Bearer header") == "header"


def test_no_usable_token():
    assert resolve_bearer_token("", None, "Basic abc") is None


# ---------------------------------------------------------------------------
# verify_identity: success
# ---------------------------------------------------------------------------


async def test_verify_completes_session(db_session, seeded, storage, advisor):
    signature_session = await _open_session(db_session, advisor)

    outcome = await _verify(db_session, signature_session)

    stamp = int(NOW.timestamp() * 1000)
    document = outcome.verified_document
    assert document.id_front_url == f"/api/secured-files/42/id_front_42_{stamp}.jpg"
    assert document.id_back_url == f"/api/secured-files/42/id_back_42_{stamp}.jpg"
    assert document.selfie_url == f"/api/secured-files/42/selfie_42_{stamp}.jpg"
    assert document.created_by == "advisor-rossi"
    assert outcome.document_url is None

    await db_session.refresh(signature_session)
    assert signature_session.status == SignatureSessionStatus.COMPLETED
    assert signature_session.completed_at is not None
    assert (storage.client_dir(42) / f"selfie_42_{stamp}.jpg").read_bytes() == IMAGE

    log_types = (
        await db_session.execute(select(ClientLog.log_type).where(ClientLog.client_id == 42))
    ).scalars().all()
    assert "IDENTITY_VERIFIED" in log_types


async def test_unresolvable_document_keeps_original_url(db_session, seeded, storage, advisor):
    signature_session = await _open_session(db_session, advisor, document_url="/docs/missing.pdf")

    outcome = await _verify(db_session, signature_session)

    assert outcome.document_url == "/docs/missing.pdf"
    assert outcome.verified_document.document_url == "/docs/missing.pdf"


# ---------------------------------------------------------------------------
# verify_identity: check order and rejections
# ---------------------------------------------------------------------------


async def test_missing_ids_rejected(db_session, seeded, storage):
    with pytest.raises(ValidationFailed):
        await verification_service.verify_identity(
            db_session, session_id="", token="t", id_front=IMAGE, id_back=IMAGE, selfie=IMAGE
        )


async def test_unknown_session(db_session, seeded, storage):
    with pytest.raises(NotFound):
        await verification_service.verify_identity(
            db_session, session_id="sig-0-00000000", token="t", id_front=IMAGE, id_back=IMAGE, selfie=IMAGE
        )


async def test_wrong_token_writes_nothing(db_session, seeded, storage, advisor):
    signature_session = await _open_session(db_session, advisor)

    with pytest.raises(NotAuthorized):
        await _verify(db_session, signature_session, token="f" * 64)

    assert _stored_files(storage) == []
    assert await _verified_rows(db_session) == []


async def test_completed_reported_before_token_check(db_session, seeded, storage, advisor):
    signature_session = await _open_session(db_session, advisor)
    await _verify(db_session, signature_session)
    await db_session.refresh(signature_session)

    with pytest.raises(InvalidState) as exc_info:
        await _verify(db_session, signature_session, token="wrong")
    assert exc_info.value.already_verified is True


async def test_overdue_session_expires(db_session, seeded, storage, advisor):
    signature_session = await _open_session(db_session, advisor)

    with pytest.raises(SessionExpired):
        await _verify(db_session, signature_session, now=NOW + timedelta(hours=25))

    await db_session.refresh(signature_session)
    assert signature_session.status == SignatureSessionStatus.EXPIRED
    assert _stored_files(storage) == []


async def test_missing_capture_rejected(db_session, seeded, storage, advisor):
    signature_session = await _open_session(db_session, advisor)

    with pytest.raises(ValidationFailed, match="idBack"):
        await _verify(db_session, signature_session, id_back=b"")

    await db_session.refresh(signature_session)
    assert signature_session.status == SignatureSessionStatus.PENDING
    assert _stored_files(storage) == []


async def test_oversized_capture_rejected(db_session, seeded, storage, advisor, monkeypatch):
    monkeypatch.setattr(settings, "UPLOAD_MAX_SIZE_MB", 0)
    signature_session = await _open_session(db_session, advisor)

    with pytest.raises(ValidationFailed, match="exceeds"):
        await _verify(db_session, signature_session)
    assert _stored_files(storage) == []


async def test_capture_read_stops_past_limit(monkeypatch):
    monkeypatch.setattr(settings, "UPLOAD_MAX_SIZE_MB", 1)
    limit = 1024 * 1024
    upload = UploadFile(file=io.BytesIO(b"\x01" * (limit * 3)), filename="front.jpg")

    data = await _read_capture(upload)

    assert len(data) == limit + 1
    assert upload.file.tell() == limit + 1


async def test_capture_read_returns_whole_small_file():
    upload = UploadFile(file=io.BytesIO(IMAGE), filename="front.jpg")
    assert await _read_capture(upload) == IMAGE


async def test_concurrent_completion_loser_cleans_up(db_session, seeded, storage, advisor):
    """If another request completes the session first, captures are discarded."""
    signature_session = await _open_session(db_session, advisor)

    with patch.object(verification_service, "claim_completion", AsyncMock(return_value=False)):
        with pytest.raises(InvalidState) as exc_info:
            await _verify(db_session, signature_session)

    assert exc_info.value.already_verified is True
    assert _stored_files(storage) == []
    assert await _verified_rows(db_session) == []


# ---------------------------------------------------------------------------
# Listing and manual records
# ---------------------------------------------------------------------------


async def test_list_newest_first(db_session, seeded, storage, advisor):
    first = await _open_session(db_session, advisor)
    await _verify(db_session, first)
    second = await _open_session(db_session, advisor)
    await _verify(db_session, second, now=NOW + timedelta(minutes=5))

    documents = await verification_service.list_verified_documents(db_session, advisor, 42)

    assert [d.session_id for d in documents] == [second.id, first.id]


async def test_list_for_foreign_client_rejected(db_session, seeded, other_advisor):
    with pytest.raises(NotAuthorized):
        await verification_service.list_verified_documents(db_session, other_advisor, 42)


async def test_manual_verification_generates_session_id(db_session, seeded, advisor):
    document = await verification_service.record_manual_verification(
        db_session, advisor, client_id=42, session_id=None, document_url="/docs/signed.pdf", now=NOW
    )

    assert document.id is not None
    assert document.session_id.startswith(f"manual-{int(NOW.timestamp() * 1000)}-")
    assert document.token_used == "manual-upload"
    assert document.id_front_url == "/api/placeholder-image"


async def test_manual_verification_completes_own_session(db_session, seeded, advisor):
    signature_session = await _open_session(db_session, advisor)

    await verification_service.record_manual_verification(
        db_session,
        advisor,
        client_id=42,
        session_id=signature_session.id,
        document_url="/docs/signed.pdf",
        now=NOW,
    )
    await db_session.refresh(signature_session)
    assert signature_session.status == SignatureSessionStatus.COMPLETED

    with pytest.raises(InvalidState):
        await verification_service.record_manual_verification(
            db_session,
            advisor,
            client_id=42,
            session_id=signature_session.id,
            document_url="/docs/signed.pdf",
        )


async def test_manual_verification_cannot_claim_foreign_session(
    db_session, seeded, storage, advisor, other_advisor
):
    foreign = await _open_session(db_session, other_advisor, client_id=7)

    with pytest.raises(NotFound):
        await verification_service.record_manual_verification(
            db_session, advisor, client_id=42, session_id=foreign.id, document_url="/docs/x.pdf", now=NOW
        )

    outcome = await _verify(db_session, foreign)
    assert outcome.verified_document.session_id == foreign.id


# ---------------------------------------------------------------------------
# Token-based file access
# ---------------------------------------------------------------------------


async def test_file_access_by_live_token(db_session, seeded, advisor):
    signature_session = await _open_session(db_session, advisor)

    assert await verification_service.file_access_granted_by_token(
        db_session, 42, signature_session.token, now=NOW
    )
    assert not await verification_service.file_access_granted_by_token(
        db_session, 7, signature_session.token, now=NOW
    )
    assert not await verification_service.file_access_granted_by_token(db_session, 42, "nope", now=NOW)


async def test_file_access_denied_after_expiry(db_session, seeded, advisor):
    signature_session = await _open_session(db_session, advisor)

    assert not await verification_service.file_access_granted_by_token(
        db_session, 42, signature_session.token, now=NOW + timedelta(hours=25)
    )


async def test_file_access_kept_after_completion(db_session, seeded, storage, advisor):
    signature_session = await _open_session(db_session, advisor)
    await _verify(db_session, signature_session)

    stored = await db_session.get(SignatureSession, signature_session.id)
    assert await verification_service.file_access_granted_by_token(
        db_session, 42, stored.token, now=NOW + timedelta(days=3)
    )
