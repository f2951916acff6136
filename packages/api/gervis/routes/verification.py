# This project was developed with assistance from AI tools.
"""Identity verification uploads, verified-document records, and secured file access."""

import logging

from db import get_db
from db.enums import UserRole
from fastapi import APIRouter, Depends, File, Form, Header, HTTPException, Query, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..middleware.auth import CurrentUser, OptionalUser, require_roles
from ..schemas.verification import (
    ManualVerificationRequest,
    ManualVerificationResponse,
    VerifiedDocumentListResponse,
    VerifiedDocumentResponse,
    VerifyIdentityResponse,
)
from ..services import verification as verification_service
from ..services.errors import NotAuthorized
from ..services.scope import client_belongs_to_advisor
from ..services.storage import get_storage_service

logger = logging.getLogger(__name__)

router = APIRouter()

_ADVISOR_ROLES = (UserRole.ADVISOR, UserRole.ADMIN)
_READ_CHUNK_BYTES = 1024 * 1024

_NO_STORE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, private",
    "Pragma": "no-cache",
    "Expires": "0",
}


async def _read_capture(upload: UploadFile | None) -> bytes | None:
    """Read at most one byte past the upload limit; the service rejects anything longer."""
    if upload is None:
        return None
    limit = settings.UPLOAD_MAX_SIZE_MB * 1024 * 1024
    data = bytearray()
    while len(data) <= limit:
        chunk = await upload.read(min(_READ_CHUNK_BYTES, limit + 1 - len(data)))
        if not chunk:
            break
        data.extend(chunk)
    return bytes(data)


@router.post("/verify-identity", response_model=VerifyIdentityResponse)
async def verify_identity(
    session_id: str | None = Form(default=None, alias="sessionId"),
    body_token: str | None = Form(default=None, alias="token"),
    id_front: UploadFile | None = File(default=None, alias="idFront"),
    id_back: UploadFile | None = File(default=None, alias="idBack"),
    selfie: UploadFile | None = File(default=None, alias="selfie"),
    query_token: str | None = Query(default=None, alias="token"),
    authorization: str | None = Header(default=None),
    session: AsyncSession = Depends(get_db),
) -> VerifyIdentityResponse:
    """Upload ID front/back and a selfie to complete a signature session."""
    token = verification_service.resolve_bearer_token(body_token, query_token, authorization)
    outcome = await verification_service.verify_identity(
        session,
        session_id=session_id,
        token=token,
        id_front=await _read_capture(id_front),
        id_back=await _read_capture(id_back),
        selfie=await _read_capture(selfie),
    )
    return VerifyIdentityResponse(document_url=outcome.document_url)


@router.get(
    "/verified-documents/{client_id}",
    response_model=VerifiedDocumentListResponse,
    dependencies=[Depends(require_roles(*_ADVISOR_ROLES))],
)
async def list_verified_documents(
    client_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> VerifiedDocumentListResponse:
    documents = await verification_service.list_verified_documents(session, user, client_id)
    return VerifiedDocumentListResponse(
        documents=[VerifiedDocumentResponse.model_validate(doc) for doc in documents],
    )


@router.post(
    "/verified-documents/manual",
    response_model=ManualVerificationResponse,
    status_code=201,
    dependencies=[Depends(require_roles(*_ADVISOR_ROLES))],
)
async def record_manual_verification(
    body: ManualVerificationRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ManualVerificationResponse:
    """Record a verification the advisor carried out in person."""
    document = await verification_service.record_manual_verification(
        session,
        user,
        client_id=body.client_id,
        session_id=body.session_id,
        document_url=body.document_url,
    )
    return ManualVerificationResponse(document_id=document.id)


@router.get("/secured-files/{client_id}/{file_name}")
async def get_secured_file(
    client_id: int,
    file_name: str,
    user: OptionalUser,
    token: str | None = Query(default=None),
    session: AsyncSession = Depends(get_db),
) -> FileResponse:
    """Serve a private client file to its advisor, an admin, or a session-token holder."""
    allowed = False
    if user is not None:
        allowed = user.data_scope.all_clients or await client_belongs_to_advisor(
            session, client_id, user.user_id
        )
    if not allowed and token:
        allowed = await verification_service.file_access_granted_by_token(session, client_id, token)
    if not allowed:
        logger.warning("Secured file access denied: client=%s file=%s", client_id, file_name)
        raise NotAuthorized("Not authorized to access this file")

    storage = get_storage_service()
    path = storage.resolve(client_id, file_name)
    if path is None or not await storage.exists(path):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")

    return FileResponse(
        path,
        media_type=storage.content_type_for(path.name),
        headers=_NO_STORE_HEADERS,
    )
