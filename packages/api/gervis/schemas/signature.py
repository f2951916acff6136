# This project was developed with assistance from AI tools.
"""Signature session schemas."""

from datetime import datetime

from . import ApiModel


class SignatureSessionCreate(ApiModel):
    client_id: int
    document_url: str | None = None


class SignatureSessionCreated(ApiModel):
    success: bool = True
    session_id: str
    token: str
    expires_at: datetime


class SignatureSessionInfo(ApiModel):
    """What the mobile capture page shows before the client starts."""

    success: bool = True
    session_valid: bool = True
    client_name: str
    client_id: int
    document_url: str | None = None


class SignatureSessionStatusResponse(ApiModel):
    success: bool = True
    status: str
    message: str
    completed_at: datetime | None = None
