# This project was developed with assistance from AI tools.
"""Identity verification schemas."""

from datetime import datetime

from pydantic import Field

from . import ApiModel


class VerifyIdentityResponse(ApiModel):
    success: bool = True
    message: str = "Identity verified successfully"
    document_url: str | None = None


class VerifiedDocumentResponse(ApiModel):
    id: int
    client_id: int
    session_id: str
    id_front_url: str
    id_back_url: str
    selfie_url: str
    document_url: str | None = None
    verification_date: datetime
    created_by: str


class VerifiedDocumentListResponse(ApiModel):
    success: bool = True
    documents: list[VerifiedDocumentResponse] = Field(default_factory=list)


class ManualVerificationRequest(ApiModel):
    """Advisor-recorded verification done outside the mobile capture flow."""

    client_id: int
    session_id: str | None = None
    document_url: str


class ManualVerificationResponse(ApiModel):
    success: bool = True
    message: str = "Document verification recorded"
    document_id: int
