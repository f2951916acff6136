# This project was developed with assistance from AI tools.
__version__ = "0.1.0"

from .database import Base, DatabaseService, get_db, get_db_service
from .enums import (
    AssetCategory,
    ClientSegment,
    ExperienceLevel,
    InvestmentHorizon,
    OnboardingLanguage,
    RiskProfile,
    SignatureSessionStatus,
    UserRole,
)
from .models import (
    Advisor,
    Asset,
    Client,
    ClientLog,
    MifidProfile,
    OnboardingToken,
    SignatureSession,
    VerifiedDocument,
)

__all__ = [
    "Base",
    "DatabaseService",
    "get_db",
    "get_db_service",
    "__version__",
    # Enums
    "AssetCategory",
    "ClientSegment",
    "ExperienceLevel",
    "InvestmentHorizon",
    "OnboardingLanguage",
    "RiskProfile",
    "SignatureSessionStatus",
    "UserRole",
    # Models
    "Advisor",
    "Asset",
    "Client",
    "ClientLog",
    "MifidProfile",
    "OnboardingToken",
    "SignatureSession",
    "VerifiedDocument",
]
