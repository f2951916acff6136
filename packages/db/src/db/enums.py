# This project was developed with assistance from AI tools.
"""
Domain enums for client onboarding and signature verification.

Shared domain types used by both SQLAlchemy models (db package)
and Pydantic schemas (api package).
"""

import enum


class SignatureSessionStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    EXPIRED = "expired"
    # Reserved; no operation currently produces it.
    REJECTED = "rejected"

    @classmethod
    def terminal_states(cls) -> frozenset["SignatureSessionStatus"]:
        """States a session never leaves."""
        return frozenset({cls.COMPLETED, cls.EXPIRED, cls.REJECTED})

    @classmethod
    def valid_transitions(cls) -> dict["SignatureSessionStatus", frozenset["SignatureSessionStatus"]]:
        """Allowed status transitions for a signature session."""
        return {
            cls.PENDING: frozenset({cls.COMPLETED, cls.EXPIRED, cls.REJECTED}),
            cls.COMPLETED: frozenset(),
            cls.EXPIRED: frozenset(),
            cls.REJECTED: frozenset(),
        }


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    ADVISOR = "advisor"


class OnboardingLanguage(str, enum.Enum):
    ENGLISH = "english"
    ITALIAN = "italian"


class AssetCategory(str, enum.Enum):
    REAL_ESTATE = "real_estate"
    EQUITY = "equity"
    BONDS = "bonds"
    CASH = "cash"
    PRIVATE_EQUITY = "private_equity"
    VENTURE_CAPITAL = "venture_capital"
    CRYPTOCURRENCIES = "cryptocurrencies"
    OTHER = "other"


class RiskProfile(str, enum.Enum):
    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    BALANCED = "balanced"
    GROWTH = "growth"
    AGGRESSIVE = "aggressive"


class ExperienceLevel(str, enum.Enum):
    NONE = "none"
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"


class InvestmentHorizon(str, enum.Enum):
    SHORT_TERM = "short_term"
    MEDIUM_TERM = "medium_term"
    LONG_TERM = "long_term"


class ClientSegment(str, enum.Enum):
    MASS_MARKET = "mass_market"
    AFFLUENT = "affluent"
    HNW = "hnw"
    VHNW = "vhnw"
    UHNW = "uhnw"

    @classmethod
    def for_net_worth(cls, net_worth: float) -> "ClientSegment":
        """Wealth band for a client's net worth."""
        if net_worth >= 1_000_000:
            return cls.UHNW
        if net_worth >= 500_000:
            return cls.VHNW
        if net_worth >= 250_000:
            return cls.HNW
        if net_worth >= 100_000:
            return cls.AFFLUENT
        return cls.MASS_MARKET
