# This project was developed with assistance from AI tools.
"""
Gervis -- domain models

Advisor/client records plus the onboarding, signature-session and
identity-verification workflow tables.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from .database import Base
from .enums import (
    AssetCategory,
    ClientSegment,
    ExperienceLevel,
    InvestmentHorizon,
    OnboardingLanguage,
    RiskProfile,
    SignatureSessionStatus,
)


def _values(enum_cls):
    return [member.value for member in enum_cls]


class Advisor(Base):
    """Advisor profile linked to the identity-provider subject."""

    __tablename__ = "advisors"

    id = Column(String(255), primary_key=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    company = Column(String(255), nullable=True)
    signature = Column(Text, nullable=True)
    smtp_host = Column(String(255), nullable=True)
    smtp_port = Column(Integer, nullable=True)
    smtp_user = Column(String(255), nullable=True)
    smtp_password = Column(String(255), nullable=True)
    smtp_from = Column(String(255), nullable=True)
    smtp_use_ssl = Column(Boolean, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    clients = relationship("Client", back_populates="advisor")

    def __repr__(self):
        return f"<Advisor(id='{self.id}', email='{self.email}')>"


class Client(Base):
    """Advisor's client. Profile fields are filled in by the onboarding form."""

    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, autoincrement=True)
    advisor_id = Column(
        String(255), ForeignKey("advisors.id", ondelete="SET NULL"), nullable=True, index=True,
    )
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True, index=True)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    tax_code = Column(String(50), nullable=True)
    birth_date = Column(String(20), nullable=True)
    marital_status = Column(String(50), nullable=True)
    employment_status = Column(String(50), nullable=True)
    education_level = Column(String(50), nullable=True)
    risk_profile = Column(
        Enum(RiskProfile, name="risk_profile", native_enum=False, values_callable=_values),
        nullable=True,
    )
    investment_experience = Column(
        Enum(ExperienceLevel, name="experience_level", native_enum=False, values_callable=_values),
        nullable=True,
    )
    investment_horizon = Column(
        Enum(InvestmentHorizon, name="investment_horizon", native_enum=False, values_callable=_values),
        nullable=True,
    )
    annual_income = Column(Float, nullable=True)
    monthly_expenses = Column(Float, nullable=True)
    debts = Column(Float, nullable=True)
    dependents = Column(Integer, nullable=True)
    retirement_interest = Column(Integer, nullable=True)
    wealth_growth_interest = Column(Integer, nullable=True)
    income_generation_interest = Column(Integer, nullable=True)
    capital_preservation_interest = Column(Integer, nullable=True)
    estate_planning_interest = Column(Integer, nullable=True)
    total_assets = Column(Float, nullable=True)
    net_worth = Column(Float, nullable=True)
    client_segment = Column(
        Enum(ClientSegment, name="client_segment", native_enum=False, values_callable=_values),
        nullable=True,
    )
    is_onboarded = Column(Boolean, nullable=False, default=False)
    onboarded_at = Column(DateTime(timezone=True), nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    advisor = relationship("Advisor", back_populates="clients")
    assets = relationship("Asset", back_populates="client", cascade="all, delete-orphan")
    logs = relationship("ClientLog", back_populates="client", cascade="all, delete-orphan")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self):
        return f"<Client(id={self.id}, name='{self.first_name} {self.last_name}')>"


class Asset(Base):
    """Asset holding declared by a client."""

    __tablename__ = "assets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    client_id = Column(
        Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    category = Column(
        Enum(AssetCategory, name="asset_category", native_enum=False, values_callable=_values),
        nullable=False,
    )
    value = Column(Float, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    client = relationship("Client", back_populates="assets")

    def __repr__(self):
        return f"<Asset(client_id={self.client_id}, category='{self.category}', value={self.value})>"


class MifidProfile(Base):
    """MIFID questionnaire answers captured at onboarding."""

    __tablename__ = "mifid_profiles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    client_id = Column(
        Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    # Personal
    address = Column(Text, nullable=False)
    phone = Column(String(50), nullable=False)
    birth_date = Column(String(20), nullable=False)
    marital_status = Column(String(50), nullable=False)
    employment_status = Column(String(50), nullable=False)
    education_level = Column(String(50), nullable=False)
    # Financial situation
    annual_income = Column(Float, nullable=False, default=0)
    monthly_expenses = Column(Float, nullable=False, default=0)
    debts = Column(Float, nullable=False, default=0)
    dependents = Column(Integer, nullable=False, default=0)
    assets = Column(JSON, nullable=False, default=list)
    # Objectives
    investment_horizon = Column(String(50), nullable=False)
    retirement_interest = Column(Integer, nullable=False)
    wealth_growth_interest = Column(Integer, nullable=False)
    income_generation_interest = Column(Integer, nullable=False)
    capital_preservation_interest = Column(Integer, nullable=False)
    estate_planning_interest = Column(Integer, nullable=False)
    # Knowledge and experience
    investment_experience = Column(String(50), nullable=False)
    past_investment_experience = Column(JSON, nullable=False, default=list)
    financial_education = Column(JSON, nullable=False, default=list)
    # Risk
    risk_profile = Column(String(50), nullable=False)
    portfolio_drop_reaction = Column(String(100), nullable=False)
    volatility_tolerance = Column(String(100), nullable=False)
    # Investment habits
    years_of_experience = Column(String(50), nullable=False)
    investment_frequency = Column(String(50), nullable=False)
    advisor_usage = Column(String(50), nullable=False)
    monitoring_time = Column(String(50), nullable=False)
    specific_questions = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<MifidProfile(id={self.id}, client_id={self.client_id})>"


class OnboardingToken(Base):
    """Single-use credential that lets a client fill in the onboarding form."""

    __tablename__ = "onboarding_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    token = Column(String(64), nullable=False, unique=True, index=True)
    client_id = Column(
        Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    advisor_id = Column(String(255), nullable=False)
    language = Column(
        Enum(OnboardingLanguage, name="onboarding_language", native_enum=False, values_callable=_values),
        nullable=False,
        default=OnboardingLanguage.ITALIAN,
    )
    custom_message = Column(Text, nullable=True)
    custom_subject = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    consumed_at = Column(DateTime(timezone=True), nullable=True)
    revoked_at = Column(DateTime(timezone=True), nullable=True)

    client = relationship("Client")

    def __repr__(self):
        return f"<OnboardingToken(id={self.id}, client_id={self.client_id})>"


class SignatureSession(Base):
    """Time-limited remote identity-verification session for a client."""

    __tablename__ = "signature_sessions"

    id = Column(String(64), primary_key=True)
    token = Column(String(128), nullable=False)
    client_id = Column(
        Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    created_by = Column(String(255), nullable=False)
    document_url = Column(Text, nullable=True)
    status = Column(
        Enum(SignatureSessionStatus, name="signature_session_status", native_enum=False, values_callable=_values),
        nullable=False,
        default=SignatureSessionStatus.PENDING,
    )
    expires_at = Column(DateTime(timezone=True), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    client = relationship("Client")

    def __repr__(self):
        return f"<SignatureSession(id='{self.id}', status='{self.status}')>"


class VerifiedDocument(Base):
    """Evidence that a client verified identity through a session. Never updated."""

    __tablename__ = "verified_documents"
    __table_args__ = (
        UniqueConstraint("session_id", name="uq_verified_documents_session"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    client_id = Column(
        Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    session_id = Column(String(64), nullable=False)
    id_front_url = Column(Text, nullable=False)
    id_back_url = Column(Text, nullable=False)
    selfie_url = Column(Text, nullable=False)
    document_url = Column(Text, nullable=True)
    token_used = Column(String(128), nullable=False)
    verification_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    created_by = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<VerifiedDocument(id={self.id}, session_id='{self.session_id}')>"


class ClientLog(Base):
    """Interaction log entry shown on the client's timeline."""

    __tablename__ = "client_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    client_id = Column(
        Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    log_type = Column(String(50), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=True)
    log_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    created_by = Column(String(255), nullable=True)

    client = relationship("Client", back_populates="logs")

    def __repr__(self):
        return f"<ClientLog(client_id={self.client_id}, type='{self.log_type}')>"
