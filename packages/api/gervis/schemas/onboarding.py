# This project was developed with assistance from AI tools.
"""Onboarding token and questionnaire schemas."""

from typing import Annotated

from db.enums import (
    AssetCategory,
    ExperienceLevel,
    InvestmentHorizon,
    OnboardingLanguage,
    RiskProfile,
)
from pydantic import Field, StringConstraints, field_validator

from . import ApiModel

RequiredText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

NEUTRAL_INTEREST = 3


class OnboardingTokenRequest(ApiModel):
    """Advisor request to issue (and optionally email) an onboarding link."""

    client_id: int
    language: OnboardingLanguage = OnboardingLanguage.ITALIAN
    custom_message: str | None = None
    custom_subject: str | None = None
    send_email: bool = False


class OnboardingTokenResponse(ApiModel):
    success: bool = True
    token: str
    link: str
    language: OnboardingLanguage
    email_sent: bool
    email_error: str | None = None


class OnboardingClientSummary(ApiModel):
    """What the onboarding page needs to greet the client."""

    client_id: int
    first_name: str
    last_name: str
    email: str | None = None
    is_onboarded: bool
    language: OnboardingLanguage


class AssetItem(ApiModel):
    category: AssetCategory
    value: float = 0
    description: str | None = None

    @field_validator("value", mode="before")
    @classmethod
    def _blank_value_is_zero(cls, v):
        return 0 if v in (None, "") else v


class OnboardingSubmission(ApiModel):
    """Full onboarding questionnaire (personal data, finances, MIFID answers)."""

    # Personal
    address: RequiredText
    phone: RequiredText
    birth_date: RequiredText
    marital_status: RequiredText
    employment_status: RequiredText
    education_level: RequiredText
    tax_code: str | None = None

    # Financial situation
    annual_income: float = Field(default=0, ge=0)
    monthly_expenses: float = Field(default=0, ge=0)
    debts: float = Field(default=0, ge=0)
    dependents: int = Field(default=0, ge=0)
    assets: list[AssetItem] = Field(min_length=1)

    # Objectives (1-5 scale)
    investment_horizon: InvestmentHorizon
    retirement_interest: int = Field(default=NEUTRAL_INTEREST, ge=1, le=5)
    wealth_growth_interest: int = Field(default=NEUTRAL_INTEREST, ge=1, le=5)
    income_generation_interest: int = Field(default=NEUTRAL_INTEREST, ge=1, le=5)
    capital_preservation_interest: int = Field(default=NEUTRAL_INTEREST, ge=1, le=5)
    estate_planning_interest: int = Field(default=NEUTRAL_INTEREST, ge=1, le=5)

    # Knowledge and experience
    investment_experience: ExperienceLevel
    past_investment_experience: list[str] = Field(default_factory=list)
    financial_education: list[str] = Field(default_factory=list)

    # Risk tolerance
    risk_profile: RiskProfile
    portfolio_drop_reaction: RequiredText
    volatility_tolerance: RequiredText

    # Investment habits
    years_of_experience: RequiredText
    investment_frequency: RequiredText
    advisor_usage: RequiredText
    monitoring_time: RequiredText
    specific_questions: str | None = None

    @field_validator("annual_income", "monthly_expenses", "debts", "dependents", mode="before")
    @classmethod
    def _missing_number_is_zero(cls, v):
        return 0 if v in (None, "") else v

    @field_validator(
        "retirement_interest",
        "wealth_growth_interest",
        "income_generation_interest",
        "capital_preservation_interest",
        "estate_planning_interest",
        mode="before",
    )
    @classmethod
    def _falsy_interest_is_neutral(cls, v):
        return v or NEUTRAL_INTEREST

    def held_assets(self) -> list[AssetItem]:
        """Assets worth persisting (value > 0)."""
        return [asset for asset in self.assets if asset.value > 0]


class OnboardingSubmitResponse(ApiModel):
    success: bool = True
    already_onboarded: bool = False
    message: str
