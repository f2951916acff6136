# This project was developed with assistance from AI tools.
"""create onboarding and signature tables

Revision ID: 3a1f9c2e7b10
Revises:
Create Date: 2026-10-12 09:41:12.318204

"""

import sqlalchemy as sa
from alembic import op

revision = "3a1f9c2e7b10"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "advisors",
        sa.Column("id", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=True),
        sa.Column("last_name", sa.String(100), nullable=True),
        sa.Column("company", sa.String(255), nullable=True),
        sa.Column("signature", sa.Text(), nullable=True),
        sa.Column("smtp_host", sa.String(255), nullable=True),
        sa.Column("smtp_port", sa.Integer(), nullable=True),
        sa.Column("smtp_user", sa.String(255), nullable=True),
        sa.Column("smtp_password", sa.String(255), nullable=True),
        sa.Column("smtp_from", sa.String(255), nullable=True),
        sa.Column("smtp_use_ssl", sa.Boolean(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_index("ix_advisors_email", "advisors", ["email"])

    op.create_table(
        "clients",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("advisor_id", sa.String(255), nullable=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("tax_code", sa.String(50), nullable=True),
        sa.Column("birth_date", sa.String(20), nullable=True),
        sa.Column("marital_status", sa.String(50), nullable=True),
        sa.Column("employment_status", sa.String(50), nullable=True),
        sa.Column("education_level", sa.String(50), nullable=True),
        sa.Column("risk_profile", sa.String(12), nullable=True),
        sa.Column("investment_experience", sa.String(12), nullable=True),
        sa.Column("investment_horizon", sa.String(11), nullable=True),
        sa.Column("annual_income", sa.Float(), nullable=True),
        sa.Column("monthly_expenses", sa.Float(), nullable=True),
        sa.Column("debts", sa.Float(), nullable=True),
        sa.Column("dependents", sa.Integer(), nullable=True),
        sa.Column("retirement_interest", sa.Integer(), nullable=True),
        sa.Column("wealth_growth_interest", sa.Integer(), nullable=True),
        sa.Column("income_generation_interest", sa.Integer(), nullable=True),
        sa.Column("capital_preservation_interest", sa.Integer(), nullable=True),
        sa.Column("estate_planning_interest", sa.Integer(), nullable=True),
        sa.Column("total_assets", sa.Float(), nullable=True),
        sa.Column("net_worth", sa.Float(), nullable=True),
        sa.Column("client_segment", sa.String(11), nullable=True),
        sa.Column("is_onboarded", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("onboarded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["advisor_id"], ["advisors.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_clients_advisor_id", "clients", ["advisor_id"])
    op.create_index("ix_clients_email", "clients", ["email"])

    op.create_table(
        "assets",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("client_id", sa.Integer(), nullable=False),
        sa.Column("category", sa.String(16), nullable=False),
        sa.Column("value", sa.Float(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["client_id"], ["clients.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_assets_client_id", "assets", ["client_id"])

    op.create_table(
        "mifid_profiles",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("client_id", sa.Integer(), nullable=False),
        sa.Column("address", sa.Text(), nullable=False),
        sa.Column("phone", sa.String(50), nullable=False),
        sa.Column("birth_date", sa.String(20), nullable=False),
        sa.Column("marital_status", sa.String(50), nullable=False),
        sa.Column("employment_status", sa.String(50), nullable=False),
        sa.Column("education_level", sa.String(50), nullable=False),
        sa.Column("annual_income", sa.Float(), nullable=False),
        sa.Column("monthly_expenses", sa.Float(), nullable=False),
        sa.Column("debts", sa.Float(), nullable=False),
        sa.Column("dependents", sa.Integer(), nullable=False),
        sa.Column("assets", sa.JSON(), nullable=False),
        sa.Column("investment_horizon", sa.String(50), nullable=False),
        sa.Column("retirement_interest", sa.Integer(), nullable=False),
        sa.Column("wealth_growth_interest", sa.Integer(), nullable=False),
        sa.Column("income_generation_interest", sa.Integer(), nullable=False),
        sa.Column("capital_preservation_interest", sa.Integer(), nullable=False),
        sa.Column("estate_planning_interest", sa.Integer(), nullable=False),
        sa.Column("investment_experience", sa.String(50), nullable=False),
        sa.Column("past_investment_experience", sa.JSON(), nullable=False),
        sa.Column("financial_education", sa.JSON(), nullable=False),
        sa.Column("risk_profile", sa.String(50), nullable=False),
        sa.Column("portfolio_drop_reaction", sa.String(100), nullable=False),
        sa.Column("volatility_tolerance", sa.String(100), nullable=False),
        sa.Column("years_of_experience", sa.String(50), nullable=False),
        sa.Column("investment_frequency", sa.String(50), nullable=False),
        sa.Column("advisor_usage", sa.String(50), nullable=False),
        sa.Column("monitoring_time", sa.String(50), nullable=False),
        sa.Column("specific_questions", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["client_id"], ["clients.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_mifid_profiles_client_id", "mifid_profiles", ["client_id"])

    op.create_table(
        "onboarding_tokens",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("token", sa.String(64), nullable=False),
        sa.Column("client_id", sa.Integer(), nullable=False),
        sa.Column("advisor_id", sa.String(255), nullable=False),
        sa.Column("language", sa.String(7), nullable=False, server_default="italian"),
        sa.Column("custom_message", sa.Text(), nullable=True),
        sa.Column("custom_subject", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("consumed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["client_id"], ["clients.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_onboarding_tokens_token", "onboarding_tokens", ["token"], unique=True)
    op.create_index("ix_onboarding_tokens_client_id", "onboarding_tokens", ["client_id"])

    op.create_table(
        "signature_sessions",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("token", sa.String(128), nullable=False),
        sa.Column("client_id", sa.Integer(), nullable=False),
        sa.Column("created_by", sa.String(255), nullable=False),
        sa.Column("document_url", sa.Text(), nullable=True),
        sa.Column("status", sa.String(9), nullable=False, server_default="pending"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["client_id"], ["clients.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_signature_sessions_client_id", "signature_sessions", ["client_id"])

    op.create_table(
        "verified_documents",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("client_id", sa.Integer(), nullable=False),
        sa.Column("session_id", sa.String(64), nullable=False),
        sa.Column("id_front_url", sa.Text(), nullable=False),
        sa.Column("id_back_url", sa.Text(), nullable=False),
        sa.Column("selfie_url", sa.Text(), nullable=False),
        sa.Column("document_url", sa.Text(), nullable=True),
        sa.Column("token_used", sa.String(128), nullable=False),
        sa.Column("verification_date", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("created_by", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["client_id"], ["clients.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("session_id", name="uq_verified_documents_session"),
    )
    op.create_index("ix_verified_documents_client_id", "verified_documents", ["client_id"])

    op.create_table(
        "client_logs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("client_id", sa.Integer(), nullable=False),
        sa.Column("log_type", sa.String(50), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("log_date", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("created_by", sa.String(255), nullable=True),
        sa.ForeignKeyConstraint(["client_id"], ["clients.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_client_logs_client_id", "client_logs", ["client_id"])
    op.create_index("ix_client_logs_log_type", "client_logs", ["log_type"])


def downgrade() -> None:
    op.drop_table("client_logs")
    op.drop_table("verified_documents")
    op.drop_table("signature_sessions")
    op.drop_table("onboarding_tokens")
    op.drop_table("mifid_profiles")
    op.drop_table("assets")
    op.drop_table("clients")
    op.drop_index("ix_advisors_email", table_name="advisors")
    op.drop_table("advisors")
