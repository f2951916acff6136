# This project was developed with assistance from AI tools.
"""Alembic migrations apply and roll back cleanly (SQLite file database)."""

from pathlib import Path

import sqlalchemy as sa
from alembic import command
from alembic.config import Config

DB_ROOT = Path(__file__).resolve().parents[1]


def _alembic_config(db_path: Path) -> Config:
    cfg = Config(str(DB_ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(DB_ROOT / "alembic"))
    cfg.set_main_option("sqlalchemy.url", f"sqlite+aiosqlite:///{db_path}")
    return cfg


def _tables(db_path: Path) -> set[str]:
    engine = sa.create_engine(f"sqlite:///{db_path}")
    try:
        return set(sa.inspect(engine).get_table_names())
    finally:
        engine.dispose()


def test_upgrade_then_downgrade(tmp_path):
    db_path = tmp_path / "gervis.db"
    cfg = _alembic_config(db_path)

    command.upgrade(cfg, "head")
    assert {
        "advisors",
        "clients",
        "signature_sessions",
        "verified_documents",
        "onboarding_tokens",
    } <= _tables(db_path)

    command.downgrade(cfg, "base")
    assert _tables(db_path) <= {"alembic_version"}
