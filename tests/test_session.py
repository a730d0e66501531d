"""Tests for engine and session management."""

import pytest
from sqlalchemy import select, text

from football_insights.database import BankrollEntry, get_engine, get_session, init_db
from football_insights.database.session import build_engine


class TestBuildEngine:
    """SQLite connection tuning."""

    def test_file_database_uses_wal(self, tmp_path):
        engine = build_engine(f"sqlite:///{tmp_path / 'wal.db'}")
        with engine.connect() as conn:
            assert conn.execute(text("PRAGMA journal_mode")).scalar() == "wal"
            assert conn.execute(text("PRAGMA busy_timeout")).scalar() == 5000
        engine.dispose()

    def test_memory_database_shared_across_connections(self):
        engine = build_engine("sqlite:///:memory:")
        with engine.begin() as conn:
            conn.execute(text("CREATE TABLE probe (id INTEGER)"))
        with engine.connect() as conn:
            assert conn.execute(text("SELECT count(*) FROM probe")).scalar() == 0
        engine.dispose()


class TestGetSession:
    """Unit-of-work behaviour."""

    def test_commit_on_success(self, db):
        with get_session() as session:
            session.add(BankrollEntry(match_label="Arsenal vs Chelsea", market="1X2", pick="Arsenal Win",
                                      stake=10.0, odds=2.0))

        with get_session() as session:
            entry = session.scalars(select(BankrollEntry)).one()
        assert entry.pick == "Arsenal Win"

    def test_rollback_on_error(self, db):
        with pytest.raises(RuntimeError):
            with get_session() as session:
                session.add(BankrollEntry(match_label="Arsenal vs Chelsea", market="1X2", pick="Draw",
                                          stake=5.0, odds=3.4))
                session.flush()
                raise RuntimeError("boom")

        with get_session() as session:
            assert session.scalars(select(BankrollEntry)).all() == []

    def test_engine_cached(self):
        init_db()
        assert get_engine() is get_engine()
