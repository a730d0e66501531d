"""Database models for the football insights engine."""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    DateTime,
    Float,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

PENDING = "pending"
WON = "won"
LOST = "lost"
VOID = "void"

TERMINAL_RESULTS = (WON, LOST, VOID)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    pass


class DailyPick(Base):
    """A published daily pick with its fixture metadata snapshotted."""

    __tablename__ = "daily_picks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    pick_date: Mapped[str] = mapped_column(String(10), nullable=False, index=True)  # UTC YYYY-MM-DD
    match_id: Mapped[int] = mapped_column(Integer, nullable=False)
    market: Mapped[str] = mapped_column(String(50), nullable=False)
    pick: Mapped[str] = mapped_column(String(200), nullable=False)
    selection: Mapped[Optional[dict]] = mapped_column(JSON)
    confidence: Mapped[int] = mapped_column(Integer, nullable=False)
    confidence_tier: Mapped[str] = mapped_column(String(10), nullable=False)  # Low/Mid/High
    odds: Mapped[float] = mapped_column(Float, nullable=False)
    reasoning: Mapped[Optional[str]] = mapped_column(Text)

    # Fixture snapshot at publication time
    home_team: Mapped[str] = mapped_column(String(100), nullable=False)
    away_team: Mapped[str] = mapped_column(String(100), nullable=False)
    competition: Mapped[str] = mapped_column(String(100), nullable=False)
    match_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    result: Mapped[str] = mapped_column(String(10), default=PENDING, nullable=False)
    settled_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)

    __table_args__ = (UniqueConstraint("pick_date", "match_id"),)

    @property
    def match_label(self) -> str:
        return f"{self.home_team} vs {self.away_team}"


class DailyPickSet(Base):
    """Marks a pick date as published; at most one row per UTC date."""

    __tablename__ = "daily_pick_sets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    pick_date: Mapped[str] = mapped_column(String(10), nullable=False, unique=True)
    pick_count: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)


class BankrollEntry(Base):
    """A logged pick awaiting (or after) settlement."""

    __tablename__ = "bankroll_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    match_id: Mapped[Optional[int]] = mapped_column(Integer)
    match_label: Mapped[str] = mapped_column(String(200), nullable=False)
    home_team: Mapped[Optional[str]] = mapped_column(String(100))
    away_team: Mapped[Optional[str]] = mapped_column(String(100))
    market: Mapped[str] = mapped_column(String(50), nullable=False)
    pick: Mapped[str] = mapped_column(String(200), nullable=False)
    selection: Mapped[Optional[dict]] = mapped_column(JSON)
    stake: Mapped[float] = mapped_column(Float, default=0.0)
    odds: Mapped[Optional[float]] = mapped_column(Float)  # None when logged unpriced
    confidence: Mapped[Optional[int]] = mapped_column(Integer)
    match_date: Mapped[Optional[datetime]] = mapped_column(DateTime)
    result: Mapped[str] = mapped_column(String(10), default=PENDING, nullable=False, index=True)
    payout: Mapped[Optional[float]] = mapped_column(Float, default=0.0)  # None: won but unpriced
    settled_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)


class UserStreak(Base):
    """Running win/loss streak over settled daily picks."""

    __tablename__ = "user_streaks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    current_streak: Mapped[int] = mapped_column(Integer, default=0)  # +wins / -losses
    longest_win_streak: Mapped[int] = mapped_column(Integer, default=0)
    longest_loss_streak: Mapped[int] = mapped_column(Integer, default=0)
    last_result: Mapped[str] = mapped_column(String(10), default="")
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, onupdate=_utcnow)
