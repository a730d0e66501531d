"""Database models and operations."""

from .models import (
    LOST,
    PENDING,
    TERMINAL_RESULTS,
    VOID,
    WON,
    BankrollEntry,
    Base,
    DailyPick,
    DailyPickSet,
    UserStreak,
)
from .session import get_engine, get_session, init_db, reset_engine

__all__ = [
    "LOST",
    "PENDING",
    "TERMINAL_RESULTS",
    "VOID",
    "WON",
    "BankrollEntry",
    "Base",
    "DailyPick",
    "DailyPickSet",
    "UserStreak",
    "get_engine",
    "get_session",
    "init_db",
    "reset_engine",
]
