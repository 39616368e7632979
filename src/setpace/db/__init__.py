"""Database layer for setpace."""

from .engine import get_db_path, init_db
from .repositories import PlanRepository, SessionRepository

__all__ = [
    "get_db_path",
    "init_db",
    "PlanRepository",
    "SessionRepository",
]
