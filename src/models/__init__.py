"""SQLAlchemy models."""

from src.models.session import UserSession
from src.models.todo import Todo
from src.models.user import User
from src.models.verification import Verification

__all__ = [
    "User",
    "UserSession",
    "Verification",
    "Todo",
]
