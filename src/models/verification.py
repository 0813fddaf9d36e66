"""Verification model."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from src.database import Base
from src.models.enums import VerificationPurpose
from src.models.mixins import TimestampMixin


class Verification(Base, TimestampMixin):
    """Single-use, time-limited token confirming an action for a user.

    Only the SHA-256 digest of the token is stored. A record is usable while
    ``used_at`` is null and ``expires_at`` lies in the future.
    """

    __tablename__ = "verifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    purpose = Column(String(50), nullable=False, default=VerificationPurpose.EMAIL.value)
    token_hash = Column(String(64), unique=True, nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    user = relationship("User", back_populates="verifications")
