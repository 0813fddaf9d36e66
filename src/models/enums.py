"""Enums for model fields."""

from enum import Enum


class Priority(str, Enum):
    """Todo priority levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class VerificationPurpose(str, Enum):
    """What a verification token confirms."""

    EMAIL = "email_verification"
