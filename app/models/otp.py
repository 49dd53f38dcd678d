"""OTPVerification: short-lived login codes keyed by email."""
from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.sql import func

from app.db.base import Base


class OTPVerification(Base):
    """
    Holds the bcrypt hash of a one-time login code sent to an email address.

    Lifecycle
    ---------
    1. Code requested   → row inserted (is_used=False); older unused rows for
       the same email are marked used, so only the newest one is active.
    2. Code entered     → each attempt bumps verification_attempts; a correct
       code flips is_used=True and a token is issued.
    3. Expired rows and rows past the attempt ceiling are flipped to
       is_used=True the next time someone tries them.
    """

    __tablename__ = "otp_verifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, index=True)
    otp_hash = Column(String(255), nullable=False)

    expires_at = Column(DateTime, nullable=False, index=True)
    is_used = Column(Boolean, default=False, nullable=False, index=True)
    verification_attempts = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return (
            f"<OTPVerification(id={self.id}, email={self.email!r}, "
            f"expires_at={self.expires_at}, is_used={self.is_used}, "
            f"attempts={self.verification_attempts})>"
        )
