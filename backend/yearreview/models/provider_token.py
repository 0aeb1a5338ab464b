"""
Provider Token Model

Stores provider credentials for the local user.
"""

from datetime import datetime
from sqlalchemy import Column, String, DateTime, Integer, Text

from yearreview.models.base import Base


class ProviderToken(Base):
    """Provider credential storage."""

    __tablename__ = "provider_tokens"

    provider = Column(String(32), primary_key=True)

    # Tokens (should be encrypted in production)
    access_token = Column(Text, nullable=False)
    refresh_token = Column(Text, nullable=True)
    expires_at = Column(Integer, nullable=True)  # Unix timestamp

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<ProviderToken provider={self.provider}>"
