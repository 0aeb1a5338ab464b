"""
Database Models

Import all models here to ensure they are registered with SQLAlchemy.
"""

from yearreview.models.base import Base
from yearreview.models.provider_token import ProviderToken

__all__ = ["Base", "ProviderToken"]
