"""
Declarative base shared by all models.
"""

from sqlalchemy import Column, DateTime, func
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class CreatedAtMixin:
    """Insertion timestamp assigned by the database, never by the application."""

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
