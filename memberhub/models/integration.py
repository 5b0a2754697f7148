"""
Integration settings model.

Singleton switch controlling whether payment webhooks are processed.
"""
import uuid
from sqlalchemy import String, Boolean
from sqlalchemy.orm import Mapped, mapped_column
from memberhub.models.base import Base, TimestampMixin


class IntegrationSettings(Base, TimestampMixin):
    """
    Payment provider integration settings.

    Only one row is expected. The pipeline reads it; the admin routes write it.
    """
    __tablename__ = "integration_settings"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    shared_secret: Mapped[str | None] = mapped_column(String(255), nullable=True)

    def __repr__(self):
        return f"<IntegrationSettings(id={self.id}, is_active={self.is_active})>"
