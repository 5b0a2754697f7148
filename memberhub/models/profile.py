"""
Profile model.

Local profile for an account held by the hosted auth provider. The profile
id is the provider's user id; email is the join key with purchases.
"""
import enum
from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column
from memberhub.models.base import Base, TimestampMixin, enum_column


class ProfileRole(str, enum.Enum):
    """Profile role enum for role-based access control."""
    ADMIN = "admin"
    USER = "user"


class Profile(Base, TimestampMixin):
    """
    Community member profile.

    Exactly one profile per email, enforced by a unique constraint.
    """
    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    username: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[ProfileRole] = mapped_column(
        enum_column(ProfileRole),
        nullable=False,
        default=ProfileRole.USER
    )

    def __repr__(self):
        return f"<Profile(id={self.id}, email={self.email}, role={self.role})>"
