"""
User model for storefront accounts and dashboard access.

Customers and administrators share one table; the ``role`` column decides
which dashboard permissions a user holds.
"""

from sqlalchemy import Boolean, Column, String

from app.models.base import Base, UUIDMixin, TimestampMixin, ModelMixin


class User(Base, UUIDMixin, TimestampMixin, ModelMixin):
    """
    Registered user.

    Attributes:
        id: UUID primary key (from UUIDMixin)
        name: Display name
        email: Unique login email (stored lowercase)
        hashed_password: Bcrypt-hashed password (never store plaintext)
        role: "user" or "admin"
        image: Optional avatar URL
        email_verified: Whether the verification link was followed
        banned: Banned users cannot log in
        created_at: Timestamp when user was created (from TimestampMixin)
        updated_at: Timestamp when user was last updated (from TimestampMixin)

    Security considerations:
        - Never log or expose hashed_password
        - to_dict() omits hashed_password
    """

    __tablename__ = "users"
    __private_columns__ = frozenset({"hashed_password"})

    name = Column(
        String(255),
        nullable=False,
        doc="Display name"
    )

    email = Column(
        String(320),
        nullable=False,
        unique=True,
        index=True,
        doc="Unique login email"
    )

    hashed_password = Column(
        String,
        nullable=False,
        doc="Bcrypt-hashed password (never store plaintext)"
    )

    role = Column(
        String(32),
        nullable=False,
        default="user",
        doc="Role name: user or admin"
    )

    image = Column(
        String,
        nullable=True,
        doc="Avatar URL"
    )

    email_verified = Column(
        Boolean,
        nullable=False,
        default=False,
    )

    banned = Column(
        Boolean,
        nullable=False,
        default=False,
    )

    def public_dict(self) -> dict:
        """Fields safe to return from the user listing endpoints."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "image": self.image,
            "created_at": self.created_at,
        }

    def __repr__(self) -> str:
        return f"User(id={self.id!r}, email={self.email!r}, role={self.role!r})"
