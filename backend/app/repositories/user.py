"""
User repository for account CRUD operations.

Provides data access for the User model: lookups for authentication,
listings for the admin dashboard and role changes.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User


class UserRepository:
    """
    Repository for user data access.

    Attributes:
        session: SQLAlchemy async session for database operations
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: str) -> Optional[User]:
        stmt = select(User).where(User.id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[User]:
        """
        Retrieve a user by email (case-insensitive).

        Args:
            email: Login email

        Returns:
            User instance if found, None otherwise
        """
        stmt = select(User).where(User.email == email.strip().lower())
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def email_exists(self, email: str) -> bool:
        return await self.get_by_email(email) is not None

    async def list_users(self) -> list[User]:
        """Get all users, oldest first."""
        stmt = select(User).order_by(User.created_at)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create_user(
        self,
        name: str,
        email: str,
        hashed_password: str,
        role: str = "user",
        image: Optional[str] = None,
    ) -> User:
        """
        Create a new user.

        Args:
            name: Display name
            email: Login email (stored lowercase, must be unique)
            hashed_password: Bcrypt hash of the password
            role: Role name ("user" or "admin")
            image: Optional avatar URL

        Returns:
            Created User instance

        Raises:
            ValueError: If the email is already registered
        """
        if await self.email_exists(email):
            raise ValueError(f"User with email '{email}' already exists")

        user = User(
            name=name,
            email=email.strip().lower(),
            hashed_password=hashed_password,
            role=role,
            image=image,
        )
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def update_role(self, user_id: str, role: str) -> Optional[User]:
        """
        Change a user's role.

        Returns:
            Updated User, or None if the user does not exist
        """
        user = await self.get_by_id(user_id)
        if user is None:
            return None
        user.role = role
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def mark_email_verified(self, user_id: str) -> Optional[User]:
        user = await self.get_by_id(user_id)
        if user is None:
            return None
        user.email_verified = True
        await self.session.flush()
        return user

    async def set_password(self, user_id: str, hashed_password: str) -> Optional[User]:
        user = await self.get_by_id(user_id)
        if user is None:
            return None
        user.hashed_password = hashed_password
        await self.session.flush()
        return user
