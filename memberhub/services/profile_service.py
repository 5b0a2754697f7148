"""
Profile Service

Local profiles for accounts held by the hosted auth provider.
Email is the join key between purchases and accounts.
"""
import re
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from memberhub.models.profile import Profile, ProfileRole


DEFAULT_USERNAME = "user"


def derive_username(email: str) -> str:
    """
    Derive a username from the email local-part.

    Lower-cased with every non-alphanumeric character removed.
    """
    local_part = email.split("@")[0].lower()
    return re.sub(r"[^a-z0-9]", "", local_part) or DEFAULT_USERNAME


class ProfileService:
    """Service for managing member profiles."""
    
    def __init__(self, db: AsyncSession):
        self.db = db
    
    async def get_by_email(self, email: str) -> Profile | None:
        """
        Get profile by email.
        
        Args:
            email: Member email address (normalized to lower case)
            
        Returns:
            Profile or None if not found
        """
        stmt = select(Profile).where(Profile.email == email.lower())
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def username_taken(self, username: str) -> bool:
        stmt = select(Profile.id).where(Profile.username == username)
        result = await self.db.execute(stmt)
        return result.first() is not None

    async def available_username(self, email: str) -> str:
        """
        Derived username, suffixed with a counter if already taken.

        alice, alice2, alice3, ...
        """
        base = derive_username(email)
        candidate = base
        suffix = 1
        while await self.username_taken(candidate):
            suffix += 1
            candidate = f"{base}{suffix}"
        return candidate
    
    async def create(
        self,
        user_id: str,
        email: str,
        full_name: str | None,
        username: str | None = None,
        role: ProfileRole = ProfileRole.USER
    ) -> Profile:
        """
        Create the profile for a newly provisioned account.
        
        Args:
            user_id: Auth provider user id (becomes the profile id)
            email: Member email address
            full_name: Display name
            username: Username (derived from email if omitted)
            role: Profile role (default: USER)
            
        Returns:
            Newly created Profile

        Raises:
            IntegrityError: email or username already used by another profile
        """
        profile = Profile(
            id=user_id,
            email=email.lower(),
            username=username or await self.available_username(email),
            full_name=full_name,
            role=role
        )
        self.db.add(profile)
        await self.db.commit()
        await self.db.refresh(profile)
        return profile
