"""
JWT token service for the admin API.
"""
from datetime import datetime, timedelta, timezone
from jose import JWTError, jwt
from memberhub.config import settings


class JWTService:
    """Service for creating and verifying JWT tokens."""
    
    def create_token(self, user_id: str, role: str, email: str) -> str:
        """
        Create a JWT token with user context.
        
        Args:
            user_id: Profile id
            role: Profile role (admin or user)
            email: User's email
            
        Returns:
            Encoded JWT token string
        """
        expires = datetime.now(timezone.utc) + timedelta(minutes=settings.JWT_EXPIRATION_MINUTES)
        
        payload = {
            "sub": user_id,
            "role": role,
            "email": email,
            "exp": expires
        }
        
        return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    
    def verify_token(self, token: str) -> dict | None:
        """
        Verify and decode a JWT token.
        
        Args:
            token: JWT token string
            
        Returns:
            Decoded payload dict or None if invalid
        """
        try:
            payload = jwt.decode(
                token, 
                settings.JWT_SECRET_KEY, 
                algorithms=[settings.JWT_ALGORITHM]
            )
            return payload
        except JWTError:
            return None
