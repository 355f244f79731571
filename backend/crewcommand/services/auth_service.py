"""Authentication service for JWT token management and password hashing"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from uuid import UUID

from jose import JWTError, jwt
import bcrypt

from crewcommand.config import settings

TOKEN_ISSUER = "crewcommand-api"
REFRESH_TOKEN_HOURS = 168


class AuthService:
    """
    Password hashing and bearer credential handling.

    Tokens carry organization and role claims for client convenience only.
    The server always re-reads both from the user's profile.
    """

    @staticmethod
    def hash_password(password: str) -> str:
        """
        Hash a password using bcrypt with 12 salt rounds

        Args:
            password: Plain text password

        Returns:
            Hashed password string
        """
        salt = bcrypt.gensalt(rounds=12)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    @staticmethod
    def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
        """
        Verify a password against its hash

        Profiles created by invitation have no password yet and never verify.
        """
        if not hashed_password:
            return False
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))

    @staticmethod
    def generate_token(
        data: Dict[str, Any],
        expires_delta: Optional[timedelta] = None,
        token_type: str = "access"
    ) -> str:
        """
        Generate a JWT token with the provided data

        Args:
            data: Dictionary of claims to include in the token
            expires_delta: Optional expiration (defaults to jwt_expiration_hours for access, 7 days for refresh)
            token_type: Type of token ('access' or 'refresh')

        Returns:
            Encoded JWT token string
        """
        to_encode = data.copy()

        if expires_delta:
            expire = datetime.now(timezone.utc) + expires_delta
        else:
            hours = settings.jwt_expiration_hours if token_type == "access" else REFRESH_TOKEN_HOURS
            expire = datetime.now(timezone.utc) + timedelta(hours=hours)

        to_encode.update({
            "exp": expire,
            "iat": datetime.now(timezone.utc),
            "iss": TOKEN_ISSUER,
            "type": token_type
        })

        secret = settings.jwt_secret or settings.secret_key
        return jwt.encode(to_encode, secret, algorithm=settings.jwt_algorithm)

    @staticmethod
    def decode_token(token: str) -> Optional[Dict[str, Any]]:
        """Decode a JWT token, returning None when the signature or expiry is invalid"""
        try:
            secret = settings.jwt_secret or settings.secret_key
            return jwt.decode(
                token,
                secret,
                algorithms=[settings.jwt_algorithm],
                issuer=TOKEN_ISSUER,
            )
        except JWTError:
            return None

    @staticmethod
    def validate_token(token: str, token_type: str = "access") -> Optional[Dict[str, Any]]:
        """
        Validate a JWT token including signature, expiration, and type

        Returns:
            Dictionary of token claims if valid, None otherwise
        """
        payload = AuthService.decode_token(token)

        if not payload:
            return None

        if payload.get("type") != token_type:
            return None

        return payload

    @staticmethod
    def user_id_from_payload(payload: Dict[str, Any]) -> Optional[UUID]:
        """Extract the subject as a UUID, or None if it is malformed"""
        try:
            return UUID(str(payload.get("sub")))
        except (TypeError, ValueError):
            return None

    @staticmethod
    def create_access_token(user_id: str, email: str, organization_id: str, role: str) -> str:
        """
        Create an access token for a user

        Args:
            user_id: User profile UUID
            email: User email
            organization_id: Organization UUID (provisional claim)
            role: Base role (provisional claim)

        Returns:
            JWT access token
        """
        data = {
            "sub": user_id,
            "email": email,
            "organization_id": organization_id,
            "role": role
        }
        return AuthService.generate_token(data, token_type="access")

    @staticmethod
    def create_refresh_token(user_id: str) -> str:
        """Create a refresh token for a user"""
        return AuthService.generate_token({"sub": user_id}, token_type="refresh")
