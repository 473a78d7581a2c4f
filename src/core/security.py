"""Credential hashing and bearer token handling.

``PasswordHasher`` wraps bcrypt for passwords and security answers.
``TokenService`` signs and verifies the JWT bearer tokens that carry an
account's identity and role. Both are built from an explicit
``AuthSettings`` record rather than reading globals.
"""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

import bcrypt
import pytz
from jose import ExpiredSignatureError, JWTError, jwt

from config import AuthSettings
from core.exceptions import AuthError

logger = logging.getLogger(__name__)

# bcrypt silently ignores everything past 72 bytes; truncate explicitly
BCRYPT_MAX_BYTES = 72


class PasswordHasher:
    """One-way hashing and comparison for passwords and security answers."""

    def __init__(self, rounds: int = 12):
        """Initialize the hasher.

        Args:
            rounds: bcrypt cost factor.
        """
        self.rounds = rounds

    @staticmethod
    def _to_bytes(value: str) -> bytes:
        value_bytes = value.encode("utf-8")
        if len(value_bytes) > BCRYPT_MAX_BYTES:
            logger.warning(
                "Secret exceeds %d bytes (%d bytes), truncating",
                BCRYPT_MAX_BYTES,
                len(value_bytes),
            )
            value_bytes = value_bytes[:BCRYPT_MAX_BYTES]
        return value_bytes

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain text password.

        Returns:
            Hashed password (bcrypt hash string).
        """
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(self._to_bytes(password), salt).decode("utf-8")

    def verify_password(self, plain_password: str, hashed_password: Optional[str]) -> bool:
        """Verify a password against a bcrypt hash.

        Args:
            plain_password: Plain text password to verify.
            hashed_password: Stored hash; None for accounts without a local password.

        Returns:
            True if password matches, False otherwise.
        """
        if not hashed_password or plain_password is None:
            return False
        try:
            return bcrypt.checkpw(
                self._to_bytes(plain_password), hashed_password.encode("utf-8")
            )
        except ValueError as e:
            logger.error("Password verification error: %s", e)
            return False

    def hash_security_answer(self, answer: str) -> str:
        """Hash a security answer; answers are compared case-insensitively."""
        return self.hash_password(answer.lower())

    def verify_security_answer(self, answer: str, hashed_answer: Optional[str]) -> bool:
        if answer is None:
            return False
        return self.verify_password(answer.lower(), hashed_answer)


class TokenService:
    """Issues and verifies signed bearer tokens."""

    def __init__(self, settings: AuthSettings):
        self.settings = settings

    def _encode(self, claims: Dict[str, Any], expires_delta: timedelta) -> str:
        to_encode = claims.copy()
        now = datetime.now(pytz.utc)
        to_encode.update({"iat": now, "exp": now + expires_delta})
        return jwt.encode(
            to_encode,
            self.settings.jwt_secret_key,
            algorithm=self.settings.jwt_algorithm,
        )

    def create_access_token(
        self,
        user_id: str,
        role: str,
        username: Optional[str] = None,
        admin_session: bool = False,
    ) -> str:
        """Create a token carrying the account identity and role.

        Args:
            user_id: Account identifier, stored in the ``sub`` claim.
            role: Account role.
            username: Optional username claim.
            admin_session: Use the shorter admin session window.

        Returns:
            Encoded JWT token string.
        """
        claims: Dict[str, Any] = {"sub": user_id, "role": role}
        if username is not None:
            claims["username"] = username
        days = (
            self.settings.admin_token_expire_days
            if admin_session
            else self.settings.access_token_expire_days
        )
        return self._encode(claims, timedelta(days=days))

    def decode_access_token(self, token: str) -> Dict[str, Any]:
        """Verify a token's signature and expiry and return its claims.

        Raises:
            AuthError: If the token is expired, tampered with, or lacks ``sub``.
        """
        try:
            payload = jwt.decode(
                token,
                self.settings.jwt_secret_key,
                algorithms=[self.settings.jwt_algorithm],
            )
        except ExpiredSignatureError:
            logger.info("Rejected expired token")
            raise AuthError()
        except JWTError:
            logger.info("Rejected invalid token")
            raise AuthError()
        if not payload.get("sub") or payload.get("purpose"):
            raise AuthError()
        return payload

    def create_oauth_state(self) -> str:
        """Create a short-lived signed ``state`` value for the OAuth redirect."""
        return self._encode(
            {"purpose": "oauth_state", "nonce": secrets.token_urlsafe(16)},
            timedelta(minutes=self.settings.oauth_state_expire_minutes),
        )

    def verify_oauth_state(self, state: Optional[str]) -> None:
        """Raise AuthError unless ``state`` was issued by ``create_oauth_state``."""
        if not state:
            raise AuthError("Invalid OAuth state")
        try:
            payload = jwt.decode(
                state,
                self.settings.jwt_secret_key,
                algorithms=[self.settings.jwt_algorithm],
            )
        except JWTError:
            raise AuthError("Invalid OAuth state")
        if payload.get("purpose") != "oauth_state":
            raise AuthError("Invalid OAuth state")
