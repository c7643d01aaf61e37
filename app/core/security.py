# core/security.py
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from app.core.config import settings
from app.core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


class JWTManager:
    """JWT verification for identities issued by the platform's auth service"""

    def __init__(self):
        self.secret_key = settings.jwt_secret
        self.algorithm = settings.jwt_algorithm
        self.issuer = settings.jwt_issuer

    def create_access_token(
        self,
        user_id: int,
        role: str = "student",
        expires_delta: Optional[timedelta] = None,
    ) -> str:
        """
        Create JWT access token for a user.

        Token issuance belongs to the platform's auth service; this exists so
        local tooling and tests can mint tokens with the same claims.

        Args:
            user_id: User primary key
            role: User role (student, mentor, admin)
            expires_delta: Override default lifetime of one day

        Returns:
            JWT access token string
        """
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(days=1))

        payload = {
            "sub": str(user_id),
            "user_id": user_id,
            "role": role,
            "exp": int(expire.timestamp()),
            "iat": int(now.timestamp()),
            "iss": self.issuer,
            "type": "access",
        }

        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: str, token_type: str = "access") -> Dict[str, Any]:
        """
        Verify and decode JWT token
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"verify_exp": True},
            )
        except JWTError as e:
            logger.warning(f"JWT verification failed: {e}")
            raise AuthenticationError("Invalid or expired token")

        # Verify token type (check 'type' field, not 'role')
        if payload.get("type") != token_type:
            raise AuthenticationError(f"Invalid token type. Expected {token_type}")

        if payload.get("iss") != self.issuer:
            raise AuthenticationError("Invalid token issuer")

        return payload


# Global instance
jwt_manager = JWTManager()
