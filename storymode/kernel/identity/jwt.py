"""
Access token verification.

Accounts, passwords and token issuance belong to the hosted auth platform.
This service only checks the signature and expiry of the bearer token and
reads the learner id from its ``sub`` claim.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from pydantic import BaseModel

from storymode.config import get_settings
from storymode.logging_config import get_logger

logger = get_logger(__name__)


class AccessTokenPayload(BaseModel):
    """Claims the story service relies on."""

    sub: uuid.UUID  # learner id
    email: Optional[str] = None
    role: Optional[str] = None
    exp: datetime


class TokenVerifier:
    """Verifies (and, for local tooling and tests, mints) HS256 access tokens."""

    def __init__(
        self,
        secret_key: Optional[str] = None,
        algorithm: Optional[str] = None,
        audience: Optional[str] = None,
    ):
        settings = get_settings()
        self.secret_key = secret_key or settings.jwt_secret
        self.algorithm = algorithm or settings.jwt_algorithm
        self.audience = audience if audience is not None else settings.jwt_audience

    def verify(self, token: str) -> Optional[AccessTokenPayload]:
        """
        Decode and validate an access token.

        Returns:
            AccessTokenPayload if the token is valid, None otherwise
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                audience=self.audience,
                options={"verify_aud": self.audience is not None},
            )
            return AccessTokenPayload(
                sub=uuid.UUID(str(payload["sub"])),
                email=payload.get("email"),
                role=payload.get("role"),
                exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            )
        except (JWTError, KeyError, ValueError) as e:
            logger.debug("Rejected access token: %s", e)
            return None

    def issue(
        self,
        user_id: uuid.UUID,
        email: Optional[str] = None,
        expires_delta: timedelta = timedelta(hours=1),
    ) -> str:
        """Mint a token shaped like the platform's (dev tooling and tests only)."""
        now = datetime.now(timezone.utc)
        claims = {
            "sub": str(user_id),
            "email": email,
            "role": "authenticated",
            "iat": now,
            "exp": now + expires_delta,
        }
        if self.audience is not None:
            claims["aud"] = self.audience
        return jwt.encode(claims, self.secret_key, algorithm=self.algorithm)


def verify_access_token(token: str) -> Optional[AccessTokenPayload]:
    """Verify an access token with the configured secret."""
    return TokenVerifier().verify(token)
