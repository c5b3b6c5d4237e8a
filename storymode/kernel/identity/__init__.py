"""
Identity - verification of access tokens issued by the hosted auth platform.
"""

from storymode.kernel.identity.jwt import (
    AccessTokenPayload,
    TokenVerifier,
    verify_access_token,
)

__all__ = [
    "AccessTokenPayload",
    "TokenVerifier",
    "verify_access_token",
]
