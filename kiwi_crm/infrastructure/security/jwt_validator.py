"""
JWT Validation Module - verifies session tokens issued by the identity provider
"""

from typing import Dict, Optional, Any
import jwt
import structlog

from kiwi_crm.domain.errors import AuthenticationError
from kiwi_crm.domain.models.crm import Identity
from kiwi_crm.infrastructure.config import Settings

logger = structlog.get_logger(__name__)


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Pull the token out of an ``Authorization: Bearer ...`` header"""

    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def verify_token(token: Optional[str], settings: Settings) -> Identity:
    """
    Verify an identity-provider JWT

    Args:
        token: JWT token to verify
        settings: key, algorithms and optional audience/issuer to check

    Returns:
        The caller's identity

    Raises:
        AuthenticationError: If the token is missing, invalid or lacks identity claims
    """

    if not token:
        raise AuthenticationError("Not authenticated")

    options: Dict[str, Any] = {"require": ["sub"]}
    if settings.jwt_audience is None:
        options["verify_aud"] = False

    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=settings.jwt_algorithms,
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
            options=options,
        )
    except jwt.PyJWTError as e:
        logger.info("Token rejected", error=str(e))
        raise AuthenticationError("Not authenticated", detail=str(e)) from e

    email = claims.get("email")
    if not email:
        raise AuthenticationError("User has no email address")

    return Identity(
        subject=claims["sub"],
        email=email,
        name=claims.get("name") or claims.get("given_name"),
    )
