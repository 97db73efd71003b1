"""Access token issuing and verification.

Callers identify themselves with an HS256-signed JWT carrying the user's
primary key in ``sub`` and the granted capability set in ``scopes``. The
service only verifies tokens; ``create_access_token`` exists for operators
and tests that need to mint one.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import jwt
from jwt import InvalidTokenError
from loguru import logger

from src.core.config import AuthConfig
from src.core.constants import TOKEN_SCOPES_CLAIM
from src.core.exceptions import UnauthorizedError


@dataclass(frozen=True, slots=True)
class TokenClaims:
    """Identity extracted from a verified access token."""

    user_id: int
    scopes: frozenset[str] = field(default_factory=frozenset)


def create_access_token(
    user_id: int,
    scopes: Iterable[str] = (),
    *,
    auth_config: AuthConfig,
    expires_delta: timedelta | None = None,
) -> str:
    """Sign an access token for ``user_id`` with the given scopes.

    Args:
        user_id: Primary key of the user the token identifies.
        scopes: Capability set granted to the bearer.
        auth_config: Signing key, algorithm and default lifetime.
        expires_delta: Token lifetime; defaults to the configured lifetime.

    Returns:
        str: Encoded JWT.
    """
    lifetime = expires_delta or timedelta(
        minutes=auth_config.access_token_expire_minutes
    )
    now = datetime.now(UTC)
    payload = {
        "sub": str(user_id),
        TOKEN_SCOPES_CLAIM: sorted(set(scopes)),
        "iat": now,
        "exp": now + lifetime,
    }
    return jwt.encode(payload, auth_config.secret_key, algorithm=auth_config.algorithm)


def decode_access_token(token: str, auth_config: AuthConfig) -> TokenClaims:
    """Verify ``token`` and return the identity it carries.

    Args:
        token: Encoded JWT from the Authorization header.
        auth_config: Verification key and accepted algorithm.

    Returns:
        TokenClaims: User id and scopes from the token.

    Raises:
        UnauthorizedError: If the signature, expiry or claims are invalid.
    """
    try:
        payload = jwt.decode(
            token,
            auth_config.secret_key,
            algorithms=[auth_config.algorithm],
            options={"require": ["sub", "exp"]},
        )
    except InvalidTokenError as e:
        logger.debug("Access token rejected: {}", type(e).__name__)
        raise UnauthorizedError("Could not validate credentials", cause=e) from e

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError) as e:
        raise UnauthorizedError("Invalid token subject", cause=e) from e

    raw_scopes = payload.get(TOKEN_SCOPES_CLAIM) or []
    if isinstance(raw_scopes, str):
        # Space-delimited form (RFC 8693 "scope")
        raw_scopes = raw_scopes.split()
    if not isinstance(raw_scopes, list):
        raise UnauthorizedError("Invalid token scopes")

    return TokenClaims(user_id=user_id, scopes=frozenset(str(s) for s in raw_scopes))
