"""
Bearer token helpers.
Access tokens are HS256 JWTs carrying the account id, email and role.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from stayhub.config import settings
from stayhub.models.account import AccountRole
import uuid

ACCESS_TOKEN_TYPE = "access"
REQUIRED_CLAIMS = ("sub", "email", "exp")


@dataclass
class TokenPayload:
    """Claims of a verified access token."""

    user_id: str
    email: str
    role: Optional[str]
    exp: datetime

    @classmethod
    def from_dict(cls, claims: Dict[str, Any]) -> "TokenPayload":
        return cls(
            user_id=claims["sub"],
            email=claims["email"],
            role=claims.get("role"),
            exp=datetime.fromtimestamp(claims["exp"], tz=timezone.utc)
        )

    @property
    def account_id(self) -> uuid.UUID:
        return uuid.UUID(self.user_id)


def create_access_token(
    user_id: uuid.UUID,
    email: str,
    role: AccountRole,
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Sign an access token for an account.

    Args:
        user_id: Account id, stored as the subject
        email: Account email, used to attribute reviews
        role: Account role at issue time
        expires_delta: Lifetime override; settings.access_token_expire_minutes otherwise
    """
    issued_at = datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)

    claims = {
        "sub": str(user_id),
        "email": email,
        "role": role.value,
        "iat": issued_at,
        "exp": issued_at + lifetime,
        "type": ACCESS_TOKEN_TYPE,
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def verify_token(token: str, token_type: str = ACCESS_TOKEN_TYPE) -> TokenPayload:
    """
    Check the signature, expiry and claims of a token.

    Raises:
        ExpiredSignatureError: The token is past its exp claim
        JWTError: Bad signature, wrong type or missing claims
    """
    claims = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])

    if claims.get("type") != token_type:
        raise JWTError(f"Expected a {token_type} token")

    missing = [name for name in REQUIRED_CLAIMS if not claims.get(name)]
    if missing:
        raise JWTError(f"Token is missing claims: {', '.join(missing)}")

    try:
        uuid.UUID(claims["sub"])
    except ValueError:
        raise JWTError("Subject is not an account id")

    return TokenPayload.from_dict(claims)
