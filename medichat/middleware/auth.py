"""JWT authentication for hospital agents and super admins."""

import os
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import HTTPException, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

logger = logging.getLogger(__name__)
security = HTTPBearer(auto_error=False)

# JWT Configuration
JWT_ALGORITHM = "HS256"
JWT_EXPIRATION_HOURS = 24
JWT_ISSUER = "medichat-backend"

ROLE_ADMIN = "admin"
ROLE_SUPER_ADMIN = "super_admin"


def get_jwt_secret_key() -> str:
    """Get JWT secret key from environment variables."""
    secret_key = os.getenv("JWT_SECRET_KEY")

    if not secret_key:
        logger.warning("⚠️ JWT_SECRET_KEY not set, using fallback (NOT SECURE FOR PRODUCTION)")
        secret_key = "dev-secret-key-CHANGE-IN-PRODUCTION"

    return secret_key


def create_access_token(user_data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Tokens are issued by the hospital admin app; this is used by tooling
    and tests that need a valid agent token.

    Args:
        user_data: Claims to encode (user_id, hospital_id, role, email)
        expires_delta: Optional custom expiration time

    Returns:
        str: Encoded JWT token
    """
    to_encode = user_data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(hours=JWT_EXPIRATION_HOURS))

    to_encode.update({
        "exp": expire,
        "iat": now,
        "iss": JWT_ISSUER,
        "type": "access_token",
    })

    encoded_jwt = jwt.encode(to_encode, get_jwt_secret_key(), algorithm=JWT_ALGORITHM)
    logger.info(f"✅ JWT created for user: {user_data.get('email')} (expires: {expire})")
    return encoded_jwt


def decode_access_token(token: str) -> dict:
    """
    Decode and validate a JWT access token.

    Args:
        token: JWT token string

    Returns:
        dict: Decoded token payload

    Raises:
        HTTPException: If token is invalid or expired
    """
    try:
        payload = jwt.decode(
            token,
            get_jwt_secret_key(),
            algorithms=[JWT_ALGORITHM],
            issuer=JWT_ISSUER,
            options={
                "verify_signature": True,
                "verify_exp": True,
                "require": ["exp", "iat"],
            },
        )
    except jwt.ExpiredSignatureError:
        logger.error("❌ JWT expired")
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError as e:
        logger.error(f"❌ Invalid JWT: {str(e)}")
        raise HTTPException(status_code=401, detail=f"Invalid token: {str(e)}")

    if payload.get("type") != "access_token":
        raise HTTPException(status_code=401, detail="Invalid token type")

    logger.debug(f"✅ JWT validated for user: {payload.get('email')}")
    return payload


def get_agent_from_token(token: str) -> dict:
    """
    Resolve the agent identity carried by a token.

    The tenant is the agent's hospital; a hospital account that has no
    separate hospital claim is its own tenant.
    """
    payload = decode_access_token(token)
    user_id = payload.get("user_id") or payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token: missing user")

    return {
        "user_id": str(user_id),
        "tenant_id": str(payload.get("hospital_id") or user_id),
        "email": payload.get("email"),
        "role": payload.get("role", ROLE_ADMIN),
    }


async def require_agent(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
) -> dict:
    """
    FastAPI dependency requiring a hospital agent token.

    Usage:
        @router.get("/protected")
        async def protected_endpoint(agent: dict = Depends(require_agent)):
            ...
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=401,
            detail="Authentication required. Please provide a valid JWT token in Authorization header.",
        )
    return get_agent_from_token(credentials.credentials)


def is_super_admin(agent: dict) -> bool:
    return agent.get("role") == ROLE_SUPER_ADMIN
