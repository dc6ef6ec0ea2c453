import logging

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .security_utils import verify_jwt_token

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_token_claims(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> dict:
    """Decode the bearer token; 401 when missing, malformed or expired"""
    if not credentials:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
        )

    claims = verify_jwt_token(credentials.credentials)
    if claims is None:
        raise HTTPException(
            status_code=401,
            detail="Token is invalid or has expired. Please sign in again.",
            headers={"X-Token-Expired": "true"},
        )
    return claims


def require_admin(claims: dict = Depends(get_token_claims)) -> dict:
    if claims.get("role") != "admin":
        logger.warning("⚠️ Non-admin token used on an admin route")
        raise HTTPException(status_code=403, detail="Admin access required")
    return claims


def get_current_user_claims(claims: dict = Depends(get_token_claims)) -> dict:
    if claims.get("role") != "user" or not claims.get("email"):
        raise HTTPException(status_code=403, detail="User session required")
    return claims
