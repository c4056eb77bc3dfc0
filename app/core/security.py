import logging
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import jwt
from jwt import InvalidTokenError
from app.core.config import settings
from typing import Optional

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

ANONYMOUS_CALLER = "anonymous"


def decode_token(token: str) -> dict:
    options = {
        "verify_aud": settings.EXPECTED_JWT_AUDIENCE is not None,
        "verify_iss": settings.EXPECTED_JWT_ISSUER is not None,
    }
    return jwt.decode(
        token,
        settings.JWT_PUBLIC_KEY,
        algorithms=[settings.JWT_ALGORITHM],
        audience=settings.EXPECTED_JWT_AUDIENCE,
        issuer=settings.EXPECTED_JWT_ISSUER,
        options=options,
    )


def get_current_caller(credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)) -> str:
    """
    Returns the ``sub`` claim of the bearer token.
    Authentication is disabled while JWT_PUBLIC_KEY is empty.
    """
    if not settings.JWT_PUBLIC_KEY:
        return ANONYMOUS_CALLER
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token.")
    try:
        payload = decode_token(credentials.credentials)
    except InvalidTokenError as e:
        logger.warning(f"Rejected token: {e}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token.")
    caller = payload.get("sub")
    if not caller:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid token: missing sub.")
    return caller
