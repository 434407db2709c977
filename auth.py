import logging
import secrets
from typing import Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


def _bearer_token(authorization: str) -> Optional[str]:
    # Expect "Bearer <token>"
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def authenticate(request: Request, api_token: str) -> Optional[JSONResponse]:
    """Return a rejection response, or None if the request carries the bearer token."""
    authorization = request.headers.get("authorization")
    if not authorization:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"error": "Missing Authorization header"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = _bearer_token(authorization)
    if token is None or not secrets.compare_digest(token.encode(), api_token.encode()):
        logger.warning("Rejected credentials for %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content={"error": "Invalid token"},
        )
    return None
