import secrets
from concurrent.futures import Executor
from typing import Callable

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from loguru import logger

from catalog_api.config import Settings

TokenVerifier = Callable[[str], bool]

bearer_scheme = HTTPBearer(auto_error=False)


def static_token_verifier(expected_token: str | None) -> TokenVerifier:
    """Accept exactly one configured token. With none configured, accept nothing."""

    def verify(token: str) -> bool:
        if not expected_token:
            return False
        return secrets.compare_digest(token.encode("utf-8"), expected_token.encode("utf-8"))

    return verify


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_transcode_executor(request: Request) -> Executor:
    return request.app.state.transcode_executor


async def require_authenticated_caller(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    if credentials is None:
        logger.warning("Auth rejected path={} reason=missing_header", request.url.path)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid authorization header",
        )

    verifier: TokenVerifier = request.app.state.token_verifier
    if not verifier(credentials.credentials):
        logger.warning("Auth rejected path={} reason=invalid_token", request.url.path)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
    return credentials.credentials
