"""Authentication endpoints: login, logout, token check."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel

from api.deps import get_services, require_region, require_token
from errors import CredentialStoreUnavailable, InvalidCredentials, InvalidKey, StorageError
from services import Services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["auth"], dependencies=[Depends(require_region)])


class LoginRequest(BaseModel):
    username: str
    password: str


class LogoutRequest(BaseModel):
    username: str
    token: str


class MessageResponse(BaseModel):
    message: str


@router.post("/verify", response_model=str)
async def login(body: LoginRequest, services: Services = Depends(get_services)):
    """Check username/password and return a fresh session token."""
    try:
        return await run_in_threadpool(services.authenticator.login, body.username, body.password)
    except InvalidCredentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    except CredentialStoreUnavailable:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="No credentials loaded"
        )
    except InvalidKey:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid username")
    except StorageError as e:
        logger.error(f"Login failed to persist token: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to save token"
        )


@router.post("/logout", response_model=MessageResponse)
async def logout(body: LogoutRequest, services: Services = Depends(get_services)):
    """Invalidate the caller's token."""
    await require_token(services, body.username, body.token)
    try:
        await run_in_threadpool(services.authenticator.logout, body.username)
    except StorageError as e:
        logger.error(f"Logout failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to remove token"
        )
    return MessageResponse(message="OK")


@router.get("/user/{username}", response_model=str)
async def get_user_info(
    username: str,
    token: str = Query(""),
    services: Services = Depends(get_services),
):
    """Return "OK" if ``token`` is valid for ``username``."""
    await require_token(services, username, token)
    return "OK"
