"""FastAPI dependencies shared by the routers."""

import logging

from fastapi import Depends, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool

from errors import AccessDenied
from services import Services

logger = logging.getLogger(__name__)


def get_services(request: Request) -> Services:
    return request.app.state.services


def source_address(request: Request, services: Services) -> str:
    """Client address from the forwarding header, else the socket peer.

    The header value is taken verbatim: no proxy-chain parsing.
    """
    forwarded = request.headers.get(services.settings.forwarded_for_header)
    if forwarded:
        return forwarded.strip()
    if request.client is not None:
        return request.client.host
    return ""


async def require_region(request: Request, services: Services = Depends(get_services)) -> None:
    """Reject the request with 403 unless its source region is allowed."""
    try:
        services.gate.enforce(source_address(request, services))
    except AccessDenied as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))


async def require_token(services: Services, username: str, token: str) -> None:
    """Raise 401 unless ``token`` is the live token for ``username``."""
    valid = await run_in_threadpool(services.authenticator.verify, username, token)
    if not valid:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not found token")
