"""Tab document endpoints.

POST /api/user/{username}/tabs     Replace the stored tabs (snapshotting the old ones)
GET  /api/user/{username}/tabs     Fetch the stored tabs
GET  /api/user/{username}/history  List snapshot timestamps
"""

import logging
import time

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, ValidationError

from api.deps import get_services, require_region, require_token
from errors import DocumentNotFound, InvalidKey, StorageError
from models.tabs import Tabs, UpdateResponse, dump_tab_groups, load_tab_groups
from services import Services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/user", tags=["tabs"], dependencies=[Depends(require_region)])


class HistoryResponse(BaseModel):
    snapshots: list[int]


@router.post("/{username}/tabs", response_model=UpdateResponse)
async def update_tabs(username: str, body: Tabs, services: Services = Depends(get_services)):
    """Store the user's tabs. The previous document is kept as a snapshot."""
    await require_token(services, username, body.token)

    content = dump_tab_groups(body.tabs)
    try:
        result = await run_in_threadpool(services.store.put, username, content)
    except InvalidKey:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid username")
    except StorageError as e:
        logger.error(f"Error saving tabs for {username}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error saving file {username}.json",
        )

    if result.prune_error:
        logger.warning(f"Tabs saved for {username} but pruning failed: {result.prune_error}")
    return UpdateResponse(message="OK", updated_at=int(time.time()))


@router.get("/{username}/tabs", response_model=Tabs)
async def get_tabs(
    username: str,
    token: str = Query(""),
    services: Services = Depends(get_services),
):
    """Return the user's stored tabs."""
    await require_token(services, username, token)

    try:
        content = await run_in_threadpool(services.store.get, username)
    except DocumentNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No tabs stored")
    except InvalidKey:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid username")
    except StorageError as e:
        logger.error(f"Error reading tabs for {username}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Error reading tabs")

    try:
        groups = load_tab_groups(content)
    except ValidationError as e:
        logger.error(f"Stored tabs for {username} are corrupt: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Stored tabs are corrupt")

    return Tabs(tabs=groups, token="")


@router.get("/{username}/history", response_model=HistoryResponse)
async def list_history(
    username: str,
    token: str = Query(""),
    services: Services = Depends(get_services),
):
    """List the snapshot timestamps kept for the user, oldest first."""
    await require_token(services, username, token)
    try:
        snapshots = await run_in_threadpool(services.store.list_snapshots, username)
    except StorageError as e:
        logger.error(f"Error listing history for {username}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Error listing history")
    return HistoryResponse(snapshots=snapshots)
