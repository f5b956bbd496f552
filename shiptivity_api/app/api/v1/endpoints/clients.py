"""
Client endpoints for API v1.

These routes list clients (optionally a single status lane), fetch one
client and reposition a client.  Repositioning returns the complete
client list so that boards can redraw every lane from one response.

Errors are returned as ``{"detail": {"message": ..., "long_message": ...}}``.
"""

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Path, Query

from shiptivity_api.app.core.errors import ClientError
from shiptivity_api.app.schemas.client import ClientRead, ClientUpdate
from shiptivity_api.app.services.client_service import ClientService

router = APIRouter()


@router.get("", response_model=List[ClientRead])
async def list_clients(
    status: Optional[str] = Query(
        None,
        description="Optional lane filter: 'backlog' | 'in-progress' | 'complete'",
    ),
) -> List[ClientRead]:
    """Return all clients, or only those in ``status`` ordered by priority."""
    try:
        return await ClientService.list_clients(status)
    except ClientError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.get("/{client_id}", response_model=ClientRead)
async def get_client(
    client_id: int = Path(..., description="ID of the client"),
) -> ClientRead:
    """Retrieve a single client by ID.

    Returns HTTP 404 if the client does not exist.
    """
    try:
        return await ClientService.get_client(client_id)
    except ClientError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.put("/{client_id}", response_model=List[ClientRead])
async def update_client(
    client_in: ClientUpdate,
    client_id: int = Path(..., description="ID of the client"),
) -> List[ClientRead]:
    """Change the status and/or priority of a client.

    When ``priority`` is provided the client is placed at that rank and
    the rest of the affected lanes shift accordingly; priority 1 is the
    top of the swimlane.  Moving to ``complete`` without a priority puts
    the client at the bottom of that lane.  No two clients in the same
    status share a priority afterwards.
    """
    try:
        return await ClientService.update_client(client_id, client_in)
    except ClientError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
