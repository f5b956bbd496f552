"""
Service layer for clients.

This module is what the API handlers call.  Listing and fetching go
straight to the ``ClientStore``; repositioning is delegated to the
``LaneReorderEngine``.  Errors are raised as ``ClientError`` subclasses
and translated into HTTP responses by the endpoints.
"""

from __future__ import annotations

from typing import List, Optional

from shiptivity_api.app.schemas.client import ClientRead, ClientUpdate
from shiptivity_api.app.services.client_store import ClientStore
from shiptivity_api.app.services.lane_reorder import LaneReorderEngine


class ClientService:
    """Service class for listing and repositioning clients."""

    @classmethod
    async def list_clients(cls, status: Optional[str] = None) -> List[ClientRead]:
        """Return all clients, or one lane ordered by priority if ``status`` is set."""
        store = ClientStore()
        if status:
            return store.get_by_status(status)
        return store.get_all()

    @classmethod
    async def get_client(cls, client_id: int) -> ClientRead:
        """Retrieve a single client by its ID."""
        return ClientStore().get_by_id(client_id)

    @classmethod
    async def update_client(cls, client_id: int, data: ClientUpdate) -> List[ClientRead]:
        """Move a client to a new lane and/or rank.

        Returns the full client list after every lane has been
        renumbered.
        """
        engine = LaneReorderEngine(ClientStore())
        return engine.reorder(client_id, data.status, data.priority)
