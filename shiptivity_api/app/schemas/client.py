"""
Pydantic schemas for client cards.

A client sits in exactly one status lane (``backlog``, ``in-progress``
or ``complete``) and carries a ``priority``: its 1‑based rank inside
that lane, where 1 is the top of the swimlane.
"""

from typing import Optional

from pydantic import BaseModel, Field


STATUSES = ("backlog", "in-progress", "complete")


class ClientRead(BaseModel):
    """Schema for reading a client."""

    id: int
    name: str
    description: Optional[str] = None
    status: str
    priority: int

    model_config = {
        "from_attributes": True,
    }


class ClientUpdate(BaseModel):
    """Schema for repositioning a client.

    Both fields are optional.  Omitting ``status`` keeps the client in
    its current lane; omitting ``priority`` is only allowed when ``status``
    is set to ``complete``, in which case the client goes to the bottom.
    """

    status: Optional[str] = Field(
        None, description="Target lane: 'backlog' | 'in-progress' | 'complete'"
    )
    priority: Optional[int] = Field(
        None, description="Target 1‑based rank in the lane; 1 is the top"
    )
