"""
Top‑level router for version 1 of the API.

This router aggregates domain‑specific routers under a unified prefix.
"""

from fastapi import APIRouter

from .endpoints import clients

router = APIRouter()

router.include_router(clients.router, prefix="/clients", tags=["clients"])
