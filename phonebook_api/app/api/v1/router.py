"""
Top‑level routers for version 1 of the API.

``router`` carries the JSON API (phonebook entries) and is mounted by
the application under ``/api`` and ``/api/v1``.  ``public_router``
carries the informational pages served from the site root.
"""

from fastapi import APIRouter

from .endpoints import health, info, persons

router = APIRouter()
router.include_router(persons.router, prefix="/persons", tags=["persons"])

public_router = APIRouter()
public_router.include_router(info.router, prefix="/info", tags=["info"])
public_router.include_router(health.router, prefix="/health", tags=["health"])
