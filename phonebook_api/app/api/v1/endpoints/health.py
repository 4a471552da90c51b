"""
Liveness endpoint.

Always answers with HTTP 200 and reports whether the record store is
connected.  It does not read any records, so it stays cheap enough to
be polled by load balancers.
"""

from fastapi import APIRouter, Depends

from phonebook_api.app.schemas.person import HealthRead
from phonebook_api.app.services.person_service import PersonService, get_person_service

router = APIRouter()


@router.get("", response_model=HealthRead)
async def health(service: PersonService = Depends(get_person_service)) -> HealthRead:
    return service.health()
