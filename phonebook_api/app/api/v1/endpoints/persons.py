"""
Phonebook endpoints for API v1.

CRUD routes for phonebook entries.  Handlers are thin: they unpack the
request, delegate to ``PersonService`` and return its result.  Errors
raised by the service are rendered by the handlers registered in
``core.errors``.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, status

from phonebook_api.app.schemas.person import PersonPayload, PersonRead
from phonebook_api.app.services.person_service import PersonService, get_person_service

router = APIRouter()


@router.get("", response_model=List[PersonRead])
async def list_persons(service: PersonService = Depends(get_person_service)) -> List[PersonRead]:
    """Return every phonebook entry."""
    return await service.list_all()


@router.get("/{person_id}", response_model=PersonRead)
async def get_person(person_id: str, service: PersonService = Depends(get_person_service)) -> PersonRead:
    """Retrieve a single entry by its ID.

    Returns HTTP 400 for an ID that cannot exist and 404 if the entry
    is not found.
    """
    return await service.get(person_id)


@router.post("", response_model=PersonRead, status_code=status.HTTP_201_CREATED)
async def create_person(
    person_in: Optional[PersonPayload] = None,
    service: PersonService = Depends(get_person_service),
) -> PersonRead:
    """Create a new entry.

    Both ``name`` and ``number`` are required; a missing or ``null``
    body counts as both being absent.  Returns HTTP 409 if an
    entry with the same name already exists.
    """
    if person_in is None:
        person_in = PersonPayload()
    return await service.create(person_in.name, person_in.number)


@router.put("/{person_id}", response_model=PersonRead)
async def update_person(
    person_id: str,
    person_in: Optional[PersonPayload] = None,
    service: PersonService = Depends(get_person_service),
) -> PersonRead:
    """Replace the name and number of an existing entry."""
    if person_in is None:
        person_in = PersonPayload()
    return await service.update(person_id, person_in.name, person_in.number)


@router.delete("/{person_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_person(person_id: str, service: PersonService = Depends(get_person_service)) -> None:
    """Delete an entry.  Deleting an unknown ID returns HTTP 404."""
    await service.delete(person_id)
    return None
