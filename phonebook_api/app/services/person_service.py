"""
Directory service for phonebook entries.

``PersonService`` validates input with the record model, keeps names
unique and addresses records by their storage identifier.  It holds a
reference to the process-wide store handle and nothing else, so one
instance can serve any number of concurrent requests.

Failures are reported with the exceptions from ``core.errors``.  Any
driver failure that is not a known conflict is re-raised as
``StorageError`` with the original exception chained for logging.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import Depends

from ..core.db import DocumentStore, DuplicateKeyError, StoreError, get_store
from ..core.errors import (
    DuplicateName,
    MalformedIdentifier,
    MissingField,
    NotFound,
    StorageError,
    ValidationError,
)
from ..models.person import PersonDraft, RecordInvalid, is_present, to_wire_form, validate_person
from ..schemas.person import HealthRead, PersonRead

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DirectorySummary:
    count: int
    generated_at: datetime


class PersonService:
    """Create, read, update and delete phonebook entries."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    @staticmethod
    def _validate(name: Optional[str], number: Optional[str]) -> PersonDraft:
        if not is_present(name) or not is_present(number):
            raise MissingField()
        try:
            return validate_person(name, number)
        except RecordInvalid as exc:
            raise ValidationError(exc.first.field, exc.first.message) from exc

    def _check_identifier(self, person_id: str) -> None:
        if not self.store.is_valid_identifier(person_id):
            raise MalformedIdentifier()

    async def list_all(self) -> List[PersonRead]:
        """Return every entry in the order the store keeps them."""
        try:
            documents = await self.store.find_all()
        except StoreError as exc:
            raise StorageError() from exc
        logger.info("Retrieved %d persons", len(documents))
        return [to_wire_form(document) for document in documents]

    async def get(self, person_id: str) -> PersonRead:
        self._check_identifier(person_id)
        try:
            document = await self.store.find_by_id(person_id)
        except StoreError as exc:
            raise StorageError() from exc
        if document is None:
            raise NotFound()
        return to_wire_form(document)

    async def create(self, name: Optional[str], number: Optional[str]) -> PersonRead:
        """Add a new entry.

        The existing-name lookup gives an early answer for the common
        case; the unique index on ``name`` catches two concurrent
        creations that both passed the lookup.
        """
        draft = self._validate(name, number)
        try:
            if await self.store.find_one("name", draft.name) is not None:
                raise DuplicateName()
            document = await self.store.insert({"name": draft.name, "number": draft.number})
        except DuplicateKeyError as exc:
            raise DuplicateName() from exc
        except StoreError as exc:
            raise StorageError() from exc
        logger.info("Added new person: %s", document["name"])
        return to_wire_form(document)

    async def update(self, person_id: str, name: Optional[str], number: Optional[str]) -> PersonRead:
        """Replace name and number of an existing entry.

        Renaming an entry to a name held by another entry fails with
        ``DuplicateName`` through the same unique index used by
        ``create``.
        """
        draft = self._validate(name, number)
        self._check_identifier(person_id)
        try:
            document = await self.store.update_by_id(
                person_id, {"name": draft.name, "number": draft.number}
            )
        except DuplicateKeyError as exc:
            raise DuplicateName() from exc
        except StoreError as exc:
            raise StorageError() from exc
        if document is None:
            raise NotFound()
        logger.info("Updated person with ID: %s", person_id)
        return to_wire_form(document)

    async def delete(self, person_id: str) -> None:
        self._check_identifier(person_id)
        try:
            document = await self.store.delete_by_id(person_id)
        except StoreError as exc:
            raise StorageError() from exc
        if document is None:
            raise NotFound()
        logger.info("Deleted person with ID: %s", person_id)

    async def count_and_timestamp(self) -> DirectorySummary:
        try:
            count = await self.store.count()
        except StoreError as exc:
            raise StorageError() from exc
        return DirectorySummary(count=count, generated_at=datetime.now(timezone.utc))

    def health(self) -> HealthRead:
        return HealthRead(status="OK", database=self.store.state.value)


def get_person_service(store: DocumentStore = Depends(get_store)) -> PersonService:
    """FastAPI dependency building a service around the shared store."""
    return PersonService(store)
