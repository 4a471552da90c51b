"""
Pydantic schemas for phonebook entries.

``PersonPayload`` is the body accepted by the create and update
routes.  Both fields are optional at this level so that a missing
name or number reaches the directory service and is reported with
the service's own error instead of a generic schema error.
``PersonRead`` is the wire form returned for every stored record.
"""

from typing import Optional

from pydantic import BaseModel, Field


class PersonPayload(BaseModel):
    """Schema for creating or replacing a phonebook entry."""

    name: Optional[str] = Field(None, examples=["Arto Hellas"])
    number: Optional[str] = Field(None, examples=["040-1234556"])


class PersonRead(BaseModel):
    """Schema for reading a phonebook entry from the API."""

    id: str
    name: str
    number: str


class HealthRead(BaseModel):
    """Liveness report with the current storage connectivity."""

    status: str = "OK"
    database: str
