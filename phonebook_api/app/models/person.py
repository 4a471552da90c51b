"""
Record model for phonebook entries.

A person has a display name and a phone number.  The rules are kept
as pure predicates (``is_valid_name``, ``is_valid_number``) with the
human-readable messages produced by separate formatting functions, so
the same checks can be reused without dragging presentation along.

``validate_person`` applies every rule and either returns a
``PersonDraft`` or raises ``RecordInvalid`` listing each violation.
``to_wire_form`` turns a stored document into the public
``PersonRead`` shape.
"""

import re
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional

from ..schemas.person import PersonRead

NAME_MIN_LENGTH = 3
NUMBER_PATTERN = re.compile(r"\d{2,3}-\d+", re.ASCII)
NUMBER_MIN_DIGITS = 8

# Keys used by the store for bookkeeping; never exposed to clients.
INTERNAL_FIELDS = frozenset({"_id", "revision", "created_at", "updated_at"})


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


@dataclass(frozen=True)
class PersonDraft:
    """A name/number pair that passed every record rule."""

    name: str
    number: str


class RecordInvalid(Exception):
    """Raised by ``validate_person`` with one ``FieldError`` per broken rule."""

    def __init__(self, errors: List[FieldError]) -> None:
        super().__init__("; ".join(error.message for error in errors))
        self.errors = errors

    @property
    def first(self) -> FieldError:
        return self.errors[0]


def is_present(value: Optional[str]) -> bool:
    return isinstance(value, str) and value != ""


def is_valid_name(name: str) -> bool:
    return len(name) >= NAME_MIN_LENGTH


def is_valid_number(number: str) -> bool:
    """Return ``True`` for ``XX-XXXXXX`` / ``XXX-XXXXX`` numbers with at least 8 digits."""
    return bool(NUMBER_PATTERN.fullmatch(number)) and len(number.replace("-", "", 1)) >= NUMBER_MIN_DIGITS


def format_required_error(field: str) -> str:
    return f"{field.capitalize()} is required"


def format_name_error(name: str) -> str:
    return f"Name must be at least {NAME_MIN_LENGTH} characters long"


def format_number_error(number: str) -> str:
    return f"{number} is not a valid phone number! Format: XX-XXXXXXX or XXX-XXXXXXX"


def collect_errors(name: Optional[str], number: Optional[str]) -> List[FieldError]:
    """Return every rule violated by ``name`` and ``number``, name first."""
    errors: List[FieldError] = []
    if not is_present(name):
        errors.append(FieldError("name", format_required_error("name")))
    elif not is_valid_name(name):
        errors.append(FieldError("name", format_name_error(name)))

    if not is_present(number):
        errors.append(FieldError("number", format_required_error("number")))
    elif not is_valid_number(number):
        errors.append(FieldError("number", format_number_error(number)))
    return errors


def validate_person(name: Optional[str], number: Optional[str]) -> PersonDraft:
    errors = collect_errors(name, number)
    if errors:
        raise RecordInvalid(errors)
    return PersonDraft(name=name, number=number)


def to_wire_form(document: Mapping[str, Any]) -> PersonRead:
    """Convert a stored document into the public representation.

    The storage identifier is exposed as a string ``id`` and all
    internal bookkeeping fields are dropped.  ``name`` and ``number``
    are returned verbatim.
    """
    public = {key: value for key, value in document.items() if key not in INTERNAL_FIELDS}
    public["id"] = str(document["_id"])
    return PersonRead(**public)
