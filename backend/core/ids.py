"""Opaque entity identifiers shared by every collection."""

from __future__ import annotations

from typing import NewType
from uuid import UUID, uuid4

EntityId = NewType("EntityId", str)


class InvalidEntityIdError(ValueError):
    """Raised when a raw value cannot be read as an entity identifier."""


def new_entity_id() -> EntityId:
    return EntityId(str(uuid4()))


def parse_entity_id(raw_value: str) -> EntityId:
    """Return the canonical form of ``raw_value``.

    Any textual UUID spelling is accepted (upper case, bare hex, braces,
    ``urn:uuid:`` prefix) so ids copied from other tools still resolve.
    """
    candidate = raw_value.strip() if isinstance(raw_value, str) else ""
    if not candidate:
        raise InvalidEntityIdError("Identifier must not be empty")
    try:
        parsed = UUID(candidate)
    except ValueError as exc:
        raise InvalidEntityIdError(f"Malformed identifier: {raw_value!r}") from exc
    return EntityId(str(parsed))


def try_parse_entity_id(raw_value: str | None) -> EntityId | None:
    if raw_value is None:
        return None
    try:
        return parse_entity_id(raw_value)
    except InvalidEntityIdError:
        return None
