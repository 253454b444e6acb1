"""Core configuration, identifiers and security primitives."""

from .config import Settings, settings
from .ids import (
    EntityId,
    InvalidEntityIdError,
    new_entity_id,
    parse_entity_id,
    try_parse_entity_id,
)
from .logging import configure_logging
from .security import (
    CredentialService,
    TokenClaims,
    TokenConfigurationError,
    build_credential_service,
    get_credential_service,
)

__all__ = [
    "Settings",
    "settings",
    "EntityId",
    "InvalidEntityIdError",
    "new_entity_id",
    "parse_entity_id",
    "try_parse_entity_id",
    "configure_logging",
    "CredentialService",
    "TokenClaims",
    "TokenConfigurationError",
    "build_credential_service",
    "get_credential_service",
]
