"""Provider integrations: sessions and Provider-Auth credentials."""

from codedrafts.integrations.base import IntegrationSessionStore
from codedrafts.integrations.env import EnvSessionStore
from codedrafts.integrations.models import (
    PROVIDERS_METADATA,
    AuthSession,
    IntegrationMetadata,
    ProviderAuth,
)

__all__ = [
    "AuthSession",
    "EnvSessionStore",
    "IntegrationMetadata",
    "IntegrationSessionStore",
    "PROVIDERS_METADATA",
    "ProviderAuth",
]
