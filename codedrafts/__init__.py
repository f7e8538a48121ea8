"""codedrafts - create, publish and manage cloud code drafts."""

from codedrafts.config import DraftsConfig, load_config
from codedrafts.drafts import (
    CreateDraftChange,
    Draft,
    DraftError,
    DraftService,
    create_draft_service,
)
from codedrafts.git import GitProvider, LocalGitProvider
from codedrafts.transport import HttpServerConnection, ServerConnection

__version__ = "0.1.0"

__all__ = [
    "CreateDraftChange",
    "Draft",
    "DraftError",
    "DraftService",
    "DraftsConfig",
    "GitProvider",
    "HttpServerConnection",
    "LocalGitProvider",
    "ServerConnection",
    "create_draft_service",
    "load_config",
]
