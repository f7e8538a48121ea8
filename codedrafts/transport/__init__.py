"""Transport to the drafts service."""

from codedrafts.transport.base import ServerConnection
from codedrafts.transport.http import HttpServerConnection

__all__ = ["HttpServerConnection", "ServerConnection"]
