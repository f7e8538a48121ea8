"""Abstract integration session store."""

from abc import ABC, abstractmethod

from codedrafts.integrations.models import AuthSession, IntegrationMetadata


class IntegrationSessionStore(ABC):
    """Looks up an active provider session; absence is a normal state, not an error."""

    @abstractmethod
    async def get_session(
        self, integration_id: str, descriptor: IntegrationMetadata
    ) -> AuthSession | None: ...
