"""Session store reading provider tokens from environment variables."""

import os

from codedrafts.integrations.base import IntegrationSessionStore
from codedrafts.integrations.models import AuthSession, IntegrationMetadata


class EnvSessionStore(IntegrationSessionStore):
    """Resolves integration id -> env var name -> token.

    The mapping usually comes from ``DraftsConfig.integrations``.
    """

    def __init__(self, token_envs: dict[str, str]) -> None:
        self._token_envs = dict(token_envs)

    async def get_session(
        self, integration_id: str, descriptor: IntegrationMetadata
    ) -> AuthSession | None:
        env_name = self._token_envs.get(integration_id)
        if not env_name:
            return None
        token = os.environ.get(env_name, "").strip()
        if not token:
            return None
        return AuthSession(access_token=token, account_label=descriptor.domain)
