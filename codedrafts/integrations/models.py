"""Pydantic models for provider integrations."""

from __future__ import annotations

import base64
import json

from pydantic import BaseModel, ConfigDict, Field


class ProviderAuth(BaseModel):
    """A short-lived provider credential sent alongside privileged draft calls.

    Built per call and never persisted. ``repr`` hides the token.
    """

    model_config = ConfigDict(frozen=True)

    provider: str
    token: str = Field(repr=False)

    def to_headers(self) -> dict[str, str]:
        payload = json.dumps({"provider": self.provider, "token": self.token})
        return {"Provider-Auth": base64.b64encode(payload.encode()).decode()}


class IntegrationMetadata(BaseModel):
    domain: str
    scopes: list[str] = Field(default_factory=list)


class AuthSession(BaseModel):
    access_token: str = Field(repr=False)
    account_label: str | None = None


# Integration id -> static metadata used to look up a session without a repository.
PROVIDERS_METADATA: dict[str, IntegrationMetadata] = {
    "github": IntegrationMetadata(
        domain="github.com", scopes=["repo", "read:user", "user:email"]
    ),
    "gitlab": IntegrationMetadata(
        domain="gitlab.com", scopes=["read_api", "read_user", "read_repository"]
    ),
    "bitbucket": IntegrationMetadata(
        domain="bitbucket.org", scopes=["account:read", "repository:read", "pullrequest"]
    ),
    "azure": IntegrationMetadata(
        domain="dev.azure.com", scopes=["vso.code", "vso.identity", "vso.project"]
    ),
}
