from pydantic import BaseModel, Field
from typing import Literal


class ApiConfig(BaseModel):
    base_url: str = "https://api.codedrafts.dev"
    web_url: str = "https://codedrafts.dev"
    token_env: str = "CODEDRAFTS_TOKEN"
    timeout: float = Field(default=30.0, gt=0)
    user_agent: str = "codedrafts/0.1.0"


class DraftSettings(BaseModel):
    default_visibility: Literal["public", "private", "invite_only", "provider_access"] = "public"
    fallback_author_name: str = "Unknown"
    link_source: str = "codedrafts"


class AccountConfig(BaseModel):
    id: str | None = None
    name: str | None = None
    email: str | None = None


class DraftsConfig(BaseModel):
    api: ApiConfig = Field(default_factory=ApiConfig)
    drafts: DraftSettings = Field(default_factory=DraftSettings)
    account: AccountConfig = Field(default_factory=AccountConfig)
    integrations: dict[str, str] = Field(
        default_factory=lambda: {
            "github": "GITHUB_TOKEN",
            "gitlab": "GITLAB_TOKEN",
            "bitbucket": "BITBUCKET_TOKEN",
            "azure": "AZURE_DEVOPS_TOKEN",
        },
        description="integration id -> env var holding its access token",
    )
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"
