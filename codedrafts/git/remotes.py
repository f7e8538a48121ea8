"""Recognize hosting providers from git remote URLs."""

from __future__ import annotations

import re
from collections.abc import Callable
from urllib.parse import urlparse

from codedrafts.git.models import IntegrationDescriptor, RemoteProvider
from codedrafts.integrations.models import PROVIDERS_METADATA

RemoteProviderMatcher = Callable[[str, str, str], RemoteProvider | None]

# scp-like syntax: git@github.com:owner/repo.git
_scp_re = re.compile(r"^(?:[\w.\-]+@)?(?P<domain>[\w.\-]+):(?!//)(?P<path>.+)$")

# domain -> (matcher id, display name, drafts-service provider id, integration id)
_KNOWN_PROVIDERS: dict[str, tuple[str, str, str, str]] = {
    "github.com": ("github", "GitHub", "github", "github"),
    "gitlab.com": ("gitlab", "GitLab", "gitlab", "gitlab"),
    "bitbucket.org": ("bitbucket", "Bitbucket", "bitbucket", "bitbucket"),
    "dev.azure.com": ("azure-devops", "Azure DevOps", "azure", "azure"),
    "ssh.dev.azure.com": ("azure-devops", "Azure DevOps", "azure", "azure"),
}


def parse_remote_url(url: str) -> tuple[str, str]:
    """Split a remote URL into (domain, path) with no leading slash or `.git` suffix."""
    url = url.strip()
    m = _scp_re.match(url)
    if m and "://" not in url:
        domain, path = m.group("domain"), m.group("path")
    else:
        parsed = urlparse(url)
        domain, path = parsed.hostname or "", parsed.path
    path = path.strip("/")
    if path.endswith(".git"):
        path = path[: -len(".git")]
    return domain.lower(), path


def normalize_remote_url(url: str) -> str:
    """Scheme- and credential-insensitive key for comparing remote URLs."""
    domain, path = parse_remote_url(url)
    return f"{domain}/{path}".lower()


def match_remote_provider(url: str, domain: str, path: str) -> RemoteProvider | None:
    """Default matcher: recognizes github.com, gitlab.com, bitbucket.org and Azure DevOps."""
    known = _KNOWN_PROVIDERS.get(domain.lower())
    if known is None:
        return None
    matcher_id, display_name, provider_id, integration_id = known

    parts = [p for p in path.split("/") if p]
    if matcher_id == "azure-devops":
        # org/project/_git/repo (https) or v3/org/project/repo (ssh)
        parts = [p for p in parts if p not in ("_git", "v3")]
    if len(parts) < 2:
        return None
    owner, repo_name = "/".join(parts[:-1]), parts[-1]

    metadata = PROVIDERS_METADATA.get(integration_id)
    integration = (
        IntegrationDescriptor(
            integration_id=integration_id, domain=metadata.domain, scopes=metadata.scopes
        )
        if metadata is not None
        else None
    )
    return RemoteProvider(
        id=matcher_id,
        name=display_name,
        domain=domain,
        path=path,
        provider_id=provider_id,
        owner=owner,
        repo_name=repo_name,
        integration=integration,
    )
