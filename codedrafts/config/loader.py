"""YAML config loading with env var expansion."""

import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import DraftsConfig

PROJECT_CONFIG = Path("codedrafts.yaml")


def user_config_path() -> Path:
    return Path.home() / ".codedrafts" / "config.yaml"


def load_config(cli_path: str | None = None) -> DraftsConfig:
    """Load config from the first source present.

    An explicit ``cli_path`` must exist. Otherwise ``./codedrafts.yaml`` then
    ``~/.codedrafts/config.yaml`` are tried; an empty file counts as absent.
    Falls back to defaults.
    """
    if cli_path:
        path = Path(cli_path).expanduser()
        if not path.is_file():
            raise ValueError(f"Config file not found: {path}")
        return _read_config(path) or DraftsConfig()

    for path in (PROJECT_CONFIG, user_config_path()):
        if path.is_file():
            config = _read_config(path)
            if config is not None:
                return config
    return DraftsConfig()


def _read_config(path: Path) -> DraftsConfig | None:
    try:
        raw = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ValueError(f"Invalid config in {path}: expected a mapping at the top level")
    try:
        return DraftsConfig(**_expand_env_vars(raw))
    except ValidationError as e:
        raise ValueError(f"Invalid config in {path}: {e}") from e


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} references in strings."""
    if isinstance(obj, str):
        return re.sub(r"\$\{(\w+)\}", lambda m: os.environ.get(m.group(1), ""), obj)
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


# Default YAML template for `codedrafts config init`
DEFAULT_CONFIG_TEMPLATE = """\
# codedrafts.yaml

# Drafts service
api:
  base_url: "https://api.codedrafts.dev"
  web_url: "https://codedrafts.dev"
  token_env: "CODEDRAFTS_TOKEN"
  timeout: 30

# Draft defaults
drafts:
  default_visibility: "public"   # public | private | invite_only | provider_access
  fallback_author_name: "Unknown"
  link_source: "codedrafts"

# Active account (used to mark your own drafts)
account:
  id: "${CODEDRAFTS_ACCOUNT_ID}"
  name: ""
  email: ""

# Provider integrations: integration id -> env var holding the access token
integrations:
  github: "GITHUB_TOKEN"
  gitlab: "GITLAB_TOKEN"
  # bitbucket: "BITBUCKET_TOKEN"
  # azure: "AZURE_DEVOPS_TOKEN"

# Logging
log_level: "info"              # debug | info | warn | error
log_format: "text"             # text | json
"""
