from .loader import load_config
from .models import (
    AccountConfig,
    ApiConfig,
    DraftsConfig,
    DraftSettings,
)

__all__ = [
    "AccountConfig",
    "ApiConfig",
    "DraftSettings",
    "DraftsConfig",
    "load_config",
]
