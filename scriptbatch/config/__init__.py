from .loader import load_project
from .types import (
    ConfigError,
    GroupConfig,
    PatchConfig,
    ProjectConfig,
    UnsupportedConfigFormatError,
)

__all__ = [
    "load_project",
    "ProjectConfig",
    "GroupConfig",
    "PatchConfig",
    "ConfigError",
    "UnsupportedConfigFormatError",
]
