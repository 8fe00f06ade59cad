"""Glossa configuration package.

This package provides configuration management with:
- YAML parsing and serialization
- Pydantic validation of every section
- Defaults written to disk on first start
"""

from .manager import ConfigManager
from .models import GlossaConfig

__all__ = [
    "ConfigManager",
    "GlossaConfig",
]
