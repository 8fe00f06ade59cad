"""System domain package.

This package contains system-level components:
- PathResolver: Path resolution for data, database, config and uploads
- FileManager: File system operations for uploaded images and screenshots
- structlog_configurator: Structured logging configuration
"""

from glossa.system.file_manager import FileManager
from glossa.system.path_resolver import PathResolver

__all__ = [
    "FileManager",
    "PathResolver",
]
