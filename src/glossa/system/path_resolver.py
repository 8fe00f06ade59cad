import os
from pathlib import Path


class PathResolver:
    """Central authority for all file path resolution in Glossa.

    Uses environment variables for configuration with sensible defaults.
    """

    def __init__(self) -> None:
        """Initialize PathResolver with environment-based configuration."""
        self.app_dir = Path(os.getenv("GLOSSA_APP", "/opt/glossa"))
        self.data_dir = Path(os.getenv("GLOSSA_DATA", "/var/lib/glossa"))

    def get_glossa_config_path(self) -> Path:
        """Get the path to the main configuration file.

        Checks GLOSSA_CONFIG environment variable first, then falls back to default.
        """
        config_path = os.getenv("GLOSSA_CONFIG")
        if config_path:
            return Path(config_path)
        return self.data_dir / "config" / "glossa.yaml"

    def get_repo_path(self) -> Path:
        """Get the path to the Glossa repository root."""
        return self.app_dir

    def get_data_dir(self) -> Path:
        """Get the data directory where all runtime data is stored."""
        return self.data_dir

    def get_database_dir(self) -> Path:
        """Get the directory containing the database file."""
        return self.data_dir / "database"

    def get_database_path(self) -> Path:
        """Get the path to the main SQLite database."""
        return self.get_database_dir() / "glossa.db"

    def get_uploads_dir(self) -> Path:
        """Get the directory for uploaded images not yet attached to a key."""
        return self.data_dir / "uploads"

    def get_screenshots_dir(self) -> Path:
        """Get the directory for key screenshots."""
        return self.data_dir / "screenshots"

    def get_uploaded_image_path(self, filename: str) -> Path:
        """Get the full path of an uploaded image file."""
        return self.get_uploads_dir() / filename

    def get_screenshot_path(self, filename: str) -> Path:
        """Get the full path of a screenshot file."""
        return self.get_screenshots_dir() / filename
