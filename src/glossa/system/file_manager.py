import shutil
from pathlib import Path

from glossa.system.path_resolver import PathResolver


class FileManager:
    """Manages image files on disk using PathResolver."""

    def __init__(self, path_resolver: PathResolver) -> None:
        self.path_resolver = path_resolver
        self.base_path = path_resolver.data_dir

    def create_directory(self, relative_path: Path, exist_ok: bool = True) -> None:
        """Create a directory within the base_path."""
        full_path = self.base_path / relative_path
        full_path.mkdir(parents=True, exist_ok=exist_ok)

    def save_uploaded_image(self, filename: str, data: bytes) -> Path:
        """Write uploaded image bytes and return the full path."""
        path = self.path_resolver.get_uploaded_image_path(filename)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return path

    def promote_uploaded_image(self, filename: str) -> Path:
        """Move an uploaded image into the screenshots directory.

        Returns:
            Full path of the screenshot file
        """
        source = self.path_resolver.get_uploaded_image_path(filename)
        target = self.path_resolver.get_screenshot_path(filename)
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(source), str(target))
        return target

    def delete_uploaded_image(self, filename: str) -> None:
        """Delete an uploaded image if it is still on disk."""
        path = self.path_resolver.get_uploaded_image_path(filename)
        if path.is_file():
            path.unlink()

    def delete_screenshot(self, filename: str) -> None:
        """Delete a screenshot file if it is still on disk."""
        path = self.path_resolver.get_screenshot_path(filename)
        if path.is_file():
            path.unlink()
