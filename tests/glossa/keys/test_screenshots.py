"""Tests for uploaded images and screenshot file handling."""

import base64
import logging

import pytest

from glossa.config.models import GlossaConfig, UploadsConfig
from glossa.exceptions import ValidationError
from glossa.keys.models import Key, Screenshot, UploadedImage
from glossa.keys.screenshots import FileChanges, ScreenshotService
from glossa.security.context import Principal


@pytest.fixture
async def principal(world) -> Principal:
    return Principal(user_id=world.uploader.id, username=world.uploader.username)


def encoded(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


# Marks a parameter that should be replaced by the valid encoded PNG
VALID = object()


class TestUploadImage:
    """Test staging uploaded images."""

    async def test_stores_file_and_row(
        self, screenshot_service, principal, path_resolver, png_bytes
    ):
        """Should write the decoded bytes under a generated name."""
        image = await screenshot_service.upload_image(
            principal, "Login Page.PNG", encoded(png_bytes)
        )

        assert image.id is not None
        assert image.user_id == principal.user_id
        assert image.filename.endswith(".png")
        assert image.filename != "Login Page.PNG"
        assert path_resolver.get_uploaded_image_path(image.filename).read_bytes() == png_bytes

    @pytest.mark.parametrize(
        "filename,data,code",
        [
            pytest.param("notes.txt", VALID, "file_not_image", id="text_extension"),
            pytest.param("no_extension", VALID, "file_not_image", id="no_extension"),
            pytest.param("shot.png", "not base64!", "invalid_image_data", id="bad_base64"),
            pytest.param("shot.png", "", "invalid_image_data", id="empty"),
        ],
    )
    async def test_rejects_invalid_upload(
        self, screenshot_service, principal, path_resolver, png_bytes, filename, data, code
    ):
        if data is VALID:
            data = encoded(png_bytes)

        with pytest.raises(ValidationError) as exc_info:
            await screenshot_service.upload_image(principal, filename, data)

        assert exc_info.value.code == code
        uploads_dir = path_resolver.get_uploads_dir()
        assert not uploads_dir.exists() or not any(uploads_dir.iterdir())

    async def test_rejects_oversized_image(self, db_service, file_manager, principal, png_bytes):
        """Should enforce the configured byte limit."""
        config = GlossaConfig(uploads=UploadsConfig(max_image_bytes=10))
        service = ScreenshotService(db_service, file_manager, config)

        with pytest.raises(ValidationError) as exc_info:
            await service.upload_image(principal, "shot.png", encoded(png_bytes))

        assert exc_info.value.code == "file_too_big"
        assert exc_info.value.params == [10]


class TestScreenshotsOfKey:
    """Test screenshot membership checks on in-memory keys."""

    @pytest.fixture
    def key(self) -> Key:
        key = Key(id=1, project_id=1, name="k")
        key.screenshots = [
            Screenshot(id=10, filename="a.png"),
            Screenshot(id=11, filename="b.png"),
        ]
        return key

    def test_accepts_own_screenshots(self, screenshot_service, key):
        screenshot_service.check_screenshots_of_key(key, [10, 11])

    def test_rejects_foreign_screenshots(self, screenshot_service, key):
        with pytest.raises(ValidationError) as exc_info:
            screenshot_service.check_screenshots_of_key(key, [10, 99, 42])

        assert exc_info.value.code == "screenshot_not_of_key"
        assert exc_info.value.params == [42, 99]

    def test_remove_screenshots_collects_files(self, screenshot_service, key):
        """Should detach the screenshots and schedule their files for deletion."""
        changes = screenshot_service.remove_screenshots(key, [11])

        assert [s.id for s in key.screenshots] == [10]
        assert changes.delete == ["b.png"]
        assert changes.promote == []


class TestApplyFileChanges:
    """Test file operations performed after commit."""

    def test_promotes_and_deletes(
        self, screenshot_service, file_manager, path_resolver, png_bytes
    ):
        file_manager.save_uploaded_image("new.png", png_bytes)
        old_path = path_resolver.get_screenshot_path("old.png")
        old_path.parent.mkdir(parents=True, exist_ok=True)
        old_path.write_bytes(png_bytes)

        screenshot_service.apply_file_changes(FileChanges(promote=["new.png"], delete=["old.png"]))

        assert path_resolver.get_screenshot_path("new.png").read_bytes() == png_bytes
        assert not path_resolver.get_uploaded_image_path("new.png").exists()
        assert not old_path.exists()

    def test_missing_upload_is_logged(self, screenshot_service, caplog):
        """Should warn instead of failing when an upload vanished from disk."""
        with caplog.at_level(logging.WARNING, logger="glossa.keys.screenshots"):
            screenshot_service.apply_file_changes(FileChanges(promote=["gone.png"]))

        assert "gone.png" in caplog.text

    def test_merge(self):
        changes = FileChanges(promote=["a.png"])
        changes.merge(FileChanges(promote=["b.png"], delete=["c.png"]))

        assert changes.promote == ["a.png", "b.png"]
        assert changes.delete == ["c.png"]


async def test_uploaded_image_row_is_owned(screenshot_service, principal, db_service, png_bytes):
    image = await screenshot_service.upload_image(principal, "x.jpg", encoded(png_bytes))

    async with db_service.get_async_db() as session:
        stored = await session.get(UploadedImage, image.id)

    assert stored is not None
    assert stored.user_id == principal.user_id
