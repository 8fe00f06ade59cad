import base64
from dataclasses import dataclass
from pathlib import Path

import httpx
import pytest
from dependency_injector import providers

from glossa.activity.recorder import ActivityRecorder
from glossa.config import ConfigManager, GlossaConfig
from glossa.database.core import DatabaseService
from glossa.keys.complex_edit import KeyComplexEditHelper
from glossa.keys.screenshots import ScreenshotService
from glossa.keys.service import KeyService
from glossa.projects.models import (
    ApiKey,
    ApiScope,
    Language,
    Project,
    ProjectPermissionType,
    User,
)
from glossa.projects.service import ProjectService
from glossa.security.auth import AuthService
from glossa.security.context import CallerContext, Principal
from glossa.security.service import SecurityService
from glossa.system.file_manager import FileManager
from glossa.system.path_resolver import PathResolver
from glossa.web.core.container import Container
from glossa.web.core.factory import create_app

# Smallest valid PNG: 1x1 transparent pixel
PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAA"
    "AABJRU5ErkJggg=="
)
PASSWORD = "correct horse battery staple"


@pytest.fixture
def png_bytes() -> bytes:
    return PNG_BYTES


@pytest.fixture
def path_resolver(tmp_path: Path) -> PathResolver:
    """Provide a PathResolver whose writable paths all live under tmp_path."""
    resolver = PathResolver()
    resolver.app_dir = tmp_path / "app"
    resolver.data_dir = tmp_path / "data"
    config_path = tmp_path / "config" / "glossa.yaml"
    resolver.get_glossa_config_path = lambda: config_path  # type: ignore[method-assign]
    return resolver


@pytest.fixture
def test_config() -> GlossaConfig:
    return GlossaConfig()


@pytest.fixture
async def db_service(path_resolver):
    """Real aiosqlite database in a temporary directory."""
    service = DatabaseService(path_resolver.get_database_path())
    await service.initialize()
    yield service
    await service.dispose()


@pytest.fixture
def file_manager(path_resolver) -> FileManager:
    return FileManager(path_resolver)


@pytest.fixture
def security_service() -> SecurityService:
    return SecurityService()


@pytest.fixture
def auth_service(db_service) -> AuthService:
    return AuthService(db_service)


@pytest.fixture
def project_service(db_service, auth_service) -> ProjectService:
    return ProjectService(db_service, auth_service)


@pytest.fixture
def screenshot_service(db_service, file_manager, test_config) -> ScreenshotService:
    return ScreenshotService(db_service, file_manager, test_config)


@pytest.fixture
def key_service(db_service, security_service, screenshot_service, test_config) -> KeyService:
    return KeyService(db_service, security_service, screenshot_service, test_config)


@pytest.fixture
def complex_edit_helper(
    db_service, security_service, screenshot_service, key_service
) -> KeyComplexEditHelper:
    return KeyComplexEditHelper(db_service, security_service, screenshot_service, key_service)


@pytest.fixture
def activity_recorder():
    """Connect the activity listeners for the duration of a test."""
    recorder = ActivityRecorder()
    recorder.register_listeners()
    yield recorder
    recorder.unregister_listeners()


@dataclass
class World:
    """Two projects and users with different permission tiers on the first one."""

    project: Project
    other_project: Project
    languages: dict[str, Language]
    editor: User
    translator: User
    german_translator: User
    viewer: User
    uploader: User
    outsider: User


@pytest.fixture
async def world(project_service) -> World:
    """Seed users, projects, languages and permissions."""
    project = await project_service.create_project("Web app")
    other_project = await project_service.create_project("Mobile app")
    languages = {
        tag: await project_service.add_language(project.id, tag, name)
        for tag, name in (("en", "English"), ("de", "German"), ("fr", "French"))
    }
    await project_service.add_language(other_project.id, "en", "English")

    users = {
        username: await project_service.create_user(username, PASSWORD)
        for username in (
            "editor",
            "translator",
            "german_translator",
            "viewer",
            "uploader",
            "outsider",
        )
    }
    grants = [
        ("editor", ProjectPermissionType.EDIT, (), False),
        ("translator", ProjectPermissionType.TRANSLATE, (), False),
        ("german_translator", ProjectPermissionType.TRANSLATE, (languages["de"].id,), False),
        ("viewer", ProjectPermissionType.VIEW, (), False),
        ("uploader", ProjectPermissionType.TRANSLATE, (), True),
    ]
    for username, tier, language_ids, screenshots in grants:
        await project_service.grant_permission(
            users[username].id, project.id, tier, language_ids, screenshots
        )
    await project_service.grant_permission(
        users["editor"].id, other_project.id, ProjectPermissionType.EDIT
    )

    return World(
        project=project,
        other_project=other_project,
        languages=languages,
        **users,
    )


@pytest.fixture
def caller_context(auth_service):
    """Build a CallerContext for a user (optionally through an API key) on a project."""

    async def _build(
        user: User, project: Project, api_key: ApiKey | None = None
    ) -> CallerContext:
        principal = Principal(user_id=user.id, username=user.username, api_key=api_key)
        return await auth_service.build_context(principal, project.id)

    return _build


@pytest.fixture
def uploaded_image(screenshot_service):
    """Store a PNG upload for the given principal."""

    async def _upload(principal: Principal, filename: str = "shot.png"):
        data = base64.b64encode(PNG_BYTES).decode("ascii")
        return await screenshot_service.upload_image(principal, filename, data)

    return _upload


@pytest.fixture
async def app_with_temp_data(path_resolver, db_service, test_config):
    """Create FastAPI app with isolated paths and a temporary database.

    Container providers are overridden at class level before the app is created,
    because the factory reads the configuration while building the app.
    """
    Container.path_resolver.override(providers.Singleton(lambda: path_resolver))
    Container.database_path.override(providers.Factory(lambda: path_resolver.get_database_path()))
    Container.config.override(providers.Singleton(lambda: test_config))
    Container.database_service.override(providers.Singleton(lambda: db_service))

    app = create_app()

    yield app

    Container.path_resolver.reset_override()
    Container.database_path.reset_override()
    Container.config.reset_override()
    Container.database_service.reset_override()


@pytest.fixture
def basic_auth():
    """HTTP Basic credentials tuple for a seeded user."""

    def _auth(user: User) -> tuple[str, str]:
        return (user.username, PASSWORD)

    return _auth


@pytest.fixture
def create_api_token(project_service):
    """Create an API key and return its plain token."""

    async def _create(user: User, project: Project, scopes: list[ApiScope]) -> str:
        _api_key, token = await project_service.create_api_key(user.id, project.id, scopes)
        return token

    return _create


@pytest.fixture
def config_manager(path_resolver) -> ConfigManager:
    return ConfigManager(path_resolver)


@pytest.fixture
async def async_client(app_with_temp_data):
    """AsyncClient bound to the app, with its lifespan running on the test's event loop."""
    app = app_with_temp_data
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
            yield client
