"""Dependency injection container for the Glossa application."""

from dependency_injector import containers, providers

from glossa.activity.recorder import ActivityRecorder
from glossa.database.core import DatabaseService
from glossa.keys.complex_edit import KeyComplexEditHelper
from glossa.keys.screenshots import ScreenshotService
from glossa.keys.service import KeyService
from glossa.projects.service import ProjectService
from glossa.security.auth import AuthService
from glossa.security.service import SecurityService
from glossa.system.file_manager import FileManager
from glossa.system.path_resolver import PathResolver
from glossa.web.core.config import get_config


class Container(containers.DeclarativeContainer):
    """Application dependency injection container.

    Services are singletons; each opens its own database session per operation.
    """

    # Core infrastructure services - singletons
    path_resolver = providers.Singleton(PathResolver)

    config = providers.Singleton(
        get_config,
        path_resolver=path_resolver,
    )

    database_path = providers.Factory(
        lambda resolver: resolver.get_database_path(),
        resolver=path_resolver,
    )

    database_service = providers.Singleton(
        DatabaseService,
        db_path=database_path,
    )

    file_manager = providers.Singleton(
        FileManager,
        path_resolver=path_resolver,
    )

    # Security
    security_service = providers.Singleton(SecurityService)

    auth_service = providers.Singleton(
        AuthService,
        database_service=database_service,
    )

    # Activity log listeners
    activity_recorder = providers.Singleton(ActivityRecorder)

    # Keys
    screenshot_service = providers.Singleton(
        ScreenshotService,
        database_service=database_service,
        file_manager=file_manager,
        config=config,
    )

    key_service = providers.Singleton(
        KeyService,
        database_service=database_service,
        security_service=security_service,
        screenshot_service=screenshot_service,
        config=config,
    )

    complex_edit_helper = providers.Singleton(
        KeyComplexEditHelper,
        database_service=database_service,
        security_service=security_service,
        screenshot_service=screenshot_service,
        key_service=key_service,
    )

    project_service = providers.Singleton(
        ProjectService,
        database_service=database_service,
        auth_service=auth_service,
    )
