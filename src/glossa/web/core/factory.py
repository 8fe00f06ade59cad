"""Application factory for creating FastAPI application with dependency injection."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from glossa.web.core.container import Container
from glossa.web.core.lifespan import lifespan
from glossa.web.errors import register_exception_handlers
from glossa.web.middleware.request_logging import StructuredRequestLoggingMiddleware
from glossa.web.routers import (
    health_api_routes,
    image_upload_api_routes,
    keys_api_routes,
)


def create_app() -> FastAPI:
    """Create FastAPI application with dependency injection.

    Key routes are mounted twice: with an explicit project id in the path, and
    without one for API key callers whose key already names the project.

    Returns:
        FastAPI: The configured application instance.
    """
    container = Container()

    app = FastAPI(
        lifespan=lifespan,
        title="Glossa API",
        description="API for managing localization keys and their translations",
        version="1.0.0",
    )
    app.container = container  # type: ignore[attr-defined]

    config = container.config()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(StructuredRequestLoggingMiddleware)

    register_exception_handlers(app)

    container.wire(
        modules=[
            "glossa.web.dependencies",
            "glossa.web.routers.health_api_routes",
            "glossa.web.routers.image_upload_api_routes",
            "glossa.web.routers.keys_api_routes",
        ]
    )

    app.include_router(
        keys_api_routes.router, prefix="/v2/projects/{project_id:int}", tags=["Keys API"]
    )
    app.include_router(keys_api_routes.router, prefix="/v2/projects", tags=["Keys API"])
    app.include_router(image_upload_api_routes.router, prefix="/v2", tags=["Image Upload API"])
    app.include_router(health_api_routes.router, prefix="/api", tags=["Health Check API"])

    return app
