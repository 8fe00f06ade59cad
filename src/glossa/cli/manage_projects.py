"""CLI for administering Glossa users, projects, languages and API keys."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import click

from glossa.database.core import DatabaseService
from glossa.exceptions import GlossaError
from glossa.projects.models import ApiScope, ProjectPermissionType
from glossa.projects.service import ProjectService
from glossa.security.auth import AuthService
from glossa.system.path_resolver import PathResolver

T = TypeVar("T")


def _run(
    resolver: PathResolver, action: Callable[[ProjectService], Awaitable[T]]
) -> T:
    """Run one service action against an initialized database, then dispose it."""

    async def runner() -> T:
        db_service = DatabaseService(resolver.get_database_path())
        try:
            await db_service.initialize()
            service = ProjectService(db_service, AuthService(db_service))
            return await action(service)
        finally:
            await db_service.dispose()

    try:
        return asyncio.run(runner())
    except GlossaError as e:
        raise click.ClickException(f"{e.message} ({e.code})") from e


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Manage Glossa projects and access.

    The database location follows GLOSSA_DATA.
    """
    ctx.ensure_object(dict)
    ctx.obj["resolver"] = PathResolver()


@cli.command("init-db")
@click.pass_obj
def init_db(obj: dict[str, Any]) -> None:
    """Create the database schema."""

    async def noop(service: ProjectService) -> None:
        return None

    _run(obj["resolver"], noop)
    click.echo(click.style("Database initialized", fg="green"))


@cli.command("create-user")
@click.argument("username")
@click.option("--name", default="", help="Display name (defaults to the username)")
@click.password_option(help="Password for HTTP Basic authentication")
@click.pass_obj
def create_user(obj: dict[str, Any], username: str, name: str, password: str) -> None:
    """Create a user."""
    user = _run(obj["resolver"], lambda s: s.create_user(username, password, name))
    click.echo(f"Created user {user.username} (id {user.id})")


@cli.command("create-project")
@click.argument("name")
@click.pass_obj
def create_project(obj: dict[str, Any], name: str) -> None:
    """Create a project."""
    project = _run(obj["resolver"], lambda s: s.create_project(name))
    click.echo(f"Created project {project.name} (id {project.id})")


@cli.command("add-language")
@click.argument("project_id", type=int)
@click.argument("tag")
@click.option("--name", default="", help="Language name (defaults to the tag)")
@click.pass_obj
def add_language(obj: dict[str, Any], project_id: int, tag: str, name: str) -> None:
    """Enable a language in a project, e.g. ``add-language 1 de --name German``."""
    language = _run(obj["resolver"], lambda s: s.add_language(project_id, tag, name))
    click.echo(f"Added language {language.tag} (id {language.id}) to project {project_id}")


@cli.command()
@click.argument("user_id", type=int)
@click.argument("project_id", type=int)
@click.argument(
    "permission",
    type=click.Choice([p.value for p in ProjectPermissionType], case_sensitive=False),
)
@click.option(
    "--language",
    "language_ids",
    type=int,
    multiple=True,
    help="Restrict a translator to this language id (repeatable)",
)
@click.option("--screenshots/--no-screenshots", default=False, help="Allow screenshot changes")
@click.pass_obj
def grant(
    obj: dict[str, Any],
    user_id: int,
    project_id: int,
    permission: str,
    language_ids: tuple[int, ...],
    screenshots: bool,
) -> None:
    """Grant a user a permission tier on a project."""
    permission_type = ProjectPermissionType(permission.upper())
    _run(
        obj["resolver"],
        lambda s: s.grant_permission(
            user_id, project_id, permission_type, language_ids, screenshots
        ),
    )
    click.echo(f"Granted {permission_type} on project {project_id} to user {user_id}")


@cli.command("create-api-key")
@click.argument("user_id", type=int)
@click.argument("project_id", type=int)
@click.option(
    "--scope",
    "scopes",
    type=click.Choice([s.value for s in ApiScope]),
    multiple=True,
    required=True,
    help="Scope granted to the key (repeatable)",
)
@click.option("--description", default="", help="What the key is used for")
@click.pass_obj
def create_api_key(
    obj: dict[str, Any],
    user_id: int,
    project_id: int,
    scopes: tuple[str, ...],
    description: str,
) -> None:
    """Create an API key and print its token once."""
    api_key, token = _run(
        obj["resolver"],
        lambda s: s.create_api_key(
            user_id, project_id, [ApiScope(scope) for scope in scopes], description
        ),
    )
    click.echo(f"Created API key {api_key.id} for project {project_id}")
    click.echo(click.style(token, fg="yellow", bold=True))
    click.echo("Store this token now; it cannot be shown again.")


def main() -> None:
    """Entry point for the manage-projects command."""
    cli(obj={})


if __name__ == "__main__":
    main()
