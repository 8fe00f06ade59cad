"""Tests for administration of users, projects and access."""

import pytest

from glossa.exceptions import NotFoundError, ValidationError
from glossa.projects.models import ApiScope, ProjectPermissionType


class TestCreateEntities:
    async def test_create_user_hashes_password(self, project_service, auth_service):
        user = await project_service.create_user("alice", "pw", name="Alice")

        assert user.id is not None
        assert user.name == "Alice"
        assert auth_service.verify_password("pw", user.password_hash)

    async def test_user_name_defaults_to_username(self, project_service):
        user = await project_service.create_user("bob", "pw")

        assert user.name == "bob"

    async def test_duplicate_username(self, project_service):
        await project_service.create_user("alice", "pw")

        with pytest.raises(ValidationError) as exc_info:
            await project_service.create_user("alice", "other")

        assert exc_info.value.code == "user_exists"

    async def test_blank_project_name(self, project_service):
        with pytest.raises(ValidationError) as exc_info:
            await project_service.create_project("  ")

        assert exc_info.value.code == "project_name_blank"

    async def test_add_language(self, project_service):
        project = await project_service.create_project("Web")

        language = await project_service.add_language(project.id, "de-AT")

        assert language.project_id == project.id
        assert language.name == "de-AT"

    async def test_duplicate_language(self, project_service):
        project = await project_service.create_project("Web")
        await project_service.add_language(project.id, "en")

        with pytest.raises(ValidationError) as exc_info:
            await project_service.add_language(project.id, "en")

        assert exc_info.value.code == "language_exists"

    async def test_language_needs_project(self, project_service):
        with pytest.raises(NotFoundError) as exc_info:
            await project_service.add_language(42, "en")

        assert exc_info.value.code == "project_not_found"
        assert exc_info.value.params == [42]


class TestGrantPermission:
    async def test_grant_replaces_existing(self, project_service):
        user = await project_service.create_user("alice", "pw")
        project = await project_service.create_project("Web")
        language = await project_service.add_language(project.id, "de")

        first = await project_service.grant_permission(
            user.id, project.id, ProjectPermissionType.TRANSLATE, [language.id, language.id]
        )
        second = await project_service.grant_permission(
            user.id, project.id, ProjectPermissionType.EDIT, screenshots_upload=True
        )

        assert first.translate_language_ids == frozenset({language.id})
        assert second.id == first.id
        assert second.type == ProjectPermissionType.EDIT
        assert second.translate_languages == []
        assert second.screenshots_upload

    async def test_grant_unknown_user(self, project_service):
        project = await project_service.create_project("Web")

        with pytest.raises(NotFoundError) as exc_info:
            await project_service.grant_permission(7, project.id, ProjectPermissionType.VIEW)

        assert exc_info.value.code == "user_not_found"


class TestCreateApiKey:
    async def test_returns_token_once(self, project_service):
        user = await project_service.create_user("alice", "pw")
        project = await project_service.create_project("Web")

        api_key, token = await project_service.create_api_key(
            user.id,
            project.id,
            [ApiScope.KEYS_EDIT, ApiScope.TRANSLATIONS_VIEW, ApiScope.KEYS_EDIT],
            description="CI",
        )

        assert len(token) >= 32
        assert api_key.scopes == ["keys.edit", "translations.view"]
        assert api_key.scope_set == frozenset({ApiScope.KEYS_EDIT, ApiScope.TRANSLATIONS_VIEW})
        assert api_key.description == "CI"

    async def test_tokens_differ(self, project_service):
        user = await project_service.create_user("alice", "pw")
        project = await project_service.create_project("Web")

        _first, token_a = await project_service.create_api_key(user.id, project.id, [])
        _second, token_b = await project_service.create_api_key(user.id, project.id, [])

        assert token_a != token_b
