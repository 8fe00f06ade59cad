"""End-to-end tests for the key API against a temporary database."""

import base64

import pytest

from glossa.projects.models import ApiScope


@pytest.fixture
def keys_url(world):
    return f"/v2/projects/{world.project.id}/keys"


class TestKeyLifecycle:
    """Create, list, edit and delete keys with HTTP Basic credentials."""

    async def test_create_list_rename_delete(self, async_client, world, basic_auth, keys_url):
        auth = basic_auth(world.editor)

        created = await async_client.post(
            keys_url,
            json={"name": "home.title", "translations": {"en": "Home"}, "tags": ["web"]},
            auth=auth,
        )
        assert created.status_code == 201
        key = created.json()
        assert key["translations"]["en"]["text"] == "Home"
        assert [tag["name"] for tag in key["tags"]] == ["web"]

        listed = await async_client.get(keys_url, auth=auth)
        assert listed.status_code == 200
        assert listed.json()["keys"] == [{"id": key["id"], "name": "home.title"}]

        renamed = await async_client.put(
            f"{keys_url}/{key['id']}", json={"name": "home.heading"}, auth=auth
        )
        assert renamed.json() == {"id": key["id"], "name": "home.heading"}

        deleted = await async_client.delete(f"{keys_url}/{key['id']}", auth=auth)
        assert deleted.status_code == 204

        listed = await async_client.get(keys_url, auth=auth)
        assert listed.json()["page"]["total_elements"] == 0

    async def test_paging_and_sorting(self, async_client, world, basic_auth, keys_url):
        auth = basic_auth(world.editor)
        for name in ("b", "c", "a"):
            await async_client.post(keys_url, json={"name": name}, auth=auth)

        response = await async_client.get(
            keys_url, params=[("size", 2), ("page", 0), ("sort", "name,desc")], auth=auth
        )

        data = response.json()
        assert [key["name"] for key in data["keys"]] == ["c", "b"]
        assert data["page"] == {"size": 2, "total_elements": 3, "total_pages": 2, "number": 0}

    async def test_unknown_sort_field(self, async_client, world, basic_auth, keys_url):
        response = await async_client.get(
            keys_url, params={"sort": "text"}, auth=basic_auth(world.viewer)
        )

        assert response.status_code == 400
        assert response.json()["code"] == "invalid_sort_property"

    async def test_import(self, async_client, world, basic_auth, keys_url):
        auth = basic_auth(world.editor)
        await async_client.post(keys_url, json={"name": "existing"}, auth=auth)

        response = await async_client.post(
            f"{keys_url}/import",
            json={"keys": [{"name": "existing"}, {"name": "fresh", "translations": {"de": "Neu"}}]},
            auth=auth,
        )

        assert response.json() == {"created": ["fresh"], "skipped": ["existing"]}

    async def test_complex_edit_with_screenshot(
        self, async_client, world, basic_auth, keys_url, png_bytes
    ):
        """Should attach an uploaded image and serve it from the screenshots mount."""
        auth = basic_auth(world.uploader)
        editor_auth = basic_auth(world.editor)
        key = (await async_client.post(keys_url, json={"name": "k"}, auth=editor_auth)).json()

        upload = await async_client.post(
            "/v2/image-upload",
            json={"filename": "k.png", "data": base64.b64encode(png_bytes).decode("ascii")},
            auth=auth,
        )
        assert upload.status_code == 201
        unattached = await async_client.get(f"/uploads/{upload.json()['filename']}")
        assert unattached.status_code == 404

        response = await async_client.put(
            f"{keys_url}/{key['id']}/complex-update",
            json={
                "name": "k",
                "translations": {"fr": "Clé"},
                "screenshot_uploaded_image_ids": [upload.json()["id"]],
            },
            auth=auth,
        )

        assert response.status_code == 200
        [screenshot] = response.json()["screenshots"]
        served = await async_client.get(screenshot["file_url"])
        assert served.status_code == 200
        assert served.content == png_bytes


class TestAccessControl:
    async def test_no_credentials(self, async_client, keys_url):
        response = await async_client.get(keys_url)

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Basic"

    async def test_wrong_password(self, async_client, world, keys_url):
        response = await async_client.get(keys_url, auth=(world.editor.username, "nope"))

        assert response.status_code == 401
        assert response.json()["code"] == "bad_credentials"

    async def test_outsider_cannot_view(self, async_client, world, basic_auth, keys_url):
        response = await async_client.get(keys_url, auth=basic_auth(world.outsider))

        assert response.status_code == 403

    async def test_viewer_cannot_create(self, async_client, world, basic_auth, keys_url):
        response = await async_client.post(
            keys_url, json={"name": "k"}, auth=basic_auth(world.viewer)
        )

        assert response.status_code == 403
        assert response.json()["params"] == ["EDIT"]

    async def test_unknown_project(self, async_client, world, basic_auth):
        response = await async_client.get("/v2/projects/999/keys", auth=basic_auth(world.editor))

        assert response.status_code == 404

    async def test_basic_user_must_name_project(self, async_client, world, basic_auth):
        response = await async_client.get("/v2/projects/keys", auth=basic_auth(world.editor))

        assert response.status_code == 400
        assert response.json()["code"] == "project_not_selected"


class TestApiKeys:
    async def test_api_key_implies_project(self, async_client, world, create_api_token):
        token = await create_api_token(
            world.editor, world.project, [ApiScope.KEYS_EDIT, ApiScope.TRANSLATIONS_VIEW]
        )
        headers = {"X-API-Key": token}

        created = await async_client.post("/v2/projects/keys", json={"name": "k"}, headers=headers)
        listed = await async_client.get(f"/v2/projects/{world.project.id}/keys", headers=headers)

        assert created.status_code == 201
        assert [key["name"] for key in listed.json()["keys"]] == ["k"]

    async def test_api_key_missing_scope(self, async_client, world, create_api_token, keys_url):
        """An EDIT user's key without keys.edit cannot create keys."""
        token = await create_api_token(world.editor, world.project, [ApiScope.TRANSLATIONS_EDIT])

        response = await async_client.post(
            keys_url, json={"name": "k"}, headers={"X-API-Key": token}
        )

        assert response.status_code == 403
        assert response.json()["code"] == "api_key_scope_missing"

    async def test_api_key_for_other_project(self, async_client, world, create_api_token):
        token = await create_api_token(world.editor, world.project, [ApiScope.TRANSLATIONS_VIEW])

        response = await async_client.get(
            f"/v2/projects/{world.other_project.id}/keys", headers={"X-API-Key": token}
        )

        assert response.status_code == 403
        assert response.json()["code"] == "api_key_project_mismatch"

    async def test_invalid_api_key(self, async_client, keys_url):
        response = await async_client.get(keys_url, headers={"X-API-Key": "bogus"})

        assert response.status_code == 401
        assert response.json()["code"] == "invalid_api_key"
