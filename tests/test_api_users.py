"""Current-user endpoints behind the authorization gate."""
import io

from conftest import PNG_BYTES
from test_api_auth import BASE, bearer, login, register


def _token(client):
    register(client)
    return login(client, username="alice").get_json()["data"]["access_token"]


class TestMe:
    def test_me_with_bearer(self, bare_client):
        token = _token(bare_client)
        resp = bare_client.get(f"{BASE}/users/me", headers=bearer(token))
        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["username"] == "alice"
        assert "password_hash" not in data and "refresh_token" not in data

    def test_me_with_cookie(self, client):
        register(client)
        login(client, username="alice")
        assert client.get(f"{BASE}/users/me").status_code == 200

    def test_me_with_lowercase_bearer_scheme(self, bare_client):
        token = _token(bare_client)
        resp = bare_client.get(f"{BASE}/users/me", headers={"Authorization": f"bearer {token}"})
        assert resp.status_code == 200

    def test_me_rejects_garbage_token(self, bare_client):
        resp = bare_client.get(f"{BASE}/users/me", headers=bearer("garbage"))
        assert resp.status_code == 401
        assert resp.get_json() == {
            "error": "UNAUTHORIZED",
            "message": "Invalid access token or request",
            "status": 401,
        }

    def test_me_without_token(self, bare_client):
        assert bare_client.get(f"{BASE}/users/me").status_code == 401


class TestUpdateAccount:
    def test_update_full_name_and_email(self, bare_client):
        token = _token(bare_client)
        resp = bare_client.patch(
            f"{BASE}/users/me", json={"full_name": "Alice L", "email": "al@x.com"}, headers=bearer(token)
        )
        assert resp.status_code == 200
        assert resp.get_json()["data"]["email"] == "al@x.com"
        assert login(bare_client, email="al@x.com").status_code == 200

    def test_update_with_nothing(self, bare_client):
        token = _token(bare_client)
        resp = bare_client.patch(f"{BASE}/users/me", json={}, headers=bearer(token))
        assert resp.status_code == 400

    def test_update_email_conflict(self, bare_client):
        token = _token(bare_client)
        register(bare_client, username="bob", email="bob@x.com")
        resp = bare_client.patch(f"{BASE}/users/me", json={"email": "bob@x.com"}, headers=bearer(token))
        assert resp.status_code == 409


class TestAssets:
    def test_update_avatar(self, bare_client):
        token = _token(bare_client)
        resp = bare_client.patch(
            f"{BASE}/users/me/avatar",
            data={"avatar": (io.BytesIO(PNG_BYTES), "me.png")},
            content_type="multipart/form-data",
            headers=bearer(token),
        )
        assert resp.status_code == 200
        assert resp.get_json()["data"]["avatar"].endswith("_me.png")

    def test_update_cover_image(self, bare_client):
        token = _token(bare_client)
        resp = bare_client.patch(
            f"{BASE}/users/me/cover-image",
            data={"cover_image": (io.BytesIO(PNG_BYTES), "cover.jpg")},
            content_type="multipart/form-data",
            headers=bearer(token),
        )
        assert resp.status_code == 200
        assert resp.get_json()["data"]["cover_image"].endswith("_cover.jpg")

    def test_avatar_missing_file(self, bare_client):
        token = _token(bare_client)
        resp = bare_client.patch(f"{BASE}/users/me/avatar", headers=bearer(token))
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Avatar file is missing"


class TestHealth:
    def test_health(self, bare_client):
        resp = bare_client.get(f"{BASE}/health")
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "ok"
