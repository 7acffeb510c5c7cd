"""Admin-only routes: authorization and catalog maintenance."""

import pytest

from conftest import ARTIST_PAYLOAD, auth_headers, register

ADMIN_ROUTES = [
    ("get", "/api/admin/artists"),
    ("post", "/api/admin/artists"),
    ("put", "/api/admin/artists/1"),
    ("delete", "/api/admin/artists/1"),
    ("post", "/api/admin/projects"),
    ("get", "/api/admin/notifications"),
    ("get", "/api/admin/users"),
]


class TestAuthorization:

    @pytest.mark.parametrize("method,path", ADMIN_ROUTES)
    def test_anonymous_is_401(self, client, method, path):
        response = client.request(method, path, json=ARTIST_PAYLOAD)
        assert response.status_code == 401

    @pytest.mark.parametrize("method,path", ADMIN_ROUTES)
    def test_regular_user_is_403(self, client, user_headers, method, path):
        response = client.request(method, path, json=ARTIST_PAYLOAD, headers=user_headers)
        assert response.status_code == 403
        assert response.json() == {"error": "Access denied: administrators only"}

    def test_client_cannot_claim_admin(self, client):
        # isAdmin in the registration body is not a field the API reads
        client.post("/api/register", json={"username": "sneaky", "password": "p", "isAdmin": True})
        body = client.post("/api/login", json={"username": "sneaky", "password": "p"}).json()
        assert body["user"]["isAdmin"] is False


class TestArtistAdmin:

    def test_create_update_delete(self, client, admin_headers):
        response = client.post("/api/admin/artists", json=ARTIST_PAYLOAD, headers=admin_headers)
        assert response.status_code == 201
        artist = response.json()

        response = client.put(
            f"/api/admin/artists/{artist['id']}",
            json={"roles": ["cantor"], "musicUrl": "https://example.com/m.mp3"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        updated = response.json()
        assert updated["roles"] == ["cantor"]
        assert updated["musicUrl"] == "https://example.com/m.mp3"
        assert updated["name"] == "klzinn"

        response = client.delete(f"/api/admin/artists/{artist['id']}", headers=admin_headers)
        assert response.status_code == 204

        assert client.get("/api/artists").json() == []
        assert client.get(f"/api/artists/{artist['id']}").json()["isActive"] is False
        admin_list = client.get("/api/admin/artists", headers=admin_headers).json()
        assert [a["id"] for a in admin_list] == [artist["id"]]

    def test_missing_artist_is_404(self, client, admin_headers):
        assert client.put("/api/admin/artists/99", json={"name": "x"}, headers=admin_headers).status_code == 404
        assert client.delete("/api/admin/artists/99", headers=admin_headers).status_code == 404

    def test_required_fields(self, client, admin_headers):
        response = client.post("/api/admin/artists", json={"name": "only name"}, headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid data"

    def test_social_links_must_be_json_object(self, client, admin_headers):
        payload = {**ARTIST_PAYLOAD, "socialLinks": "[1, 2]"}
        response = client.post("/api/admin/artists", json=payload, headers=admin_headers)
        assert response.status_code == 400

    def test_social_links_object_is_stored_as_string(self, client, admin_headers):
        payload = {**ARTIST_PAYLOAD, "socialLinks": {"youtube": "#"}}
        response = client.post("/api/admin/artists", json=payload, headers=admin_headers)
        assert response.status_code == 201
        assert response.json()["socialLinks"] == '{"youtube": "#"}'


class TestProjectAdmin:

    def test_update_and_delete(self, client, admin_headers):
        project = client.post("/api/admin/projects", json={
            "name": "Trap dos Animes",
            "cover": "c.png",
            "description": "EP",
        }, headers=admin_headers).json()
        assert project["status"] == "em_desenvolvimento"

        response = client.put(f"/api/admin/projects/{project['id']}", json={"status": "lancado"}, headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "lancado"

        assert client.delete(f"/api/admin/projects/{project['id']}", headers=admin_headers).status_code == 204
        assert client.get("/api/projects").json() == []
        assert client.delete("/api/admin/projects/999", headers=admin_headers).status_code == 404

    def test_bad_status_is_400(self, client, admin_headers):
        response = client.post("/api/admin/projects", json={
            "name": "x", "cover": "c", "description": "d", "status": "cancelado",
        }, headers=admin_headers)
        assert response.status_code == 400


class TestUserAdmin:

    def test_toggle_admin(self, client, admin_headers):
        user = register(client, "demo")
        url = f"/api/admin/users/{user['id']}/admin"

        response = client.put(url, json={"isAdmin": True}, headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["isAdmin"] is True

        usernames = {u["username"]: u["isAdmin"] for u in client.get("/api/admin/users", headers=admin_headers).json()}
        assert usernames == {"admin": True, "demo": True}

    def test_admin_flag_must_be_boolean(self, client, admin_headers):
        user = register(client, "demo")
        response = client.put(f"/api/admin/users/{user['id']}/admin", json={"isAdmin": "yes"}, headers=admin_headers)
        assert response.status_code == 400

    def test_unknown_user_is_404(self, client, admin_headers):
        response = client.put("/api/admin/users/nobody/admin", json={"isAdmin": True}, headers=admin_headers)
        assert response.status_code == 404


class TestUserReferences:

    def test_unknown_owner_is_400(self, client, admin_headers):
        payload = {**ARTIST_PAYLOAD, "userId": "ghost"}
        response = client.post("/api/admin/artists", json=payload, headers=admin_headers)
        assert response.status_code == 400
        assert response.json() == {"error": "Unknown user id: ghost"}

    def test_unknown_notification_target_is_400(self, client, admin_headers):
        response = client.post("/api/admin/notifications", json={
            "title": "t", "message": "m", "targetType": "specific_user", "userId": "ghost",
        }, headers=admin_headers)
        assert response.status_code == 400
        assert response.json() == {"error": "Unknown user id: ghost"}

    def test_unknown_owner_on_sqlite(self, db_client):
        admin = auth_headers(db_client, "admin")
        payload = {**ARTIST_PAYLOAD, "userId": "ghost"}
        response = db_client.post("/api/admin/artists", json=payload, headers=admin)
        assert response.status_code == 400
