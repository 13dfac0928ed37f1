from fastapi.testclient import TestClient

from todo_api.sessions import SESSION_COOKIE_NAME


def register(client, username="alice", password="wonderland"):
    return client.post("/api/register", json={"username": username, "password": password})


class TestRegister:
    def test_register_returns_user_without_password(self, client):
        res = register(client)
        assert res.status_code == 201
        body = res.json()
        assert body == {"id": body["id"], "username": "alice"}
        assert SESSION_COOKIE_NAME in res.cookies

    def test_register_starts_a_session(self, client):
        register(client)
        res = client.get("/api/auth/user")
        assert res.status_code == 200
        assert res.json()["username"] == "alice"

    def test_duplicate_username(self, client):
        register(client)
        res = register(client, password="another")
        assert res.status_code == 400
        assert res.json()["message"] == "Username already exists"

    def test_short_password_and_blank_username(self, client):
        res = client.post("/api/register", json={"username": "  ", "password": "abc"})
        assert res.status_code == 400
        fields = {d["field"] for d in res.json()["detail"]}
        assert fields == {"username", "password"}


class TestLogin:
    def test_login_and_current_user(self, app, client):
        register(client)
        fresh = TestClient(app)
        assert fresh.get("/api/auth/user").status_code == 401

        res = fresh.post("/api/auth/login", json={"username": "alice", "password": "wonderland"})
        assert res.status_code == 200
        assert res.json()["username"] == "alice"
        assert fresh.get("/api/todos").status_code == 200

    def test_wrong_password(self, app, client):
        register(client)
        fresh = TestClient(app)
        res = fresh.post("/api/auth/login", json={"username": "alice", "password": "nope"})
        assert res.status_code == 401
        assert res.json()["message"] == "Invalid username or password"

    def test_unknown_user(self, client):
        res = client.post("/api/auth/login", json={"username": "ghost", "password": "boo!"})
        assert res.status_code == 401

    def test_missing_or_blank_credentials_are_unauthorized(self, client):
        register(client)
        for body in ({}, {"username": ""}, {"username": "", "password": "wonderland"}, {"username": "alice"}):
            res = client.post("/api/auth/login", json=body)
            assert res.status_code == 401, body
            assert res.json()["message"] == "Invalid username or password"

    def test_non_string_credentials_are_unauthorized(self, client):
        res = client.post("/api/auth/login", json={"username": 42, "password": ["x"]})
        assert res.status_code == 401

    def test_current_user_without_session(self, client):
        res = client.get("/api/auth/user")
        assert res.status_code == 401
        assert res.json()["message"] == "Not authenticated"


class TestLogout:
    def test_logout_ends_session(self, auth_client):
        assert auth_client.get("/api/todos").status_code == 200
        res = auth_client.post("/api/auth/logout")
        assert res.status_code == 200
        assert res.json() == {"message": "Logged out successfully"}
        assert auth_client.get("/api/todos").status_code == 401

    def test_old_cookie_is_dead_after_logout(self, auth_client):
        token = auth_client.cookies.get(SESSION_COOKIE_NAME)
        auth_client.post("/api/auth/logout")
        res = auth_client.get("/api/auth/user", headers={"Cookie": f"{SESSION_COOKIE_NAME}={token}"})
        assert res.status_code == 401

    def test_logout_without_session(self, client):
        assert client.post("/api/auth/logout").status_code == 200
