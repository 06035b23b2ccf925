"""
API tests for authentication, sessions and the page gate.
"""

from healthapp.api.auth import verify_token
from healthapp.config import AUTH_COOKIE_NAME


def session_cookie(client):
    cookie = client.get_cookie(AUTH_COOKIE_NAME)
    return cookie.value if cookie else None


def register(client, **overrides):
    body = {"email": "a@b.com", "password": "secret1", "name": "A", "role": "patient"}
    body.update(overrides)
    return client.post("/api/auth/register", json=body)


# ── Register / me ────────────────────────────────────────────────────

def test_register_then_me(client):
    resp = register(client)
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["success"] is True
    assert data["user"]["role"] == "patient"
    assert data["user"]["email"] == "a@b.com"
    assert "password" not in str(data)

    set_cookie = resp.headers["Set-Cookie"]
    assert set_cookie.startswith(f"{AUTH_COOKIE_NAME}=")
    assert "HttpOnly" in set_cookie
    assert "SameSite=Lax" in set_cookie
    assert "Path=/" in set_cookie
    assert "Max-Age=604800" in set_cookie

    me = client.get("/api/auth/me")
    assert me.status_code == 200
    assert me.get_json()["user"]["id"] == data["user"]["id"]
    assert me.get_json()["user"]["role"] == "patient"


def test_me_without_cookie_is_401(client):
    resp = client.get("/api/auth/me")
    assert resp.status_code == 401
    assert resp.get_json() == {"error": "Unauthorized"}


def test_me_with_garbage_cookie_is_401(client):
    client.set_cookie(AUTH_COOKIE_NAME, "not-a-token")
    assert client.get("/api/auth/me").status_code == 401


def test_register_missing_fields(client):
    resp = client.post("/api/auth/register", json={"email": "a@b.com"})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Missing required fields"


def test_register_duplicate_email(client):
    register(client)
    resp = register(client, name="Other")
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "User already exists"


def test_register_cannot_self_assign_admin(client):
    resp = register(client, role="admin")
    assert resp.status_code == 400
    assert session_cookie(client) is None


def test_register_non_json_body(client):
    resp = client.post("/api/auth/register", data="x", content_type="text/plain")
    assert resp.status_code == 400


# ── Login ────────────────────────────────────────────────────────────

def test_login_success_sets_cookie(client, make_user):
    user = make_user("doctor", email="doc@x.com", password="pw12345")
    resp = client.post("/api/auth/login", json={"email": "doc@x.com", "password": "pw12345"})
    assert resp.status_code == 200
    assert resp.get_json()["user"] == {
        "id": str(user["id"]), "email": "doc@x.com", "name": user["name"], "role": "doctor",
    }
    principal = verify_token(session_cookie(client))
    assert principal.subject_id == str(user["id"])
    assert principal.role == "doctor"


def test_login_bad_credentials_are_indistinguishable(client, make_user):
    make_user("patient", email="p@x.com", password="right")
    wrong_pw = client.post("/api/auth/login", json={"email": "p@x.com", "password": "wrong"})
    no_user = client.post("/api/auth/login", json={"email": "nobody@x.com", "password": "wrong"})
    assert wrong_pw.status_code == no_user.status_code == 401
    assert wrong_pw.get_json() == no_user.get_json() == {"error": "Invalid credentials"}


def test_login_missing_fields(client):
    resp = client.post("/api/auth/login", json={"email": "p@x.com"})
    assert resp.status_code == 400


# ── Logout ───────────────────────────────────────────────────────────

def test_logout_clears_cookie_but_does_not_revoke_token(client):
    register(client)
    captured = session_cookie(client)
    assert captured

    resp = client.post("/api/auth/logout")
    assert resp.status_code == 200
    assert session_cookie(client) is None
    assert client.get("/api/auth/me").status_code == 401

    # Known limitation: a captured token keeps working until it expires.
    assert verify_token(captured) is not None
    client.set_cookie(AUTH_COOKIE_NAME, captured)
    assert client.get("/api/auth/me").status_code == 200


# ── Page gate ────────────────────────────────────────────────────────

def test_public_pages_need_no_session(client):
    assert client.get("/").status_code == 200
    assert client.get("/auth/login").status_code == 200
    assert client.get("/auth/register").status_code == 200


def test_page_without_session_redirects_to_login(client):
    resp = client.get("/patient/dashboard")
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/auth/login")


def test_page_with_invalid_session_redirects_to_login(client):
    client.set_cookie(AUTH_COOKIE_NAME, "tampered.token.value")
    resp = client.get("/doctor/dashboard")
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/auth/login")


def test_doctor_in_admin_area_redirected_to_doctor_dashboard(client, make_user, login_as):
    login_as(make_user("doctor"))
    resp = client.get("/admin/dashboard")
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/doctor/dashboard")


def test_own_dashboard_served(client, make_user, login_as):
    user = login_as(make_user("patient"))
    resp = client.get("/patient/dashboard")
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["area"] == "/patient"
    assert data["user"]["id"] == str(user["id"])
    assert data["summary"]["appointments"] == 0


def test_unknown_page_in_own_area_is_404(client, make_user, login_as):
    login_as(make_user("pharmacist"))
    assert client.get("/pharmacist/nowhere").status_code == 404


def test_api_paths_use_401_not_redirect(client, make_user, login_as):
    login_as(make_user("doctor"))
    resp = client.get("/api/admin/stats")
    assert resp.status_code == 401
    assert resp.get_json() == {"error": "Unauthorized"}


def test_health_endpoint(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.get_json()["checks"]["database"] is True


def test_me_for_deleted_user_is_404(client, engine, make_user, login_as):
    from healthapp import store
    from healthapp.database import users

    user = login_as(make_user("patient"))
    store.delete_rows(engine, users, id=user["id"])
    resp = client.get("/api/auth/me")
    assert resp.status_code == 404
    assert resp.get_json() == {"error": "User not found"}


# ── Field types ──────────────────────────────────────────────────────

def test_login_with_numeric_password_is_400(client, make_user):
    make_user("patient", email="p@x.com", password="12345")
    resp = client.post("/api/auth/login", json={"email": "p@x.com", "password": 12345})
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Invalid field type"}


def test_login_with_non_string_email_is_400(client):
    resp = client.post("/api/auth/login", json={"email": ["p@x.com"], "password": "pw"})
    assert resp.status_code == 400


def test_register_rejects_non_string_fields(client):
    for field, value in [("password", 12345), ("name", {"first": "A"}), ("email", 7), ("role", ["patient"])]:
        resp = register(client, **{field: value})
        assert resp.status_code == 400, field
        assert session_cookie(client) is None
