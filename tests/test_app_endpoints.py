import yaml

from authgate.auth.session import COOKIE_NAME
from authgate.domain import Role
from authgate.exceptions import StoreError
from authgate.services.account_service import register


def _seed(app_module, role=Role.STAFF, email="a@x.com", password="secret1", name="Ann"):
    return register(app_module.app.state.store, name=name, email=email, password=password, role=role)


def _login(client, email="a@x.com", password="secret1"):
    return client.post("/login", data={"email": email, "password": password}, follow_redirects=False)


def test_protected_routes_redirect_to_login_when_anonymous(client):
    for path in ("/", "/admin", "/staff"):
        r = client.get(path, follow_redirects=False)
        assert r.status_code == 303
        assert r.headers["location"] == "/login"


def test_login_and_register_pages_render_for_anonymous(client):
    assert client.get("/login").status_code == 200
    assert client.get("/register").status_code == 200


def test_staff_login_scenario(client, app_module):
    _seed(app_module)

    r = _login(client)
    assert r.status_code == 303
    assert r.headers["location"] == "/staff"
    assert client.cookies.get(COOKIE_NAME)

    r = client.get("/staff")
    assert r.status_code == 200
    assert "Staff area" in r.text

    r = client.get("/")
    assert r.status_code == 200
    assert "Ann" in r.text

    r = client.get("/admin", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/login"


def test_admin_reaches_admin_and_staff_areas(client, app_module):
    _seed(app_module, role=Role.ADMIN, email="root@x.com")
    assert _login(client, email="root@x.com").headers["location"] == "/admin"
    assert client.get("/admin").status_code == 200
    assert client.get("/staff").status_code == 200


def test_guest_lands_on_home(client, app_module):
    _seed(app_module, role=Role.GUEST, email="g@x.com")
    assert _login(client, email="g@x.com").headers["location"] == "/"
    assert client.get("/staff", follow_redirects=False).status_code == 303


def test_bad_credentials_show_one_generic_message(client, app_module):
    _seed(app_module)
    wrong = _login(client, password="wrong")
    unknown = _login(client, email="nobody@x.com")
    for r in (wrong, unknown):
        assert r.status_code == 200
        assert "Invalid email or password" in r.text
    assert not client.cookies.get(COOKIE_NAME)


def test_authenticated_user_is_sent_away_from_login_and_register(client, app_module):
    _seed(app_module)
    _login(client)
    for path in ("/login", "/register"):
        r = client.get(path, follow_redirects=False)
        assert r.status_code == 303
        assert r.headers["location"] == "/staff"


def test_logout_ends_session(client, app_module):
    _seed(app_module)
    _login(client)
    ref = client.cookies.get(COOKIE_NAME)

    r = client.request("DELETE", "/logout", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/login"
    assert app_module.app.state.sessions.resolve(ref) is None

    assert client.get("/", follow_redirects=False).status_code == 303


def test_logout_via_form_post_without_session(client):
    r = client.post("/logout", data={"_method": "DELETE"}, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/login"


def test_register_creates_guest_and_ignores_submitted_role(client, app_module, users_path):
    r = client.post(
        "/register",
        data={"name": "Eve", "email": "eve@x.com", "password": "secret1", "role": "admin"},
        follow_redirects=False,
    )
    assert r.status_code == 303
    assert r.headers["location"] == "/login"

    raw = yaml.safe_load(users_path.read_text(encoding="utf-8"))
    (entry,) = raw["users"].values()
    assert entry["email"] == "eve@x.com"
    assert entry["role"] == "guest"
    assert entry["password_hash"] != "secret1"

    assert _login(client, email="eve@x.com").headers["location"] == "/"


def test_register_rejects_invalid_and_duplicate(client, app_module):
    r = client.post("/register", data={"name": "", "email": "bad", "password": "1"})
    assert r.status_code == 400
    assert "Name is required" in r.text

    _seed(app_module)
    r = client.post("/register", data={"name": "Ann", "email": "a@x.com", "password": "secret1"})
    assert r.status_code == 409
    assert "Email already registered" in r.text


def test_store_failure_is_a_generic_503(client, app_module, monkeypatch):
    def _boom(email):
        raise StoreError("disk on fire")

    monkeypatch.setattr(app_module.app.state.store, "find_by_email", _boom)
    r = _login(client)
    assert r.status_code == 503
    assert "disk on fire" not in r.text


def test_logout_drops_cookie_even_when_session_backend_fails(client, app_module, monkeypatch):
    _seed(app_module)
    _login(client)
    assert client.cookies.get(COOKIE_NAME)

    def _boom(session_id):
        raise StoreError("redis down")

    monkeypatch.setattr(app_module.app.state.sessions.backend, "delete", _boom)
    r = client.request("DELETE", "/logout", follow_redirects=False)
    assert r.status_code == 503
    assert "redis down" not in r.text
    assert not client.cookies.get(COOKIE_NAME)


def test_app_store_uses_configured_users_file(app_module, users_path):
    assert app_module.app.state.store.path == users_path.resolve()
