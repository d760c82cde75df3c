from app.auth.tokens import issue_access_token
from app.config import settings

def auth(uid: str, email: str | None = None, name: str | None = None) -> dict[str, str]:
    return {"authorization": f"bearer {issue_access_token(uid, email=email or f'{uid}@example.com', name=name)}"}

def test_missing_or_bad_token_is_unauthenticated(client, monkeypatch):
    monkeypatch.setattr(settings, "dev_bearer_token", None)

    r = client.get("/users/me")
    assert r.status_code == 401
    assert r.headers["www-authenticate"] == "Bearer"

    r = client.get("/users/me", headers={"authorization": "bearer not-a-jwt"})
    assert r.status_code == 401

    r = client.get("/projects", headers={"authorization": "bearer not-a-jwt"})
    assert r.status_code == 401

def test_dev_token_only_in_dev(client, monkeypatch):
    monkeypatch.setattr(settings, "dev_bearer_token", issue_access_token("u-dev", email="dev@example.com"))

    monkeypatch.setattr(settings, "app_env", "dev")
    r = client.get("/users/me")
    assert r.status_code == 200
    assert r.json()["id"] == "u-dev"

    monkeypatch.setattr(settings, "app_env", "prod")
    r = client.get("/users/me")
    assert r.status_code == 401

def test_me_creates_profile_once(client):
    r = client.get("/users/me", headers=auth("u1", email="Ann@Example.com", name="Ann"))
    assert r.status_code == 200
    assert r.json() == {"id": "u1", "email": "ann@example.com", "display_name": "Ann", "photo_url": None}

    # later token with a new email updates the stored one, display name is kept
    r = client.get("/users/me", headers=auth("u1", email="ann@new.example.com", name="Someone Else"))
    assert r.json()["email"] == "ann@new.example.com"
    assert r.json()["display_name"] == "Ann"

def test_ensure_profile(client):
    r = client.post(
        "/users/ensure-profile",
        json={"display_name": "Bo", "photo_url": "https://img.example.com/bo.png"},
        headers=auth("u2"),
    )
    assert r.status_code == 200, r.text
    assert r.json()["display_name"] == "Bo"
    assert r.json()["photo_url"] == "https://img.example.com/bo.png"

    r = client.post("/users/ensure-profile", headers=auth("u3"))
    assert r.status_code == 200
    assert r.json()["display_name"] == "Anonymous User"

def test_search_users(client, make_user):
    make_user("u1", email="alice@example.com", display_name="Alice")
    make_user("u2", email="albert@example.com", display_name="Albert")
    make_user("u3", email="carol@example.com", display_name="Carol")

    r = client.get("/users/search", params={"q": "AL"}, headers=auth("u1", email="alice@example.com"))
    assert r.status_code == 200
    assert [u["id"] for u in r.json()] == ["u2"]

    r = client.get("/users/search", params={"q": "c"}, headers=auth("u1", email="alice@example.com"))
    assert r.json() == []

    r = client.get("/users/search", params={"q": "carol"}, headers=auth("u1", email="alice@example.com"))
    assert [u["display_name"] for u in r.json()] == ["Carol"]

def test_users_by_ids(client, make_user):
    make_user("u1")
    make_user("u2")

    r = client.post("/users/by-ids", json={"ids": ["u2", "missing", "u1", "u2"]}, headers=auth("u1"))
    assert r.status_code == 200
    assert [u["id"] for u in r.json()] == ["u2", "u1"]

    r = client.post("/users/by-ids", json={"ids": []}, headers=auth("u1"))
    assert r.json() == []

def test_my_project_roles(client, make_project):
    a = make_project("u1", members=[("u1", "owner"), ("u2", "tester")], key="AAA")
    b = make_project("u3", members=None, member_ids=["u3", "u2"], key="BBB")
    make_project("u3", members=[("u3", "owner")], key="CCC")

    r = client.get("/users/roles", headers=auth("u2"))
    assert r.status_code == 200
    roles = {row["project_id"]: row["role"] for row in r.json()}
    assert roles == {a.id: "tester", b.id: "developer"}

    r = client.get("/users/roles", headers=auth("u1"))
    assert [(row["project_id"], row["role"]) for row in r.json()] == [(a.id, "owner")]

def test_role_catalogue(client):
    r = client.get("/roles", headers=auth("u1"))
    assert r.status_code == 200
    body = r.json()

    assert [o["value"] for o in body] == ["owner", "team_lead", "developer", "designer", "tester", "viewer"]
    assert [o["rank"] for o in body] == [6, 5, 4, 3, 2, 1]
    by_value = {o["value"]: o for o in body}
    assert by_value["owner"]["label"] == "Project Owner"
    assert by_value["viewer"]["permissions"] == ["view_project"]
    assert "delete_project" not in by_value["team_lead"]["permissions"]
    assert set(by_value["tester"]["permissions"]) == {"view_project", "create_tasks", "edit_tasks"}

def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"

def test_ready_reports_failed_probe(client, monkeypatch):
    import app.routes.health as health

    monkeypatch.setattr(health, "db_ping", lambda: True)
    r = client.get("/ready")
    assert r.status_code == 200
    assert r.json()["checks"] == {"db": True}

    monkeypatch.setattr(health, "db_ping", lambda: False)
    r = client.get("/ready")
    assert r.status_code == 503
    assert r.json()["status"] == "unready"

def test_search_treats_wildcards_literally(client, make_user):
    make_user("u1", email="alice@example.com", display_name="Alice")
    make_user("u2", email="bob@example.com", display_name="Bob")
    make_user("u3", email="pct_100%@example.com", display_name="Percent")

    r = client.get("/users/search", params={"q": "%_"}, headers=auth("u1", email="alice@example.com"))
    assert r.status_code == 200
    assert r.json() == []

    r = client.get("/users/search", params={"q": "_100%"}, headers=auth("u1", email="alice@example.com"))
    assert [u["id"] for u in r.json()] == ["u3"]
