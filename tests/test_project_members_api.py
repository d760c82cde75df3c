from sqlalchemy.orm import Session

from app.auth.tokens import issue_access_token
from app.models.project import Project

def auth(uid: str, email: str | None = None) -> dict[str, str]:
    return {"authorization": f"bearer {issue_access_token(uid, email=email or f'{uid}@example.com')}"}

def create_project(client, uid: str, key: str = "AGILE") -> dict:
    r = client.post(
        "/projects",
        json={"name": "AgileFlow", "description": "planning", "key": key},
        headers=auth(uid),
    )
    assert r.status_code == 200, r.text
    return r.json()

def role_of(client, project_id: str, caller: str, member: str = "me") -> str | None:
    r = client.get(f"/projects/{project_id}/members/{member}/role", headers=auth(caller))
    assert r.status_code == 200, r.text
    return r.json()["role"]

def test_creator_becomes_sole_owner(client):
    p = create_project(client, "u1", key="abc")

    assert p["key"] == "ABC"
    assert p["owner_id"] == "u1"
    assert p["member_ids"] == ["u1"]
    assert role_of(client, p["id"], "u1") == "owner"

    r = client.get(f"/projects/{p['id']}/members", headers=auth("u1"))
    assert r.status_code == 200
    members = r.json()
    assert [(m["user_id"], m["role"]) for m in members] == [("u1", "owner")]
    assert members[0]["role_display_name"] == "Project Owner"
    assert members[0]["email"] == "u1@example.com"

def test_duplicate_key_rejected(client):
    create_project(client, "u1", key="DUP")
    r = client.post(
        "/projects",
        json={"name": "again", "description": "x", "key": "dup"},
        headers=auth("u2"),
    )
    assert r.status_code == 400

def test_team_lead_adds_viewer(client, make_project):
    p = make_project("u1", members=[("u1", "owner"), ("u2", "team_lead")])

    r = client.post(f"/projects/{p.id}/members/u3", json={"role": "viewer"}, headers=auth("u2"))
    assert r.status_code == 200, r.text
    assert r.json()["role"] == "viewer"

    r = client.get(f"/projects/{p.id}", headers=auth("u2"))
    assert r.json()["member_ids"] == ["u1", "u2", "u3"]
    assert role_of(client, p.id, "u2", member="u3") == "viewer"
    assert role_of(client, p.id, "u3") == "viewer"

def test_add_without_body_defaults_to_developer(client, make_project):
    p = make_project("u1", members=[("u1", "owner")])

    r = client.post(f"/projects/{p.id}/members/u2", headers=auth("u1"))
    assert r.status_code == 200, r.text
    assert r.json()["role"] == "developer"

def test_developer_cannot_add(client, make_project):
    p = make_project("u1", members=[("u1", "owner"), ("u2", "developer")])

    r = client.post(f"/projects/{p.id}/members/u3", headers=auth("u2"))
    assert r.status_code == 403

def test_add_existing_member_conflicts(client, make_project):
    p = make_project("u1", members=[("u1", "owner"), ("u2", "developer")])

    r = client.post(f"/projects/{p.id}/members/u2", json={"role": "viewer"}, headers=auth("u1"))
    assert r.status_code == 409

def test_owner_cannot_be_removed_or_demoted(client, make_project):
    p = make_project("u1", members=[("u1", "owner"), ("u2", "team_lead")])

    r = client.delete(f"/projects/{p.id}/members/u1", headers=auth("u2"))
    assert r.status_code == 400
    assert "owner" in r.json()["detail"]

    r = client.patch(f"/projects/{p.id}/members/u1/role", json={"role": "viewer"}, headers=auth("u2"))
    assert r.status_code == 400

    r = client.patch(f"/projects/{p.id}/members/me/role", json={"role": "developer"}, headers=auth("u1"))
    assert r.status_code == 400

    assert role_of(client, p.id, "u1") == "owner"

def test_change_role(client, make_project, db_session: Session):
    p = make_project("u1", members=[("u1", "owner"), ("u2", "developer"), ("u3", "viewer")])

    r = client.patch(f"/projects/{p.id}/members/u3/role", json={"role": "tester"}, headers=auth("u1"))
    assert r.status_code == 200, r.text
    assert r.json()["role"] == "tester"
    assert r.json()["updated_at"] is not None

    # developers hold no manage_roles
    r = client.patch(f"/projects/{p.id}/members/u3/role", json={"role": "viewer"}, headers=auth("u2"))
    assert r.status_code == 403

    r = client.patch(f"/projects/{p.id}/members/u9/role", json={"role": "viewer"}, headers=auth("u1"))
    assert r.status_code == 404

    r = client.patch(f"/projects/{p.id}/members/u3/role", json={"role": "owner"}, headers=auth("u1"))
    assert r.status_code == 400

    r = client.patch(f"/projects/{p.id}/members/u3/role", json={"role": "admin"}, headers=auth("u1"))
    assert r.status_code == 422

    db_session.expire_all()
    row = db_session.get(Project, p.id)
    assert [(m["user_id"], m["role"]) for m in row.members] == [
        ("u1", "owner"),
        ("u2", "developer"),
        ("u3", "tester"),
    ]

def test_remove_member(client, make_project):
    p = make_project("u1", members=[("u1", "owner"), ("u2", "team_lead"), ("u3", "developer")])

    r = client.delete(f"/projects/{p.id}/members/u3", headers=auth("u2"))
    assert r.status_code == 200, r.text

    r = client.get(f"/projects/{p.id}", headers=auth("u1"))
    assert r.json()["member_ids"] == ["u1", "u2"]

    # removed user loses access and the project leaves their list
    r = client.get(f"/projects/{p.id}", headers=auth("u3"))
    assert r.status_code == 403
    r = client.get("/projects", headers=auth("u3"))
    assert r.json() == []

    r = client.delete(f"/projects/{p.id}/members/u3", headers=auth("u2"))
    assert r.status_code == 404

def test_invite_by_email(client, make_project, make_user):
    p = make_project("u1", members=[("u1", "owner"), ("u2", "developer")])
    make_user("u4", email="dana@example.com", display_name="Dana")

    r = client.post(f"/projects/{p.id}/invite", json={"email": "DANA@example.com", "role": "designer"}, headers=auth("u1"))
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["user_id"] == "u4"
    assert body["role"] == "designer"
    assert body["display_name"] == "Dana"

    r = client.post(f"/projects/{p.id}/invite", json={"email": "dana@example.com"}, headers=auth("u1"))
    assert r.status_code == 409

    r = client.post(f"/projects/{p.id}/invite", json={"email": "nobody@example.com"}, headers=auth("u1"))
    assert r.status_code == 404

    # permission is checked before the email lookup
    r = client.post(f"/projects/{p.id}/invite", json={"email": "nobody@example.com"}, headers=auth("u2"))
    assert r.status_code == 403

def test_role_lookup_rules(client, make_project):
    p = make_project("u1", members=[("u1", "owner"), ("u2", "viewer")])

    assert role_of(client, p.id, "u2") == "viewer"
    assert role_of(client, p.id, "u2", member="u1") == "owner"

    # outsiders may ask about themselves only
    assert role_of(client, p.id, "u9") is None
    r = client.get(f"/projects/{p.id}/members/u1/role", headers=auth("u9"))
    assert r.status_code == 403

    r = client.get("/projects/missing/members/me/role", headers=auth("u1"))
    assert r.status_code == 404

def test_legacy_project(client, make_project, db_session: Session):
    p = make_project("u1", members=None, member_ids=["u1", "u2"], key="OLD")

    assert role_of(client, p.id, "u2") == "developer"
    assert role_of(client, p.id, "u1") == "owner"

    r = client.get(f"/projects/{p.id}/members", headers=auth("u2"))
    assert [(m["user_id"], m["role"]) for m in r.json()] == [("u1", "owner"), ("u2", "developer")]

    # reads never rewrite the stored shape
    db_session.expire_all()
    assert db_session.get(Project, p.id).members is None

    r = client.post(f"/projects/{p.id}/members/u3", json={"role": "tester"}, headers=auth("u1"))
    assert r.status_code == 200, r.text

    db_session.expire_all()
    row = db_session.get(Project, p.id)
    assert [m["user_id"] for m in row.members] == row.member_ids == ["u1", "u2", "u3"]

def test_capabilities(client, make_project):
    p = make_project("u1", members=[("u1", "owner"), ("u2", "team_lead"), ("u3", "viewer")])

    r = client.get(f"/projects/{p.id}/capabilities", headers=auth("u2"))
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["role"] == "team_lead"
    assert body["is_owner"] is False
    assert "manage_roles" in body["permissions"]
    assert "delete_project" not in body["permissions"]
    assert body["assignable_roles"] == ["developer", "designer", "tester", "viewer"]

    r = client.get(f"/projects/{p.id}/capabilities", headers=auth("u3"))
    assert r.json()["permissions"] == ["view_project"]
    assert r.json()["assignable_roles"] == []

    r = client.get(f"/projects/{p.id}/capabilities", headers=auth("u1"))
    assert r.json()["is_owner"] is True
    assert len(r.json()["permissions"]) == 11

    r = client.get(f"/projects/{p.id}/capabilities", headers=auth("u9"))
    assert r.status_code == 403
