from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.auth.tokens import issue_access_token, now_utc
from app.db import Base, SessionLocal, engine
from app.models.enums import TaskPriority
from app.models.project import Project
from app.models.task import Task
from app.models.user import User
from app.rbac.membership import MemberEntry
from app.rbac.perms import Role

@dataclass
class SeedResult:
    users: dict[str, tuple[str, str, str]]
    project_id: str
    legacy_project_id: str
    task_id: str

SEED_USERS = {
    "owner": ("seed-owner", "owner@example.com", "Olivia Owner"),
    "lead": ("seed-lead", "lead@example.com", "Lee Lead"),
    "dev": ("seed-dev", "dev@example.com", "Dana Dev"),
    "viewer": ("seed-viewer", "viewer@example.com", "Vic Viewer"),
}

def get_or_create_user(db: Session, uid: str, email: str, display_name: str) -> User:
    u = db.get(User, uid)
    if u is None:
        u = User(id=uid, email=email.lower().strip(), display_name=display_name)
        db.add(u)
        db.flush()
    return u

def get_or_create_project(
    db: Session,
    key: str,
    name: str,
    owner_id: str,
    members: list[tuple[str, Role]] | None,
    member_ids: list[str],
) -> Project:
    p = db.scalar(select(Project).where(Project.key == key))
    if p is None:
        p = Project(
            key=key,
            name=name,
            description=f"{name} (seed data)",
            owner_id=owner_id,
            members=None
            if members is None
            else [MemberEntry(user_id=uid, role=role, joined_at=now_utc()).to_doc() for uid, role in members],
            member_ids=member_ids,
        )
        db.add(p)
        db.flush()
    return p

def get_or_create_task(db: Session, project_id: str, title: str, created_by: str, assigned_to: str | None) -> Task:
    t = db.scalar(select(Task).where(Task.project_id == project_id, Task.title == title))
    if t is None:
        t = Task(
            project_id=project_id,
            title=title,
            priority=TaskPriority.high,
            created_by=created_by,
            assigned_to=assigned_to,
            tags=["seed"],
        )
        db.add(t)
        db.flush()
    return t

def seed() -> SeedResult:
    Base.metadata.create_all(engine)
    db = SessionLocal()
    try:
        users = {k: get_or_create_user(db, *v) for k, v in SEED_USERS.items()}
        owner, lead, dev, viewer = users["owner"], users["lead"], users["dev"], users["viewer"]

        members = [(owner.id, Role.owner), (lead.id, Role.team_lead), (dev.id, Role.developer), (viewer.id, Role.viewer)]
        project = get_or_create_project(
            db, "SEED", "Seeded project", owner.id, members, [uid for uid, _ in members]
        )

        # pre-roles shape: member_ids only, resolved through legacy synthesis
        legacy = get_or_create_project(db, "LEGACY", "Legacy project", owner.id, None, [owner.id, dev.id])

        task = get_or_create_task(db, project.id, "Seeded task", created_by=owner.id, assigned_to=dev.id)

        db.commit()
        return SeedResult(users=dict(SEED_USERS), project_id=project.id, legacy_project_id=legacy.id, task_id=task.id)
    finally:
        db.close()

if __name__ == "__main__":
    r = seed()
    print("seed complete")
    print(f"project_id={r.project_id}")
    print(f"legacy_project_id={r.legacy_project_id}")
    print(f"task_id={r.task_id}")
    print("bearer tokens:")
    for name, (uid, email, display_name) in r.users.items():
        print(f"  {name:<7} {email:<22} {issue_access_token(uid, email=email, name=display_name)}")
