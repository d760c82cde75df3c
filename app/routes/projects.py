from fastapi import APIRouter, Depends, HTTPException
from loguru import logger
from sqlalchemy import cast, delete, select
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Session

from app.auth.deps import get_current_user
from app.auth.tokens import now_utc
from app.db import get_db
from app.models.enums import ProjectStatus
from app.models.project import Project
from app.models.task import Task
from app.models.user import User
from app.rbac.deps import ProjectContext, require_perm
from app.rbac.membership import MemberEntry
from app.rbac.perms import Permission, Role
from app.schemas.projects import ProjectCreateIn, ProjectOut, ProjectUpdateIn

router = APIRouter(prefix="/projects", tags=["projects"])

def project_out(p: Project) -> ProjectOut:
    return ProjectOut(
        id=p.id,
        name=p.name,
        description=p.description,
        key=p.key,
        status=p.status,
        owner_id=p.owner_id,
        member_ids=list(p.member_ids or []),
        created_at=p.created_at,
        updated_at=p.updated_at,
    )

def projects_for_member(db: Session, user_id: str) -> list[Project]:
    q = select(Project).order_by(Project.created_at.desc())
    if db.get_bind().dialect.name == "postgresql":
        return list(db.scalars(q.where(cast(Project.member_ids, JSONB).contains([user_id]))).all())

    # no json containment operator elsewhere
    return [p for p in db.scalars(q).all() if user_id in (p.member_ids or [])]

@router.post("", response_model=ProjectOut)
def create_project(
    payload: ProjectCreateIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ProjectOut:
    existing = db.scalar(select(Project).where(Project.key == payload.key))
    if existing is not None:
        raise HTTPException(status_code=400, detail="project key already exists")

    # creator is the sole member, as owner
    owner = MemberEntry(user_id=user.id, role=Role.owner, joined_at=now_utc())
    p = Project(
        name=payload.name,
        description=payload.description,
        key=payload.key,
        status=ProjectStatus.active,
        owner_id=user.id,
        members=[owner.to_doc()],
        member_ids=[user.id],
    )
    db.add(p)
    db.commit()
    db.refresh(p)

    logger.info(f"User {user.id} created project {p.id} ({p.key})")
    return project_out(p)

@router.get("", response_model=list[ProjectOut])
def list_projects(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[ProjectOut]:
    return [project_out(p) for p in projects_for_member(db, user.id)]

@router.get("/{project_id}", response_model=ProjectOut)
def get_project(ctx: ProjectContext = Depends(require_perm(Permission.view_project))) -> ProjectOut:
    return project_out(ctx.project)

@router.patch("/{project_id}", response_model=ProjectOut)
def update_project(
    payload: ProjectUpdateIn,
    ctx: ProjectContext = Depends(require_perm(Permission.edit_project)),
    db: Session = Depends(get_db),
) -> ProjectOut:
    p = ctx.project
    if payload.name is not None:
        p.name = payload.name
    if payload.description is not None:
        p.description = payload.description
    if payload.status is not None:
        p.status = payload.status

    db.commit()
    db.refresh(p)
    return project_out(p)

@router.delete("/{project_id}")
def delete_project(
    ctx: ProjectContext = Depends(require_perm(Permission.delete_project)),
    db: Session = Depends(get_db),
) -> dict:
    p = ctx.project
    db.execute(delete(Task).where(Task.project_id == p.id))
    db.delete(p)
    db.commit()

    logger.info(f"User {ctx.user.id} deleted project {p.id}")
    return {"deleted": True}
