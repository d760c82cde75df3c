from dataclasses import dataclass

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.auth.deps import get_current_user
from app.db import get_db
from app.models.project import Project
from app.models.user import User
from app.rbac.errors import NotFound
from app.rbac.membership import require_permission, resolve_role
from app.rbac.perms import Permission

READ_ONLY_PERMS = {Permission.view_project}

@dataclass
class ProjectContext:
    project: Project
    user: User
    role: str | None

def load_project(db: Session, project_id: str, for_update: bool = False) -> Project:
    # always re-read: authorization must never see a cached membership list
    stmt = select(Project).where(Project.id == project_id).execution_options(populate_existing=True)
    if for_update:
        stmt = stmt.with_for_update()

    project = db.scalar(stmt)
    if project is None:
        raise NotFound("project not found")
    return project

def get_locked_project(
    project_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ProjectContext:
    # membership mutations check their own permission inside the lock
    project = load_project(db, project_id, for_update=True)
    return ProjectContext(project=project, user=user, role=resolve_role(project, user.id))

def require_perm(permission: Permission):
    if not isinstance(permission, Permission):
        raise RuntimeError(f"unknown permission: {permission}")
    for_update = permission not in READ_ONLY_PERMS

    def _checker(
        project_id: str,
        user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
    ) -> ProjectContext:
        project = load_project(db, project_id, for_update=for_update)
        _, role = require_permission(project, user.id, permission)
        return ProjectContext(project=project, user=user, role=role)

    return _checker
