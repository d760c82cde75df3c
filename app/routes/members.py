from fastapi import APIRouter, Body, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.auth.deps import get_current_user
from app.config import settings
from app.db import get_db
from app.models.user import User
from app.ratelimit import rate_limit
from app.rbac.deps import ProjectContext, get_locked_project, load_project, require_perm
from app.rbac.errors import NotFound
from app.rbac.hierarchy import get_assignable_roles
from app.rbac.membership import (
    MemberEntry,
    add_member,
    change_role,
    normalize_members,
    remove_member,
    require_permission,
    resolve_role,
)
from app.rbac.perms import Permission, Role, can_perform_action, get_role_display_name, role_value
from app.schemas.members import (
    AddMemberIn,
    CapabilitiesOut,
    InviteIn,
    MemberOut,
    RoleChangeIn,
    RoleOut,
)

router = APIRouter(prefix="/projects/{project_id}", tags=["members"])

ME = "me"

def member_out(entry: MemberEntry, user: User | None = None) -> MemberOut:
    return MemberOut(
        user_id=entry.user_id,
        role=role_value(entry.role),
        role_display_name=get_role_display_name(entry.role),
        joined_at=entry.joined_at,
        updated_at=entry.updated_at,
        email=user.email if user else None,
        display_name=user.display_name if user else None,
        photo_url=user.photo_url if user else None,
    )

def _users_by_id(db: Session, ids: list[str]) -> dict[str, User]:
    if not ids:
        return {}
    return {u.id: u for u in db.scalars(select(User).where(User.id.in_(ids))).all()}

@router.get("/members", response_model=list[MemberOut])
def list_members(
    ctx: ProjectContext = Depends(require_perm(Permission.view_project)),
    db: Session = Depends(get_db),
) -> list[MemberOut]:
    entries = normalize_members(ctx.project)
    users = _users_by_id(db, [e.user_id for e in entries])
    return [member_out(e, users.get(e.user_id)) for e in entries]

@router.get("/capabilities", response_model=CapabilitiesOut)
def my_capabilities(
    ctx: ProjectContext = Depends(require_perm(Permission.view_project)),
) -> CapabilitiesOut:
    return CapabilitiesOut(
        project_id=ctx.project.id,
        role=role_value(ctx.role),
        is_owner=ctx.role == Role.owner,
        permissions=[p for p in Permission if can_perform_action(ctx.role, p)],
        assignable_roles=get_assignable_roles(ctx.role),
    )

@router.post("/members/{member_id}", response_model=MemberOut)
def add_project_member(
    member_id: str,
    payload: AddMemberIn | None = Body(default=None),
    ctx: ProjectContext = Depends(get_locked_project),
    db: Session = Depends(get_db),
) -> MemberOut:
    entry = add_member(ctx.project, ctx.user.id, member_id, payload.role if payload else None)
    db.commit()
    return member_out(entry, db.get(User, member_id))

@router.delete("/members/{member_id}")
def remove_project_member(
    member_id: str,
    ctx: ProjectContext = Depends(get_locked_project),
    db: Session = Depends(get_db),
) -> dict:
    remove_member(ctx.project, ctx.user.id, member_id)
    db.commit()
    return {"removed": True, "user_id": member_id}

@router.patch("/members/{member_id}/role", response_model=MemberOut)
def update_member_role(
    member_id: str,
    payload: RoleChangeIn,
    ctx: ProjectContext = Depends(get_locked_project),
    db: Session = Depends(get_db),
) -> MemberOut:
    target_id = ctx.user.id if member_id == ME else member_id
    entry = change_role(ctx.project, ctx.user.id, target_id, payload.role)
    db.commit()
    return member_out(entry, db.get(User, target_id))

@router.post("/invite", response_model=MemberOut)
def invite_member(
    payload: InviteIn,
    ctx: ProjectContext = Depends(get_locked_project),
    db: Session = Depends(get_db),
    _: None = Depends(
        rate_limit(
            "projects:invite",
            limit_per_window=settings.rate_limit_invite_per_min,
            window_seconds=60,
        )
    ),
) -> MemberOut:
    # permission first so non-members cannot probe which emails exist
    require_permission(ctx.project, ctx.user.id, Permission.manage_members)

    email = payload.email.lower().strip()
    invited = db.scalar(select(User).where(User.email == email))
    if invited is None:
        raise NotFound("user not found")

    entry = add_member(ctx.project, ctx.user.id, invited.id, payload.role)
    db.commit()
    return member_out(entry, invited)

@router.get("/members/{member_id}/role", response_model=RoleOut)
def get_member_role(
    project_id: str,
    member_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> RoleOut:
    project = load_project(db, project_id)
    target_id = user.id if member_id == ME else member_id

    # anyone may ask for their own role; other members' roles need view access
    if target_id != user.id:
        require_permission(project, user.id, Permission.view_project)
    return RoleOut(role=role_value(resolve_role(project, target_id)))
