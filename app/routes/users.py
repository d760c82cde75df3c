from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from app.auth.deps import ensure_user, get_current_user, get_identity
from app.auth.tokens import Identity
from app.db import get_db
from app.models.user import User
from app.rbac.membership import normalize_members
from app.rbac.perms import role_value
from app.routes.projects import projects_for_member
from app.schemas.users import EnsureProfileIn, UserOut, UserProjectRoleOut, UsersByIdsIn

router = APIRouter(prefix="/users", tags=["users"])

SEARCH_LIMIT = 20

def user_out(u: User) -> UserOut:
    return UserOut(id=u.id, email=u.email, display_name=u.display_name, photo_url=u.photo_url)

@router.get("/me", response_model=UserOut)
def me(user: User = Depends(get_current_user)) -> UserOut:
    return user_out(user)

@router.post("/ensure-profile", response_model=UserOut)
def ensure_profile(
    payload: EnsureProfileIn | None = None,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
) -> UserOut:
    payload = payload or EnsureProfileIn()
    user = ensure_user(db, identity, display_name=payload.display_name, photo_url=payload.photo_url)
    return user_out(user)

@router.get("/roles", response_model=list[UserProjectRoleOut])
def my_project_roles(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[UserProjectRoleOut]:
    out: list[UserProjectRoleOut] = []
    for p in projects_for_member(db, user.id):
        for e in normalize_members(p):
            if e.user_id == user.id:
                out.append(
                    UserProjectRoleOut(
                        project_id=p.id,
                        project_name=p.name,
                        role=role_value(e.role),
                        joined_at=e.joined_at,
                        updated_at=e.updated_at,
                    )
                )
                break
    return out

@router.get("/search", response_model=list[UserOut])
def search_users(
    q: str = Query(default=""),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[UserOut]:
    term = q.strip().lower()
    if len(term) < 2:
        return []

    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    pattern = f"%{escaped}%"
    stmt = (
        select(User)
        .where(User.id != user.id)
        .where(
            or_(
                func.lower(User.email).like(pattern, escape="\\"),
                func.lower(User.display_name).like(pattern, escape="\\"),
            )
        )
        .order_by(User.email)
        .limit(SEARCH_LIMIT)
    )
    return [user_out(u) for u in db.scalars(stmt).all()]

@router.post("/by-ids", response_model=list[UserOut])
def users_by_ids(
    payload: UsersByIdsIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[UserOut]:
    if not payload.ids:
        return []
    rows = db.scalars(select(User).where(User.id.in_(payload.ids))).all()
    by_id = {u.id: u for u in rows}
    return [user_out(by_id[i]) for i in dict.fromkeys(payload.ids) if i in by_id]
