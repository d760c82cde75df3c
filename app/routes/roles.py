from fastapi import APIRouter, Depends

from app.auth.deps import get_current_user
from app.models.user import User
from app.rbac.perms import Permission, can_perform_action, get_role_options
from app.schemas.roles import RoleOptionOut

router = APIRouter(prefix="/roles", tags=["roles"])

# clients gate their UI off this table rather than keeping their own copy
@router.get("", response_model=list[RoleOptionOut])
def list_roles(user: User = Depends(get_current_user)) -> list[RoleOptionOut]:
    return [
        RoleOptionOut(
            value=o["value"],
            label=o["label"],
            description=o["description"],
            rank=o["rank"],
            permissions=[p for p in Permission if can_perform_action(o["value"], p)],
        )
        for o in get_role_options()
    ]
