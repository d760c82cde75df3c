from pydantic import BaseModel

from app.rbac.perms import Permission, Role

class RoleOptionOut(BaseModel):
    value: Role
    label: str
    description: str
    rank: int
    permissions: list[Permission]
