from datetime import datetime

from pydantic import BaseModel, EmailStr

from app.rbac.perms import Permission, Role

class AddMemberIn(BaseModel):
    role: Role | None = None

class InviteIn(BaseModel):
    email: EmailStr
    role: Role | None = None

class RoleChangeIn(BaseModel):
    role: Role

class MemberOut(BaseModel):
    user_id: str
    # raw string when the stored role is not a known role
    role: str
    role_display_name: str
    joined_at: datetime | None = None
    updated_at: datetime | None = None
    email: str | None = None
    display_name: str | None = None
    photo_url: str | None = None

class RoleOut(BaseModel):
    role: str | None

class CapabilitiesOut(BaseModel):
    project_id: str
    role: str | None
    is_owner: bool
    permissions: list[Permission]
    assignable_roles: list[Role]
