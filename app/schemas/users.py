from datetime import datetime

from pydantic import BaseModel, Field

class UserOut(BaseModel):
    id: str
    email: str
    display_name: str
    photo_url: str | None = None

class EnsureProfileIn(BaseModel):
    display_name: str | None = Field(default=None, max_length=200)
    photo_url: str | None = None

class UsersByIdsIn(BaseModel):
    ids: list[str] = Field(max_length=100)

class UserProjectRoleOut(BaseModel):
    project_id: str
    project_name: str
    role: str
    joined_at: datetime | None = None
    updated_at: datetime | None = None
