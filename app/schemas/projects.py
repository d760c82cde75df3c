from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from app.models.enums import ProjectStatus

class ProjectCreateIn(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    key: str = Field(min_length=2, max_length=10)

    @field_validator("key")
    @classmethod
    def _key_letters(cls, v: str) -> str:
        v = v.strip().upper()
        if not v.isalpha() or not v.isascii():
            raise ValueError("key must be 2-10 letters")
        return v

class ProjectUpdateIn(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    status: ProjectStatus | None = None

class ProjectOut(BaseModel):
    id: str
    name: str
    description: str
    key: str
    status: ProjectStatus
    owner_id: str
    member_ids: list[str]
    created_at: datetime | None = None
    updated_at: datetime | None = None
