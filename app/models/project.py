from datetime import datetime

from sqlalchemy import DateTime, Enum, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, JSONDoc, new_id
from app.models.enums import ProjectStatus

class Project(Base):
    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text(), nullable=False, default="")
    key: Mapped[str] = mapped_column(String(10), unique=True, nullable=False)
    status: Mapped[ProjectStatus] = mapped_column(
        Enum(ProjectStatus, name="project_status"), nullable=False, default=ProjectStatus.active
    )

    owner_id: Mapped[str] = mapped_column(String(128), index=True, nullable=False)

    # denormalized pair, always written together:
    #   members: [{"user_id", "role", "joined_at", "updated_at"}], null on legacy rows
    #   member_ids: [user_id, ...]
    members: Mapped[list | None] = mapped_column(JSONDoc, nullable=True)
    member_ids: Mapped[list] = mapped_column(JSONDoc, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
