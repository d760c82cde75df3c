import uuid

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

from app.db import Base

# JSONB on postgres so member_ids supports containment queries
JSONDoc = sa.JSON().with_variant(JSONB(), "postgresql")

def new_id() -> str:
    return uuid.uuid4().hex

__all__ = ["Base", "JSONDoc", "new_id"]
