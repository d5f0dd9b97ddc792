from datetime import datetime, timezone
from typing import Optional
from sqlalchemy.orm import declared_attr
from sqlmodel import Field, SQLModel
from parkes.utils.uuid import uuid7_str


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ParkesModel(SQLModel):
    @declared_attr  # type: ignore
    def __tablename__(cls) -> str:
        return cls.__name__


# Base for table models addressed by a public uuid. The integer id stays
# internal: it is what relation columns point at, and it is restricted
# from client payloads by default.
class ParkesIntIDModel(ParkesModel):
    id: Optional[int] = Field(
        default=None,
        primary_key=True,
        index=True,
        nullable=False,
    )
    uuid: str = Field(
        default_factory=uuid7_str,
        index=True,
        nullable=False,
        sa_column_kwargs={"unique": True},
    )
    updated_at: Optional[datetime] = Field(
        default_factory=utcnow, sa_column_kwargs={"onupdate": utcnow}
    )
    created_at: Optional[datetime] = Field(default_factory=utcnow)
