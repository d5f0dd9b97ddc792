from typing import Any, Optional, Union
from pydantic import Field, ValidationInfo, field_validator
from parkes.config._base import Base


class Adapters(Base):
    DATABASE_USER: str = "postgres"
    DATABASE_PASSWORD: str = "postgres"
    DATABASE_HOST: str = "localhost"
    DATABASE_PORT: Union[int, str] = 5432
    DATABASE_NAME: str = "parkes"
    DATABASE_POOL_SIZE: int = 4
    DATABASE_MAX_OVERFLOW: int = 64
    DATABASE_ECHO: bool = False
    DATABASE_URI: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("DATABASE_URI", mode="before")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str], info: ValidationInfo) -> Any:
        if isinstance(v, str):
            return v
        values = info.data
        return (
            f"postgresql+asyncpg://{values.get('DATABASE_USER')}:"
            f"{values.get('DATABASE_PASSWORD')}@{values.get('DATABASE_HOST')}:"
            f"{values.get('DATABASE_PORT')}/{values.get('DATABASE_NAME') or ''}"
        )


adapters = Adapters()
