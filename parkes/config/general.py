import json
from typing import Annotated, List, Union
from pydantic import AnyHttpUrl, field_validator
from pydantic_settings import NoDecode
from parkes.config._base import Base


class General(Base):
    PROJECT_NAME: str = "parkes"
    API_VERSION: str = "0.1.0"
    # Column used by the API to identify resources
    RESOURCE_ID_COLUMN: str = "uuid"
    DEFAULT_PAGE_LENGTH: int = 100
    # Comma separated in the environment
    HTTP_CORS_ORIGINS: Annotated[List[AnyHttpUrl], NoDecode] = []

    @field_validator("HTTP_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if isinstance(v, str) and v.startswith("["):
            return json.loads(v)
        if isinstance(v, str):
            return [i.strip() for i in v.split(",") if i.strip()]
        return v

    @field_validator("DEFAULT_PAGE_LENGTH")
    @classmethod
    def validate_page_length(cls, v: int) -> int:
        if v < 1:
            raise ValueError("DEFAULT_PAGE_LENGTH must be a positive integer")
        return v


general = General()
