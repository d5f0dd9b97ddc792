from typing import Any, Generic, List, Optional, TypeVar
from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


# The page info envelope for an index query. The url fields hold None when
# there is no previous or next page.
class PaginationMeta(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: int
    pages: int
    prev_url: Optional[str] = Field(default=None, alias="prevUrl")
    next_url: Optional[str] = Field(default=None, alias="nextUrl")
    offset: int
    limit: int


class Page(BaseModel, Generic[T]):
    # The result of an index query, pagination is None when skipped
    model_config = ConfigDict(arbitrary_types_allowed=True)

    collection: List[Any] = []
    pagination: Optional[PaginationMeta] = None

    def __len__(self) -> int:
        return len(self.collection)


class ErrorObject(BaseModel):
    status: int
    code: str
    message: str


class ErrorResponse(BaseModel):
    errors: List[ErrorObject]
