from parkes.schemas.response import PaginationMeta, Page, ErrorObject, ErrorResponse
from parkes.schemas.options import (
    DEFAULT_RESTRICTED,
    ForeignKey,
    Include,
    ParkesOptions,
    ScopeModel,
)

__all__ = [
    "DEFAULT_RESTRICTED",
    "ErrorObject",
    "ErrorResponse",
    "ForeignKey",
    "Include",
    "Page",
    "PaginationMeta",
    "ParkesOptions",
    "ScopeModel",
]
