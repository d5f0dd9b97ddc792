from parkes.repositories.rest_handler import RestHandler, merge_includes
from parkes.repositories.pagination import build_find_all_query, format_paginate, paginate

__all__ = [
    "RestHandler",
    "build_find_all_query",
    "format_paginate",
    "merge_includes",
    "paginate",
]
