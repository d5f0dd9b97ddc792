from parkes.adapters.database import DatabaseAdapter
from parkes.context import Context
from parkes.controllers.parkes import ParkesController
from parkes.controllers.router import ControllerConfigurator, present
from parkes.errors import RestError
from parkes.main import create_app
from parkes.models import ParkesIntIDModel, ParkesModel
from parkes.repositories.rest_handler import RestHandler
from parkes.schemas.options import (
    DEFAULT_RESTRICTED,
    ForeignKey,
    Include,
    ParkesOptions,
    ScopeModel,
)
from parkes.schemas.response import Page, PaginationMeta
from parkes.utils.hooks import create_proxy_hooks, hook
from parkes.utils.params import merge_query_params

__all__ = [
    "Context",
    "ControllerConfigurator",
    "DEFAULT_RESTRICTED",
    "DatabaseAdapter",
    "ForeignKey",
    "Include",
    "Page",
    "PaginationMeta",
    "ParkesController",
    "ParkesIntIDModel",
    "ParkesModel",
    "ParkesOptions",
    "RestError",
    "RestHandler",
    "ScopeModel",
    "create_app",
    "create_proxy_hooks",
    "hook",
    "merge_query_params",
    "present",
]
