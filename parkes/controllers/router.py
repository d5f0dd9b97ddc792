import inspect
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Sequence, Type
from fastapi import APIRouter, Depends, Request
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel
from parkes.context import Context
from parkes.controllers.parkes import ParkesController
from parkes.schemas.response import ErrorResponse, Page
from parkes.utils.inflection import pluralize

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}


def assemblePolicies(*args: Sequence[Callable]) -> List:
    merged = []
    for policy_set in args:
        for individual_policy in policy_set:
            merged.append(Depends(individual_policy))
    return merged


# The default presentation layer. Swap it out through the presenter
# argument of ControllerConfigurator to change the response format.
def present(ctx: Context, schema: Optional[Type[BaseModel]] = None) -> Dict[str, Any]:
    data = ctx.state.data
    if isinstance(data, Page):
        body = {"data": [_encode(record, schema) for record in data.collection]}
        if data.pagination is not None:
            body["pagination"] = data.pagination.model_dump(by_alias=True)
        return body
    return {"data": _encode(data, schema)}


def _encode(record: Any, schema: Optional[Type[BaseModel]]) -> Any:
    # Only the fields of the response schema reach the client
    if schema is not None and record is not None:
        record = schema.model_validate(record, from_attributes=True)
    return jsonable_encoder(record)


def ControllerConfigurator(
    controller: ParkesController = ...,
    path: Optional[str] = None,
    tags: Optional[List[str]] = None,
    response_schema: Optional[Type[BaseModel]] = None,
    presenter: Optional[Callable] = None,
    policies_universal: Sequence[Callable] = (),
    policies_create: Sequence[Callable] = (),
    policies_update: Sequence[Callable] = (),
    policies_delete: Sequence[Callable] = (),
    policies_get_one: Sequence[Callable] = (),
    policies_get_many: Sequence[Callable] = (),
) -> APIRouter:
    """
    Mount a controller's actions on an APIRouter.

    The record routes take the model's parameter name as their path
    parameter (/users/{user}), which the controller reads the id from.
    Mounting under a parent parameter scopes the index by that model when
    it is one of the controller's scope_models:

        ControllerConfigurator(controller=posts, path="/users/{user}/posts")

    response_schema limits the default presenter to the fields of that
    model, eg response_schema=UserView keeps password columns out of
    responses. A custom presenter receives only the context.
    """
    if presenter is None:
        presenter = partial(present, schema=response_schema)
    param = controller.rest.param
    if path is None:
        path = f"/{pluralize(param)}"
    router = APIRouter(prefix=path, tags=tags or [param])
    item_path = "/{" + param + "}"

    async def respond(ctx: Context):
        body = presenter(ctx)
        if inspect.isawaitable(body):
            body = await body
        return body

    @router.get(
        "",
        responses=ERROR_RESPONSES,
        dependencies=assemblePolicies(policies_universal, policies_get_many),
    )
    async def index(request: Request):
        ctx = await Context.from_request(request)
        await controller.index(ctx)
        return await respond(ctx)

    @router.get(
        item_path,
        responses=ERROR_RESPONSES,
        dependencies=assemblePolicies(policies_universal, policies_get_one),
    )
    async def show(request: Request):
        ctx = await Context.from_request(request)
        await controller.show(ctx)
        return await respond(ctx)

    @router.post(
        "",
        status_code=201,
        responses=ERROR_RESPONSES,
        dependencies=assemblePolicies(policies_universal, policies_create),
    )
    async def create(request: Request):
        ctx = await Context.from_request(request)
        await controller.create(ctx)
        return await respond(ctx)

    @router.api_route(
        item_path,
        methods=["PATCH", "PUT"],
        responses=ERROR_RESPONSES,
        dependencies=assemblePolicies(policies_universal, policies_update),
    )
    async def update(request: Request):
        ctx = await Context.from_request(request)
        await controller.update(ctx)
        return await respond(ctx)

    @router.delete(
        item_path,
        responses=ERROR_RESPONSES,
        dependencies=assemblePolicies(policies_universal, policies_delete),
    )
    async def destroy(request: Request):
        ctx = await Context.from_request(request)
        await controller.destroy(ctx)
        return await respond(ctx)

    return router
