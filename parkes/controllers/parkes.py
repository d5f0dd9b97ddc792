import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union
from parkes.errors import RestError
from parkes.policies.private import is_private
from parkes.policies.scope import authorization_scope
from parkes.repositories.rest_handler import RECORD_HOOKS, RestHandler
from parkes.schemas.options import Include, ParkesOptions
from parkes.utils.events import EventChannel
from parkes.utils.hooks import create_proxy_hooks, hook

logger = logging.getLogger(__name__)

CallNext = Optional[Callable[[], Awaitable[Any]]]


class ParkesController:
    """
    Standard CRUD actions for a restful controller.

    Use this as the base for restful controllers. Provides index, show,
    create, update and destroy. Every action puts the record(s) in
    ctx.state.data; it's up to the application to define a presentation
    layer that turns that into a response body.

    Subclasses customise an action by defining before_<action> or
    after_<action> hooks, and the write itself through the record hooks
    (before_create_record, before_update_record, before_destroy_record):

        class UserController(ParkesController):
            async def before_create_record(self, ctx, values):
                values["password"] = hash_password(values["password"])

            async def after_destroy(self, ctx, user):
                await revoke_sessions(user)

        users = UserController("user", {"models": models, "authorize": authorize})
        users.on("create", send_welcome_email)

    See RestHandler for the options passed through to the query layer.
    """

    def __init__(self, name: str, options: Union[ParkesOptions, Dict[str, Any], None] = None):
        self.model = name
        options = options if options is not None else {}

        authorize = (
            options.get("authorize") if isinstance(options, dict) else options.authorize
        )
        if authorize is not False and not callable(authorize):
            raise ValueError(
                "options.authorize is undefined. If you're really sure you don't want "
                "to authorize requests, it must be explicitly set to False when you "
                "instantiate your controller."
            )

        self.rest = RestHandler(name, options)
        self.options = self.rest.options
        self.events = EventChannel()

        # Record hooks fired on the handler land on this controller
        create_proxy_hooks(self.rest, self, RECORD_HOOKS)

    def on(self, event: str, listener: Callable) -> Callable:
        return self.events.on(event, listener)

    def off(self, event: str, listener: Callable) -> None:
        self.events.off(event, listener)

    def emit(self, event: str, *args) -> bool:
        return self.events.emit(event, *args)

    async def authorize(self, ctx, **options) -> None:
        """
        Call options.authorize unless it's set to False.

        model  -- the class or record(s) being acted on
        action -- the action name
        scopes -- when True, the scope models present in the request are
                  passed on as scopes, along with the derived scope string

        is_private is always added before authorize is called. Authorizers
        deny by raising, or by returning False.
        """
        if self.options.authorize is False:
            return

        opts = dict(options, is_private=is_private(ctx))
        if opts.get("scopes"):
            opts["scopes"] = self.rest.scopes_present(ctx)
            opts["scope"] = authorization_scope(opts["scopes"], ctx)

        result = self.options.authorize(ctx, opts)
        if inspect.isawaitable(result):
            result = await result

        if result is False:
            raise RestError(
                status=403,
                code="forbidden",
                message=f"You are not authorized to {opts.get('action')} {self.rest.name}",
            )

    async def verify_includes(self, ctx, includes: List[Include]) -> None:
        """
        Go through each of the includes and verify that
        1) the row it filters by can be found
        2) the user is authorized to view it

        Called when index returns an empty set, to tell the user when that
        is why the set is empty.
        """
        for include in includes:
            model = await self.rest.find_related(include)

            if model is not None:
                await self.authorize(ctx, model=model, action="view")
            else:
                name = include.as_ or include.model.__name__
                raise RestError(
                    status=404,
                    code="not found",
                    message=f"{name} with {self.options.resource_id_column} {include.key} could not be found",
                )

    async def _done(self, ctx, action: str, data: Any, call_next: CallNext) -> None:
        await hook(self, f"after_{action}", ctx, data)
        self.emit(action, ctx, data)
        if call_next is not None:
            await call_next()

    async def show(self, ctx, call_next: CallNext = None) -> None:
        await hook(self, "before_show", ctx)
        model = await self.rest.show(ctx)
        await self.authorize(ctx, model=model, action="show", scopes=True)
        ctx.state.data = model

        await self._done(ctx, "show", model, call_next)

    async def index(self, ctx, call_next: CallNext = None) -> None:
        action = "index"

        await self.authorize(ctx, action=action, model=self.rest.model_class, scopes=True)
        await hook(self, "before_index", ctx)
        models = await self.rest.index(ctx)

        if models.collection:
            await self.authorize(ctx, action=action, model=models.collection, scopes=True)
        else:
            # If the results are empty, it could be because they filtered
            # on a model they can't see (or that does not exist), in which
            # case throw a clear error for the user
            await self.verify_includes(ctx, self.rest.filter_includes(ctx))

        ctx.state.data = models
        ctx.state.collection = models.collection
        ctx.state.pagination = models.pagination

        await self._done(ctx, action, models, call_next)

    async def create(self, ctx, call_next: CallNext = None) -> None:
        await self.authorize(ctx, action="create", model=self.rest.model_class)
        await hook(self, "before_create", ctx)
        model = await self.rest.create(ctx)

        ctx.state.data = model

        await self._done(ctx, "create", model, call_next)

    async def update(self, ctx, call_next: CallNext = None) -> None:
        await hook(self, "before_update", ctx)
        model = await self.rest.find(ctx)

        await self.authorize(ctx, model=model, action="update")

        await self.rest.update(ctx, model)

        ctx.state.data = model

        await self._done(ctx, "update", model, call_next)

    async def destroy(self, ctx, call_next: CallNext = None) -> None:
        await hook(self, "before_destroy", ctx)
        model = await self.rest.find(ctx)
        await self.authorize(ctx, model=model, action="destroy")

        await self.rest.destroy(ctx, model)

        ctx.state.data = model

        await self._done(ctx, "destroy", model, call_next)
