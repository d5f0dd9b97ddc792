import inspect
from typing import Any, Iterable


async def hook(source: Any, event: str, *params) -> Any:
    """
    Fire the hook named `event` on `source` if it defines one.

    Hooks may be plain or async functions. Anything raised by the hook
    propagates to the caller so a hook can abort the action it guards.
    """
    handler = getattr(source, event, None)
    if handler is None:
        return None
    result = handler(*params)
    if inspect.isawaitable(result):
        result = await result
    return result


def create_proxy_hooks(origin: Any, proxy: Any, hooks: Iterable[str]) -> None:
    # When the hook fires on origin, repeat it to any hook on the proxy
    for event in hooks:

        async def hook_proxy(*params, event=event):
            return await hook(proxy, event, *params)

        setattr(origin, event, hook_proxy)
