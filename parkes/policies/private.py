from fastapi import Request


def is_private(ctx) -> bool:
    return bool(getattr(ctx.state, "is_private", False))


# Mount as a universal policy on routers serving the private api
async def mark_private(request: Request):
    request.state.is_private = True
