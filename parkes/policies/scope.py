from typing import List
from parkes.policies.private import is_private
from parkes.utils.params import merge_query_params


def authorization_scope(model_scopes: List[str], ctx) -> str:
    """
    The scope of the request for the purposes of authorization.

    Returns the FIRST of model_scopes present on the query or params, and
    adds .private if the request is private:

        action = "list" + authorization_scope(["user", "campaign"], ctx)
        # "list.user.private"
    """
    all_params = merge_query_params(ctx)
    present = [scope for scope in model_scopes or [] if all_params.get(scope)]

    scope = ""
    if present:
        scope += f".{present[0]}"
    if is_private(ctx):
        scope += ".private"
    return scope
