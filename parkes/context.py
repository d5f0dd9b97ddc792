import json
from typing import Any, Dict, Optional
from fastapi import Request
from starlette.datastructures import State
from parkes.errors import RestError


class Context:
    """
    The request carrier handed to controller actions.

    query  -- query string parameters
    params -- route (path) parameters
    body   -- the decoded JSON body, {} when there is none
    state  -- output slot; actions put their result on state.data for a
              presenter to serialize
    href   -- the full request url
    """

    def __init__(
        self,
        query: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
        state: Optional[State] = None,
        href: str = "http://localhost/",
        request: Optional[Request] = None,
    ):
        self.query = dict(query or {})
        self.params = dict(params or {})
        self.body = body if body is not None else {}
        self.state = state if state is not None else State()
        self.href = href
        self.request = request

    @property
    def path(self) -> str:
        return self.href.split("?")[0]

    @classmethod
    async def from_request(cls, request: Request) -> "Context":
        body = {}
        raw = await request.body()
        if raw:
            try:
                body = json.loads(raw)
            except ValueError:
                raise RestError(
                    status=400, code="invalid body", message="The body must be valid JSON"
                )
            if not isinstance(body, dict):
                raise RestError(
                    status=400, code="invalid body", message="The body must be a JSON object"
                )

        return cls(
            query=dict(request.query_params),
            params=dict(request.path_params),
            body=body,
            state=request.state,
            href=str(request.url),
            request=request,
        )
