import logging
from typing import Any, Dict, Optional
from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class RestError(HTTPException):
    """
    An error that maps straight onto an HTTP response.

    status  -- the HTTP status code
    code    -- a short machine readable description ('not found', 'empty body')
    message -- the human readable explanation sent to the client
    """

    def __init__(
        self,
        status: int = 500,
        message: str = "",
        code: str = "error",
        headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(status_code=status, detail=message, headers=headers)
        self.status = status
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.status, "code": self.code, "message": self.message}


async def rest_error_handler(request: Request, exc: RestError) -> JSONResponse:
    if exc.status >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status,
        content={"errors": [exc.to_dict()]},
        headers=exc.headers,
    )
