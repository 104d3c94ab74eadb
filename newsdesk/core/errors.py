"""Error kinds raised by the services and rendered by the API layer.

Each error carries the HTTP status it maps to and a stable ``kind`` string,
so handlers never re-derive policy decisions to choose a response code.
"""
from fastapi import Request, status
from fastapi.responses import JSONResponse


class NewsdeskError(Exception):
    """Base class for every domain error"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    kind = "error"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFound(NewsdeskError):
    status_code = status.HTTP_404_NOT_FOUND
    kind = "not_found"


class Forbidden(NewsdeskError):
    status_code = status.HTTP_403_FORBIDDEN
    kind = "forbidden"


class Unauthenticated(NewsdeskError):
    status_code = status.HTTP_401_UNAUTHORIZED
    kind = "unauthenticated"


class InvalidState(NewsdeskError):
    status_code = status.HTTP_409_CONFLICT
    kind = "invalid_state"


class InvalidTransition(InvalidState):
    """An article lifecycle transition not allowed from the current status"""
    kind = "invalid_transition"

    def __init__(self, action: str, current_status: str):
        super().__init__(f"Cannot {action} an article in {current_status} status")
        self.action = action
        self.current_status = current_status


class InvalidInput(NewsdeskError):
    status_code = status.HTTP_400_BAD_REQUEST
    kind = "invalid_input"


class Conflict(NewsdeskError):
    status_code = status.HTTP_409_CONFLICT
    kind = "conflict"


async def newsdesk_error_handler(request: Request, exc: NewsdeskError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error": exc.kind},
        headers=headers,
    )
