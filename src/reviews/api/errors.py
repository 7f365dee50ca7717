"""HTTP mapping for Reviews domain errors.

Protean's handlers cover ValidationError (400) and ObjectNotFoundError
(404). The Reviews categories get their own status codes on top; FastAPI
picks the most specific handler along the exception's MRO.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from reviews.errors import AuthorizationError, ConflictError, DependencyError, StateError


def _error_content(exc, **extra):
    content = {"error": exc.messages if hasattr(exc, "messages") else str(exc)}
    content.update({key: value for key, value in extra.items() if value is not None})
    return content


async def _conflict(request: Request, exc: ConflictError) -> JSONResponse:
    return JSONResponse(status_code=409, content=_error_content(exc, review_id=exc.review_id))


async def _forbidden(request: Request, exc: AuthorizationError) -> JSONResponse:
    return JSONResponse(status_code=403, content=_error_content(exc))


async def _invalid_state(request: Request, exc: StateError) -> JSONResponse:
    return JSONResponse(status_code=409, content=_error_content(exc, current_status=exc.current_status))


async def _unavailable(request: Request, exc: DependencyError) -> JSONResponse:
    return JSONResponse(
        status_code=503,
        content={"error": "A dependent service is unavailable, please try again"},
    )


def register_review_exception_handlers(app: FastAPI) -> None:
    register_exception_handlers(app)
    app.add_exception_handler(ConflictError, _conflict)
    app.add_exception_handler(AuthorizationError, _forbidden)
    app.add_exception_handler(StateError, _invalid_state)
    app.add_exception_handler(DependencyError, _unavailable)
