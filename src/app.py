"""Boda Connect Reviews FastAPI application.

Web server that processes review commands synchronously via HTTP.
Each request is wrapped in the Reviews domain context.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied:
#   - "test"       → event_processing = "sync"  (projectors fire in UoW)
#   - "production" → event_processing = "async" (projectors fire via Engine)
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from reviews.domain import reviews  # noqa: E402

reviews.init()

_DOMAIN_PREFIXES = ("/reviews",)


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Boda Connect Reviews API",
    description="Two-way booking reviews, moderation and party ratings",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the Reviews domain context for review routes."""
    if request.url.path.startswith(_DOMAIN_PREFIXES):
        with reviews.domain_context():
            response = await call_next(request)
        return response
    # No domain match, pass through (health check, docs)
    return await call_next(request)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from reviews.api.errors import register_review_exception_handlers  # noqa: E402
from reviews.api.routes import review_router  # noqa: E402

app.include_router(review_router)
register_review_exception_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domains": {"reviews": {"name": reviews.name}}})
