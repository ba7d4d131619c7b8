"""Notification routing FastAPI application.

Web front for the routing domain. Commands are processed synchronously per
request; every /routing request runs inside the routing domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# PROTEAN_ENV controls which config overlay is applied:
#   - "test"       -> sync event processing (dispatch + projectors in UoW)
#   - "production" -> async event processing (dispatch via Engine)
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from routing.domain import routing
from routing.utils.logging import clear_context

routing.init()

_ROUTED_PREFIX = "/routing"


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Notification Routing API",
    description="Outbound event log, routing policies and delivery tracking",
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
    """Push the routing domain context for routing requests."""
    clear_context()
    if request.url.path.startswith(_ROUTED_PREFIX):
        with routing.domain_context():
            response = await call_next(request)
        return response
    # Health check, docs, etc.
    return await call_next(request)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from routing.api.admin import admin_router  # noqa: E402
from routing.api.errors import register_exception_handlers  # noqa: E402
from routing.api.routes import router  # noqa: E402

app.include_router(router)
app.include_router(admin_router)
register_exception_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domains": {"routing": {"name": routing.name}},
        }
    )
