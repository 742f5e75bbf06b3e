"""Treksistem Dispatch FastAPI application.

Web server that processes dispatch commands synchronously via HTTP. Every
request runs inside the dispatch domain context.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay applied from domain.toml.
from dispatch.domain import dispatch
from dispatch.utils.logging import configure_logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

configure_logging()
dispatch.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Treksistem Dispatch API",
    description="Order placement, pricing, trust checks and fulfillment lifecycle",
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
    """Push the dispatch domain context for each request."""
    with dispatch.domain_context():
        response = await call_next(request)
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from dispatch.api import driver_router, mitra_router, order_router, register_error_handlers  # noqa: E402

app.include_router(order_router)
app.include_router(driver_router)
app.include_router(mitra_router)
register_error_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domains": {"dispatch": {"name": dispatch.name}},
        }
    )
