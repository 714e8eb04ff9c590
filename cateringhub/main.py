import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from cateringhub import __version__
from cateringhub.config import settings
from cateringhub.core.errors import APIError, api_error_handler
from cateringhub.database.supabase_client import SupabaseClient
from cateringhub.modules.auth import routes as auth_routes
from cateringhub.modules.bookings import routes as bookings_routes
from cateringhub.modules.shifts import routes as shifts_routes
from cateringhub.modules.teams import routes as teams_routes
from cateringhub.modules.members import routes as members_routes
from cateringhub.modules.workers import routes as workers_routes
from cateringhub.modules.profile import routes as profile_routes
from cateringhub.modules.geocoding import routes as geocoding_routes
from cateringhub.modules.analytics import routes as analytics_routes

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)-8s %(name)s | %(message)s",
)
logger = logging.getLogger("cateringhub")

API_PREFIX = "/api"
ROUTERS = (
    auth_routes.router,
    bookings_routes.router,
    shifts_routes.router,
    teams_routes.router,
    members_routes.router,
    workers_routes.router,
    profile_routes.router,
    geocoding_routes.router,
    analytics_routes.router,
)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
}

limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])

app = FastAPI(
    title=settings.app_name,
    description="Provider dashboard API: bookings, shifts, teams and provider profiles",
    version=__version__,
    debug=settings.debug,
    redirect_slashes=False,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_exception_handler(APIError, api_error_handler)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    message = "Internal server error" if settings.is_production else str(exc)
    return JSONResponse(status_code=500, content={"detail": message, "code": "INTERNAL_ERROR"})


class SecurityHeadersMiddleware:
    """Sets SECURITY_HEADERS on every HTTP response that does not carry them already"""

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_secured(message: Message):
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                for name, value in SECURITY_HEADERS.items():
                    headers.setdefault(name, value)
            await send(message)

        await self.app(scope, receive, send_secured)


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

for router in ROUTERS:
    app.include_router(router, prefix=API_PREFIX)


@app.on_event("startup")
async def log_startup():
    logger.info(
        f"{settings.app_name} {__version__} up in {settings.environment} mode, "
        f"{len(ROUTERS)} routers under {API_PREFIX}"
    )


@app.on_event("shutdown")
async def log_shutdown():
    logger.info(f"{settings.app_name} stopping")


@app.get("/")
async def index():
    return {"service": settings.app_name, "version": __version__, "docs": "/docs"}


@app.get("/health")
@limiter.exempt
async def health():
    """Liveness: the process answers"""
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
async def ready():
    """Readiness: the database must answer a trivial query"""
    if not SupabaseClient.check_connection():
        return JSONResponse(status_code=503, content={"status": "unavailable"})
    return {"status": "ready"}
