import logging
import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from academy.adapters.sqlite.migrator import SQLiteMigrator
from academy.api.deps import get_rules, get_settings
from academy.api.envelope import install_exception_handlers
from academy.app_shell.config import validate_ops_rules

logging.basicConfig(
    level=os.environ.get("ACADEMY_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Refuse to serve until rules load, ops checks pass and the schema is current."""
    settings = get_settings()
    try:
        rules = get_rules()
        validate_ops_rules(rules, settings.data_dir)
        applied = SQLiteMigrator(settings.db_path, str(settings.migrations_dir)).run_migrations()
    except Exception:
        logger.critical("Startup failed", exc_info=True)
        raise SystemExit(1) from None

    logger.info("Rules loaded from %s", settings.rules_path)
    if applied:
        logger.info("Applied migrations: %s", ", ".join(applied))
    yield


app = FastAPI(
    title="Shrestha Academy API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)
install_exception_handlers(app)

# --- Routers ---
from academy.api.routes import (  # noqa: E402
    auth,
    cart,
    catalog,
    certificates,
    contact,
    coupons,
    courses,
    demo_requests,
    flash_sales,
    jobs,
    orders,
    placement_training,
    search,
    subscription_plans,
    subscriptions,
    users,
)

app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(catalog.router, prefix="/api/catalog", tags=["Catalog"])
app.include_router(search.router, prefix="/api/search", tags=["Search"])
app.include_router(jobs.router, prefix="/api/jobs", tags=["Jobs"])
app.include_router(cart.router, prefix="/api/cart", tags=["Cart"])
app.include_router(coupons.router, prefix="/api/coupons", tags=["Coupons"])
app.include_router(flash_sales.router, prefix="/api/flash-sales", tags=["Flash Sales"])
app.include_router(orders.router, prefix="/api/orders", tags=["Orders"])
app.include_router(courses.router, prefix="/api/courses", tags=["Courses"])
app.include_router(
    subscription_plans.router, prefix="/api/subscription-plans", tags=["Subscription Plans"]
)
app.include_router(subscriptions.router, prefix="/api/subscriptions", tags=["Subscriptions"])
app.include_router(certificates.router, prefix="/api/certificates", tags=["Certificates"])
app.include_router(contact.router, prefix="/api/contact", tags=["Contact"])
app.include_router(demo_requests.router, prefix="/api/demo-requests", tags=["Demo Requests"])
app.include_router(
    placement_training.router, prefix="/api/placement-training", tags=["Placement Training"]
)


# Browser clients send cookies cross-origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def security_headers(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    response = await call_next(request)
    response.headers["Cache-Control"] = "no-store"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    return response


@app.get("/health")
def health_check() -> dict[str, Any]:
    return {"status": "ok", "service": "shrestha-academy", "version": app.version}
