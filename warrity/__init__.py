"""Application factory and top-level wiring for Warrity.

This module is the glue that brings together configuration, database setup,
middlewares, API routers and error handling. Reading it top to bottom gives a
bird's-eye view of *what* pieces exist, *when* they are initialised, *why*
they are required, and *how* they interact to serve the warranty API.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.errors import register_exception_handlers
from .crud.catalog import ensure_default_categories
from .db.migrate import run_migrations
from .db.session import Base, SessionLocal, engine
from .middlewares import RequestIdMiddleware, SecurityHeadersMiddleware
from .settings import settings

# Importing the SQLAlchemy models registers them with the metadata. Without
# this step ``Base.metadata.create_all`` would not know about our tables.
from .models import category as _category  # noqa: F401
from .models import product as _product  # noqa: F401
from .models import service_info as _service_info  # noqa: F401
from .models import user as _user  # noqa: F401
from .models import warranty as _warranty  # noqa: F401

# ---------- App init ----------
app = FastAPI(title=settings.APP_NAME)

# ---------- DB init/migrations ----------
# ``create_all`` ensures tables exist for brand-new databases, while
# ``run_migrations`` upgrades existing installations and re-derives stored
# warranty statuses. Missing default categories are then inserted. Running
# these on import makes the app self-starting during development and tests.
Base.metadata.create_all(bind=engine)
run_migrations(engine, expiring_window_days=settings.EXPIRING_WINDOW_DAYS)
with SessionLocal() as _db:
    ensure_default_categories(_db)

# ---------- Middlewares ----------
# Starlette runs the last added middleware first, so the request id is set
# before anything else logs.
app.add_middleware(SecurityHeadersMiddleware)
if settings.allowed_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
app.add_middleware(RequestIdMiddleware)

# ---------- Error handling ----------
# Every error leaves the API as ``{"code", "message", "details"}``.
register_exception_handlers(app)

# ---------- Routers ----------
from .routers import api_auth as api_auth_router  # noqa: E402

app.include_router(api_auth_router.router)

from .routers import api_products as api_products_router  # noqa: E402

app.include_router(api_products_router.router)

from .routers import api_warranties as api_warranties_router  # noqa: E402

app.include_router(api_warranties_router.router)

from .routers import api_catalog as api_catalog_router  # noqa: E402

app.include_router(api_catalog_router.categories_router)
app.include_router(api_catalog_router.service_info_router)

from .routers import api_admin as api_admin_router  # noqa: E402

app.include_router(api_admin_router.router)


__all__ = ["app"]
