import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from autofix.core.config import BOOTSTRAP_DEMO_ACCOUNTS, CORS_ORIGINS, ENV
from autofix.core.database import Base, SessionLocal, engine
from autofix.core.logging_setup import configure_logging
from autofix.middleware.observability import ObservabilityMiddleware
from autofix.middleware.tenant_context import TenantContextMiddleware
import autofix.models  # registers tables before create_all
from autofix.routers.admin import router as admin_router
from autofix.routers.auth import router as auth_router
from autofix.routers.billing import router as billing_router
from autofix.routers.support import router as support_router
from autofix.routers.workshop import router as workshop_router
from autofix.services.kv_store import KeyValueStore, SqlKeyValueStore
from autofix.services.user_directory import UserDirectory

configure_logging()

logger = logging.getLogger(__name__)


def _open_sql_store() -> KeyValueStore:
    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError:
        logger.exception("Failed to create storage tables")
        raise
    return SqlKeyValueStore(SessionLocal)


def _bootstrap_demo_accounts(kv: KeyValueStore) -> None:
    if not BOOTSTRAP_DEMO_ACCOUNTS:
        logger.info("Demo account bootstrap disabled")
        return
    if UserDirectory(kv).ensure_demo_accounts():
        logger.info("Demo accounts ready: owner@demo.com, sarah@autocare.com")


def create_app(kv_store: Optional[KeyValueStore] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.kv_store is None:
            app.state.kv_store = _open_sql_store()
        _bootstrap_demo_accounts(app.state.kv_store)
        logger.info("Workshop API started env=%s", ENV)
        yield

    app = FastAPI(
        title="AutoFix Workshop API",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.kv_store = kv_store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(TenantContextMiddleware)
    app.add_middleware(ObservabilityMiddleware)

    app.include_router(auth_router)
    app.include_router(workshop_router)
    app.include_router(billing_router)
    app.include_router(support_router)
    app.include_router(admin_router)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


app = create_app()
