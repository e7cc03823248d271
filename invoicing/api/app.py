from __future__ import annotations
import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from invoicing.api.routes import clients, invoices, profile, templates
from invoicing.config import Settings, load_settings
from invoicing.errors import DependencyError, NotFoundError, ValidationError
from invoicing.services.invoice_service import InvoiceService
from invoicing.services.reconciliation import OverdueRefresher
from invoicing.storage.store import JsonStore

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, store: Optional[JsonStore] = None) -> FastAPI:
    settings = settings or load_settings()
    logging.basicConfig(level=settings.log_level,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    app = FastAPI(title="Invoicing API", version="0.1.0")
    app.state.settings = settings
    app.state.store = store or JsonStore(settings.data_dir, settings.numbering, backup_enabled=True)
    app.state.refresher = OverdueRefresher(
        InvoiceService(app.state.store, settings.invoicing, settings.pdf).reconcile_overdue
    )

    @app.exception_handler(ValidationError)
    async def _validation_error(request: Request, exc: ValidationError):
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(exc)})

    @app.exception_handler(NotFoundError)
    async def _not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": str(exc)})

    @app.exception_handler(DependencyError)
    async def _dependency_error(request: Request, exc: DependencyError):
        logger.error("%s %s : %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": exc.message, "details": exc.detail},
        )

    app.include_router(invoices.router)
    app.include_router(clients.router)
    app.include_router(profile.router)
    app.include_router(templates.router)

    @app.get("/healthz")
    def healthz():
        return {"status": "ok"}

    return app
