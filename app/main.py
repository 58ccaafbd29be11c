import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.middleware import Middleware

from app import config
from app.db.connection import create_pool
from app.routes import invoice_routes
from app.services.errors import InvoiceServiceError, StorageFailure
from app.services.invoice_service import build_invoice_service
from app.utils.helpers import ensure_stayvie_logo

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    db_pool = create_pool()
    service = build_invoice_service(db_pool)
    if config.AUTO_CREATE_SCHEMA:
        service.ensure_schema()
    ensure_stayvie_logo(config.PUBLIC_DIR)

    app.state.invoice_service = service
    logger.info("Invoice API started")
    try:
        yield
    finally:
        db_pool.closeall()
        logger.info("Database pool closed")


middleware = [
    Middleware(
        CORSMiddleware,
        allow_origins=[config.CLIENT_URL],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    ),
]

app = FastAPI(
    title="Invoice API",
    version="1.0.0",
    middleware=middleware,
    lifespan=lifespan,
)


@app.exception_handler(InvoiceServiceError)
async def invoice_service_error_handler(request: Request, exc: InvoiceServiceError):
    content = {"message": exc.message}
    if isinstance(exc, StorageFailure) and exc.error:
        content["error"] = exc.error
    return JSONResponse(status_code=exc.http_status, content=content)


@app.get("/")
def root():
    return {"message": "Server is working!"}


app.include_router(invoice_routes.router)

if Path(config.PUBLIC_DIR).is_dir():
    app.mount("/app", StaticFiles(directory=config.PUBLIC_DIR, html=True), name="public")
