# horizon_library/main.py
import logging

from fastapi import FastAPI
from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi import HTTPException
from sqlalchemy import text
from fastapi.middleware.cors import CORSMiddleware
from starlette.staticfiles import StaticFiles

from .core.config import get_settings
from .core.errors import AuthError, CatalogError
from .api import auth as auth_router
from .api import books as books_router
from .api import librarian as librarian_router
from .schemas.error import ErrorResponse
from .services.file_storage import LocalFileStorage
from .database import engine

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Horizon Library API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list or ["*"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Authorization", "Content-Type", "Accept", "Origin"],
)

app.include_router(auth_router.router)
app.include_router(librarian_router.router)
app.include_router(books_router.router)

# Serve uploaded covers when they live on local disk
if settings.storage_backend == "local":
    _local = LocalFileStorage(settings.upload_dir, settings.static_base_url)
    app.mount(_local.base_url.rstrip("/"), StaticFiles(directory=_local.directory), name="uploads")


@app.get("/health", tags=["meta"])
def health():
    return {"status": "ok", "environment": settings.environment}


@app.get("/health/db", tags=["meta"])
def health_db():
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return {"status": "ok", "database": "reachable"}
    except Exception as e:
        logger.warning("Database health check failed: %s", e)
        return {"status": "error", "database": "unreachable", "detail": str(e)}


# Global error handlers
@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError):
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(detail=exc.detail).model_dump(),
        headers=headers,
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(status_code=exc.status_code, content=ErrorResponse(detail=str(exc.detail)).model_dump())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=422, content=ErrorResponse(detail="Validation Error").model_dump())
