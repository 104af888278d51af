import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from app.core.config import settings
from app.core.logging import setup_logging
from app.core.request_id import RequestIdMiddleware
from app.core.response import err
from app.core.errors import AppError
from app.api.routes import auth, resources, files

setup_logging()

logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME)

app.add_middleware(RequestIdMiddleware)

origins = [x.strip() for x in settings.ALLOW_ORIGINS.split(",") if x.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins or ["http://localhost:3000"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)

app.include_router(auth.router)
app.include_router(resources.router)
app.include_router(files.router)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return err(request, exc.code, exc.message, exc.status_code, exc.details or {})


@app.exception_handler(RequestValidationError)
async def validation_handler(request: Request, exc: RequestValidationError):
    return err(request, "VALIDATION_ERROR", "Validation failed", 400, {"errors": exc.errors()})


@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Resource store error on %s %s", request.method, request.url.path)
    return err(request, "STORE_UNAVAILABLE", "Resource store unavailable, please retry", 503)


@app.get("/healthz")
def healthz():
    return {"ok": True}
