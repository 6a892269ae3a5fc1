import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from orangetv.api.routes.auth import router as auth_router
from orangetv.api.routes.avatar import router as avatar_router
from orangetv.api.routes.chat import router as chat_router
from orangetv.api.routes.config import router as config_router
from orangetv.api.routes.machine_code import router as machine_code_router
from orangetv.api.routes.media import router as media_router
from orangetv.core.config import settings
from orangetv.core.errors import InvalidInput, ServiceError
from orangetv.core.logging import setup_logging
from orangetv.db.init_db import init_db

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name, version="0.1.0")

app.include_router(auth_router)
app.include_router(machine_code_router)
app.include_router(avatar_router)
app.include_router(config_router)
app.include_router(chat_router)
app.include_router(media_router)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid input") if errors else "Invalid input"
    error = InvalidInput(message)
    return JSONResponse(error.to_dict(), status_code=error.status_code)


@app.on_event("startup")
def _startup() -> None:
    init_db()


@app.get("/health")
def health():
    return {"status": "ok"}
