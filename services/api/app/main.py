"""ecomgm API service entrypoint."""

import logging
import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from services.api.app.db.init_db import init_db
from services.api.app.routers.cart import router as cart_router
from services.api.app.routers.notification import router as notification_router
from services.api.app.routers.order import router as order_router

logging.basicConfig(
    level=os.getenv("ECOMGM_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)

app = FastAPI(title="ecomgm API")

app.include_router(order_router)
app.include_router(cart_router)
app.include_router(notification_router)


@app.exception_handler(StarletteHTTPException)
async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # Error bodies are flat: {"error": ..., "message": ...}, not wrapped in "detail".
    if isinstance(exc.detail, dict):
        content = exc.detail
    else:
        content = {"error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


@app.on_event("startup")
def _startup() -> None:
    init_db()


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}
