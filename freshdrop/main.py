import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from freshdrop.config import settings
from freshdrop.database import create_db_and_tables
from freshdrop.exceptions import FreshDropError
from freshdrop.routes import admin_notifications, functions, health, orders

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Run DB creation ONLY in local
    if settings.env == "local":
        create_db_and_tables()
    yield

app = FastAPI(title="FreshDrop Notifications API", lifespan=lifespan)


# Must stay registered before CORSMiddleware; 500 responses pass back through it.
@app.middleware("http")
async def catch_unhandled_errors(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception:
        logger.exception(f"Unhandled error on {request.url.path}")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = [
        {"loc": list(e.get("loc", [])), "msg": e.get("msg")} for e in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request body", "details": details},
    )


@app.exception_handler(FreshDropError)
async def freshdrop_exception_handler(request: Request, exc: FreshDropError):
    if exc.status_code >= 500:
        logger.error(f"{request.url.path} failed: {exc.message} {exc.extra}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, **exc.extra},
    )


app.include_router(functions.router, prefix="/functions", tags=["Functions"])
app.include_router(orders.router, prefix="/orders", tags=["Orders"])
app.include_router(admin_notifications.router, prefix="/admin/notifications", tags=["Admin Notifications"])
app.include_router(health.router, prefix="/health", tags=["Health"])


@app.get("/")
def root():
    return {
        "function_endpoints": [
            "/functions/send-order-notifications",
            "/functions/notify-operators",
            "/functions/marketing-automation",
            "/functions/behavioral-triggers",
            "/functions/request-account-deletion",
            "/functions/operator-approval-notification",
        ],
        "order_endpoints": [
            "/orders/{order_id}/progress", "/orders/{order_id}/status"
        ],
        "admin_endpoints": [
            "/admin/notifications/logs", "/admin/notifications/delivery-logs"
        ],
    }
