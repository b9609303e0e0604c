import logging
import os

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from redis import Redis
from redis.exceptions import RedisError

from .errors import ConfigValidationError
from .redis_client import get_redis
from .routers import (
    appointments,
    business_hours,
    ebook_categories,
    ebooks,
    slots,
    subscriptions,
    users,
)

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Clinic API")

app.include_router(business_hours.router)
app.include_router(slots.router)
app.include_router(appointments.router)
app.include_router(users.router)
app.include_router(subscriptions.router)
app.include_router(ebook_categories.router)
app.include_router(ebooks.router)


@app.exception_handler(ConfigValidationError)
def config_validation_error_handler(request: Request, exc: ConfigValidationError):
    return JSONResponse(
        status_code=422,
        content={"detail": exc.message, "field": exc.field},
    )


@app.get("/health")
def health(redis: Redis = Depends(get_redis)):
    try:
        redis_ok = bool(redis.ping())
    except RedisError as e:
        logger.warning(f"Redis ping failed: {e}")
        redis_ok = False
    return {"status": "ok", "redis": redis_ok}
