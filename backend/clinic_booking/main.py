import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

from .database import engine
from .models import Base
from .redis_client import redis_client
from .routers import admin, bookings, slots
from .services.errors import AdmissionError

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logger.info("Clinic booking API started")
    yield


app = FastAPI(title="Clinic Booking API", lifespan=lifespan)

app.include_router(bookings.router)
app.include_router(slots.router)
app.include_router(admin.router)


@app.exception_handler(AdmissionError)
async def admission_error_handler(request: Request, exc: AdmissionError):
    if exc.kind == "StoreUnavailable":
        logger.error(f"{request.method} {request.url.path}: {exc.kind} ({exc.diagnostic})")
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


@app.get("/health")
def health():
    try:
        redis_ok = bool(redis_client.ping())
    except RedisError:
        redis_ok = False
    return {"status": "ok", "redis": redis_ok}
