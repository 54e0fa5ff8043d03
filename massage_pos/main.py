import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import (
    ACTIVATION_INTERVAL_SECONDS,
    ACTIVATION_WORKER_ENABLED,
    ALLOWED_ORIGINS,
    BOARD_REDIS_ENABLED,
    SHOP_NAME,
)
from .domain.assignment.errors import AssignmentError
from .domain.assignment.router import board_router
from .domain.assignment.router import router as entries_router
from .domain.payments.router import router as payments_router
from .domain.roster.router import router as roster_router
from .state import get_session
from .workers.activation_worker import run_activation_worker

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Application starting up for {SHOP_NAME}...")
    session = get_session()

    if BOARD_REDIS_ENABLED:
        try:
            from .broadcast import get_redis_client

            get_redis_client()  # Connection test
            logger.info("Redis connection established")
        except Exception as e:
            logger.warning(f"Redis connection failed - board sink will operate in fail-open mode: {e}")

    worker_task = None
    if ACTIVATION_WORKER_ENABLED:
        worker_task = asyncio.create_task(run_activation_worker(session, ACTIVATION_INTERVAL_SECONDS))
    else:
        logger.info("Scheduled activation worker disabled")

    yield

    logger.info("Application shutting down...")
    if worker_task is not None:
        worker_task.cancel()
        try:
            await worker_task
        except asyncio.CancelledError:
            pass


app = FastAPI(title="Massage POS API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=422, content={"detail": jsonable_encoder(exc.errors())})


@app.exception_handler(AssignmentError)
async def assignment_exception_handler(request: Request, exc: AssignmentError):
    """Operator-facing assignment failures keep their own status and machine-readable code"""
    logger.warning(f"⚠️ {request.method} {request.url.path} rejected ({exc.code}): {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


# CORS Configuration
logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

# Routes
app.include_router(roster_router)
app.include_router(entries_router)
app.include_router(board_router)
app.include_router(payments_router)


@app.get("/")
def root():
    return {"message": f"{SHOP_NAME} POS API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}
