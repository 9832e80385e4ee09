import asyncio
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from moviebooking.db.init_db import create_database
from moviebooking.db.base import Base
from moviebooking.db.session import engine, SessionLocal
from moviebooking.core.config import settings
from moviebooking.core.exceptions import BookingError
from moviebooking.api.v1.router import api_router

logger = logging.getLogger(__name__)


def run_reclaim_pass() -> None:
    """Expire stale PENDING bookings and complete bookings whose showtime has ended."""
    from moviebooking.services.bookings import complete_past_bookings, expire_pending_bookings

    db = SessionLocal()
    try:
        expired = expire_pending_bookings(db)
        if expired:
            logger.info("Expired %d pending booking(s).", expired)
        completed = complete_past_bookings(db)
        if completed:
            logger.info("Completed %d past booking(s).", completed)
    finally:
        db.close()


async def _booking_reclaim_loop() -> None:
    """Background task: reclaim seats from abandoned bookings every RECLAIM_INTERVAL_SECONDS."""
    while True:
        try:
            await asyncio.to_thread(run_reclaim_pass)
        except Exception:
            logger.exception("Error during booking reclaim.")
        await asyncio.sleep(settings.RECLAIM_INTERVAL_SECONDS)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Ensure DB exists and create tables
    create_database()
    Base.metadata.create_all(bind=engine)

    # Run an immediate reclaim, then keep running in the background
    reclaim_task = asyncio.create_task(_booking_reclaim_loop())
    yield

    # Shutdown: cancel background task
    reclaim_task.cancel()
    try:
        await reclaim_task
    except asyncio.CancelledError:
        pass


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


from fastapi.middleware.cors import CORSMiddleware

app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

# Set all CORS enabled origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(BookingError, booking_error_handler)

app.include_router(api_router, prefix=settings.API_V1_STR)

@app.get("/")
def read_root():
    return {"Hello": "Movie Booking"}
