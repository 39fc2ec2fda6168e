import asyncio
import logging

from fastapi import FastAPI
from contextlib import asynccontextmanager
from app.db.init_db import create_database
from app.db.base import Base
from app.db.session import engine, SessionLocal
from app.core.config import settings
from app.api.errors import register_exception_handlers
from app.api.v1.router import api_router

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


def _sweep_once() -> int:
    from app.services.showtimes import complete_past_showtimes

    db = SessionLocal()
    try:
        return complete_past_showtimes(db)
    finally:
        db.close()


async def _showtime_sweep_loop() -> None:
    """Background task: complete finished showtimes every SHOWTIME_SWEEP_SECONDS."""
    while True:
        try:
            count = await asyncio.to_thread(_sweep_once)
            if count:
                logger.info("Completed %d finished showtime(s).", count)
        except Exception:
            logger.exception("Error during showtime sweep.")
        await asyncio.sleep(settings.SHOWTIME_SWEEP_SECONDS)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Ensure DB exists and create tables
    create_database()
    Base.metadata.create_all(bind=engine)

    # Run an immediate sweep, then keep running in the background
    sweep_task = asyncio.create_task(_showtime_sweep_loop())
    yield

    # Shutdown: cancel background task
    sweep_task.cancel()
    try:
        await sweep_task
    except asyncio.CancelledError:
        pass


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

register_exception_handlers(app)

app.include_router(api_router, prefix=settings.API_V1_STR)

@app.get("/")
def read_root():
    return {"Hello": "Cinema"}
