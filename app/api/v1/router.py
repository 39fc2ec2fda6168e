
from fastapi import APIRouter

# Catalog
from app.api.v1.movies import router as movies_router
from app.api.v1.rooms import router as rooms_router

# Scheduling & seat map
from app.api.v1.showtimes import router as showtimes_router

# Sales
from app.api.v1.tickets import router as tickets_router

api_router = APIRouter()

# --- Catalog ---
api_router.include_router(movies_router)
api_router.include_router(rooms_router)

# --- Scheduling ---
api_router.include_router(showtimes_router)

# --- Sales ---
api_router.include_router(tickets_router)
