from typing import List
from pydantic import BaseModel

from app.models.seat import SeatStatus


# --- Seat Map (GET /showtimes/{id}/seat-map) ---

class SeatInfo(BaseModel):
    id: int
    row_number: int
    seat_number: int
    status: SeatStatus

    class Config:
        from_attributes = True


class SeatRow(BaseModel):
    row: int
    seats: List[SeatInfo]


class SeatMapResponse(BaseModel):
    showtime_id: int
    rows: List[SeatRow]
    occupancy_percentage: float
