from typing import Optional
from decimal import Decimal
from datetime import datetime

from pydantic import BaseModel, Field

from app.models.showtime import ShowtimeStatus


# Showtime: Create (POST /showtimes)
class ShowtimeCreate(BaseModel):
    start_time: datetime
    end_time: datetime
    base_price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    room_id: int = Field(ge=1)
    movie_id: int = Field(ge=1)


# Showtime: Update (PUT /showtimes/{id}); room and movie are fixed after creation
class ShowtimeUpdate(BaseModel):
    start_time: datetime
    end_time: datetime
    base_price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)


class Showtime(BaseModel):
    id: int
    start_time: datetime
    end_time: datetime
    base_price: Decimal
    status: ShowtimeStatus
    room_id: int
    movie_id: int
    room_name: Optional[str] = None
    movie_title: Optional[str] = None

    class Config:
        from_attributes = True
