from app.schemas.common import PaginatedResponse, ErrorResponse
from app.schemas.movie import Movie, MovieCreate, MovieUpdate
from app.schemas.room import Room, RoomCreate, RoomUpdate
from app.schemas.showtime import Showtime, ShowtimeCreate, ShowtimeUpdate
from app.schemas.seat import SeatInfo, SeatRow, SeatMapResponse
from app.schemas.ticket import (
    TicketSaleRequest, TicketSaleResponse, TicketDetail,
)
