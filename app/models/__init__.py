from app.models.movie import Movie
from app.models.room import Room
from app.models.showtime import Showtime, ShowtimeStatus
from app.models.seat import Seat, SeatStatus
from app.models.ticket import Ticket, TicketStatus
