from app.db.session import Base
from app.models.movie import Movie
from app.models.room import Room
from app.models.showtime import Showtime
from app.models.seat import Seat
from app.models.ticket import Ticket
