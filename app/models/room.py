from sqlalchemy import Column, Integer, String, Boolean
from app.db.session import Base

class Room(Base):
    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), unique=True, nullable=False)
    rows = Column(Integer, nullable=False)
    seats_per_row = Column(Integer, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Showtimes of a room are queried through Showtime.room_id, no back-collection here.

    @property
    def capacity(self) -> int:
        return self.rows * self.seats_per_row
