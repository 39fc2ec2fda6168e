import enum
from sqlalchemy import Column, Integer, DateTime, DECIMAL, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from app.db.session import Base
from app.models.status import StatusMachineMixin

class ShowtimeStatus(str, enum.Enum):
    SCHEDULED = "SCHEDULED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

class Showtime(StatusMachineMixin, Base):
    __tablename__ = "showtimes"
    __table_args__ = (
        UniqueConstraint("room_id", "start_time", name="uq_showtimes_room_start_time"),
    )

    TRANSITIONS = {
        ShowtimeStatus.SCHEDULED: {ShowtimeStatus.CANCELLED, ShowtimeStatus.COMPLETED},
    }

    id = Column(Integer, primary_key=True, autoincrement=True)
    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=False)
    base_price = Column(DECIMAL(10, 2), nullable=False)
    status = Column(
        Enum(ShowtimeStatus, name="showtime_status"),
        nullable=False,
        default=ShowtimeStatus.SCHEDULED,
        index=True,
    )
    movie_id = Column(Integer, ForeignKey("movies.id"), nullable=False, index=True)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False, index=True)

    # One-directional: Movie and Room keep no list of showtimes
    movie = relationship("Movie")
    room = relationship("Room")
    seats = relationship(
        "Seat",
        back_populates="showtime",
        cascade="all, delete-orphan",
        order_by="Seat.id",
    )

    @property
    def room_name(self):
        return self.room.name if self.room else None

    @property
    def movie_title(self):
        return self.movie.title if self.movie else None
