import enum
from sqlalchemy import Column, Integer, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from app.db.session import Base
from app.models.status import StatusMachineMixin

class SeatStatus(str, enum.Enum):
    AVAILABLE = "AVAILABLE"
    SOLD = "SOLD"

class Seat(StatusMachineMixin, Base):
    __tablename__ = "seats"
    __table_args__ = (
        UniqueConstraint(
            "showtime_id", "row_number", "seat_number",
            name="uq_seats_showtime_row_seat_number",
        ),
    )

    TRANSITIONS = {
        SeatStatus.AVAILABLE: {SeatStatus.SOLD},
        SeatStatus.SOLD: {SeatStatus.AVAILABLE},
    }

    id = Column(Integer, primary_key=True, autoincrement=True)
    showtime_id = Column(
        Integer, ForeignKey("showtimes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    row_number = Column(Integer, nullable=False)
    seat_number = Column(Integer, nullable=False)
    status = Column(
        Enum(SeatStatus, name="seat_status"),
        nullable=False,
        default=SeatStatus.AVAILABLE,
        index=True,
    )

    showtime = relationship("Showtime", back_populates="seats")
