import enum
from sqlalchemy import Column, Integer, String, DateTime, DECIMAL, Enum, ForeignKey, Index, text
from sqlalchemy.orm import relationship
from app.db.session import Base
from app.models.status import StatusMachineMixin

class TicketStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"
    CONSUMED = "CONSUMED"

class Ticket(StatusMachineMixin, Base):
    __tablename__ = "tickets"
    __table_args__ = (
        # At most one live (ACTIVE or CONSUMED) ticket per seat; cancelled
        # tickets stay in the ledger so the seat can be sold again.
        Index(
            "uq_tickets_live_seat",
            "seat_id",
            unique=True,
            postgresql_where=text("status != 'CANCELLED'"),
            sqlite_where=text("status != 'CANCELLED'"),
        ),
    )

    TRANSITIONS = {
        TicketStatus.ACTIVE: {TicketStatus.CANCELLED, TicketStatus.CONSUMED},
    }

    id = Column(Integer, primary_key=True, autoincrement=True)
    seat_id = Column(
        Integer, ForeignKey("seats.id", ondelete="CASCADE"), nullable=False, index=True
    )
    purchased_at = Column(DateTime, nullable=False)
    price = Column(DECIMAL(10, 2), nullable=False)
    customer_name = Column(String(255), nullable=False)
    status = Column(
        Enum(TicketStatus, name="ticket_status"),
        nullable=False,
        default=TicketStatus.ACTIVE,
        index=True,
    )

    seat = relationship("Seat")
