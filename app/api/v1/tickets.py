from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.schemas.ticket import TicketDetail, TicketSaleRequest, TicketSaleResponse
from app.services import tickets as ticket_service

router = APIRouter(prefix="/tickets", tags=["Tickets"])


@router.post("/", response_model=TicketSaleResponse, status_code=status.HTTP_201_CREATED)
def sell_tickets(data: TicketSaleRequest, db: Session = Depends(get_db)):
    """
    Buy one or more seats of a showtime for a customer.

    All-or-nothing: if any requested seat does not exist for the showtime or is
    already sold, nothing is sold and the request fails with 409.
    """
    return ticket_service.sell_tickets(
        db,
        showtime_id=data.showtime_id,
        seat_ids=data.seat_ids,
        customer_name=data.customer_name,
    )


@router.get("/{id}", response_model=TicketDetail)
def get_ticket(id: int, db: Session = Depends(get_db)):
    return ticket_service.get_ticket(db, id)


@router.patch("/{id}/cancel", status_code=status.HTTP_204_NO_CONTENT)
def cancel_ticket(id: int, db: Session = Depends(get_db)):
    """Cancel an active ticket and release its seat."""
    ticket_service.cancel_ticket(db, id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{id}/consume", status_code=status.HTTP_204_NO_CONTENT)
def consume_ticket(id: int, db: Session = Depends(get_db)):
    """Validate an active ticket at the entrance. The seat stays sold."""
    ticket_service.consume_ticket(db, id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
