from typing import Annotated, List
from decimal import Decimal
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from app.models.ticket import TicketStatus


# Ticket sale: Create (POST /tickets)
class TicketSaleRequest(BaseModel):
    showtime_id: int = Field(ge=1)
    seat_ids: List[Annotated[int, Field(ge=1)]] = Field(min_length=1)
    customer_name: str = Field(min_length=1, max_length=255)

    @field_validator("customer_name")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("customer name must not be blank")
        return v


class TicketDetail(BaseModel):
    id: int
    owner: str
    movie_title: str
    row_number: int
    seat_number: int
    purchase_timestamp: datetime
    show_start_time: datetime
    price: Decimal
    status: TicketStatus


# Ticket sale: Response (POST /tickets)
class TicketSaleResponse(BaseModel):
    total_price: Decimal
    total_tickets: int
    tickets: List[TicketDetail]
