from datetime import date
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.models.seat import Seat, SeatStatus
from app.models.showtime import ShowtimeStatus
from app.schemas.common import PaginatedResponse
from app.schemas.seat import SeatInfo, SeatMapResponse, SeatRow
from app.schemas.showtime import Showtime as ShowtimeSchema, ShowtimeCreate, ShowtimeUpdate
from app.services import showtimes as showtime_service

router = APIRouter(prefix="/showtimes", tags=["Showtimes"])


# ---------------------------------------------------------------------------
# Showtime CRUD
# ---------------------------------------------------------------------------


@router.post("/", response_model=ShowtimeSchema, status_code=status.HTTP_201_CREATED)
def create_showtime(data: ShowtimeCreate, db: Session = Depends(get_db)):
    """
    Schedule a movie in a room.
    - Rejected when start is not before end, or when it overlaps a scheduled
      showtime in the same room.
    - Generates one AVAILABLE seat per position of the room layout.
    """
    return showtime_service.create_showtime(db, data)


@router.get("/", response_model=PaginatedResponse[ShowtimeSchema])
def search_showtimes(
    date: Optional[date] = Query(None, description="Only showtimes starting on this day (YYYY-MM-DD)"),
    room_id: Optional[int] = Query(None, ge=1),
    movie_id: Optional[int] = Query(None, ge=1),
    status: Optional[ShowtimeStatus] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    query = showtime_service.search_showtimes(
        db, day=date, room_id=room_id, movie_id=movie_id, status=status
    )
    total = query.count()
    showtimes = query.offset((page - 1) * limit).limit(limit).all()

    return PaginatedResponse(
        data=[ShowtimeSchema.model_validate(s) for s in showtimes],
        total=total,
        page=page,
        limit=limit,
        total_pages=-(-total // limit) if total else 0,
    )


@router.get("/{id}", response_model=ShowtimeSchema)
def get_showtime(id: int, db: Session = Depends(get_db)):
    return showtime_service.get_showtime(db, id)


@router.put("/{id}", response_model=ShowtimeSchema)
def update_showtime(id: int, data: ShowtimeUpdate, db: Session = Depends(get_db)):
    return showtime_service.update_showtime(db, id, data)


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def cancel_showtime(id: int, db: Session = Depends(get_db)):
    """Cancel a scheduled showtime. The record and its seats are kept."""
    showtime_service.cancel_showtime(db, id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------------
# Seat map (lock-free, may be slightly stale)
# ---------------------------------------------------------------------------


@router.get("/{id}/seat-map", response_model=SeatMapResponse)
def get_seat_map(id: int, db: Session = Depends(get_db)):
    """Seats of a showtime grouped by row, with the share of sold seats."""
    showtime = showtime_service.get_showtime(db, id)

    seats = (
        db.query(Seat)
        .filter(Seat.showtime_id == showtime.id)
        .order_by(Seat.row_number, Seat.seat_number)
        .all()
    )

    rows_dict: Dict[int, List[SeatInfo]] = {}
    for seat in seats:
        rows_dict.setdefault(seat.row_number, []).append(SeatInfo.model_validate(seat))

    sold = sum(1 for s in seats if s.status == SeatStatus.SOLD)
    occupancy = (sold * 100.0) / len(seats) if seats else 0.0

    return SeatMapResponse(
        showtime_id=showtime.id,
        rows=[SeatRow(row=row, seats=row_seats) for row, row_seats in sorted(rows_dict.items())],
        occupancy_percentage=occupancy,
    )
