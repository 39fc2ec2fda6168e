from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, ResourceAlreadyExistsError, ResourceInUseError
from app.db.session import get_db
from app.models.room import Room
from app.models.showtime import Showtime, ShowtimeStatus
from app.schemas.common import PaginatedResponse
from app.schemas.room import Room as RoomSchema, RoomCreate, RoomUpdate

router = APIRouter(prefix="/rooms", tags=["Rooms"])


def _get_active_room(db: Session, room_id: int) -> Room:
    room = db.query(Room).filter(Room.id == room_id, Room.is_active == True).first()  # noqa: E712
    if not room:
        raise NotFoundError(f"Room with id {room_id} was not found")
    return room


def _name_taken(db: Session, name: str) -> bool:
    return db.query(Room.id).filter(Room.name == name).first() is not None


@router.post("/", response_model=RoomSchema, status_code=status.HTTP_201_CREATED)
def create_room(data: RoomCreate, db: Session = Depends(get_db)):
    if _name_taken(db, data.name):
        raise ResourceAlreadyExistsError(f"Room with name {data.name} already exists")

    room = Room(**data.model_dump())
    db.add(room)
    db.commit()
    db.refresh(room)
    return room


@router.get("/", response_model=PaginatedResponse[RoomSchema])
def list_rooms(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    query = db.query(Room).filter(Room.is_active == True)  # noqa: E712
    total = query.count()
    rooms = query.order_by(Room.name).offset((page - 1) * limit).limit(limit).all()

    return PaginatedResponse(
        data=[RoomSchema.model_validate(r) for r in rooms],
        total=total,
        page=page,
        limit=limit,
        total_pages=-(-total // limit) if total else 0,
    )


@router.get("/{id}", response_model=RoomSchema)
def get_room(id: int, db: Session = Depends(get_db)):
    return _get_active_room(db, id)


@router.put("/{id}", response_model=RoomSchema)
def update_room(id: int, data: RoomUpdate, db: Session = Depends(get_db)):
    """
    Rename or resize a room. The new layout only applies to showtimes created
    afterwards; existing seat pools are left untouched.
    """
    room = _get_active_room(db, id)

    if room.name != data.name and _name_taken(db, data.name):
        raise ResourceAlreadyExistsError(
            f"A room with name '{data.name}' already exists, the changes cannot be applied"
        )

    for field, value in data.model_dump().items():
        setattr(room, field, value)

    db.commit()
    db.refresh(room)
    return room


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_room(id: int, db: Session = Depends(get_db)):
    """Soft delete: the room is deactivated so past showtimes keep their reference."""
    room = _get_active_room(db, id)

    scheduled = (
        db.query(Showtime.id)
        .filter(Showtime.room_id == id, Showtime.status == ShowtimeStatus.SCHEDULED)
        .first()
    )
    if scheduled:
        raise ResourceInUseError(
            f"Cannot delete room with id '{id}' because it has active (scheduled) showtimes"
        )

    room.is_active = False
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
