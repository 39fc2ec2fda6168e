from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, ResourceAlreadyExistsError, ResourceInUseError
from app.db.session import get_db
from app.models.movie import Movie
from app.models.showtime import Showtime, ShowtimeStatus
from app.schemas.common import PaginatedResponse
from app.schemas.movie import Movie as MovieSchema, MovieCreate, MovieUpdate

router = APIRouter(prefix="/movies", tags=["Movies"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _get_movie(db: Session, movie_id: int) -> Movie:
    movie = db.get(Movie, movie_id)
    if not movie:
        raise NotFoundError(f"Movie with id {movie_id} was not found")
    return movie


def _title_taken(db: Session, title: str, release_date) -> bool:
    return (
        db.query(Movie.id)
        .filter(Movie.title == title, Movie.release_date == release_date)
        .first()
        is not None
    )


def _paginate(query, page: int, limit: int) -> PaginatedResponse:
    total = query.count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return PaginatedResponse(
        data=[MovieSchema.model_validate(m) for m in items],
        total=total,
        page=page,
        limit=limit,
        total_pages=-(-total // limit) if total else 0,
    )


# ---------------------------------------------------------------------------
# Movie CRUD
# ---------------------------------------------------------------------------


@router.post("/", response_model=MovieSchema, status_code=status.HTTP_201_CREATED)
def create_movie(data: MovieCreate, db: Session = Depends(get_db)):
    if _title_taken(db, data.title, data.release_date):
        raise ResourceAlreadyExistsError(f"Movie with title {data.title} already exists")

    movie = Movie(**data.model_dump())
    db.add(movie)
    db.commit()
    db.refresh(movie)
    return movie


@router.get("/", response_model=PaginatedResponse[MovieSchema])
def search_movies(
    title: Optional[str] = Query(None, max_length=255),
    genre: Optional[str] = Query(None, max_length=30),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """Case-insensitive substring search on title and genre."""
    query = db.query(Movie)
    if title:
        query = query.filter(Movie.title.ilike(f"%{title}%"))
    if genre:
        query = query.filter(Movie.genre.ilike(f"%{genre}%"))
    return _paginate(query.order_by(Movie.title, Movie.id), page, limit)


@router.get("/showtimes", response_model=PaginatedResponse[MovieSchema])
def list_movies_with_showtimes(
    from_time: datetime = Query(..., description="Only showtimes starting at or after this instant"),
    status: ShowtimeStatus = Query(ShowtimeStatus.SCHEDULED),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """Movies that have at least one showtime in the given status from ``from_time`` on."""
    movie_ids = (
        db.query(Showtime.movie_id)
        .filter(Showtime.start_time >= from_time, Showtime.status == status)
        .distinct()
        .scalar_subquery()
    )
    query = db.query(Movie).filter(Movie.id.in_(movie_ids))
    return _paginate(query.order_by(Movie.title, Movie.id), page, limit)


@router.get("/{id}", response_model=MovieSchema)
def get_movie(id: int, db: Session = Depends(get_db)):
    return _get_movie(db, id)


@router.put("/{id}", response_model=MovieSchema)
def update_movie(id: int, data: MovieUpdate, db: Session = Depends(get_db)):
    movie = _get_movie(db, id)

    identity_changing = (
        movie.title != data.title or movie.release_date != data.release_date
    )
    if identity_changing and _title_taken(db, data.title, data.release_date):
        raise ResourceAlreadyExistsError(
            f"A movie with title '{data.title}' and release date '{data.release_date}' "
            "already exists. The changes cannot be applied"
        )

    for field, value in data.model_dump().items():
        setattr(movie, field, value)

    db.commit()
    db.refresh(movie)
    return movie


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_movie(id: int, db: Session = Depends(get_db)):
    movie = _get_movie(db, id)

    has_showtimes = db.query(Showtime.id).filter(Showtime.movie_id == id).first()
    if has_showtimes:
        raise ResourceInUseError(f"Cannot delete movie with id '{id}' because it has showtimes")

    db.delete(movie)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
