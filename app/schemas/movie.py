from typing import Optional
from datetime import date

from pydantic import BaseModel, Field, field_validator


# Movie: Create / Update (POST /movies, PUT /movies/{id})
class MovieCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    duration_minutes: int = Field(ge=1)
    genre: str = Field(min_length=1, max_length=30)
    release_date: date
    description: Optional[str] = Field(None, max_length=5000)

    @field_validator("title", "genre")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v

    @field_validator("release_date")
    @classmethod
    def not_in_future(cls, v: date) -> date:
        if v > date.today():
            raise ValueError("release date cannot be in the future")
        return v


class MovieUpdate(MovieCreate):
    pass


class Movie(BaseModel):
    id: int
    title: str
    duration_minutes: int
    genre: str
    release_date: date
    description: Optional[str] = None

    class Config:
        from_attributes = True
