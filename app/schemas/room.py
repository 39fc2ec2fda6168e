from pydantic import BaseModel, Field, field_validator


# Room: Create / Update (POST /rooms, PUT /rooms/{id})
class RoomCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    rows: int = Field(ge=1)
    seats_per_row: int = Field(ge=1)

    @field_validator("name")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v


class RoomUpdate(RoomCreate):
    pass


class Room(BaseModel):
    id: int
    name: str
    rows: int
    seats_per_row: int
    capacity: int

    class Config:
        from_attributes = True
