from sqlalchemy import Column, Integer, String, Text, Date, UniqueConstraint
from app.db.session import Base

class Movie(Base):
    __tablename__ = "movies"
    __table_args__ = (
        UniqueConstraint("title", "release_date", name="uq_movies_title_release_date"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False, index=True)
    duration_minutes = Column(Integer, nullable=False)
    genre = Column(String(30), nullable=False, index=True)
    release_date = Column(Date, nullable=False)
    description = Column(Text, nullable=True)
