import datetime

from sqlalchemy import (
    Boolean, Column, Date, DateTime, ForeignKey, Index, Integer, String,
    UniqueConstraint
)
from sqlalchemy.orm import relationship

from app.database import Base


class Movie(Base):
    __tablename__ = "movies"
    id = Column(Integer, primary_key=True)
    title = Column(String(200), nullable=False)
    genre = Column(String(100))
    duration = Column(Integer, nullable=False)
    rating = Column(String(10))
    status = Column(String(20), default="now-showing")
    is_active = Column(Boolean, default=True, nullable=False)


class Cinema(Base):
    __tablename__ = "cinemas"
    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    location = Column(String(255))
    default_price = Column(Integer, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    screens = relationship("Screen", back_populates="cinema", order_by="Screen.id")


class Screen(Base):
    __tablename__ = "screens"
    id = Column(Integer, primary_key=True)
    cinema_id = Column(Integer, ForeignKey("cinemas.id"), nullable=False)
    name = Column(String(50), nullable=False)
    rows = Column(Integer, nullable=False)
    cols = Column(Integer, nullable=False)

    cinema = relationship("Cinema", back_populates="screens")

    @property
    def total_seats(self):
        return self.rows * self.cols


class Showtime(Base):
    __tablename__ = "showtimes"
    id = Column(Integer, primary_key=True)

    movie_id = Column(Integer, ForeignKey("movies.id"), nullable=False)
    movie = relationship("Movie")

    cinema_id = Column(Integer, ForeignKey("cinemas.id"), nullable=False)
    cinema = relationship("Cinema")

    screen_id = Column(Integer, ForeignKey("screens.id"), nullable=False)
    screen = relationship("Screen")

    date = Column(Date, nullable=False)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)

    price = Column(Integer, nullable=False)
    available_seats = Column(Integer, nullable=False)

    # cached display value, recomputed on read
    status = Column(String(10), default="upcoming")
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.datetime.now)
    updated_at = Column(DateTime, default=datetime.datetime.now, onupdate=datetime.datetime.now)

    booked_seats = relationship("BookedSeat", back_populates="showtime", order_by="BookedSeat.id")

    __table_args__ = (
        Index("ix_showtimes_screen_window", "cinema_id", "screen_id", "start_time", "end_time"),
    )


class BookedSeat(Base):
    __tablename__ = "booked_seats"
    id = Column(Integer, primary_key=True)
    showtime_id = Column(Integer, ForeignKey("showtimes.id"), nullable=False)
    row = Column(String(3), nullable=False)
    col = Column(Integer, nullable=False)

    showtime = relationship("Showtime", back_populates="booked_seats")

    __table_args__ = (UniqueConstraint("showtime_id", "row", "col"),)
