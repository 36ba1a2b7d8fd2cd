"""
Typed payloads for the scheduling API.

Input models are validated by FastAPI before they reach the scheduler;
output models are built from ORM rows (``from_attributes``).
"""
import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def to_naive_local(v):
    # stored as naive local time
    if v is not None and v.tzinfo is not None:
        v = v.astimezone().replace(tzinfo=None)
    return v


# SHOWTIME INPUT
class ShowtimeCreate(BaseModel):
    movie_id: int
    cinema_id: int
    screen_id: int
    start_time: datetime.datetime
    date: Optional[datetime.date] = None
    price: Optional[int] = Field(None, ge=0)

    @field_validator("start_time")
    @classmethod
    def naive_local(cls, v):
        return to_naive_local(v)


class ShowtimeUpdate(BaseModel):
    movie_id: Optional[int] = None
    screen_id: Optional[int] = None
    start_time: Optional[datetime.datetime] = None
    date: Optional[datetime.date] = None
    price: Optional[int] = Field(None, ge=0)

    @field_validator("start_time")
    @classmethod
    def naive_local(cls, v):
        return to_naive_local(v)

    def changes(self):
        return self.model_dump(exclude_unset=True, exclude_none=True)


class ShowtimeFilters(BaseModel):
    movie_id: Optional[int] = None
    cinema_id: Optional[int] = None
    date: Optional[datetime.date] = None
    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1)


# SHOWTIME OUTPUT
class MovieBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    duration: int
    rating: Optional[str] = None


class CinemaBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    location: Optional[str] = None


class ShowtimeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    movie_id: int
    cinema_id: int
    screen_id: int
    date: datetime.date
    start_time: datetime.datetime
    end_time: datetime.datetime
    price: int
    available_seats: int
    booked_seats: List[str] = []
    status: str
    is_active: bool
    movie: Optional[MovieBrief] = None
    cinema: Optional[CinemaBrief] = None

    @field_validator("booked_seats", mode="before")
    @classmethod
    def seat_labels(cls, v):
        return [s if isinstance(s, str) else f"{s.row}{s.col}" for s in v or []]


# CATALOG
class MovieInput(BaseModel):
    title: str = Field(..., min_length=1)
    genre: Optional[str] = None
    duration: int = Field(..., gt=0, description="Runtime in minutes")
    rating: Optional[str] = None
    status: str = Field("now-showing", pattern="^(now-showing|coming-soon|ended)$")


class MovieOut(MovieInput):
    model_config = ConfigDict(from_attributes=True)

    id: int
    is_active: bool


class CinemaInput(BaseModel):
    name: str = Field(..., min_length=1)
    location: Optional[str] = None
    default_price: int = Field(..., ge=0)


class CinemaOut(CinemaInput):
    model_config = ConfigDict(from_attributes=True)

    id: int
    is_active: bool


class ScreenInput(BaseModel):
    name: str = Field(..., min_length=1)
    rows: int = Field(..., gt=0, le=26)
    cols: int = Field(..., gt=0)


class ScreenOut(ScreenInput):
    model_config = ConfigDict(from_attributes=True)

    id: int
    cinema_id: int
    total_seats: int
