"""
Storage seams for the scheduler.

``ShowtimeRepository`` and ``CatalogStore`` are the only way the scheduler
touches persistent state, so the scheduling rules can run against the
SQLAlchemy implementations below or against an in-memory fake.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload, selectinload

from app.errors import Conflict
from app.models import BookedSeat, Cinema, Movie, Screen, Showtime

SLOT_TAKEN = "Time slot conflicts with existing showtime"


@dataclass
class ShowtimeSearch:
    movie_id: Optional[int] = None
    cinema_id: Optional[int] = None
    start_from: Optional[object] = None
    start_to: Optional[object] = None
    offset: int = 0
    limit: int = 20


class ShowtimeRepository(ABC):

    @abstractmethod
    def get(self, showtime_id: int) -> Optional[Showtime]:
        ...

    @abstractmethod
    def find_overlapping(self, cinema_id, screen_id, start, end, exclude_id=None) -> List[Showtime]:
        """Active showtimes on the screen whose ``[start, end)`` intersects the given window."""

    @abstractmethod
    def insert(self, showtime: Showtime) -> Showtime:
        """Overlap check and write as one unit; raises ``Conflict`` and writes nothing on a clash."""

    @abstractmethod
    def update(self, showtime: Showtime, values: dict, check_overlap: bool) -> Showtime:
        """Apply ``values``; when ``check_overlap`` the new window is re-checked against other showtimes first."""

    @abstractmethod
    def soft_delete(self, showtime: Showtime) -> Showtime:
        ...

    @abstractmethod
    def save_status(self, showtime: Showtime, status: str) -> Showtime:
        ...

    @abstractmethod
    def booked_count(self, showtime: Showtime) -> int:
        """Seats the booking ledger currently holds against ``showtime``."""

    @abstractmethod
    def search(self, criteria: ShowtimeSearch) -> Tuple[List[Showtime], int]:
        """Active showtimes matching ``criteria`` ordered by start time, plus the unpaged total."""


class CatalogStore(ABC):

    @abstractmethod
    def get_movie(self, movie_id: int) -> Optional[Movie]:
        ...

    @abstractmethod
    def get_cinema(self, cinema_id: int) -> Optional[Cinema]:
        ...

    @abstractmethod
    def get_screen(self, cinema_id: int, screen_id: int) -> Optional[Screen]:
        ...


def candidate_window(showtime, values):
    """(cinema_id, screen_id, start, end) a showtime would occupy after ``values`` are applied."""
    return (
        values.get("cinema_id", showtime.cinema_id),
        values.get("screen_id", showtime.screen_id),
        values.get("start_time", showtime.start_time),
        values.get("end_time", showtime.end_time),
    )


class SqlShowtimeRepository(ShowtimeRepository):

    def __init__(self, db: Session):
        self.db = db

    def _query(self):
        return self.db.query(Showtime).options(
            joinedload(Showtime.movie),
            joinedload(Showtime.cinema),
            selectinload(Showtime.booked_seats),
        )

    def _lock_screen(self, screen_id):
        # row lock on the screen serializes writers for that screen; SQLite ignores FOR UPDATE
        # and relies on the BEGIN IMMEDIATE transactions set up in app.database
        self.db.query(Screen.id).filter(Screen.id == screen_id).with_for_update().first()

    def get(self, showtime_id):
        return self._query().filter(Showtime.id == showtime_id).first()

    def find_overlapping(self, cinema_id, screen_id, start, end, exclude_id=None):
        q = self.db.query(Showtime).filter(
            Showtime.cinema_id == cinema_id,
            Showtime.screen_id == screen_id,
            Showtime.is_active.is_(True),
            Showtime.start_time < end,
            Showtime.end_time > start,
        )
        if exclude_id is not None:
            q = q.filter(Showtime.id != exclude_id)
        return q.order_by(Showtime.start_time).all()

    def insert(self, showtime):
        try:
            self._lock_screen(showtime.screen_id)
            clash = self.find_overlapping(
                showtime.cinema_id, showtime.screen_id, showtime.start_time, showtime.end_time
            )
            if clash:
                raise Conflict(SLOT_TAKEN)
            self.db.add(showtime)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return self.get(showtime.id)

    def update(self, showtime, values, check_overlap):
        try:
            if check_overlap:
                cinema_id, screen_id, start, end = candidate_window(showtime, values)
                self._lock_screen(screen_id)
                if self.find_overlapping(cinema_id, screen_id, start, end, exclude_id=showtime.id):
                    raise Conflict(SLOT_TAKEN)
            for key, value in values.items():
                setattr(showtime, key, value)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        # relationships follow changed foreign keys on the next load
        self.db.expire(showtime)
        return self.get(showtime.id)

    def soft_delete(self, showtime):
        showtime.is_active = False
        self.db.commit()
        self.db.refresh(showtime)
        return showtime

    def save_status(self, showtime, status):
        if showtime.status != status:
            showtime.status = status
            self.db.commit()
            self.db.refresh(showtime)
        return showtime

    def booked_count(self, showtime):
        return (
            self.db.query(func.count(BookedSeat.id))
            .filter(BookedSeat.showtime_id == showtime.id)
            .scalar()
        )

    def search(self, criteria):
        q = self.db.query(Showtime).filter(Showtime.is_active.is_(True))
        if criteria.movie_id is not None:
            q = q.filter(Showtime.movie_id == criteria.movie_id)
        if criteria.cinema_id is not None:
            q = q.filter(Showtime.cinema_id == criteria.cinema_id)
        if criteria.start_from is not None:
            q = q.filter(Showtime.start_time >= criteria.start_from)
        if criteria.start_to is not None:
            q = q.filter(Showtime.start_time <= criteria.start_to)

        total = q.count()
        items = (
            q.options(
                joinedload(Showtime.movie),
                joinedload(Showtime.cinema),
                selectinload(Showtime.booked_seats),
            )
            .order_by(Showtime.start_time, Showtime.id)
            .offset(criteria.offset)
            .limit(criteria.limit)
            .all()
        )
        return items, total


class SqlCatalogStore(CatalogStore):

    def __init__(self, db: Session):
        self.db = db

    def get_movie(self, movie_id):
        return (
            self.db.query(Movie)
            .filter(Movie.id == movie_id, Movie.is_active.is_(True))
            .first()
        )

    def get_cinema(self, cinema_id):
        return (
            self.db.query(Cinema)
            .filter(Cinema.id == cinema_id, Cinema.is_active.is_(True))
            .first()
        )

    def get_screen(self, cinema_id, screen_id):
        return (
            self.db.query(Screen)
            .filter(Screen.id == screen_id, Screen.cinema_id == cinema_id)
            .first()
        )
