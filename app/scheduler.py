"""
Showtime scheduling rules.

A screen can host one active showtime at a time. A showtime occupies its
screen from ``start_time`` until the movie's runtime plus a cleaning buffer
has passed, and two active showtimes on the same screen never share any
part of that ``[start_time, end_time)`` window.

The scheduler keeps no state of its own; everything goes through the
injected ``ShowtimeRepository`` and ``CatalogStore``.
"""
import datetime
import logging
import math
from dataclasses import dataclass
from typing import List

from app.config import CLEANING_BUFFER_MINUTES
from app.errors import Conflict, InvalidShowtime, NotFound
from app.models import Showtime
from app.repository import CatalogStore, ShowtimeRepository, ShowtimeSearch
from app.schemas import ShowtimeCreate, ShowtimeFilters, ShowtimeUpdate

logger = logging.getLogger(__name__)

UPCOMING = "upcoming"
ONGOING = "ongoing"
ENDED = "ended"

END_OF_DAY = datetime.time(23, 59, 59, 999000)


def compute_status(start_time, end_time, now):
    if now < start_time:
        return UPCOMING
    if now <= end_time:
        return ONGOING
    return ENDED


def day_window(day):
    return datetime.datetime.combine(day, datetime.time.min), datetime.datetime.combine(day, END_OF_DAY)


@dataclass
class Page:
    items: List[Showtime]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self):
        return math.ceil(self.total / self.limit) if self.limit else 0


class ShowtimeScheduler:

    def __init__(self, repo: ShowtimeRepository, catalog: CatalogStore,
                 clock=datetime.datetime.now, cleaning_buffer=CLEANING_BUFFER_MINUTES):
        self.repo = repo
        self.catalog = catalog
        self.clock = clock
        self.cleaning_buffer = datetime.timedelta(minutes=cleaning_buffer)

    def compute_end_time(self, start_time, duration):
        return start_time + datetime.timedelta(minutes=duration) + self.cleaning_buffer

    def _require(self, showtime_id):
        showtime = self.repo.get(showtime_id)
        if showtime is None or not showtime.is_active:
            raise NotFound("Showtime not found")
        return showtime

    def _require_movie(self, movie_id):
        movie = self.catalog.get_movie(movie_id)
        if movie is None:
            raise NotFound("Movie not found")
        if not movie.duration or movie.duration <= 0:
            raise InvalidShowtime("Movie has no valid duration")
        return movie

    @staticmethod
    def _resolve_day(start_time, day):
        if day is None:
            return start_time.date()
        if day != start_time.date():
            raise InvalidShowtime("date must be the calendar day of start_time")
        return day

    # CREATE
    def create(self, data: ShowtimeCreate) -> Showtime:
        movie = self._require_movie(data.movie_id)

        cinema = self.catalog.get_cinema(data.cinema_id)
        if cinema is None:
            raise NotFound("Cinema not found")

        screen = self.catalog.get_screen(cinema.id, data.screen_id)
        if screen is None:
            raise NotFound("Screen not found")

        day = self._resolve_day(data.start_time, data.date)
        end_time = self.compute_end_time(data.start_time, movie.duration)

        showtime = Showtime(
            movie_id=movie.id,
            cinema_id=cinema.id,
            screen_id=screen.id,
            date=day,
            start_time=data.start_time,
            end_time=end_time,
            price=data.price if data.price is not None else cinema.default_price,
            available_seats=screen.total_seats,
            status=compute_status(data.start_time, end_time, self.clock()),
            is_active=True,
        )
        try:
            showtime = self.repo.insert(showtime)
        except Conflict:
            logger.warning(
                "Rejected showtime on screen %s %s-%s: slot taken",
                screen.id, data.start_time, end_time,
            )
            raise
        logger.info("Created showtime %s (movie %s, screen %s)", showtime.id, movie.id, screen.id)
        return showtime

    # READ
    def get(self, showtime_id) -> Showtime:
        showtime = self._require(showtime_id)
        return self.update_status(showtime)

    def update_status(self, showtime):
        status = compute_status(showtime.start_time, showtime.end_time, self.clock())
        return self.repo.save_status(showtime, status)

    # UPDATE
    def update(self, showtime_id, patch: ShowtimeUpdate) -> Showtime:
        showtime = self._require(showtime_id)
        changes = patch.changes()
        if not changes:
            return self.update_status(showtime)

        values = {}

        movie = None
        if changes.get("movie_id", showtime.movie_id) != showtime.movie_id:
            movie = self._require_movie(changes["movie_id"])
            values["movie_id"] = movie.id

        if changes.get("screen_id", showtime.screen_id) != showtime.screen_id:
            screen = self.catalog.get_screen(showtime.cinema_id, changes["screen_id"])
            if screen is None:
                raise NotFound("Screen not found")
            booked = self.repo.booked_count(showtime)
            if booked > screen.total_seats:
                raise InvalidShowtime("Screen is too small for the seats already booked")
            values["screen_id"] = screen.id
            values["available_seats"] = screen.total_seats - booked

        start_time = changes.get("start_time", showtime.start_time)
        if movie is not None:
            end_time = self.compute_end_time(start_time, movie.duration)
        else:
            end_time = start_time + (showtime.end_time - showtime.start_time)
        if start_time != showtime.start_time or end_time != showtime.end_time:
            values["start_time"] = start_time
            values["end_time"] = end_time

        if "start_time" in changes or "date" in changes:
            day = self._resolve_day(start_time, changes.get("date"))
            if day != showtime.date:
                values["date"] = day

        if "price" in changes:
            values["price"] = changes["price"]

        if not values:
            return self.update_status(showtime)

        changed = sorted(values)
        retimed = any(k in values for k in ("start_time", "end_time", "screen_id", "date"))
        values["status"] = compute_status(start_time, end_time, self.clock())
        try:
            showtime = self.repo.update(showtime, values, check_overlap=retimed)
        except Conflict:
            logger.warning("Rejected update of showtime %s: slot taken", showtime_id)
            raise
        logger.info("Updated showtime %s: %s", showtime_id, ", ".join(changed))
        return showtime

    # DELETE
    def delete(self, showtime_id) -> Showtime:
        showtime = self._require(showtime_id)
        if self.repo.booked_count(showtime):
            raise Conflict("Cannot delete showtime with existing bookings")
        showtime = self.repo.soft_delete(showtime)
        logger.info("Soft-deleted showtime %s", showtime_id)
        return showtime

    # LIST
    def list(self, filters: ShowtimeFilters) -> Page:
        return self._search(filters, filters.movie_id, filters.cinema_id)

    def list_by_movie(self, movie_id, filters: ShowtimeFilters) -> Page:
        return self._search(filters, movie_id, filters.cinema_id)

    def list_by_cinema(self, cinema_id, filters: ShowtimeFilters) -> Page:
        return self._search(filters, filters.movie_id, cinema_id)

    def _search(self, filters, movie_id, cinema_id):
        now = self.clock()
        if filters.date is not None:
            start_from, start_to = day_window(filters.date)
        else:
            start_from, start_to = now, None

        items, total = self.repo.search(ShowtimeSearch(
            movie_id=movie_id,
            cinema_id=cinema_id,
            start_from=start_from,
            start_to=start_to,
            offset=(filters.page - 1) * filters.limit,
            limit=filters.limit,
        ))
        for showtime in items:
            showtime.status = compute_status(showtime.start_time, showtime.end_time, now)
        return Page(items=items, total=total, page=filters.page, limit=filters.limit)
