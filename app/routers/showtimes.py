import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.config import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from app.deps import get_scheduler, require_admin
from app.scheduler import Page, ShowtimeScheduler
from app.schemas import ShowtimeCreate, ShowtimeFilters, ShowtimeOut, ShowtimeUpdate

router = APIRouter(prefix="/showtimes")


def showtime_filters(
    movie_id: Optional[int] = None,
    cinema_id: Optional[int] = None,
    date: Optional[datetime.date] = Query(None, description="Calendar day, YYYY-MM-DD"),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
) -> ShowtimeFilters:
    return ShowtimeFilters(movie_id=movie_id, cinema_id=cinema_id, date=date, page=page, limit=limit)


def page_to_dict(page: Page):
    return {
        "success": True,
        "count": len(page.items),
        "total": page.total,
        "totalPages": page.total_pages,
        "currentPage": page.page,
        "showtimes": [ShowtimeOut.model_validate(s).model_dump(mode="json") for s in page.items],
    }


def showtime_to_dict(showtime):
    return ShowtimeOut.model_validate(showtime).model_dump(mode="json")


@router.get("")
def get_showtimes(
    filters: ShowtimeFilters = Depends(showtime_filters),
    scheduler: ShowtimeScheduler = Depends(get_scheduler),
):
    """Active showtimes, upcoming ones only unless a date is given."""
    return page_to_dict(scheduler.list(filters))


@router.get("/movie/{movie_id}")
def get_showtimes_by_movie(
    movie_id: int,
    filters: ShowtimeFilters = Depends(showtime_filters),
    scheduler: ShowtimeScheduler = Depends(get_scheduler),
):
    return page_to_dict(scheduler.list_by_movie(movie_id, filters))


@router.get("/cinema/{cinema_id}")
def get_showtimes_by_cinema(
    cinema_id: int,
    filters: ShowtimeFilters = Depends(showtime_filters),
    scheduler: ShowtimeScheduler = Depends(get_scheduler),
):
    return page_to_dict(scheduler.list_by_cinema(cinema_id, filters))


@router.get("/{showtime_id}")
def get_showtime(showtime_id: int, scheduler: ShowtimeScheduler = Depends(get_scheduler)):
    showtime = scheduler.get(showtime_id)
    return {"success": True, "showtime": showtime_to_dict(showtime)}


@router.post("", status_code=201, dependencies=[Depends(require_admin)])
def create_showtime(item: ShowtimeCreate, scheduler: ShowtimeScheduler = Depends(get_scheduler)):
    showtime = scheduler.create(item)
    return {"success": True, "showtime": showtime_to_dict(showtime)}


@router.put("/{showtime_id}", dependencies=[Depends(require_admin)])
def update_showtime(
    showtime_id: int,
    item: ShowtimeUpdate,
    scheduler: ShowtimeScheduler = Depends(get_scheduler),
):
    showtime = scheduler.update(showtime_id, item)
    return {"success": True, "showtime": showtime_to_dict(showtime)}


@router.delete("/{showtime_id}", dependencies=[Depends(require_admin)])
def delete_showtime(showtime_id: int, scheduler: ShowtimeScheduler = Depends(get_scheduler)):
    scheduler.delete(showtime_id)
    return {"success": True, "message": "Showtime deleted successfully"}
