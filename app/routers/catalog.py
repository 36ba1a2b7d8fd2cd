from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.deps import require_admin
from app.models import Cinema, Movie, Screen
from app.schemas import CinemaInput, CinemaOut, MovieInput, MovieOut, ScreenInput, ScreenOut

router = APIRouter()


# MOVIE
@router.get("/movies")
def get_movies(db: Session = Depends(get_db)):
    movies = db.query(Movie).filter(Movie.is_active.is_(True)).order_by(Movie.id).all()
    return {
        "success": True,
        "count": len(movies),
        "movies": [MovieOut.model_validate(m).model_dump() for m in movies],
    }


@router.post("/movies", status_code=201, dependencies=[Depends(require_admin)])
def add_movie(item: MovieInput, db: Session = Depends(get_db)):
    movie = Movie(**item.model_dump(), is_active=True)

    db.add(movie)
    db.commit()
    db.refresh(movie)

    return {"success": True, "movie": MovieOut.model_validate(movie).model_dump()}


# CINEMA
@router.get("/cinemas")
def get_cinemas(db: Session = Depends(get_db)):
    cinemas = db.query(Cinema).filter(Cinema.is_active.is_(True)).order_by(Cinema.id).all()
    return {
        "success": True,
        "count": len(cinemas),
        "cinemas": [CinemaOut.model_validate(c).model_dump() for c in cinemas],
    }


@router.post("/cinemas", status_code=201, dependencies=[Depends(require_admin)])
def add_cinema(item: CinemaInput, db: Session = Depends(get_db)):
    cinema = Cinema(**item.model_dump(), is_active=True)

    db.add(cinema)
    db.commit()
    db.refresh(cinema)

    return {"success": True, "cinema": CinemaOut.model_validate(cinema).model_dump()}


# SCREEN
def active_cinema(cinema_id: int, db: Session):
    cinema = db.query(Cinema).filter(Cinema.id == cinema_id, Cinema.is_active.is_(True)).first()
    if not cinema:
        raise HTTPException(404, "Cinema not found")
    return cinema


@router.get("/cinemas/{cinema_id}/screens")
def get_screens(cinema_id: int, db: Session = Depends(get_db)):
    cinema = active_cinema(cinema_id, db)
    return {
        "success": True,
        "count": len(cinema.screens),
        "screens": [ScreenOut.model_validate(s).model_dump() for s in cinema.screens],
    }


@router.post("/cinemas/{cinema_id}/screens", status_code=201, dependencies=[Depends(require_admin)])
def add_screen(cinema_id: int, item: ScreenInput, db: Session = Depends(get_db)):
    cinema = active_cinema(cinema_id, db)
    screen = Screen(cinema_id=cinema.id, **item.model_dump())

    db.add(screen)
    db.commit()
    db.refresh(screen)

    return {"success": True, "screen": ScreenOut.model_validate(screen).model_dump()}
