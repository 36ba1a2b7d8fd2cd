import pytest
from datetime import datetime
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from app.database import Base, use_immediate_transactions
from app.errors import Conflict
from app.models import BookedSeat, Cinema, Movie, Screen, Showtime
from app.repository import SqlCatalogStore, SqlShowtimeRepository
from app.scheduler import ShowtimeScheduler
from app.schemas import ShowtimeCreate, ShowtimeUpdate


# ======================================================
# SETUP: FILE-BACKED SQLITE, ONE CONNECTION PER SESSION
# ======================================================

def at(hour, minute=0):
    return datetime(2025, 12, 10, hour, minute)


@pytest.fixture
def Session(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'showtimes.db'}",
        # a blocked writer gives up quickly instead of waiting the default 5s
        connect_args={"check_same_thread": False, "timeout": 0.2},
    )
    use_immediate_transactions(engine)
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def seed(Session):
    db = Session()
    movie = Movie(title="Avatar", duration=120, is_active=True)
    cinema = Cinema(name="Downtown", default_price=75000, is_active=True)
    db.add_all([movie, cinema])
    db.commit()
    screen = Screen(cinema_id=cinema.id, name="Screen 1", rows=8, cols=10)
    db.add(screen)
    db.commit()
    ids = {"movie": movie.id, "cinema": cinema.id, "screen": screen.id}
    db.close()
    return ids


def scheduler_for(db):
    return ShowtimeScheduler(SqlShowtimeRepository(db), SqlCatalogStore(db))


def request(seed, start):
    return ShowtimeCreate(movie_id=seed["movie"], cinema_id=seed["cinema"],
                          screen_id=seed["screen"], start_time=start)


def active_windows(Session):
    db = Session()
    rows = (
        db.query(Showtime.start_time, Showtime.end_time)
        .filter(Showtime.is_active.is_(True))
        .order_by(Showtime.start_time)
        .all()
    )
    db.close()
    return [tuple(r) for r in rows]


def run_between_check_and_write(repo, other):
    """Run ``other`` right after ``repo``'s overlap query; record whether it got through."""
    outcome = []
    check = repo.find_overlapping

    def check_then_other(*args, **kwargs):
        found = check(*args, **kwargs)
        try:
            other()
            outcome.append("committed")
        except OperationalError:
            outcome.append("blocked")
        return found

    repo.find_overlapping = check_then_other
    return outcome


# ======================================================
# ATOMIC CHECK-AND-WRITE
# ======================================================

def test_concurrent_create_cannot_slip_in_between(Session, seed):
    db_a, db_b = Session(), Session()
    sched_a, sched_b = scheduler_for(db_a), scheduler_for(db_b)

    outcome = run_between_check_and_write(sched_a.repo, lambda: sched_b.create(request(seed, at(14, 30))))
    sched_a.create(request(seed, at(14)))
    db_a.close()
    db_b.close()

    assert outcome == ["blocked"]
    assert active_windows(Session) == [(at(14), at(16, 15))]

    # once the first writer is done, the second one sees its slot
    db_c = Session()
    with pytest.raises(Conflict):
        scheduler_for(db_c).create(request(seed, at(14, 30)))
    db_c.close()

    assert len(active_windows(Session)) == 1


def test_concurrent_create_during_reschedule(Session, seed):
    db = Session()
    sid = scheduler_for(db).create(request(seed, at(10))).id
    db.close()

    db_a, db_b = Session(), Session()
    sched_a, sched_b = scheduler_for(db_a), scheduler_for(db_b)

    outcome = run_between_check_and_write(sched_a.repo, lambda: sched_b.create(request(seed, at(18))))
    sched_a.update(sid, ShowtimeUpdate(start_time=at(17)))
    db_a.close()
    db_b.close()

    assert outcome == ["blocked"]
    assert active_windows(Session) == [(at(17), at(19, 15))]


# ======================================================
# BOOKING LEDGER
# ======================================================

def test_booked_count_reads_ledger(Session, seed):
    db = Session()
    scheduler = scheduler_for(db)
    st = scheduler.create(request(seed, at(14)))
    assert scheduler.repo.booked_count(st) == 0

    db.add_all([
        BookedSeat(showtime_id=st.id, row="A", col=1),
        BookedSeat(showtime_id=st.id, row="A", col=2),
    ])
    db.commit()

    assert scheduler.repo.booked_count(st) == 2
    with pytest.raises(Conflict):
        scheduler.delete(st.id)
    db.close()
