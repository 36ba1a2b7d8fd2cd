import datetime
import random

from faker import Faker
from tqdm import tqdm

from app.database import Base, SessionLocal, engine
from app.errors import Conflict
from app.models import Cinema, Movie, Screen
from app.repository import SqlCatalogStore, SqlShowtimeRepository
from app.scheduler import ShowtimeScheduler
from app.schemas import ShowtimeCreate

fake = Faker("en_US")

NUM_CINEMAS = 3
SCREENS_PER_CINEMA = 4
DAYS_AHEAD = 7

MIN_ROWS = 8
MIN_COLS = 10

FIRST_SHOW = datetime.time(10, 0)
LAST_START = datetime.time(22, 30)


FILMS = [
    ("Avengers: Endgame", "Action, Fantasy", 181, "PG-13"),
    ("The Conjuring", "Horror, Mystery", 112, "R"),
    ("Frozen", "Family, Musical", 102, "PG"),
    ("Spirited Away", "Anime, Fantasy", 125, "PG"),
    ("Inception", "Sci-Fi, Thriller", 148, "PG-13"),
]


def base_price(duration):
    if duration >= 180:
        return 110000
    if duration >= 125:
        return 95000
    return 85000


def round_up(moment, minutes=15):
    extra = -moment.minute % minutes
    return (moment + datetime.timedelta(minutes=extra)).replace(second=0, microsecond=0)


def main():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    print("INFO: tables recreated.")

    db = SessionLocal()
    scheduler = ShowtimeScheduler(SqlShowtimeRepository(db), SqlCatalogStore(db))

    movies = []
    for title, genre, duration, rating in FILMS:
        m = Movie(title=title, genre=genre, duration=duration, rating=rating,
                  status="now-showing", is_active=True)
        db.add(m)
        movies.append(m)
    db.commit()

    screens = []
    for _ in range(NUM_CINEMAS):
        c = Cinema(
            name=f"{fake.city()} Cineplex",
            location=fake.street_address(),
            default_price=base_price(0),
            is_active=True,
        )
        db.add(c)
        db.flush()

        for i in range(1, SCREENS_PER_CINEMA + 1):
            s = Screen(
                cinema_id=c.id,
                name=f"Screen {i}",
                rows=random.randint(MIN_ROWS, MIN_ROWS + 5),
                cols=random.randint(MIN_COLS, MIN_COLS + 6),
            )
            db.add(s)
            screens.append(s)
    db.commit()

    created = 0
    rejected = 0
    today = datetime.date.today()
    progress = tqdm(total=DAYS_AHEAD * len(screens), desc="Scheduling screens", unit="screen-day")

    for d in range(DAYS_AHEAD):
        day = today + datetime.timedelta(days=d)
        for s in screens:
            slot = datetime.datetime.combine(day, FIRST_SHOW)
            last = datetime.datetime.combine(day, LAST_START)
            while slot <= last:
                mv = random.choice(movies)
                try:
                    st = scheduler.create(ShowtimeCreate(
                        movie_id=mv.id,
                        cinema_id=s.cinema_id,
                        screen_id=s.id,
                        start_time=slot,
                        price=base_price(mv.duration),
                    ))
                    created += 1
                    slot = round_up(st.end_time)
                except Conflict:
                    rejected += 1
                    slot += datetime.timedelta(minutes=15)
            progress.update(1)

    progress.close()
    db.close()
    print(f"\nDONE: {created} showtimes, {rejected} rejected slots")


if __name__ == "__main__":
    main()
