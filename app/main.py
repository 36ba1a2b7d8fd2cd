import logging
import os

from fastapi import FastAPI

import app.models
from app.config import LOG_LEVEL
from app.database import Base, engine
from app.errors import register_error_handlers
from app.routers import catalog, showtimes

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Cinema Showtime Scheduler",
    description="""Backend for scheduling cinema showtimes:
     **Public**: browse upcoming showtimes by movie, cinema and day.
     **Admin**: manage the movie/cinema catalog and create, reschedule or retire showtimes.
     A screen never hosts two overlapping showtimes; each slot includes a cleaning buffer.
     """,
    version="1.0.0"
)

register_error_handlers(app)

# Catalog
app.include_router(catalog.router, tags=["Catalog - Movies, Cinemas, Screens"])

# Scheduling
app.include_router(showtimes.router, tags=["Showtimes"])


@app.get("/")
def home():
    return {
        "success": True,
        "message": "Cinema showtime API is running",
        "info": "See /docs for Swagger UI.",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", 8000)))
