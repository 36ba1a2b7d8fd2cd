import secrets
from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from app import config
from app.database import get_db
from app.repository import SqlCatalogStore, SqlShowtimeRepository
from app.scheduler import ShowtimeScheduler


def get_scheduler(db: Session = Depends(get_db)) -> ShowtimeScheduler:
    return ShowtimeScheduler(SqlShowtimeRepository(db), SqlCatalogStore(db))


def require_admin(x_admin_token: Optional[str] = Header(None)):
    if not x_admin_token:
        raise HTTPException(401, "Admin token required")
    if not secrets.compare_digest(x_admin_token, config.ADMIN_TOKEN):
        raise HTTPException(403, "Not authorized as admin")
