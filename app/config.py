import os

from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./cinema.db")
# DATABASE_URL = f"mysql+pymysql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"

ADMIN_TOKEN = os.getenv("ADMIN_TOKEN", "change-me")

CLEANING_BUFFER_MINUTES = int(os.getenv("CLEANING_BUFFER_MINUTES", 15))

DEFAULT_PAGE_LIMIT = int(os.getenv("DEFAULT_PAGE_LIMIT", 20))
MAX_PAGE_LIMIT = int(os.getenv("MAX_PAGE_LIMIT", 100))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
