import os
import logging
from typing import List, Optional
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_CORS_ORIGINS = [
    "http://localhost:5173",
    "https://life-insurance-8c230.web.app",
]


def _build_database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    user = os.getenv("DB_USER")
    password = os.getenv("DB_PASSWORD")
    host = os.getenv("DB_HOST")
    if user and password and host:
        return f"mongodb+srv://{user}:{password}@{host}/?retryWrites=true&w=majority"
    return "mongodb://localhost:27017"


class Settings:
    # Database
    DATABASE_URL: str
    DATABASE_NAME: str

    # Stripe
    STRIPE_SECRET_KEY: Optional[str]

    # Uploads
    UPLOAD_DIR: str
    MAX_UPLOAD_SIZE: int = 5 * 1024 * 1024  # 5MB
    ALLOWED_UPLOAD_TYPES = ("pdf", "jpeg", "jpg", "png")

    # Server
    CORS_ORIGINS: List[str]
    PORT: int
    LOG_LEVEL: str

    def __init__(self):
        self.ENV = os.getenv("ENV", os.getenv("NODE_ENV", "development"))
        self.DATABASE_URL = _build_database_url()
        self.DATABASE_NAME = os.getenv("DATABASE_NAME", os.getenv("DB_NAME", "life-insurance"))
        self.STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")

        base_dir = "/tmp" if self.ENV == "production" else os.path.dirname(os.path.abspath(__file__))
        self.UPLOAD_DIR = os.getenv("UPLOAD_DIR", os.path.join(base_dir, "uploads"))
        self.MAX_UPLOAD_SIZE = int(os.getenv("MAX_UPLOAD_SIZE", self.MAX_UPLOAD_SIZE))

        origins = os.getenv("CORS_ORIGINS")
        self.CORS_ORIGINS = (
            [o.strip() for o in origins.split(",") if o.strip()] if origins else list(DEFAULT_CORS_ORIGINS)
        )
        self.PORT = int(os.getenv("PORT", 8000))
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

        if not self.STRIPE_SECRET_KEY:
            logger.warning("STRIPE_SECRET_KEY is not set; payment endpoints will fail.")


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
