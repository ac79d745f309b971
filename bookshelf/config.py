"""Configuration management."""
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Config:
    """Worker configuration."""

    # Persistence
    DATA_BACKEND = os.getenv("DATA_BACKEND", "memory")
    DB_HOST = os.getenv("DB_HOST", "localhost")
    DB_PORT = os.getenv("DB_PORT", "5432")
    DB_NAME = os.getenv("DB_NAME", "bookshelf")
    DB_USER = os.getenv("DB_USER", "postgres")
    DB_PASSWORD = os.getenv("DB_PASSWORD", "")

    @property
    def DATABASE_URL(self):
        """Build PostgreSQL connection string."""
        return f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    # Catalog API
    GOOGLE_BOOKS_API_KEY = os.getenv("GOOGLE_BOOKS_API_KEY")
    DEFAULT_TIMEOUT = int(os.getenv("DEFAULT_TIMEOUT", "10"))

    # Work queue
    QUEUE_BACKEND = os.getenv("QUEUE_BACKEND", "redis")
    REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379")
    QUEUE_KEY = os.getenv("QUEUE_KEY", "bookshelf:book-process-queue")

    # Image storage
    IMAGE_BUCKET_DIR = os.getenv("IMAGE_BUCKET_DIR", "./bucket")
    IMAGE_PUBLIC_URL = os.getenv("IMAGE_PUBLIC_URL", "http://localhost:8080/images")

    # Health server
    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", "8080"))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
